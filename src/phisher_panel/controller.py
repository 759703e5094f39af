"""
Analysis controller for the main view.

Runs one analyze-URL request end to end:
- Validation of the raw input (inline, auto-clearing errors)
- Result cache lookup, joining an in-flight request for the same URL
- Remote analysis with the user's sensitivity and id
- Cache write and stats update
- Rendering of the result card and counters
"""

import asyncio
import random
from typing import Awaitable, Callable, Optional
from urllib.parse import urlparse

from .audit_logger import AuditLogger
from .enums import AnalysisState
from .exceptions import (
    AnalysisFailedError,
    InvalidInputError,
    InvalidUrlError,
    NetworkError,
    TemplateLoadError,
    TemplateStructureError,
)
from .i18n import get_message
from .models import AnalysisResult
from .panel import Event, ListenerScope, PanelDocument
from .preferences import Preferences
from .remote_client import RemoteServiceClient
from .risk import (
    display_confidence,
    result_description,
    result_recommendation,
    result_title,
    risk_level,
)
from .session import PanelSession
from .templates import TemplateStore, replace_content


ClipboardReader = Callable[[], Awaitable[str]]

INITIAL_STATE_FALLBACK = (
    '<div class="analysis-initial"><div class="initial-icon">&#129302;</div>'
    "<h3>AI Ready</h3><p>Paste or type any URL for instant threat analysis</p></div>"
)

ERROR_DISPLAY_FALLBACK = (
    '<div class="analysis-result"><div class="result-header">'
    '<div class="result-icon warning">&#9888;</div>'
    '<div class="result-info"><h3 class="error-title"></h3><p class="error-message"></p></div>'
    "</div></div>"
)


def validate_url(raw: Optional[str], language: str = "en") -> str:
    """
    Check that ``raw`` is an absolute http(s) URL.

    Returns:
        The stripped URL, which is also the cache key

    Raises:
        InvalidInputError: If the input is empty
        InvalidUrlError: If the input is not an absolute http/https URL
    """
    url = (raw or "").strip()
    if not url:
        raise InvalidInputError(
            code="empty_input",
            message=get_message("input.empty", language),
        )

    invalid = InvalidUrlError(
        code="invalid_url",
        message=get_message("input.invalid_url", language),
        details={"input": url},
    )
    if any(c.isspace() for c in url):
        raise invalid
    try:
        parsed = urlparse(url)
        parsed.port  # raises ValueError for malformed ports
    except ValueError:
        raise invalid
    if parsed.scheme.lower() not in ("http", "https") or not parsed.hostname:
        raise invalid
    return url


class AnalysisController:
    """Drives the analyze flow of the main view."""

    def __init__(
        self,
        document: PanelDocument,
        templates: TemplateStore,
        client: RemoteServiceClient,
        session: PanelSession,
        preferences: Preferences,
        language: str = "en",
        logger: Optional[AuditLogger] = None,
        clipboard: Optional[ClipboardReader] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._doc = document
        self._templates = templates
        self._client = client
        self._session = session
        self._preferences = preferences
        self._language = language
        self._logger = logger
        self._clipboard = clipboard
        self._rng = rng
        self._state = AnalysisState.IDLE

    @property
    def state(self) -> AnalysisState:
        return self._state

    def bind(self, scope: ListenerScope) -> None:
        """Wire the main view's input, analyze and paste controls."""
        doc = self._doc
        doc.on(doc.by_id("analyzeBtn"), "click", lambda _e: self.submit(), scope)
        doc.on(doc.by_id("urlInput"), "keypress", self._on_keypress, scope)
        doc.on(doc.by_id("pasteBtn"), "click", lambda _e: self.paste(), scope)

    async def _on_keypress(self, event: Event) -> None:
        if event.key == "Enter":
            await self.submit()

    # Pipeline

    async def analyze_url(self, url: str) -> AnalysisResult:
        """
        Analyze an already validated URL.

        A cached result is returned without a network call. A request that is
        already in flight for ``url`` is joined instead of duplicated.

        Raises:
            AnalysisFailedError: If the remote call fails
        """
        cached = self._session.cache.get(url)
        if cached is not None:
            self._state = AnalysisState.CACHE_HIT
            self._debug("Cache hit", {"url": url})
            return cached

        pending = self._session.pending.get(url)
        if pending is None:
            pending = asyncio.ensure_future(self._fetch(url))
            self._session.pending[url] = pending
            pending.add_done_callback(lambda task: self._forget(url, task))
        else:
            self._debug("Joining in-flight request", {"url": url})

        self._state = AnalysisState.REQUESTING
        try:
            result = await asyncio.shield(pending)
        except AnalysisFailedError:
            self._state = AnalysisState.FAILED
            raise
        self._state = AnalysisState.SUCCEEDED
        return result

    def _forget(self, url: str, task: asyncio.Future) -> None:
        if self._session.pending.get(url) is task:
            del self._session.pending[url]

    async def _fetch(self, url: str) -> AnalysisResult:
        settings = self._preferences.load_settings()
        user_id = self._preferences.get_user_id()
        try:
            result = await self._client.analyze(url, settings.detection_sensitivity, user_id)
        except NetworkError as e:
            if self._logger:
                self._logger.log_error(
                    "AnalysisController",
                    "Analysis request failed",
                    error=e,
                    request_url=url,
                    response_status_code=e.status_code,
                )
            raise AnalysisFailedError(
                code="analysis_failed",
                message=get_message("analysis.failed", self._language),
                details={"url": url, "cause": e.code, "status_code": e.status_code},
            ) from e

        self._session.cache.put(url, result)
        self._session.stats.record(result)
        self._debug("Analysis completed", {"url": url, "risk_score": result.risk_score})
        return result

    # User actions

    async def submit(self) -> Optional[AnalysisResult]:
        """Analyze whatever is in the URL input and render the outcome."""
        doc = self._doc
        url_input = doc.by_id("urlInput")
        self._state = AnalysisState.VALIDATING
        try:
            url = validate_url(doc.get_value(url_input), self._language)
        except (InvalidInputError, InvalidUrlError) as e:
            self.show_input_error(e.message)
            self._state = AnalysisState.IDLE
            return None

        self.set_loading(True)
        try:
            result = await self.analyze_url(url)
        except AnalysisFailedError as e:
            self.show_input_error(e.message)
            await self.display_error(e.message)
            self._state = AnalysisState.IDLE
            return None
        finally:
            self.set_loading(False)

        self.render_result(result)
        self.render_stats()
        if doc.is_attached(url_input):
            doc.set_value(url_input, "")
        self._state = AnalysisState.IDLE
        return result

    async def paste(self) -> None:
        if self._clipboard is None:
            self._debug("No clipboard reader configured", {})
            return
        try:
            text = await self._clipboard()
        except Exception as e:
            if self._logger:
                self._logger.warn(
                    "AnalysisController",
                    "Failed to read clipboard",
                    {"error_type": type(e).__name__, "error_message": str(e)},
                )
            return
        url_input = self._doc.by_id("urlInput")
        if text and self._doc.is_attached(url_input):
            self._doc.set_value(url_input, text.strip())

    # Rendering

    def show_input_error(self, message: str) -> None:
        self._doc.flag_invalid(self._doc.by_id("urlInput"), self._doc.by_id("inputMessage"), message)

    def set_loading(self, loading: bool) -> None:
        doc = self._doc
        button = doc.by_id("analyzeBtn")
        if button is None:
            return
        content = button.select_one(".btn-content")
        spinner = button.select_one(".btn-spinner")
        if loading:
            doc.hide(content)
            doc.show(spinner)
        else:
            doc.show(content)
            doc.hide(spinner)
        doc.set_disabled(button, loading)

    def render_result(self, result: AnalysisResult) -> None:
        doc = self._doc
        loading = doc.by_id("loadingIndicator")
        panel = doc.by_id("analysisResult")
        if loading is None or panel is None:
            self._debug("Main view not mounted, result not rendered", {"url": result.url})
            return

        doc.hide(loading)
        doc.show(panel)
        doc.hide(doc.select_one(".analysis-initial"))
        doc.hide(doc.by_id("analysisError"))

        level = risk_level(result.risk_score).value
        icon = doc.by_id("resultIcon")
        if icon is not None:
            doc.set_classes(icon, f"threat-status {level}")
        doc.set_text(doc.by_id("resultTitle"), result_title(result, self._language))
        doc.set_text(doc.by_id("resultDescription"), result_description(result, self._language))
        doc.set_text(
            doc.by_id("confidenceScore"),
            f"{display_confidence(result.confidence, self._rng)}%",
        )

        fill = doc.by_id("scoreFill")
        if fill is not None:
            fill["style"] = f"width: {result.risk_score}%"
            doc.set_classes(fill, f"meter-fill {level}")
        doc.set_text(doc.by_id("scoreText"), f"{result.risk_score}%")

        threat_list = doc.by_id("threatList")
        if threat_list is not None:
            threat_list.clear()
            for threat in result.threats:
                threat_list.append(doc.new_tag("li", text=threat))

        doc.set_text(
            doc.by_id("recommendationText"),
            result_recommendation(result, self._language),
        )

    def render_stats(self) -> None:
        stats = self._session.stats.stats
        self._doc.set_text(self._doc.by_id("totalChecks"), stats.total_checks)
        self._doc.set_text(self._doc.by_id("threatsBlocked"), stats.threats_blocked)
        self._doc.set_text(self._doc.by_id("safeUrls"), stats.safe_urls)

    async def show_initial_state(self) -> None:
        """Show the idle card unless it is already present."""
        doc = self._doc
        card = doc.by_id("analysisCard")
        if card is None:
            return
        doc.hide(doc.by_id("loadingIndicator"))
        doc.hide(doc.by_id("analysisResult"))

        initial = card.select_one(".analysis-initial")
        if initial is None:
            try:
                initial = await self._templates.materialize("initial-state")
            except (TemplateLoadError, TemplateStructureError) as e:
                self._template_fallback("initial-state", e)
                initial = doc.new_tag("div")
                replace_content(initial, INITIAL_STATE_FALLBACK)
                initial = initial.select_one(".analysis-initial").extract()
            if not doc.is_attached(card):
                return
            card.append(initial)
        doc.show(initial)

    async def display_error(self, message: str) -> None:
        doc = self._doc
        target = doc.by_id("analysisError")
        if target is None:
            return
        doc.set_text(doc.by_id("statusText"), get_message("analysis.error_title", self._language))
        try:
            await self._templates.replace_into(target, "error-display", {"message": message})
        except TemplateLoadError as e:
            self._template_fallback("error-display", e)
            replace_content(target, ERROR_DISPLAY_FALLBACK)
            doc.set_text(target.select_one(".error-title"), get_message("analysis.error_title", self._language))
            doc.set_text(target.select_one(".error-message"), message)
        doc.show(target)

    def _template_fallback(self, name: str, error: Exception) -> None:
        if self._logger:
            self._logger.log_error(
                "AnalysisController",
                f"Template '{name}' unavailable, using fallback markup",
                error=error,
            )

    def _debug(self, message: str, data: dict) -> None:
        if self._logger:
            self._logger.debug("AnalysisController", message, data)
