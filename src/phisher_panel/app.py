"""
Panel application.

Builds the panel's components from a PanelConfig and owns their lifecycle:
opening the panel mounts the main view, a reload starts a fresh session with
an empty result cache, and closing releases the HTTP client.
"""

import random
import webbrowser
from typing import Optional

from .audit_logger import AuditLogger
from .config import PanelConfig
from .controller import AnalysisController, ClipboardReader
from .domain_validator import DomainValidator
from .enums import View
from .exceptions import TemplateLoadError
from .managers import (
    BlacklistManager,
    Confirm,
    HistoryManager,
    SettingsManager,
    WhitelistManager,
    always_confirm,
)
from .models import AnalysisResult
from .navigator import Opener, ViewNavigator
from .panel import DEFAULT_SHELL, TRANSIENT_SECONDS, ListenerScope, PanelDocument
from .preferences import Preferences
from .remote_client import RemoteServiceClient
from .session import PanelSession
from .stats import StatsTracker
from .storage import KeyValueStore
from .templates import TemplateStore


class PhisherPanel:
    """
    A headless phishing-check panel.

    Usage::

        async with PhisherPanel(config) as panel:
            await panel.analyze("https://example.com")
    """

    def __init__(
        self,
        config: PanelConfig,
        client: Optional[RemoteServiceClient] = None,
        templates: Optional[TemplateStore] = None,
        logger: Optional[AuditLogger] = None,
        clipboard: Optional[ClipboardReader] = None,
        opener: Optional[Opener] = None,
        confirm: Confirm = always_confirm,
        rng: Optional[random.Random] = None,
        transient_seconds: float = TRANSIENT_SECONDS,
    ) -> None:
        self._config = config
        self._logger = logger
        self._client = client or RemoteServiceClient(
            config.api,
            simulation_mode=config.simulation_mode,
            logger=logger,
        )
        self._templates = templates or TemplateStore(logger=logger)
        self._clipboard = clipboard
        self._opener = opener or webbrowser.open
        self._confirm = confirm
        self._rng = rng
        self._validator = DomainValidator()

        self._local_store = KeyValueStore(config.storage.local_file, config.storage.hmac_secret, "local")
        self._sync_store = KeyValueStore(config.storage.sync_file, config.storage.hmac_secret, "sync")
        self._preferences = Preferences(self._local_store, self._sync_store, logger)
        self._stats = StatsTracker(self._local_store, logger)

        self._document = PanelDocument(transient_seconds=transient_seconds)
        self._session: Optional[PanelSession] = None
        self._navigator: Optional[ViewNavigator] = None
        self._controller: Optional[AnalysisController] = None
        self._settings: Optional[SettingsManager] = None
        self._whitelist: Optional[WhitelistManager] = None
        self._blacklist: Optional[BlacklistManager] = None
        self._history: Optional[HistoryManager] = None

    async def __aenter__(self) -> "PhisherPanel":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # Lifecycle

    async def open(self) -> None:
        """Load the panel: fresh session, stored stats and theme, main view."""
        if self._session is not None and not self._session.closed:
            self._session.close()

        self._document.reset(await self._shell_markup())
        self._stats.load()
        self._session = PanelSession(self._stats, self._config.cache.capacity)
        self._build_components()

        self._settings.apply_theme(self._preferences.load_theme(), persist=False)
        self._navigator.bind_footer(ListenerScope("footer"))
        await self._navigator.navigate(View.MAIN)
        if self._logger:
            self._logger.info("PhisherPanel", "Panel opened", {"session": self._session.session_id})

    async def reload(self) -> None:
        """Full reload: the result cache is dropped and the main view shown."""
        if self._logger:
            self._logger.info("PhisherPanel", "Reloading panel")
        await self.open()

    async def close(self) -> None:
        if self._session is not None:
            self._session.close()
        self._document.cancel_timers()
        await self._client.close()

    async def _shell_markup(self) -> str:
        try:
            return await self._templates.render("panel")
        except TemplateLoadError as e:
            if self._logger:
                self._logger.log_error("PhisherPanel", "Panel shell unavailable, using fallback", error=e)
            return DEFAULT_SHELL

    def _build_components(self) -> None:
        language = self._config.language
        doc = self._document
        self._controller = AnalysisController(
            doc, self._templates, self._client, self._session, self._preferences,
            language=language, logger=self._logger, clipboard=self._clipboard, rng=self._rng,
        )
        self._settings = SettingsManager(doc, self._preferences, language, self._logger)
        self._whitelist = WhitelistManager(
            doc, self._templates, self._client, self._preferences, self._validator,
            language, self._logger, self._confirm,
        )
        self._blacklist = BlacklistManager(
            doc, self._templates, self._client, self._preferences, self._validator,
            language, self._logger, self._confirm,
        )
        self._history = HistoryManager(
            doc, self._templates, self._client, self._preferences, self._config.downloads_dir,
            language, self._logger, self._confirm,
        )
        self._navigator = ViewNavigator(
            doc, self._templates, self._session, self._controller,
            self._settings, self._whitelist, self._blacklist, self._history,
            reload=self.reload,
            opener=self._opener,
            report_url=self._config.report_url,
            help_url=self._config.help_url,
            logger=self._logger,
        )

    # Shortcuts for scripted use

    async def analyze(self, url: str) -> Optional[AnalysisResult]:
        """Type ``url`` into the main view and submit it."""
        if self.current_view != View.MAIN:
            await self._navigator.navigate(View.MAIN)
        self._document.type_text("urlInput", url)
        return await self._controller.submit()

    async def navigate(self, view: View) -> bool:
        return await self._navigator.navigate(view)

    # Accessors

    @property
    def config(self) -> PanelConfig:
        return self._config

    @property
    def document(self) -> PanelDocument:
        return self._document

    @property
    def session(self) -> Optional[PanelSession]:
        return self._session

    @property
    def current_view(self) -> Optional[View]:
        return self._session.current_view if self._session else None

    @property
    def navigator(self) -> Optional[ViewNavigator]:
        return self._navigator

    @property
    def controller(self) -> Optional[AnalysisController]:
        return self._controller

    @property
    def settings(self) -> Optional[SettingsManager]:
        return self._settings

    @property
    def whitelist(self) -> Optional[WhitelistManager]:
        return self._whitelist

    @property
    def blacklist(self) -> Optional[BlacklistManager]:
        return self._blacklist

    @property
    def history(self) -> Optional[HistoryManager]:
        return self._history

    @property
    def preferences(self) -> Preferences:
        return self._preferences

    @property
    def stats(self) -> StatsTracker:
        return self._stats

    @property
    def client(self) -> RemoteServiceClient:
        return self._client
