"""
Behaviour of the settings, whitelist, blacklist and history views.

Each manager wires the controls of its view into a listener scope handed to
it by the navigator and loads the view's data. Lists are owned by the remote
service: after every successful mutation the full list is fetched again.
"""

import asyncio
import time
from pathlib import Path
from typing import Callable, Optional

from bs4 import Tag

from .audit_logger import AuditLogger
from .domain_validator import DomainValidator
from .enums import DomainValidationErrorCode, ExportFormat, HistoryFilter, Sensitivity, Theme
from .exceptions import NetworkError, TemplateLoadError, TemplateStructureError
from .i18n import get_message
from .models import HistoryRecord, Settings
from .panel import Event, ListenerScope, PanelDocument
from .preferences import Preferences
from .remote_client import RemoteServiceClient
from .risk import confidence_percent, format_timestamp, history_risk_class, truncate_url
from .templates import TemplateStore


Confirm = Callable[[str], bool]

DEFAULT_HISTORY_LIMIT = 50


def always_confirm(_prompt: str) -> bool:
    return True


class SettingsManager:
    """Reflects Settings and Theme into the settings form and saves changes."""

    def __init__(
        self,
        document: PanelDocument,
        preferences: Preferences,
        language: str = "en",
        logger: Optional[AuditLogger] = None,
    ) -> None:
        self._doc = document
        self._preferences = preferences
        self._language = language
        self._logger = logger
        self._settings = Settings()

    @property
    def settings(self) -> Settings:
        return self._settings

    def bind(self, scope: ListenerScope) -> None:
        doc = self._doc
        doc.on(doc.by_id("detectionSensitivity"), "change", self._on_sensitivity, scope)
        doc.on(doc.by_id("realTimeProtection"), "change", self._on_real_time, scope)
        doc.on(doc.by_id("autoBlockThreats"), "change", self._on_auto_block, scope)
        doc.on(doc.by_id("themeSelector"), "change", self._on_theme, scope)

    def load(self) -> Settings:
        """Read stored preferences (defaults on failure) into the form."""
        self._settings = self._preferences.load_settings()
        self._settings.theme = self._preferences.load_theme()

        doc = self._doc
        doc.set_value(doc.by_id("detectionSensitivity"), self._settings.detection_sensitivity.value)
        doc.set_checked(doc.by_id("realTimeProtection"), self._settings.real_time_protection)
        doc.set_checked(doc.by_id("autoBlockThreats"), self._settings.auto_block_threats)
        doc.set_value(doc.by_id("themeSelector"), self._settings.theme.value)
        self.update_theme_indicator(self._settings.theme)
        return self._settings

    def apply_theme(self, theme: Theme, persist: bool = True) -> None:
        self._doc.html["data-theme"] = theme.value
        if persist:
            self._preferences.save_theme(theme)

    def update_theme_indicator(self, theme: Theme) -> None:
        indicator = self._doc.select_one(".theme-indicator")
        self._doc.set_text(indicator, get_message(f"theme.{theme.value}", self._language))

    def _on_sensitivity(self, event: Event) -> None:
        value = self._doc.get_value(event.target)
        try:
            self._settings.detection_sensitivity = Sensitivity(value)
        except ValueError:
            self._warn(f"Ignoring unknown sensitivity '{value}'")
            return
        self._preferences.save_settings(self._settings)

    def _on_real_time(self, event: Event) -> None:
        self._settings.real_time_protection = self._doc.is_checked(event.target)
        self._preferences.save_settings(self._settings)

    def _on_auto_block(self, event: Event) -> None:
        self._settings.auto_block_threats = self._doc.is_checked(event.target)
        self._preferences.save_settings(self._settings)

    def _on_theme(self, event: Event) -> None:
        value = self._doc.get_value(event.target)
        try:
            theme = Theme(value)
        except ValueError:
            self._warn(f"Ignoring unknown theme '{value}'")
            return
        self._settings.theme = theme
        self.apply_theme(theme)
        self.update_theme_indicator(theme)
        self._preferences.save_settings(self._settings)

    def _warn(self, message: str) -> None:
        if self._logger:
            self._logger.warn("SettingsManager", message)


class DomainListManager:
    """
    Shared behaviour of the whitelist and blacklist views.

    Subclasses name the list; element ids, CSS classes, templates, messages
    and remote calls are derived from that name.
    """

    list_name = ""
    empty_class = ""
    error_class = ""

    def __init__(
        self,
        document: PanelDocument,
        templates: TemplateStore,
        client: RemoteServiceClient,
        preferences: Preferences,
        validator: Optional[DomainValidator] = None,
        language: str = "en",
        logger: Optional[AuditLogger] = None,
        confirm: Confirm = always_confirm,
    ) -> None:
        self._doc = document
        self._templates = templates
        self._client = client
        self._preferences = preferences
        self._validator = validator or DomainValidator()
        self._language = language
        self._logger = logger
        self._confirm = confirm
        self._scope: Optional[ListenerScope] = None
        self._rows_scope: Optional[ListenerScope] = None

    @property
    def component(self) -> str:
        return f"{self.list_name.capitalize()}Manager"

    def _message(self, key: str, **kwargs) -> str:
        return get_message(f"{self.list_name}.{key}", self._language, **kwargs)

    def bind(self, scope: ListenerScope) -> None:
        doc = self._doc
        self._scope = scope
        self._rows_scope = None
        doc.on(doc.by_id(f"add{self.list_name.capitalize()}Btn"), "click", lambda _e: self.add(), scope)
        doc.on(doc.by_id(f"{self.list_name}Input"), "keypress", self._on_keypress, scope)

    async def _on_keypress(self, event: Event) -> None:
        if event.key == "Enter":
            await self.add()

    # Remote calls, overridden per list

    async def _fetch(self, user_id: str) -> list[str]:
        raise NotImplementedError

    async def _add(self, domain: str, user_id: str) -> None:
        raise NotImplementedError

    async def _remove(self, domain: str, user_id: str) -> None:
        raise NotImplementedError

    def _add_error_message(self, error: NetworkError) -> str:
        return self._message("add_failed")

    def _remove_error_message(self, error: NetworkError) -> str:
        return self._message("remove_failed")

    def _row_data(self, domain: str) -> dict:
        return {"domain": domain}

    # Loading

    async def load(self) -> list[str]:
        """
        Fetch the list and render one row per domain.

        Returns:
            The domains rendered, empty on failure or when the view is gone
        """
        container = self._doc.by_id(f"{self.list_name}Container")
        if container is None:
            return []

        try:
            domains = await self._fetch(self._preferences.get_user_id())
        except NetworkError as e:
            if self._logger:
                self._logger.log_error(self.component, f"Failed to load {self.list_name}", error=e)
            if self._doc.is_attached(container):
                self._replace_with_notice(container, self.error_class, self._message("load_failed"))
            return []

        if not self._doc.is_attached(container):
            self._dismounted()
            return []

        if self._rows_scope is not None:
            self._doc.listeners.detach(self._rows_scope)
        self._rows_scope = self._scope.child("rows") if self._scope is not None and self._scope.active else None

        if not domains:
            self._replace_with_notice(container, self.empty_class, self._message("empty"))
            return []

        rows = [await self._build_row(domain) for domain in domains]
        if not self._doc.is_attached(container):
            self._dismounted()
            return []

        container.clear()
        for domain, row in zip(domains, rows):
            container.append(row)
            if self._rows_scope is not None:
                button = row.select_one(".remove-btn")
                # Bind the captured value, never the row position
                self._doc.on(button, "click", lambda _e, d=domain: self.remove(d), self._rows_scope)
        return list(domains)

    async def _build_row(self, domain: str) -> Tag:
        try:
            return await self._templates.materialize(f"{self.list_name}-item", self._row_data(domain))
        except (TemplateLoadError, TemplateStructureError) as e:
            if self._logger:
                self._logger.log_error(
                    self.component,
                    f"Template '{self.list_name}-item' unavailable, using fallback row",
                    error=e,
                )
            return self._fallback_row(domain)

    def _fallback_row(self, domain: str) -> Tag:
        doc = self._doc
        row = doc.new_tag("div")
        row["class"] = [f"{self.list_name}-item"]
        info = doc.new_tag("div")
        info["class"] = ["domain-info"]
        name = doc.new_tag("span", text=domain)
        name["class"] = ["domain-name"]
        info.append(name)
        row.append(info)
        button = doc.new_tag("button", text="Remove")
        button["class"] = ["remove-btn"]
        button["data-domain"] = domain
        row.append(button)
        return row

    def _replace_with_notice(self, container: Tag, css_class: str, text: str) -> None:
        notice = self._doc.new_tag("div", text=text)
        notice["class"] = [css_class]
        container.clear()
        container.append(notice)

    def _dismounted(self) -> None:
        if self._logger:
            self._logger.debug(self.component, f"{self.list_name} view no longer mounted, dropping response")

    # Mutations

    async def add(self, raw_domain: Optional[str] = None) -> bool:
        """
        Validate and add a domain, then reload the list.

        The input field is used when ``raw_domain`` is not given. Invalid
        domains never reach the network.
        """
        doc = self._doc
        field = doc.by_id(f"{self.list_name}Input")
        if raw_domain is None:
            raw_domain = doc.get_value(field)

        result = self._validator.validate(raw_domain)
        if not result.valid:
            key = "empty_input" if result.error.code == DomainValidationErrorCode.EMPTY_INPUT else "invalid_domain"
            self.show_message(self._message(key), "error")
            return False

        domain = result.canonical_domain
        try:
            await self._add(domain, self._preferences.get_user_id())
        except NetworkError as e:
            if self._logger:
                self._logger.log_error(self.component, f"Failed to add {domain}", error=e,
                                       response_status_code=e.status_code)
            self.show_message(self._add_error_message(e), "error")
            return False

        if doc.is_attached(field):
            doc.set_value(field, "")
        self.show_message(self._message("added", domain=domain), "success")
        await self.load()
        return True

    async def remove(self, domain: str) -> bool:
        if not self._confirm(f"Remove \"{domain}\" from {self.list_name}?"):
            return False
        try:
            await self._remove(domain, self._preferences.get_user_id())
        except NetworkError as e:
            if self._logger:
                self._logger.log_error(self.component, f"Failed to remove {domain}", error=e,
                                       response_status_code=e.status_code)
            self.show_message(self._remove_error_message(e), "error")
            return False

        self.show_message(self._message("removed", domain=domain), "success")
        await self.load()
        return True

    def show_message(self, text: str, kind: str) -> Optional[Tag]:
        anchor = self._doc.select_one(f".{self.list_name}-add")
        return self._doc.show_message(anchor, f"{self.list_name}-message", kind, text)


class WhitelistManager(DomainListManager):
    """Trusted domains."""

    list_name = "whitelist"
    empty_class = "empty-whitelist"
    error_class = "error-whitelist"

    async def _fetch(self, user_id: str) -> list[str]:
        return await self._client.get_whitelist(user_id)

    async def _add(self, domain: str, user_id: str) -> None:
        await self._client.add_to_whitelist(domain, user_id)

    async def _remove(self, domain: str, user_id: str) -> None:
        await self._client.remove_from_whitelist(domain, user_id)


class BlacklistManager(DomainListManager):
    """Blocked domains."""

    list_name = "blacklist"
    empty_class = "no-blacklist"
    error_class = "error-blacklist"

    async def _fetch(self, user_id: str) -> list[str]:
        return await self._client.get_blacklist(user_id)

    async def _add(self, domain: str, user_id: str) -> None:
        await self._client.add_to_blacklist(domain, user_id)

    async def _remove(self, domain: str, user_id: str) -> None:
        await self._client.remove_from_blacklist(domain, user_id)

    def _row_data(self, domain: str) -> dict:
        return {"domain": domain, "date": self._message("added_date")}

    def _add_error_message(self, error: NetworkError) -> str:
        remote = error.details.get("remote_message")
        if remote and "already in blacklist" in remote:
            return self._message("already_listed")
        return remote or self._message("add_failed")

    def _remove_error_message(self, error: NetworkError) -> str:
        return error.details.get("remote_message") or self._message("remove_failed")


class HistoryManager:
    """Lists, filters, exports and clears past analyses."""

    def __init__(
        self,
        document: PanelDocument,
        templates: TemplateStore,
        client: RemoteServiceClient,
        preferences: Preferences,
        downloads_dir: Path,
        language: str = "en",
        logger: Optional[AuditLogger] = None,
        confirm: Confirm = always_confirm,
    ) -> None:
        self._doc = document
        self._templates = templates
        self._client = client
        self._preferences = preferences
        self._downloads_dir = downloads_dir
        self._language = language
        self._logger = logger
        self._confirm = confirm
        self._scope: Optional[ListenerScope] = None
        self._rows_scope: Optional[ListenerScope] = None

    def bind(self, scope: ListenerScope) -> None:
        doc = self._doc
        self._scope = scope
        self._rows_scope = None
        doc.on(doc.by_id("filterType"), "change", lambda _e: self.load(), scope)
        doc.on(doc.by_id("limitResults"), "change", lambda _e: self.load(), scope)
        doc.on(doc.by_id("exportCsvBtn"), "click", lambda _e: self.export(ExportFormat.CSV), scope)
        doc.on(doc.by_id("exportJsonBtn"), "click", lambda _e: self.export(ExportFormat.JSON), scope)
        doc.on(doc.by_id("clearHistoryBtn"), "click", lambda _e: self.clear(), scope)

    @property
    def history_filter(self) -> HistoryFilter:
        try:
            return HistoryFilter(self._doc.get_value(self._doc.by_id("filterType")))
        except ValueError:
            return HistoryFilter.ALL

    @property
    def limit(self) -> int:
        try:
            return max(1, int(self._doc.get_value(self._doc.by_id("limitResults"))))
        except ValueError:
            return DEFAULT_HISTORY_LIMIT

    async def load(self) -> list[HistoryRecord]:
        """
        Fetch and render history rows.

        Any failure, like an empty answer, shows the empty state.
        """
        doc = self._doc
        history_list = doc.by_id("historyList")
        if history_list is None:
            return []
        loading = doc.by_id("loadingHistory")
        empty = doc.by_id("emptyState")

        doc.show(loading)
        history_list.clear()
        doc.hide(empty)

        try:
            records = await self._client.get_history(
                self._preferences.get_user_id(),
                limit=self.limit,
                only_threats=self.history_filter == HistoryFilter.THREATS,
            )
        except NetworkError as e:
            if self._logger:
                self._logger.log_error("HistoryManager", "Failed to load history", error=e,
                                       response_status_code=e.status_code)
            records = []

        if not doc.is_attached(history_list):
            if self._logger:
                self._logger.debug("HistoryManager", "History view no longer mounted, dropping response")
            return []

        if self._rows_scope is not None:
            doc.listeners.detach(self._rows_scope)
        self._rows_scope = self._scope.child("rows") if self._scope is not None and self._scope.active else None

        if records:
            rows = [await self._build_row(record) for record in records]
            history_list.clear()
            for record, row in zip(records, rows):
                history_list.append(row)
                if self._rows_scope is not None:
                    doc.on(row, "click", lambda _e, r=record: self.show_details(r), self._rows_scope)
        else:
            doc.show(empty)
        doc.hide(loading)
        return records

    def _row_data(self, record: HistoryRecord) -> dict:
        percent = confidence_percent(record.confidence)
        return {
            "statusClass": "status-threat" if record.is_phishing else "status-safe",
            "statusIcon": "\U0001F6A8" if record.is_phishing else "✅",
            "statusText": get_message(
                "history.status_threat" if record.is_phishing else "history.status_safe",
                self._language,
            ),
            "date": format_timestamp(record.created_at, self._language),
            "displayUrl": truncate_url(record.url),
            "riskClass": history_risk_class(record.risk_score),
            "riskScore": record.risk_score,
            "confidence": percent if percent is not None else 0,
        }

    async def _build_row(self, record: HistoryRecord) -> Tag:
        data = self._row_data(record)
        try:
            return await self._templates.materialize("history-item", data)
        except (TemplateLoadError, TemplateStructureError) as e:
            if self._logger:
                self._logger.log_error("HistoryManager", "Template 'history-item' unavailable, using fallback row", error=e)
            doc = self._doc
            row = doc.new_tag("div")
            row["class"] = ["history-item"]
            row.append(doc.new_tag("div", text=f"{data['statusText']} {data['date']}"))
            url = doc.new_tag("div", text=data["displayUrl"])
            url["class"] = ["history-item-url"]
            row.append(url)
            risk = doc.new_tag("span", text=f"{data['riskScore']}/100")
            risk["class"] = ["risk-score", data["riskClass"]]
            row.append(risk)
            return row

    def show_details(self, record: HistoryRecord) -> Optional[Tag]:
        """Show the full record in the view's detail area."""
        doc = self._doc
        details = doc.by_id("historyDetails")
        if details is None:
            return None
        threats = ", ".join(record.threats) if record.threats else get_message("history.no_threats", self._language)
        percent = confidence_percent(record.confidence)
        status = "result.threat_detected" if record.is_phishing else "history.status_safe"
        lines = [
            f"URL: {record.url}",
            f"Status: {get_message(status, self._language)}",
            f"Risk Score: {record.risk_score}/100",
            f"Confidence: {percent if percent is not None else 0}%",
            f"Threats: {threats}",
            f"Description: {record.description or ''}",
        ]
        details.clear()
        for line in lines:
            details.append(doc.new_tag("p", text=line))
        doc.show(details)
        return details

    async def export(self, export_format: ExportFormat) -> Optional[Path]:
        """Download the export payload as ``history_export_<epoch-ms>.<format>``."""
        try:
            payload = await self._client.export_history(
                self._preferences.get_user_id(),
                export_format,
                only_threats=self.history_filter == HistoryFilter.THREATS,
            )
            target = self._downloads_dir / f"history_export_{int(time.time() * 1000)}.{export_format.value}"
            await asyncio.to_thread(self._write, target, payload)
        except (NetworkError, OSError) as e:
            if self._logger:
                self._logger.log_error("HistoryManager", "Export failed", error=e)
            self._doc.show_toast("error", get_message("history.export_failed", self._language))
            return None

        self._doc.show_toast(
            "success",
            get_message("history.exported", self._language, format=export_format.value.upper()),
        )
        if self._logger:
            self._logger.info("HistoryManager", "History exported", {"path": str(target)})
        return target

    @staticmethod
    def _write(target: Path, payload: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(payload)

    async def clear(self) -> bool:
        if not self._confirm("Clear all scan history? This cannot be undone."):
            return False
        try:
            await self._client.clear_history(self._preferences.get_user_id())
        except NetworkError as e:
            if self._logger:
                self._logger.log_error("HistoryManager", "Failed to clear history", error=e,
                                       response_status_code=e.status_code)
            self._doc.show_toast("error", get_message("history.clear_failed", self._language))
            return False

        await self.load()
        self._doc.show_toast("success", get_message("history.cleared", self._language))
        return True
