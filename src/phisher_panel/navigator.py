"""
View navigator for the panel.

Exactly one view is mounted into the root container at a time. A transition
hides or shows the footer, detaches every listener the previous view bound,
mounts the new view's template (or a hand-written fallback carrying the same
element ids), wires the view and triggers its initial data load.
"""

from typing import Awaitable, Callable, Optional

from .audit_logger import AuditLogger
from .controller import AnalysisController
from .enums import View
from .exceptions import TemplateLoadError
from .managers import BlacklistManager, HistoryManager, SettingsManager, WhitelistManager
from .panel import Event, ListenerScope, PanelDocument
from .session import PanelSession
from .templates import TemplateStore


Opener = Callable[[str], object]

VIEW_TEMPLATES = {
    View.MAIN: "main-view",
    View.SETTINGS: "settings-view",
    View.WHITELIST: "whitelist-manager",
    View.BLACKLIST: "blacklist-manager",
    View.HISTORY: "history-view",
}

_BACK_ICON = (
    '<svg viewBox="0 0 24 24" width="16" height="16"><path fill="currentColor" '
    'd="M20,11V13H8L13.5,18.5L12.08,19.92L4.16,12L12.08,4.08L13.5,5.5L8,11H20Z"/></svg>'
)

# Minimal markup used when a view template cannot be loaded. Every element id
# the view wiring looks up is present.
FALLBACK_MARKUP = {
    View.MAIN: (
        '<div class="main-view" data-view="main">'
        '<header class="header"><span id="statusText">Ready</span>'
        '<div class="stats"><span id="totalChecks">0</span>'
        '<span id="threatsBlocked">0</span><span id="safeUrls">0</span></div></header>'
        '<div class="input-group"><input id="urlInput" type="text" value="">'
        '<button id="pasteBtn">Paste</button>'
        '<button id="analyzeBtn"><span class="btn-content">Analyze</span>'
        '<span class="btn-spinner" hidden></span></button></div>'
        '<div id="inputMessage" class="input-message" hidden></div>'
        '<div id="analysisCard" class="analysis-card">'
        '<div id="loadingIndicator" hidden></div>'
        '<div id="analysisError" hidden></div>'
        '<div id="analysisResult" hidden>'
        '<div id="resultIcon"></div><h3 id="resultTitle"></h3><p id="resultDescription"></p>'
        '<span id="confidenceScore"></span>'
        '<div id="scoreFill" class="meter-fill"></div><span id="scoreText"></span>'
        '<ul id="threatList"></ul><p id="recommendationText"></p>'
        "</div></div></div>"
    ),
    View.SETTINGS: (
        '<div class="settings-view" data-view="settings">'
        '<header class="settings-header"><div class="header-content">'
        f'<button id="backBtn" class="back-btn">{_BACK_ICON}</button><h1>Settings</h1>'
        "</div></header>"
        '<main class="settings-content">'
        "<p>Settings view failed to load. Please reload the panel.</p>"
        '<select id="detectionSensitivity"><option value="strict">Strict</option>'
        '<option value="balanced" selected>Balanced</option>'
        '<option value="relaxed">Relaxed</option></select>'
        '<input id="realTimeProtection" type="checkbox" checked>'
        '<input id="autoBlockThreats" type="checkbox">'
        '<select id="themeSelector"><option value="dark" selected>Dark</option>'
        '<option value="light">Light</option></select><span class="theme-indicator"></span>'
        '<div class="setting-item clickable" data-action="whitelist">Whitelist</div>'
        '<div class="setting-item clickable" data-action="blacklist">Blacklist</div>'
        "</main></div>"
    ),
    View.WHITELIST: (
        '<div class="whitelist-view" data-view="whitelist">'
        '<header class="settings-header"><div class="header-content">'
        f'<button id="backToSettingsBtn" class="back-btn">{_BACK_ICON}</button>'
        "<h1>Whitelist Management</h1></div></header>"
        '<main class="settings-content">'
        '<div class="whitelist-add"><input id="whitelistInput" type="text" value="">'
        '<button id="addWhitelistBtn">Add</button></div>'
        '<div id="whitelistContainer"></div>'
        "</main></div>"
    ),
    View.BLACKLIST: (
        '<div class="blacklist-view" data-view="blacklist">'
        '<header class="settings-header"><div class="header-content">'
        f'<button id="backToSettingsBtn" class="back-btn">{_BACK_ICON}</button>'
        "<h1>Blacklist Management</h1></div></header>"
        '<main class="settings-content">'
        '<div class="blacklist-add"><input id="blacklistInput" type="text" value="">'
        '<button id="addBlacklistBtn">Add</button></div>'
        '<div id="blacklistContainer"></div>'
        "</main></div>"
    ),
    View.HISTORY: (
        '<div class="history-view" data-view="history">'
        '<header class="settings-header history-header"><div class="header-content">'
        f'<button id="backBtn" class="back-btn">{_BACK_ICON}</button>'
        '<div class="page-title"><h1>Scan History</h1></div></div></header>'
        '<main class="settings-content history-content">'
        '<select id="filterType"><option value="all" selected>All</option>'
        '<option value="threats">Threats only</option></select>'
        '<select id="limitResults"><option value="25">25</option>'
        '<option value="50" selected>50</option><option value="100">100</option></select>'
        '<button id="exportCsvBtn">CSV</button><button id="exportJsonBtn">JSON</button>'
        '<button id="clearHistoryBtn">Clear</button>'
        '<div id="loadingHistory" hidden></div>'
        '<div id="historyList"></div>'
        '<div id="emptyState" hidden>No history yet</div>'
        '<div id="historyDetails" hidden></div>'
        "</main></div>"
    ),
}


class ViewNavigator:
    """State machine over the panel's views."""

    def __init__(
        self,
        document: PanelDocument,
        templates: TemplateStore,
        session: PanelSession,
        controller: AnalysisController,
        settings: SettingsManager,
        whitelist: WhitelistManager,
        blacklist: BlacklistManager,
        history: HistoryManager,
        reload: Callable[[], Awaitable[None]],
        opener: Opener,
        report_url: str,
        help_url: str,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        self._doc = document
        self._templates = templates
        self._session = session
        self._controller = controller
        self._settings = settings
        self._whitelist = whitelist
        self._blacklist = blacklist
        self._history = history
        self._reload = reload
        self._opener = opener
        self._report_url = report_url
        self._help_url = help_url
        self._logger = logger
        self._view_scope: Optional[ListenerScope] = None
        self._generation = 0

    @property
    def current_view(self) -> Optional[View]:
        return self._session.current_view

    @property
    def view_scope(self) -> Optional[ListenerScope]:
        return self._view_scope

    def bind_footer(self, scope: ListenerScope) -> None:
        doc = self._doc
        doc.on(doc.by_id("historyBtn"), "click", lambda _e: self.navigate(View.HISTORY), scope)
        doc.on(doc.by_id("settingsBtn"), "click", lambda _e: self.navigate(View.SETTINGS), scope)
        doc.on(doc.by_id("reportBtn"), "click", lambda _e: self._open(self._report_url), scope)
        doc.on(doc.by_id("helpBtn"), "click", lambda _e: self._open(self._help_url), scope)

    def _open(self, url: str) -> None:
        self._info("Opening external page", {"url": url})
        self._opener(url)

    async def navigate(self, view: View) -> bool:
        """
        Mount ``view`` into the root container.

        Returns:
            False if a later navigation superseded this one while its
            template was loading, True otherwise
        """
        self._generation += 1
        generation = self._generation

        markup = await self._view_markup(view)
        if generation != self._generation or self._session.closed:
            self._debug("Navigation superseded", {"view": view.value})
            return False

        footer = self._doc.footer
        if view == View.MAIN:
            self._doc.show(footer)
        else:
            self._doc.hide(footer)

        if self._view_scope is not None:
            self._doc.listeners.detach(self._view_scope)
        self._doc.mount(markup)
        self._session.current_view = view
        self._view_scope = ListenerScope(view.value)
        self._info("View mounted", {"view": view.value})

        await self._wire(view, self._view_scope)
        return True

    async def back(self) -> None:
        """
        Leave the current view.

        Settings and history go back through a full panel reload; the list
        managers return to settings.
        """
        view = self.current_view
        if view in (View.SETTINGS, View.HISTORY):
            await self._reload()
        elif view in (View.WHITELIST, View.BLACKLIST):
            await self.navigate(View.SETTINGS)

    async def _view_markup(self, view: View) -> str:
        name = VIEW_TEMPLATES[view]
        try:
            return await self._templates.render(name)
        except TemplateLoadError as e:
            if self._logger:
                self._logger.log_error(
                    "ViewNavigator",
                    f"Template '{name}' unavailable, using fallback markup",
                    error=e,
                )
            return FALLBACK_MARKUP[view]

    async def _wire(self, view: View, scope: ListenerScope) -> None:
        doc = self._doc
        if view == View.MAIN:
            self._controller.bind(scope)
            self._controller.render_stats()
            await self._controller.show_initial_state()
        elif view == View.SETTINGS:
            doc.on(doc.by_id("backBtn"), "click", lambda _e: self.back(), scope)
            for item in doc.select(".setting-item.clickable"):
                doc.on(item, "click", self._on_manage, scope)
            self._settings.bind(scope)
            self._settings.load()
        elif view == View.WHITELIST:
            doc.on(doc.by_id("backToSettingsBtn"), "click", lambda _e: self.back(), scope)
            self._whitelist.bind(scope)
            await self._whitelist.load()
        elif view == View.BLACKLIST:
            doc.on(doc.by_id("backToSettingsBtn"), "click", lambda _e: self.back(), scope)
            self._blacklist.bind(scope)
            await self._blacklist.load()
        elif view == View.HISTORY:
            doc.on(doc.by_id("backBtn"), "click", lambda _e: self.back(), scope)
            self._history.bind(scope)
            await self._history.load()

    async def _on_manage(self, event: Event) -> None:
        action = event.target.get("data-action")
        if action == "whitelist":
            await self.navigate(View.WHITELIST)
        elif action == "blacklist":
            await self.navigate(View.BLACKLIST)

    def _info(self, message: str, data: dict) -> None:
        if self._logger:
            self._logger.info("ViewNavigator", message, data)

    def _debug(self, message: str, data: dict) -> None:
        if self._logger:
            self._logger.debug("ViewNavigator", message, data)
