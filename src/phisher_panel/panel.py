"""
Headless panel document.

The panel is an in-memory HTML document parsed with BeautifulSoup. Views are
mounted into the single ``div.container`` root; the ``footer`` sits outside
it. User interaction is simulated by dispatching events against elements,
and listeners are registered in scopes so that a view transition can detach
everything the previous view bound.
"""

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from bs4 import BeautifulSoup, Tag

from .templates import parse_fragment, replace_content


Handler = Callable[..., Union[None, Awaitable[None]]]

TRANSIENT_SECONDS = 3.0

DEFAULT_SHELL = (
    '<html data-theme="dark"><body>'
    '<div class="container"></div>'
    '<footer class="footer">'
    '<button id="historyBtn" class="footer-btn">History</button>'
    '<button id="settingsBtn" class="footer-btn">Settings</button>'
    '<button id="reportBtn" class="footer-btn">Report</button>'
    '<button id="helpBtn" class="footer-btn">Help</button>'
    "</footer>"
    "</body></html>"
)


@dataclass
class Event:
    """An event delivered to listeners."""

    type: str
    target: Tag
    key: Optional[str] = None
    value: Any = None


class ListenerScope:
    """
    Group of listeners that are detached together.

    Scopes nest: detaching a scope also detaches every scope created from it
    with ``child()``.
    """

    def __init__(self, name: str, parent: Optional["ListenerScope"] = None) -> None:
        self.name = name
        self.parent = parent
        self._active = True

    @property
    def active(self) -> bool:
        scope: Optional[ListenerScope] = self
        while scope is not None:
            if not scope._active:
                return False
            scope = scope.parent
        return True

    def child(self, name: str) -> "ListenerScope":
        return ListenerScope(f"{self.name}/{name}", parent=self)

    def is_within(self, other: "ListenerScope") -> bool:
        scope: Optional[ListenerScope] = self
        while scope is not None:
            if scope is other:
                return True
            scope = scope.parent
        return False

    def deactivate(self) -> None:
        self._active = False

    def __repr__(self) -> str:
        state = "active" if self.active else "detached"
        return f"ListenerScope({self.name!r}, {state})"


@dataclass
class _Listener:
    element: Tag
    event_type: str
    handler: Handler
    scope: ListenerScope


class ListenerRegistry:
    """
    Event listeners keyed by element identity.

    Elements are compared with ``is``; BeautifulSoup's own ``==`` compares
    markup, which would let a listener fire on a freshly rendered copy of an
    element it was never bound to.
    """

    def __init__(self) -> None:
        self._listeners: list[_Listener] = []

    def add(self, element: Tag, event_type: str, handler: Handler, scope: ListenerScope) -> None:
        if not scope.active:
            raise RuntimeError(f"Cannot bind to detached {scope!r}")
        self._listeners.append(_Listener(element, event_type, handler, scope))

    def detach(self, scope: ListenerScope) -> int:
        """Drop every listener of ``scope`` and its children."""
        scope.deactivate()
        before = len(self._listeners)
        self._listeners = [l for l in self._listeners if not l.scope.is_within(scope)]
        return before - len(self._listeners)

    def handlers_for(self, element: Tag, event_type: str) -> list[Handler]:
        return [
            l.handler for l in self._listeners
            if l.element is element and l.event_type == event_type and l.scope.active
        ]

    def count(self, scope: Optional[ListenerScope] = None) -> int:
        if scope is None:
            return len(self._listeners)
        return sum(1 for l in self._listeners if l.scope.is_within(scope))


class PanelDocument:
    """The panel's document, element helpers and event dispatch."""

    def __init__(
        self,
        shell_markup: str = DEFAULT_SHELL,
        transient_seconds: float = TRANSIENT_SECONDS,
    ) -> None:
        self.transient_seconds = transient_seconds
        self._timers: list[asyncio.TimerHandle] = []
        self.reset(shell_markup)

    def reset(self, shell_markup: str = DEFAULT_SHELL) -> None:
        """Start over from ``shell_markup`` with no listeners and no pending timers."""
        soup = parse_fragment(shell_markup)
        if soup.select_one("div.container") is None:
            raise ValueError("Panel shell must contain a div.container root")
        self.cancel_timers()
        self.soup: BeautifulSoup = soup
        self.listeners = ListenerRegistry()

    # Lookup

    @property
    def root(self) -> Tag:
        return self.soup.select_one("div.container")

    @property
    def footer(self) -> Optional[Tag]:
        return self.soup.find("footer")

    @property
    def html(self) -> Tag:
        return self.soup.find("html") or self.soup

    def by_id(self, element_id: str) -> Optional[Tag]:
        return self.soup.find(id=element_id)

    def select_one(self, selector: str) -> Optional[Tag]:
        return self.soup.select_one(selector)

    def select(self, selector: str) -> list[Tag]:
        return self.soup.select(selector)

    def is_attached(self, element: Optional[Tag]) -> bool:
        """True if ``element`` is still part of this document."""
        if element is None:
            return False
        node = element
        while node.parent is not None:
            node = node.parent
        return node is self.soup

    def mount(self, markup: str) -> Tag:
        """Replace the root container's content with ``markup``."""
        replace_content(self.root, markup)
        return self.root

    # Element state

    @staticmethod
    def show(element: Optional[Tag]) -> None:
        if element is not None and element.has_attr("hidden"):
            del element["hidden"]

    @staticmethod
    def hide(element: Optional[Tag]) -> None:
        if element is not None:
            element["hidden"] = ""

    @staticmethod
    def is_visible(element: Optional[Tag]) -> bool:
        return element is not None and not element.has_attr("hidden")

    @staticmethod
    def set_text(element: Optional[Tag], text: Any) -> None:
        if element is not None:
            element.string = str(text)

    @staticmethod
    def text(element: Optional[Tag]) -> str:
        return element.get_text(" ", strip=True) if element is not None else ""

    @staticmethod
    def add_class(element: Tag, *classes: str) -> None:
        current = list(element.get("class", []))
        for cls in classes:
            if cls not in current:
                current.append(cls)
        element["class"] = current

    @staticmethod
    def remove_class(element: Tag, *classes: str) -> None:
        current = [c for c in element.get("class", []) if c not in classes]
        if current:
            element["class"] = current
        elif element.has_attr("class"):
            del element["class"]

    @staticmethod
    def set_classes(element: Tag, classes: str) -> None:
        element["class"] = classes.split()

    @staticmethod
    def get_value(element: Optional[Tag]) -> str:
        """Value of an input or select, the selected option winning for selects."""
        if element is None:
            return ""
        if element.name == "select":
            options = element.find_all("option")
            for option in options:
                if option.has_attr("selected"):
                    return option.get("value", option.get_text())
            if options:
                return options[0].get("value", options[0].get_text())
            return ""
        return element.get("value", "")

    @staticmethod
    def set_value(element: Optional[Tag], value: Any) -> None:
        if element is None:
            return
        value = "" if value is None else str(value)
        if element.name == "select":
            for option in element.find_all("option"):
                if option.get("value", option.get_text()) == value:
                    option["selected"] = ""
                elif option.has_attr("selected"):
                    del option["selected"]
            return
        element["value"] = value

    @staticmethod
    def is_checked(element: Optional[Tag]) -> bool:
        return element is not None and element.has_attr("checked")

    @staticmethod
    def set_checked(element: Optional[Tag], checked: bool) -> None:
        if element is None:
            return
        if checked:
            element["checked"] = ""
        elif element.has_attr("checked"):
            del element["checked"]

    def set_disabled(self, element: Optional[Tag], disabled: bool) -> None:
        if element is None:
            return
        if disabled:
            element["disabled"] = ""
        elif element.has_attr("disabled"):
            del element["disabled"]

    def new_tag(self, name: str, text: Optional[str] = None, **attrs: Any) -> Tag:
        tag = self.soup.new_tag(name, attrs=attrs)
        if text is not None:
            tag.string = text
        return tag

    # Events

    def on(self, element: Optional[Tag], event_type: str, handler: Handler, scope: ListenerScope) -> None:
        if element is None:
            return
        self.listeners.add(element, event_type, handler, scope)

    async def dispatch(self, element: Optional[Tag], event: Event) -> int:
        """
        Deliver ``event`` to the listeners bound to ``element``.

        Returns:
            The number of handlers that ran; zero for detached elements
        """
        if not self.is_attached(element):
            return 0
        handlers = self.listeners.handlers_for(element, event.type)
        for handler in handlers:
            outcome = handler(event)
            if inspect.isawaitable(outcome):
                await outcome
        return len(handlers)

    def _resolve(self, target: Union[str, Tag, None]) -> Optional[Tag]:
        if isinstance(target, str):
            return self.by_id(target)
        return target

    async def click(self, target: Union[str, Tag, None]) -> int:
        element = self._resolve(target)
        if element is None or element.has_attr("disabled"):
            return 0
        return await self.dispatch(element, Event("click", element))

    async def change(self, target: Union[str, Tag, None], value: Any = None, checked: Optional[bool] = None) -> int:
        element = self._resolve(target)
        if element is None:
            return 0
        if checked is not None:
            self.set_checked(element, checked)
        elif value is not None:
            self.set_value(element, value)
        return await self.dispatch(element, Event("change", element, value=value))

    def type_text(self, target: Union[str, Tag, None], text: str) -> None:
        self.set_value(self._resolve(target), text)

    async def press_key(self, target: Union[str, Tag, None], key: str) -> int:
        element = self._resolve(target)
        if element is None:
            return 0
        return await self.dispatch(element, Event("keypress", element, key=key))

    # Transient state

    def schedule(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        """Run ``callback`` after ``delay`` seconds unless the timers are cancelled first."""

        def fire() -> None:
            self._timers = [t for t in self._timers if t is not handle]
            callback()

        handle = asyncio.get_running_loop().call_later(delay, fire)
        self._timers.append(handle)
        return handle

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    def show_message(self, anchor: Optional[Tag], css_class: str, kind: str, text: str) -> Optional[Tag]:
        """
        Insert a transient ``div.<css_class>.<kind>`` after ``anchor``.

        Any previous message with the same class is removed first. The new
        message removes itself after ``transient_seconds``.
        """
        for existing in self.soup.select(f".{css_class}"):
            existing.decompose()
        if anchor is None or not self.is_attached(anchor):
            return None

        message = self.new_tag("div", text=text)
        message["class"] = [css_class, kind]
        anchor.insert_after(message)
        self.schedule(self.transient_seconds, lambda: self._expire(message))
        return message

    def show_toast(self, kind: str, text: str) -> Tag:
        body = self.soup.find("body") or self.soup
        for existing in self.soup.select(".toast"):
            existing.decompose()
        toast = self.new_tag("div", text=text)
        toast["class"] = ["toast", kind]
        body.append(toast)
        self.schedule(self.transient_seconds, lambda: self._expire(toast))
        return toast

    def flag_invalid(self, element: Optional[Tag], message_element: Optional[Tag], text: str) -> None:
        """Mark an input as invalid and show ``text`` until the transient delay passes."""
        if element is None:
            return
        self.add_class(element, "input-error")
        if message_element is not None:
            self.set_text(message_element, text)
            self.show(message_element)

        def clear() -> None:
            self.remove_class(element, "input-error")
            if message_element is not None and message_element.get_text() == text:
                message_element.string = ""
                self.hide(message_element)

        self.schedule(self.transient_seconds, clear)

    def _expire(self, element: Tag) -> None:
        if self.is_attached(element):
            element.decompose()

    def cancel_timers(self) -> None:
        for handle in self._timers:
            handle.cancel()
        self._timers.clear()

    def serialize(self) -> str:
        return str(self.soup)
