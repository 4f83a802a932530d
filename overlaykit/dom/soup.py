from dataclasses import dataclass
from typing import Any

from bs4 import BeautifulSoup, Tag

from overlaykit.constants import OVERLAY_ID_ATTR
from overlaykit.dom.interface import DomBridge, Element, EventHandler

__all__ = ("SoupDocument", "Event", "Window")

DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36"
)


class Window:
    """Stand-in for the browser window, the target of resize listeners."""

    def __repr__(self) -> str:
        return "<Window>"


@dataclass
class Event:
    type: str
    target: Any
    key_code: int | None = None
    key: str | None = None
    current_target: Any = None


@dataclass
class _Listener:
    type: str
    namespace: str | None
    handler: EventHandler


def _parse_event_names(event_names: str) -> list[tuple[str, str | None]]:
    parsed = []
    for name in event_names.split():
        type_, _, namespace = name.partition(".")
        parsed.append((type_, namespace or None))
    return parsed


def _parse_fragment(html: str) -> list[Any]:
    return list(BeautifulSoup(html, "html.parser").contents)


@dataclass
class _Viewport:
    width: int = 1280
    height: int = 800
    content_height: int = 2000
    scrollbar_width: int = 15
    scroll_offset: int = 0


class SoupDocument(DomBridge):
    """Headless document backed by BeautifulSoup.

    Layout is simulated: the viewport has fixed dimensions, the page a fixed content
    height, and elements with `overflow: scroll` lose `scrollbar_width` pixels of content
    width. Events bubble from the target up to the document root through `dispatch`.
    """

    def __init__(
        self,
        html: str,
        *,
        viewport_width: int = 1280,
        viewport_height: int = 800,
        content_height: int = 2000,
        scrollbar_width: int = 15,
        user_agent: str = DESKTOP_USER_AGENT,
    ) -> None:
        self._soup = BeautifulSoup(html, "html.parser")
        if self._soup.body is None:
            body = self._soup.new_tag("body")
            for child in list(self._soup.contents):
                body.append(child.extract())
            self._soup.append(body)

        self._window = Window()
        self._viewport = _Viewport(
            width=viewport_width,
            height=viewport_height,
            content_height=content_height,
            scrollbar_width=scrollbar_width,
        )
        self._user_agent = user_agent
        self._listeners: dict[int, tuple[Any, list[_Listener]]] = {}
        self._data: dict[int, tuple[Any, dict[str, Any]]] = {}

        self.location: str | None = None
        self.reload_count = 0

    @property
    def document(self) -> BeautifulSoup:
        return self._soup

    @property
    def body(self) -> Tag:
        return self._soup.body

    @property
    def window(self) -> Window:
        return self._window

    @property
    def scrollbar_width(self) -> int:
        return self._viewport.scrollbar_width

    def find_by_id(self, id: str) -> Tag | None:
        return self._soup.select_one(f'[{OVERLAY_ID_ATTR}="{id}"]')

    def find_by_selector(self, root: Element | None, selector: str) -> list[Tag]:
        return (root if root is not None else self._soup).select(selector)

    def get_attribute(self, element: Element, name: str) -> str | None:
        if not isinstance(element, Tag):
            return None
        value = element.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    def add_class(self, element: Element, name: str) -> None:
        classes = element.get("class") or []
        if name not in classes:
            element["class"] = [*classes, name]

    def remove_class(self, element: Element, name: str) -> None:
        classes = [c for c in element.get("class") or [] if c != name]
        if classes:
            element["class"] = classes
        elif element.has_attr("class"):
            del element["class"]

    def has_class(self, element: Element, name: str) -> bool:
        return name in (element.get("class") or [])

    def _styles(self, element: Tag) -> dict[str, str]:
        styles = {}
        for declaration in (element.get("style") or "").split(";"):
            prop, sep, value = declaration.partition(":")
            if sep and prop.strip():
                styles[prop.strip().lower()] = value.strip()
        return styles

    def get_style(self, element: Element, prop: str) -> str | None:
        if not isinstance(element, Tag) or element is self._soup:
            return None
        return self._styles(element).get(prop.lower())

    def set_style(self, element: Element, prop: str, value: str | None) -> None:
        styles = self._styles(element)
        if value is None:
            styles.pop(prop.lower(), None)
        else:
            styles[prop.lower()] = value

        if styles:
            element["style"] = "; ".join(f"{k}: {v}" for k, v in styles.items())
        elif element.has_attr("style"):
            del element["style"]

    def get_scroll_offset(self) -> int:
        return self._viewport.scroll_offset

    def set_scroll_offset(self, offset: int) -> None:
        max_offset = max(self._viewport.content_height - self._viewport.height, 0)
        self._viewport.scroll_offset = min(max(int(offset), 0), max_offset)

    def get_associated_data(self, element: Element, key: str, default: Any = None) -> Any:
        _, data = self._data.get(id(element), (None, {}))
        return data.get(key, default)

    def set_associated_data(self, element: Element, key: str, value: Any) -> None:
        self._data.setdefault(id(element), (element, {}))[1][key] = value

    def _listeners_of(self, target: Element) -> list[_Listener]:
        return self._listeners.setdefault(id(target), (target, []))[1]

    def on(self, target: Element, event_names: str, handler: EventHandler) -> None:
        listeners = self._listeners_of(target)
        for type_, namespace in _parse_event_names(event_names):
            listeners.append(_Listener(type=type_, namespace=namespace, handler=handler))

    def off(self, target: Element, event_names: str) -> None:
        listeners = self._listeners_of(target)
        for type_, namespace in _parse_event_names(event_names):
            listeners[:] = [
                listener
                for listener in listeners
                if not ((not type_ or listener.type == type_) and (namespace is None or listener.namespace == namespace))
            ]

    def listener_count(self, target: Element, event_type: str | None = None) -> int:
        """Number of listeners on `target`, optionally only those of `event_type`."""
        return sum(1 for listener in self._listeners_of(target) if event_type in (None, listener.type))

    def dispatch(self, target: Element, event_type: str, **attrs: Any) -> Event:
        """Fire `event_type` on `target` and bubble it up to the document root."""
        event = Event(type=event_type, target=target, **attrs)
        node = target
        while node is not None:
            event.current_target = node
            for listener in list(self._listeners_of(node)):
                if listener.type == event_type:
                    listener.handler(event)
            node = node.parent if isinstance(node, Tag) else None
        return event

    def document_height(self) -> int:
        return self._viewport.content_height

    def viewport_height(self) -> int:
        return self._viewport.height

    def create_element(self, html: str) -> Tag:
        for node in _parse_fragment(html):
            if isinstance(node, Tag):
                return node.extract()
        raise ValueError(f"No element found in {html!r}")

    def append_child(self, parent: Element, element: Element) -> None:
        parent.append(element)

    def remove(self, element: Element) -> None:
        element.extract()
        self._data.pop(id(element), None)
        self._listeners.pop(id(element), None)

    def measure_width(self, element: Element) -> int:
        width = self.get_style(element, "width")
        if width and width.endswith("px"):
            return int(float(width[:-2]))

        available = self._client_width(element.parent)
        if width and width.endswith("%"):
            return int(available * float(width[:-1]) / 100)
        return available

    def _client_width(self, element: Element | None) -> int:
        if element is None or element is self._soup:
            return self._viewport.width

        width = self.measure_width(element)
        if "scroll" in (self.get_style(element, "overflow"), self.get_style(element, "overflow-y")):
            width -= self._viewport.scrollbar_width
        return max(width, 0)

    def replace_with(self, element: Element, html: str) -> None:
        element.replace_with(*_parse_fragment(html))

    def append_html(self, element: Element, html: str) -> None:
        for node in _parse_fragment(html):
            element.append(node)

    def set_html(self, element: Element, html: str) -> None:
        element.clear()
        self.append_html(element, html)

    def reload(self) -> None:
        self.reload_count += 1

    def navigate(self, url: str) -> None:
        self.location = url

    def user_agent(self) -> str:
        return self._user_agent
