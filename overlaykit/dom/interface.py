from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

__all__ = ("DomBridge", "Element", "EventHandler")

Element = Any
EventHandler = Callable[[Any], Any]


class DomBridge(ABC):
    """Abstract interface over the document a popup lives in.

    Event names follow the `type.namespace` convention, several separated by spaces
    (`"click.popup tap.popup"`). `off` with a namespaced name only removes listeners of
    that namespace.
    """

    @property
    @abstractmethod
    def document(self) -> Element:
        """Document root, used as the target of key listeners."""
        pass

    @property
    @abstractmethod
    def body(self) -> Element:
        pass

    @property
    @abstractmethod
    def window(self) -> Element:
        """Viewport target, used for resize listeners."""
        pass

    @abstractmethod
    def find_by_id(self, id: str) -> Element | None:
        """Find the overlay element carrying the popup identifier `id`."""
        pass

    @abstractmethod
    def find_by_selector(self, root: Element | None, selector: str) -> list[Element]:
        """Find descendants of `root` (the document when None) matching a CSS selector."""
        pass

    @abstractmethod
    def get_attribute(self, element: Element, name: str) -> str | None:
        pass

    @abstractmethod
    def add_class(self, element: Element, name: str) -> None:
        pass

    @abstractmethod
    def remove_class(self, element: Element, name: str) -> None:
        pass

    @abstractmethod
    def has_class(self, element: Element, name: str) -> bool:
        pass

    @abstractmethod
    def get_style(self, element: Element, prop: str) -> str | None:
        pass

    @abstractmethod
    def set_style(self, element: Element, prop: str, value: str | None) -> None:
        """Set an inline style property. None removes it."""
        pass

    @abstractmethod
    def get_scroll_offset(self) -> int:
        pass

    @abstractmethod
    def set_scroll_offset(self, offset: int) -> None:
        pass

    @abstractmethod
    def get_associated_data(self, element: Element, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set_associated_data(self, element: Element, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def on(self, target: Element, event_names: str, handler: EventHandler) -> None:
        pass

    @abstractmethod
    def off(self, target: Element, event_names: str) -> None:
        pass

    @abstractmethod
    def document_height(self) -> int:
        pass

    @abstractmethod
    def viewport_height(self) -> int:
        pass

    @abstractmethod
    def create_element(self, html: str) -> Element:
        pass

    @abstractmethod
    def append_child(self, parent: Element, element: Element) -> None:
        pass

    @abstractmethod
    def remove(self, element: Element) -> None:
        pass

    @abstractmethod
    def measure_width(self, element: Element) -> int:
        """Rendered width of `element` in pixels, scrollbars excluded from its content box."""
        pass

    @abstractmethod
    def replace_with(self, element: Element, html: str) -> None:
        pass

    @abstractmethod
    def append_html(self, element: Element, html: str) -> None:
        pass

    @abstractmethod
    def set_html(self, element: Element, html: str) -> None:
        pass

    @abstractmethod
    def reload(self) -> None:
        pass

    @abstractmethod
    def navigate(self, url: str) -> None:
        pass

    @abstractmethod
    def user_agent(self) -> str:
        pass
