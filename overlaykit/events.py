from collections.abc import Iterable

from overlaykit.dom.interface import DomBridge, Element, EventHandler

__all__ = ("EventBus", "event_names")


def event_names(types: Iterable[str], namespace: str) -> str:
    """Build a namespaced event string, e.g. `("click", "tap"), "popup"` -> `"click.popup tap.popup"`."""
    return " ".join(f"{t}.{namespace}" for t in types)


class EventBus:
    """Namespaced listener registration on top of a DomBridge.

    `bind` always drops the listeners already registered under the same namespace, so
    binding the same element twice leaves exactly one listener. `bind_once` installs a
    listener a single time per key for the lifetime of the bus.
    """

    def __init__(self, dom: DomBridge) -> None:
        self._dom = dom
        self._installed: set[str] = set()

    def bind(self, target: Element, types: Iterable[str], namespace: str, handler: EventHandler) -> None:
        names = event_names(types, namespace)
        self._dom.off(target, names)
        self._dom.on(target, names, handler)

    def unbind(self, target: Element, types: Iterable[str], namespace: str) -> None:
        self._dom.off(target, event_names(types, namespace))

    def bind_once(
        self, key: str, target: Element, types: Iterable[str], namespace: str, handler: EventHandler
    ) -> bool:
        """Bind `handler` unless a listener was already installed under `key`. Returns True if it was installed now."""
        if key in self._installed:
            return False
        self._dom.on(target, event_names(types, namespace), handler)
        self._installed.add(key)
        return True

    def is_installed(self, key: str) -> bool:
        return key in self._installed
