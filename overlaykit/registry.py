from typing import TYPE_CHECKING

from overlaykit.constants import (
    DEFAULT_EVENT_NAMESPACE,
    DEFAULT_OPENED_CLASS,
    ESCAPE_EVENTS,
    LOGGER_NAME,
    OVERLAY_ID_ATTR,
    RESIZE_EVENTS,
)
from overlaykit.dom.interface import DomBridge, Element, EventHandler
from overlaykit.events import EventBus
from overlaykit.logging import LoggerType, get_logger
from overlaykit.remote import RemoteContentLoader
from overlaykit.scrollbar import ScrollbarCompensator

if TYPE_CHECKING:
    from overlaykit.popup import Popup

__all__ = ("PopupRegistry",)


class PopupRegistry:
    """Document-wide popup state shared by every Popup built against the same document.

    Holds the single open popup, the target id -> Popup lookup table, and the flags that
    keep the resize and escape listeners installed at most once. A registry lives as long
    as its document and is never torn down.
    """

    def __init__(
        self,
        dom: DomBridge,
        *,
        loader: RemoteContentLoader | None = None,
        logger: LoggerType | None = None,
    ) -> None:
        self.dom = dom
        self.logger = logger or get_logger(LOGGER_NAME)
        self.events = EventBus(dom)
        self.compensator = ScrollbarCompensator(dom, logger=self.logger)

        self._loader = loader
        self._open_popup: "Popup | None" = None
        self._popups: dict[str, "Popup"] = {}

    @property
    def loader(self) -> RemoteContentLoader:
        if self._loader is None:
            self._loader = RemoteContentLoader(logger=self.logger)
        return self._loader

    @property
    def resize_listener_installed(self) -> bool:
        return self.events.is_installed("resize")

    @property
    def escape_listener_installed(self) -> bool:
        return self.events.is_installed("escape")

    def get_open_popup(self) -> "Popup | None":
        return self._open_popup

    def set_open_popup(self, popup: "Popup | None") -> None:
        self._open_popup = popup

    def bind(self, target_id: str, popup: "Popup") -> None:
        self._popups[target_id] = popup

    def lookup(self, overlay_or_id: Element | str) -> "Popup | None":
        if isinstance(overlay_or_id, str):
            return self._popups.get(overlay_or_id)
        target_id = self.dom.get_attribute(overlay_or_id, OVERLAY_ID_ATTR)
        return self._popups.get(target_id) if target_id else None

    def resolve(self, overlay_or_id: Element | str) -> "Popup | None":
        """Like `lookup`, but prefer the open popup when it shows this overlay through another trigger."""
        target_id = (
            overlay_or_id if isinstance(overlay_or_id, str) else self.dom.get_attribute(overlay_or_id, OVERLAY_ID_ATTR)
        )
        current = self._open_popup
        if current is not None and current.config.target_id == target_id:
            return current
        return self.lookup(overlay_or_id)

    def unbind(self, target_id: str, popup: "Popup | None" = None) -> None:
        """Drop the association for `target_id`, only if it still points at `popup` when one is given."""
        if popup is None or self._popups.get(target_id) is popup:
            self._popups.pop(target_id, None)

    def ensure_resize_listener(self, callback: EventHandler, namespace: str = DEFAULT_EVENT_NAMESPACE) -> bool:
        return self.events.bind_once("resize", self.dom.window, RESIZE_EVENTS, namespace, callback)

    def ensure_escape_listener(self, callback: EventHandler, namespace: str = DEFAULT_EVENT_NAMESPACE) -> bool:
        return self.events.bind_once("escape", self.dom.document, ESCAPE_EVENTS, namespace, callback)

    def close_all(self, opened_class: str | None = None) -> int:
        """Close the popup bound to every overlay carrying `opened_class`. Returns how many were closed."""
        opened_class = opened_class or DEFAULT_OPENED_CLASS
        closed = 0
        for overlay in self.dom.find_by_selector(None, f"[{OVERLAY_ID_ATTR}]"):
            if not self.dom.has_class(overlay, opened_class):
                continue
            popup = self.resolve(overlay)
            if popup is None:
                self.logger.warning(
                    "close-all", target_id=self.dom.get_attribute(overlay, OVERLAY_ID_ATTR), status="unbound-overlay"
                )
                continue
            popup.close()
            closed += 1
        return closed

    def kill_popup(self, overlay_or_id: Element | str) -> None:
        popup = self.lookup(overlay_or_id)
        if popup is None:
            self.logger.warning("kill-popup", status="not-found")
            return
        popup.kill()
