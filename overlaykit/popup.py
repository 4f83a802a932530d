import asyncio
from collections.abc import Coroutine
from enum import Enum
from typing import Any

from overlaykit.constants import (
    ACTIVATE_EVENTS,
    ESCAPE_KEY_CODE,
    SCROLL_OFFSET_KEY,
    TRIGGER_TARGET_ATTR,
)
from overlaykit.dom.interface import Element
from overlaykit.logging import LogLevel, setup_logging
from overlaykit.registry import PopupRegistry
from overlaykit.remote import apply_mutation
from overlaykit.schema.config import PopupConfig, build_defaults, merge_config
from overlaykit.schema.mutation import RemoteMutation
from overlaykit.settings import settings
from overlaykit.utils.callback import run_callback

setup_logging(LogLevel[settings.LOG_LEVEL])

__all__ = ("Popup", "PopupState", "bind_popups")


class PopupState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"


class Popup:
    """
    A modal overlay opened by a trigger element.

    The overlay is the element whose `data-popup-id` equals `config.target_id`. Only
    one popup of a registry is open at a time: opening one closes the current one as
    "displaced", which keeps the page pinned and hands the saved scroll offset over.

    Args:
        trigger: Element whose activation (click/tap) opens the popup.
        registry: Registry shared by all popups of the document.
        config: Base configuration. Defaults to options read from the trigger's data attributes.
        options: Overrides merged into the base configuration, snake_case or camelCase.
    """

    def __init__(
        self,
        trigger: Element,
        registry: PopupRegistry,
        *,
        config: PopupConfig | None = None,
        **options: Any,
    ) -> None:
        self.trigger = trigger
        self.registry = registry
        self.dom = registry.dom
        self.logger = registry.logger

        base = config.model_dump() if config is not None else build_defaults(self.dom, trigger)
        self.config = merge_config(base, options)

        self.overlay = self.dom.find_by_id(self.config.target_id)
        self.state = PopupState.CLOSED
        self.saved_scroll_offset: int | None = None
        self.inherited_scroll_offset: int | None = None
        self._pending: asyncio.Task | None = None

        if self.overlay is None:
            self.logger.warning("popup-init", target_id=self.config.target_id, status="missing-overlay")

        self.activate()

    def __repr__(self) -> str:
        return f"<Popup target_id={self.config.target_id!r} state={self.state.value}>"

    @property
    def is_open(self) -> bool:
        return self.state is PopupState.OPEN

    @property
    def namespace(self) -> str:
        return self.config.event_namespace

    def _run_callback(self, name: str) -> None:
        run_callback(getattr(self.config, name), self, name=name, logger=self.logger)

    def activate(self) -> "Popup":
        """Wire every listener the configuration asks for and bind this popup to its overlay."""
        previous = self.registry.lookup(self.config.target_id)

        self.register_close_button()
        self.registry.bind(self.config.target_id, self)

        if self.config.close_on_escape:
            self.register_close_on_escape()
        if self.config.close_on_background_click:
            self.register_close_on_background_click()
        if self.config.close_on_resize:
            self.register_close_on_resize()
        if self.config.open_on_activate:
            self.register_open_on_activate()

        self.logger.debug("popup-activate", target_id=self.config.target_id, reactivated=previous is not None)
        return self

    def register_close_button(self) -> "Popup":
        if self.overlay is None:
            return self

        buttons = self.dom.find_by_selector(self.overlay, self.config.close_button_selector)
        if not buttons:
            self.logger.warning(
                "popup-close-button",
                target_id=self.config.target_id,
                selector=self.config.close_button_selector,
                status="not-found",
            )
            return self

        for button in buttons:
            self.registry.events.bind(button, ACTIVATE_EVENTS, self.namespace, self._on_close_button)
        return self

    def register_close_on_background_click(self) -> "Popup":
        if self.overlay is not None:
            self.registry.events.bind(self.overlay, ACTIVATE_EVENTS, self.namespace, self._on_background_click)
        return self

    def register_close_on_escape(self) -> "Popup":
        self.registry.ensure_escape_listener(self._on_escape, self.namespace)
        return self

    def register_close_on_resize(self) -> "Popup":
        self.registry.ensure_resize_listener(self._on_resize, self.namespace)
        return self

    def register_open_on_activate(self) -> "Popup":
        self.registry.events.bind(self.trigger, ACTIVATE_EVENTS, self.namespace, self._on_activate)
        return self

    def _open_on_overlay(self) -> "Popup":
        # another trigger bound to the same overlay may be the one that opened it
        current = self.registry.get_open_popup()
        if current is not None and current.config.target_id == self.config.target_id:
            return current
        return self

    def _on_close_button(self, event: Any) -> None:
        self._open_on_overlay().close()

    def _on_background_click(self, event: Any) -> None:
        if event.target is self.overlay:
            self._open_on_overlay().close()

    def _body_is_pinned(self) -> bool:
        return self.dom.has_class(self.dom.body, self.config.opened_body_class)

    def _on_escape(self, event: Any) -> None:
        is_escape = getattr(event, "key_code", None) == ESCAPE_KEY_CODE or getattr(event, "key", None) == "Escape"
        if is_escape and self._body_is_pinned():
            self.registry.close_all(self.config.opened_class)

    def _on_resize(self, event: Any) -> None:
        if self._body_is_pinned():
            self.registry.close_all(self.config.opened_class)

    def _on_activate(self, event: Any) -> None:
        self.request_open()

    def check_and_close_current(self) -> "Popup":
        """Close the open popup, if it is another one, and inherit its saved scroll offset."""
        current = self.registry.get_open_popup()
        if current is None or current is self:
            return self

        self.inherited_scroll_offset = current.saved_scroll_offset
        current.close(displaced=True)
        return self

    def request_open(self) -> asyncio.Task | None:
        """
        Open the popup the way a trigger activation does.

        Without remote options the popup opens right away. Otherwise the remote content is
        loaded first: on a running event loop this schedules the load and returns its task,
        without one the load runs to completion before returning.
        """
        self.check_and_close_current()

        if self.config.remote is None:
            self.open()
            return None

        return self._schedule(self.load_and_open())

    def _schedule(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(coro)
            return None

        self._pending = loop.create_task(coro)
        self._pending.add_done_callback(self._on_load_done)
        return self._pending

    def _on_load_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            self.logger.info("popup-load", target_id=self.config.target_id, status="cancelled")
            return

        exc = task.exception()
        if exc is not None:
            self.logger.error(
                "popup-load",
                target_id=self.config.target_id,
                status="failed",
                state=self.state.value,
                error=str(exc),
                exception_type=type(exc).__name__,
            )

    async def load_and_open(self) -> bool:
        """Fetch the remote content and open with it. Returns whether the popup ended up open."""
        await self.registry.loader.load(self.config.remote, on_success=self.open)
        if not self.is_open:
            self._release_displaced_body()
        return self.is_open

    def _release_displaced_body(self) -> None:
        # A displaced popup left the page pinned for us; nothing will open, so unpin it.
        if self.registry.get_open_popup() is not None or not self._body_is_pinned():
            self.inherited_scroll_offset = None
            return

        self._release_body(self.inherited_scroll_offset)
        self.inherited_scroll_offset = None

    def _release_body(self, scroll_offset: int | None) -> None:
        self.registry.compensator.unlock()

        body = self.dom.body
        self.dom.set_style(body, "top", None)
        self.dom.remove_class(body, self.config.opened_body_class)
        if scroll_offset is not None:
            self.dom.set_scroll_offset(scroll_offset)

    def open(self, remote_data: RemoteMutation | dict[str, Any] | None = None) -> "Popup":
        """
        Open the popup.

        Args:
            remote_data: Mutation returned by the remote endpoint, applied before anything is shown.
        """
        if self.is_open:
            self.logger.debug("popup-open", target_id=self.config.target_id, status="already-open")
            return self

        self.check_and_close_current()

        if remote_data is not None:
            mutation = RemoteMutation.model_validate(remote_data) if isinstance(remote_data, dict) else remote_data
            if apply_mutation(self.dom, mutation, logger=self.logger):
                return self

            # the mutation may have replaced the overlay or its close button
            self.overlay = self.dom.find_by_id(self.config.target_id)
            self.register_close_button()
            if self.config.close_on_background_click:
                self.register_close_on_background_click()

        self._run_callback("before_open")

        if self.inherited_scroll_offset is not None:
            scroll_offset = self.inherited_scroll_offset
        else:
            scroll_offset = self.dom.get_scroll_offset()
        self.inherited_scroll_offset = None
        self.saved_scroll_offset = scroll_offset

        if self.overlay is not None:
            self.dom.set_associated_data(self.overlay, SCROLL_OFFSET_KEY, scroll_offset)

        if self.config.lock_screen:
            self.registry.compensator.lock()

        body = self.dom.body
        self.dom.set_style(body, "top", f"{-scroll_offset}px")
        self.dom.add_class(body, self.config.opened_body_class)

        if self.overlay is not None:
            self.dom.add_class(self.overlay, self.config.opened_class)

        self.state = PopupState.OPEN
        self.registry.set_open_popup(self)
        self.logger.info("popup-open", target_id=self.config.target_id, scroll_offset=scroll_offset)

        self._run_callback("after_open")
        return self

    def close(self, displaced: bool = False) -> "Popup":
        """
        Close the popup.

        Args:
            displaced: True when closing to make room for another popup. The page stays pinned
                and its scroll position untouched, since the next popup restores it on its own close.
        """
        if not self.is_open:
            self.logger.debug("popup-close", target_id=self.config.target_id, status="not-open")
            return self

        self._run_callback("before_close")

        if not displaced:
            if self.overlay is not None:
                scroll_offset = self.dom.get_associated_data(self.overlay, SCROLL_OFFSET_KEY, self.saved_scroll_offset)
            else:
                scroll_offset = self.saved_scroll_offset
            self._release_body(scroll_offset)

        if self.overlay is not None:
            self.dom.remove_class(self.overlay, self.config.opened_class)

        self.state = PopupState.CLOSED
        if self.registry.get_open_popup() is self:
            self.registry.set_open_popup(None)
        self.logger.info("popup-close", target_id=self.config.target_id, displaced=displaced)

        self._run_callback("after_close")
        return self

    def kill(self) -> None:
        """Stop listening to the trigger and drop the overlay's association. An open popup stays open."""
        self.registry.events.unbind(self.trigger, ACTIVATE_EVENTS, self.namespace)
        self.registry.unbind(self.config.target_id, self)
        self.logger.debug("popup-kill", target_id=self.config.target_id)

    @staticmethod
    def close_all(registry: PopupRegistry, opened_class: str | None = None) -> int:
        return registry.close_all(opened_class)

    @staticmethod
    def kill_popup(registry: PopupRegistry, overlay: Element | str) -> None:
        registry.kill_popup(overlay)


def bind_popups(registry: PopupRegistry, selector: str = f"[{TRIGGER_TARGET_ATTR}]", **options: Any) -> list[Popup]:
    """Create a Popup for every trigger matching `selector`, all sharing the same options."""
    return [Popup(trigger, registry, **options) for trigger in registry.dom.find_by_selector(None, selector)]
