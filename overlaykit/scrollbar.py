from overlaykit.constants import LOGGER_NAME, TOUCH_PLATFORMS
from overlaykit.dom.interface import DomBridge
from overlaykit.logging import LoggerType, get_logger

__all__ = ("ScrollbarCompensator",)

OUTER_PROBE = (
    '<div style="position: absolute; top: -9999px; left: -9999px; visibility: hidden; '
    'width: 100px; height: 100px; overflow: scroll"></div>'
)
INNER_PROBE = '<div style="width: 100%; height: 200px"></div>'


def _widen(padding: str | None, width: int) -> str:
    """Return `padding` plus `width` pixels, keeping the original unit when it is not px."""
    padding = (padding or "").strip()
    if not padding:
        return f"{width}px"

    number = padding[:-2] if padding.endswith("px") else padding
    try:
        total = float(number) + width
    except ValueError:
        return f"calc({padding} + {width}px)"
    return f"{total:g}px"


class ScrollbarCompensator:
    """Keeps the page from shifting sideways when its scrollbar disappears.

    While locked the body's right padding is widened by the scrollbar width that was
    measured at lock time; unlocking puts back the padding found when locking.
    """

    def __init__(self, dom: DomBridge, logger: LoggerType | None = None) -> None:
        self._dom = dom
        self._logger = logger or get_logger(LOGGER_NAME)
        self._applied: int | None = None
        self._previous: str | None = None

    @property
    def is_locked(self) -> bool:
        return self._applied is not None

    def is_touch_platform(self) -> bool:
        return bool(TOUCH_PLATFORMS.search(self._dom.user_agent() or ""))

    def measure_width(self) -> int:
        if self._dom.document_height() <= self._dom.viewport_height():
            return 0

        outer = self._dom.create_element(OUTER_PROBE)
        self._dom.append_child(self._dom.body, outer)
        try:
            inner = self._dom.create_element(INNER_PROBE)
            self._dom.append_child(outer, inner)
            width = self._dom.measure_width(outer) - self._dom.measure_width(inner)
        finally:
            self._dom.remove(outer)

        return max(width, 0)

    def lock(self) -> int:
        """Widen the body's right padding by the scrollbar width. Returns the width added."""
        if self.is_locked:
            return self._applied
        if self.is_touch_platform():
            self._logger.debug("scrollbar-lock", status="skipped", reason="touch-platform")
            return 0

        width = self.measure_width()
        body = self._dom.body
        self._previous = self._dom.get_style(body, "padding-right")
        if width:
            self._dom.set_style(body, "padding-right", _widen(self._previous, width))
        self._applied = width
        self._logger.debug("scrollbar-lock", status="locked", width=width)
        return width

    def unlock(self) -> None:
        if not self.is_locked:
            return

        if self._applied:
            self._dom.set_style(self._dom.body, "padding-right", self._previous)

        self._logger.debug("scrollbar-lock", status="unlocked", width=self._applied)
        self._applied = None
        self._previous = None
