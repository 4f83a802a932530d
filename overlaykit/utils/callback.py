from typing import Any

from overlaykit.logging import LoggerType

__all__ = ("run_callback",)


def run_callback(callback: Any, *args: Any, name: str, logger: LoggerType) -> Any:
    """Call `callback` with `args` when it is a function.

    Non-callable values are reported and skipped so a bad hook never aborts the
    open/close sequence that invokes it.
    """
    if callback is None:
        return None
    if not callable(callback):
        logger.warning("callback", name=name, status="not-callable", value_type=type(callback).__name__)
        return None
    return callback(*args)
