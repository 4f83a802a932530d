import re

LOGGER_NAME = "overlaykit"

OVERLAY_ID_ATTR = "data-popup-id"
TRIGGER_TARGET_ATTR = "data-popup-target"
TRIGGER_REMOTE_ATTR = "data-popup-remote"

SCROLL_OFFSET_KEY = "popupScrollTop"

DEFAULT_OPENED_CLASS = "opened"
DEFAULT_OPENED_BODY_CLASS = "popup-opened"
DEFAULT_CLOSE_BUTTON_SELECTOR = ".popup__close"
DEFAULT_EVENT_NAMESPACE = "popup"

ACTIVATE_EVENTS = ("click", "tap")
ESCAPE_EVENTS = ("keyup",)
RESIZE_EVENTS = ("resize",)
ESCAPE_KEY_CODE = 27

# Platforms whose scrollbars overlay the content instead of taking layout width
TOUCH_PLATFORMS = re.compile(r"Android|webOS|iPhone|iPad|iPod|BlackBerry|IEMobile|Opera Mini", re.IGNORECASE)
