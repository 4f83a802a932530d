from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_snake

from overlaykit.constants import (
    DEFAULT_CLOSE_BUTTON_SELECTOR,
    DEFAULT_EVENT_NAMESPACE,
    DEFAULT_OPENED_BODY_CLASS,
    DEFAULT_OPENED_CLASS,
    TRIGGER_REMOTE_ATTR,
    TRIGGER_TARGET_ATTR,
)

if TYPE_CHECKING:
    from overlaykit.dom.interface import DomBridge

__all__ = ("PopupConfig", "RemoteConfig", "build_defaults", "merge_config", "normalize_options")

# Option names used by the jQuery plugin this package replaces
LEGACY_OPTION_NAMES = {
    "close_btn_selector": "close_button_selector",
    "target_popup_id": "target_id",
    "events_name_space": "event_namespace",
    "close_on_bg_click": "close_on_background_click",
    "close_on_esc": "close_on_escape",
    "open_on_click": "open_on_activate",
}


def normalize_options(options: Mapping[str, Any]) -> dict[str, Any]:
    """Convert camelCase and legacy option names to field names. Nested mappings are left as they are."""
    normalized = {}
    for key, value in options.items():
        name = to_snake(key)
        normalized[LEGACY_OPTION_NAMES.get(name, name)] = value
    return normalized


class OptionsSchema(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="before")
    @classmethod
    def normalize_keys(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            return normalize_options(data)
        return data


class RemoteConfig(OptionsSchema):
    """Where and how to fetch the content of a popup before it opens."""

    url: str
    data: dict[str, Any] | None = None
    """Query parameters sent with the request."""
    method: Literal["get", "post"] = "get"
    cache: bool = False
    """When False a `_` timestamp parameter is added so intermediaries do not serve a stale response."""
    on_before_send: Any = None
    """Called with the mutable query dict before the request. Returning False cancels the request."""
    on_complete: Any = None
    on_error: Any = None

    @model_validator(mode="before")
    @classmethod
    def from_url(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"url": data}
        return data


class PopupConfig(OptionsSchema):
    opened_class: str = DEFAULT_OPENED_CLASS
    opened_body_class: str = DEFAULT_OPENED_BODY_CLASS
    close_button_selector: str = DEFAULT_CLOSE_BUTTON_SELECTOR
    target_id: str
    event_namespace: str = DEFAULT_EVENT_NAMESPACE

    lock_screen: bool = True
    close_on_background_click: bool = True
    close_on_escape: bool = True
    close_on_resize: bool = False
    open_on_activate: bool = True

    before_open: Any = None
    after_open: Any = None
    before_close: Any = None
    after_close: Any = None

    remote: RemoteConfig | None = None

    @field_validator("remote", mode="before")
    @classmethod
    def disable_falsy_remote(cls, value: Any) -> Any:
        return value or None


def build_defaults(dom: "DomBridge", trigger: Any) -> dict[str, Any]:
    """Options read from the trigger element's data attributes."""
    defaults: dict[str, Any] = {}

    target_id = dom.get_attribute(trigger, TRIGGER_TARGET_ATTR)
    if target_id:
        defaults["target_id"] = target_id

    remote_url = dom.get_attribute(trigger, TRIGGER_REMOTE_ATTR)
    if remote_url:
        defaults["remote"] = {"url": remote_url}

    return defaults


def merge_config(defaults: Mapping[str, Any], overrides: Mapping[str, Any] | None = None) -> PopupConfig:
    """Merge `overrides` into `defaults` and validate the result.

    Mappings under the same key are merged one level deep, so remote options given as
    overrides keep the URL found on the trigger. Unknown keys raise a ValidationError.
    """
    merged = normalize_options(defaults)
    for key, value in normalize_options(overrides or {}).items():
        current = merged.get(key)
        if isinstance(current, RemoteConfig):
            current = current.model_dump(exclude_unset=True)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = normalize_options(current) | normalize_options(value)
        else:
            merged[key] = value

    return PopupConfig.model_validate(merged)
