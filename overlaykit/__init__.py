from overlaykit.dom import DomBridge, SoupDocument
from overlaykit.exceptions import RemoteRequestError
from overlaykit.popup import Popup, PopupState, bind_popups
from overlaykit.registry import PopupRegistry
from overlaykit.remote import HttpxTransport, RemoteContentLoader, Transport, apply_mutation
from overlaykit.schema import HtmlPatch, PopupConfig, RemoteConfig, RemoteMutation
from overlaykit.scrollbar import ScrollbarCompensator

__all__ = (
    "Popup",
    "PopupState",
    "PopupRegistry",
    "PopupConfig",
    "RemoteConfig",
    "RemoteMutation",
    "HtmlPatch",
    "RemoteContentLoader",
    "Transport",
    "HttpxTransport",
    "RemoteRequestError",
    "ScrollbarCompensator",
    "DomBridge",
    "SoupDocument",
    "apply_mutation",
    "bind_popups",
)
