from overlaykit.dom.interface import DomBridge, Element, EventHandler
from overlaykit.dom.soup import Event, SoupDocument, Window

__all__ = ("DomBridge", "Element", "EventHandler", "SoupDocument", "Event", "Window")
