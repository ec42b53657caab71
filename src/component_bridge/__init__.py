"""
component-bridge — the component side of an embedded-component message bridge.

Handshake, pre-handshake queuing, reply correlation and coalesced saving over
a transport that only passes messages.
"""

from component_bridge.bridge import ComponentBridge, BridgeState
from component_bridge.config import BridgeConfig
from component_bridge.errors import BridgeError, LostCorrelationError, MalformedPayloadError, BridgeClosedError
from component_bridge.models.events import OutboundAction, InboundAction
from component_bridge.models.session import Environment, Session
from component_bridge.themes import InMemoryStylesheetSet, Stylesheet, ThemeManager

__version__ = "0.1.0"
__all__ = [
    "ComponentBridge",
    "BridgeState",
    "BridgeConfig",
    "BridgeError",
    "LostCorrelationError",
    "MalformedPayloadError",
    "BridgeClosedError",
    "OutboundAction",
    "InboundAction",
    "Environment",
    "Session",
    "InMemoryStylesheetSet",
    "Stylesheet",
    "ThemeManager",
]
