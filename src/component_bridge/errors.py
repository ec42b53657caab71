"""
Bridge error types.

Protocol-level failures are handled inside the bridge; these types exist so
the handling code (and tests) can tell them apart.
"""

from typing import Any, Optional


class BridgeError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class LostCorrelationError(BridgeError):
    """A reply referenced a messageId with no pending call."""

    def __init__(self, message_id: str):
        super().__init__(
            "lost_correlation",
            f"No pending call for messageId {message_id}",
            {"message_id": message_id},
        )
        self.message_id = message_id


class MalformedPayloadError(BridgeError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("malformed_payload", message, details)


class BridgeClosedError(BridgeError):
    def __init__(self, message: str = "Bridge has been shut down"):
        super().__init__("bridge_closed", message)
