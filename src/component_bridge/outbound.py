"""
Outbound queue for calls issued before the handshake completes.
"""

from typing import Any, Callable, NamedTuple, Optional

from component_bridge.errors import BridgeError

ReplyCallback = Callable[[Any], None]


class QueuedCall(NamedTuple):
    action: str
    data: Any
    callback: Optional[ReplyCallback]


class OutboundQueue:
    """FIFO buffer drained exactly once, then gone for good."""

    def __init__(self) -> None:
        self._calls: Optional[list[QueuedCall]] = []

    def __len__(self) -> int:
        return len(self._calls) if self._calls is not None else 0

    def push(self, action: str, data: Any, callback: Optional[ReplyCallback] = None) -> None:
        if self._calls is None:
            raise BridgeError("queue_drained", f"Cannot queue {action!r}: queue already drained")
        self._calls.append(QueuedCall(action, data, callback))

    def drain(self) -> list[QueuedCall]:
        """Hand over every queued call in arrival order and discard the queue."""
        if self._calls is None:
            raise BridgeError("queue_drained", "Outbound queue already drained")
        calls, self._calls = self._calls, None
        return calls

    def discard(self) -> None:
        self._calls = None
