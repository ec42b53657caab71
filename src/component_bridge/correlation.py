"""
Correlation table: matches host replies to the calls that produced them.

Every sent envelope is retained under its messageId until a reply resolves
it. Entries that never get a reply are evicted once they exceed max_age.
"""

import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Optional

from component_bridge.errors import BridgeError, LostCorrelationError
from component_bridge.outbound import ReplyCallback

logger = logging.getLogger(__name__)

# Evicted ids kept to recognise late replies
EVICTED_MEMORY = 1024


class PendingCall:
    __slots__ = ("message_id", "action", "data", "callback", "sent_at")

    def __init__(self, message_id: str, action: str, data: Any,
                 callback: Optional[ReplyCallback], sent_at: float):
        self.message_id = message_id
        self.action = action
        self.data = data
        self.callback = callback
        self.sent_at = sent_at

    def __repr__(self) -> str:
        return f"PendingCall(message_id={self.message_id!r}, action={self.action!r})"


class CorrelationTable:
    def __init__(
        self,
        max_age: Optional[float] = None,
        monotonic: Callable[[], float] = time.monotonic,
        verbose: bool = False,
    ):
        self._max_age = max_age
        self._monotonic = monotonic
        self._verbose = verbose
        self._pending: dict[str, PendingCall] = {}
        self._evicted: "OrderedDict[str, None]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._pending

    def add(self, message_id: str, action: str, data: Any,
            callback: Optional[ReplyCallback] = None) -> PendingCall:
        if message_id in self._pending:
            raise BridgeError("duplicate_message_id", f"messageId {message_id} already pending")
        self.evict_expired()
        call = PendingCall(message_id, action, data, callback, self._monotonic())
        self._pending[message_id] = call
        return call

    def resolve(self, message_id: str, data: Any) -> Optional[PendingCall]:
        """Pop the pending call and invoke its callback with the reply payload.

        Returns None for a late reply to an evicted call. Raises
        LostCorrelationError when message_id was never pending.
        """
        call = self._pending.pop(message_id, None)
        if call is None:
            if message_id in self._evicted:
                del self._evicted[message_id]
                logger.warning("Dropping late reply to evicted call %s", message_id)
                return None
            raise LostCorrelationError(message_id)
        if call.callback is not None:
            call.callback(data)
        return call

    def evict_expired(self) -> int:
        if self._max_age is None:
            return 0
        cutoff = self._monotonic() - self._max_age
        expired = [mid for mid, call in self._pending.items() if call.sent_at < cutoff]
        for mid in expired:
            call = self._pending.pop(mid)
            self._remember_evicted(mid)
            if self._verbose:
                logger.debug("Evicting unanswered %s call %s", call.action, mid)
        return len(expired)

    def discard(self, message_id: str) -> Optional[PendingCall]:
        """Forget a call without resolving it."""
        return self._pending.pop(message_id, None)

    def _remember_evicted(self, message_id: str) -> None:
        self._evicted[message_id] = None
        while len(self._evicted) > EVICTED_MEMORY:
            self._evicted.popitem(last=False)

    def clear(self) -> list[PendingCall]:
        calls = list(self._pending.values())
        self._pending.clear()
        self._evicted.clear()
        return calls
