"""
Coalesced saving.

Keystroke-driven saves are debounced: each call cancels the pending save
and schedules a new one, so a burst of calls produces a single save-items
carrying the last batch. updated_at is stamped when save_items is called,
never when the timer fires.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Optional, Protocol

from component_bridge.transport.envelope import sanitize_item, stamp_item

logger = logging.getLogger(__name__)

DEFAULT_SAVE_DELAY_S = 0.25


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerScheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class LoopScheduler:
    """TimerScheduler backed by the asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


SendBatch = Callable[[list[dict[str, Any]], Optional[Callable[[], None]]], None]


class CoalescedSaver:
    def __init__(
        self,
        send: SendBatch,
        scheduler: TimerScheduler,
        clock: Callable[[], datetime],
        delay: float = DEFAULT_SAVE_DELAY_S,
        enabled: bool = True,
        verbose: bool = False,
    ):
        self._send = send
        self._scheduler = scheduler
        self._clock = clock
        self.delay = delay
        self.enabled = enabled
        self._verbose = verbose
        self._pending: Optional[TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def save(self, items: list[Any], callback: Optional[Callable[[], None]] = None,
             skip_debounce: bool = False) -> None:
        now = self._clock()
        batch = []
        for item in items:
            stamp_item(item, now)
            batch.append(sanitize_item(item))

        self.cancel()
        if skip_debounce or not self.enabled:
            self._send(batch, callback)
            return

        def fire() -> None:
            self._pending = None
            self._send(batch, callback)

        self._pending = self._scheduler.call_later(self.delay, fire)

    def cancel(self) -> bool:
        """Cancel the pending save, if any. Returns True if one was cancelled."""
        if self._pending is None:
            return False
        self._pending.cancel()
        self._pending = None
        if self._verbose:
            logger.debug("Superseded pending save")
        return True
