"""Deterministic stand-ins for the bridge's injected capabilities."""

import itertools
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import pytest

from component_bridge import BridgeConfig, ComponentBridge, InMemoryStylesheetSet

ORIGIN = "https://host.example"


class ManualTimer:
    def __init__(self, scheduler: "ManualScheduler", due: float, callback: Callable[[], None]):
        self._scheduler = scheduler
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Timer scheduler driven by advance() instead of wall-clock time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[ManualTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self, self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        self.now += seconds
        for timer in sorted(self.active, key=lambda t: t.due):
            if timer.due <= self.now and not timer.cancelled:
                timer.cancelled = True
                timer.callback()


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.value = start

    def __call__(self) -> datetime:
        return self.value


class RecordingHost:
    """Post target that records every outbound message with its origin."""

    def __init__(self) -> None:
        self.posted: list[tuple[Any, Optional[str]]] = []

    def __call__(self, message: Any, origin: Optional[str]) -> None:
        self.posted.append((message, origin))

    @property
    def messages(self) -> list[Any]:
        return [m for m, _ in self.posted]

    @property
    def actions(self) -> list[str]:
        return [m["action"] for m in self.messages]

    def last(self) -> Any:
        return self.messages[-1]


def counting_ids() -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"msg-{next(counter)}"


def registration(session_key: str = "key-1", environment: str = "web",
                 uuid: str = "self-uuid", component_data: Optional[dict] = None) -> dict:
    return {
        "action": "component-registered",
        "sessionKey": session_key,
        "componentData": component_data if component_data is not None else {},
        "data": {"environment": environment, "uuid": uuid},
    }


def reply(message_id: str, data: Any = None) -> dict:
    return {"action": "reply", "original": {"messageId": message_id}, "data": data}


@pytest.fixture
def host() -> RecordingHost:
    return RecordingHost()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 22, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def alerts() -> list[str]:
    return []


@pytest.fixture
def make_bridge(host, scheduler, clock, alerts):
    def _make(**kwargs: Any) -> ComponentBridge:
        kwargs.setdefault("config", BridgeConfig())
        kwargs.setdefault("scheduler", scheduler)
        kwargs.setdefault("id_factory", counting_ids())
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("stylesheets", InMemoryStylesheetSet())
        kwargs.setdefault("alert", alerts.append)
        return ComponentBridge(host, **kwargs)
    return _make


@pytest.fixture
def bridge(make_bridge) -> ComponentBridge:
    return make_bridge()


@pytest.fixture
def registered(bridge) -> ComponentBridge:
    bridge.receive(registration(), ORIGIN)
    return bridge
