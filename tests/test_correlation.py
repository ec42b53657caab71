"""Reply correlation and the lost-correlation path."""

import json

import pytest

from component_bridge.correlation import CorrelationTable
from component_bridge.errors import BridgeError, LostCorrelationError
from conftest import ORIGIN, registration, reply


class FakeMonotonic:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class TestCorrelationTable:
    def test_resolve_invokes_callback_once_and_forgets_entry(self):
        table = CorrelationTable()
        got = []
        table.add("m1", "stream-items", None, got.append)
        table.resolve("m1", {"items": []})
        assert got == [{"items": []}]
        assert "m1" not in table
        with pytest.raises(LostCorrelationError):
            table.resolve("m1", {"items": []})
        assert got == [{"items": []}]

    def test_unknown_id_raises(self):
        with pytest.raises(LostCorrelationError) as exc:
            CorrelationTable().resolve("ghost", None)
        assert exc.value.message_id == "ghost"

    def test_entry_without_callback_resolves_quietly(self):
        table = CorrelationTable()
        table.add("m1", "select-item", {"item": {}})
        call = table.resolve("m1", None)
        assert call.action == "select-item"
        assert len(table) == 0

    def test_duplicate_message_id_rejected(self):
        table = CorrelationTable()
        table.add("m1", "a", None)
        with pytest.raises(BridgeError) as exc:
            table.add("m1", "b", None)
        assert exc.value.code == "duplicate_message_id"

    def test_expired_entries_are_evicted(self):
        clock = FakeMonotonic()
        table = CorrelationTable(max_age=60.0, monotonic=clock)
        table.add("old", "a", None)
        clock.now += 61.0
        table.add("new", "b", None)
        assert "old" not in table
        assert "new" in table

    def test_late_reply_to_evicted_call_is_dropped_quietly(self):
        clock = FakeMonotonic()
        got = []
        table = CorrelationTable(max_age=60.0, monotonic=clock)
        table.add("slow", "request-permissions", None, got.append)
        clock.now += 61.0
        table.add("next", "custom", None)

        assert table.resolve("slow", {"approved": True}) is None
        assert got == []
        with pytest.raises(LostCorrelationError):
            table.resolve("slow", {"approved": True})

    def test_discard_forgets_without_callback(self):
        got = []
        table = CorrelationTable()
        table.add("m1", "custom", None, got.append)
        assert table.discard("m1").action == "custom"
        assert "m1" not in table
        assert got == []

    def test_no_eviction_without_max_age(self):
        clock = FakeMonotonic()
        table = CorrelationTable(max_age=None, monotonic=clock)
        table.add("old", "a", None)
        clock.now += 10_000.0
        assert table.evict_expired() == 0
        assert "old" in table


class TestBridgeCorrelation:
    def test_reply_resolves_the_registered_callback(self, registered, host):
        first, second = [], []
        registered.post_message("custom-1", None, first.append)
        registered.post_message("custom-2", None, second.append)
        id1, id2 = (m["messageId"] for m in host.messages)

        registered.receive(reply(id2, "two"), ORIGIN)
        registered.receive(reply(id1, "one"), ORIGIN)

        assert first == ["one"]
        assert second == ["two"]
        assert registered.pending_calls == 0

    def test_message_ids_are_unique(self, registered, host):
        for _ in range(20):
            registered.post_message("custom")
        ids = [m["messageId"] for m in host.messages]
        assert len(set(ids)) == 20

    def test_unmatched_reply_alerts_once_without_crashing(self, registered, host, alerts):
        got = []
        registered.receive(reply("never-sent", {}), ORIGIN)
        assert len(alerts) == 1
        assert "restart" in alerts[0]

        # The bridge keeps working afterwards.
        registered.post_message("custom", None, got.append)
        registered.receive(reply(host.last()["messageId"], 1), ORIGIN)
        assert got == [1]
        assert len(alerts) == 1

    def test_duplicate_reply_fires_callback_at_most_once(self, registered, host, alerts):
        got = []
        registered.post_message("custom", None, got.append)
        message_id = host.last()["messageId"]
        registered.receive(reply(message_id, "a"), ORIGIN)
        registered.receive(reply(message_id, "b"), ORIGIN)
        assert got == ["a"]
        assert len(alerts) == 1

    def test_reply_over_text_channel(self, bridge, host):
        got = []
        bridge.receive(json.dumps(registration()), ORIGIN, text=True)
        bridge.post_message("custom", None, got.append)
        message_id = json.loads(host.last())["messageId"]
        bridge.receive(json.dumps(reply(message_id, {"ok": 1})), ORIGIN, text=True)
        assert got == [{"ok": 1}]


def test_late_reply_after_eviction_does_not_alert(make_bridge, host, alerts):
    clock = FakeMonotonic()
    bridge = make_bridge(monotonic=clock)
    bridge.receive(registration(), ORIGIN)
    got = []
    bridge.request_permissions([{"name": "stream-items"}], lambda: got.append(True))
    slow_id = host.last()["messageId"]

    clock.now += 601.0
    bridge.post_message("custom")
    bridge.receive(reply(slow_id, {}), ORIGIN)

    assert alerts == []
    assert got == []
