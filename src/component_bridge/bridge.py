"""
ComponentBridge — the component side of the host/component message protocol.

Lifecycle:
- created: calls are queued until the host sends component-registered
- active: calls are sent immediately, replies resolved by messageId
- closed: after shutdown(); sends raise, inbound events are ignored
"""

import logging
import time
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional, Sequence, Union

from component_bridge.config import BridgeConfig
from component_bridge.correlation import CorrelationTable
from component_bridge.errors import BridgeClosedError, LostCorrelationError
from component_bridge.models.envelope import InboundEnvelope
from component_bridge.models.events import InboundAction, OutboundAction
from component_bridge.models.session import Environment, Session
from component_bridge.outbound import OutboundQueue, ReplyCallback
from component_bridge.saving import CoalescedSaver, LoopScheduler, TimerScheduler
from component_bridge.themes import InMemoryStylesheetSet, StylesheetSet, ThemeManager
from component_bridge.transport.channels import PostTarget, TransportAdapter
from component_bridge.transport.envelope import build_envelope, encode, parse_envelope, sanitize_item

logger = logging.getLogger(__name__)

APP_DATA_DOMAIN = "org.standardnotes.sn"
LOST_CORRELATION_MESSAGE = (
    "This extension is attempting to communicate with its host application, but an error "
    "is preventing it from doing so. Please restart this extension and try again."
)


class BridgeState(str, Enum):
    CREATED = "created"
    ACTIVE = "active"
    CLOSED = "closed"


def _new_message_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _log_alert(message: str) -> None:
    logger.error(message)


def _field(data: Any, key: str) -> Any:
    return data.get(key) if isinstance(data, Mapping) else None


class ComponentBridge:
    def __init__(
        self,
        post: PostTarget,
        initial_permissions: Optional[Sequence[Any]] = None,
        on_ready: Optional[Callable[[], None]] = None,
        *,
        config: Optional[BridgeConfig] = None,
        scheduler: Optional[TimerScheduler] = None,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        monotonic: Optional[Callable[[], float]] = None,
        stylesheets: Optional[StylesheetSet] = None,
        alert: Optional[Callable[[str], None]] = None,
    ):
        self.config = config or BridgeConfig()
        self._initial_permissions = list(initial_permissions or [])
        self._on_ready = on_ready
        self._id_factory = id_factory or _new_message_id
        self._clock = clock or _utcnow
        self._alert = alert or _log_alert
        verbose = self.config.logging_enabled

        self._state = BridgeState.CREATED
        self._session: Optional[Session] = None
        self._component_data: dict[str, Any] = {}
        self._queue = OutboundQueue()
        self._pending = CorrelationTable(
            max_age=self.config.pending_call_max_age,
            monotonic=monotonic or time.monotonic,
            verbose=verbose,
        )
        self._saver = CoalescedSaver(
            self._send_save_batch,
            scheduler or LoopScheduler(),
            self._clock,
            delay=self.config.coalesced_saving_delay,
            enabled=self.config.coalesced_saving,
            verbose=verbose,
        )
        self.stylesheets = stylesheets if stylesheets is not None else InMemoryStylesheetSet()
        self.themes = ThemeManager(self.stylesheets, verbose=verbose)
        self.transport = TransportAdapter(self._handle_payload, post, verbose=verbose)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> BridgeState:
        return self._state

    @property
    def registered(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def environment(self) -> Optional[str]:
        return self._session.environment if self._session else None

    @property
    def pending_calls(self) -> int:
        return len(self._pending)

    @property
    def queued_calls(self) -> int:
        return len(self._queue)

    def get_self_component_uuid(self) -> Optional[str]:
        return self._session.uuid if self._session else None

    def is_running_in_desktop_application(self) -> bool:
        return self.environment == Environment.DESKTOP.value

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def receive(self, data: Any, origin: Optional[str] = None, text: bool = False) -> None:
        """Feed one inbound event from the structured or the text channel."""
        channel = self.transport.text if text else self.transport.structured
        channel.deliver(data, origin)

    def _handle_payload(self, payload: Any, text_mode: bool) -> None:
        if self._state is BridgeState.CLOSED:
            return
        envelope = parse_envelope(payload)
        if envelope is None:
            logger.warning("Dropping inbound message that is not an envelope: %r", payload)
            return

        if envelope.action == InboundAction.COMPONENT_REGISTERED:
            self._register(envelope)
        elif envelope.action == InboundAction.THEMES:
            if self.config.accepts_themes:
                self.themes.activate_themes(_field(envelope.data, "themes"))
        elif envelope.is_reply:
            self._resolve_reply(envelope)
        elif self.config.logging_enabled:
            logger.debug("Ignoring inbound action %r", envelope.action)

    def _register(self, envelope: InboundEnvelope) -> None:
        data = envelope.data if isinstance(envelope.data, Mapping) else {}
        host_data = dict(envelope.component_data or {})

        if self._session is not None:
            self._session.session_key = envelope.session_key
            self._session.environment = data.get("environment")
            self._session.uuid = data.get("uuid")
            self._component_data.clear()
            self._component_data.update(host_data)
            if self.config.logging_enabled:
                logger.debug("Repeated component-registered; session fields re-assigned")
            return

        # Writes made before registration are newer than the host's copy.
        host_data.update(self._component_data)
        self._component_data.clear()
        self._component_data.update(host_data)

        self._session = Session(
            session_key=envelope.session_key,
            environment=data.get("environment"),
            uuid=data.get("uuid"),
        )
        self._session.component_data = self._component_data
        self._state = BridgeState.ACTIVE
        if self.config.logging_enabled:
            logger.debug("Component registered with payload: %r", envelope)

        if self._initial_permissions:
            self.request_permissions(self._initial_permissions)
        for call in self._queue.drain():
            self._send(call.action, call.data, call.callback)

        if self._on_ready is not None:
            self._on_ready()

    def _resolve_reply(self, envelope: InboundEnvelope) -> None:
        try:
            self._pending.resolve(envelope.original.message_id, envelope.data)  # type: ignore[union-attr]
        except LostCorrelationError as e:
            # Host session state was reset underneath us.
            logger.error("Lost correlation: %s", e)
            self._alert(LOST_CORRELATION_MESSAGE)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def post_message(self, action: str, data: Any = None, callback: Optional[ReplyCallback] = None) -> None:
        """Send a call to the host, or queue it until the handshake completes."""
        if self._state is BridgeState.CLOSED:
            raise BridgeClosedError()
        if self._session is None:
            self._queue.push(action, data, callback)
            return
        self._send(action, data, callback)

    def _send(self, action: str, data: Any, callback: Optional[ReplyCallback]) -> None:
        message_id = self._id_factory()
        envelope = build_envelope(action, data, message_id, self._session.session_key)  # type: ignore[union-attr]
        message = encode(envelope, self.transport.text_mode)
        self._pending.add(message_id, action, data, callback)
        try:
            self.transport.post(message)
        except Exception as e:
            self._pending.discard(message_id)
            logger.error(f"Post failed for {action}: {e}")

    def shutdown(self) -> None:
        """Cancel the pending save and discard queued and unanswered calls."""
        if self._state is BridgeState.CLOSED:
            return
        self._saver.cancel()
        self._queue.discard()
        dropped = self._pending.clear()
        self._state = BridgeState.CLOSED
        if self.config.logging_enabled:
            logger.debug("Bridge shut down, discarded %d pending calls", len(dropped))

    # ------------------------------------------------------------------
    # Component data
    # ------------------------------------------------------------------

    def component_data_value_for_key(self, key: str) -> Any:
        return self._component_data.get(key)

    def set_component_data_value_for_key(self, key: str, value: Any) -> None:
        self._component_data[key] = value
        self.post_message(OutboundAction.SET_COMPONENT_DATA, {"componentData": self._component_data})

    def clear_component_data(self) -> None:
        self._component_data.clear()
        self.post_message(OutboundAction.SET_COMPONENT_DATA, {"componentData": self._component_data})

    # ------------------------------------------------------------------
    # Host actions
    # ------------------------------------------------------------------

    def request_permissions(self, permissions: Sequence[Any], callback: Optional[Callable[[], None]] = None) -> None:
        def on_reply(_data: Any) -> None:
            if callback:
                callback()

        self.post_message(OutboundAction.REQUEST_PERMISSIONS, {"permissions": list(permissions)}, on_reply)

    def set_size(self, type: str, width: Union[int, str], height: Union[int, str]) -> None:
        self.post_message(OutboundAction.SET_SIZE, {"type": type, "width": width, "height": height})

    def stream_items(self, content_types: Union[str, Sequence[str]], callback: Callable[[Any], None]) -> None:
        if isinstance(content_types, str):
            content_types = [content_types]
        self.post_message(
            OutboundAction.STREAM_ITEMS,
            {"content_types": list(content_types)},
            lambda data: callback(_field(data, "items")),
        )

    def stream_context_item(self, callback: Callable[[Any], None]) -> None:
        self.post_message(OutboundAction.STREAM_CONTEXT_ITEM, None, lambda data: callback(_field(data, "item")))

    def select_item(self, item: Any) -> None:
        self.post_message(OutboundAction.SELECT_ITEM, {"item": sanitize_item(item)})

    def create_item(self, item: Any, callback: Optional[Callable[[Any], None]] = None) -> None:
        def on_reply(data: Any) -> None:
            created = _field(data, "item")
            # Older hosts reply with the item nested in "items".
            if not created:
                items = _field(data, "items")
                if items:
                    created = items[0]
            if created:
                self.associate_item(created)
            if callback:
                callback(created)

        self.post_message(OutboundAction.CREATE_ITEM, {"item": sanitize_item(item)}, on_reply)

    def create_items(self, items: Sequence[Any], callback: Optional[Callable[[Any], None]] = None) -> None:
        def on_reply(data: Any) -> None:
            if callback:
                callback(_field(data, "items"))

        self.post_message(OutboundAction.CREATE_ITEMS, {"items": [sanitize_item(i) for i in items]}, on_reply)

    def associate_item(self, item: Any) -> None:
        self.post_message(OutboundAction.ASSOCIATE_ITEM, {"item": sanitize_item(item)})

    def deassociate_item(self, item: Any) -> None:
        self.post_message(OutboundAction.DEASSOCIATE_ITEM, {"item": sanitize_item(item)})

    def clear_selection(self) -> None:
        self.post_message(OutboundAction.CLEAR_SELECTION, {"content_type": "Tag"})

    def delete_item(self, item: Any, callback: Optional[Callable[[Any], None]] = None) -> None:
        self.delete_items([item], callback)

    def delete_items(self, items: Sequence[Any], callback: Optional[Callable[[Any], None]] = None) -> None:
        def on_reply(data: Any) -> None:
            if callback:
                callback(data)

        self.post_message(OutboundAction.DELETE_ITEMS, {"items": [sanitize_item(i) for i in items]}, on_reply)

    def send_custom_event(self, action: str, data: Any = None,
                          callback: Optional[Callable[[Any], None]] = None) -> None:
        def on_reply(reply: Any) -> None:
            if callback:
                callback(reply)

        self.post_message(action, data, on_reply)

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    @property
    def save_pending(self) -> bool:
        return self._saver.pending

    def save_item(self, item: Any, callback: Optional[Callable[[], None]] = None,
                  skip_debounce: bool = False) -> None:
        self.save_items([item], callback, skip_debounce)

    def save_items(self, items: Sequence[Any], callback: Optional[Callable[[], None]] = None,
                   skip_debounce: bool = False) -> None:
        """Save items, coalescing rapid calls into one save-items.

        skip_debounce sends right away; use it for saves that are not driven
        by keystrokes.
        """
        self._saver.save(list(items), callback, skip_debounce)

    def _send_save_batch(self, items: list[dict[str, Any]], callback: Optional[Callable[[], None]]) -> None:
        def on_reply(_data: Any) -> None:
            if callback:
                callback()

        self.post_message(OutboundAction.SAVE_ITEMS, {"items": items}, on_reply)

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------

    @staticmethod
    def get_item_app_data_value(item: Any, key: str) -> Any:
        content = _field(item, "content") if isinstance(item, Mapping) else getattr(item, "content", None)
        app_data = _field(_field(content, "appData"), APP_DATA_DOMAIN)
        if app_data:
            return app_data.get(key)
        return None
