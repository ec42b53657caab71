"""
Transport adapter. Two inbound channels, one logical stream.

The host embeds the component in one of two ways: it either posts structured
objects, or it posts serialized JSON text (mobile webviews). Both channels
feed the same dispatch method. The origin of the first event seen on either
channel becomes the outbound target for the rest of the bridge's life.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from component_bridge.errors import MalformedPayloadError
from component_bridge.transport.envelope import WireValue

logger = logging.getLogger(__name__)

PostTarget = Callable[[WireValue, Optional[str]], None]
Dispatch = Callable[[Any, bool], None]


class InboundChannel(ABC):
    """One inbound event source. Subclasses decide how raw data is decoded."""

    text_mode = False

    def __init__(self, adapter: "TransportAdapter"):
        self._adapter = adapter

    @abstractmethod
    def decode(self, data: Any) -> Any: ...

    def deliver(self, data: Any, origin: Optional[str] = None) -> None:
        self._adapter.receive(self, data, origin)


class StructuredChannel(InboundChannel):
    text_mode = False

    def decode(self, data: Any) -> Any:
        return data


class TextChannel(InboundChannel):
    text_mode = True

    def decode(self, data: Any) -> Any:
        try:
            return json.loads(data)
        except (TypeError, ValueError) as e:
            raise MalformedPayloadError(f"Inbound text is not valid JSON: {e}", {"data": data})


class TransportAdapter:
    def __init__(self, dispatch: Dispatch, post: PostTarget, verbose: bool = False):
        self._dispatch = dispatch
        self._post = post
        self._verbose = verbose
        self._origin: Optional[str] = None
        self._origin_locked = False
        self._text_mode = False
        self.structured = StructuredChannel(self)
        self.text = TextChannel(self)

    @property
    def origin(self) -> Optional[str]:
        return self._origin

    @property
    def text_mode(self) -> bool:
        """True when the most recent inbound event came from the text channel."""
        return self._text_mode

    def receive(self, channel: InboundChannel, data: Any, origin: Optional[str]) -> None:
        if self._verbose:
            logger.debug("Message received: %r (text channel: %s)", data, channel.text_mode)

        # Later events may come from another window; never re-target.
        if not self._origin_locked:
            self._origin = origin
            self._origin_locked = True
        self._text_mode = channel.text_mode

        try:
            payload = channel.decode(data)
        except MalformedPayloadError as e:
            logger.warning("Dropping inbound message: %s", e)
            return
        self._dispatch(payload, channel.text_mode)

    def post(self, message: WireValue) -> None:
        if self._verbose:
            logger.debug("Posting message: %r", message)
        self._post(message, self._origin)
