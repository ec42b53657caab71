"""
Socket.IO embedding for running a component against a host reachable over Socket.IO.

The host emits `message` events. String payloads are routed to the text
channel, everything else to the structured channel, with the server URL as
origin. Outbound messages are emitted back as `message` events.
"""

import asyncio
import logging
from typing import Any, Optional

import socketio

from component_bridge.transport.channels import TransportAdapter
from component_bridge.transport.envelope import WireValue

logger = logging.getLogger(__name__)

MESSAGE_EVENT = "message"
DEFAULT_SOCKETIO_PATH = "/socket.io/"


class SocketIOHost:
    def __init__(
        self,
        url: str,
        auth: Optional[dict[str, Any]] = None,
        transports: Optional[list[str]] = None,
        socketio_path: str = DEFAULT_SOCKETIO_PATH,
    ):
        self._url = url
        self._auth = auth
        self._transports = transports or ["websocket"]
        self._socketio_path = socketio_path
        self._sio: Optional[socketio.AsyncClient] = None
        self._adapter: Optional[TransportAdapter] = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def connected(self) -> bool:
        return self._sio is not None and self._sio.connected

    def attach(self, adapter: TransportAdapter) -> None:
        """Route inbound `message` events into the adapter's channels."""
        self._adapter = adapter

    def route_inbound(self, data: Any) -> None:
        if self._adapter is None:
            logger.warning("Inbound message before a transport adapter was attached; dropped")
            return
        channel = self._adapter.text if isinstance(data, str) else self._adapter.structured
        channel.deliver(data, self._url)

    async def connect(self) -> None:
        if self._sio and self._sio.connected:
            return

        self._sio = socketio.AsyncClient()

        @self._sio.on(MESSAGE_EVENT)
        async def on_message(data: Any) -> None:
            self.route_inbound(data)

        await self._sio.connect(
            self._url,
            auth=self._auth,
            transports=self._transports,
            socketio_path=self._socketio_path,
        )

    def post(self, message: WireValue, origin: Optional[str] = None) -> None:
        """Emit one outbound message.

        Schedules the async emit on the running event loop. Errors are logged
        rather than silently swallowed.
        """
        if not self._sio or not self._sio.connected:
            logger.error("Socket.IO not connected; dropping outbound message")
            return
        if origin is not None and origin != self._url:
            logger.warning("Posting to %s although the locked origin is %s", self._url, origin)

        async def _do_emit() -> None:
            try:
                await self._sio.emit(MESSAGE_EVENT, message)  # type: ignore[union-attr]
            except Exception as e:
                logger.error(f"Emit failed: {e}")

        asyncio.get_running_loop().create_task(_do_emit())

    async def disconnect(self) -> None:
        if self._sio:
            await self._sio.disconnect()
            self._sio = None
