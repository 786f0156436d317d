"""The signal manager client: connection lifecycle and room creation requests."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Callable, Optional

from .config import SignalManagerConfig
from .errors import NotConnectedError, SignalManagerError, SignalTimeoutError
from .protocol import (
    ConnectionState,
    ConnectionStateType,
    Message,
    PayloadKind,
    WebRTCRoomCreatePayload,
)
from .websocket import WebSocketClient

log = logging.getLogger(__name__)

COMMAND_TIMEOUT = 30.0
_POLL_INTERVAL = 0.05

RoomResponse = tuple[Optional[str], Optional[str]]
StateCallback = Callable[[ConnectionState], None]


def _state(state_type: ConnectionStateType, *, connected: bool = False, connecting: bool = False) -> ConnectionState:
    return ConnectionState(state_type=state_type, is_connected=connected, is_connecting=connecting)


class SignalManagerClient:
    """Talks to a signal manager over one WebSocket connection."""

    def __init__(self, config: SignalManagerConfig, *, command_timeout: float = COMMAND_TIMEOUT) -> None:
        log.info("Creating new client with config: %r", config)
        self.config = config
        self._command_timeout = command_timeout
        self._websocket: Optional[WebSocketClient] = None
        self._state = ConnectionState()
        self._state_callback: Optional[StateCallback] = None
        self._last_room_response: Optional[RoomResponse] = None

    def set_state_callback(self, callback: StateCallback) -> None:
        """Call `callback` with every new connection state."""
        self._state_callback = callback

    def _update_state(self, new_state: ConnectionState) -> None:
        self._state = new_state
        if self._state_callback is not None:
            self._state_callback(replace(new_state))

    async def connect(self) -> None:
        """Open the connection and send the connect and register messages."""
        log.info("Connecting client_id=%s", self.config.client_id)
        if self._state.is_connected:
            log.info("Already connected")
            return

        self._update_state(_state(ConnectionStateType.TRYING_TO_CONNECT, connecting=True))
        url = self.config.websocket_url()
        websocket = WebSocketClient(url)
        try:
            await websocket.connect()
        except SignalManagerError as exc:
            log.error("WebSocket connection failed: %s", exc)
            self._update_state(_state(ConnectionStateType.DISCONNECTED_NOT_TO_CONNECT))
            raise

        self._websocket = websocket
        self._update_state(_state(ConnectionStateType.CONNECTED, connected=True))
        websocket.send(Message.connect(self.config.client_id, self.config.auth_token))
        websocket.send(Message.register(self.config.client_id, self.config.auth_token))
        log.info("Successfully connected and registered")

    async def disconnect(self) -> None:
        """Unregister, close the connection and report the disconnected state."""
        log.info("Disconnecting from SignalManager")
        self._update_state(_state(ConnectionStateType.DISCONNECTING_DISCONNECT_REQUESTED))
        if self._websocket is not None:
            self._websocket.send(Message.unregister(self.config.client_id))
        websocket, self._websocket = self._websocket, None
        if websocket is not None:
            await websocket.close()
        self._update_state(_state(ConnectionStateType.DISCONNECTED_NOT_TO_CONNECT))
        log.info("Successfully disconnected")

    async def send_room_create(self, payload: WebRTCRoomCreatePayload) -> RoomResponse:
        """Ask for a new room and wait for its (room_id, session_id)."""
        log.info("Sending room create request for client_id: %s", payload.client_id)
        websocket = self._websocket
        if websocket is None:
            log.error("Not connected to WebSocket")
            raise NotConnectedError()

        self._last_room_response = None
        websocket.send(Message.room_create(payload))

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._command_timeout
        while (remaining := deadline - loop.time()) > 0:
            try:
                message = await asyncio.wait_for(websocket.receive(), remaining)
            except asyncio.TimeoutError:
                break
            except SignalManagerError:
                message = None
            if message is None:
                await asyncio.sleep(min(_POLL_INTERVAL, max(remaining, 0)))
                continue
            self._handle_message(message)
            if self._last_room_response is not None:
                log.info("Received room creation response: %r", self._last_room_response)
                return self._last_room_response

        log.warning("Timeout waiting for room creation response")
        raise SignalTimeoutError("Room creation timeout")

    def get_state(self) -> ConnectionState:
        return replace(self._state)

    async def reset(self) -> None:
        """Close any connection and return to the initial state, keeping the callback."""
        log.info("Resetting SignalManagerClient to initial state")
        websocket, self._websocket = self._websocket, None
        if websocket is not None:
            await websocket.close()
        self._state = ConnectionState()
        self._last_room_response = None
        log.info("SignalManagerClient reset completed")

    def _handle_message(self, message: Message) -> None:
        payload = message.payload
        body = payload.data
        kind = payload.kind
        if kind in (PayloadKind.CONNECT_ACK, PayloadKind.REGISTER_ACK, PayloadKind.UNREGISTER_ACK):
            log.info("Received %s: %s", kind.value, body.status)
        elif kind is PayloadKind.WEBRTC_ROOM_CREATE_ACK:
            log.info("Received RoomCreateAck: room_id=%r, session_id=%r", body.room_id, body.session_id)
            self._last_room_response = (body.room_id, body.session_id)
        elif kind is PayloadKind.ERROR:
            log.error("Received Error: %s - %s", body.error_code, body.error_message)
        else:
            log.debug("Unhandled message type: %r", message.message_type)