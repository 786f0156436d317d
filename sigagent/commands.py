"""Application commands that drive one shared signal manager client."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .client import RoomResponse, SignalManagerClient
from .config import SignalManagerConfig
from .errors import SignalManagerError
from .protocol import ConnectionState, ConnectionStateType, WebRTCRoomCreatePayload

log = logging.getLogger(__name__)

Emitter = Callable[[str, Any], None]

_STATE_EVENTS = {
    ConnectionStateType.CONNECTED: "signal-manager:connected",
    ConnectionStateType.TRYING_TO_CONNECT: "signal-manager:connecting",
    ConnectionStateType.WAS_CONNECTED_TRYING_TO_RECONNECT: "signal-manager:reconnecting",
    ConnectionStateType.DISCONNECTED_NOT_TO_CONNECT: "signal-manager:disconnected",
    ConnectionStateType.DISCONNECTING_DISCONNECT_REQUESTED: "signal-manager:disconnecting",
}

_NOT_INITIALIZED = "Signal manager not initialized"


class CommandError(RuntimeError):
    """A command failed; the message is meant for the user interface."""


@dataclass
class _Slot:
    client: SignalManagerClient
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


_slot: Optional[_Slot] = None


def _require_slot() -> _Slot:
    if _slot is None:
        raise CommandError(_NOT_INITIALIZED)
    return _slot


def _state_forwarder(emit: Emitter) -> Callable[[ConnectionState], None]:
    def forward(state: ConnectionState) -> None:
        log.info("SignalManager state changed: %r", state)
        with contextlib.suppress(Exception):
            emit("signal-manager:state-changed", state.to_dict())
        event = _STATE_EVENTS[state.state_type]
        payload = (
            state.reconnect_attempts
            if state.state_type is ConnectionStateType.WAS_CONNECTED_TRYING_TO_RECONNECT
            else None
        )
        with contextlib.suppress(Exception):
            emit(event, payload)

    return forward


async def init_signal_manager(url: str, port: int, client_id: str, auth_token: str, emit: Emitter) -> None:
    """Create the shared client; state changes are reported through `emit(event, payload)`."""
    global _slot
    log.info("Initializing signal manager: url=%s, port=%s, client_id=%s", url, port, client_id)
    try:
        config = SignalManagerConfig(url=url, port=port, client_id=client_id, auth_token=auth_token)
    except SignalManagerError as exc:
        raise CommandError(str(exc)) from exc
    client = SignalManagerClient(config)
    client.set_state_callback(_state_forwarder(emit))
    if _slot is not None:
        raise CommandError("Signal manager already initialized")
    _slot = _Slot(client)
    try:
        emit("signal-manager:initialized", None)
    except Exception as exc:
        log.error("Failed to emit initialized event: %s", exc)
        raise CommandError(str(exc)) from exc
    log.info("Signal manager initialized successfully")


async def connect_signal_manager() -> None:
    """Connect the shared client to its signal manager."""
    log.info("Connecting to signal manager")
    slot = _require_slot()
    async with slot.lock:
        try:
            await slot.client.connect()
        except SignalManagerError as exc:
            log.error("Failed to connect to signal manager: %s", exc)
            raise CommandError(str(exc)) from exc
    log.info("Successfully connected to signal manager")


async def disconnect_signal_manager() -> None:
    """Disconnect, reset and drop the shared client."""
    global _slot
    log.info("Disconnecting from signal manager")
    slot = _require_slot()
    async with slot.lock:
        try:
            await slot.client.disconnect()
        except SignalManagerError as exc:
            log.error("Failed to disconnect from signal manager: %s", exc)
            raise CommandError(str(exc)) from exc
        log.info("Successfully disconnected from signal manager")
        try:
            await slot.client.reset()
        except SignalManagerError as exc:
            log.error("Failed to reset client state: %s", exc)
            raise CommandError(f"Failed to reset client state: {exc}") from exc
        _slot = None


async def reset_signal_manager() -> None:
    """Reset and drop the shared client; does nothing if there is none."""
    global _slot
    log.info("Resetting signal manager state")
    slot = _slot
    if slot is None:
        log.info("Signal manager not initialized, nothing to reset")
        return
    async with slot.lock:
        try:
            await slot.client.reset()
        except SignalManagerError as exc:
            log.error("Failed to reset signal manager state: %s", exc)
            raise CommandError(f"Failed to reset signal manager state: {exc}") from exc
        _slot = None
    log.info("Signal manager state reset successfully")


async def get_signal_manager_state() -> ConnectionState:
    """The current connection state of the shared client."""
    slot = _require_slot()
    async with slot.lock:
        return slot.client.get_state()


async def send_room_create(
    version: str,
    client_id: str,
    auth_token: str,
    role: str,
    offer_sdp: Optional[str] = None,
    metadata: Any = None,
) -> RoomResponse:
    """Ask the signal manager for a room; returns (room_id, session_id)."""
    log.info("Sending room create request for client_id: %s", client_id)
    slot = _require_slot()
    payload = WebRTCRoomCreatePayload(
        version=version,
        client_id=client_id,
        auth_token=auth_token,
        role=role,
        offer_sdp=offer_sdp,
        metadata=metadata,
    )
    async with slot.lock:
        try:
            result = await slot.client.send_room_create(payload)
        except SignalManagerError as exc:
            log.error("Failed to create room: %s", exc)
            raise CommandError(str(exc)) from exc
    log.info("Room created successfully: %r", result)
    return result


def greet(name: str) -> str:
    return f"Hello, {name}! You've been greeted!"