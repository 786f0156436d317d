import asyncio
import contextlib
import socket

import pytest
import websockets

from sigagent.client import SignalManagerClient
from sigagent.config import SignalManagerConfig
from sigagent.errors import NotConnectedError, SignalTimeoutError, WebSocketConnectError
from sigagent.protocol import (
    ConnectionState,
    ConnectionStateType,
    ErrorPayload,
    Message,
    MessageType,
    Payload,
    PayloadKind,
    WebRTCRoomCreateAckPayload,
    WebRTCRoomCreatePayload,
)


def _ack(room_id, session_id):
    return Message.new(
        MessageType.WEBRTC_ROOM_CREATE_ACK,
        Payload(
            PayloadKind.WEBRTC_ROOM_CREATE_ACK,
            WebRTCRoomCreateAckPayload("1.0.0", 200, room_id=room_id, session_id=session_id),
        ),
    )


def _error():
    return Message.new(
        MessageType.ERROR,
        Payload(PayloadKind.ERROR, ErrorPayload(1, "Authentication failed")),
    )


def _answer_rooms(message):
    if message.message_type == MessageType.WEBRTC_ROOM_CREATE:
        return [_error(), _ack("room-1", "session-1")]
    return []


def _silent(message):
    return []


@contextlib.asynccontextmanager
async def signal_server(replies):
    received = asyncio.Queue()

    async def handler(ws):
        try:
            async for frame in ws:
                message = Message.from_binary(frame)
                await received.put(message)
                for reply in replies(message):
                    await ws.send(reply.to_binary())
        except websockets.exceptions.ConnectionClosed:
            pass

    async with websockets.serve(handler, "127.0.0.1", 0) as server:
        port = next(iter(server.sockets)).getsockname()[1]
        yield port, received


async def _next(queue):
    return await asyncio.wait_for(queue.get(), 2)


def _config(port):
    return SignalManagerConfig(url="127.0.0.1", port=port, client_id="client-a", auth_token="token")


def _room_payload():
    return WebRTCRoomCreatePayload(
        "1.0.0", "client-a", "token", "sender", offer_sdp="v=0", metadata={"test": True}
    )


def _unused_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_initial_state_is_default():
    client = SignalManagerClient(_config(8080))
    assert client.get_state() == ConnectionState()
    assert client.get_state().state_type is ConnectionStateType.DISCONNECTED_NOT_TO_CONNECT


def test_get_state_returns_a_copy():
    client = SignalManagerClient(_config(8080))
    snapshot = client.get_state()
    snapshot.is_connected = True
    assert client.get_state().is_connected is False


@pytest.mark.asyncio
async def test_connect_sends_connect_and_register():
    async with signal_server(_silent) as (port, received):
        client = SignalManagerClient(_config(port))
        seen = []
        client.set_state_callback(lambda state: seen.append(state.state_type))
        await client.connect()
        first = await _next(received)
        second = await _next(received)
        assert first.message_type == MessageType.CONNECT
        assert first.payload.data.client_id == "client-a"
        assert first.payload.data.auth_token == "token"
        assert second.message_type == MessageType.REGISTER
        assert second.payload.data.version == "1.0.0"
        assert seen == [ConnectionStateType.TRYING_TO_CONNECT, ConnectionStateType.CONNECTED]
        assert client.get_state().is_connected is True
        await client.connect()
        assert len(seen) == 2
        await client.reset()


@pytest.mark.asyncio
async def test_connect_failure_reports_disconnected():
    client = SignalManagerClient(_config(_unused_port()))
    seen = []
    client.set_state_callback(lambda state: seen.append(state.state_type))
    with pytest.raises(WebSocketConnectError):
        await client.connect()
    assert seen == [
        ConnectionStateType.TRYING_TO_CONNECT,
        ConnectionStateType.DISCONNECTED_NOT_TO_CONNECT,
    ]
    assert client.get_state().is_connected is False


@pytest.mark.asyncio
async def test_send_room_create_requires_connection():
    client = SignalManagerClient(_config(8080))
    with pytest.raises(NotConnectedError):
        await client.send_room_create(_room_payload())


@pytest.mark.asyncio
async def test_send_room_create_returns_room_and_session():
    async with signal_server(_answer_rooms) as (port, received):
        client = SignalManagerClient(_config(port))
        await client.connect()
        result = await client.send_room_create(_room_payload())
        assert result == ("room-1", "session-1")
        messages = [await _next(received) for _ in range(3)]
        request = messages[2]
        assert request.message_type == MessageType.WEBRTC_ROOM_CREATE
        assert request.payload.data == _room_payload()
        await client.reset()


@pytest.mark.asyncio
async def test_send_room_create_times_out():
    async with signal_server(_silent) as (port, _received):
        client = SignalManagerClient(_config(port), command_timeout=0.2)
        await client.connect()
        with pytest.raises(SignalTimeoutError) as info:
            await client.send_room_create(_room_payload())
        assert str(info.value) == "Connection timeout: Room creation timeout"
        await client.reset()


@pytest.mark.asyncio
async def test_disconnect_unregisters_and_reports_states():
    async with signal_server(_silent) as (port, received):
        client = SignalManagerClient(_config(port))
        seen = []
        client.set_state_callback(lambda state: seen.append(state.state_type))
        await client.connect()
        await client.disconnect()
        messages = [await _next(received) for _ in range(3)]
        unregister = messages[2]
        assert unregister.message_type == MessageType.UNREGISTER
        assert unregister.payload.data.client_id == "client-a"
        assert unregister.payload.data.auth_token == ""
        assert seen[-2:] == [
            ConnectionStateType.DISCONNECTING_DISCONNECT_REQUESTED,
            ConnectionStateType.DISCONNECTED_NOT_TO_CONNECT,
        ]
        assert client.get_state().is_connected is False
        with pytest.raises(NotConnectedError):
            await client.send_room_create(_room_payload())


@pytest.mark.asyncio
async def test_reset_restores_default_and_keeps_callback():
    async with signal_server(_silent) as (port, _received):
        client = SignalManagerClient(_config(port))
        seen = []
        client.set_state_callback(lambda state: seen.append(state.state_type))
        await client.connect()
        await client.reset()
        assert client.get_state() == ConnectionState()
        count = len(seen)
        await client.connect()
        assert seen[count:] == [
            ConnectionStateType.TRYING_TO_CONNECT,
            ConnectionStateType.CONNECTED,
        ]
        await client.reset()