# sigagent

An asyncio client for a signalling service that speaks a small binary
protocol over WebSocket. It connects and registers a client, asks the
service to create WebRTC rooms, and reports the state of its connection.

## Installation

```
pip install sigagent
```

## Modules

| module               | contents                                                        |
|----------------------|-----------------------------------------------------------------|
| `sigagent.protocol`  | `Message`, `MessageType`, `PayloadType`, `Payload`, `PayloadKind`, the payload dataclasses, `ConnectionState`, `ConnectionStateType`, `RETRY_INTERVALS` |
| `sigagent.config`    | `SignalManagerConfig`                                           |
| `sigagent.errors`    | `SignalManagerError` and its subclasses                          |
| `sigagent.websocket` | `WebSocketClient`, the background reader/writer for frames      |
| `sigagent.client`    | `SignalManagerClient`                                           |
| `sigagent.rooms`     | `SDPOffer`, `RoomCreationParams`, the `WebRTCError` family       |
| `sigagent.commands`  | one shared client driven by plain async functions                |

## Wire format

Each frame sent or received is laid out as follows:

| bytes | field                                 |
|-------|---------------------------------------|
| 1     | start byte `0xAA`                     |
| 1     | message type (`MessageType`)          |
| 16    | message UUID                          |
| 1     | payload type (`PayloadType`)          |
| 2     | payload length, big endian            |
| n     | payload, JSON                         |

The JSON payload is an object with a single key, the variant name from
`PayloadKind` (for example `"Connect"`), whose value holds the payload's
fields. `Message.to_binary()` encodes a frame and raises
`SerializationError` if the payload is longer than 65535 bytes.
`Message.from_binary()` decodes one and raises `ProtocolError` for a short
frame, a wrong start byte, an unknown message or payload type, a length
that runs past the data, or a payload that does not match its variant.

```python
from sigagent.protocol import Message, MessageType

msg = Message.connect("client-1", "token")
frame = msg.to_binary()
assert frame[0] == 0xAA and frame[1] == MessageType.CONNECT
assert Message.from_binary(frame).uuid == msg.uuid
```

`Message.new()` gives a message a fresh UUID and the JSON payload type;
`connect()`, `register()`, `unregister()`, `heartbeat()` and
`room_create()` build the common messages.

## Configuration

`SignalManagerConfig` holds the host (`url`), `port`, `client_id`,
`auth_token` and a few timing fields, with defaults of `127.0.0.1` and
port `8080`. Integer fields must be non-negative and the port at most
65535; otherwise `InvalidConfigError` is raised. `websocket_url()` gives
`ws://host:port`, and `to_dict()` / `from_dict()` convert to and from a
mapping.

## Talking to the service

```python
import asyncio
from sigagent.config import SignalManagerConfig
from sigagent.client import SignalManagerClient
from sigagent.protocol import WebRTCRoomCreatePayload

async def main():
    config = SignalManagerConfig(url="127.0.0.1", port=8080,
                                 client_id="client-1", auth_token="token")
    client = SignalManagerClient(config)
    client.set_state_callback(lambda state: print(state.state_type.as_str()))
    await client.connect()
    room_id, session_id = await client.send_room_create(
        WebRTCRoomCreatePayload(version="1.0.0", client_id="client-1",
                                auth_token="token", role="sender"))
    print(room_id, session_id)
    await client.disconnect()

asyncio.run(main())
```

`connect()` opens the socket at `config.websocket_url()` and queues the
CONNECT and REGISTER messages; if already connected it does nothing, and
if the socket cannot be opened it raises `WebSocketConnectError`.
`send_room_create()` waits for a room-create acknowledgement and returns
its `(room_id, session_id)`; it raises `SignalTimeoutError` after 30
seconds (set `command_timeout=` on the client to change this) and
`NotConnectedError` when there is no connection. `disconnect()` sends
UNREGISTER and closes the socket; `reset()` closes the socket and returns
to the initial state while keeping the state callback. `get_state()`
returns a copy of the current `ConnectionState`. Every error raised by the
signalling code derives from `SignalManagerError`.

## Room parameters

`sigagent.rooms` holds `SDPOffer` and `RoomCreationParams`, each with
`to_dict()` and `from_dict()`:

```python
from sigagent.rooms import RoomCreationParams

params = (RoomCreationParams("client-1", "token", "sender")
          .with_offer_sdp("v=0\r\n...")
          .with_metadata({"note": "demo"}))
```

`with_offer_sdp()` and `with_metadata()` return new objects and leave the
original unchanged.

## Application commands

`sigagent.commands` keeps a single shared client for an application.
`await init_signal_manager(url, port, client_id, auth_token, emit)`
creates it and raises `CommandError` if one already exists. The
`emit(event, data)` callable receives `signal-manager:initialized`, then on
each state change `signal-manager:state-changed` with the state as a dict,
followed by one of `signal-manager:connecting`, `signal-manager:connected`,
`signal-manager:disconnecting` or `signal-manager:disconnected`.

After that, `connect_signal_manager()`,
`send_room_create(version, client_id, auth_token, role, offer_sdp, metadata)`,
`get_signal_manager_state()`, `disconnect_signal_manager()` and
`reset_signal_manager()` act on the shared client. Disconnecting and
resetting drop the shared client, so it can be initialized again;
resetting when there is none does nothing. Failures are raised as
`CommandError` with a message meant for display. `greet(name)` returns a
greeting string.

## What it does not do

- It does not generate SDP offers or open peer connections: `SDPOffer` and
  `RoomCreationParams` only carry an offer produced elsewhere, and the
  `WebRTCError` classes are there for code that does.
- It does not reconnect on its own or send heartbeats on a timer;
  `RETRY_INTERVALS` and the reconnecting state are defined but nothing in
  the package acts on them.
- It is a client only: there is no signalling server and no user interface.

## Tests

```
pip install -e .[test]
python -m pytest
```