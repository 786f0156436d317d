"""Connection state and the binary framed message protocol of the signal manager."""

import json
import struct
import time
import types
from dataclasses import asdict, dataclass, fields
from enum import Enum, IntEnum
from typing import Any, Optional, Union, get_args, get_origin
from uuid import UUID, uuid4

from .errors import ProtocolError, SerializationError

START_BYTE = 0xAA
PROTOCOL_VERSION = "1.0.0"

_HEADER = struct.Struct(">BB16sBH")
_MIN_FRAME_LEN = 22
_MAX_PAYLOAD_LEN = 0xFFFF


@dataclass(frozen=True)
class RetryIntervals:
    """Reconnection delays in milliseconds."""

    immediate: int
    short: int
    medium: int
    long: int
    max: int


RETRY_INTERVALS = RetryIntervals(immediate=0, short=10_000, medium=30_000, long=60_000, max=60_000)


class ConnectionStateType(Enum):
    DISCONNECTED_NOT_TO_CONNECT = "disconnected_not_to_connect"
    TRYING_TO_CONNECT = "trying_to_connect"
    CONNECTED = "connected"
    WAS_CONNECTED_TRYING_TO_RECONNECT = "was_connected_trying_to_reconnect"
    DISCONNECTING_DISCONNECT_REQUESTED = "disconnecting_disconnect_requested"

    def as_str(self) -> str:
        return self.value


def _is_union(hint: Any) -> bool:
    return get_origin(hint) in (Union, types.UnionType)


def _convert(value: Any, hint: Any, name: str) -> Any:
    """Check a decoded JSON value against a type hint and coerce enums."""
    if hint is Any:
        return value
    if _is_union(hint):
        if value is None:
            return None
        inner = next(arg for arg in get_args(hint) if arg is not type(None))
        return _convert(value, inner, name)
    if get_origin(hint) is list:
        if not isinstance(value, list):
            raise ProtocolError(f"invalid type for `{name}`: expected a list")
        (item,) = get_args(hint)
        return [_convert(v, item, name) for v in value]
    if isinstance(hint, type) and issubclass(hint, Enum):
        try:
            return hint(value)
        except ValueError:
            raise ProtocolError(f"unknown variant {value!r} for `{name}`") from None
    if hint is bool:
        if not isinstance(value, bool):
            raise ProtocolError(f"invalid type for `{name}`: expected a boolean")
        return value
    if hint is int:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ProtocolError(f"invalid type for `{name}`: expected an unsigned integer")
        return value
    if hint is str:
        if not isinstance(value, str):
            raise ProtocolError(f"invalid type for `{name}`: expected a string")
        return value
    return value


def _is_optional(hint: Any) -> bool:
    return _is_union(hint) and type(None) in get_args(hint)


def _from_mapping(cls: type, data: Any) -> Any:
    """Build a dataclass from a decoded JSON object; absent optional fields become None."""
    if not isinstance(data, dict):
        raise ProtocolError(f"expected an object for {cls.__name__}")
    kwargs = {}
    for f in fields(cls):
        hint = f.type
        if f.name in data:
            kwargs[f.name] = _convert(data[f.name], hint, f.name)
        elif _is_optional(hint):
            kwargs[f.name] = None
        else:
            raise ProtocolError(f"missing field `{f.name}`")
    return cls(**kwargs)


@dataclass
class ConnectionState:
    """A snapshot of the client's connection to the signal manager."""

    state_type: ConnectionStateType = ConnectionStateType.DISCONNECTED_NOT_TO_CONNECT
    is_connected: bool = False
    is_connecting: bool = False
    is_reconnecting: bool = False
    last_heartbeat: int = 0
    reconnect_attempts: int = 0
    current_retry_interval: int = 0
    next_retry_time: Optional[int] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["state_type"] = self.state_type.as_str()
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "ConnectionState":
        return _from_mapping(cls, data)


class MessageType(IntEnum):
    CONNECT = 0x01
    CONNECT_ACK = 0x02
    DISCONNECT = 0x03
    HEARTBEAT = 0x04
    HEARTBEAT_ACK = 0x05
    SIGNAL_OFFER = 0x10
    SIGNAL_ANSWER = 0x11
    SIGNAL_ICE_CANDIDATE = 0x12
    REGISTER = 0x20
    REGISTER_ACK = 0x21
    UNREGISTER = 0x22
    UNREGISTER_ACK = 0x23
    WEBRTC_ROOM_CREATE = 0x30
    WEBRTC_ROOM_CREATE_ACK = 0x31
    WEBRTC_ROOM_JOIN = 0x32
    WEBRTC_ROOM_JOIN_ACK = 0x33
    WEBRTC_ROOM_LEAVE = 0x34
    WEBRTC_ROOM_LEAVE_ACK = 0x35
    ERROR = 0xFF

    @classmethod
    def from_u8(cls, value: int) -> "MessageType":
        try:
            return cls(value)
        except ValueError:
            raise ProtocolError("Unknown message type") from None


class PayloadType(IntEnum):
    BINARY = 0x01
    JSON = 0x02
    TEXT = 0x03
    PROTOBUF = 0x04
    CBOR = 0x05

    @classmethod
    def from_u8(cls, value: int) -> "PayloadType":
        try:
            return cls(value)
        except ValueError:
            raise ProtocolError("Unknown payload type") from None


@dataclass
class ConnectPayload:
    client_id: str
    auth_token: str


@dataclass
class ConnectAckPayload:
    status: str
    session_id: str


@dataclass
class DisconnectPayload:
    client_id: str
    reason: str


@dataclass
class HeartbeatPayload:
    timestamp: int


@dataclass
class HeartbeatAckPayload:
    timestamp: int


@dataclass
class SignalPayload:
    target_client_id: str
    signal_data: str


@dataclass
class RegisterPayload:
    version: str
    client_id: str
    auth_token: str
    capabilities: Optional[list[str]] = None
    metadata: Optional[Any] = None


@dataclass
class RegisterAckPayload:
    version: str
    status: int
    message: Optional[str] = None
    client_id: Optional[str] = None
    session_id: Optional[str] = None


@dataclass
class UnregisterPayload:
    version: str
    client_id: str
    auth_token: str


@dataclass
class UnregisterAckPayload:
    version: str
    status: int
    message: Optional[str] = None
    client_id: Optional[str] = None


@dataclass
class ErrorPayload:
    error_code: int
    error_message: str


@dataclass
class WebRTCRoomCreatePayload:
    version: str
    client_id: str
    auth_token: str
    role: str
    offer_sdp: Optional[str] = None
    metadata: Optional[Any] = None


@dataclass
class WebRTCRoomCreateAckPayload:
    version: str
    status: int
    message: Optional[str] = None
    room_id: Optional[str] = None
    session_id: Optional[str] = None
    app_id: Optional[str] = None
    stun_url: Optional[str] = None
    connection_info: Optional[Any] = None


class PayloadKind(Enum):
    """The payload variants; the value is the JSON tag on the wire."""

    CONNECT = "Connect"
    CONNECT_ACK = "ConnectAck"
    DISCONNECT = "Disconnect"
    HEARTBEAT = "Heartbeat"
    HEARTBEAT_ACK = "HeartbeatAck"
    SIGNAL_OFFER = "SignalOffer"
    SIGNAL_ANSWER = "SignalAnswer"
    SIGNAL_ICE_CANDIDATE = "SignalIceCandidate"
    REGISTER = "Register"
    REGISTER_ACK = "RegisterAck"
    UNREGISTER = "Unregister"
    UNREGISTER_ACK = "UnregisterAck"
    WEBRTC_ROOM_CREATE = "WebRTCRoomCreate"
    WEBRTC_ROOM_CREATE_ACK = "WebRTCRoomCreateAck"
    ERROR = "Error"


_PAYLOAD_CLASSES: dict[PayloadKind, type] = {
    PayloadKind.CONNECT: ConnectPayload,
    PayloadKind.CONNECT_ACK: ConnectAckPayload,
    PayloadKind.DISCONNECT: DisconnectPayload,
    PayloadKind.HEARTBEAT: HeartbeatPayload,
    PayloadKind.HEARTBEAT_ACK: HeartbeatAckPayload,
    PayloadKind.SIGNAL_OFFER: SignalPayload,
    PayloadKind.SIGNAL_ANSWER: SignalPayload,
    PayloadKind.SIGNAL_ICE_CANDIDATE: SignalPayload,
    PayloadKind.REGISTER: RegisterPayload,
    PayloadKind.REGISTER_ACK: RegisterAckPayload,
    PayloadKind.UNREGISTER: UnregisterPayload,
    PayloadKind.UNREGISTER_ACK: UnregisterAckPayload,
    PayloadKind.WEBRTC_ROOM_CREATE: WebRTCRoomCreatePayload,
    PayloadKind.WEBRTC_ROOM_CREATE_ACK: WebRTCRoomCreateAckPayload,
    PayloadKind.ERROR: ErrorPayload,
}


@dataclass(frozen=True)
class Payload:
    """A tagged payload, encoded as a single-key JSON object."""

    kind: PayloadKind
    data: Any

    def __post_init__(self) -> None:
        expected = _PAYLOAD_CLASSES[self.kind]
        if not isinstance(self.data, expected):
            raise TypeError(
                f"{self.kind.value} payload needs {expected.__name__}, got {type(self.data).__name__}"
            )

    def to_json(self) -> str:
        return json.dumps(
            {self.kind.value: asdict(self.data)}, separators=(",", ":"), ensure_ascii=False
        )

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "Payload":
        try:
            decoded = json.loads(data)
        except (ValueError, UnicodeDecodeError) as exc:
            raise ProtocolError(f"invalid payload JSON: {exc}") from None
        if not isinstance(decoded, dict) or len(decoded) != 1:
            raise ProtocolError("payload must be an object with exactly one variant")
        ((tag, body),) = decoded.items()
        try:
            kind = PayloadKind(tag)
        except ValueError:
            raise ProtocolError(f"unknown payload variant {tag!r}") from None
        return cls(kind, _from_mapping(_PAYLOAD_CLASSES[kind], body))


@dataclass
class Message:
    """One protocol message: type, id, payload encoding and payload."""

    message_type: MessageType
    uuid: UUID
    payload_type: PayloadType
    payload: Payload

    @classmethod
    def new(cls, message_type: MessageType, payload: Payload) -> "Message":
        return cls(message_type, uuid4(), PayloadType.JSON, payload)

    @classmethod
    def connect(cls, client_id: str, auth_token: str) -> "Message":
        return cls.new(
            MessageType.CONNECT,
            Payload(PayloadKind.CONNECT, ConnectPayload(client_id, auth_token)),
        )

    @classmethod
    def register(cls, client_id: str, auth_token: str) -> "Message":
        return cls.new(
            MessageType.REGISTER,
            Payload(PayloadKind.REGISTER, RegisterPayload(PROTOCOL_VERSION, client_id, auth_token)),
        )

    @classmethod
    def unregister(cls, client_id: str) -> "Message":
        return cls.new(
            MessageType.UNREGISTER,
            Payload(PayloadKind.UNREGISTER, UnregisterPayload(PROTOCOL_VERSION, client_id, "")),
        )

    @classmethod
    def heartbeat(cls) -> "Message":
        now_ms = int(time.time() * 1000)
        return cls.new(MessageType.HEARTBEAT, Payload(PayloadKind.HEARTBEAT, HeartbeatPayload(now_ms)))

    @classmethod
    def room_create(cls, payload: WebRTCRoomCreatePayload) -> "Message":
        return cls.new(MessageType.WEBRTC_ROOM_CREATE, Payload(PayloadKind.WEBRTC_ROOM_CREATE, payload))

    def to_binary(self) -> bytes:
        """Encode as start byte, type, 16-byte UUID, payload type, big-endian length, JSON."""
        body = self.payload.to_json().encode("utf-8")
        if len(body) > _MAX_PAYLOAD_LEN:
            raise SerializationError(f"payload of {len(body)} bytes does not fit in a frame")
        header = _HEADER.pack(
            START_BYTE, int(self.message_type), self.uuid.bytes, int(self.payload_type), len(body)
        )
        return header + body

    @classmethod
    def from_binary(cls, data: bytes) -> "Message":
        data = bytes(data)
        if len(data) < _MIN_FRAME_LEN:
            raise ProtocolError("Message too short")
        start, type_byte, uuid_bytes, payload_type_byte, length = _HEADER.unpack_from(data)
        if start != START_BYTE:
            raise ProtocolError("Invalid start byte")
        message_type = MessageType.from_u8(type_byte)
        message_uuid = UUID(bytes=uuid_bytes)
        payload_type = PayloadType.from_u8(payload_type_byte)
        end = _HEADER.size + length
        if len(data) < end:
            raise ProtocolError("Message length mismatch")
        payload = Payload.from_json(data[_HEADER.size:end])
        return cls(message_type, message_uuid, payload_type, payload)