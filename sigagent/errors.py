"""Errors raised by the signal manager client and its wire protocol."""

from __future__ import annotations


class SignalManagerError(Exception):
    """Base class for every signal manager failure."""

    template = "{}"

    def __init__(self, detail: str = "") -> None:
        self.detail = str(detail)
        super().__init__(self.template.format(self.detail))


class WebSocketConnectionError(SignalManagerError):
    """The WebSocket connection broke down."""

    template = "WebSocket connection failed: {}"


class WebSocketConnectError(SignalManagerError):
    """The WebSocket connection could not be opened."""

    template = "WebSocket connect failed: {}"


class WebSocketSendError(SignalManagerError):
    """A frame could not be sent."""

    template = "WebSocket send failed: {}"


class WebSocketReceiveError(SignalManagerError):
    """A frame could not be received."""

    template = "WebSocket receive failed: {}"


class SerializationError(SignalManagerError):
    """A message could not be encoded."""

    template = "Message serialization failed: {}"


class DeserializationError(SignalManagerError):
    """A message could not be decoded."""

    template = "Message deserialization failed: {}"


class InvalidMessageError(SignalManagerError):
    """A message had an unexpected shape."""

    template = "Invalid message format: {}"


class SignalTimeoutError(SignalManagerError):
    """An operation did not finish in time."""

    template = "Connection timeout: {}"


class AuthenticationError(SignalManagerError):
    """The server rejected the credentials."""

    template = "Authentication failed: {}"


class RegistrationError(SignalManagerError):
    """The server rejected the registration."""

    template = "Registration failed: {}"


class RoomCreationError(SignalManagerError):
    """The server could not create the room."""

    template = "Room creation failed: {}"


class NotConnectedError(SignalManagerError):
    """An operation needed a connection that is not open."""

    template = "Not connected"


class AlreadyConnectedError(SignalManagerError):
    """A connection is already open."""

    template = "Already connected"


class InvalidConfigError(SignalManagerError):
    """The configuration is not usable."""

    template = "Invalid configuration: {}"


class ProtocolError(SignalManagerError, ValueError):
    """A binary frame or its JSON payload is malformed."""

    template = "{}"