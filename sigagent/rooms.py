"""Room creation parameters, SDP offers and WebRTC errors."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional


class WebRTCError(Exception):
    """Base class for WebRTC failures."""

    template = "{}"

    def __init__(self, detail: str = "") -> None:
        self.detail = str(detail)
        super().__init__(self.template.format(self.detail))


class InitializationError(WebRTCError):
    template = "WebRTC initialization failed: {}"


class OfferCreationError(WebRTCError):
    template = "Failed to create offer: {}"


class SetLocalDescriptionError(WebRTCError):
    template = "Failed to set local description: {}"


class AddTrackError(WebRTCError):
    template = "Failed to add track: {}"


class CloseConnectionError(WebRTCError):
    template = "Failed to close connection: {}"


class WebRTCInvalidConfigError(WebRTCError):
    template = "Invalid configuration: {}"


class MediaEngineError(WebRTCError):
    template = "Media engine error: {}"


class PeerConnectionError(WebRTCError):
    template = "Peer connection error: {}"


def _require_str(data: Mapping[str, Any], name: str) -> str:
    if name not in data:
        raise ValueError(f"missing field `{name}`")
    value = data[name]
    if not isinstance(value, str):
        raise ValueError(f"field `{name}` must be a string")
    return value


@dataclass
class SDPOffer:
    """A session description and its type, such as "offer"."""

    sdp: str
    type_: str

    def to_dict(self) -> dict[str, Any]:
        return {"sdp": self.sdp, "type_": self.type_}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SDPOffer:
        return cls(_require_str(data, "sdp"), _require_str(data, "type_"))


@dataclass
class RoomCreationParams:
    """What is needed to ask the signal manager for a new room."""

    client_id: str
    auth_token: str
    role: str
    offer_sdp: Optional[str] = None
    metadata: Optional[Any] = None

    def with_offer_sdp(self, offer_sdp: str) -> RoomCreationParams:
        return replace(self, offer_sdp=offer_sdp)

    def with_metadata(self, metadata: Any) -> RoomCreationParams:
        return replace(self, metadata=metadata)

    def to_dict(self) -> dict[str, Any]:
        return {
            "client_id": self.client_id,
            "auth_token": self.auth_token,
            "role": self.role,
            "offer_sdp": self.offer_sdp,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RoomCreationParams:
        offer_sdp = data.get("offer_sdp")
        if offer_sdp is not None and not isinstance(offer_sdp, str):
            raise ValueError("field `offer_sdp` must be a string")
        return cls(
            _require_str(data, "client_id"),
            _require_str(data, "auth_token"),
            _require_str(data, "role"),
            offer_sdp,
            data.get("metadata"),
        )