"""Connection settings for the signal manager client."""

from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping

from .errors import InvalidConfigError

_MAX_PORT = 0xFFFF


@dataclass
class SignalManagerConfig:
    """Where the signal manager lives and how the client talks to it."""

    url: str = "127.0.0.1"
    port: int = 8080
    client_id: str = "user_agent_client"
    auth_token: str = "token"
    version: str = "1.0.0"
    heartbeat_interval: int = 5
    timeout: int = 10
    command_timeout: int = 15
    reconnect_attempts: int = 5
    reconnect_delay: int = 1

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if f.type is int:
                if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                    raise InvalidConfigError(f"`{f.name}` must be a non-negative integer")
            elif not isinstance(value, f.type):
                raise InvalidConfigError(f"`{f.name}` must be a {f.type.__name__}")
        if self.port > _MAX_PORT:
            raise InvalidConfigError(f"port {self.port} is out of range")

    def websocket_url(self) -> str:
        """The ws:// address of the signal manager."""
        return f"ws://{self.url}:{self.port}"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SignalManagerConfig":
        """Build a config from a mapping holding every field; extra keys are ignored."""
        missing = [f.name for f in fields(cls) if f.name not in data]
        if missing:
            raise InvalidConfigError(f"missing field `{missing[0]}`")
        return cls(**{f.name: data[f.name] for f in fields(cls)})