import pytest

from sigagent.config import SignalManagerConfig
from sigagent.errors import InvalidConfigError


def test_defaults():
    cfg = SignalManagerConfig()
    assert cfg.url == "127.0.0.1"
    assert cfg.port == 8080
    assert cfg.client_id == "user_agent_client"
    assert cfg.version == "1.0.0"
    assert cfg.heartbeat_interval == 5
    assert cfg.timeout == 10
    assert cfg.command_timeout == 15
    assert cfg.reconnect_attempts == 5
    assert cfg.reconnect_delay == 1


def test_positional_construction_keeps_other_defaults():
    cfg = SignalManagerConfig("10.0.0.1", 9000, "client_a", "token")
    assert (cfg.url, cfg.port, cfg.client_id, cfg.auth_token) == ("10.0.0.1", 9000, "client_a", "token")
    assert cfg.command_timeout == SignalManagerConfig().command_timeout
    assert cfg.version == SignalManagerConfig().version


def test_websocket_url_default():
    assert SignalManagerConfig().websocket_url() == "ws://127.0.0.1:8080"


def test_websocket_url_uses_host_and_port():
    cfg = SignalManagerConfig(url="signal.example.com", port=443)
    url = cfg.websocket_url()
    assert url.startswith("ws://")
    assert url.endswith(":443")
    assert "signal.example.com" in url


def test_dict_round_trip():
    cfg = SignalManagerConfig("host", 1234, "c1", "token", reconnect_attempts=9)
    assert SignalManagerConfig.from_dict(cfg.to_dict()) == cfg


def test_from_dict_ignores_unknown_keys():
    data = SignalManagerConfig().to_dict()
    data["extra"] = "ignored"
    assert SignalManagerConfig.from_dict(data) == SignalManagerConfig()


def test_from_dict_missing_field():
    data = SignalManagerConfig().to_dict()
    del data["port"]
    with pytest.raises(InvalidConfigError):
        SignalManagerConfig.from_dict(data)


@pytest.mark.parametrize("port", [-1, 65536, "8080", True])
def test_invalid_port(port):
    with pytest.raises(InvalidConfigError):
        SignalManagerConfig(port=port)


def test_invalid_url_type():
    with pytest.raises(InvalidConfigError):
        SignalManagerConfig(url=None)