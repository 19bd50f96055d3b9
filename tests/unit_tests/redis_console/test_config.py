import pytest

from redis_console.config import StaticConfigProvider
from redis_console.errors import ConfigNotFoundError
from redis_console.structs import Address, ConnectionConfig


def test_from_row():
    config = ConnectionConfig.from_row(
        {
            "id": "env-1",
            "name": "Production",
            "host": "redis.local",
            "port": "6380",
            "username": "",
            "password": "secret",
            "tls": 1,
            "cluster": 0,
        }
    )

    assert config == ConnectionConfig(
        host="redis.local",
        port=6380,
        username=None,
        password="secret",
        tls_enabled=True,
        cluster_enabled=False,
    )
    assert config.addr == Address("redis.local", 6380)


def test_config_repr_hides_password():
    config = ConnectionConfig("redis.local", 6379, password="secret")

    assert "secret" not in repr(config)


def test_static_provider():
    provider = StaticConfigProvider(
        {
            "a": ConnectionConfig("10.0.0.1", 6379),
            "b": {"host": "10.0.0.2", "port": 7000, "cluster": 1},
        }
    )

    assert len(provider) == 2
    assert sorted(provider) == ["a", "b"]
    assert "a" in provider
    assert provider.get_config("a").host == "10.0.0.1"
    assert provider.get_config("b").cluster_enabled is True


def test_static_provider__not_found():
    provider = StaticConfigProvider()

    with pytest.raises(ConfigNotFoundError) as exc_info:
        provider.get_config("missing")

    assert exc_info.value.__cause__ is None
    assert exc_info.value.connection_id == "missing"


def test_static_provider__set_remove():
    provider = StaticConfigProvider()

    provider.set_config("a", ConnectionConfig("10.0.0.1", 6379))
    assert "a" in provider

    provider.remove_config("a")
    provider.remove_config("a")
    assert "a" not in provider
