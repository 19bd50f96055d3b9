import pytest

from redis_console import ConnectionConfig, StaticConfigProvider, create_console

from ._fake_redis import FakeRedis, cluster_nodes_text


STANDALONE_ID = "standalone"
CLUSTER_ID = "cluster"


@pytest.fixture
def fake_redis(mocker):
    fake = FakeRedis()
    mocker.patch("redis_console.executor.create_connection", new=fake.create_connection)
    return fake


@pytest.fixture
def standalone_node(fake_redis):
    return fake_redis.add_node("10.0.0.1", 6379)


@pytest.fixture
def cluster_nodes(fake_redis):
    """Three masters A, B, C and replica of A"""

    a = fake_redis.add_node("10.0.0.1", 7000)
    b = fake_redis.add_node("10.0.0.2", 7001)
    c = fake_redis.add_node("10.0.0.3", 7002)
    topology = cluster_nodes_text(
        [
            ("a" * 40, "10.0.0.1:7000", "myself,master"),
            ("b" * 40, "10.0.0.2:7001", "master"),
            ("c" * 40, "10.0.0.3:7002", "master"),
            ("d" * 40, "10.0.0.4:7003", "slave"),
        ]
    )
    for node in (a, b, c):
        node.cluster_nodes = topology
    return a, b, c


@pytest.fixture
def config_provider():
    return StaticConfigProvider(
        {
            STANDALONE_ID: ConnectionConfig("10.0.0.1", 6379),
            CLUSTER_ID: ConnectionConfig("10.0.0.1", 7000, cluster_enabled=True),
        }
    )


@pytest.fixture
def console(fake_redis, config_provider):
    return create_console(config_provider)
