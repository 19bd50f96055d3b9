import logging
import os
import uuid
from typing import Optional

import pytest

from redis_console import ConnectionConfig, StaticConfigProvider, create_console


STANDALONE_ID = "standalone"
CLUSTER_ID = "cluster"


def get_config(addr_str: str, *, cluster: bool) -> Optional[ConnectionConfig]:
    addr_str = addr_str.strip()
    if not addr_str:
        return None

    host, _, port = addr_str.rpartition(":")
    return ConnectionConfig(
        host=host,
        port=int(port),
        password=os.environ.get("REDIS_CONSOLE_PASSWORD") or None,
        cluster_enabled=cluster,
    )


STANDALONE_CONFIG = get_config(os.environ.get("REDIS_CONSOLE_STANDALONE_ADDR", ""), cluster=False)
CLUSTER_CONFIG = get_config(os.environ.get("REDIS_CONSOLE_CLUSTER_ADDR", ""), cluster=True)


@pytest.fixture
def key_prefix():
    return f"redis_console_test:{uuid.uuid4().hex}:"


async def _make_console(connection_id, config, key_prefix):
    console = create_console(StaticConfigProvider({connection_id: config}))

    yield console

    try:
        async for key in console.iter_keys(f"{key_prefix}*", connection_id):
            await console.execute_following_redirect(f"DEL {key}", connection_id)
    except Exception:
        logging.exception("Unable to cleanup test keys")


@pytest.fixture
async def standalone_console(key_prefix):
    if STANDALONE_CONFIG is None:
        pytest.skip("Environment variable REDIS_CONSOLE_STANDALONE_ADDR is not defined")

    async for console in _make_console(STANDALONE_ID, STANDALONE_CONFIG, key_prefix):
        yield console


@pytest.fixture
async def cluster_console(key_prefix):
    if CLUSTER_CONFIG is None:
        pytest.skip("Environment variable REDIS_CONSOLE_CLUSTER_ADDR is not defined")

    async for console in _make_console(CLUSTER_ID, CLUSTER_CONFIG, key_prefix):
        yield console
