import asyncio
from functools import partial
from typing import Dict, Optional, Union

from redis_console.command import Command, OutputMode
from redis_console.errors import KeyNotFoundError, MovedError
from redis_console.executor import CommandExecutor, redirect_node
from redis_console.log import logger
from redis_console.structs import Address, ClusterNode, KeyRecord
from redis_console.topology import ClusterTopologyResolver
from redis_console.util import RedirInfo, gather_bounded


__all__ = ("KeyLocator",)


ProbeResult = Union[bool, RedirInfo]


class KeyLocator:
    """Finds node owning a key and reads typed key record from it"""

    MAX_CONCURRENCY = 16
    LIST_RANGE_LIMIT = 1000
    SET_SCAN_COUNT = 1000

    def __init__(
        self,
        executor: CommandExecutor,
        resolver: ClusterTopologyResolver,
        *,
        max_concurrency: Optional[int] = None,
        list_range_limit: Optional[int] = None,
        set_scan_count: Optional[int] = None,
    ) -> None:
        if max_concurrency is None:
            max_concurrency = self.MAX_CONCURRENCY
        elif max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._max_concurrency = max_concurrency

        if list_range_limit is None:
            list_range_limit = self.LIST_RANGE_LIMIT
        elif list_range_limit < 1:
            raise ValueError("list_range_limit must be >= 1")
        self._list_range_limit = list_range_limit

        if set_scan_count is None:
            set_scan_count = self.SET_SCAN_COUNT
        elif set_scan_count < 1:
            raise ValueError("set_scan_count must be >= 1")
        self._set_scan_count = set_scan_count

        self._executor = executor
        self._resolver = resolver

    async def locate(self, key: str, connection_id: str) -> KeyRecord:
        if not self._resolver.is_cluster_mode(connection_id):
            if not await self._exists(key, connection_id):
                raise KeyNotFoundError(key)
            return await self._fetch_record(key, connection_id)

        nodes = await self._resolver.resolve_nodes(connection_id)
        probes = await gather_bounded(
            [partial(self._probe, key, connection_id, node) for node in nodes],
            self._max_concurrency,
        )

        # redirect target address -> key exists on target
        redirects: Dict[Address, bool] = {}

        for node, probe in zip(nodes, probes):
            if isinstance(probe, BaseException):
                logger.info("Error checking key %r on node %s: %r", key, node, probe)
                continue

            target: Optional[ClusterNode] = None
            if isinstance(probe, RedirInfo):
                target = redirect_node(probe, node)
                logger.debug("Got MOVED for key %r on node %s -> %s", key, node, target.addr)
                if target.addr not in redirects:
                    redirects[target.addr] = await self._probe_redirect(
                        key, connection_id, target, probe
                    )
                if not redirects[target.addr]:
                    continue
            elif not probe:
                continue

            owner = target if target is not None else node
            try:
                record = await self._fetch_record(key, connection_id, owner)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.info("Error reading key %r on node %s: %r", key, owner, e)
                continue

            logger.info("Found key %r on node %s", key, owner.node_id)
            record.node_id = owner.node_id
            return record

        raise KeyNotFoundError(key)

    async def key_exists(self, key: str, connection_id: str) -> bool:
        try:
            await self.locate(key, connection_id)
        except KeyNotFoundError:
            return False
        return True

    async def _exists(
        self,
        key: str,
        connection_id: str,
        node: Optional[ClusterNode] = None,
    ) -> bool:
        result = await self._executor.execute(Command("EXISTS", (key,)), connection_id, node)
        try:
            return int(result.strip()) == 1
        except ValueError:
            return False

    async def _probe(self, key: str, connection_id: str, node: ClusterNode) -> ProbeResult:
        try:
            return await self._exists(key, connection_id, node)
        except MovedError as e:
            return e.info

    async def _probe_redirect(
        self,
        key: str,
        connection_id: str,
        target: ClusterNode,
        info: RedirInfo,
    ) -> bool:
        logger.info("Redirecting to slot %d owner %s", info.slot_id, target.addr)
        try:
            return await self._exists(key, connection_id, target)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.info("Error checking key %r on redirected node %s: %r", key, target, e)
            return False

    async def _fetch_record(
        self,
        key: str,
        connection_id: str,
        node: Optional[ClusterNode] = None,
    ) -> KeyRecord:
        execute = partial(self._executor.execute, connection_id=connection_id, node=node)

        key_type = (await execute(Command("TYPE", (key,)))).strip()
        if key_type == "none":
            # removed or expired after EXISTS
            raise KeyNotFoundError(key)

        ttl = int((await execute(Command("TTL", (key,)))).strip())

        value: str
        if key_type == "string":
            value = await execute(Command("GET", (key,), output=OutputMode.RAW))
        elif key_type == "hash":
            value = await execute(Command("HGETALL", (key,)))
        elif key_type == "list":
            value = await execute(
                Command(
                    "LRANGE",
                    (key, 0, self._list_range_limit - 1),
                    output=OutputMode.RAW,
                )
            )
        elif key_type == "set":
            output = await execute(
                Command(
                    "SSCAN",
                    (key, 0, "COUNT", self._set_scan_count),
                    output=OutputMode.RAW,
                )
            )
            # first line is next cursor
            _, _, value = output.partition("\n")
        elif key_type == "zset":
            value = await execute(Command("ZRANGE", (key, 0, -1, "WITHSCORES")))
        else:
            value = f"Unsupported type: {key_type}"

        return KeyRecord(key=key, type=key_type, value=value, ttl=ttl)
