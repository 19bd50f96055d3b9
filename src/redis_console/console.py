from typing import AsyncIterator, List, Optional, Sequence

from redis_console.abc import AbcConfigProvider
from redis_console.batch import BatchExecutor
from redis_console.executor import CommandExecutor
from redis_console.locator import KeyLocator
from redis_console.scan import ScanAggregator
from redis_console.structs import ClusterNode, KeyRecord, ScanResult
from redis_console.topology import ClusterTopologyResolver
from redis_console.typedef import CommandLike


__all__ = ("RedisConsole",)


class RedisConsole:
    """Entry point for route layer.

    Holds no per-call state: every method takes connection id and
    all pagination continuity is returned to the caller.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        resolver: ClusterTopologyResolver,
        scanner: ScanAggregator,
        locator: KeyLocator,
        batch_executor: BatchExecutor,
    ) -> None:
        self._executor = executor
        self._resolver = resolver
        self._scanner = scanner
        self._locator = locator
        self._batch_executor = batch_executor

    def __repr__(self) -> str:
        return f"<{type(self).__name__} provider={self.config_provider!r}>"

    @property
    def config_provider(self) -> AbcConfigProvider:
        return self._executor.config_provider

    @property
    def executor(self) -> CommandExecutor:
        return self._executor

    async def execute(
        self,
        command: CommandLike,
        connection_id: str,
        node: Optional[ClusterNode] = None,
    ) -> str:
        return await self._executor.execute(command, connection_id, node)

    async def execute_following_redirect(
        self,
        command: CommandLike,
        connection_id: str,
        node: Optional[ClusterNode] = None,
    ) -> str:
        return await self._executor.execute_following_redirect(command, connection_id, node)

    async def execute_batch(
        self,
        commands: Sequence[CommandLike],
        connection_id: str,
        node: Optional[ClusterNode] = None,
    ) -> List[str]:
        return await self._batch_executor.execute_batch(commands, connection_id, node)

    def is_cluster_mode(self, connection_id: str) -> bool:
        return self._resolver.is_cluster_mode(connection_id)

    async def resolve_nodes(self, connection_id: str) -> List[ClusterNode]:
        return await self._resolver.resolve_nodes(connection_id)

    async def scan(
        self,
        pattern: str,
        cursors: Optional[Sequence[str]],
        count: int,
        connection_id: str,
    ) -> ScanResult:
        return await self._scanner.scan(pattern, cursors, count, connection_id)

    async def search(
        self,
        pattern: str,
        cursors: Optional[Sequence[str]],
        count: int,
        connection_id: str,
        *,
        max_iterations: Optional[int] = None,
    ) -> ScanResult:
        return await self._scanner.search(
            pattern,
            cursors,
            count,
            connection_id,
            max_iterations=max_iterations,
        )

    def iter_keys(
        self,
        pattern: str,
        connection_id: str,
        *,
        count: Optional[int] = None,
    ) -> AsyncIterator[str]:
        return self._scanner.iter_keys(pattern, connection_id, count=count)

    async def locate(self, key: str, connection_id: str) -> KeyRecord:
        return await self._locator.locate(key, connection_id)

    async def key_exists(self, key: str, connection_id: str) -> bool:
        return await self._locator.key_exists(key, connection_id)
