from functools import partial
from typing import AsyncIterator, List, Optional, Sequence

from redis_console.command import build_scan_command
from redis_console.executor import CommandExecutor
from redis_console.log import logger
from redis_console.structs import ClusterNode, ScanPage, ScanResult
from redis_console.topology import ClusterTopologyResolver
from redis_console.util import gather_bounded, parse_scan_output


__all__ = (
    "ScanAggregator",
    "START_CURSOR",
)


START_CURSOR = "0"


def _cursor_at(cursors: Optional[Sequence[str]], index: int) -> str:
    if cursors and index < len(cursors) and cursors[index]:
        return str(cursors[index])
    return START_CURSOR


class ScanAggregator:
    """SCAN pagination over every node of connection.

    Cursor vector is index-aligned with nodes list. Caller keeps
    the vector between calls and must not reorder nodes in session.
    """

    MAX_CONCURRENCY = 16
    SEARCH_MAX_ITERATIONS = 1000
    ITER_KEYS_COUNT = 10000

    def __init__(
        self,
        executor: CommandExecutor,
        resolver: ClusterTopologyResolver,
        *,
        max_concurrency: Optional[int] = None,
        search_max_iterations: Optional[int] = None,
    ) -> None:
        if max_concurrency is None:
            max_concurrency = self.MAX_CONCURRENCY
        elif max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._max_concurrency = max_concurrency

        if search_max_iterations is None:
            search_max_iterations = self.SEARCH_MAX_ITERATIONS
        elif search_max_iterations < 1:
            raise ValueError("search_max_iterations must be >= 1")
        self._search_max_iterations = search_max_iterations

        self._executor = executor
        self._resolver = resolver

    async def scan(
        self,
        pattern: str,
        cursors: Optional[Sequence[str]],
        count: int,
        connection_id: str,
        *,
        skip_exhausted: bool = False,
    ) -> ScanResult:
        """One SCAN step on every node.

        With `skip_exhausted` nodes having cursor "0" in a continued
        session are not scanned again.
        """

        count = int(count)
        if count < 1:
            raise ValueError("count must be greater than 0")

        if not self._resolver.is_cluster_mode(connection_id):
            cursor = _cursor_at(cursors, 0)
            page = await self._scan_node(pattern, cursor, count, connection_id)
            return ScanResult(
                keys=page.keys,
                cursors=[page.cursor],
                has_more=page.cursor != START_CURSOR,
            )

        nodes = await self._resolver.resolve_nodes(connection_id)
        node_cursors = [_cursor_at(cursors, i) for i in range(len(nodes))]
        for cursor in node_cursors:
            if not cursor.isdigit():
                raise ValueError(f"Invalid scan cursor: {cursor!r}")
        continued = any(c != START_CURSOR for c in node_cursors)

        factories = []
        scanned: List[int] = []
        for i, (node, cursor) in enumerate(zip(nodes, node_cursors)):
            if skip_exhausted and continued and cursor == START_CURSOR:
                continue
            scanned.append(i)
            factories.append(partial(self._scan_node, pattern, cursor, count, connection_id, node))

        results = await gather_bounded(factories, self._max_concurrency)

        pages: List[Optional[ScanPage]] = [None] * len(nodes)
        for i, result in zip(scanned, results):
            if isinstance(result, BaseException):
                logger.warning("Unable to scan node %s: %r", nodes[i], result)
                continue
            pages[i] = result

        keys: List[str] = []
        next_cursors: List[str] = []
        for node, page in zip(nodes, pages):
            if page is None:
                next_cursors.append(START_CURSOR)
                continue

            keys.extend(page.keys)
            next_cursors.append(page.cursor)
            logger.debug(
                "Node %s: found %d keys, next cursor: %s",
                node,
                len(page.keys),
                page.cursor,
            )

        has_more = any(c != START_CURSOR for c in next_cursors)

        logger.debug(
            "Cluster scan complete: %d total keys across %d nodes",
            len(keys),
            len(nodes),
        )

        return ScanResult(keys=keys, cursors=next_cursors, has_more=has_more)

    async def search(
        self,
        pattern: str,
        cursors: Optional[Sequence[str]],
        count: int,
        connection_id: str,
        *,
        max_iterations: Optional[int] = None,
    ) -> ScanResult:
        """Continue scanning until some keys found or keyspace is exhausted.

        Empty page with `has_more` is not the end of results,
        so calls are repeated up to `max_iterations` times.
        """

        if max_iterations is None:
            max_iterations = self._search_max_iterations

        keys: List[str] = []
        next_cursors: List[str] = list(cursors) if cursors else [START_CURSOR]
        has_more = False
        iterations = 0
        while True:
            result = await self.scan(pattern, next_cursors, count, connection_id)
            keys.extend(result.keys)
            next_cursors = result.cursors
            has_more = result.has_more
            iterations += 1

            if keys or not has_more or iterations >= max_iterations:
                break

        if not keys and has_more:
            logger.info(
                "Search %r stopped after %d iterations without results",
                pattern,
                iterations,
            )

        return ScanResult(keys=keys, cursors=next_cursors, has_more=has_more)

    async def iter_keys(
        self,
        pattern: str,
        connection_id: str,
        *,
        count: Optional[int] = None,
    ) -> AsyncIterator[str]:
        """Iterate over all keys matching pattern in one scan session"""

        if count is None:
            count = self.ITER_KEYS_COUNT

        cursors: List[str] = [START_CURSOR]
        while True:
            result = await self.scan(pattern, cursors, count, connection_id, skip_exhausted=True)
            for key in result.keys:
                yield key

            if not result.has_more:
                break
            cursors = result.cursors

    async def _scan_node(
        self,
        pattern: str,
        cursor: str,
        count: int,
        connection_id: str,
        node: Optional[ClusterNode] = None,
    ) -> ScanPage:
        command = build_scan_command(cursor, pattern, count)
        output = await self._executor.execute(command, connection_id, node)
        return parse_scan_output(output)
