import asyncio
from typing import List, Optional

from redis_console.command import Command
from redis_console.errors import ConfigNotFoundError
from redis_console.executor import CommandExecutor
from redis_console.log import logger
from redis_console.structs import Address, ClusterNode
from redis_console.util import parse_cluster_nodes


__all__ = (
    "ClusterTopologyResolver",
    "STANDALONE_NODE_ID",
)


STANDALONE_NODE_ID = "0"


class ClusterTopologyResolver:
    """Resolves list of nodes to address for connection.

    Topology is queried on every call and never cached.
    """

    FALLBACK_ADDR = Address("localhost", 6379)

    def __init__(
        self,
        executor: CommandExecutor,
        *,
        fallback_addr: Optional[Address] = None,
    ) -> None:
        self._executor = executor
        if fallback_addr is None:
            fallback_addr = self.FALLBACK_ADDR
        self._fallback_addr = Address(fallback_addr[0], int(fallback_addr[1]))

    def is_cluster_mode(self, connection_id: str) -> bool:
        return self._executor.get_config(connection_id).cluster_enabled

    async def resolve_nodes(self, connection_id: str) -> List[ClusterNode]:
        config = self._executor.get_config(connection_id)
        if not config.cluster_enabled:
            return [ClusterNode(STANDALONE_NODE_ID, config.addr, is_master=True)]

        try:
            raw_nodes = await self._executor.execute(Command("CLUSTER", ("NODES",)), connection_id)
            nodes = parse_cluster_nodes(raw_nodes)
        except asyncio.CancelledError:
            raise
        except ConfigNotFoundError:
            raise
        except Exception as e:
            logger.error(
                "Unable to get cluster nodes for %s: %r. Fallback to %s",
                connection_id,
                e,
                self._fallback_addr,
            )
            return [self._fallback_node()]

        if not nodes:
            logger.error(
                "Cluster nodes list is empty for %s. Fallback to %s",
                connection_id,
                self._fallback_addr,
            )
            return [self._fallback_node()]

        masters = [node for node in nodes if node.is_master]
        if not masters:
            logger.warning(
                "No master nodes found for %s, use all %d nodes",
                connection_id,
                len(nodes),
            )
            return nodes

        logger.debug("Resolved %d master nodes for %s: %r", len(masters), connection_id, masters)

        return masters

    def _fallback_node(self) -> ClusterNode:
        return ClusterNode(STANDALONE_NODE_ID, self._fallback_addr, is_master=True)
