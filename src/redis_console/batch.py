import asyncio
import logging
from typing import List, Optional, Sequence

from async_timeout import timeout as atimeout

from redis_console.decode import render_reply
from redis_console.errors import RedisConsoleError, ReplyError
from redis_console.executor import CommandExecutor, ensure_command, transport_error
from redis_console.log import logger
from redis_console.structs import ClusterNode
from redis_console.typedef import CommandLike


__all__ = ("BatchExecutor",)


class BatchExecutor:
    """Runs independent read commands in one pipelined burst.

    This is not a transaction. Every command succeeds or fails
    on its own and error replies come back as message text.
    """

    BATCH_TIMEOUT = 120.0

    def __init__(
        self,
        executor: CommandExecutor,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        if timeout is None:
            timeout = self.BATCH_TIMEOUT
        elif timeout <= 0:
            raise ValueError("timeout must be > 0")
        self._timeout = float(timeout)
        self._executor = executor

    async def execute_batch(
        self,
        commands: Sequence[CommandLike],
        connection_id: str,
        node: Optional[ClusterNode] = None,
    ) -> List[str]:
        cmds = [ensure_command(c) for c in commands]
        config = self._executor.get_config(connection_id)
        if not cmds:
            return []

        addr = self._executor.node_addr(config, node)
        batch_repr = f"batch of {len(cmds)} commands"

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Execute %s for %s on %s", batch_repr, connection_id, addr)

        try:
            async with atimeout(self._timeout):
                async with self._executor.node_connection(config, addr) as conn:
                    replies = await conn.execute_many([cmd.encode() for cmd in cmds])
        except asyncio.CancelledError:
            raise
        except RedisConsoleError as e:
            if e.command is None:
                e.command = batch_repr
            raise
        except (OSError, asyncio.TimeoutError) as e:
            exc = transport_error(e, batch_repr)
            logger.warning("Batch execution failed on %s: %r", addr, exc)
            raise exc from e

        errors = sum(1 for reply in replies if isinstance(reply, ReplyError))
        if errors:
            logger.info("Batch on %s finished with %d error replies", addr, errors)

        return [render_reply(reply).strip() for reply in replies]
