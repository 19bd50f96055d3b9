import asyncio
import errno
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from async_timeout import timeout as atimeout

from redis_console.abc import AbcConfigProvider
from redis_console.command import Command
from redis_console.connection import RedisConnection, create_connection
from redis_console.decode import decode_reply
from redis_console.errors import (
    MovedError,
    ProtocolError,
    RedisConsoleError,
    ReplyError,
    TransportError,
)
from redis_console.log import logger
from redis_console.structs import Address, ClusterNode, ConnectionConfig
from redis_console.typedef import CommandLike
from redis_console.util import RedirInfo


__all__ = (
    "CommandExecutor",
    "redirect_node",
    "transport_error",
)


def ensure_command(command: CommandLike) -> Command:
    if isinstance(command, Command):
        return command
    return Command.parse(command)


def transport_error(exc: BaseException, command: Optional[str] = None) -> TransportError:
    """Wrap network level exception into TransportError with best-effort code"""

    if isinstance(exc, TransportError):
        if command is not None and exc.command is None:
            exc.command = command
        return exc
    if isinstance(exc, ConnectionRefusedError):
        return TransportError(
            "Connection refused - Redis server not available",
            command=command,
            code="ECONNREFUSED",
        )
    if isinstance(exc, asyncio.TimeoutError):
        return TransportError("Command execution timed out", command=command, code="ETIMEDOUT")
    if isinstance(exc, OSError) and exc.errno is not None:
        return TransportError(
            str(exc) or "Unknown Redis error",
            command=command,
            code=errno.errorcode.get(exc.errno, "ERR"),
        )
    return TransportError(str(exc) or "Unknown Redis error", command=command)


class CommandExecutor:
    COMMAND_TIMEOUT = 10.0
    CONNECT_TIMEOUT = 5.0

    def __init__(
        self,
        config_provider: AbcConfigProvider,
        *,
        command_timeout: Optional[float] = None,
        connect_timeout: Optional[float] = None,
    ) -> None:
        if command_timeout is None:
            command_timeout = self.COMMAND_TIMEOUT
        elif command_timeout <= 0:
            raise ValueError("command_timeout must be > 0")
        self._command_timeout = float(command_timeout)

        if connect_timeout is None:
            connect_timeout = self.CONNECT_TIMEOUT
        elif connect_timeout <= 0:
            raise ValueError("connect_timeout must be > 0")
        if connect_timeout > self._command_timeout:
            connect_timeout = self._command_timeout
        self._connect_timeout = float(connect_timeout)

        self._config_provider = config_provider

    @property
    def config_provider(self) -> AbcConfigProvider:
        return self._config_provider

    def get_config(self, connection_id: str) -> ConnectionConfig:
        return self._config_provider.get_config(connection_id)

    async def execute(
        self,
        command: CommandLike,
        connection_id: str,
        node: Optional[ClusterNode] = None,
    ) -> str:
        """Execute command on configured endpoint or on `node`.

        Returns normalized reply text. MOVED reply is raised as MovedError
        and never followed here.
        """

        cmd = ensure_command(command)
        config = self.get_config(connection_id)
        addr = self.node_addr(config, node)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Execute %r for %s on %s",
                cmd.cmd_for_repr(),
                connection_id,
                node if node is not None else addr,
            )

        try:
            async with atimeout(self._command_timeout):
                async with self.node_connection(config, addr) as conn:
                    reply = await conn.execute(*cmd.encode())
        except asyncio.CancelledError:
            raise
        except MovedError as e:
            e.command = cmd.to_text()
            logger.info("MOVED reply from %s: %s", addr, e)
            raise
        except ReplyError as e:
            e.command = cmd.to_text()
            if isinstance(e, ProtocolError):
                logger.warning("Redis error for %r on %s: %s", cmd.cmd_for_repr(), addr, e)
            else:
                logger.warning("Reply error for %r on %s: %s", cmd.cmd_for_repr(), addr, e)
            raise
        except RedisConsoleError as e:
            if e.command is None:
                e.command = cmd.to_text()
            raise
        except (OSError, asyncio.TimeoutError) as e:
            exc = transport_error(e, cmd.to_text())
            logger.warning("Connection problem with %s: %r", addr, exc)
            raise exc from e

        result = decode_reply(cmd, reply)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Command %s result (%d chars): %.100r",
                cmd.name,
                len(result),
                result,
            )

        return result

    async def execute_following_redirect(
        self,
        command: CommandLike,
        connection_id: str,
        node: Optional[ClusterNode] = None,
    ) -> str:
        """Execute command and follow MOVED redirect exactly once"""

        cmd = ensure_command(command)
        try:
            return await self.execute(cmd, connection_id, node)
        except MovedError as e:
            target = redirect_node(e.info, node)
            logger.info("Redirect %r to %s", cmd.cmd_for_repr(), target.addr)
            return await self.execute(cmd, connection_id, target)

    @asynccontextmanager
    async def node_connection(
        self,
        config: ConnectionConfig,
        addr: Address,
    ) -> AsyncIterator[RedisConnection]:
        conn = await create_connection(
            addr,
            username=config.username,
            password=config.password,
            ssl=config.tls_enabled,
            timeout=self._connect_timeout,
        )
        try:
            yield conn
        finally:
            conn.close()
            await conn.wait_closed()

    def node_addr(self, config: ConnectionConfig, node: Optional[ClusterNode]) -> Address:
        if node is None:
            return config.addr
        return Address(node.host or config.host, node.port or config.port)


def redirect_node(info: RedirInfo, origin: Optional[ClusterNode] = None) -> ClusterNode:
    """Make node for MOVED target. Empty host means the same host as origin"""

    host = info.host
    if not host and origin is not None:
        host = origin.host
    addr = Address(host, info.port)
    return ClusterNode(node_id=str(addr), addr=addr)
