import asyncio
import socket
import ssl
from typing import Any, List, Optional, Sequence, Union

import hiredis
from async_timeout import timeout as atimeout

from redis_console.errors import ConnectionClosedError, MalformedReplyError, ReplyError
from redis_console.log import logger
from redis_console.structs import Address
from redis_console.util import encode_command


__all__ = (
    "RedisConnection",
    "create_connection",
    "insecure_ssl_context",
)


MAX_CHUNK_SIZE = 65536


def insecure_ssl_context() -> ssl.SSLContext:
    """TLS context without certificate and hostname verification"""

    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


class RedisConnection:
    """Plain request/response redis connection.

    Single user only: every call sends commands and reads
    exactly the same number of replies.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        *,
        address: Address,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._address = address
        self._parser = hiredis.Reader(
            protocolError=MalformedReplyError,
            replyError=ReplyError,
        )
        self._closed = False

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._address}>"

    @property
    def address(self) -> Address:
        return self._address

    @property
    def closed(self) -> bool:
        return self._closed

    async def execute(self, *args) -> Any:
        """Execute command and return its reply.

        Error reply is raised as ReplyError subclass.
        """

        (reply,) = await self.execute_many([args])
        if isinstance(reply, ReplyError):
            raise reply
        return reply

    async def execute_many(self, commands: Sequence[Sequence]) -> List[Any]:
        """Pipeline commands and return replies in the same order.

        Error replies are returned in place, not raised.
        """

        if self._closed:
            raise ConnectionClosedError("Connection is closed")
        if not commands:
            return []

        self._writer.write(b"".join(encode_command(*cmd) for cmd in commands))
        await self._writer.drain()

        return [await self._read_reply() for _ in commands]

    async def auth(self, password: str, username: Optional[str] = None) -> None:
        if username is not None:
            await self.execute(b"AUTH", username, password)
        else:
            await self.execute(b"AUTH", password)

    def close(self) -> None:
        if self._closed:
            return

        self._closed = True
        self._writer.close()

    async def wait_closed(self) -> None:
        try:
            await self._writer.wait_closed()
        except (ConnectionError, ssl.SSLError) as e:
            logger.debug("Error while closing connection to %s: %r", self._address, e)

    async def _read_reply(self) -> Any:
        while True:
            reply = self._parser.gets()
            if reply is not False:
                return reply

            data = await self._reader.read(MAX_CHUNK_SIZE)
            if not data:
                self.close()
                raise ConnectionClosedError(f"Connection to {self._address} closed by server")

            self._parser.feed(data)


async def create_connection(
    address: Address,
    *,
    username: Optional[str] = None,
    password: Optional[str] = None,
    ssl: Optional[Union[bool, ssl.SSLContext]] = None,
    timeout: Optional[float] = None,
) -> RedisConnection:
    """Creates redis connection.

    Opens TCP connection to `address` and authenticates with
    `password` (and `username` for ACL users) when given.

    `ssl=True` enables TLS without certificate verification,
    an SSLContext instance is passed to asyncio as is.

    `timeout` limits connect and authentication stages together.
    """

    if timeout is not None and timeout <= 0:
        raise ValueError("Timeout has to be None or a number greater than 0")

    if ssl is True:
        ssl = insecure_ssl_context()
    elif ssl is False:
        ssl = None

    loop = asyncio.get_running_loop()
    tail_timeout = timeout

    start_t = loop.time()
    async with atimeout(tail_timeout):
        logger.debug("Creating tcp connection to %s", address)
        reader, writer = await asyncio.open_connection(
            address.host,
            address.port,
            limit=MAX_CHUNK_SIZE,
            ssl=ssl,
        )
        sock = writer.transport.get_extra_info("socket")
        if sock is not None:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

    conn = RedisConnection(reader, writer, address=address)
    if tail_timeout is not None:
        tail_timeout = max(0, tail_timeout - (loop.time() - start_t))

    try:
        async with atimeout(tail_timeout):
            if password is not None:
                await conn.auth(password, username=username)
    except (asyncio.CancelledError, Exception):
        conn.close()
        await conn.wait_closed()
        raise

    return conn
