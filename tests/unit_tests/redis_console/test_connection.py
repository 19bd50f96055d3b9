import asyncio
import ssl

import mock
import pytest

from redis_console.connection import RedisConnection, create_connection, insecure_ssl_context
from redis_console.errors import (
    ConnectionClosedError,
    MalformedReplyError,
    MovedError,
    ProtocolError,
)
from redis_console.structs import Address


ADDR = Address("10.0.0.1", 6379)


def get_writer_mock():
    writer = mock.NonCallableMock()
    writer.drain = mock.AsyncMock(return_value=None)
    writer.wait_closed = mock.AsyncMock(return_value=None)
    writer.transport.get_extra_info.return_value = None
    return writer


def make_connection(data: bytes = b"", eof: bool = False):
    reader = asyncio.StreamReader()
    if data:
        reader.feed_data(data)
    if eof:
        reader.feed_eof()
    writer = get_writer_mock()
    return RedisConnection(reader, writer, address=ADDR), writer


async def test_execute():
    conn, writer = make_connection(b"+PONG\r\n")

    result = await conn.execute(b"PING")

    assert result == b"PONG"
    writer.write.assert_called_once_with(b"*1\r\n$4\r\nPING\r\n")
    writer.drain.assert_awaited_once()


async def test_execute__bulk_and_array():
    conn, _ = make_connection(b"*2\r\n$2\r\n17\r\n*2\r\n$1\r\na\r\n$1\r\nb\r\n")

    assert await conn.execute(b"SCAN", b"0") == [b"17", [b"a", b"b"]]


async def test_execute__error_reply():
    conn, _ = make_connection(b"-WRONGTYPE Operation against a key\r\n")

    with pytest.raises(ProtocolError, match="WRONGTYPE"):
        await conn.execute(b"GET", b"h")


async def test_execute__moved_reply():
    conn, _ = make_connection(b"-MOVED 500 10.0.0.2:7001\r\n")

    with pytest.raises(MovedError) as exc_info:
        await conn.execute(b"GET", b"k")

    assert exc_info.value.info.addr == Address("10.0.0.2", 7001)


async def test_execute_many__pipelined():
    conn, writer = make_connection(b"+OK\r\n:1\r\n-ERR unknown command 'FOO'\r\n$-1\r\n")

    replies = await conn.execute_many(
        [
            (b"SET", b"a", b"1"),
            (b"EXISTS", b"a"),
            (b"FOO",),
            (b"GET", b"b"),
        ]
    )

    assert replies[:2] == [b"OK", 1]
    assert isinstance(replies[2], ProtocolError)
    assert replies[3] is None
    assert writer.write.call_count == 1


async def test_execute_many__empty():
    conn, writer = make_connection()

    assert await conn.execute_many([]) == []
    writer.write.assert_not_called()


async def test_execute__closed_by_server():
    conn, _ = make_connection(eof=True)

    with pytest.raises(ConnectionClosedError):
        await conn.execute(b"PING")

    assert conn.closed is True


async def test_execute__malformed_reply():
    conn, _ = make_connection(b"?what\r\n")

    with pytest.raises(MalformedReplyError):
        await conn.execute(b"PING")


async def test_execute__after_close():
    conn, writer = make_connection(b"+PONG\r\n")
    conn.close()
    conn.close()

    with pytest.raises(ConnectionClosedError):
        await conn.execute(b"PING")

    writer.close.assert_called_once_with()


async def test_auth():
    conn, writer = make_connection(b"+OK\r\n+OK\r\n")

    await conn.auth("secret")
    await conn.auth("secret", username="admin")

    assert writer.write.call_args_list == [
        mock.call(b"*2\r\n$4\r\nAUTH\r\n$6\r\nsecret\r\n"),
        mock.call(b"*3\r\n$4\r\nAUTH\r\n$5\r\nadmin\r\n$6\r\nsecret\r\n"),
    ]


def test_insecure_ssl_context():
    context = insecure_ssl_context()

    assert context.check_hostname is False
    assert context.verify_mode == ssl.CERT_NONE


async def test_create_connection(mocker):
    reader = asyncio.StreamReader()
    reader.feed_data(b"+OK\r\n")
    writer = get_writer_mock()
    mocked_open = mocker.patch(
        RedisConnection.__module__ + ".asyncio.open_connection",
        new=mock.AsyncMock(return_value=(reader, writer)),
    )

    conn = await create_connection(ADDR, password="secret", ssl=True, timeout=1.0)

    assert isinstance(conn, RedisConnection)
    assert conn.address == ADDR
    args, kwargs = mocked_open.call_args
    assert args == ("10.0.0.1", 6379)
    assert isinstance(kwargs["ssl"], ssl.SSLContext)
    assert kwargs["ssl"].verify_mode == ssl.CERT_NONE
    writer.write.assert_called_once_with(b"*2\r\n$4\r\nAUTH\r\n$6\r\nsecret\r\n")


async def test_create_connection__auth_failed(mocker):
    reader = asyncio.StreamReader()
    reader.feed_data(b"-WRONGPASS invalid username-password pair\r\n")
    writer = get_writer_mock()
    mocker.patch(
        RedisConnection.__module__ + ".asyncio.open_connection",
        new=mock.AsyncMock(return_value=(reader, writer)),
    )

    with pytest.raises(Exception, match="WRONGPASS"):
        await create_connection(ADDR, password="bad", ssl=False)

    writer.close.assert_called_once_with()


async def test_create_connection__invalid_timeout():
    with pytest.raises(ValueError):
        await create_connection(ADDR, timeout=0)
