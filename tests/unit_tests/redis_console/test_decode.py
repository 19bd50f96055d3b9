import pytest

from redis_console.command import Command, OutputMode
from redis_console.decode import decode_reply, flatten_reply, render_csv, render_reply
from redis_console.errors import ReplyError


def test_flatten_reply():
    assert flatten_reply(b"a") == [b"a"]
    assert flatten_reply([b"a", [b"b", [1, None]]]) == [b"a", b"b", 1, None]


def test_render_reply():
    assert render_reply(None) == ""
    assert render_reply(10) == "10"
    assert render_reply(b"hello") == "hello"
    assert render_reply([b"a", None, 3]) == "a\n\n3"
    assert render_reply([b"ok", ReplyError("ERR boom")]) == "ok\nERR boom"


def test_render_reply__invalid_utf8():
    assert render_reply(b"\xff\xfeabc").endswith("abc")


def test_render_csv():
    assert render_csv([b"17", [b"a", b'b"c']]) == '"17","a","b""c"'


@pytest.mark.parametrize(
    "command, reply, expect",
    [
        ("GET k", b'"quoted"', "quoted"),
        ("GET k", b'""', ""),
        ("GET k", b"  plain \n", "plain"),
        ("GET k", None, ""),
        ("--raw GET k", b'"quoted"', '"quoted"'),
        ("--raw GET k", b"  spaced ", "  spaced "),
        ("SCAN 0 MATCH * COUNT 10", [b"17", [b"a", b"b"]], '"17","a","b"'),
        ("scan 0", [b"0", []], '"0"'),
        ("HGETALL h", [b"name", b"Alice", b"age", b"30"], "name: Alice\nage: 30"),
        ("HGETALL h", [], ""),
        ("HGETALL h", [b"odd"], "odd"),
        ("KEYS *", [b"a", b"", b"b"], "a\nb"),
        ("DEL k", b"OK", "1"),
        ("DEL k", 2, "2"),
        ("TTL k", -1, "-1"),
        ("LRANGE l 0 -1", [b"x", b"y"], "x\ny"),
        ("--raw LRANGE l 0 -1", [b"x", b"y"], "x\ny"),
    ],
)
def test_decode_reply(command, reply, expect):
    assert decode_reply(Command.parse(command), reply) == expect


def test_decode_reply__raw_skips_normalization():
    cmd = Command("DEL", ("k",), output=OutputMode.RAW)

    assert decode_reply(cmd, b"OK") == "OK"
