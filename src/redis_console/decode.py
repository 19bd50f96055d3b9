"""
Reply rendering and per-command output normalization.

Replies are rendered the way redis-cli prints them to a pipe:
strings as is, integers as digits, nil as empty line and
arrays one element per line. SCAN is rendered as CSV row.
"""

import csv
import io
import re
from typing import Any, List, Sequence

from redis_console.command import Command
from redis_console.errors import ReplyError
from redis_console.util import ensure_str


__all__ = (
    "flatten_reply",
    "render_reply",
    "render_csv",
    "decode_reply",
)


_QUOTED_RE = re.compile(r'^"(.*)"$')


def flatten_reply(reply: Any) -> List[Any]:
    if not isinstance(reply, (list, tuple)):
        return [reply]

    result: List[Any] = []
    for item in reply:
        result.extend(flatten_reply(item))
    return result


def _render_item(item: Any) -> str:
    if item is None:
        return ""
    if isinstance(item, (bytes, bytearray)):
        return ensure_str(bytes(item))
    if isinstance(item, ReplyError):
        return item.message
    return str(item)


def render_reply(reply: Any) -> str:
    return "\n".join(_render_item(item) for item in flatten_reply(reply))


def render_csv(reply: Any) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="")
    writer.writerow(_render_item(item) for item in flatten_reply(reply))
    return buf.getvalue()


def _pair_lines(items: Sequence[str]) -> str:
    return "\n".join(f"{items[i]}: {items[i + 1]}" for i in range(0, len(items), 2))


def decode_reply(command: Command, reply: Any) -> str:
    """Convert reply to normalized text by command verb.

    Raw output mode skips any normalization.
    """

    if command.is_raw:
        return render_reply(reply)

    name = command.name
    if name == "SCAN":
        return render_csv(reply)

    if name == "HGETALL":
        items = [_render_item(item) for item in flatten_reply(reply)]
        if items and len(items) % 2 == 0:
            return _pair_lines(items)
        return "\n".join(items).strip()

    result = render_reply(reply).strip()

    if name == "GET":
        result = _QUOTED_RE.sub(r"\1", result, count=1)
    elif name == "KEYS":
        result = "\n".join(line for line in result.split("\n") if line.strip())
    elif name == "DEL" and result == "OK":
        # some proxies reply OK instead of number of removed keys
        result = "1"

    return result
