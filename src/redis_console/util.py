import asyncio
import csv
import dataclasses
import io
import re
from typing import (
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    TypeVar,
    Union,
)

from redis_console.structs import Address, ClusterNode, ScanPage


__all__ = [
    "ensure_bytes",
    "ensure_str",
    "encode_command",
    "parse_info_sections",
    "parse_cluster_node_line",
    "parse_cluster_nodes",
    "RedirInfo",
    "match_moved_response",
    "parse_moved_response_error",
    "escape_pattern",
    "parse_scan_output",
    "hash_value_to_dict",
    "gather_bounded",
]

_T = TypeVar("_T")

MOVED_RE = re.compile(r"^MOVED (\d+) (\S*):(\d+)$")


def ensure_bytes(obj) -> bytes:
    if isinstance(obj, bytes):
        return obj
    if isinstance(obj, bytearray):
        return bytes(obj)
    if isinstance(obj, str):
        return obj.encode("utf-8")
    if isinstance(obj, (int, float)):
        return repr(obj).encode("ascii")

    raise TypeError(f"Unable to encode command argument of type {type(obj).__name__}")


def ensure_str(obj) -> str:
    if isinstance(obj, str):
        return obj
    return obj.decode("utf-8", errors="replace")


def encode_command(*args) -> bytes:
    """Encode command arguments as RESP array of bulk strings"""

    buf = bytearray(b"*%d\r\n" % len(args))
    for arg in args:
        barg = ensure_bytes(arg)
        buf.extend(b"$%d\r\n" % len(barg))
        buf.extend(barg)
        buf.extend(b"\r\n")
    return bytes(buf)


def parse_info_sections(info: str) -> Dict[str, Dict[str, str]]:
    """
    Split INFO reply into sections by `# Section` headers.
    Lines before first header belong to `server` section.
    """

    current = "server"
    sections: Dict[str, Dict[str, str]] = {current: {}}
    for line in info.splitlines():
        line = line.strip()
        if not line:
            continue

        if line.startswith("# "):
            current = line[2:].lower()
            sections.setdefault(current, {})
            continue

        key, sep, value = line.partition(":")
        if sep:
            sections[current][key] = value

    return sections


def parse_cluster_node_line(line: str) -> ClusterNode:
    """
    @see: https://redis.io/commands/cluster-nodes#serialization-format
    """

    parts = line.split()
    if len(parts) < 3:
        raise ValueError(f"Malformed cluster node line: {line!r}")

    node_id, addr, flags = parts[:3]

    # Since version 4.0.0 address has the format '192.1.2.3:7001@17001'
    # and since 7.0 it may be followed by ',hostname'
    addr = addr.split(",", 1)[0].split("@", 1)[0]
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"Malformed cluster node address: {addr!r}")

    flags_tuple = tuple(flags.split(","))
    is_master = "slave" not in flags_tuple and "replica" not in flags_tuple

    return ClusterNode(
        node_id=node_id,
        addr=Address(host, int(port)),
        is_master=is_master,
        flags=flags_tuple,
    )


def parse_cluster_nodes(resp: str) -> List[ClusterNode]:
    """
    @see: https://redis.io/commands/cluster-nodes
    """

    return [parse_cluster_node_line(line) for line in resp.strip().splitlines() if line.strip()]


@dataclasses.dataclass
class RedirInfo:
    slot_id: int
    host: str
    port: int

    @property
    def addr(self) -> Address:
        return Address(self.host, self.port)


def match_moved_response(msg: str) -> bool:
    return MOVED_RE.match(msg.strip()) is not None


def parse_moved_response_error(msg: str) -> RedirInfo:
    match = MOVED_RE.match(msg.strip())
    if match is None:
        raise ValueError(f"Not a MOVED reply: {msg!r}")

    slot_id, host, port = match.groups()
    return RedirInfo(int(slot_id), host, int(port))


def escape_pattern(pattern: str) -> str:
    """Escape glob pattern for use inside single quoted command argument.

    Glob metacharacters are kept untouched.
    """

    return str(pattern).replace('"', '\\"').replace("'", "'\\''")


def parse_scan_output(output: str) -> ScanPage:
    """Parse SCAN reply rendered as CSV: cursor first, keys after it"""

    fields = [field for row in csv.reader(io.StringIO(output)) for field in row]
    if not fields:
        raise ValueError("Empty SCAN reply")

    return ScanPage(
        cursor=fields[0],
        keys=[key for key in fields[1:] if key],
    )


def hash_value_to_dict(value: str) -> Dict[str, str]:
    result: Dict[str, str] = {}
    for line in value.splitlines():
        field, sep, field_value = line.partition(": ")
        if sep:
            result[field] = field_value
    return result


async def gather_bounded(
    factories: Iterable[Callable[[], Awaitable[_T]]],
    limit: int,
) -> List[Union[_T, BaseException]]:
    """Run awaitables concurrently, at most `limit` at the same time.

    Result list is aligned with `factories`, errors are returned in place.
    """

    semaphore = asyncio.Semaphore(limit)

    async def run(factory: Callable[[], Awaitable[_T]]) -> _T:
        async with semaphore:
            return await factory()

    return await asyncio.gather(*(run(f) for f in factories), return_exceptions=True)
