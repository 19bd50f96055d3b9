import dataclasses
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple


class Address(NamedTuple):
    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


class ClusterNode(NamedTuple):
    node_id: str
    addr: Address
    is_master: bool = True
    flags: Tuple[str, ...] = ()

    @property
    def host(self) -> str:
        return self.addr.host

    @property
    def port(self) -> int:
        return self.addr.port

    def __str__(self) -> str:
        return f"{self.node_id}@{self.addr}"


@dataclasses.dataclass(frozen=True)
class ConnectionConfig:
    host: str
    port: int
    username: Optional[str] = None
    password: Optional[str] = dataclasses.field(default=None, repr=False)
    tls_enabled: bool = False
    cluster_enabled: bool = False

    @property
    def addr(self) -> Address:
        return Address(self.host, self.port)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ConnectionConfig":
        """Build config from connections store row.

        Store keeps booleans as 0/1 integers in `tls` and `cluster` columns.
        """

        return cls(
            host=row["host"],
            port=int(row["port"]),
            username=row.get("username") or None,
            password=row.get("password") or None,
            tls_enabled=bool(row.get("tls", False)),
            cluster_enabled=bool(row.get("cluster", False)),
        )


@dataclasses.dataclass
class KeyRecord:
    key: str
    type: str
    value: str
    ttl: int
    node_id: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "key": self.key,
            "type": self.type,
            "value": self.value,
            "ttl": self.ttl,
        }
        if self.node_id is not None:
            result["nodeId"] = self.node_id
        return result


@dataclasses.dataclass
class ScanPage:
    cursor: str
    keys: List[str]


@dataclasses.dataclass
class ScanResult:
    keys: List[str]
    cursors: List[str]
    has_more: bool

    def as_dict(self) -> Dict[str, Any]:
        return {
            "keys": list(self.keys),
            "cursors": list(self.cursors),
            "hasMore": self.has_more,
        }
