from ._version import __version__
from .abc import AbcConfigProvider
from .command import Command, OutputMode
from .config import StaticConfigProvider
from .console import RedisConsole
from .errors import (
    CommandSyntaxError,
    ConfigNotFoundError,
    ConnectionClosedError,
    KeyNotFoundError,
    MalformedReplyError,
    MovedError,
    ProtocolError,
    RedisConsoleError,
    ReplyError,
    TransportError,
)
from .factory import create_console
from .structs import Address, ClusterNode, ConnectionConfig, KeyRecord, ScanResult
from .util import hash_value_to_dict, parse_info_sections

__all__ = [
    "__version__",
    # Classes
    "RedisConsole",
    "Command",
    "OutputMode",
    # Factories
    "create_console",
    # Config
    "AbcConfigProvider",
    "StaticConfigProvider",
    # Errors
    "RedisConsoleError",
    "ConfigNotFoundError",
    "CommandSyntaxError",
    "KeyNotFoundError",
    "ReplyError",
    "ProtocolError",
    "MovedError",
    "TransportError",
    "ConnectionClosedError",
    "MalformedReplyError",
    # helpers
    "hash_value_to_dict",
    "parse_info_sections",
    # public structs
    "Address",
    "ClusterNode",
    "ConnectionConfig",
    "KeyRecord",
    "ScanResult",
]
