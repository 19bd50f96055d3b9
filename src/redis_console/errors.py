from typing import Any, Dict, Optional, Tuple, Type, TypeVar

from redis_console.util import RedirInfo, match_moved_response, parse_moved_response_error


__all__ = [
    "RedisConsoleError",
    "ConfigNotFoundError",
    "KeyNotFoundError",
    "CommandSyntaxError",
    "ReplyError",
    "ProtocolError",
    "MovedError",
    "TransportError",
    "ConnectionClosedError",
    "MalformedReplyError",
]

_TReplyError = TypeVar("_TReplyError", bound="ReplyError")


class RedisConsoleError(Exception):
    """Base class for all errors raised by redis_console"""

    code = "ERR"

    def __init__(
        self,
        message: str,
        *,
        command: Optional[str] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.command = command
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return self.message

    def as_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "command": self.command,
            "code": self.code,
        }


class ConfigNotFoundError(RedisConsoleError):
    """Raises than connection id is unknown for config provider"""

    code = "NOT_FOUND"

    def __init__(self, connection_id: str) -> None:
        super().__init__(f"Connection {connection_id!r} not found")

        self.connection_id = connection_id


class KeyNotFoundError(RedisConsoleError):
    """Raises than key is absent on every node"""

    code = "KEY_NOT_FOUND"

    def __init__(self, key: str) -> None:
        super().__init__("Key not found")

        self.key = key


class CommandSyntaxError(RedisConsoleError, ValueError):
    """Raises than console command text can not be tokenized"""

    code = "SYNTAX_ERROR"


class ReplyError(RedisConsoleError):
    """Error reply returned by redis server.

    Instantiating ReplyError picks the most specific subclass
    matching the reply text.
    """

    MATCH_REPLY: Tuple[str, ...] = ()

    def __new__(cls: Type[_TReplyError], msg: str, *args, **kwargs) -> _TReplyError:
        for klass in cls.__subclasses__():
            if klass.match_reply(msg):
                return super().__new__(klass, msg)
        return super().__new__(cls, msg)

    def __init__(self, msg: str, *, command: Optional[str] = None) -> None:
        code = msg.split(" ", 1)[0] if msg else None
        super().__init__(msg, command=command, code=code)

    @classmethod
    def match_reply(cls, msg: str) -> bool:
        return bool(msg and cls.MATCH_REPLY and msg.startswith(cls.MATCH_REPLY))


class ProtocolError(ReplyError):
    """Command rejected by server: syntax, type, ACL or auth problems"""

    MATCH_REPLY = ("ERR ", "WRONGTYPE ", "NOPERM ", "NOAUTH ")

    def __init__(self, msg: str, *, command: Optional[str] = None) -> None:
        super().__init__(msg, command=command)

        self.code = "REDIS_ERROR"

    @classmethod
    def match_reply(cls, msg: str) -> bool:
        return super().match_reply(msg) or (bool(msg) and "unknown command" in msg)


class MovedError(ReplyError):
    """Raised when key slot is served by another node in cluster"""

    def __init__(self, msg: str, *, command: Optional[str] = None) -> None:
        super().__init__(msg, command=command)

        self.code = "MOVED"
        self.info: RedirInfo = parse_moved_response_error(msg)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.info!r}>"

    @classmethod
    def match_reply(cls, msg: str) -> bool:
        return bool(msg) and match_moved_response(msg)


class TransportError(RedisConsoleError):
    """Raises than node is not reachable or connection is broken"""


class ConnectionClosedError(TransportError):
    """Raises than connection is closed by server or by client"""

    code = "ECONNRESET"


class MalformedReplyError(TransportError):
    """Raises than server reply violates redis protocol"""

    code = "EPROTO"
