import enum
import shlex
from typing import Iterable, Optional, Tuple, Union

from redis_console.errors import CommandSyntaxError
from redis_console.util import ensure_bytes, escape_pattern


__all__ = (
    "OutputMode",
    "Command",
    "build_scan_command",
)


RAW_FLAG = "--raw"
REPR_MAX_LEN = 64
SECRET_COMMANDS = frozenset({"AUTH", "HELLO", "MIGRATE"})


@enum.unique
class OutputMode(enum.Enum):
    STANDARD = "standard"
    RAW = "raw"


class Command:
    __slots__ = (
        "verb",
        "args",
        "output",
        "_cached_cmd_for_repr",
    )

    def __init__(
        self,
        verb: str,
        args: Iterable[Union[str, int]] = (),
        *,
        output: OutputMode = OutputMode.STANDARD,
    ) -> None:
        if not verb:
            raise CommandSyntaxError("Execute command is empty")

        self.verb = verb
        self.args: Tuple[str, ...] = tuple(str(a) for a in args)
        self.output = output
        self._cached_cmd_for_repr: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "Command":
        """Tokenize textual command with shell-like quoting.

        Leading `--raw` token switches output to raw mode.
        """

        try:
            tokens = shlex.split(text.strip())
        except ValueError as e:
            raise CommandSyntaxError(f"Invalid command syntax: {e}", command=text) from None

        output = OutputMode.STANDARD
        if tokens and tokens[0] == RAW_FLAG:
            output = OutputMode.RAW
            tokens = tokens[1:]

        if not tokens:
            raise CommandSyntaxError("Execute command is empty", command=text)

        return cls(tokens[0], tokens[1:], output=output)

    @property
    def name(self) -> str:
        return self.verb.upper()

    @property
    def is_raw(self) -> bool:
        return self.output is OutputMode.RAW

    def encode(self) -> Tuple[bytes, ...]:
        return (ensure_bytes(self.verb), *(ensure_bytes(a) for a in self.args))

    def to_text(self) -> str:
        text = shlex.join((self.verb, *self.args))
        if self.is_raw:
            text = f"{RAW_FLAG} {text}"
        return text

    def cmd_for_repr(self) -> str:
        if self._cached_cmd_for_repr is None:
            if self.name in SECRET_COMMANDS:
                cmd_str = f"{self.verb} ******"
            else:
                cmd_str = " ".join((self.verb, *self.args))
            if len(cmd_str) > REPR_MAX_LEN:
                cmd_str = cmd_str[:32] + "..." + cmd_str[-16:]
            self._cached_cmd_for_repr = cmd_str
        return self._cached_cmd_for_repr

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Command):
            return NotImplemented
        return (self.name, self.args, self.output) == (other.name, other.args, other.output)

    def __hash__(self) -> int:
        return hash((self.name, self.args, self.output))

    def __repr__(self) -> str:
        return f"<Command {self.cmd_for_repr()!r} output={self.output.value}>"


def build_scan_command(cursor: str, pattern: str, count: int) -> str:
    cursor = str(cursor)
    if not cursor.isdigit():
        raise ValueError(f"Invalid scan cursor: {cursor!r}")

    count = int(count)
    if count < 1:
        raise ValueError("count must be greater than 0")

    return f"SCAN {cursor} MATCH '{escape_pattern(pattern)}' COUNT {count}"
