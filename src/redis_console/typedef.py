from typing import Tuple, Union

from redis_console.command import Command


AddressLike = Union[str, Tuple[str, int]]
CommandLike = Union[str, Command]
