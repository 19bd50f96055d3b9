from abc import ABC, abstractmethod

from redis_console.structs import ConnectionConfig


__all__ = [
    "AbcConfigProvider",
]


class AbcConfigProvider(ABC):
    """Source of connection settings by environment (connection) id"""

    @abstractmethod
    def get_config(self, connection_id: str) -> ConnectionConfig:
        """Return config or raise ConfigNotFoundError"""
