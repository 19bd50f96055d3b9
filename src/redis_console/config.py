from typing import Any, Dict, Iterator, Mapping, Optional, Union

from redis_console.abc import AbcConfigProvider
from redis_console.errors import ConfigNotFoundError
from redis_console.structs import ConnectionConfig


__all__ = ("StaticConfigProvider",)


ConfigLike = Union[ConnectionConfig, Mapping[str, Any]]


class StaticConfigProvider(AbcConfigProvider):
    """In-memory config provider.

    Values may be ConnectionConfig instances or connection store rows.
    """

    def __init__(self, configs: Optional[Mapping[str, ConfigLike]] = None) -> None:
        self._configs: Dict[str, ConnectionConfig] = {}
        if configs:
            for connection_id, config in configs.items():
                self.set_config(connection_id, config)

    def __len__(self) -> int:
        return len(self._configs)

    def __iter__(self) -> Iterator[str]:
        return iter(self._configs)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._configs

    def get_config(self, connection_id: str) -> ConnectionConfig:
        try:
            return self._configs[connection_id]
        except KeyError:
            raise ConfigNotFoundError(connection_id) from None

    def set_config(self, connection_id: str, config: ConfigLike) -> None:
        if not isinstance(config, ConnectionConfig):
            config = ConnectionConfig.from_row(config)
        self._configs[connection_id] = config

    def remove_config(self, connection_id: str) -> None:
        self._configs.pop(connection_id, None)
