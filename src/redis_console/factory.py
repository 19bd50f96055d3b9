from typing import Optional

from redis_console.abc import AbcConfigProvider
from redis_console.batch import BatchExecutor
from redis_console.console import RedisConsole
from redis_console.executor import CommandExecutor
from redis_console.locator import KeyLocator
from redis_console.scan import ScanAggregator
from redis_console.structs import Address
from redis_console.topology import ClusterTopologyResolver
from redis_console.typedef import AddressLike


__all__ = ("create_console",)


def create_console(
    config_provider: AbcConfigProvider,
    *,
    # executor options
    command_timeout: float = None,
    connect_timeout: float = None,
    batch_timeout: float = None,
    # topology options
    fallback_addr: Optional[AddressLike] = None,
    # fan-out options
    max_concurrency: int = None,
    search_max_iterations: int = None,
    # key read options
    list_range_limit: int = None,
    set_scan_count: int = None,
) -> RedisConsole:
    corrected_fallback: Optional[Address] = None
    if fallback_addr is not None:
        if isinstance(fallback_addr, str):
            host, _, port = fallback_addr.rpartition(":")
            corrected_fallback = Address(host, int(port))
        else:
            corrected_fallback = Address(fallback_addr[0], int(fallback_addr[1]))

    executor = CommandExecutor(
        config_provider,
        command_timeout=command_timeout,
        connect_timeout=connect_timeout,
    )
    resolver = ClusterTopologyResolver(executor, fallback_addr=corrected_fallback)
    scanner = ScanAggregator(
        executor,
        resolver,
        max_concurrency=max_concurrency,
        search_max_iterations=search_max_iterations,
    )
    locator = KeyLocator(
        executor,
        resolver,
        max_concurrency=max_concurrency,
        list_range_limit=list_range_limit,
        set_scan_count=set_scan_count,
    )
    batch_executor = BatchExecutor(executor, timeout=batch_timeout)

    return RedisConsole(executor, resolver, scanner, locator, batch_executor)
