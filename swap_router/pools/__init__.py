"""Pool snapshot storage and providers."""

from swap_router.pools.providers import (
    PoolProvider,
    StaticPoolProvider,
    StaticTokenProvider,
    TokenProvider,
)
from swap_router.pools.registry import PoolRegistry
from swap_router.pools.types import AnyPool

__all__ = [
    "AnyPool",
    "PoolRegistry",
    "PoolProvider",
    "TokenProvider",
    "StaticPoolProvider",
    "StaticTokenProvider",
]
