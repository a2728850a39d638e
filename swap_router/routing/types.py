"""Type definitions for routing: trade types and protocol-tagged routes."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeAlias

from swap_router.amm.uniswap_v2 import UniswapV2Pool
from swap_router.amm.uniswap_v3 import UniswapV3Pool
from swap_router.models.types import PoolProtocol, normalize_address


class TradeType(str, Enum):
    """Which side of the trade is fixed."""

    EXACT_INPUT = "exactIn"
    EXACT_OUTPUT = "exactOut"


def _walk_tokens(pools: Sequence[UniswapV2Pool | UniswapV3Pool], token_in: str) -> tuple[str, ...]:
    tokens = [normalize_address(token_in)]
    for pool in pools:
        tokens.append(pool.other_token(tokens[-1]))
    return tuple(tokens)


@dataclass(frozen=True)
class V2Route:
    """A path through UniswapV2 pools.

    token_path is derived from the pools and the input token, so it always
    has len(pools) + 1 entries.
    """

    pools: tuple[UniswapV2Pool, ...]
    token_in: str
    token_out: str
    protocol: PoolProtocol = field(default=PoolProtocol.V2, init=False)
    token_path: tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        _init_route(self)


@dataclass(frozen=True)
class V3Route:
    """A path through UniswapV3 pools."""

    pools: tuple[UniswapV3Pool, ...]
    token_in: str
    token_out: str
    protocol: PoolProtocol = field(default=PoolProtocol.V3, init=False)
    token_path: tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        _init_route(self)


Route: TypeAlias = V2Route | V3Route


def _init_route(route: Route) -> None:
    """Normalize endpoints and derive the token path.

    Raises:
        ValueError: If the pools are empty, repeat, or do not connect
            token_in to token_out
    """
    if not route.pools:
        raise ValueError("A route needs at least one pool")
    addresses = [pool.address for pool in route.pools]
    if len(set(addresses)) != len(addresses):
        raise ValueError(f"Route reuses a pool: {addresses}")

    object.__setattr__(route, "token_in", normalize_address(route.token_in))
    object.__setattr__(route, "token_out", normalize_address(route.token_out))
    token_path = _walk_tokens(route.pools, route.token_in)
    if token_path[-1] != route.token_out:
        raise ValueError(f"Route ends at {token_path[-1]}, expected {route.token_out}")
    object.__setattr__(route, "token_path", token_path)


def pool_addresses(route: Route) -> tuple[str, ...]:
    """Addresses of the pools along the route, in order."""
    return tuple(pool.address for pool in route.pools)


def route_to_string(route: Route) -> str:
    """Human-readable route, e.g. 'A -- [0.3%] --> B -- [0.05%] --> C'."""
    parts = [route.token_path[0]]
    for pool, token in zip(route.pools, route.token_path[1:], strict=True):
        if isinstance(pool, UniswapV3Pool):
            fee = f"{pool.fee / 10_000}%"
        else:
            fee = f"{pool.fee_bps / 100}%"
        parts.append(f" -- [{fee}] --> {token}")
    return "".join(parts)


__all__ = [
    "TradeType",
    "V2Route",
    "V3Route",
    "Route",
    "pool_addresses",
    "route_to_string",
]
