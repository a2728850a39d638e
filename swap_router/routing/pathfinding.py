"""Route enumeration over a pool graph.

Enumeration is an exhaustive depth-first search bounded by a hop limit.
The search space is small (max_hops x pool fan-out after the provider has
narrowed the pool set to routing bases), so no memoization is needed.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

import structlog

from swap_router.amm.base import Pool
from swap_router.amm.uniswap_v2 import UniswapV2Pool
from swap_router.amm.uniswap_v3 import UniswapV3Pool
from swap_router.models.types import normalize_address
from swap_router.routing.types import V2Route, V3Route

logger = structlog.get_logger()

P = TypeVar("P", bound=Pool)
R = TypeVar("R")


def compute_all_routes(
    token_in: str,
    token_out: str,
    pools: Sequence[P],
    max_hops: int,
    route_factory: Callable[[tuple[P, ...], str, str], R],
) -> list[R]:
    """Enumerate every path from token_in to token_out with at most max_hops pools.

    A pool is never used twice within one path, but the same pool may
    appear in several different paths. Paths are returned in DFS order,
    which follows the order of `pools`.

    Args:
        token_in: Source token
        token_out: Destination token
        pools: Candidate pools
        max_hops: Maximum number of pools per path; 0 or less yields nothing
        route_factory: Builds a route object from (pools, token_in, token_out)

    Returns:
        All distinct paths (possibly empty)
    """
    token_in = normalize_address(token_in)
    token_out = normalize_address(token_out)
    routes: list[R] = []

    if max_hops <= 0 or token_in == token_out:
        return routes

    used = [False] * len(pools)
    current: list[P] = []

    def visit(frontier: str) -> None:
        for i, pool in enumerate(pools):
            if used[i] or not pool.involves_token(frontier):
                continue

            next_token = pool.other_token(frontier)
            current.append(pool)
            used[i] = True

            if next_token == token_out:
                routes.append(route_factory(tuple(current), token_in, token_out))
            elif len(current) < max_hops:
                visit(next_token)

            used[i] = False
            current.pop()

    visit(token_in)

    logger.debug(
        "computed_routes",
        token_in=token_in[-8:],
        token_out=token_out[-8:],
        max_hops=max_hops,
        pool_count=len(pools),
        route_count=len(routes),
    )
    return routes


def compute_all_v2_routes(
    token_in: str,
    token_out: str,
    pools: Sequence[UniswapV2Pool],
    max_hops: int,
) -> list[V2Route]:
    """All V2 routes between two tokens."""
    return compute_all_routes(token_in, token_out, pools, max_hops, V2Route)


def compute_all_v3_routes(
    token_in: str,
    token_out: str,
    pools: Sequence[UniswapV3Pool],
    max_hops: int,
) -> list[V3Route]:
    """All V3 routes between two tokens."""
    return compute_all_routes(token_in, token_out, pools, max_hops, V3Route)


__all__ = ["compute_all_routes", "compute_all_v2_routes", "compute_all_v3_routes"]
