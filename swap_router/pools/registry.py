"""Pool registry: the in-memory pool graph consumed by routing.

PoolRegistry stores the V2 and V3 pools of one planning run. It is filled
by a pool provider and treated as read-only afterwards; route enumeration,
gas pricing and the split search all read from the same snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from swap_router.amm.uniswap_v2 import UniswapV2Pool
from swap_router.amm.uniswap_v3 import UniswapV3Pool
from swap_router.models.types import PoolProtocol, normalize_address
from swap_router.pools.types import AnyPool

logger = structlog.get_logger()


def _pair_key(token_a: str, token_b: str) -> tuple[str, str]:
    a = normalize_address(token_a)
    b = normalize_address(token_b)
    return (a, b) if a < b else (b, a)


class PoolRegistry:
    """Registry of V2 and V3 pools for one planning run.

    V2 has at most one pool per token pair. V3 may have one pool per fee
    tier, so V3 pools are keyed by (token0, token1, fee) with a secondary
    by-pair index.
    """

    def __init__(self, pools: Iterable[AnyPool] | None = None) -> None:
        self._v2_pools: dict[tuple[str, str], UniswapV2Pool] = {}
        self._v3_pools: dict[tuple[str, str, int], UniswapV3Pool] = {}
        self._v3_pools_by_pair: dict[tuple[str, str], list[UniswapV3Pool]] = {}

        if pools:
            for pool in pools:
                self.add_any_pool(pool)

    def add_any_pool(self, pool: AnyPool) -> None:
        """Add a pool of any supported type.

        Raises:
            TypeError: If pool type is not supported
        """
        if isinstance(pool, UniswapV2Pool):
            self.add_pool(pool)
        elif isinstance(pool, UniswapV3Pool):
            self.add_v3_pool(pool)
        else:
            raise TypeError(f"Unknown pool type: {type(pool)}")

    def add_pool(self, pool: UniswapV2Pool) -> None:
        """Add a V2 pool, replacing any existing pool for the same pair."""
        key = _pair_key(pool.token0, pool.token1)
        if key in self._v2_pools:
            logger.debug(
                "v2_pool_replaced",
                pool=pool.address[-8:],
                token0=key[0][-8:],
                token1=key[1][-8:],
            )
        self._v2_pools[key] = pool

    def get_pool(self, token_a: str, token_b: str) -> UniswapV2Pool | None:
        """Get the V2 pool for a token pair (order independent)."""
        return self._v2_pools.get(_pair_key(token_a, token_b))

    def add_v3_pool(self, pool: UniswapV3Pool) -> None:
        """Add a V3 pool, replacing any existing pool with the same pair and fee."""
        pair_key = _pair_key(pool.token0, pool.token1)
        key = (*pair_key, pool.fee)

        pools = self._v3_pools_by_pair.setdefault(pair_key, [])
        if key in self._v3_pools:
            pools[:] = [p for p in pools if p.fee != pool.fee]
        pools.append(pool)
        self._v3_pools[key] = pool

    def get_v3_pool(self, token_a: str, token_b: str, fee: int) -> UniswapV3Pool | None:
        """Get the V3 pool for a token pair and fee tier."""
        return self._v3_pools.get((*_pair_key(token_a, token_b), fee))

    def get_v3_pools(self, token_a: str, token_b: str) -> list[UniswapV3Pool]:
        """Get all V3 pools for a token pair (all fee tiers, may be empty)."""
        return list(self._v3_pools_by_pair.get(_pair_key(token_a, token_b), []))

    def get_pool_address(self, token_a: str, token_b: str, fee: int | None = None) -> str | None:
        """Address of the V2 pool (fee=None) or V3 pool (fee given) for a pair."""
        pool: AnyPool | None
        if fee is None:
            pool = self.get_pool(token_a, token_b)
        else:
            pool = self.get_v3_pool(token_a, token_b, fee)
        return pool.address if pool is not None else None

    @property
    def v2_pools(self) -> list[UniswapV2Pool]:
        return list(self._v2_pools.values())

    @property
    def v3_pools(self) -> list[UniswapV3Pool]:
        return list(self._v3_pools.values())

    def pools_for_routing(self, protocol: PoolProtocol) -> list[AnyPool]:
        """All pools of one protocol, in insertion order."""
        if protocol == PoolProtocol.V2:
            return list(self.v2_pools)
        return list(self.v3_pools)

    def filter(self, tokens: Iterable[str]) -> PoolRegistry:
        """New registry keeping only pools whose two tokens are both in `tokens`."""
        allowed = {normalize_address(t) for t in tokens}
        kept: list[AnyPool] = [
            pool
            for pool in (*self.v2_pools, *self.v3_pools)
            if pool.token0 in allowed and pool.token1 in allowed
        ]
        return PoolRegistry(kept)

    @property
    def pool_count(self) -> int:
        """Total number of pools across protocols."""
        return len(self._v2_pools) + len(self._v3_pools)

    def __len__(self) -> int:
        return self.pool_count


__all__ = ["PoolRegistry"]
