"""Tests for PoolRegistry."""

import pytest

from swap_router.models.types import PoolProtocol
from swap_router.pools import PoolRegistry
from tests.helpers import DAI, TOKEN_A, TOKEN_B, TOKEN_C, USDC, WETH, make_v2_pool, make_v3_pool


class TestPoolRegistryV2:
    """Tests for V2 pool storage."""

    def test_empty_registry(self):
        registry = PoolRegistry()
        assert registry.pool_count == 0
        assert len(registry) == 0
        assert registry.get_pool(TOKEN_A, TOKEN_B) is None

    def test_lookup_is_order_independent(self):
        pool = make_v2_pool(TOKEN_A, TOKEN_B)
        registry = PoolRegistry([pool])

        assert registry.get_pool(TOKEN_A, TOKEN_B) is pool
        assert registry.get_pool(TOKEN_B, TOKEN_A) is pool
        assert registry.get_pool(TOKEN_A.upper().replace("0X", "0x"), TOKEN_B) is pool

    def test_same_pair_replaces(self):
        """V2 has one pool per pair; the last one added wins."""
        first = make_v2_pool(TOKEN_A, TOKEN_B)
        second = make_v2_pool(TOKEN_B, TOKEN_A)
        registry = PoolRegistry([first, second])

        assert registry.pool_count == 1
        assert registry.get_pool(TOKEN_A, TOKEN_B) is second

    def test_unknown_pool_type_rejected(self):
        with pytest.raises(TypeError, match="Unknown pool type"):
            PoolRegistry().add_any_pool("not a pool")  # type: ignore[arg-type]


class TestPoolRegistryV3:
    """Tests for V3 pool storage by fee tier."""

    def test_one_pool_per_fee_tier(self):
        low = make_v3_pool(USDC, WETH, fee=500)
        high = make_v3_pool(USDC, WETH, fee=3000)
        registry = PoolRegistry([low, high])

        assert registry.pool_count == 2
        assert registry.get_v3_pool(WETH, USDC, 500) is low
        assert registry.get_v3_pool(WETH, USDC, 3000) is high
        assert registry.get_v3_pool(WETH, USDC, 100) is None
        assert registry.get_v3_pools(WETH, USDC) == [low, high]

    def test_same_fee_tier_replaces(self):
        old = make_v3_pool(USDC, WETH, fee=500)
        new = make_v3_pool(USDC, WETH, fee=500)
        registry = PoolRegistry([old, new])

        assert registry.get_v3_pools(USDC, WETH) == [new]
        assert registry.v3_pools == [new]

    def test_get_v3_pools_returns_copy(self):
        registry = PoolRegistry([make_v3_pool(USDC, WETH)])
        registry.get_v3_pools(USDC, WETH).clear()
        assert len(registry.get_v3_pools(USDC, WETH)) == 1


class TestPoolRegistryQueries:
    """Tests for cross-protocol queries."""

    def test_get_pool_address(self):
        v2 = make_v2_pool(USDC, WETH)
        v3 = make_v3_pool(USDC, WETH, fee=500)
        registry = PoolRegistry([v2, v3])

        assert registry.get_pool_address(WETH, USDC) == v2.address
        assert registry.get_pool_address(WETH, USDC, fee=500) == v3.address
        assert registry.get_pool_address(WETH, DAI) is None

    def test_pools_for_routing(self):
        v2 = make_v2_pool(USDC, WETH)
        v3 = make_v3_pool(USDC, WETH)
        registry = PoolRegistry([v2, v3])

        assert registry.pools_for_routing(PoolProtocol.V2) == [v2]
        assert registry.pools_for_routing(PoolProtocol.V3) == [v3]

    def test_filter_keeps_pools_inside_token_set(self):
        """Both tokens of a pool must be in the allowed set."""
        ab = make_v2_pool(TOKEN_A, TOKEN_B)
        bc = make_v2_pool(TOKEN_B, TOKEN_C)
        ac = make_v3_pool(TOKEN_A, TOKEN_C)
        registry = PoolRegistry([ab, bc, ac])

        filtered = registry.filter([TOKEN_A, TOKEN_B])

        assert filtered.v2_pools == [ab]
        assert filtered.v3_pools == []
        # The source registry is untouched
        assert registry.pool_count == 3
