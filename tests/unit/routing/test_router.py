"""Tests for SplitRouter, the end-to-end planning run."""

import asyncio
from dataclasses import replace

import pytest

from swap_router.config import DEFAULT_ROUTING_CONFIG
from swap_router.constants import ChainId
from swap_router.errors import ConfigurationError
from swap_router.gas.base import FixedGasModel, FixedGasModelFactory
from swap_router.models.types import PoolProtocol
from swap_router.pools.providers import StaticPoolProvider
from swap_router.quoting.multicall import MockMulticallClient
from swap_router.quoting.offchain import V2QuoteProvider, quote_exact_in, quote_exact_out
from swap_router.quoting.onchain import V3QuoteProvider
from swap_router.routing.router import SplitRouter
from swap_router.routing.types import TradeType, V2Route
from tests.helpers import (
    DAI_TOKEN,
    TOKEN_A,
    TOKEN_A_TOKEN,
    TOKEN_B,
    TOKEN_B_TOKEN,
    TOKEN_C,
    TOKEN_C_TOKEN,
    make_v2_pool,
    make_v3_pool,
    quoter_response,
)

AMOUNT = 100 * 10**18


@pytest.fixture
def triangle_pools():
    """A-C directly, and A-B-C through the base B; all 1000/1000."""
    return [
        make_v2_pool(TOKEN_A, TOKEN_C),
        make_v2_pool(TOKEN_A, TOKEN_B),
        make_v2_pool(TOKEN_B, TOKEN_C),
    ]


def make_router(pools, gas_model_factories, v3_quote_provider=None, chain_id=1, **config):
    return SplitRouter(
        chain_id=chain_id,
        pool_provider=StaticPoolProvider(chain_id, pools, bases=[TOKEN_B_TOKEN]),
        v2_quote_provider=V2QuoteProvider(),
        v3_quote_provider=v3_quote_provider,
        gas_model_factories=gas_model_factories,
        routing_config=replace(DEFAULT_ROUTING_CONFIG, **config),
    )


def plan(router, amount=AMOUNT, trade_type=TradeType.EXACT_INPUT, **kwargs):
    return asyncio.run(
        router.route(amount, TOKEN_A_TOKEN, TOKEN_C_TOKEN, trade_type, gas_price_wei=0, **kwargs)
    )


class TestSplitRouterV2:
    """Tests for planning over off-chain V2 quotes."""

    def test_exact_in_beats_every_single_route(self, triangle_pools, fixed_gas_factories):
        direct = V2Route((triangle_pools[0],), TOKEN_A, TOKEN_C)
        two_hop = V2Route((triangle_pools[1], triangle_pools[2]), TOKEN_A, TOKEN_C)

        swap_route = plan(make_router(triangle_pools, fixed_gas_factories))

        assert swap_route is not None
        assert sum(r.percent for r in swap_route.routes) == 100
        assert sum(r.amount for r in swap_route.routes) == AMOUNT
        assert swap_route.quote == sum(r.quote for r in swap_route.routes)
        assert swap_route.quote >= quote_exact_in(direct, AMOUNT)
        assert swap_route.quote >= quote_exact_in(two_hop, AMOUNT)

    def test_large_trade_is_split(self, triangle_pools, fixed_gas_factories):
        """10% of the reserves moves the price enough that splitting pays."""
        swap_route = plan(make_router(triangle_pools, fixed_gas_factories))

        assert len(swap_route.routes) == 2
        assert swap_route.routes[0].amount >= swap_route.routes[1].amount

    def test_max_splits_one(self, triangle_pools, fixed_gas_factories):
        direct = V2Route((triangle_pools[0],), TOKEN_A, TOKEN_C)

        swap_route = plan(make_router(triangle_pools, fixed_gas_factories, max_splits=1))

        assert len(swap_route.routes) == 1
        assert swap_route.routes[0].percent == 100
        assert swap_route.quote == quote_exact_in(direct, AMOUNT)

    def test_exact_out_minimizes_input(self, triangle_pools, fixed_gas_factories):
        direct = V2Route((triangle_pools[0],), TOKEN_A, TOKEN_C)

        swap_route = plan(
            make_router(triangle_pools, fixed_gas_factories),
            trade_type=TradeType.EXACT_OUTPUT,
        )

        assert swap_route.trade_type == TradeType.EXACT_OUTPUT
        assert sum(r.amount for r in swap_route.routes) == AMOUNT
        assert swap_route.quote <= quote_exact_out(direct, AMOUNT)

    def test_gas_adjusted_quote(self, triangle_pools):
        factory = FixedGasModelFactory(
            FixedGasModel(usd_token=DAI_TOKEN, gas_estimate=100_000, gas_cost_in_token=10**15)
        )

        swap_route = plan(
            make_router(triangle_pools, {PoolProtocol.V2: factory}, max_splits=1)
        )

        assert swap_route.estimated_gas_used == 100_000
        assert swap_route.quote_gas_adjusted == swap_route.quote - 10**15

    def test_no_route(self, fixed_gas_factories):
        router = make_router([make_v2_pool(TOKEN_A, TOKEN_B)], fixed_gas_factories)
        assert plan(router) is None

    def test_no_pools_at_all(self, fixed_gas_factories):
        with pytest.raises(ConfigurationError, match="No pools found"):
            plan(make_router([], fixed_gas_factories))

    def test_no_relevant_pools_is_no_route(self, fixed_gas_factories):
        """Pools exist on the chain, just none that connect the pair."""
        router = make_router([make_v2_pool(TOKEN_A, "0x" + "ee" * 20)], fixed_gas_factories)
        assert plan(router) is None

    @pytest.mark.parametrize("amount", [0, -1])
    def test_non_positive_amount(self, triangle_pools, fixed_gas_factories, amount):
        with pytest.raises(ValueError, match="amount must be positive"):
            plan(make_router(triangle_pools, fixed_gas_factories), amount=amount)

    def test_protocol_without_gas_factory_is_skipped(self, triangle_pools):
        factory = FixedGasModelFactory(FixedGasModel(usd_token=DAI_TOKEN))
        router = make_router(triangle_pools, {PoolProtocol.V3: factory})

        assert plan(router) is None


class TestSplitRouterV3:
    """Tests for planning with on-chain V3 quotes from a scripted client."""

    def test_v3_quotes_used(self, fixed_gas_factories, no_backoff):
        # The scripted quoter pays 2x with no price impact, so all of the
        # trade goes through V3.
        v2 = make_v2_pool(TOKEN_A, TOKEN_C)
        v3 = make_v3_pool(TOKEN_A, TOKEN_C)
        client = MockMulticallClient(default=quoter_response(rate=2, block_number=77))
        v3_provider = V3QuoteProvider(1, client, retry_options=no_backoff)

        swap_route = plan(
            make_router([v2, v3], fixed_gas_factories, v3_quote_provider=v3_provider),
            block_number=77,
        )

        (only,) = swap_route.routes
        assert only.protocol == PoolProtocol.V3
        assert only.quote == 2 * AMOUNT
        assert {call.block_number for call in client.calls} == {77}

    def test_v3_disabled_by_config(self, fixed_gas_factories, no_backoff):
        v2 = make_v2_pool(TOKEN_A, TOKEN_C)
        v3 = make_v3_pool(TOKEN_A, TOKEN_C)
        client = MockMulticallClient(default=quoter_response())
        v3_provider = V3QuoteProvider(1, client, retry_options=no_backoff)
        router = make_router(
            [v2, v3],
            fixed_gas_factories,
            v3_quote_provider=v3_provider,
            protocols=(PoolProtocol.V2,),
        )

        swap_route = plan(router)

        assert [r.protocol for r in swap_route.routes] == [PoolProtocol.V2]
        assert client.calls == []

    def test_force_cross_protocol(self, fixed_gas_factories, no_backoff):
        v2 = make_v2_pool(TOKEN_A, TOKEN_C)
        v3 = make_v3_pool(TOKEN_A, TOKEN_C)
        client = MockMulticallClient(default=quoter_response(rate=2))
        v3_provider = V3QuoteProvider(1, client, retry_options=no_backoff)
        router = make_router(
            [v2, v3],
            fixed_gas_factories,
            v3_quote_provider=v3_provider,
            force_cross_protocol=True,
        )

        swap_route = plan(router)

        assert {r.protocol for r in swap_route.routes} == {PoolProtocol.V2, PoolProtocol.V3}

    def test_arbitrum_gas_errors_fall_back_to_v2(self, fixed_gas_factories, no_backoff):
        """V3 gas failures on Arbitrum drop the V3 candidates but keep V2 routing."""
        v2 = make_v2_pool(TOKEN_A, TOKEN_C)
        v3 = make_v3_pool(TOKEN_A, TOKEN_C)
        client = MockMulticallClient(default=RuntimeError("out of gas"))
        v3_provider = V3QuoteProvider(ChainId.ARBITRUM_ONE, client, retry_options=no_backoff)
        router = make_router(
            [v2, v3],
            fixed_gas_factories,
            v3_quote_provider=v3_provider,
            chain_id=ChainId.ARBITRUM_ONE,
        )

        swap_route = plan(router)

        (only,) = swap_route.routes
        assert only.protocol == PoolProtocol.V2
        assert only.percent == 100
        assert client.calls
