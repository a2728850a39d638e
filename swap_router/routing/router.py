"""SplitRouter: plans a swap end to end.

One call to `route` is one planning run:

1. Fetch the candidate pools for the pair
2. Split the amount into probed fractions
3. Enumerate and quote routes for every enabled protocol concurrently
4. Price the quotes with each protocol's gas model
5. Search for the best split and validate it
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from swap_router.config import DEFAULT_ROUTING_CONFIG, RoutingConfig
from swap_router.gas.base import GasModelFactory
from swap_router.models.types import PoolProtocol, Token
from swap_router.pools.providers import PoolProvider
from swap_router.pools.registry import PoolRegistry
from swap_router.quoting.base import QuoteProvider, RouteWithQuotes
from swap_router.routing.best_split import SwapRoute, get_best_swap_route
from swap_router.routing.candidates import (
    RouteWithValidQuote,
    build_routes_with_valid_quotes,
    get_amount_distribution,
)
from swap_router.routing.pathfinding import compute_all_v2_routes, compute_all_v3_routes
from swap_router.routing.types import TradeType, V2Route, V3Route

logger = structlog.get_logger()


@dataclass(frozen=True)
class _PlanningRun:
    """Inputs shared by every protocol within one call to SplitRouter.route."""

    token_in: Token
    token_out: Token
    trade_type: TradeType
    quote_token: Token
    registry: PoolRegistry
    percents: list[int]
    amounts: list[int]
    gas_price_wei: int
    block_number: int | None


class SplitRouter:
    """Finds the best split route for a swap.

    Args:
        chain_id: Chain the pools live on
        pool_provider: Source of pools for a token pair
        v2_quote_provider: Quotes V2 routes; V2 is skipped when None
        v3_quote_provider: Quotes V3 routes; V3 is skipped when None
        gas_model_factories: Gas model factory per protocol; a protocol
            without one is skipped
        routing_config: Search parameters
    """

    def __init__(
        self,
        chain_id: int,
        pool_provider: PoolProvider,
        v2_quote_provider: QuoteProvider[V2Route] | None,
        v3_quote_provider: QuoteProvider[V3Route] | None = None,
        gas_model_factories: dict[PoolProtocol, GasModelFactory] | None = None,
        routing_config: RoutingConfig = DEFAULT_ROUTING_CONFIG,
    ):
        self.chain_id = chain_id
        self.pool_provider = pool_provider
        self.v2_quote_provider = v2_quote_provider
        self.v3_quote_provider = v3_quote_provider
        self.gas_model_factories = gas_model_factories or {}
        self.routing_config = routing_config

    async def route(
        self,
        amount: int,
        token_in: Token,
        token_out: Token,
        trade_type: TradeType,
        gas_price_wei: int,
        block_number: int | None = None,
    ) -> SwapRoute | None:
        """Plan a swap of `amount`.

        For exact-input trades `amount` is in token_in and quotes are in
        token_out; for exact-output trades it is the other way round.

        Returns:
            The best SwapRoute, or None if no route exists

        Raises:
            ConfigurationError: If the chain has no pools or no gas pricing
            QuoteFetchError: If on-chain quoting exhausted its retries
        """
        if amount <= 0:
            raise ValueError(f"amount must be positive, got {amount}")

        percents, amounts = get_amount_distribution(
            amount, self.routing_config.distribution_percent
        )
        run = _PlanningRun(
            token_in=token_in,
            token_out=token_out,
            trade_type=trade_type,
            quote_token=token_out if trade_type == TradeType.EXACT_INPUT else token_in,
            registry=self.pool_provider.get_pools(token_in.address, token_out.address),
            percents=percents,
            amounts=amounts,
            gas_price_wei=gas_price_wei,
            block_number=block_number,
        )

        tasks = []
        for protocol in self.routing_config.protocols:
            if protocol not in self.gas_model_factories:
                continue
            if protocol == PoolProtocol.V2 and self.v2_quote_provider is not None:
                tasks.append(self._get_v2_candidates(run))
            elif protocol == PoolProtocol.V3 and self.v3_quote_provider is not None:
                tasks.append(self._get_v3_candidates(run))

        candidates: list[RouteWithValidQuote] = []
        for protocol_candidates in await asyncio.gather(*tasks):
            candidates.extend(protocol_candidates)

        swap_route = get_best_swap_route(
            amount,
            percents,
            candidates,
            trade_type,
            self.chain_id,
            self.routing_config,
        )

        if swap_route is None:
            logger.info(
                "no_route_found",
                token_in=str(token_in),
                token_out=str(token_out),
                amount=amount,
                trade_type=trade_type.value,
                candidate_count=len(candidates),
            )
            return None

        swap_route.validate()
        logger.info(
            "route_found",
            token_in=str(token_in),
            token_out=str(token_out),
            amount=amount,
            trade_type=trade_type.value,
            num_splits=len(swap_route.routes),
            quote=swap_route.quote,
            quote_gas_adjusted=swap_route.quote_gas_adjusted,
        )
        return swap_route

    async def _get_v2_candidates(self, run: _PlanningRun) -> list[RouteWithValidQuote]:
        assert self.v2_quote_provider is not None
        routes = compute_all_v2_routes(
            run.token_in.address,
            run.token_out.address,
            run.registry.v2_pools,
            self.routing_config.max_hops,
        )
        if not routes:
            return []
        if run.trade_type == TradeType.EXACT_INPUT:
            quotes = await self.v2_quote_provider.get_quotes_many_exact_in(
                run.amounts, routes, block_number=run.block_number
            )
        else:
            quotes = await self.v2_quote_provider.get_quotes_many_exact_out(
                run.amounts, routes, block_number=run.block_number
            )
        return self._price(PoolProtocol.V2, quotes, run)

    async def _get_v3_candidates(self, run: _PlanningRun) -> list[RouteWithValidQuote]:
        assert self.v3_quote_provider is not None
        routes = compute_all_v3_routes(
            run.token_in.address,
            run.token_out.address,
            run.registry.v3_pools,
            self.routing_config.max_hops,
        )
        if not routes:
            return []
        if run.trade_type == TradeType.EXACT_INPUT:
            quotes = await self.v3_quote_provider.get_quotes_many_exact_in(
                run.amounts, routes, block_number=run.block_number
            )
        else:
            quotes = await self.v3_quote_provider.get_quotes_many_exact_out(
                run.amounts, routes, block_number=run.block_number
            )
        return self._price(PoolProtocol.V3, quotes, run)

    def _price(
        self,
        protocol: PoolProtocol,
        routes_with_quotes: Sequence[RouteWithQuotes],
        run: _PlanningRun,
    ) -> list[RouteWithValidQuote]:
        gas_model = self.gas_model_factories[protocol].build_gas_model(
            self.chain_id, run.gas_price_wei, run.registry, run.quote_token
        )
        return build_routes_with_valid_quotes(
            routes_with_quotes, run.percents, run.trade_type, run.quote_token, gas_model
        )


__all__ = ["SplitRouter"]
