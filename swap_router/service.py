"""Quote service: turns an API request into a planning run.

Pools arrive with each request, so a SplitRouter is built per request
around a StaticPoolProvider. The V3 on-chain quoter is shared across
requests and is only available when ROUTER_RPC_URL is set.
"""

from __future__ import annotations

import os

import structlog

from swap_router.config import DEFAULT_ROUTING_CONFIG, RoutingConfig
from swap_router.gas.base import GasModelFactory
from swap_router.gas.heuristic import V2HeuristicGasModelFactory, V3HeuristicGasModelFactory
from swap_router.models.api import QuoteRequest, QuoteResponse
from swap_router.models.types import PoolProtocol
from swap_router.pools.providers import StaticPoolProvider
from swap_router.quoting.base import QuoteProvider
from swap_router.quoting.multicall import BatchedRPCClient
from swap_router.quoting.offchain import V2QuoteProvider
from swap_router.quoting.onchain import V3QuoteProvider
from swap_router.routing.router import SplitRouter
from swap_router.routing.types import V3Route

logger = structlog.get_logger()


class QuoteService:
    """Plans swaps for API requests.

    Args:
        v3_client: Batched RPC client for V3 quotes; V3 pools in requests
            are ignored when None
        routing_config: Search parameters for every request
        gas_model_factories: Gas model factory per protocol
    """

    def __init__(
        self,
        v3_client: BatchedRPCClient | None = None,
        routing_config: RoutingConfig = DEFAULT_ROUTING_CONFIG,
        gas_model_factories: dict[PoolProtocol, GasModelFactory] | None = None,
    ):
        self.v3_client = v3_client
        self.routing_config = routing_config
        self.gas_model_factories: dict[PoolProtocol, GasModelFactory] = (
            gas_model_factories
            if gas_model_factories is not None
            else {
                PoolProtocol.V2: V2HeuristicGasModelFactory(),
                PoolProtocol.V3: V3HeuristicGasModelFactory(),
            }
        )

    @property
    def v3_enabled(self) -> bool:
        return self.v3_client is not None

    def build_router(self, request: QuoteRequest) -> SplitRouter:
        """Build a router over the pools carried by the request."""
        v3_quote_provider: QuoteProvider[V3Route] | None = None
        if self.v3_client is not None and request.v3_pools:
            v3_quote_provider = V3QuoteProvider(request.chain_id, self.v3_client)

        return SplitRouter(
            chain_id=request.chain_id,
            pool_provider=StaticPoolProvider(request.chain_id, request.pools()),
            v2_quote_provider=V2QuoteProvider(),
            v3_quote_provider=v3_quote_provider,
            gas_model_factories=self.gas_model_factories,
            routing_config=self.routing_config,
        )

    async def quote(self, request: QuoteRequest) -> QuoteResponse:
        router = self.build_router(request)
        swap_route = await router.route(
            amount=request.amount_int,
            token_in=request.token_in.to_token(request.chain_id),
            token_out=request.token_out.to_token(request.chain_id),
            trade_type=request.trade_type,
            gas_price_wei=request.gas_price_wei_int,
            block_number=request.block_number,
        )
        if swap_route is None:
            return QuoteResponse.empty()
        return QuoteResponse.from_swap_route(swap_route)


def _create_default_service() -> QuoteService:
    """Create the default service from environment variables.

    V3 quoting is enabled if ROUTER_RPC_URL is set. Routing parameters come
    from the ROUTER_* variables read by RoutingConfig.from_env.
    """
    routing_config = RoutingConfig.from_env()

    rpc_url = os.environ.get("ROUTER_RPC_URL")
    if rpc_url:
        from swap_router.quoting.multicall import Web3MulticallClient

        logger.info("v3_support_enabled", rpc_url=rpc_url[:50] + "...")
        return QuoteService(
            v3_client=Web3MulticallClient(rpc_url),
            routing_config=routing_config,
        )

    logger.info("v3_support_disabled", reason="ROUTER_RPC_URL not set")
    return QuoteService(routing_config=routing_config)


_default_service: QuoteService | None = None


def get_default_service() -> QuoteService:
    """Return the process-wide service, creating it on first use."""
    global _default_service
    if _default_service is None:
        _default_service = _create_default_service()
    return _default_service


__all__ = ["QuoteService", "get_default_service"]
