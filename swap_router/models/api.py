"""Pydantic models for the quote HTTP API.

Amounts travel as decimal strings (Uint256) so that values above 2^53
survive JSON round trips.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from swap_router.amm.uniswap_v2 import UniswapV2Pool
from swap_router.amm.uniswap_v3 import UniswapV3Pool
from swap_router.models.types import Address, PoolProtocol, Token, Uint256
from swap_router.pools.types import AnyPool
from swap_router.routing.best_split import SwapRoute
from swap_router.routing.candidates import RouteWithValidQuote
from swap_router.routing.types import TradeType, route_to_string


class TokenInfo(BaseModel):
    """Token metadata supplied by the caller."""

    address: Address
    # Up to 77 decimals fits in a uint256
    decimals: int = Field(ge=0, le=77)
    symbol: str | None = None

    def to_token(self, chain_id: int) -> Token:
        return Token(
            address=self.address,
            decimals=self.decimals,
            symbol=self.symbol,
            chain_id=chain_id,
        )


class V2PoolData(BaseModel):
    """Snapshot of a UniswapV2-style pool."""

    address: Address
    token0: Address
    token1: Address
    reserve0: Uint256
    reserve1: Uint256
    fee_bps: int = Field(default=30, ge=0, lt=10_000, alias="feeBps")

    model_config = {"populate_by_name": True}

    def to_pool(self) -> UniswapV2Pool:
        return UniswapV2Pool(
            address=self.address,
            token0=self.token0,
            token1=self.token1,
            reserve0=int(self.reserve0),
            reserve1=int(self.reserve1),
            fee_bps=self.fee_bps,
        )


class V3PoolData(BaseModel):
    """Snapshot of a UniswapV3 pool. Swaps through it are quoted on-chain."""

    address: Address
    token0: Address
    token1: Address
    fee: int = Field(ge=0, lt=1_000_000, description="Fee in hundredths of a bip")
    liquidity: Uint256 = "0"
    sqrt_price_x96: Uint256 = Field(default="0", alias="sqrtPriceX96")
    tick: int = 0

    model_config = {"populate_by_name": True}

    def to_pool(self) -> UniswapV3Pool:
        return UniswapV3Pool(
            address=self.address,
            token0=self.token0,
            token1=self.token1,
            fee=self.fee,
            liquidity=int(self.liquidity),
            sqrt_price_x96=int(self.sqrt_price_x96),
            tick=self.tick,
        )


class QuoteRequest(BaseModel):
    """A request to plan one swap."""

    chain_id: int = Field(default=1, alias="chainId")
    token_in: TokenInfo = Field(alias="tokenIn")
    token_out: TokenInfo = Field(alias="tokenOut")
    amount: Uint256 = Field(
        description="Input amount for exactIn, output amount for exactOut",
    )
    trade_type: TradeType = Field(default=TradeType.EXACT_INPUT, alias="tradeType")
    gas_price_wei: Uint256 = Field(default="0", alias="gasPriceWei")
    block_number: int | None = Field(default=None, ge=0, alias="blockNumber")
    v2_pools: list[V2PoolData] = Field(default_factory=list, alias="v2Pools")
    v3_pools: list[V3PoolData] = Field(default_factory=list, alias="v3Pools")

    model_config = {"populate_by_name": True}

    @property
    def amount_int(self) -> int:
        return int(self.amount)

    @property
    def gas_price_wei_int(self) -> int:
        return int(self.gas_price_wei)

    def pools(self) -> list[AnyPool]:
        """All pools in the request as routing pool objects."""
        return [p.to_pool() for p in self.v2_pools] + [p.to_pool() for p in self.v3_pools]


class RouteQuote(BaseModel):
    """One leg of the returned split."""

    protocol: PoolProtocol
    percent: int
    amount: Uint256
    quote: Uint256
    quote_gas_adjusted: str = Field(
        alias="quoteGasAdjusted",
        description="Signed decimal string; negative when gas exceeds the quote",
    )
    gas_estimate: int = Field(alias="gasEstimate")
    gas_cost_in_token: Uint256 = Field(alias="gasCostInToken")
    gas_cost_in_usd: Uint256 = Field(alias="gasCostInUsd")
    pools: list[Address]
    token_path: list[Address] = Field(alias="tokenPath")
    route: str

    model_config = {"populate_by_name": True}

    @classmethod
    def from_candidate(cls, candidate: RouteWithValidQuote) -> RouteQuote:
        return cls(
            protocol=candidate.protocol,
            percent=candidate.percent,
            amount=str(candidate.amount),
            quote=str(candidate.quote),
            quote_gas_adjusted=str(candidate.quote_adjusted_for_gas),
            gas_estimate=candidate.gas_estimate,
            gas_cost_in_token=str(candidate.gas_cost_in_token),
            gas_cost_in_usd=str(candidate.gas_cost_in_usd),
            pools=list(candidate.pool_addresses),
            token_path=list(candidate.token_path),
            route=route_to_string(candidate.route),
        )


class QuoteResponse(BaseModel):
    """Response to a QuoteRequest.

    An empty `routes` list means no route was found (or planning failed);
    the aggregate fields are then None.
    """

    routes: list[RouteQuote] = Field(default_factory=list)
    trade_type: TradeType | None = Field(default=None, alias="tradeType")
    amount: Uint256 | None = None
    quote: Uint256 | None = None
    quote_gas_adjusted: str | None = Field(default=None, alias="quoteGasAdjusted")
    estimated_gas_used: int | None = Field(default=None, alias="estimatedGasUsed")
    estimated_gas_used_usd: Uint256 | None = Field(default=None, alias="estimatedGasUsedUsd")
    estimated_gas_used_quote_token: Uint256 | None = Field(
        default=None, alias="estimatedGasUsedQuoteToken"
    )
    usd_token: Address | None = Field(default=None, alias="usdToken")

    model_config = {"populate_by_name": True}

    @classmethod
    def empty(cls) -> QuoteResponse:
        """Create a response with no routes."""
        return cls(routes=[])

    @classmethod
    def from_swap_route(cls, swap_route: SwapRoute) -> QuoteResponse:
        return cls(
            routes=[RouteQuote.from_candidate(r) for r in swap_route.routes],
            trade_type=swap_route.trade_type,
            amount=str(swap_route.amount),
            quote=str(swap_route.quote),
            quote_gas_adjusted=str(swap_route.quote_gas_adjusted),
            estimated_gas_used=swap_route.estimated_gas_used,
            estimated_gas_used_usd=str(swap_route.estimated_gas_used_usd),
            estimated_gas_used_quote_token=str(swap_route.estimated_gas_used_quote_token),
            usd_token=swap_route.usd_token.address,
        )


__all__ = [
    "TokenInfo",
    "V2PoolData",
    "V3PoolData",
    "QuoteRequest",
    "RouteQuote",
    "QuoteResponse",
]
