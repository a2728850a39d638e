"""Heuristic gas models for V2 and V3 routes.

Gas is estimated from the shape of the route (hops, and for V3 the
initialized ticks crossed as reported by the quoter), priced at the run's
gas price in the wrapped native currency, then converted:

- to the quote token through the deepest native/quote-token pool, and
- to USD through the deepest native/stablecoin pool.

Conversions use the pool's spot price. If no native/quote-token pool
exists the route is not charged for gas; if no USD pool exists the model
cannot be built at all.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog
from eth_abi import encode  # type: ignore[attr-defined]

from swap_router.amm.uniswap_v2 import UniswapV2Pool
from swap_router.amm.uniswap_v3 import UniswapV3Pool, encode_quote_call, encode_v3_path
from swap_router.constants import (
    USD_GAS_TOKENS_BY_CHAIN,
    V2_BASE_SWAP_COST,
    V2_COST_PER_EXTRA_HOP,
    V3_BASE_SWAP_COST,
    V3_COST_PER_HOP,
    V3_COST_PER_INIT_TICK,
    WRAPPED_NATIVE_CURRENCY,
    ChainId,
)
from swap_router.errors import ConfigurationError
from swap_router.gas.base import GasCost, L1FeeCalculator, L1GasCost, NativePricer
from swap_router.models.types import Token
from swap_router.pools.registry import PoolRegistry
from swap_router.quoting.base import AmountQuote
from swap_router.routing.types import Route, V3Route

logger = structlog.get_logger()

SpotPool = UniswapV2Pool | UniswapV3Pool


def wrapped_native_currency(chain_id: int) -> Token:
    """Raises ConfigurationError for chains without a known wrapped native token."""
    native = WRAPPED_NATIVE_CURRENCY.get(chain_id)
    if native is None:
        raise ConfigurationError(f"No wrapped native currency configured for chain {chain_id}")
    return native


def usd_gas_tokens(chain_id: int) -> list[Token]:
    """Raises ConfigurationError for chains without USD reference tokens."""
    tokens = USD_GAS_TOKENS_BY_CHAIN.get(chain_id)
    if not tokens:
        raise ConfigurationError(
            f"Could not find a USD token for computing gas costs on {chain_id}"
        )
    return tokens


@dataclass(frozen=True)
class PoolNativePricer:
    """Prices native-currency amounts through spot prices of two pools.

    native_pool is None when the quote token has no pool against the
    native token; quote-token conversions then return 0.
    """

    native: Token
    quote_token: Token
    usd_token: Token
    usd_pool: SpotPool
    native_pool: SpotPool | None

    @property
    def can_price_quote_token(self) -> bool:
        return self.quote_token == self.native or self.native_pool is not None

    def to_quote_token(self, amount_native: int) -> int:
        if self.quote_token == self.native:
            return amount_native
        if self.native_pool is None:
            return 0
        return self.native_pool.quote_at_spot(self.native.address, amount_native)

    def to_usd(self, amount_native: int) -> int:
        return self.usd_pool.quote_at_spot(self.native.address, amount_native)

    def gas_cost(self, gas_use: int, cost_native: int) -> GasCost:
        if not self.can_price_quote_token:
            return GasCost(
                gas_estimate=gas_use,
                gas_cost_in_token=0,
                gas_cost_in_usd=0,
                usd_token=self.usd_token,
            )
        return GasCost(
            gas_estimate=gas_use,
            gas_cost_in_token=self.to_quote_token(cost_native),
            gas_cost_in_usd=self.to_usd(cost_native),
            usd_token=self.usd_token,
        )

    @classmethod
    def from_v2_pools(
        cls, chain_id: int, registry: PoolRegistry, quote_token: Token
    ) -> PoolNativePricer:
        """Pick the deepest V2 native/USD pool and the native/quote-token pair.

        Raises:
            ConfigurationError: If no USD token or no native/USD pool is available
        """
        native = wrapped_native_currency(chain_id)
        candidates: list[tuple[UniswapV2Pool, Token]] = []
        for usd_token in usd_gas_tokens(chain_id):
            pool = registry.get_pool(native.address, usd_token.address)
            if pool is not None and pool.reserve0 > 0 and pool.reserve1 > 0:
                candidates.append((pool, usd_token))
        if not candidates:
            raise ConfigurationError(
                f"Could not find a USD/{native} pool for computing gas costs on {chain_id}"
            )
        usd_pool, usd_token = max(candidates, key=lambda c: c[0].reserve_of(native.address))

        native_pool: UniswapV2Pool | None = None
        if quote_token != native:
            native_pool = registry.get_pool(native.address, quote_token.address)
            if native_pool is not None and (native_pool.reserve0 == 0 or native_pool.reserve1 == 0):
                native_pool = None
            if native_pool is None:
                logger.info(
                    "gas_native_pool_missing",
                    protocol="V2",
                    quote_token=str(quote_token),
                    message="Route will not account for gas",
                )

        return cls(native, quote_token, usd_token, usd_pool, native_pool)

    @classmethod
    def from_v3_pools(
        cls, chain_id: int, registry: PoolRegistry, quote_token: Token
    ) -> PoolNativePricer:
        """Pick the highest-liquidity V3 native/USD and native/quote-token pools.

        Raises:
            ConfigurationError: If no USD token or no native/USD pool is available
        """
        native = wrapped_native_currency(chain_id)
        candidates: list[tuple[UniswapV3Pool, Token]] = []
        for usd_token in usd_gas_tokens(chain_id):
            for pool in registry.get_v3_pools(native.address, usd_token.address):
                if pool.sqrt_price_x96 > 0:
                    candidates.append((pool, usd_token))
        if not candidates:
            raise ConfigurationError(
                f"Could not find a USD/{native} pool for computing gas costs on {chain_id}"
            )
        usd_pool, usd_token = max(candidates, key=lambda c: c[0].liquidity)

        native_pool: UniswapV3Pool | None = None
        if quote_token != native:
            pools = [
                p
                for p in registry.get_v3_pools(native.address, quote_token.address)
                if p.sqrt_price_x96 > 0
            ]
            if pools:
                native_pool = max(pools, key=lambda p: p.liquidity)
            else:
                logger.info(
                    "gas_native_pool_missing",
                    protocol="V3",
                    quote_token=str(quote_token),
                    message="Route will not account for gas",
                )

        return cls(native, quote_token, usd_token, usd_pool, native_pool)


def estimate_swap_calldata(route: Route, quote: AmountQuote) -> bytes:
    """Approximate the calldata a swap along `route` would post to L1."""
    if isinstance(route, V3Route):
        return encode_quote_call(encode_v3_path(route.pools, route.token_in), quote.amount)
    return encode(["uint256", "address[]"], [quote.amount, list(route.token_path)])


@dataclass(frozen=True)
class RollupL1FeeCalculator:
    """L1 security fee charged by optimistic rollups.

    Calldata costs 4 gas per zero byte and 16 per non-zero byte, plus a
    fixed overhead; the fee is l1_gas * l1_base_fee * scalar / 1e6.
    """

    pricer: NativePricer
    l1_base_fee_wei: int
    scalar: int = 1_000_000
    overhead: int = 2_100

    def calculate_l1_gas_fees(self, route: Route, quote: AmountQuote) -> L1GasCost:
        data = estimate_swap_calldata(route, quote)
        data_gas = sum(4 if byte == 0 else 16 for byte in data)
        gas_used_l1 = data_gas + self.overhead
        fee_wei = gas_used_l1 * self.l1_base_fee_wei * self.scalar // 1_000_000
        return L1GasCost(
            gas_used_l1=gas_used_l1,
            gas_cost_l1_in_token=self.pricer.to_quote_token(fee_wei),
            gas_cost_l1_usd=self.pricer.to_usd(fee_wei),
        )


@dataclass(frozen=True)
class V2HeuristicGasModel:
    """135k gas for a swap plus 50k for every extra hop."""

    gas_price_wei: int
    pricer: PoolNativePricer
    l1_fee_calculator: L1FeeCalculator | None = None

    def estimate_gas_cost(self, route: Route, quote: AmountQuote) -> GasCost:
        hops = len(route.pools)
        gas_use = V2_BASE_SWAP_COST + V2_COST_PER_EXTRA_HOP * (hops - 1)
        return self.pricer.gas_cost(gas_use, self.gas_price_wei * gas_use)


@dataclass(frozen=True)
class V3HeuristicGasModel:
    """Base cost plus a per-hop cost plus a cost per initialized tick crossed."""

    chain_id: int
    gas_price_wei: int
    pricer: PoolNativePricer
    l1_fee_calculator: L1FeeCalculator | None = None

    def estimate_gas_cost(self, route: Route, quote: AmountQuote) -> GasCost:
        gas_use = self.estimate_gas_use(len(route.pools), quote.initialized_ticks_crossed_list)
        return self.pricer.gas_cost(gas_use, self.gas_price_wei * gas_use)

    def estimate_gas_use(self, hops: int, ticks_crossed: Sequence[int]) -> int:
        base = V3_BASE_SWAP_COST.get(self.chain_id, V3_BASE_SWAP_COST[ChainId.MAINNET])
        total_ticks = max(1, sum(ticks_crossed))
        return base + V3_COST_PER_HOP * hops + V3_COST_PER_INIT_TICK * total_ticks


class V2HeuristicGasModelFactory:
    """Builds V2HeuristicGasModel instances.

    Args:
        l1_base_fee_wei: If set, models carry a RollupL1FeeCalculator
    """

    def __init__(self, l1_base_fee_wei: int | None = None) -> None:
        self.l1_base_fee_wei = l1_base_fee_wei

    def build_gas_model(
        self,
        chain_id: int,
        gas_price_wei: int,
        registry: PoolRegistry,
        quote_token: Token,
    ) -> V2HeuristicGasModel:
        pricer = PoolNativePricer.from_v2_pools(chain_id, registry, quote_token)
        l1 = (
            RollupL1FeeCalculator(pricer, self.l1_base_fee_wei)
            if self.l1_base_fee_wei is not None
            else None
        )
        return V2HeuristicGasModel(gas_price_wei, pricer, l1)


class V3HeuristicGasModelFactory:
    """Builds V3HeuristicGasModel instances.

    Args:
        l1_base_fee_wei: If set, models carry a RollupL1FeeCalculator
    """

    def __init__(self, l1_base_fee_wei: int | None = None) -> None:
        self.l1_base_fee_wei = l1_base_fee_wei

    def build_gas_model(
        self,
        chain_id: int,
        gas_price_wei: int,
        registry: PoolRegistry,
        quote_token: Token,
    ) -> V3HeuristicGasModel:
        pricer = PoolNativePricer.from_v3_pools(chain_id, registry, quote_token)
        l1 = (
            RollupL1FeeCalculator(pricer, self.l1_base_fee_wei)
            if self.l1_base_fee_wei is not None
            else None
        )
        return V3HeuristicGasModel(chain_id, gas_price_wei, pricer, l1)


__all__ = [
    "PoolNativePricer",
    "RollupL1FeeCalculator",
    "V2HeuristicGasModel",
    "V3HeuristicGasModel",
    "V2HeuristicGasModelFactory",
    "V3HeuristicGasModelFactory",
    "estimate_swap_calldata",
    "usd_gas_tokens",
    "wrapped_native_currency",
]
