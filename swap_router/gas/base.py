"""Gas model interfaces.

Gas is estimated off-chain for every (route, amount) candidate, so models
do all their data fetching when they are built and estimate_gas_cost is a
cheap pure function. A model is built once per planning run by a factory
and then shared by all candidates of that run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from swap_router.models.types import Token
from swap_router.pools.registry import PoolRegistry
from swap_router.quoting.base import AmountQuote
from swap_router.routing.types import Route


@dataclass(frozen=True)
class GasCost:
    """Gas estimate for executing one candidate.

    Attributes:
        gas_estimate: Gas units
        gas_cost_in_token: Cost in the quote token's smallest unit
        gas_cost_in_usd: Cost in usd_token's smallest unit
        usd_token: Stablecoin the USD cost is denominated in
    """

    gas_estimate: int
    gas_cost_in_token: int
    gas_cost_in_usd: int
    usd_token: Token


@dataclass(frozen=True)
class L1GasCost:
    """Rollup L1 data fee for one candidate."""

    gas_used_l1: int
    gas_cost_l1_in_token: int
    gas_cost_l1_usd: int


class L1FeeCalculator(Protocol):
    """Computes the L1 security fee a rollup charges on top of L2 gas."""

    def calculate_l1_gas_fees(self, route: Route, quote: AmountQuote) -> L1GasCost: ...


class GasModel(Protocol):
    """Estimates the gas cost of a quoted route.

    Models for rollups may carry an L1 fee calculator; the candidate
    assembler adds its cost on top of estimate_gas_cost.
    """

    l1_fee_calculator: L1FeeCalculator | None

    def estimate_gas_cost(self, route: Route, quote: AmountQuote) -> GasCost: ...


class NativePricer(Protocol):
    """Converts native-currency amounts to the quote token and to USD."""

    usd_token: Token

    def to_quote_token(self, amount_native: int) -> int: ...

    def to_usd(self, amount_native: int) -> int: ...


class GasModelFactory(Protocol):
    """Builds a gas model for one planning run."""

    def build_gas_model(
        self,
        chain_id: int,
        gas_price_wei: int,
        registry: PoolRegistry,
        quote_token: Token,
    ) -> GasModel: ...


@dataclass(frozen=True)
class FixedGasModel:
    """Gas model returning a fixed cost for every route, for testing."""

    usd_token: Token
    gas_estimate: int = 0
    gas_cost_in_token: int = 0
    gas_cost_in_usd: int = 0
    l1_fee_calculator: L1FeeCalculator | None = None

    def estimate_gas_cost(self, route: Route, quote: AmountQuote) -> GasCost:
        return GasCost(
            gas_estimate=self.gas_estimate,
            gas_cost_in_token=self.gas_cost_in_token,
            gas_cost_in_usd=self.gas_cost_in_usd,
            usd_token=self.usd_token,
        )


@dataclass(frozen=True)
class FixedGasModelFactory:
    """Factory handing out the same FixedGasModel, for testing."""

    model: FixedGasModel

    def build_gas_model(
        self,
        chain_id: int,
        gas_price_wei: int,
        registry: PoolRegistry,
        quote_token: Token,
    ) -> GasModel:
        return self.model


__all__ = [
    "GasCost",
    "L1GasCost",
    "GasModel",
    "L1FeeCalculator",
    "NativePricer",
    "GasModelFactory",
    "FixedGasModel",
    "FixedGasModelFactory",
]
