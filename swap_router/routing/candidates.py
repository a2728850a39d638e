"""Priced route candidates: one (route, percent) pair that yielded a quote.

Candidates are the input to the split search. Each one carries the raw
quote, the gas cost estimated for it, and the gas-adjusted quote the
search compares on.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

import structlog

from swap_router.gas.base import GasModel, L1FeeCalculator
from swap_router.models.types import PoolProtocol, Token
from swap_router.quoting.base import RouteWithQuotes
from swap_router.routing.types import Route, TradeType, pool_addresses, route_to_string

logger = structlog.get_logger()


def format_amount(raw: int, decimals: int) -> str:
    """Render a raw integer amount in whole-token units."""
    return format(Decimal(raw).scaleb(-decimals).normalize(), "f")


@dataclass(frozen=True)
class RouteWithValidQuote:
    """A route quoted at one fraction of the trade, with its gas cost.

    Attributes:
        percent: Fraction of the total trade amount routed here
        amount: Amount in the fixed-side token (input for exact-in)
        raw_quote: Quote as returned by the quote provider
        quote: Quote in quote_token's smallest unit
        quote_token: Output token for exact-in, input token for exact-out
        gas_cost_usd_token: Stablecoin gas_cost_in_usd is denominated in
        quote_adjusted_for_gas: quote - gas cost (exact-in) or quote + gas
            cost (exact-out); may be negative
    """

    route: Route
    percent: int
    amount: int
    raw_quote: int
    quote: int
    trade_type: TradeType
    quote_token: Token
    gas_estimate: int
    gas_cost_in_token: int
    gas_cost_in_usd: int
    gas_cost_usd_token: Token
    quote_adjusted_for_gas: int
    sqrt_price_x96_after_list: tuple[int, ...] = ()
    initialized_ticks_crossed_list: tuple[int, ...] = ()
    quoter_gas_estimate: int | None = None

    @property
    def protocol(self) -> PoolProtocol:
        return self.route.protocol

    @property
    def pool_addresses(self) -> tuple[str, ...]:
        return pool_addresses(self.route)

    @property
    def token_path(self) -> tuple[str, ...]:
        return self.route.token_path

    def __str__(self) -> str:
        decimals = self.quote_token.decimals
        return (
            f"{self.percent:.2f}% "
            f"QuoteGasAdj[{format_amount(self.quote_adjusted_for_gas, decimals)}] "
            f"Quote[{format_amount(self.quote, decimals)}] "
            f"Gas[{self.gas_estimate}] = {route_to_string(self.route)}"
        )


def get_amount_distribution(amount: int, distribution_percent: int) -> tuple[list[int], list[int]]:
    """Split `amount` into the probed fractions.

    Returns:
        (percents, amounts) with percents [d, 2d, ..., 100] and amounts
        amount * percent // 100
    """
    if not 0 < distribution_percent <= 100:
        raise ValueError(f"distribution_percent must be in (0, 100], got {distribution_percent}")
    percents: list[int] = []
    amounts: list[int] = []
    for i in range(1, 100 // distribution_percent + 1):
        percent = i * distribution_percent
        percents.append(percent)
        amounts.append(amount * percent // 100)
    return percents, amounts


def build_routes_with_valid_quotes(
    routes_with_quotes: Sequence[RouteWithQuotes],
    percents: Sequence[int],
    trade_type: TradeType,
    quote_token: Token,
    gas_model: GasModel,
    l1_fee_calculator: L1FeeCalculator | None = None,
) -> list[RouteWithValidQuote]:
    """Price every quote that is present.

    Percents are matched to quotes by position. Absent quotes are dropped.
    If an L1 fee calculator is given (or the gas model carries one), its
    cost is added to the L2 gas cost.
    """
    l1 = l1_fee_calculator if l1_fee_calculator is not None else gas_model.l1_fee_calculator
    candidates: list[RouteWithValidQuote] = []
    skipped = 0

    for route_with_quotes in routes_with_quotes:
        route = route_with_quotes.route
        if len(route_with_quotes.quotes) != len(percents):
            raise ValueError(
                f"Route {route_to_string(route)} has {len(route_with_quotes.quotes)} quotes "
                f"for {len(percents)} percents"
            )
        for percent, amount_quote in zip(percents, route_with_quotes.quotes, strict=True):
            if amount_quote.quote is None:
                skipped += 1
                continue

            gas = gas_model.estimate_gas_cost(route, amount_quote)
            gas_cost_in_token = gas.gas_cost_in_token
            gas_cost_in_usd = gas.gas_cost_in_usd
            if l1 is not None:
                l1_cost = l1.calculate_l1_gas_fees(route, amount_quote)
                gas_cost_in_token += l1_cost.gas_cost_l1_in_token
                gas_cost_in_usd += l1_cost.gas_cost_l1_usd

            if trade_type == TradeType.EXACT_INPUT:
                adjusted = amount_quote.quote - gas_cost_in_token
            else:
                adjusted = amount_quote.quote + gas_cost_in_token

            candidates.append(
                RouteWithValidQuote(
                    route=route,
                    percent=percent,
                    amount=amount_quote.amount,
                    raw_quote=amount_quote.quote,
                    quote=amount_quote.quote,
                    trade_type=trade_type,
                    quote_token=quote_token,
                    gas_estimate=gas.gas_estimate,
                    gas_cost_in_token=gas_cost_in_token,
                    gas_cost_in_usd=gas_cost_in_usd,
                    gas_cost_usd_token=gas.usd_token,
                    quote_adjusted_for_gas=adjusted,
                    sqrt_price_x96_after_list=amount_quote.sqrt_price_x96_after_list,
                    initialized_ticks_crossed_list=amount_quote.initialized_ticks_crossed_list,
                    quoter_gas_estimate=amount_quote.gas_estimate,
                )
            )

    logger.debug(
        "built_routes_with_valid_quotes",
        candidates=len(candidates),
        skipped=skipped,
        trade_type=trade_type.value,
    )
    return candidates


__all__ = [
    "RouteWithValidQuote",
    "build_routes_with_valid_quotes",
    "format_amount",
    "get_amount_distribution",
]
