"""Off-chain quoting for UniswapV2 routes.

V2 pools are priced from reserve snapshots with the constant-product
formula, so no RPC is involved. This is a pure function of the snapshot:
quoting the same route and amount twice gives the same answer.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from swap_router.amm.base import InsufficientInputAmountError, InsufficientReservesError
from swap_router.quoting.base import AmountQuote, QuoteFailureReason, RouteWithQuotes
from swap_router.routing.types import TradeType, V2Route, route_to_string

logger = structlog.get_logger()


def quote_exact_in(route: V2Route, amount_in: int) -> int:
    """Walk the route forward, feeding each pool's output into the next.

    Raises:
        InsufficientInputAmountError: If a hop produces zero output
        InsufficientReservesError: If a hop has empty reserves
    """
    amount = amount_in
    for pool, token in zip(route.pools, route.token_path, strict=False):
        amount = pool.get_output_amount(token, amount)
    return amount


def quote_exact_out(route: V2Route, amount_out: int) -> int:
    """Walk the route backward from the desired output to the required input.

    Raises:
        InsufficientReservesError: If a hop cannot provide the amount
    """
    amount = amount_out
    for i in range(len(route.pools) - 1, -1, -1):
        amount = route.pools[i].get_input_amount(route.token_path[i + 1], amount)
    return amount


class V2QuoteProvider:
    """Quotes V2 routes off-chain."""

    async def get_quotes_many_exact_in(
        self,
        amounts: Sequence[int],
        routes: Sequence[V2Route],
        *,
        block_number: int | None = None,
    ) -> list[RouteWithQuotes[V2Route]]:
        return self.get_quotes(amounts, routes, TradeType.EXACT_INPUT)

    async def get_quotes_many_exact_out(
        self,
        amounts: Sequence[int],
        routes: Sequence[V2Route],
        *,
        block_number: int | None = None,
    ) -> list[RouteWithQuotes[V2Route]]:
        return self.get_quotes(amounts, routes, TradeType.EXACT_OUTPUT)

    def get_quotes(
        self,
        amounts: Sequence[int],
        routes: Sequence[V2Route],
        trade_type: TradeType,
    ) -> list[RouteWithQuotes[V2Route]]:
        """Synchronous core shared by both async entry points.

        Insufficient-input and insufficient-reserves failures become absent
        quotes. Any other exception propagates and aborts the whole batch.
        """
        quote_fn = quote_exact_in if trade_type == TradeType.EXACT_INPUT else quote_exact_out
        results: list[RouteWithQuotes[V2Route]] = []
        failed_routes: list[str] = []

        for route in routes:
            quotes: list[AmountQuote] = []
            insufficient_input = 0
            insufficient_reserves = 0

            for amount in amounts:
                try:
                    quotes.append(AmountQuote(amount=amount, quote=quote_fn(route, amount)))
                except InsufficientInputAmountError:
                    insufficient_input += 1
                    quotes.append(
                        AmountQuote(
                            amount=amount,
                            quote=None,
                            reason=QuoteFailureReason.INSUFFICIENT_INPUT,
                        )
                    )
                except InsufficientReservesError:
                    insufficient_reserves += 1
                    quotes.append(
                        AmountQuote(
                            amount=amount,
                            quote=None,
                            reason=QuoteFailureReason.INSUFFICIENT_RESERVES,
                        )
                    )

            if insufficient_input or insufficient_reserves:
                summary = (
                    f"{route_to_string(route)}: {insufficient_reserves} insufficient reserves, "
                    f"{insufficient_input} insufficient input"
                )
                logger.debug("v2_route_quote_failures", route=summary)
                failed_routes.append(summary)

            results.append(RouteWithQuotes(route=route, quotes=quotes))

        if failed_routes:
            logger.info(
                "failed_v2_quotes",
                trade_type=trade_type.value,
                failed_route_count=len(failed_routes),
                routes=failed_routes,
            )

        return results


__all__ = ["V2QuoteProvider", "quote_exact_in", "quote_exact_out"]
