"""Quote provider interface and quote result types."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Protocol, TypeAlias, TypeVar

from swap_router.routing.types import Route

RouteT = TypeVar("RouteT", bound=Route)


class QuoteFailureReason(str, Enum):
    """Why a (route, amount) pair has no quote."""

    INSUFFICIENT_INPUT = "insufficient_input"
    INSUFFICIENT_RESERVES = "insufficient_reserves"
    NO_QUOTE = "no_quote"


@dataclass(frozen=True)
class AmountQuote:
    """Quote for one route at one amount.

    `quote` is the output amount for exact-input trades and the required
    input amount for exact-output trades. None means no quote, which is
    distinct from a zero quote; `reason` says why.

    The V3 fields are filled from QuoterV2 results and stay empty for
    off-chain quotes.
    """

    amount: int
    quote: int | None
    reason: QuoteFailureReason | None = None
    sqrt_price_x96_after_list: tuple[int, ...] = ()
    initialized_ticks_crossed_list: tuple[int, ...] = ()
    gas_estimate: int | None = None

    @property
    def is_valid(self) -> bool:
        return self.quote is not None


@dataclass(frozen=True)
class RouteWithQuotes(Generic[RouteT]):
    """A route and its quotes, one per probed amount, in amount order."""

    route: RouteT
    quotes: list[AmountQuote]


class QuoteProvider(Protocol[RouteT]):
    """Quotes many routes at many amounts.

    Implementations return one RouteWithQuotes per input route, in input
    order, each holding one AmountQuote per input amount in input order.
    Liquidity shortfalls are reported as absent quotes, never raised.
    """

    async def get_quotes_many_exact_in(
        self,
        amounts: Sequence[int],
        routes: Sequence[RouteT],
        *,
        block_number: int | None = None,
    ) -> list[RouteWithQuotes[RouteT]]: ...

    async def get_quotes_many_exact_out(
        self,
        amounts: Sequence[int],
        routes: Sequence[RouteT],
        *,
        block_number: int | None = None,
    ) -> list[RouteWithQuotes[RouteT]]: ...


RoutesWithQuotes: TypeAlias = list[RouteWithQuotes[Route]]

__all__ = [
    "QuoteFailureReason",
    "AmountQuote",
    "RouteWithQuotes",
    "RoutesWithQuotes",
    "QuoteProvider",
]
