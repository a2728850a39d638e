"""Best split search over priced route candidates.

The search is a BFS over the number of splits. Each queue entry is a
partial allocation: the candidates chosen so far and the percent still
to allocate. Expanding an entry tries every probed percent that fits and
takes the best candidate for it that does not reuse a pool already in
the allocation. Allocations reaching exactly 100% are compared against
the best plan found so far.

Search stops when the maximum split count is reached, or when adding a
split stopped improving the best plan.
"""

from __future__ import annotations

import dataclasses
import heapq
import itertools
from collections import deque
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

from swap_router.config import DEFAULT_ROUTING_CONFIG, RoutingConfig
from swap_router.constants import USD_GAS_TOKENS_BY_CHAIN
from swap_router.errors import ConfigurationError, InvalidSplitError
from swap_router.models.types import PoolProtocol, Token
from swap_router.routing.candidates import RouteWithValidQuote, format_amount
from swap_router.routing.types import TradeType, route_to_string

logger = structlog.get_logger()

T = TypeVar("T")

TOP_K_PER_SPLIT = 3


class BoundedTopK(Generic[T]):
    """Keeps the k items with the highest key.

    Backed by a min-heap of size k, so the weakest kept item is evicted
    first. Ties keep the earlier item.
    """

    def __init__(self, k: int, key: Callable[[T], int]):
        if k < 1:
            raise ValueError(f"k must be >= 1, got {k}")
        self.k = k
        self.key = key
        self._heap: list[tuple[int, int, T]] = []
        self._counter = itertools.count()

    def push(self, item: T) -> None:
        # Negated counter: among equal keys the newest entry is the smallest
        entry = (self.key(item), -next(self._counter), item)
        if len(self._heap) < self.k:
            heapq.heappush(self._heap, entry)
        else:
            heapq.heappushpop(self._heap, entry)

    def consume(self) -> list[T]:
        """Return the kept items best first, and clear."""
        items = [item for _, _, item in sorted(self._heap, reverse=True)]
        self._heap.clear()
        return items

    def __len__(self) -> int:
        return len(self._heap)


@dataclass(frozen=True)
class SwapRoute:
    """The chosen split: routes whose percents sum to 100.

    Attributes:
        routes: Candidates sorted by amount, largest first
        quote: Sum of the candidates' quotes
        quote_gas_adjusted: Sum of the candidates' gas-adjusted quotes
        estimated_gas_used: Total gas units
        estimated_gas_used_usd: Total gas cost in usd_token's smallest unit
        estimated_gas_used_quote_token: Total gas cost in the quote token
        usd_token: Stablecoin all USD gas costs were normalized to
        amount: Requested trade amount
    """

    routes: list[RouteWithValidQuote]
    quote: int
    quote_gas_adjusted: int
    estimated_gas_used: int
    estimated_gas_used_usd: int
    estimated_gas_used_quote_token: int
    usd_token: Token
    trade_type: TradeType
    amount: int

    def validate(self) -> None:
        """Check the split is executable.

        Raises:
            InvalidSplitError: If percents do not sum to 100, a pool is used
                twice, or amounts do not sum to the requested amount
        """
        if not self.routes:
            raise InvalidSplitError("Split has no routes")

        total_percent = sum(r.percent for r in self.routes)
        if total_percent != 100:
            raise InvalidSplitError(f"Split percents sum to {total_percent}, expected 100")

        seen: set[str] = set()
        for r in self.routes:
            reused = seen.intersection(r.pool_addresses)
            if reused:
                raise InvalidSplitError(f"Split reuses pools: {sorted(reused)}")
            seen.update(r.pool_addresses)

        total_amount = sum(r.amount for r in self.routes)
        if total_amount != self.amount:
            raise InvalidSplitError(
                f"Split amounts sum to {total_amount}, expected {self.amount}"
            )


@dataclass(frozen=True)
class _Allocation:
    """A partial split waiting in the BFS queue."""

    routes: tuple[RouteWithValidQuote, ...]
    percent_index: int
    remaining_percent: int
    special: bool


def group_by_percent(
    candidates: Iterable[RouteWithValidQuote],
) -> dict[int, list[RouteWithValidQuote]]:
    percent_to_quotes: dict[int, list[RouteWithValidQuote]] = {}
    for candidate in candidates:
        percent_to_quotes.setdefault(candidate.percent, []).append(candidate)
    return percent_to_quotes


def find_first_route_not_using_used_pools(
    used_routes: Sequence[RouteWithValidQuote],
    candidates: Sequence[RouteWithValidQuote],
    force_cross_protocol: bool,
) -> RouteWithValidQuote | None:
    """First candidate sharing no pool with used_routes.

    With force_cross_protocol, once every used route is on one protocol,
    candidates on that same protocol are skipped too.
    """
    used_pools = {address for r in used_routes for address in r.pool_addresses}
    used_protocols: set[PoolProtocol] = {r.protocol for r in used_routes}
    need_to_force = force_cross_protocol and len(used_protocols) == 1

    for candidate in candidates:
        if any(address in used_pools for address in candidate.pool_addresses):
            continue
        if need_to_force and candidate.protocol in used_protocols:
            continue
        return candidate
    return None


def get_best_swap_route(
    amount: int,
    percents: Sequence[int],
    routes_with_valid_quotes: Sequence[RouteWithValidQuote],
    trade_type: TradeType,
    chain_id: int,
    routing_config: RoutingConfig = DEFAULT_ROUTING_CONFIG,
) -> SwapRoute | None:
    """Find the best split of `amount` across the candidates.

    Candidates are compared on their gas-adjusted quote. Rounding from
    taking percentages can leave part of the amount unassigned; the
    remainder is added to the last (smallest) route.

    Returns:
        The best SwapRoute, or None if no combination reaches 100%

    Raises:
        ConfigurationError: If the chain has no USD token to normalize gas
            costs to
    """
    percent_to_quotes = group_by_percent(routes_with_valid_quotes)
    swap_route = get_best_swap_route_by(
        trade_type,
        percent_to_quotes,
        percents,
        chain_id,
        lambda rq: rq.quote_adjusted_for_gas,
        routing_config,
        amount=amount,
    )
    if swap_route is None:
        return None

    routes = swap_route.routes
    missing = amount - sum(r.amount for r in routes)
    if missing > 0:
        logger.info(
            "split_amount_residual",
            missing_amount=missing,
            message="Adding missing amount to last route",
        )
        last = routes[-1]
        routes = [*routes[:-1], dataclasses.replace(last, amount=last.amount + missing)]
        swap_route = dataclasses.replace(swap_route, routes=routes)

    quote_decimals = routes[0].quote_token.decimals
    logger.info(
        "best_swap_route",
        routes=[str(r) for r in routes],
        num_splits=len(routes),
        amount=amount,
        quote=format_amount(swap_route.quote, quote_decimals),
        quote_gas_adjusted=format_amount(swap_route.quote_gas_adjusted, quote_decimals),
        estimated_gas_usd=format_amount(
            swap_route.estimated_gas_used_usd, swap_route.usd_token.decimals
        ),
        estimated_gas_token=format_amount(
            swap_route.estimated_gas_used_quote_token, quote_decimals
        ),
    )
    return swap_route


def get_best_swap_route_by(
    trade_type: TradeType,
    percent_to_quotes: dict[int, list[RouteWithValidQuote]],
    percents: Sequence[int],
    chain_id: int,
    by: Callable[[RouteWithValidQuote], int],
    routing_config: RoutingConfig = DEFAULT_ROUTING_CONFIG,
    *,
    amount: int | None = None,
) -> SwapRoute | None:
    """BFS over split counts, comparing candidates on `by`.

    `amount` is recorded on the result; it defaults to the sum of the
    chosen routes' amounts. No residual correction is applied here.
    """
    exact_in = trade_type == TradeType.EXACT_INPUT

    # Best candidate first: largest output for exact-in, smallest input for exact-out
    percent_to_sorted = {
        percent: sorted(quotes, key=by, reverse=exact_in)
        for percent, quotes in percent_to_quotes.items()
    }

    def is_better(a: int, b: int) -> bool:
        return a > b if exact_in else a < b

    best_quote: int | None = None
    best_swap: list[RouteWithValidQuote] | None = None

    best_swaps_per_split: BoundedTopK[tuple[int, list[RouteWithValidQuote]]] = BoundedTopK(
        TOP_K_PER_SPLIT, key=(lambda entry: entry[0]) if exact_in else (lambda entry: -entry[0])
    )

    min_splits = routing_config.min_splits
    max_splits = routing_config.max_splits
    force_cross_protocol = routing_config.force_cross_protocol

    if 100 not in percent_to_sorted or min_splits > 1 or force_cross_protocol:
        logger.info(
            "no_unsplit_route",
            percent_to_quote_counts={p: len(q) for p, q in percent_to_sorted.items()},
            message="Continuing search anyway",
        )
    else:
        best_quote = by(percent_to_sorted[100][0])
        best_swap = [percent_to_sorted[100][0]]
        for candidate in percent_to_sorted[100][:5]:
            best_swaps_per_split.push((by(candidate), [candidate]))

    # Seed with the best (and second best) candidate for each percent,
    # largest percent first
    queue: deque[_Allocation] = deque()
    for i in range(len(percents) - 1, -1, -1):
        percent = percents[i]
        sorted_quotes = percent_to_sorted.get(percent)
        if not sorted_quotes:
            continue
        queue.append(_Allocation((sorted_quotes[0],), i, 100 - percent, special=False))
        if len(sorted_quotes) < 2:
            continue
        queue.append(_Allocation((sorted_quotes[1],), i, 100 - percent, special=True))

    splits = 1
    while queue:
        logger.debug(
            "top_swaps_for_split",
            splits=splits,
            top=[
                f"{quote} ({', '.join(str(r) for r in routes)})"
                for quote, routes in best_swaps_per_split.consume()
            ],
            on_queue=len(queue),
        )

        layer = len(queue)
        splits += 1

        # Adding a split did not help; more splits are unlikely to
        if splits >= 3 and best_swap is not None and len(best_swap) < splits - 1:
            break

        if splits > max_splits:
            logger.info("max_splits_reached", max_splits=max_splits)
            break

        while layer > 0:
            layer -= 1
            allocation = queue.popleft()

            for i in range(allocation.percent_index, -1, -1):
                percent = percents[i]
                if percent > allocation.remaining_percent:
                    continue

                # Small fractions may have no quotes at all
                candidates = percent_to_sorted.get(percent)
                if not candidates:
                    continue

                candidate = find_first_route_not_using_used_pools(
                    allocation.routes, candidates, force_cross_protocol
                )
                if candidate is None:
                    continue

                remaining_new = allocation.remaining_percent - percent
                routes_new = (*allocation.routes, candidate)

                if remaining_new == 0 and splits >= min_splits:
                    quote_new = sum(by(r) for r in routes_new)
                    best_swaps_per_split.push((quote_new, list(routes_new)))

                    if best_quote is None or is_better(quote_new, best_quote):
                        best_quote = quote_new
                        best_swap = list(routes_new)
                        if allocation.special:
                            logger.debug("best_swap_not_best_for_percent", splits=splits)
                else:
                    queue.append(
                        _Allocation(routes_new, i, remaining_new, allocation.special)
                    )

    if best_swap is None:
        logger.info("no_valid_swap_found")
        return None

    return _assemble_swap_route(best_swap, trade_type, chain_id, amount)


def _assemble_swap_route(
    best_swap: list[RouteWithValidQuote],
    trade_type: TradeType,
    chain_id: int,
    amount: int | None,
) -> SwapRoute:
    usd_tokens = USD_GAS_TOKENS_BY_CHAIN.get(chain_id)
    if not usd_tokens:
        raise ConfigurationError(
            f"Could not find a USD token for computing gas costs on {chain_id}"
        )
    usd_token = usd_tokens[0]

    # Candidates may price gas in different stablecoins; merge into one
    gas_usd_normalized: list[int] = []
    for r in best_swap:
        decimals_diff = usd_token.decimals - r.gas_cost_usd_token.decimals
        if decimals_diff >= 0:
            gas_usd_normalized.append(r.gas_cost_in_usd * 10**decimals_diff)
        else:
            gas_usd_normalized.append(r.gas_cost_in_usd // 10**-decimals_diff)

    logger.debug(
        "usd_gas_estimates",
        estimated_gas_used_usd=sum(gas_usd_normalized),
        normalized_usd_token=str(usd_token),
        route_usd_gas_estimates=[
            f"{r.percent}% {route_to_string(r.route)} {r.gas_cost_in_usd}" for r in best_swap
        ],
    )

    routes = sorted(best_swap, key=lambda r: r.amount, reverse=True)
    return SwapRoute(
        routes=routes,
        quote=sum(r.quote for r in best_swap),
        quote_gas_adjusted=sum(r.quote_adjusted_for_gas for r in best_swap),
        estimated_gas_used=sum(r.gas_estimate for r in best_swap),
        estimated_gas_used_usd=sum(gas_usd_normalized),
        estimated_gas_used_quote_token=sum(r.gas_cost_in_token for r in best_swap),
        usd_token=usd_token,
        trade_type=trade_type,
        amount=amount if amount is not None else sum(r.amount for r in best_swap),
    )


__all__ = [
    "BoundedTopK",
    "SwapRoute",
    "find_first_route_not_using_used_pools",
    "get_best_swap_route",
    "get_best_swap_route_by",
    "group_by_percent",
]
