"""Tests for off-chain V2 quoting."""

import asyncio

import pytest

from swap_router.amm.base import InsufficientReservesError
from swap_router.quoting.base import QuoteFailureReason
from swap_router.quoting.offchain import V2QuoteProvider, quote_exact_in, quote_exact_out
from swap_router.routing.types import TradeType, V2Route
from tests.helpers import TOKEN_A, TOKEN_B, TOKEN_C, make_v2_pool


def two_hop_route():
    ab = make_v2_pool(TOKEN_A, TOKEN_B, reserve0=1000 * 10**18, reserve1=2000 * 10**18)
    # Stored as (C, B) so the second hop runs token1 -> token0
    cb = make_v2_pool(TOKEN_C, TOKEN_B, reserve0=500 * 10**18, reserve1=1000 * 10**18)
    return V2Route((ab, cb), TOKEN_A, TOKEN_C)


class TestRouteQuotes:
    """Tests for walking a route through its pools."""

    def test_exact_in_chains_hops(self):
        route = two_hop_route()
        ab, cb = route.pools
        amount_in = 10**18

        expected = cb.get_output_amount(TOKEN_B, ab.get_output_amount(TOKEN_A, amount_in))
        assert quote_exact_in(route, amount_in) == expected

    def test_exact_out_chains_hops_backwards(self):
        route = two_hop_route()
        ab, cb = route.pools
        amount_out = 10**18

        expected = ab.get_input_amount(TOKEN_B, cb.get_input_amount(TOKEN_C, amount_out))
        assert quote_exact_out(route, amount_out) == expected

    def test_exact_out_input_buys_requested_output(self):
        route = two_hop_route()
        amount_out = 3 * 10**18
        assert quote_exact_in(route, quote_exact_out(route, amount_out)) >= amount_out

    def test_exact_out_beyond_reserves_raises(self):
        route = two_hop_route()
        with pytest.raises(InsufficientReservesError):
            quote_exact_out(route, 500 * 10**18)


class TestV2QuoteProvider:
    """Tests for V2QuoteProvider."""

    def test_one_quote_per_amount_in_order(self):
        route = two_hop_route()
        amounts = [10**17, 10**18, 10**19]

        results = asyncio.run(V2QuoteProvider().get_quotes_many_exact_in(amounts, [route]))

        assert len(results) == 1
        assert results[0].route is route
        assert [q.amount for q in results[0].quotes] == amounts
        quotes = [q.quote for q in results[0].quotes]
        assert quotes == [quote_exact_in(route, a) for a in amounts]
        assert quotes == sorted(quotes)

    def test_routes_returned_in_input_order(self):
        first = two_hop_route()
        second = V2Route((make_v2_pool(TOKEN_A, TOKEN_C),), TOKEN_A, TOKEN_C)

        results = asyncio.run(
            V2QuoteProvider().get_quotes_many_exact_in([10**18], [first, second])
        )

        assert [r.route for r in results] == [first, second]

    def test_insufficient_input_is_absent_quote(self):
        """Dust amounts produce no quote instead of failing the batch."""
        route = two_hop_route()

        results = asyncio.run(V2QuoteProvider().get_quotes_many_exact_in([1, 10**18], [route]))

        dust, normal = results[0].quotes
        assert dust.quote is None
        assert not dust.is_valid
        assert dust.reason == QuoteFailureReason.INSUFFICIENT_INPUT
        assert normal.is_valid

    def test_insufficient_reserves_is_absent_quote(self):
        route = two_hop_route()

        results = asyncio.run(
            V2QuoteProvider().get_quotes_many_exact_out([10**18, 600 * 10**18], [route])
        )

        ok, too_much = results[0].quotes
        assert ok.quote == quote_exact_out(route, 10**18)
        assert too_much.quote is None
        assert too_much.reason == QuoteFailureReason.INSUFFICIENT_RESERVES

    def test_quotes_are_idempotent(self):
        """Quoting reads the snapshot only, so repeating a request changes nothing."""
        route = two_hop_route()
        provider = V2QuoteProvider()
        amounts = [10**17, 10**18]

        first = provider.get_quotes(amounts, [route], TradeType.EXACT_INPUT)
        second = provider.get_quotes(amounts, [route], TradeType.EXACT_INPUT)

        assert first == second
        assert route.pools[0].reserve0 == 1000 * 10**18

    def test_block_number_is_ignored(self):
        route = two_hop_route()
        provider = V2QuoteProvider()

        pinned = asyncio.run(provider.get_quotes_many_exact_in([10**18], [route], block_number=5))
        latest = asyncio.run(provider.get_quotes_many_exact_in([10**18], [route]))

        assert pinned == latest

    def test_no_routes(self):
        assert asyncio.run(V2QuoteProvider().get_quotes_many_exact_in([10**18], [])) == []
