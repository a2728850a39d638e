"""Integration tests for the quote API with V2 and V3 liquidity."""

from collections.abc import Iterator
from math import isqrt

import pytest
from fastapi.testclient import TestClient

from swap_router.api.endpoints import get_quote_service
from swap_router.api.main import app
from swap_router.models.api import QuoteResponse
from swap_router.quoting.multicall import CallResult, MockMulticallClient, MulticallResult
from swap_router.service import QuoteService
from tests.helpers import DAI, USDC, WETH, calldata_amount, quote_return_data

WETH_USDC_V2 = "0x" + "11" * 20
WETH_DAI_V2 = "0x" + "12" * 20
WETH_USDC_V3 = "0x" + "21" * 20
WETH_DAI_V3 = "0x" + "22" * 20

# sqrt(token1/token0) as Q64.96 for 2000 USDC (and 2000 DAI) per WETH
USDC_WETH_SQRT_PRICE = isqrt(5 * 10**8 * 2**192)
DAI_WETH_SQRT_PRICE = isqrt(2**192 // 2000)


def quote_usdc_at(price_usdc_per_weth):
    """Scripted QuoterV2 quoting WETH -> USDC at a flat price."""

    def respond(calldatas):
        results = [
            CallResult(
                success=True,
                return_data=quote_return_data(
                    calldata_amount(c) * price_usdc_per_weth // 10**12, ticks_crossed=(2,)
                ),
                gas_used=90_000,
            )
            for c in calldatas
        ]
        return MulticallResult(block_number=1_000_000, results=results)

    return respond


def make_payload(**overrides) -> dict:
    payload = {
        "chainId": 1,
        "tokenIn": {"address": WETH, "decimals": 18, "symbol": "WETH"},
        "tokenOut": {"address": USDC, "decimals": 6, "symbol": "USDC"},
        "amount": "1000000000000000000",  # 1 WETH
        "tradeType": "exactIn",
        "gasPriceWei": "10000000000",  # 10 gwei
        "v2Pools": [
            {
                "address": WETH_USDC_V2,
                "token0": USDC,
                "token1": WETH,
                "reserve0": "2000000000000",  # 2M USDC
                "reserve1": "1000000000000000000000",  # 1K WETH
            },
            {
                "address": WETH_DAI_V2,
                "token0": DAI,
                "token1": WETH,
                "reserve0": "2000000000000000000000000",  # 2M DAI
                "reserve1": "1000000000000000000000",
            },
        ],
        "v3Pools": [
            {
                "address": WETH_USDC_V3,
                "token0": USDC,
                "token1": WETH,
                "fee": 500,
                "liquidity": "1000000000000000000000",
                "sqrtPriceX96": str(USDC_WETH_SQRT_PRICE),
            },
            {
                "address": WETH_DAI_V3,
                "token0": DAI,
                "token1": WETH,
                "fee": 3000,
                "liquidity": "1000000000000000000000",
                "sqrtPriceX96": str(DAI_WETH_SQRT_PRICE),
            },
        ],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def v3_client() -> MockMulticallClient:
    return MockMulticallClient(default=quote_usdc_at(2_100))


@pytest.fixture
def client(v3_client) -> Iterator[TestClient]:
    """Test client with V3 quoting through the scripted client."""
    service = QuoteService(v3_client=v3_client)
    app.dependency_overrides[get_quote_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestQuoteApiWithV3:
    """Tests for POST /quote with on-chain V3 quoting enabled."""

    def test_better_v3_price_wins(self, client, v3_client):
        response = client.post("/quote", json=make_payload())

        assert response.status_code == 200
        quote = QuoteResponse.model_validate(response.json())
        (route,) = quote.routes
        assert route.protocol == "V3"
        assert route.pools == [WETH_USDC_V3]
        assert route.quote == str(2_100 * 10**6)
        # base + one hop + two initialized ticks
        assert route.gas_estimate == 2_000 + 80_000 + 2 * 31_000
        assert v3_client.calls

    def test_gas_priced_in_quote_token_and_usd(self, client):
        data = client.post("/quote", json=make_payload()).json()
        (route,) = data["routes"]

        # 144k gas at 10 gwei = 0.00144 WETH, about 2.88 USDC
        assert int(route["gasCostInToken"]) == pytest.approx(2_880_000, rel=1e-6)
        assert int(data["estimatedGasUsedUsd"]) == pytest.approx(2_880_000 * 10**12, rel=1e-6)
        assert data["usdToken"] == DAI

    def test_v3_pools_ignored_without_client(self):
        app.dependency_overrides[get_quote_service] = lambda: QuoteService()
        try:
            data = TestClient(app).post("/quote", json=make_payload()).json()
        finally:
            app.dependency_overrides.clear()

        (route,) = data["routes"]
        assert route["protocol"] == "V2"
        assert route["pools"] == [WETH_USDC_V2]

    def test_quoter_failure_returns_empty(self, client, v3_client):
        """V3 quoting exhausting its retries fails the whole request."""
        v3_client.default = RuntimeError("boom")

        response = client.post("/quote", json=make_payload())

        assert response.status_code == 200
        assert response.json() == {"routes": []}


class TestLargeTradeSplitsAcrossProtocols:
    def test_split_between_v2_and_v3(self, v3_client):
        """V3 quotes a flat 1900 USDC/WETH; V2 is better until its price moves."""
        v3_client.default = quote_usdc_at(1_900)
        service = QuoteService(v3_client=v3_client)
        app.dependency_overrides[get_quote_service] = lambda: service
        try:
            payload = make_payload(amount=str(100 * 10**18))
            data = TestClient(app).post("/quote", json=payload).json()
        finally:
            app.dependency_overrides.clear()

        assert {r["protocol"] for r in data["routes"]} == {"V2", "V3"}
        assert sum(r["percent"] for r in data["routes"]) == 100
        assert sum(int(r["amount"]) for r in data["routes"]) == 100 * 10**18
