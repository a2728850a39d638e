"""Pytest configuration and fixtures."""

import pytest

from swap_router.amm.uniswap_v2 import UniswapV2Pool
from swap_router.amm.uniswap_v3 import UniswapV3Pool
from swap_router.config import RetryOptions
from swap_router.gas.base import FixedGasModel, FixedGasModelFactory, GasModelFactory
from swap_router.models.types import PoolProtocol
from swap_router.quoting.multicall import MockMulticallClient
from tests.helpers import DAI, DAI_TOKEN, USDC, WETH, make_v2_pool, make_v3_pool

# 1 WETH = 2000 DAI
WETH_PRICE_DAI = 2000


@pytest.fixture
def weth_dai_v2_pool() -> UniswapV2Pool:
    """Deep WETH/DAI V2 pool used for gas pricing (token0 = DAI)."""
    return make_v2_pool(
        DAI,
        WETH,
        reserve0=WETH_PRICE_DAI * 1000 * 10**18,
        reserve1=1000 * 10**18,
        address="0x" + "d1" * 20,
    )


@pytest.fixture
def weth_usdc_v2_pool() -> UniswapV2Pool:
    """Shallower WETH/USDC V2 pool (token0 = USDC)."""
    return make_v2_pool(
        USDC,
        WETH,
        reserve0=WETH_PRICE_DAI * 100 * 10**6,
        reserve1=100 * 10**18,
        address="0x" + "d2" * 20,
    )


@pytest.fixture
def weth_dai_v3_pool() -> UniswapV3Pool:
    """WETH/DAI V3 pool at a 1:1 spot price, enough for gas-pricing tests."""
    return make_v3_pool(DAI, WETH, fee=500, liquidity=10**24, address="0x" + "d3" * 20)


@pytest.fixture
def fixed_gas_factories() -> dict[PoolProtocol, GasModelFactory]:
    """Gas model factories charging nothing, so quotes compare on raw output."""
    factory = FixedGasModelFactory(FixedGasModel(usd_token=DAI_TOKEN))
    return {PoolProtocol.V2: factory, PoolProtocol.V3: factory}


@pytest.fixture
def no_backoff() -> RetryOptions:
    """Retry options with no sleep between attempts."""
    return RetryOptions(retries=2, min_timeout=0.0, max_timeout=0.0)


@pytest.fixture
def multicall_client() -> MockMulticallClient:
    """Empty scripted multicall client; tests fill in responses."""
    return MockMulticallClient()
