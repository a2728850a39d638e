"""Quote providers: off-chain V2 reserve math and on-chain batched V3 quotes."""

from swap_router.quoting.base import (
    AmountQuote,
    QuoteFailureReason,
    QuoteProvider,
    RouteWithQuotes,
)
from swap_router.quoting.errors import (
    BlockConflictError,
    ProviderBlockHeaderError,
    ProviderGasError,
    ProviderTimeoutError,
    QuoteFetchError,
    SuccessRateError,
)
from swap_router.quoting.multicall import (
    BatchedRPCClient,
    CallResult,
    MockMulticallClient,
    MulticallResult,
    Web3MulticallClient,
)
from swap_router.quoting.offchain import V2QuoteProvider
from swap_router.quoting.onchain import V3QuoteProvider

__all__ = [
    "AmountQuote",
    "QuoteFailureReason",
    "QuoteProvider",
    "RouteWithQuotes",
    "BlockConflictError",
    "ProviderBlockHeaderError",
    "ProviderGasError",
    "ProviderTimeoutError",
    "QuoteFetchError",
    "SuccessRateError",
    "BatchedRPCClient",
    "CallResult",
    "MockMulticallClient",
    "MulticallResult",
    "Web3MulticallClient",
    "V2QuoteProvider",
    "V3QuoteProvider",
]
