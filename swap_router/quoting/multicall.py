"""Batched RPC client for on-chain quotes.

The UniswapInterfaceMulticall contract runs many calls against one target
in a single eth_call, with a gas limit per inner call, and reports the
block it executed against. This is the only network boundary of the
router: all retry logic in V3QuoteProvider wraps BatchedRPCClient.call.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

import structlog

from swap_router.constants import DEFAULT_MULTICALL_ADDRESS

logger = structlog.get_logger()


@dataclass(frozen=True)
class CallResult:
    """Outcome of one inner call.

    A call that reverted, or returned empty data ("0x"), is reported as
    unsuccessful.
    """

    success: bool
    return_data: bytes = b""
    gas_used: int = 0


@dataclass(frozen=True)
class MulticallResult:
    """Outcome of one batched call."""

    block_number: int
    results: list[CallResult]
    approx_gas_used_per_success_call: int = 0

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)


class BatchedRPCClient(Protocol):
    """Executes many calls to one contract in a single request."""

    async def get_block_number(self) -> int: ...

    async def call(
        self,
        address: str,
        calldatas: Sequence[bytes],
        gas_limit_per_call: int,
        block_number: int | None = None,
    ) -> MulticallResult: ...


def approx_gas_used(results: Sequence[CallResult], percentile: int = 99) -> int:
    """Nearest-rank percentile of gas used by the successful calls (0 if none)."""
    gas = sorted(r.gas_used for r in results if r.success)
    if not gas:
        return 0
    rank = max(1, -(-percentile * len(gas) // 100))
    return gas[rank - 1]


# UniswapInterfaceMulticall ABI - minimal, just the function we need
MULTICALL_ABI = [
    {
        "name": "multicall",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {
                "name": "calls",
                "type": "tuple[]",
                "components": [
                    {"name": "target", "type": "address"},
                    {"name": "gasLimit", "type": "uint256"},
                    {"name": "callData", "type": "bytes"},
                ],
            }
        ],
        "outputs": [
            {"name": "blockNumber", "type": "uint256"},
            {
                "name": "returnData",
                "type": "tuple[]",
                "components": [
                    {"name": "success", "type": "bool"},
                    {"name": "gasUsed", "type": "uint256"},
                    {"name": "returnData", "type": "bytes"},
                ],
            },
        ],
    },
]


class Web3MulticallClient:
    """BatchedRPCClient backed by an async web3 HTTP provider."""

    def __init__(
        self,
        rpc_url: str,
        multicall_address: str = DEFAULT_MULTICALL_ADDRESS,
        request_timeout: float = 10.0,
    ):
        """Initialize the client.

        Args:
            rpc_url: HTTP RPC URL (e.g., "https://eth.llamarpc.com")
            multicall_address: UniswapInterfaceMulticall contract address
            request_timeout: HTTP request timeout in seconds
        """
        try:
            from web3 import AsyncWeb3
        except ImportError as e:
            raise ImportError(
                "web3 package required for Web3MulticallClient. Install with: pip install web3"
            ) from e

        self.w3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout})
        )
        self.multicall = self.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(multicall_address),
            abi=MULTICALL_ABI,
        )

    async def get_block_number(self) -> int:
        return int(await self.w3.eth.block_number)

    async def call(
        self,
        address: str,
        calldatas: Sequence[bytes],
        gas_limit_per_call: int,
        block_number: int | None = None,
    ) -> MulticallResult:
        from web3 import AsyncWeb3

        target = AsyncWeb3.to_checksum_address(address)
        calls = [(target, gas_limit_per_call, data) for data in calldatas]
        block_identifier = block_number if block_number is not None else "latest"

        executed_block, raw_results = await self.multicall.functions.multicall(calls).call(
            block_identifier=block_identifier
        )

        results: list[CallResult] = []
        for success, gas_used, return_data in raw_results:
            if not success or len(return_data) == 0:
                results.append(CallResult(success=False, return_data=bytes(return_data)))
                continue
            results.append(
                CallResult(success=True, return_data=bytes(return_data), gas_used=int(gas_used))
            )

        logger.debug(
            "multicall_results",
            target=address,
            call_count=len(calls),
            success_count=sum(1 for r in results if r.success),
            block_number=int(executed_block),
        )
        return MulticallResult(
            block_number=int(executed_block),
            results=results,
            approx_gas_used_per_success_call=approx_gas_used(results),
        )


ScriptedResponse = (
    MulticallResult
    | Exception
    | Callable[[Sequence[bytes]], MulticallResult | Awaitable[MulticallResult]]
)


@dataclass
class MulticallInvocation:
    """One recorded call to MockMulticallClient."""

    address: str
    call_count: int
    gas_limit_per_call: int
    block_number: int | None


@dataclass
class MockMulticallClient:
    """Scripted client for testing without RPC calls.

    Each call consumes the next entry of `responses`: a MulticallResult is
    returned as-is, an Exception is raised, and a callable is invoked with
    the chunk's calldatas. Once the script runs out, `default` is used the
    same way. Invocations are recorded in `calls`.
    """

    block_number: int = 1_000_000
    responses: list[ScriptedResponse] = field(default_factory=list)
    default: ScriptedResponse | None = None
    calls: list[MulticallInvocation] = field(default_factory=list)

    async def get_block_number(self) -> int:
        return self.block_number

    async def call(
        self,
        address: str,
        calldatas: Sequence[bytes],
        gas_limit_per_call: int,
        block_number: int | None = None,
    ) -> MulticallResult:
        self.calls.append(
            MulticallInvocation(address, len(calldatas), gas_limit_per_call, block_number)
        )
        if self.responses:
            response = self.responses.pop(0)
        elif self.default is not None:
            response = self.default
        else:
            raise AssertionError("MockMulticallClient has no scripted response left")

        if isinstance(response, Exception):
            raise response
        if isinstance(response, MulticallResult):
            return response
        result = response(calldatas)
        if inspect.isawaitable(result):
            return await result
        return result


__all__ = [
    "CallResult",
    "MulticallResult",
    "BatchedRPCClient",
    "Web3MulticallClient",
    "MockMulticallClient",
    "MulticallInvocation",
    "MULTICALL_ABI",
    "approx_gas_used",
]
