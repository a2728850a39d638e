"""On-chain quoting for UniswapV3 routes through QuoterV2 and multicall.

Every (route, amount) pair becomes one QuoterV2 call. The calls are
flattened, split into balanced chunks, and each chunk is sent as one
multicall. A retry loop then drives the chunks to completion:

- every attempt dispatches all chunks that have not succeeded yet,
  concurrently, and waits for all of them before looking at the outcome;
- failed chunks are classified (block header, timeout, out of gas, low
  success rate, unknown) and each class has one recovery action, applied
  at most once per call;
- if successful chunks disagree on the block they ran against, the whole
  batch is reset, since quotes from different blocks are not comparable.

Attempts are strictly sequential. The mutable retry parameters live in a
RetryContext owned by a single call, so concurrent calls on one provider
do not interfere.
"""

from __future__ import annotations

import asyncio
import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

import structlog
from eth_abi.exceptions import DecodingError

from swap_router.amm.uniswap_v3 import decode_quote_result, encode_quote_call, encode_v3_path
from swap_router.config import (
    DEFAULT_BATCH_PARAMS,
    DEFAULT_BLOCK_NUMBER_CONFIG,
    DEFAULT_GAS_ERROR_OVERRIDES,
    DEFAULT_RETRY_OPTIONS,
    DEFAULT_SUCCESS_RATE_OVERRIDES,
    BatchParams,
    BlockNumberConfig,
    FailureOverrides,
    RetryOptions,
)
from swap_router.constants import ARBITRUM_CHAIN_IDS, QUOTER_V2_ADDRESS
from swap_router.quoting.base import AmountQuote, QuoteFailureReason, RouteWithQuotes
from swap_router.quoting.errors import (
    BlockConflictError,
    ProviderBlockHeaderError,
    ProviderGasError,
    ProviderTimeoutError,
    QuoteFetchError,
    SuccessRateError,
)
from swap_router.quoting.multicall import BatchedRPCClient, CallResult, MulticallResult
from swap_router.routing.types import TradeType, V3Route, route_to_string

logger = structlog.get_logger()

# Provider errors embed the full calldata; keep only the head of the message
MAX_ERROR_MESSAGE_LENGTH = 500

# Failed quotes are logged in groups of this many entries
FAILED_QUOTES_LOG_CHUNK = 80

QuoteInput = tuple[bytes, int]


class QuoteStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class QuoteState:
    """One chunk of quote inputs and where it stands."""

    inputs: list[QuoteInput]
    status: QuoteStatus = QuoteStatus.PENDING
    results: MulticallResult | None = None
    reason: QuoteFetchError | None = None


@dataclass
class RetryContext:
    """Call-scoped retry parameters and one-shot flags.

    gas_limit_per_call, multicall_chunk and block_number are inputs to the
    next attempt and only change between attempts.
    """

    gas_limit_per_call: int
    multicall_chunk: int
    block_number: int
    original_block_number: int
    attempt: int = 0
    total_calls: int = 0
    block_header_failures: int = 0
    block_header_rolled_back: bool = False
    have_retried_for_gas: bool = False
    have_retried_for_success_rate: bool = False
    have_retried_for_block_header: bool = False
    have_retried_for_block_conflict: bool = False
    have_retried_for_timeout: bool = False
    have_retried_for_unknown: bool = False


def normalized_chunk_size(total: int, target_chunk: int) -> int:
    """Chunk size that splits `total` items into balanced chunks of at most target_chunk.

    10 items with a target of 4 gives 4 (chunks 4/3/3), not 4/4/2.
    """
    if total <= 0:
        return max(target_chunk, 1)
    return math.ceil(total / math.ceil(total / target_chunk))


def chunk_inputs(inputs: Sequence[QuoteInput], target_chunk: int) -> list[list[QuoteInput]]:
    """Split inputs into near-equal chunks, preserving order.

    The chunk count follows from the normalized size and items are spread
    over the chunks so sizes differ by at most one.
    """
    if not inputs:
        return []
    count = math.ceil(len(inputs) / normalized_chunk_size(len(inputs), target_chunk))
    base, extra = divmod(len(inputs), count)
    chunks: list[list[QuoteInput]] = []
    start = 0
    for i in range(count):
        size = base + (1 if i < extra else 0)
        chunks.append(list(inputs[start : start + size]))
        start += size
    return chunks


def classify_provider_error(
    err: BaseException,
    index: int,
    total: int,
    input_count: int,
) -> QuoteFetchError:
    """Map an exception raised by the batched call to a QuoteFetchError subclass."""
    message = str(err)[:MAX_ERROR_MESSAGE_LENGTH]
    if "header not found" in message:
        return ProviderBlockHeaderError(message)
    if isinstance(err, TimeoutError) or "timeout" in message:
        return ProviderTimeoutError(
            f"Req {index}/{total}. Request had {input_count} inputs. {message}"
        )
    if "out of gas" in message:
        return ProviderGasError(message)
    return QuoteFetchError(f"Unknown error from provider: {message}")


class V3QuoteProvider:
    """Quotes V3 routes with QuoterV2 through a BatchedRPCClient."""

    def __init__(
        self,
        chain_id: int,
        client: BatchedRPCClient,
        retry_options: RetryOptions = DEFAULT_RETRY_OPTIONS,
        batch_params: BatchParams = DEFAULT_BATCH_PARAMS,
        gas_error_failure_override: FailureOverrides = DEFAULT_GAS_ERROR_OVERRIDES,
        success_rate_failure_overrides: FailureOverrides = DEFAULT_SUCCESS_RATE_OVERRIDES,
        block_number_config: BlockNumberConfig = DEFAULT_BLOCK_NUMBER_CONFIG,
        quoter_address: str = QUOTER_V2_ADDRESS,
    ):
        self.chain_id = chain_id
        self.client = client
        self.retry_options = retry_options
        self.batch_params = batch_params
        self.gas_error_failure_override = gas_error_failure_override
        self.success_rate_failure_overrides = success_rate_failure_overrides
        self.block_number_config = block_number_config
        self.quoter_address = quoter_address

    async def get_quotes_many_exact_in(
        self,
        amounts: Sequence[int],
        routes: Sequence[V3Route],
        *,
        block_number: int | None = None,
    ) -> list[RouteWithQuotes[V3Route]]:
        return await self._get_quotes_many(amounts, routes, TradeType.EXACT_INPUT, block_number)

    async def get_quotes_many_exact_out(
        self,
        amounts: Sequence[int],
        routes: Sequence[V3Route],
        *,
        block_number: int | None = None,
    ) -> list[RouteWithQuotes[V3Route]]:
        return await self._get_quotes_many(amounts, routes, TradeType.EXACT_OUTPUT, block_number)

    async def _get_quotes_many(
        self,
        amounts: Sequence[int],
        routes: Sequence[V3Route],
        trade_type: TradeType,
        block_number: int | None,
    ) -> list[RouteWithQuotes[V3Route]]:
        """Fetch quotes for every route at every amount.

        Raises:
            QuoteFetchError: If chunks are still failing after the last attempt
        """
        if not routes or not amounts:
            return [RouteWithQuotes(route=route, quotes=[]) for route in routes]

        exact_output = trade_type == TradeType.EXACT_OUTPUT
        if block_number is None:
            current = await self.client.get_block_number()
            original_block_number = current
            block_number = current + self.block_number_config.base_block_offset
        else:
            original_block_number = block_number

        inputs: list[QuoteInput] = [
            (encode_v3_path(route.pools, route.token_in, exact_output=exact_output), amount)
            for route in routes
            for amount in amounts
        ]

        ctx = RetryContext(
            gas_limit_per_call=self.batch_params.gas_limit_per_call,
            multicall_chunk=self.batch_params.multicall_chunk,
            block_number=block_number,
            original_block_number=original_block_number,
        )
        states = self._pending_states(inputs, ctx)
        expected_calls = len(states)

        logger.info(
            "v3_quotes_started",
            trade_type=trade_type.value,
            quote_count=len(inputs),
            chunk_sizes=[len(s.inputs) for s in states],
            gas_limit_per_call=ctx.gas_limit_per_call,
            block_number=ctx.block_number,
            original_block_number=original_block_number,
        )

        results = await self._run(states, inputs, ctx, exact_output)
        if results is None:
            return [
                RouteWithQuotes(
                    route=route,
                    quotes=[
                        AmountQuote(amount=amount, quote=None, reason=QuoteFailureReason.NO_QUOTE)
                        for amount in amounts
                    ],
                )
                for route in routes
            ]

        flat_results, result_block, approx_gas = results
        routes_with_quotes = self._process_quote_results(flat_results, routes, amounts)

        quotes = [q for rq in routes_with_quotes for q in rq.quotes]
        successful = sum(1 for q in quotes if q.is_valid)
        logger.info(
            "v3_quotes_fetched",
            successful_quotes=successful,
            failed_quotes=len(quotes) - successful,
            retry_loops=ctx.attempt - 1,
            total_calls=ctx.total_calls,
            expected_calls=expected_calls,
            retried_calls=ctx.total_calls - expected_calls,
            approx_gas_used_per_success_call=approx_gas,
            block_number=result_block,
            have_retried_for_timeout=ctx.have_retried_for_timeout,
            have_retried_for_gas=ctx.have_retried_for_gas,
            have_retried_for_success_rate=ctx.have_retried_for_success_rate,
            have_retried_for_block_header=ctx.have_retried_for_block_header,
            have_retried_for_unknown=ctx.have_retried_for_unknown,
        )
        return routes_with_quotes

    def _pending_states(self, inputs: Sequence[QuoteInput], ctx: RetryContext) -> list[QuoteState]:
        return [QuoteState(inputs=chunk) for chunk in chunk_inputs(inputs, ctx.multicall_chunk)]

    async def _run(
        self,
        states: list[QuoteState],
        inputs: list[QuoteInput],
        ctx: RetryContext,
        exact_output: bool,
    ) -> tuple[list[CallResult], int, int] | None:
        """Drive the retry loop.

        Returns:
            (flattened call results, block number, approx gas per successful call),
            or None when the Arbitrum gas-error bypass applies
        """
        total_attempts = self.retry_options.retries + 1

        for attempt in range(1, total_attempts + 1):
            ctx.attempt = attempt
            logger.debug(
                "v3_quote_attempt_started",
                attempt=attempt,
                success=sum(1 for s in states if s.status == QuoteStatus.SUCCESS),
                failed=sum(1 for s in states if s.status == QuoteStatus.FAILED),
                pending=sum(1 for s in states if s.status == QuoteStatus.PENDING),
                gas_limit_per_call=ctx.gas_limit_per_call,
                block_number=ctx.block_number,
            )

            states = await self._run_attempt(states, ctx, exact_output)

            successful = [s for s in states if s.status == QuoteStatus.SUCCESS]
            failed = [s for s in states if s.status == QuoteStatus.FAILED]

            conflict = self._validate_block_numbers(successful, len(states), ctx)
            retry_all = conflict is not None
            if conflict is not None and not ctx.have_retried_for_block_conflict:
                ctx.have_retried_for_block_conflict = True
                logger.warning("v3_quote_block_conflict", attempt=attempt, error=str(conflict))

            if failed:
                retry_all = self._apply_failure_policies(failed, len(states), ctx) or retry_all

            if not failed and conflict is None:
                return self._collect(successful)

            reasons = [type(s.reason).__name__ for s in failed]
            if conflict is not None:
                reasons.append(type(conflict).__name__)

            if attempt == total_attempts:
                if self._is_arbitrum_gas_bypass(failed, conflict):
                    logger.error(
                        "v3_quotes_arbitrum_gas_error_bypass",
                        chain_id=self.chain_id,
                        failed_chunks=len(failed),
                        message="Provider gas errors on Arbitrum, returning no quotes",
                    )
                    return None
                failed_count = len(failed) + (len(successful) if conflict is not None else 0)
                raise QuoteFetchError(
                    f"Failed to get {failed_count} quotes. Reasons: {', '.join(reasons)}"
                )

            if retry_all:
                logger.info(
                    "v3_quote_retry_all",
                    attempt=attempt,
                    multicall_chunk=ctx.multicall_chunk,
                )
                states = self._pending_states(inputs, ctx)

            await asyncio.sleep(self.retry_options.backoff(attempt))

        raise AssertionError("unreachable: retry loop exited without result")

    async def _run_attempt(
        self,
        states: list[QuoteState],
        ctx: RetryContext,
        exact_output: bool,
    ) -> list[QuoteState]:
        """Dispatch every non-successful chunk concurrently and wait for all of them."""
        total = len(states)
        return list(
            await asyncio.gather(
                *(
                    self._dispatch(index, state, total, ctx, exact_output)
                    for index, state in enumerate(states)
                )
            )
        )

    async def _dispatch(
        self,
        index: int,
        state: QuoteState,
        total: int,
        ctx: RetryContext,
        exact_output: bool,
    ) -> QuoteState:
        if state.status == QuoteStatus.SUCCESS:
            return state

        inputs = state.inputs
        calldatas = [
            encode_quote_call(path, amount, exact_output=exact_output) for path, amount in inputs
        ]
        ctx.total_calls += 1
        try:
            result = await asyncio.wait_for(
                self.client.call(
                    self.quoter_address,
                    calldatas,
                    ctx.gas_limit_per_call,
                    ctx.block_number,
                ),
                timeout=self.batch_params.call_timeout,
            )
        except TimeoutError as err:
            reason: QuoteFetchError = ProviderTimeoutError(
                f"Req {index}/{total}. Request had {len(inputs)} inputs. "
                f"Timed out after {self.batch_params.call_timeout}s {err}".rstrip()
            )
            return QuoteState(inputs=inputs, status=QuoteStatus.FAILED, reason=reason)
        except Exception as err:
            reason = classify_provider_error(err, index, total, len(inputs))
            return QuoteState(inputs=inputs, status=QuoteStatus.FAILED, reason=reason)

        success_rate_error = self._validate_success_rate(result, ctx)
        if success_rate_error is not None:
            return QuoteState(
                inputs=inputs,
                status=QuoteStatus.FAILED,
                results=result,
                reason=success_rate_error,
            )
        return QuoteState(inputs=inputs, status=QuoteStatus.SUCCESS, results=result)

    def _collect(self, successful: Sequence[QuoteState]) -> tuple[list[CallResult], int, int]:
        call_results = [s.results for s in successful if s.results is not None]
        flat = [r for result in call_results for r in result.results]
        approx_gas = max(r.approx_gas_used_per_success_call for r in call_results)
        return flat, call_results[0].block_number, approx_gas

    def _validate_success_rate(
        self, result: MulticallResult, ctx: RetryContext
    ) -> SuccessRateError | None:
        if not result.results:
            return None
        success_rate = result.success_count / len(result.results)
        threshold = self.batch_params.quote_min_success_rate
        if success_rate >= threshold:
            return None
        if ctx.have_retried_for_success_rate:
            logger.info(
                "v3_quote_success_rate_still_low",
                threshold=threshold,
                success_rate=success_rate,
            )
            return None
        return SuccessRateError(
            f"Quote success rate below threshold of {threshold}: {success_rate}"
        )

    def _validate_block_numbers(
        self,
        successful: Sequence[QuoteState],
        total_calls: int,
        ctx: RetryContext,
    ) -> BlockConflictError | None:
        if len(successful) <= 1:
            return None
        blocks = sorted({s.results.block_number for s in successful if s.results is not None})
        if len(blocks) == 1:
            return None
        return BlockConflictError(
            f"Quotes returned from different blocks. {blocks}. {total_calls} calls were "
            f"made with gas limit {ctx.gas_limit_per_call}"
        )

    def _apply_failure_policies(
        self,
        failed: Sequence[QuoteState],
        total: int,
        ctx: RetryContext,
    ) -> bool:
        """Update ctx for the next attempt based on why chunks failed.

        Returns:
            True if every chunk must be reset to pending
        """
        retry_all = False
        counted_block_header = False

        logger.info(
            "v3_quote_attempt_failed",
            attempt=ctx.attempt,
            failed_chunks=len(failed),
            total_chunks=total,
            reasons=[type(s.reason).__name__ for s in failed],
        )

        for state in failed:
            error = state.reason
            logger.debug("v3_quote_fetch_error", attempt=ctx.attempt, error=str(error))

            if isinstance(error, ProviderBlockHeaderError):
                ctx.have_retried_for_block_header = True
                # Several chunks failing on the same attempt count once
                if not counted_block_header:
                    ctx.block_header_failures += 1
                    counted_block_header = True
                rollback = self.block_number_config.rollback
                if (
                    rollback.enabled
                    and ctx.block_header_failures >= rollback.attempts_before_rollback
                    and not ctx.block_header_rolled_back
                ):
                    logger.info(
                        "v3_quote_block_rollback",
                        attempt=ctx.attempt,
                        block_header_failures=ctx.block_header_failures,
                        rollback_block_offset=rollback.rollback_block_offset,
                    )
                    ctx.block_number += rollback.rollback_block_offset
                    ctx.block_header_rolled_back = True
                    retry_all = True

            elif isinstance(error, ProviderTimeoutError):
                ctx.have_retried_for_timeout = True

            elif isinstance(error, ProviderGasError):
                if not ctx.have_retried_for_gas:
                    ctx.have_retried_for_gas = True
                    ctx.gas_limit_per_call = self.gas_error_failure_override.gas_limit_override
                    ctx.multicall_chunk = self.gas_error_failure_override.multicall_chunk
                    retry_all = True

            elif isinstance(error, SuccessRateError):
                if not ctx.have_retried_for_success_rate:
                    ctx.have_retried_for_success_rate = True
                    # Low success rate usually means calls ran out of gas individually
                    ctx.gas_limit_per_call = (
                        self.success_rate_failure_overrides.gas_limit_override
                    )
                    ctx.multicall_chunk = self.success_rate_failure_overrides.multicall_chunk
                    retry_all = True

            else:
                ctx.have_retried_for_unknown = True

        return retry_all

    def _is_arbitrum_gas_bypass(
        self,
        failed: Sequence[QuoteState],
        conflict: BlockConflictError | None,
    ) -> bool:
        # Arbitrum accounts storage and compute gas separately, so a per-call
        # gas limit cannot guarantee large multicalls succeed there.
        return (
            self.chain_id in ARBITRUM_CHAIN_IDS
            and conflict is None
            and bool(failed)
            and all(isinstance(s.reason, ProviderGasError) for s in failed)
        )

    def _process_quote_results(
        self,
        results: Sequence[CallResult],
        routes: Sequence[V3Route],
        amounts: Sequence[int],
    ) -> list[RouteWithQuotes[V3Route]]:
        """Split flat call results back into per-route quote lists."""
        per_route = len(amounts)
        routes_with_quotes: list[RouteWithQuotes[V3Route]] = []
        failed_quotes: list[tuple[str, str]] = []

        for i, route in enumerate(routes):
            route_results = results[i * per_route : (i + 1) * per_route]
            quotes: list[AmountQuote] = []
            for index, (amount, result) in enumerate(zip(amounts, route_results, strict=True)):
                quote = self._decode(amount, result)
                if not quote.is_valid:
                    percent = 100 / per_route * (index + 1)
                    failed_quotes.append((route_to_string(route), f"{percent:g}%[{amount}]"))
                quotes.append(quote)
            routes_with_quotes.append(RouteWithQuotes(route=route, quotes=quotes))

        parts = math.ceil(len(failed_quotes) / FAILED_QUOTES_LOG_CHUNK)
        for part in range(parts):
            start = part * FAILED_QUOTES_LOG_CHUNK
            chunk = failed_quotes[start : start + FAILED_QUOTES_LOG_CHUNK]
            by_route: dict[str, list[str]] = {}
            for route_str, entry in chunk:
                by_route.setdefault(route_str, []).append(entry)
            logger.info(
                "failed_v3_quotes",
                part=part,
                parts=parts,
                failed_quotes=[f"{r} : {','.join(e)}" for r, e in by_route.items()],
            )

        return routes_with_quotes

    def _decode(self, amount: int, result: CallResult) -> AmountQuote:
        if not result.success or not result.return_data:
            return AmountQuote(amount=amount, quote=None, reason=QuoteFailureReason.NO_QUOTE)
        try:
            quote, sqrt_prices, ticks_crossed, gas_estimate = decode_quote_result(
                result.return_data
            )
        except DecodingError as err:
            logger.warning("v3_quote_decode_failed", amount=amount, error=str(err))
            return AmountQuote(amount=amount, quote=None, reason=QuoteFailureReason.NO_QUOTE)
        return AmountQuote(
            amount=amount,
            quote=quote,
            sqrt_price_x96_after_list=tuple(sqrt_prices),
            initialized_ticks_crossed_list=tuple(ticks_crossed),
            gas_estimate=gas_estimate,
        )


__all__ = [
    "V3QuoteProvider",
    "QuoteState",
    "QuoteStatus",
    "RetryContext",
    "chunk_inputs",
    "normalized_chunk_size",
    "classify_provider_error",
]
