"""Configuration for route search and on-chain quote fetching.

Every group of knobs is a frozen dataclass with a DEFAULT_* instance, so a
test can build a variant with dataclasses.replace() without touching
module state.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from swap_router.models.types import PoolProtocol


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.lower() in ("true", "1", "yes")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as err:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from err


@dataclass(frozen=True)
class RoutingConfig:
    """Knobs for route enumeration and the split search.

    Attributes:
        max_hops: Maximum number of pools in a single route
        distribution_percent: Step between probed amount fractions; 5 probes
            5%, 10%, ..., 100%
        min_splits: Minimum number of routes in a returned plan
        max_splits: Maximum number of routes in a returned plan
        force_cross_protocol: Require plans to mix protocols
        protocols: Protocols to enumerate and quote
    """

    max_hops: int = 3
    distribution_percent: int = 5
    min_splits: int = 1
    max_splits: int = 3
    force_cross_protocol: bool = False
    protocols: tuple[PoolProtocol, ...] = field(
        default=(PoolProtocol.V2, PoolProtocol.V3),
    )

    def __post_init__(self) -> None:
        if self.max_hops < 0:
            raise ValueError(f"max_hops must be >= 0, got {self.max_hops}")
        if not 0 < self.distribution_percent <= 100 or 100 % self.distribution_percent:
            raise ValueError(
                f"distribution_percent must divide 100, got {self.distribution_percent}"
            )
        if self.min_splits < 1:
            raise ValueError(f"min_splits must be >= 1, got {self.min_splits}")
        if self.max_splits < self.min_splits:
            raise ValueError(
                f"max_splits ({self.max_splits}) must be >= min_splits ({self.min_splits})"
            )

    @classmethod
    def from_env(cls) -> RoutingConfig:
        """Build a config from ROUTER_* environment variables, falling back to defaults."""
        return cls(
            max_hops=_env_int("ROUTER_MAX_HOPS", cls.max_hops),
            distribution_percent=_env_int(
                "ROUTER_DISTRIBUTION_PERCENT", cls.distribution_percent
            ),
            min_splits=_env_int("ROUTER_MIN_SPLITS", cls.min_splits),
            max_splits=_env_int("ROUTER_MAX_SPLITS", cls.max_splits),
            force_cross_protocol=_env_bool(
                "ROUTER_FORCE_CROSS_PROTOCOL", cls.force_cross_protocol
            ),
        )


@dataclass(frozen=True)
class RetryOptions:
    """Retry budget for one quote-fetch call.

    Total attempts are retries + 1. Between attempts the engine sleeps
    min(min_timeout * factor ** (attempt - 1), max_timeout) seconds.
    """

    retries: int = 2
    min_timeout: float = 0.025
    max_timeout: float = 0.25
    factor: float = 2.0

    def backoff(self, attempt: int) -> float:
        """Delay in seconds before the attempt following `attempt` (1-based)."""
        return min(self.min_timeout * self.factor ** (attempt - 1), self.max_timeout)


@dataclass(frozen=True)
class BatchParams:
    """Sizing of batched quote calls.

    Attributes:
        multicall_chunk: Target number of quote calls per multicall
        gas_limit_per_call: Gas forwarded to each quote call
        quote_min_success_rate: Fraction of calls in a chunk that must succeed
        call_timeout: Seconds before a single multicall is treated as timed out
    """

    multicall_chunk: int = 150
    gas_limit_per_call: int = 1_000_000
    quote_min_success_rate: float = 0.2
    call_timeout: float = 10.0

    def __post_init__(self) -> None:
        if self.multicall_chunk < 1:
            raise ValueError(f"multicall_chunk must be >= 1, got {self.multicall_chunk}")
        if not 0.0 <= self.quote_min_success_rate <= 1.0:
            raise ValueError(
                f"quote_min_success_rate must be in [0, 1], got {self.quote_min_success_rate}"
            )


@dataclass(frozen=True)
class FailureOverrides:
    """Batch parameters to switch to after a gas or success-rate failure."""

    gas_limit_override: int
    multicall_chunk: int


@dataclass(frozen=True)
class RollbackConfig:
    """Block rollback after repeated 'header not found' errors.

    rollback_block_offset is added to the target block, so it is normally
    negative.
    """

    enabled: bool = False
    attempts_before_rollback: int = 1
    rollback_block_offset: int = 0


@dataclass(frozen=True)
class BlockNumberConfig:
    """Which block quotes are fetched against.

    base_block_offset is added to the current block when no block number is
    pinned by the caller.
    """

    base_block_offset: int = 0
    rollback: RollbackConfig = field(default_factory=RollbackConfig)


DEFAULT_ROUTING_CONFIG = RoutingConfig()
DEFAULT_RETRY_OPTIONS = RetryOptions()
DEFAULT_BATCH_PARAMS = BatchParams()
DEFAULT_GAS_ERROR_OVERRIDES = FailureOverrides(gas_limit_override=1_500_000, multicall_chunk=100)
DEFAULT_SUCCESS_RATE_OVERRIDES = FailureOverrides(
    gas_limit_override=1_300_000, multicall_chunk=110
)
DEFAULT_BLOCK_NUMBER_CONFIG = BlockNumberConfig()

__all__ = [
    "RoutingConfig",
    "RetryOptions",
    "BatchParams",
    "FailureOverrides",
    "RollbackConfig",
    "BlockNumberConfig",
    "DEFAULT_ROUTING_CONFIG",
    "DEFAULT_RETRY_OPTIONS",
    "DEFAULT_BATCH_PARAMS",
    "DEFAULT_GAS_ERROR_OVERRIDES",
    "DEFAULT_SUCCESS_RATE_OVERRIDES",
    "DEFAULT_BLOCK_NUMBER_CONFIG",
]
