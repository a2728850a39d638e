"""Errors raised while fetching on-chain quotes.

All provider failures the retry loop knows how to classify derive from
QuoteFetchError. Only QuoteFetchError itself escapes V3QuoteProvider, once
the retry budget is exhausted.
"""

from __future__ import annotations


class QuoteFetchError(Exception):
    """Base exception for batched quote fetching."""

    pass


class BlockConflictError(QuoteFetchError):
    """Successful chunks executed against different blocks."""

    pass


class SuccessRateError(QuoteFetchError):
    """Too few calls within a chunk succeeded."""

    pass


class ProviderBlockHeaderError(QuoteFetchError):
    """The node does not have the requested block yet."""

    pass


class ProviderTimeoutError(QuoteFetchError):
    """The batched call timed out."""

    pass


class ProviderGasError(QuoteFetchError):
    """The batched call ran out of gas."""

    pass


__all__ = [
    "QuoteFetchError",
    "BlockConflictError",
    "SuccessRateError",
    "ProviderBlockHeaderError",
    "ProviderTimeoutError",
    "ProviderGasError",
]
