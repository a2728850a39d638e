"""Errors raised outside of the quoting and pool layers."""

from __future__ import annotations


class ConfigurationError(Exception):
    """The router is missing data it needs for the requested chain.

    Raised for conditions that retrying cannot fix, e.g. no pools found
    for a chain or no USD reference token configured.
    """

    pass


class InvalidSplitError(Exception):
    """A split plan violates one of its structural invariants."""

    pass


__all__ = ["ConfigurationError", "InvalidSplitError"]
