"""Checked integer wrapper for constant-product pool arithmetic.

On-chain amounts are uint256, so a negative intermediate or a zero divisor
in the swap formulas means the inputs were wrong. `S` raises on both
instead of returning a meaningless amount:

    numerator = S(reserve_in) * S(amount_out) * S(10000)
    denominator = (S(reserve_out) - S(amount_out)) * S(fee_multiplier)
    amount_in = ((numerator // denominator) + S(1)).value
"""

from __future__ import annotations


class SafeIntError(ArithmeticError):
    """Checked arithmetic failed."""


class Underflow(SafeIntError):
    pass


class DivisionByZero(SafeIntError):
    pass


class SafeInt:
    """Non-negative integer whose subtraction and division are checked."""

    __slots__ = ("value",)

    def __init__(self, value: int | SafeInt) -> None:
        if isinstance(value, SafeInt):
            value = value.value
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"Expected an int, got {type(value).__name__}")
        if value < 0:
            raise Underflow(f"Negative amount: {value}")
        self.value = value

    def __add__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self.value + SafeInt(other).value)

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self.value * SafeInt(other).value)

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        rhs = SafeInt(other).value
        if rhs > self.value:
            raise Underflow(f"{self.value} - {rhs} is negative")
        return SafeInt(self.value - rhs)

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        rhs = SafeInt(other).value
        if rhs == 0:
            raise DivisionByZero(f"{self.value} // 0")
        return SafeInt(self.value // rhs)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SafeInt):
            return self.value == other.value
        if isinstance(other, int):
            return self.value == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def __repr__(self) -> str:
        return f"S({self.value})"


S = SafeInt

__all__ = ["SafeIntError", "Underflow", "DivisionByZero", "SafeInt", "S"]
