"""Checked fixed-point integer helpers.

Python integers never overflow, so every helper here enforces the width the
value is declared with and raises :class:`MathOverflow` instead of wrapping or
clamping. Division truncates toward zero.
"""

from __future__ import annotations

from .errors import MathOverflow

Width = tuple[int, int]

I32: Width = (-(2**31), 2**31 - 1)
I64: Width = (-(2**63), 2**63 - 1)
U64: Width = (0, 2**64 - 1)
I128: Width = (-(2**127), 2**127 - 1)


def fit(value: int, width: Width = I64, op: str = "value") -> int:
    """Return ``value`` unchanged if it fits ``width``.

    Raises:
        MathOverflow: If ``value`` falls outside the width.
    """
    lo, hi = width
    if value < lo or value > hi:
        raise MathOverflow(f"{op} result outside [{lo}, {hi}]")
    return value


def checked_add(a: int, b: int, width: Width = I64) -> int:
    return fit(a + b, width, "add")


def checked_sub(a: int, b: int, width: Width = I64) -> int:
    return fit(a - b, width, "sub")


def checked_mul(a: int, b: int, width: Width = I64) -> int:
    return fit(a * b, width, "mul")


def checked_div(a: int, b: int, width: Width = I64) -> int:
    """Divide ``a`` by ``b`` truncating toward zero.

    Raises:
        MathOverflow: On division by zero or if the quotient leaves ``width``.
    """
    if b == 0:
        raise MathOverflow(f"division of {a} by zero")
    quotient = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        quotient = -quotient
    return fit(quotient, width, "div")


def max_pow10(width: Width = I64) -> int:
    """Largest exponent whose power of ten still fits ``width``."""
    return len(str(width[1])) - 1


def pow10(exponent: int, width: Width = I64) -> int:
    """Return ``10**exponent`` if it fits ``width``.

    The bound is checked on the exponent, so the power is never built when it
    would not fit.

    Raises:
        MathOverflow: If ``exponent`` is negative or the power leaves ``width``.
    """
    if exponent < 0:
        raise MathOverflow(f"negative power of ten: {exponent}")
    if exponent > max_pow10(width):
        raise MathOverflow(f"10**{exponent} outside [{width[0]}, {width[1]}]")
    return 10**exponent
