"""Oracle price normalization and USD/token conversions.

A raw quote is ``raw_price * 10**raw_exponent`` USD. The canonical form is
``usd_micro``: the price of one whole token in millionths of a dollar.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..constants import USD_DECIMALS
from ..errors import InvalidAmount, InvalidPrice
from ..units import (
    I32,
    I64,
    I128,
    U64,
    checked_div,
    checked_mul,
    fit,
    max_pow10,
    pow10,
)


@dataclass(frozen=True)
class NormalizedPrice:
    usd_micro: int
    raw_price: int
    raw_exponent: int


def normalize(raw_price: int, raw_exponent: int) -> NormalizedPrice:
    """Convert a raw oracle quote into a USD-micro price.

    Exponents finer than 6 decimals divide down (truncating), coarser ones
    multiply up.

    Raises:
        MathOverflow: If scaling leaves the signed 64-bit range.
        InvalidPrice: If the scaled price is zero or negative.
    """
    fit(raw_price, I64, "raw price")
    fit(raw_exponent, I32, "raw exponent")
    if raw_price <= 0:
        raise InvalidPrice(
            f"Raw price must be positive, got {raw_price}e{raw_exponent}"
        )

    target = -USD_DECIMALS
    if raw_exponent < target:
        shift = target - raw_exponent
        # any i64 mantissa divided by a larger power of ten truncates to zero
        if shift > max_pow10(I64):
            usd_micro = 0
        else:
            usd_micro = checked_div(raw_price, pow10(shift))
    elif raw_exponent > target:
        usd_micro = checked_mul(raw_price, pow10(raw_exponent - target))
    else:
        usd_micro = raw_price

    if usd_micro <= 0:
        raise InvalidPrice(
            f"Normalized price must be positive, got {usd_micro} "
            f"(raw {raw_price}e{raw_exponent})"
        )
    return NormalizedPrice(
        usd_micro=usd_micro, raw_price=raw_price, raw_exponent=raw_exponent
    )


def _require_positive(price: NormalizedPrice) -> int:
    if price.usd_micro <= 0:
        raise InvalidPrice(f"Price must be positive, got {price.usd_micro}")
    return price.usd_micro


def tokens_to_usd(price: NormalizedPrice, amount: int, decimals: int) -> int:
    """Value ``amount`` native units in USD-micro, truncating."""
    usd_micro = _require_positive(price)
    fit(amount, U64, "token amount")
    value = checked_mul(amount, usd_micro, I128)
    return fit(checked_div(value, pow10(decimals, I128), I128), I64, "usd value")


def usd_to_tokens(price: NormalizedPrice, usd_micro_amount: int, decimals: int) -> int:
    """Convert a USD-micro amount into native units of an asset, truncating.

    Raises:
        InvalidAmount: If the USD amount is negative.
        MathOverflow: If the token amount leaves the unsigned 64-bit range.
    """
    usd_micro = _require_positive(price)
    if usd_micro_amount < 0:
        raise InvalidAmount(f"USD amount must not be negative, got {usd_micro_amount}")
    fit(usd_micro_amount, I64, "usd amount")
    scaled = checked_mul(usd_micro_amount, pow10(decimals, I128), I128)
    return fit(checked_div(scaled, usd_micro, I128), U64, "token amount")


def calculate_swap_output(
    amount_in: int,
    from_price: NormalizedPrice,
    to_price: NormalizedPrice,
    from_decimals: int,
    to_decimals: int,
) -> int:
    """Amount of the target asset ``amount_in`` buys at oracle rates.

    Works on the raw mantissa/exponent pairs so no precision is lost to
    normalization. Exponent and decimal adjustments are folded into a single
    truncating division.

    Raises:
        InvalidPrice: If either raw price is not positive.
        InvalidAmount: If the input is not positive or the output truncates to zero.
        MathOverflow: If the output leaves the unsigned 64-bit range.
    """
    if amount_in <= 0:
        raise InvalidAmount(f"Swap input must be positive, got {amount_in}")
    if from_price.raw_price <= 0 or to_price.raw_price <= 0:
        raise InvalidPrice(
            f"Swap prices must be positive, got {from_price.raw_price} "
            f"and {to_price.raw_price}"
        )
    fit(amount_in, U64, "swap input")

    numerator = checked_mul(amount_in, from_price.raw_price, I128)
    denominator = to_price.raw_price
    shift = (from_price.raw_exponent - to_price.raw_exponent) + (
        to_decimals - from_decimals
    )
    if shift > 0:
        numerator = checked_mul(numerator, pow10(shift, I128), I128)
    elif shift < -max_pow10(I128):
        # the i128 numerator is smaller than the scaled denominator
        numerator = 0
    elif shift < 0:
        # divisor only; its width never limits the quotient
        denominator *= pow10(-shift, I128)

    amount_out = checked_div(numerator, denominator, I128)
    if amount_out <= 0:
        raise InvalidAmount(
            f"Swap of {amount_in} produces no output at current prices"
        )
    return fit(amount_out, U64, "swap output")
