"""Helpers for Decimal money amounts stored as integer cents."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

CENT = Decimal("0.01")
# Largest single amount accepted; running balances stay far inside a 64-bit column.
MAX_AMOUNT = Decimal("9999999999.99")


def coerce_amount(value) -> Decimal:
    """Normalize a raw numeric value to Decimal.

    Floats go through ``str`` so ``2.1`` becomes ``Decimal("2.1")`` rather
    than its binary expansion.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("amount must be numeric")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {value!r}") from exc


def to_cents(value) -> int:
    """Convert a money amount to integer cents.

    Raises ``ValueError`` for sub-cent precision and for magnitudes above
    :data:`MAX_AMOUNT`.
    """
    amount = coerce_amount(value)
    if not amount.is_finite():
        raise ValueError(f"invalid amount: {value!r}")
    if abs(amount) > MAX_AMOUNT:
        raise ValueError(f"amount {amount} exceeds {MAX_AMOUNT}")
    try:
        quantized = amount.quantize(CENT)
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {value!r}") from exc
    if quantized != amount:
        raise ValueError(f"amount {amount} has more than two decimal places")
    return int(quantized * 100)


def from_cents(cents: int | None) -> Decimal:
    if cents is None:
        return Decimal("0.00")
    return (Decimal(cents) / 100).quantize(CENT)


__all__ = ["CENT", "MAX_AMOUNT", "coerce_amount", "to_cents", "from_cents"]
