"""
Module: fleet_kernel.db.types
Responsibility: Money helpers shared by models, services and selectors, so
    amounts are stored and rounded the same way everywhere.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/ and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats for money.  Amounts are Decimal with two decimal places,
      stored as Numeric(15, 2).
    - round_money() is the only rounding function for monetary values.

Failure modes:
    - InvalidOperation from to_money() on input that is not a number.
"""

from decimal import ROUND_HALF_UP, Decimal

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0.00")


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """Round a monetary value to the stored precision."""
    quantize_str = "0." + "0" * decimal_places
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def to_money(value: object) -> Decimal:
    """
    Coerce a form or database value to a rounded Decimal.

    Floats go through ``str()`` first so 0.1 stays 0.10 instead of picking
    up binary noise.  ``None`` becomes zero (SUM over no rows).

    Raises:
        decimal.InvalidOperation: If the value is not numeric.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return round_money(value)
    if isinstance(value, float):
        return round_money(Decimal(str(value)))
    return round_money(Decimal(str(value).strip()))
