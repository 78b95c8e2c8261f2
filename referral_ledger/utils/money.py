"""Exact money and rate arithmetic.

Amounts are integer cents everywhere. Rates are ``Decimal`` fractions in [0, 1].
Commission amounts are rounded half-up to the nearest cent.
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from referral_ledger.services.errors import InvalidAmount, InvalidRate


CENT = Decimal("0.01")
RATE_QUANTUM = Decimal("0.0001")
# money columns are 32-bit integers
MAX_AMOUNT_CENTS = 2**31 - 1


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_commission(base_amount_cents: int, rate: Decimal) -> int:
    return round_half_up(Decimal(base_amount_cents) * rate)


def to_decimal(value) -> Decimal:
    if isinstance(value, float):
        # go through str so 0.1 stays 0.1
        value = str(value)
    return Decimal(value)


def validate_rate(value) -> Decimal:
    try:
        rate = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidRate(f"rate {value!r} is not a number")
    if not rate.is_finite() or rate < 0 or rate > 1:
        raise InvalidRate(f"rate must be between 0 and 1 (e.g. 0.10), got {value!r}")
    if rate != rate.quantize(RATE_QUANTUM):
        raise InvalidRate(f"rate {value!r} has more than 4 decimal places")
    return rate


def validate_amount_cents(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"amount must be an integer number of cents, got {value!r}")
    if value <= 0:
        raise InvalidAmount(f"amount must be positive, got {value}")
    if value > MAX_AMOUNT_CENTS:
        raise InvalidAmount(f"amount must be at most {MAX_AMOUNT_CENTS} cents, got {value}")
    return value


def parse_amount_to_cents(value) -> int:
    """Convert a decimal major-unit amount (``"12.34"``) to cents, exactly."""
    try:
        amount = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"amount {value!r} is not a number")
    if not amount.is_finite():
        raise InvalidAmount(f"amount {value!r} is not finite")
    if amount != amount.quantize(CENT):
        raise InvalidAmount(f"amount {value!r} has sub-cent precision")
    return validate_amount_cents(int(amount * 100))
