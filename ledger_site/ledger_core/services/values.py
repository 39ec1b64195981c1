import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ..exceptions import LedgerValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Money columns are DecimalField(max_digits=18, decimal_places=2)
AMOUNT_MAX = Decimal("1e16")


# ------------------------------------------
# Input coercion shared by the write services
# ------------------------------------------
def money(value):
    """Round to cents, half away from zero (1.005 → 1.01)."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value, label, default=Decimal("0")):
    """Parse numbers arriving as str/int/float/Decimal; blank → default."""
    if value is None or value == "":
        return default
    # True/False are ints to Python, never amounts to us
    if isinstance(value, bool):
        raise LedgerValidationError(f"{label} is not a number: {value!r}")
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise LedgerValidationError(f"{label} is not a number: {value!r}")
    if not parsed.is_finite():
        raise LedgerValidationError(f"{label} is not a number: {value!r}")
    return parsed


def to_amount(value, label, default=Decimal("0")):
    """Parse a money input and round it to cents; it must fit a money column."""
    parsed = to_decimal(value, label, default=default)
    if parsed is None:
        return None
    if abs(parsed) < AMOUNT_MAX:
        amount = money(parsed)
        if abs(amount) < AMOUNT_MAX:
            return amount
    raise LedgerValidationError(
        f"{label} {value!r} is too large; amounts must be below "
        f"{AMOUNT_MAX:,.0f}")


def to_date(value, label="date"):
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            # accept "2026-03-01" and "2026-03-01T00:00:00.000Z"
            return datetime.date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise LedgerValidationError(
        f"{label} must be a date in YYYY-MM-DD form, got {value!r}")


def to_optional_date(value, label="date"):
    if value in (None, ""):
        return None
    return to_date(value, label)
