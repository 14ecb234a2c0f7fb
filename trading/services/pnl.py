# trading/services/pnl.py
from decimal import Decimal, InvalidOperation

from core.exceptions import InvalidPrice, InvalidQuantity

LONG = 'long'
SHORT = 'short'


def to_decimal(value, error_cls=InvalidPrice):
    """Coerce ``value`` to a finite Decimal or raise ``error_cls``"""
    if isinstance(value, bool):
        raise error_cls(f"Not a number: {value!r}")
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise error_cls(f"Not a number: {value!r}")
    if not number.is_finite():
        raise error_cls(f"Not a finite number: {value!r}")
    return number


def calculate_pnl(direction, entry_price, exit_price, quantity):
    """
    Profit or loss of a position.

    long:  (exit - entry) * quantity
    short: (entry - exit) * quantity
    """
    entry = to_decimal(entry_price)
    exit_ = to_decimal(exit_price)
    qty = to_decimal(quantity, InvalidQuantity)

    if entry <= 0 or exit_ <= 0:
        raise InvalidPrice("Prices must be greater than zero")
    if qty <= 0:
        raise InvalidQuantity("Quantity must be greater than zero")

    direction = str(direction).lower()
    if direction == LONG:
        return (exit_ - entry) * qty
    if direction == SHORT:
        return (entry - exit_) * qty
    raise ValueError(f"Unknown trade direction: {direction}")


AMOUNT_QUANTUM = Decimal('0.00000001')


def quantize_amount(value):
    """Round to the ledger's 8 decimal places"""
    return value.quantize(AMOUNT_QUANTUM)


MAX_AMOUNT = Decimal('1000000000000000')  # fits the ledger's 24 digits


def to_amount(value, error_cls=InvalidPrice):
    """Finite Decimal rounded to ledger precision, within the ledger's range"""
    number = to_decimal(value, error_cls)
    if abs(number) >= MAX_AMOUNT:
        raise error_cls(f"Out of range: {value!r}")
    return quantize_amount(number)


def ledger_amount(value, error_cls, label='Amount'):
    """Round a computed amount, raising ``error_cls`` if it leaves the ledger's range"""
    if abs(value) >= MAX_AMOUNT:
        raise error_cls(f"{label} {value} is outside the ledger's range")
    return quantize_amount(value)
