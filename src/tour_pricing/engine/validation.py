"""
Input parsing for operator-entered values.

Everything numeric passes through here before it is stored or calculated,
so the calculator only ever sees Decimals and non-negative ints.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from ..errors import ValidationFailed


CURRENCIES = ('USD', 'UZS', 'EUR')

# "1,000" reads as a thousands separator in some locales and as 1.000 in
# others; such input is rejected rather than guessed
_AMBIGUOUS_COMMA = re.compile(r'^-?\d{1,3},\d{3}$')


def _normalise_decimal_comma(text: str, field: str) -> str:
    """Accept a single comma as the decimal separator, e.g. "12,50"."""
    if ',' not in text:
        return text
    if text.count(',') > 1 or '.' in text or _AMBIGUOUS_COMMA.match(text):
        raise ValidationFailed(
            f"{field}: use a single decimal separator and no thousands separators, got {text!r}", field
        )
    return text.replace(',', '.')


def is_blank(value: Any) -> bool:
    """True for None and whitespace-only strings."""
    return value is None or (isinstance(value, str) and value.strip() == '')


def parse_amount(value: Any, field: str = 'unitPrice') -> Decimal:
    """Parse a non-negative money amount. Blank means zero."""
    if is_blank(value):
        return Decimal('0')
    if isinstance(value, bool):
        raise ValidationFailed(f"{field} must be a number, got {value!r}", field)
    try:
        amount = Decimal(_normalise_decimal_comma(str(value).strip(), field))
    except InvalidOperation:
        raise ValidationFailed(f"{field} must be a number, got {value!r}", field)
    if not amount.is_finite():
        raise ValidationFailed(f"{field} must be finite, got {value!r}", field)
    if amount < 0:
        raise ValidationFailed(f"{field} must not be negative, got {value!r}", field)
    return amount


def parse_count(value: Any, field: str, default: int, minimum: int = 0) -> int:
    """Parse a whole-number count; blank takes the default."""
    if is_blank(value):
        return default
    if isinstance(value, bool):
        raise ValidationFailed(f"{field} must be a whole number, got {value!r}", field)
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationFailed(f"{field} must be a whole number, got {value!r}", field)
    if not number.is_finite() or number != number.to_integral_value():
        raise ValidationFailed(f"{field} must be a whole number, got {value!r}", field)
    count = int(number)
    if count < minimum:
        raise ValidationFailed(f"{field} must be at least {minimum}, got {value!r}", field)
    return count


def parse_days(value: Any) -> int:
    """Days on a row. Blank means one day, zero stays zero."""
    return parse_count(value, 'days', default=1)


def parse_headcount(value: Any) -> int:
    return parse_count(value, 'headcount', default=1, minimum=1)


def parse_currency(value: Any) -> str:
    if is_blank(value):
        return 'USD'
    currency = str(value).strip().upper()
    if currency not in CURRENCIES:
        raise ValidationFailed(
            f"currency must be one of {', '.join(CURRENCIES)}, got {value!r}", 'currency'
        )
    return currency


def parse_percentage(value: Any) -> Decimal:
    """Commission percentage. No upper bound: markups above 100% are valid."""
    if is_blank(value):
        raise ValidationFailed("percentage is required", 'percentage')
    return parse_amount(value, field='percentage')


def parse_item_id(value: Any) -> int:
    if is_blank(value):
        raise ValidationFailed("id is required", 'id')
    return parse_count(value, 'id', default=0)


def ensure_unique_ids(ids: Iterable[int]) -> None:
    """Item ids must be unique within one record."""
    seen = set()
    for item_id in ids:
        if item_id in seen:
            raise ValidationFailed(f"Duplicate item id {item_id}", 'id')
        seen.add(item_id)
