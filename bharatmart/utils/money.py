from decimal import Decimal, InvalidOperation

from babel.core import UnknownLocaleError
from babel.dates import format_datetime
from babel.numbers import format_decimal

DEFAULT_LOCALE = "en_IN"
TIMESTAMP_PATTERN = "d/M/yyyy, h:mm:ss a"


def _plain(amount) -> str:
    try:
        d = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return str(amount)
    if d == d.to_integral_value():
        return str(d.quantize(Decimal(1)))
    return str(d.normalize())


def format_money(amount, locale: str = DEFAULT_LOCALE) -> str:
    """Group digits the way the locale does, without forcing decimals.

    ``format_money(123456.5)`` gives ``"1,23,456.5"`` for en_IN. An
    unknown locale falls back to the plain number.
    """
    try:
        return format_decimal(amount, locale=locale)
    except (UnknownLocaleError, ValueError, TypeError, InvalidOperation):
        return _plain(amount)


def format_timestamp(moment, locale: str = DEFAULT_LOCALE) -> str:
    try:
        return format_datetime(moment, TIMESTAMP_PATTERN, locale=locale)
    except (UnknownLocaleError, ValueError, TypeError):
        return moment.strftime("%d/%m/%Y, %H:%M:%S")


__all__ = ["format_money", "format_timestamp"]
