"""Lenient field coercion for upstream API payloads.

Upstream explorers return numbers as strings, nulls, empty strings or
the literal "null" more or less at random. Every helper here degrades to a
default value instead of raising so that one malformed field never stops a
transaction (or a batch) from being processed.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_DOWN, localcontext
from typing import Any, Optional

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_str(value: Any, default: str = "") -> str:
    """Return value as a string, or default for None/'null'."""
    if value is None:
        return default
    text = str(value)
    if text == "null":
        return default
    return text


def to_int(value: Any, default: int = 0) -> int:
    """Parse an integer from an int, float or decimal string."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip(), 10)
    except ValueError:
        pass
    try:
        return int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError, OverflowError):
        logger.debug("[COERCE] Defaulting int field %r to %s", value, default)
        return default


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """Parse a Decimal, returning default for anything non-numeric."""
    if value is None or value == "":
        return default
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        logger.debug("[COERCE] Defaulting decimal field %r", value)
        return default
    if not result.is_finite():
        return default
    return result


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an upstream timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings and unix epochs in seconds, milliseconds or
    nanoseconds (as int or numeric string). Unparseable input yields the
    unix epoch.
    """
    if value is None or value == "":
        return EPOCH
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    number = to_decimal(value)
    if number is not None:
        if number > Decimal("1e17"):  # nanoseconds (NEAR)
            number = number / Decimal("1e9")
        elif number > Decimal("1e12"):  # milliseconds
            number = number / Decimal("1e3")
        try:
            return datetime.fromtimestamp(float(number), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.debug("[COERCE] Timestamp out of range: %r", value)
            return EPOCH

    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug("[COERCE] Unparseable timestamp: %r", value)
        return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_amount(raw: Any, decimals: int, places: int = 6) -> str:
    """
    Convert an integer amount in base units to a display string.

    The division is exact and the result is truncated to ``places``
    fractional digits, e.g. ``format_amount("1000000000000000000", 18)``
    gives ``"1.000000"``. Malformed input yields ``"0"``.
    """
    value = to_decimal(raw)
    if value is None:
        return "0"
    with localcontext() as ctx:
        ctx.prec = 96
        try:
            scaled = value.scaleb(-decimals)
            return str(scaled.quantize(Decimal(1).scaleb(-places), rounding=ROUND_DOWN))
        except InvalidOperation:
            logger.debug("[COERCE] Amount %r out of range for %s decimals", raw, decimals)
            return "0"


def to_base_units(value: Any, decimals: int) -> str:
    """
    Convert a display amount ("1.5") to an integer string in base units.

    Some indexers report human-readable amounts; the rest of the pipeline
    works in base units. The sign is dropped and malformed input yields "0".
    """
    number = to_decimal(value)
    if number is None:
        return "0"
    with localcontext() as ctx:
        ctx.prec = 96
        try:
            return str(int(abs(number).scaleb(decimals)))
        except (InvalidOperation, OverflowError):
            return "0"


def is_zero_amount(value: Any) -> bool:
    """True for empty, non-numeric or numerically zero amounts."""
    number = to_decimal(value)
    return number is None or number == 0
