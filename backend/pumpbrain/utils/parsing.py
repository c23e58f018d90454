import math
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional


def to_number(value: Any) -> Optional[float]:
    """Float for numbers and numeric strings; None for anything absent, non-numeric or non-finite."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return number


def to_int(value: Any) -> Optional[int]:
    number = to_number(value)
    return int(number) if number is not None else None


def to_decimal(value: Any) -> Decimal:
    """Exact decimal for wei / lamport strings; zero when unparseable."""
    if value is None or isinstance(value, bool):
        return Decimal(0)
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        return Decimal(0)
    return number if number.is_finite() else Decimal(0)


def iso_from_unix(seconds: Any) -> Optional[str]:
    """UTC ISO-8601 string (millisecond precision, Z suffix) for a unix timestamp."""
    ts = to_number(seconds)
    if ts is None:
        return None
    dt = datetime.fromtimestamp(ts, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def short_id(value: Any, length: int = 8) -> str:
    if not value or not isinstance(value, str):
        return "unknown"
    return value[:length]
