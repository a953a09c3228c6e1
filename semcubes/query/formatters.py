"""Display formatting of attribute and metric values."""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any

from ..logging import get_logger
from ..metadata import Attribute

__all__ = [
    "DEFAULT_DATE_MILLIS_THRESHOLD",
    "format_date",
    "format_timestamp",
    "format_attribute_value",
    "format_scalar",
    "value_format",
    "parse_metric_value",
]

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# 100000 days is in the year 2243, while epoch milliseconds of any date
# after 1970-01-02 are larger than that
DEFAULT_DATE_MILLIS_THRESHOLD = 100000

VALUE_FORMAT_PATTERN = re.compile(r"([^0,.#]*)([0,.#]*)?([a-zA-Z%]*)")


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_date(value, threshold: int = DEFAULT_DATE_MILLIS_THRESHOLD) -> str:
    """Format a date as ``YYYY-MM-DD`` in UTC.

    Numbers larger than `threshold` are epoch milliseconds, smaller numbers
    are days since the epoch. `date` and `datetime` objects are accepted as
    they come from columnar decoders.
    """
    if isinstance(value, datetime):
        value = _to_utc(value).date()
    if isinstance(value, date):
        return value.isoformat()

    number = int(value)
    if number > threshold:
        moment = EPOCH + timedelta(milliseconds=number)
    else:
        moment = EPOCH + timedelta(days=number)

    return f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"


def format_timestamp(value, fmt: str | None = None) -> str:
    """Format a timestamp - microseconds since the epoch or a `datetime` -
    as e.g. ``Jan 15, 2024, 02:30 PM`` in UTC. `fmt` is an optional
    `strftime` pattern used instead."""
    if isinstance(value, datetime):
        moment = _to_utc(value)
    else:
        moment = EPOCH + timedelta(microseconds=int(value))

    if fmt:
        return moment.strftime(fmt)

    return f"{moment:%b} {moment.day}, {moment.year}, {moment:%I:%M %p}"


def format_scalar(value: Any) -> str:
    """Plain text of a scalar value. Integral floats lose their ``.0`` so
    that ``2023.0`` and ``2023`` render the same."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _as_integer(value: Any) -> int | None:
    """Integer value of numbers and numeric strings, ``None`` otherwise."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _format_temporal(
    value: Any,
    attribute: Attribute,
    date_threshold: int,
    timestamp_format: str | None,
) -> str | None:
    """Date or timestamp text of `value`, ``None`` when `value` is not a
    date or a number."""
    if attribute.is_date:
        if isinstance(value, date):
            return format_date(value)
        number = _as_integer(value)
        if number is not None:
            return format_date(number, date_threshold)

    elif attribute.is_timestamp:
        if isinstance(value, datetime):
            return format_timestamp(value, timestamp_format)
        number = _as_integer(value)
        if number is not None:
            return format_timestamp(number, timestamp_format)

    return None


def format_attribute_value(
    value: Any,
    attribute: Attribute | None,
    date_threshold: int = DEFAULT_DATE_MILLIS_THRESHOLD,
    timestamp_format: str | None = None,
) -> str:
    """Format `value` according to the type of `attribute`.

    ``None`` renders as an empty string. Date and timestamp attributes are
    rendered by `format_date` and `format_timestamp`; values that can not be
    interpreted as dates, including numbers outside of the representable
    date range, fall back to their plain text.
    """
    if value is None:
        return ""

    if attribute is not None:
        try:
            text = _format_temporal(value, attribute, date_threshold, timestamp_format)
        except (OverflowError, ValueError):
            get_logger().warning(
                f"value {value!r} of attribute '{attribute.name}' is out of "
                f"the date range, formatting as plain text"
            )
            text = None
        if text is not None:
            return text

    return format_scalar(value)


def value_format(value: float, pattern: str) -> str:
    """Format number `value` with a display `pattern`.

    The pattern consists of a literal prefix, a number part made of
    ``0 , . #`` characters and a literal suffix, for example ``$#,##0.00``
    or ``0.0%``. The number of decimal places is the count of characters
    after the ``.`` of the number part. Thousands are always grouped.

    Halves are rounded away from zero on the decimal text of the value, so
    ``1.005`` with two decimals is ``1.01``.
    """
    match = VALUE_FORMAT_PATTERN.match(pattern or "")

    prefix = match.group(1) or ""
    digits = match.group(2) or ""
    suffix = match.group(3) or ""

    decimals = len(digits.split(".", 1)[1]) if "." in digits else 0

    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    if amount.is_finite():
        with localcontext() as context:
            context.prec = max(context.prec, amount.adjusted() + decimals + 2)
            amount = amount.quantize(
                Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP
            )

    return f"{prefix}{amount:,.{decimals}f}{suffix}"


def parse_metric_value(value: Any) -> float | None:
    """Parse a raw metric value. ``None`` stays ``None``, anything else -
    including zero - becomes a float. Unparseable values become NaN."""
    if value is None:
        return None

    try:
        return float(value)
    except (TypeError, ValueError):
        get_logger().warning(f"can not parse metric value {value!r}, using NaN")
        return math.nan
