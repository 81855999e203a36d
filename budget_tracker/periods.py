"""Calendar helpers: month keys, day labels and query windows.

Expense timestamps are epoch milliseconds.  Every calendar decision (which
day or month a record falls in, how many days the month has) is taken in the
configured timezone, see :data:`budget_tracker.config.TIMEZONE`.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Iterable, List, Optional, Tuple, Union

import pandas as pd

from .config import TIMEZONE
from .exceptions import InvalidInputError

DateLike = Union[datetime, pd.Timestamp, str, None]

MONTH_KEY_PATTERN = re.compile(r'^(\d{4})-(\d{2})$')


def as_reference(reference: DateLike = None, tz: Optional[str] = None) -> pd.Timestamp:
    """Normalize a reference date to a timezone-aware timestamp.

    ``None`` means "now".  Naive values are taken to already be in ``tz``.
    """
    zone = tz or TIMEZONE
    if reference is None:
        return pd.Timestamp.now(tz=zone)
    ts = pd.Timestamp(reference)
    if ts.tzinfo is None:
        return ts.tz_localize(zone)
    return ts.tz_convert(zone)


def from_millis(values: Union[int, Iterable[int]], tz: Optional[str] = None):
    """Convert epoch milliseconds to local timestamps (scalar or Series)."""
    zone = tz or TIMEZONE
    if isinstance(values, (int, float)):
        return pd.Timestamp(int(values), unit='ms', tz='UTC').tz_convert(zone)
    return pd.to_datetime(pd.Series(list(values), dtype='int64'), unit='ms', utc=True).dt.tz_convert(zone)


def to_millis(ts: pd.Timestamp) -> int:
    return int(ts.tz_convert('UTC').value // 1_000_000)


def month_key(ts: Union[pd.Timestamp, datetime]) -> str:
    return f"{ts.year}-{ts.month:02d}"


def day_label(ts: Union[pd.Timestamp, datetime]) -> str:
    """Short day label such as ``'Jan 5'`` (no year)."""
    return f"{ts.strftime('%b')} {ts.day}"


def days_in_month(reference: DateLike = None, tz: Optional[str] = None) -> int:
    return int(as_reference(reference, tz).days_in_month)


def parse_month_key(key: str) -> Tuple[int, int]:
    """Split ``'YYYY-MM'`` into ``(year, month)``."""
    match = MONTH_KEY_PATTERN.match(str(key or '').strip())
    if not match:
        raise InvalidInputError(f"Expected a month in YYYY-MM form, got {key!r}")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise InvalidInputError(f"Month out of range in {key!r}")
    return year, month


def current_month_window(reference: DateLike = None, tz: Optional[str] = None) -> Tuple[int, int]:
    """First instant of the reference month through the reference instant."""
    ref = as_reference(reference, tz)
    start = ref.normalize().replace(day=1)
    return to_millis(start), to_millis(ref)


def trailing_window(
    reference: DateLike = None,
    months: int = 6,
    tz: Optional[str] = None,
) -> Tuple[int, int]:
    """From the first day of the month ``months`` back through the reference instant."""
    ref = as_reference(reference, tz)
    start = ref.normalize().replace(day=1) - pd.DateOffset(months=months)
    return to_millis(start), to_millis(ref)


def month_window(key: str, tz: Optional[str] = None) -> Tuple[int, int]:
    """Whole-month window for ``'YYYY-MM'``: day 1 00:00:00 through the last day 23:59:59."""
    year, month = parse_month_key(key)
    zone = tz or TIMEZONE
    start = pd.Timestamp(year=year, month=month, day=1, tz=zone)
    end = start.replace(day=start.days_in_month, hour=23, minute=59, second=59)
    return to_millis(start), to_millis(end)


def previous_month_key(reference: DateLike = None, tz: Optional[str] = None) -> str:
    ref = as_reference(reference, tz)
    return month_key(ref.normalize().replace(day=1) - pd.DateOffset(months=1))


def sort_day_labels(labels: Iterable[str]) -> List[str]:
    """Order ``'Jan 5'``-style labels chronologically within a year."""
    def _key(label: str):
        # 2000 is a leap year so 'Feb 29' parses.
        parsed = pd.to_datetime(f"{label} 2000", format='%b %d %Y', errors='coerce')
        return (pd.isna(parsed), parsed if not pd.isna(parsed) else pd.Timestamp.min, label)

    return sorted(labels, key=_key)
