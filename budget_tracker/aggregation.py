"""Fold expense records into totals and per-category/day/month sums.

Callers fetch records for the window they care about (the current month to
date, or a whole historical month) and hand them to :func:`aggregate`.  The
result is plain data; nothing is cached or persisted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd

from .models import CATEGORIES, Category, ExpenseRecord, RecordLike, coerce_record
from .periods import DateLike, as_reference, day_label, from_millis, month_key, sort_day_labels

logger = logging.getLogger(__name__)

FRAME_COLUMNS = ['id', 'name', 'amount', 'category', 'timestamp', 'date', 'day', 'month']

CategoryKey = Union[Category, str]


@dataclass
class Aggregate:
    """Derived views over one set of records.

    ``by_category`` always holds the five fixed categories; a record carrying
    an unknown label is summed under that literal label as well so no amount
    is lost.  ``by_day`` is ordered chronologically.
    """

    total: float
    by_category: Dict[CategoryKey, float]
    by_day: Dict[str, float]
    by_month: Dict[str, float]
    records: List[ExpenseRecord] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.records

    def known_categories(self) -> Dict[Category, float]:
        return {c: self.by_category.get(c, 0.0) for c in CATEGORIES}


def split_records(records: Iterable[RecordLike]):
    """Return ``(well_formed, malformed)`` lists."""
    kept: List[ExpenseRecord] = []
    dropped: List[ExpenseRecord] = []
    for item in records:
        record = coerce_record(item)
        (kept if record.is_well_formed else dropped).append(record)
    return kept, dropped


def records_to_frame(records: Iterable[RecordLike], tz: Optional[str] = None) -> pd.DataFrame:
    """Tabulate well-formed records with local date, day label and month key columns."""
    kept, _ = split_records(records)
    if not kept:
        return pd.DataFrame(columns=FRAME_COLUMNS)

    df = pd.DataFrame({
        'id': [r.id for r in kept],
        'name': [r.name for r in kept],
        'amount': [float(r.amount) for r in kept],
        'category': [str(r.category) for r in kept],
        'timestamp': [int(r.timestamp) for r in kept],
    })
    dates = from_millis(df['timestamp'], tz)
    df['date'] = dates
    df['day'] = dates.map(day_label)
    df['month'] = dates.map(month_key)
    return df[FRAME_COLUMNS]


def aggregate(
    records: Iterable[RecordLike],
    reference: DateLike = None,
    *,
    seed_month: Optional[str] = None,
    tz: Optional[str] = None,
) -> Aggregate:
    """Compute total, per-category, per-day and per-month sums.

    Args:
        records: Expense records (or raw store documents) already filtered to
            the window of interest.
        reference: Anchor date; its month key is seeded at zero in
            ``by_month`` unless ``seed_month`` is given.
        seed_month: Explicit ``'YYYY-MM'`` key to seed, used for historical
            month views.
        tz: Timezone for day/month bucketing; defaults to the configured zone.

    Returns:
        An :class:`Aggregate`.  Records missing an amount, timestamp or
        category are excluded from every figure.
    """
    kept, dropped = split_records(records)
    if dropped:
        logger.debug("Skipping %d malformed expense record(s)", len(dropped))

    ref = as_reference(reference, tz)
    by_category: Dict[CategoryKey, float] = {c: 0.0 for c in CATEGORIES}
    by_month: Dict[str, float] = {seed_month or month_key(ref): 0.0}
    by_day: Dict[str, float] = {}

    frame = records_to_frame(kept, tz)
    if frame.empty:
        return Aggregate(total=0.0, by_category=by_category, by_day=by_day, by_month=by_month, records=kept)

    total = float(frame['amount'].sum())

    for label, amount in frame.groupby('category', sort=False)['amount'].sum().items():
        key = Category.parse(label)
        by_category[key] = by_category.get(key, 0.0) + float(amount)

    daily = frame.groupby('day', sort=False)['amount'].sum()
    for label in sort_day_labels(daily.index):
        by_day[label] = float(daily[label])

    for key, amount in frame.groupby('month')['amount'].sum().items():
        by_month[key] = by_month.get(key, 0.0) + float(amount)

    return Aggregate(total=total, by_category=by_category, by_day=by_day, by_month=by_month, records=kept)


def category_totals(records: Iterable[RecordLike], tz: Optional[str] = None) -> Dict[CategoryKey, float]:
    """Sum amounts per category label without seeding the fixed set."""
    frame = records_to_frame(records, tz)
    if frame.empty:
        return {}
    grouped = frame.groupby('category', sort=False)['amount'].sum()
    return {Category.parse(label): float(amount) for label, amount in grouped.items()}


def thin_daily_series(by_day: Dict[str, float], step: int = 3) -> Dict[str, float]:
    """Keep every ``step``-th day label (chronologically) plus the last one, for compact charts."""
    labels = sort_day_labels(by_day.keys())
    last = len(labels) - 1
    return {
        label: by_day[label]
        for index, label in enumerate(labels)
        if index % step == 0 or index == last
    }
