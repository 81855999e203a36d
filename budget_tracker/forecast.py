"""Next-month spending forecast from trailing history.

The forecast is a plain historical average per category, not a statistical
model.  The divisor is the number of distinct ``YYYY-MM`` months in which any
well-formed record was observed, shared by every category: a category that
only appeared in one of three observed months is still divided by three.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional

import pandas as pd

from .aggregation import records_to_frame
from .config import SUGGESTED_TARGET_RATIO
from .formatting import format_currency
from .models import CATEGORIES, Category, RecordLike


@dataclass(frozen=True)
class ForecastEntry:
    predicted: float
    actual: float
    suggestion: str

    @property
    def suggested_target(self) -> float:
        return self.predicted * SUGGESTED_TARGET_RATIO


@dataclass
class Forecast:
    per_category: Dict[Category, ForecastEntry]
    total_predicted: float
    months_observed: int
    summary: str

    def predicted_series(self) -> pd.Series:
        return pd.Series({str(c): e.predicted for c, e in self.per_category.items()}, dtype=float)

    def actual_series(self) -> pd.Series:
        return pd.Series({str(c): e.actual for c, e in self.per_category.items()}, dtype=float)


def observed_month_count(frame: pd.DataFrame) -> int:
    """Number of distinct month keys present in a records frame."""
    if frame.empty:
        return 0
    return int(frame['month'].nunique())


def _suggestion(category: Category, predicted: float) -> str:
    if predicted > 0:
        return (
            f"You normally spend {format_currency(predicted)} on {category}. "
            f"Consider adjusting to {format_currency(predicted * SUGGESTED_TARGET_RATIO)}."
        )
    return f"No {category} spending recorded recently."


def forecast(
    historical_records: Iterable[RecordLike],
    current_month_records: Iterable[RecordLike],
    tz: Optional[str] = None,
) -> Forecast:
    """Build the per-category forecast and the projected next-month total.

    Args:
        historical_records: Records from the trailing six-month window.
        current_month_records: Records for the current month to date, used
            for the ``actual`` figures.
    """
    history = records_to_frame(historical_records, tz)
    current = records_to_frame(current_month_records, tz)

    months = observed_month_count(history)
    history_sums = history.groupby('category')['amount'].sum() if not history.empty else pd.Series(dtype=float)
    current_sums = current.groupby('category')['amount'].sum() if not current.empty else pd.Series(dtype=float)

    per_category: Dict[Category, ForecastEntry] = {}
    total_predicted = 0.0
    for category in CATEGORIES:
        category_total = float(history_sums.get(category.value, 0.0))
        predicted = category_total / months if months > 0 else 0.0
        actual = float(current_sums.get(category.value, 0.0))
        per_category[category] = ForecastEntry(predicted, actual, _suggestion(category, predicted))
        total_predicted += predicted

    summary = (
        f"Projected total spending for next month: {format_currency(total_predicted)}. "
        "Review category suggestions to optimize your budget."
    )
    return Forecast(per_category, total_predicted, months, summary)
