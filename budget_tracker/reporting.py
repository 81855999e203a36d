"""Plain-text reports, CSV export and email template parameters."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

import pandas as pd

from .formatting import format_amount, format_currency
from .models import RecordLike, budget_value, coerce_record
from .periods import from_millis

CSV_COLUMNS = ['Name', 'Amount', 'Category', 'Date']


def format_report(
    total: float,
    by_category: Mapping[Any, float],
    pace_message: str,
    advice_message: str,
    month: str,
) -> str:
    """Current-month report body used for the emailed summary."""
    lines = ['Category Breakdown:']
    if by_category:
        for category, amount in by_category.items():
            lines.append(f"{category}: {format_currency(amount)}")
    else:
        lines.append('No expenses recorded this month.')
    breakdown = '\n'.join(lines)

    return (
        f"Your Spending Report for {month}:\n"
        f"Total Spent: {format_currency(total)}\n"
        f"{breakdown}\n"
        "\n"
        f"AI Suggestion: {pace_message}\n"
        f"Daily Advice: {advice_message}"
    )


def format_previous_report(month: str, total: float, summary: str) -> str:
    return (
        f"Your Spending Report for {month}:\n"
        f"Total Spent: {format_currency(total)}\n"
        f"Summary: {summary}"
    )


def format_locale_date(timestamp_ms: int, tz: Optional[str] = None) -> str:
    """``M/D/YYYY`` date for a millisecond timestamp."""
    ts = from_millis(timestamp_ms, tz)
    return f"{ts.month}/{ts.day}/{ts.year}"


def export_frame(records: Iterable[RecordLike], tz: Optional[str] = None) -> pd.DataFrame:
    """Rows for CSV export; records without a name, amount, category or timestamp are left out."""
    rows = []
    for record in map(coerce_record, records):
        if not record.is_exportable:
            continue
        rows.append({
            'Name': record.name,
            'Amount': format_amount(record.amount),
            'Category': str(record.category),
            'Date': format_locale_date(record.timestamp, tz),
        })
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def format_csv(records: Iterable[RecordLike], tz: Optional[str] = None) -> str:
    """CSV text with a ``Name,Amount,Category,Date`` header, present even with no rows."""
    return export_frame(records, tz).to_csv(index=False, lineterminator='\n')


def csv_filename(month: Optional[str] = None) -> str:
    return f"expenses_{month}.csv" if month else 'expenses.csv'


def email_template_params(
    to_email: str,
    to_name: str,
    total_spent: float,
    budget: Any,
    message: str,
) -> Dict[str, str]:
    """Parameters handed to the outbound mail template."""
    return {
        'to_email': to_email,
        'to_name': to_name or 'User',
        'total_spent': format_amount(total_spent),
        'budget': format_amount(budget_value(budget) or 0.0),
        'message': message,
    }
