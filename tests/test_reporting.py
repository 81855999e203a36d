import io

import pandas as pd

from budget_tracker.models import Category
from budget_tracker.reporting import (
    csv_filename,
    email_template_params,
    format_csv,
    format_locale_date,
    format_previous_report,
    format_report,
)


def _ms(year, month, day, hour=12):
    return int(pd.Timestamp(year=year, month=month, day=day, hour=hour, tz='UTC').value // 1_000_000)


def test_report_layout():
    by_category = {Category.FOOD: 120.0, Category.TRANSPORT: 30.5}

    report = format_report(150.5, by_category, 'Pace msg', 'Daily msg', '2026-06')

    assert report.splitlines() == [
        'Your Spending Report for 2026-06:',
        'Total Spent: ₦150.50',
        'Category Breakdown:',
        'Food: ₦120.00',
        'Transport: ₦30.50',
        '',
        'AI Suggestion: Pace msg',
        'Daily Advice: Daily msg',
    ]


def test_report_without_categories():
    report = format_report(0, {}, 'a', 'b', '2026-06')

    assert 'No expenses recorded this month.' in report


def test_previous_report():
    text = format_previous_report('2026-05', 1250, 'Summary text')

    assert text == 'Your Spending Report for 2026-05:\nTotal Spent: ₦1250.00\nSummary: Summary text'


def test_csv_header_only_when_empty():
    assert format_csv([], tz='UTC') == 'Name,Amount,Category,Date\n'


def test_csv_rows_and_quoting():
    records = [
        {'name': 'Rice, beans', 'amount': 45.5, 'category': 'Food', 'timestamp': _ms(2026, 6, 1)},
        {'name': 'Bus', 'amount': 3, 'category': 'Transport', 'timestamp': _ms(2026, 6, 12)},
    ]

    text = format_csv(records, tz='UTC')

    lines = text.splitlines()
    assert lines[1] == '"Rice, beans",45.50,Food,6/1/2026'
    assert lines[2] == 'Bus,3.00,Transport,6/12/2026'
    parsed = pd.read_csv(io.StringIO(text), dtype=str)
    assert list(parsed['Name']) == ['Rice, beans', 'Bus']


def test_csv_skips_incomplete_records():
    records = [
        {'name': '', 'amount': 10, 'category': 'Food', 'timestamp': _ms(2026, 6, 1)},
        {'name': 'No amount', 'amount': 0, 'category': 'Food', 'timestamp': _ms(2026, 6, 1)},
        {'name': 'Kept', 'amount': 5, 'category': 'Other', 'timestamp': _ms(2026, 6, 1)},
    ]

    lines = format_csv(records, tz='UTC').splitlines()

    assert len(lines) == 2
    assert lines[1].startswith('Kept,')


def test_csv_skips_records_without_category_or_timestamp():
    records = [
        {'name': 'No category', 'amount': 10, 'timestamp': _ms(2026, 6, 1)},
        {'name': 'No timestamp', 'amount': 10, 'category': 'Food'},
        {'name': 'Blank category', 'amount': 10, 'category': '', 'timestamp': _ms(2026, 6, 1)},
        {'name': 'Kept', 'amount': 5, 'category': 'Bills', 'timestamp': _ms(2026, 6, 2)},
    ]

    text = format_csv(records, tz='UTC')

    assert text.splitlines() == ['Name,Amount,Category,Date', 'Kept,5.00,Bills,6/2/2026']


def test_locale_date_uses_timezone():
    late_evening = _ms(2026, 6, 1, hour=23)

    assert format_locale_date(late_evening, tz='UTC') == '6/1/2026'
    assert format_locale_date(late_evening, tz='Africa/Lagos') == '6/2/2026'


def test_csv_filenames():
    assert csv_filename() == 'expenses.csv'
    assert csv_filename('2026-05') == 'expenses_2026-05.csv'


def test_email_params_format_amounts():
    params = email_template_params('a@b.co', '', 150.5, None, 'body')

    assert params == {
        'to_email': 'a@b.co',
        'to_name': 'User',
        'total_spent': '150.50',
        'budget': '0.00',
        'message': 'body',
    }
