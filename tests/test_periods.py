import pandas as pd
import pytest

from budget_tracker.exceptions import InvalidInputError
from budget_tracker.periods import (
    current_month_window,
    from_millis,
    month_window,
    parse_month_key,
    previous_month_key,
    sort_day_labels,
    to_millis,
    trailing_window,
)


def test_month_window_covers_whole_month():
    start, end = month_window('2024-02', tz='UTC')

    assert from_millis(start, 'UTC') == pd.Timestamp('2024-02-01 00:00:00', tz='UTC')
    assert from_millis(end, 'UTC') == pd.Timestamp('2024-02-29 23:59:59', tz='UTC')


@pytest.mark.parametrize('key', ['2024-13', '2024-00', '202402', 'May 2024', '', None])
def test_parse_month_key_rejects_malformed(key):
    with pytest.raises(InvalidInputError):
        parse_month_key(key)


def test_current_month_window_ends_at_reference():
    ref = pd.Timestamp('2026-06-20 09:30', tz='UTC')

    start, end = current_month_window(ref, 'UTC')

    assert start == to_millis(pd.Timestamp('2026-06-01', tz='UTC'))
    assert end == to_millis(ref)


def test_trailing_window_starts_six_months_back():
    start, _ = trailing_window(pd.Timestamp('2026-06-20', tz='UTC'), tz='UTC')

    assert from_millis(start, 'UTC') == pd.Timestamp('2025-12-01', tz='UTC')


def test_previous_month_key_wraps_year():
    assert previous_month_key(pd.Timestamp('2026-01-15', tz='UTC'), 'UTC') == '2025-12'


def test_window_follows_timezone():
    start, _ = month_window('2026-06', tz='Africa/Lagos')

    assert from_millis(start, 'UTC') == pd.Timestamp('2026-05-31 23:00', tz='UTC')


def test_sort_day_labels_handles_leap_day():
    assert sort_day_labels(['Mar 1', 'Feb 29', 'Jan 5']) == ['Jan 5', 'Feb 29', 'Mar 1']
