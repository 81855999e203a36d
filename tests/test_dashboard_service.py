import sqlite3
from unittest.mock import MagicMock

import pandas as pd
import pytest

from budget_tracker import advisor
from budget_tracker.advisor import Severity
from budget_tracker.dashboard_service import (
    NO_DATA_MESSAGE,
    OFFLINE_DATA_MESSAGE,
    DashboardService,
)
from budget_tracker.db import RecordStore, SqliteRecordStore
from budget_tracker.exceptions import InvalidInputError, StoreUnavailableError
from budget_tracker.models import Category

NOW = pd.Timestamp('2026-06-20 12:00', tz='UTC')


def _ms(year, month, day):
    return int(pd.Timestamp(year=year, month=month, day=day, hour=12, tz='UTC').value // 1_000_000)


class OfflineStore(RecordStore):
    def append(self, user_id, record):
        raise StoreUnavailableError('offline')

    def query_range(self, user_id, start_ms=None, end_ms=None):
        raise StoreUnavailableError('offline')

    def get_user_profile(self, user_id):
        raise StoreUnavailableError('offline')

    def put_user_profile(self, user_id, partial, merge=True):
        raise StoreUnavailableError('offline')


@pytest.fixture
def store(tmp_path):
    return SqliteRecordStore(tmp_path / 'budget.db')


@pytest.fixture
def sender():
    mock = MagicMock()
    mock.send.return_value = {'status': 'success', 'data': 'OK'}
    return mock


def make_service(store, sender=None, **kwargs):
    return DashboardService(store, 'ada', display_name='Ada', email_sender=sender or MagicMock(), tz='UTC', **kwargs)


def test_first_session_creates_profile_and_asks_for_budget(store):
    service = make_service(store)

    context = service.load_user_context(NOW)

    assert context.needs_budget_input
    assert not context.offline
    assert store.get_user_profile('ada').last_budget_month == 6
    assert context.current.status_message == NO_DATA_MESSAGE
    assert context.current.pace_message == advisor.SET_BUDGET_MESSAGE


def test_budget_then_expense_updates_views(store):
    service = make_service(store)
    service.load_user_context(NOW)
    service.set_budget(3000, NOW)

    view = service.add_expense('Market run', 2000, 'Food', NOW)

    assert view.total == pytest.approx(2000.0)
    assert view.aggregate.by_category[Category.FOOD] == pytest.approx(2000.0)
    assert 'on track' in view.daily_advice
    assert view.alerts[Category.FOOD].severity is Severity.RED
    assert service.load_user_context(NOW).needs_budget_input is False


@pytest.mark.parametrize('name, amount', [('', 10), ('Lunch', 0), ('Lunch', -5), ('Lunch', 'abc')])
def test_add_expense_rejects_bad_input(store, name, amount):
    service = make_service(store)
    service.load_user_context(NOW)

    with pytest.raises(InvalidInputError):
        service.add_expense(name, amount, 'Food', NOW)
    assert store.query_all('ada') == []


def test_set_budget_rejects_non_positive(store):
    service = make_service(store)

    with pytest.raises(InvalidInputError):
        service.set_budget(0, NOW)


def test_rollover_archives_previous_budget_once(store):
    store.put_user_profile('ada', {'budget': 1000, 'lastBudgetMonth': 5, 'previousBudget': 0})
    service = make_service(store)

    context = service.load_user_context(NOW)
    again = service.load_user_context(NOW)

    profile = store.get_user_profile('ada')
    assert context.needs_budget_input
    assert not again.needs_budget_input
    assert profile.previous_budget == 1000
    assert profile.last_budget_month == 6


def test_previous_month_view_uses_archived_budget(store):
    store.put_user_profile('ada', {'budget': 1000, 'lastBudgetMonth': 5, 'previousBudget': 0})
    store.append('ada', {'name': 'Rent', 'amount': 1000, 'category': 'Bills', 'timestamp': _ms(2026, 5, 1)})
    store.append('ada', {'name': 'Dinner', 'amount': 250, 'category': 'Food', 'timestamp': _ms(2026, 5, 31)})
    store.append('ada', {'name': 'June', 'amount': 99, 'category': 'Food', 'timestamp': _ms(2026, 6, 1)})
    service = make_service(store)
    service.load_user_context(NOW)

    view = service.fetch_previous_month('2026-05')

    assert view.available
    assert view.total == pytest.approx(1250.0)
    assert view.aggregate.by_month == {'2026-05': pytest.approx(1250.0)}
    assert 'overspent by ₦250.00' in view.summary
    assert list(view.daily) == ['May 1', 'May 31']


def test_previous_month_rejects_bad_key(store):
    service = make_service(store)

    with pytest.raises(InvalidInputError):
        service.fetch_previous_month('2026-13')


def test_offline_store_gives_unavailable_views():
    service = make_service(OfflineStore())

    context = service.load_user_context(NOW)

    assert context.offline
    assert context.current.available is False
    assert context.current.total is None
    assert context.current.status_message == OFFLINE_DATA_MESSAGE
    assert context.forecast.available is False
    assert service.fetch_previous_month('2026-05').available is False


def test_offline_refuses_writes_and_exports():
    service = make_service(OfflineStore())
    service.load_user_context(NOW)

    with pytest.raises(StoreUnavailableError):
        service.add_expense('Lunch', 10, 'Food', NOW)
    with pytest.raises(StoreUnavailableError):
        service.export_csv()
    with pytest.raises(StoreUnavailableError):
        service.send_email_report('ada@example.com', NOW)


def test_export_csv_lists_all_expenses(store):
    store.append('ada', {'name': 'Old', 'amount': 5, 'category': 'Other', 'timestamp': _ms(2025, 1, 2)})
    store.append('ada', {'name': 'New', 'amount': 7, 'category': 'Food', 'timestamp': _ms(2026, 6, 2)})
    service = make_service(store)

    filename, text = service.export_csv()

    assert filename == 'expenses.csv'
    assert text.splitlines() == [
        'Name,Amount,Category,Date',
        'Old,5.00,Other,1/2/2025',
        'New,7.00,Food,6/2/2026',
    ]


def test_email_report_sends_template_and_stores_new_address(store, sender):
    service = make_service(store, sender)
    service.load_user_context(NOW)
    service.set_budget(3000, NOW)
    service.add_expense('Lunch', 20, 'Food', NOW)

    service.send_email_report('ada@example.com', NOW)

    params = sender.send.call_args[0][0]
    assert params['to_email'] == 'ada@example.com'
    assert params['to_name'] == 'Ada'
    assert params['total_spent'] == '20.00'
    assert params['budget'] == '3000.00'
    assert params['message'].startswith('Your Spending Report for 2026-06:')
    assert store.get_user_profile('ada').email == 'ada@example.com'


def test_email_falls_back_to_account_address(store, sender):
    service = make_service(store, sender, account_email='ada@example.com')
    service.load_user_context(NOW)

    service.send_email_report(None, NOW)

    assert sender.send.call_args[0][0]['to_email'] == 'ada@example.com'


def test_email_rejects_invalid_address(store, sender):
    service = make_service(store, sender)
    service.load_user_context(NOW)

    with pytest.raises(InvalidInputError):
        service.send_email_report('not-an-email', NOW)
    sender.send.assert_not_called()


def test_previous_month_email(store, sender):
    store.put_user_profile('ada', {'budget': 1000, 'lastBudgetMonth': 5, 'email': 'ada@example.com'})
    store.append('ada', {'name': 'Rent', 'amount': 400, 'category': 'Bills', 'timestamp': _ms(2026, 5, 3)})
    service = make_service(store, sender)
    service.load_user_context(NOW)

    service.send_previous_month_email('2026-05')

    params = sender.send.call_args[0][0]
    assert params['budget'] == '1000.00'
    assert 'Excellent!' in params['message']


def test_create_profile_writes_signup_document(store):
    store.put_user_profile('ada', {'budget': 700, 'theme': 'dark'})
    service = make_service(store)

    profile = service.create_profile(' ada@example.com ', ' Ada ')

    stored = store.get_user_profile('ada')
    assert profile.username == 'Ada'
    assert stored.email == 'ada@example.com'
    assert stored.budget == 0
    assert stored.last_budget_month is None
    assert stored.extra == {}


class FlakyReadStore(SqliteRecordStore):
    fail_reads = False

    def query_range(self, user_id, start_ms=None, end_ms=None):
        if self.fail_reads:
            raise StoreUnavailableError('offline')
        return super().query_range(user_id, start_ms, end_ms)


def test_locked_database_puts_month_view_offline(tmp_path):
    path = tmp_path / 'budget.db'
    store = SqliteRecordStore(path, timeout=0.1)
    service = make_service(store)
    service.load_user_context(NOW)

    locker = sqlite3.connect(str(path), isolation_level=None)
    try:
        locker.execute('PRAGMA locking_mode=EXCLUSIVE')
        locker.execute('BEGIN EXCLUSIVE')
        locker.execute("UPDATE profiles SET document = document")

        view = service.load_current_month(NOW)
    finally:
        locker.execute('ROLLBACK')
        locker.close()

    assert view.available is False
    assert view.total is None
    assert service.offline


def test_first_session_stores_display_name(store):
    service = make_service(store)

    context = service.load_user_context(NOW)

    assert store.get_user_profile('ada').username == 'Ada'
    assert context.profile.username == 'Ada'


def test_first_session_without_display_name_uses_default(store):
    service = DashboardService(store, 'ada', email_sender=MagicMock(), tz='UTC')

    service.load_user_context(NOW)

    assert store.get_user_profile('ada').username == 'User'


def test_email_address_not_saved_when_month_read_fails(tmp_path, sender):
    store = FlakyReadStore(tmp_path / 'budget.db')
    store.put_user_profile('ada', {'budget': 100, 'lastBudgetMonth': 6, 'email': 'old@example.com'})
    service = make_service(store, sender)
    service.load_user_context(NOW)
    store.fail_reads = True

    with pytest.raises(StoreUnavailableError):
        service.send_email_report('new@example.com', NOW)

    assert store.get_user_profile('ada').email == 'old@example.com'
    sender.send.assert_not_called()
