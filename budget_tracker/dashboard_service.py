"""Fetch-then-compute orchestration behind each dashboard action.

Every action reads a fresh snapshot from the record store and recomputes the
derived views; nothing is cached between calls.  When the store reports that
it is unreachable the service switches to an offline state: reads return
views flagged ``available=False`` with no numbers in them, and writes are
refused until a later read succeeds.
"""

from __future__ import annotations

import logging
import math
import re
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from . import advisor, pacing, reporting
from .aggregation import Aggregate, aggregate, thin_daily_series
from .config import FORECAST_LOOKBACK_MONTHS
from .db import RecordStore
from .exceptions import InvalidInputError, StoreUnavailableError
from .forecast import Forecast, forecast
from .models import Category, UserBudgetProfile, budget_value
from .notifications import EmailReportSender
from .periods import (
    DateLike,
    as_reference,
    current_month_window,
    month_key,
    month_window,
    parse_month_key,
    to_millis,
    trailing_window,
)

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

OFFLINE_DATA_MESSAGE = 'Data unavailable: you are offline.'
NO_DATA_MESSAGE = 'No expenses recorded this month.'
OFFLINE_ADD_MESSAGE = 'You are offline. Expenses cannot be added.'
OFFLINE_EMAIL_MESSAGE = 'You are offline. Email reports cannot be sent.'
OFFLINE_CSV_MESSAGE = 'You are offline. CSV download unavailable.'
OFFLINE_FORECAST_MESSAGE = 'You are offline. Predictions may not be available.'


@dataclass
class MonthView:
    """Current-month dashboard figures and advice."""

    month: str
    available: bool
    aggregate: Optional[Aggregate]
    pace_message: str
    daily_advice: str
    alerts: Dict[Category, advisor.CategoryAlert] = field(default_factory=dict)

    @property
    def total(self) -> Optional[float]:
        return self.aggregate.total if self.aggregate is not None else None

    @property
    def status_message(self) -> Optional[str]:
        if not self.available:
            return OFFLINE_DATA_MESSAGE
        if self.aggregate is not None and self.aggregate.is_empty:
            return NO_DATA_MESSAGE
        return None


@dataclass
class PreviousMonthView:
    month: str
    available: bool
    aggregate: Optional[Aggregate]
    daily: Dict[str, float]
    summary: str
    previous_budget: float = 0.0

    @property
    def total(self) -> Optional[float]:
        return self.aggregate.total if self.aggregate is not None else None


@dataclass
class ForecastView:
    available: bool
    forecast: Optional[Forecast]
    message: str


@dataclass
class UserContext:
    user_id: str
    profile: Optional[UserBudgetProfile]
    needs_budget_input: bool
    current: MonthView
    forecast: ForecastView
    offline: bool


class DashboardService:
    """Per-user facade over the record store and the computation modules."""

    def __init__(
        self,
        store: RecordStore,
        user_id: str,
        *,
        display_name: Optional[str] = None,
        account_email: Optional[str] = None,
        email_sender: Optional[EmailReportSender] = None,
        tz: Optional[str] = None,
    ):
        self.store = store
        self.user_id = user_id
        self.display_name = display_name
        self.account_email = account_email or ''
        self.email_sender = email_sender or EmailReportSender()
        self.tz = tz
        self.offline = False
        self.profile: Optional[UserBudgetProfile] = None

    @contextmanager
    def _store_call(self, action: str):
        """Flip to the offline state when the store is unreachable, then re-raise."""
        try:
            yield
        except StoreUnavailableError:
            logger.error("Store unavailable while %s for %s", action, self.user_id)
            self.offline = True
            raise

    # ------------------------------------------------------------------
    # Session and profile
    # ------------------------------------------------------------------
    def create_profile(self, email: str, username: str) -> UserBudgetProfile:
        """Initialize the profile document at signup."""
        document = {
            'username': username.strip(),
            'email': email.strip(),
            'budget': 0,
            'lastBudgetMonth': None,
            'previousBudget': 0,
        }
        self.store.put_user_profile(self.user_id, document, merge=False)
        self.profile = UserBudgetProfile.from_document(document)
        return self.profile

    def load_user_context(self, now: DateLike = None) -> UserContext:
        """Prepare the dashboard once a session is established.

        Reads the profile (creating it if needed), applies the monthly
        rollover, then loads the current month and the forecast.
        """
        needs_input = True
        try:
            profile = self.store.get_user_profile(self.user_id)
            if profile is None:
                logger.warning("Profile for %s not found; creating a new one", self.user_id)
            result = pacing.rollover_if_new_month(profile, now, self.tz)
            if result.changed:
                self.store.put_user_profile(self.user_id, self._rollover_fields(profile, result.profile), merge=True)
            self.profile = result.profile
            if profile is None:
                self.profile = self.profile.evolve(username=self.display_name or 'User', email=self.account_email)
            needs_input = result.needs_budget_input or budget_value(self.profile.budget) is None
            self.offline = False
        except StoreUnavailableError:
            logger.error("Store unavailable while loading profile for %s", self.user_id)
            self.offline = True

        current = self.load_current_month(now)
        predicted = self.request_forecast(now)
        return UserContext(
            user_id=self.user_id,
            profile=self.profile,
            needs_budget_input=needs_input,
            current=current,
            forecast=predicted,
            offline=self.offline,
        )

    def _rollover_fields(self, before: Optional[UserBudgetProfile], after: UserBudgetProfile) -> Dict[str, Any]:
        email = (before.email if before else '') or self.account_email
        fields: Dict[str, Any] = {'lastBudgetMonth': after.last_budget_month}
        if before is None:
            fields['budget'] = 0
            fields['username'] = self.display_name or 'User'
        else:
            fields['previousBudget'] = after.previous_budget
        if email:
            fields['email'] = email
        return fields

    @property
    def budget(self) -> Optional[float]:
        return budget_value(self.profile.budget) if self.profile else None

    def set_budget(self, value: Any, now: DateLike = None) -> MonthView:
        amount = budget_value(value)
        if amount is None:
            raise InvalidInputError('Please enter a valid budget amount.')
        with self._store_call("saving the budget"):
            self.store.put_user_profile(self.user_id, {'budget': amount}, merge=True)
        self.profile = (self.profile or UserBudgetProfile()).evolve(budget=amount)
        return self.load_current_month(now)

    # ------------------------------------------------------------------
    # Current month
    # ------------------------------------------------------------------
    def load_current_month(self, now: DateLike = None) -> MonthView:
        ref = as_reference(now, self.tz)
        key = month_key(ref)
        try:
            start, end = current_month_window(ref, self.tz)
            records = self.store.query_range(self.user_id, start, end)
        except StoreUnavailableError:
            logger.error("Store unavailable while loading expenses for %s", self.user_id)
            self.offline = True
            return MonthView(
                month=key,
                available=False,
                aggregate=None,
                pace_message=advisor.OFFLINE_PACE_MESSAGE,
                daily_advice=pacing.OFFLINE_DAILY_MESSAGE,
            )

        self.offline = False
        summary = aggregate(records, ref, tz=self.tz)
        return MonthView(
            month=key,
            available=True,
            aggregate=summary,
            pace_message=advisor.suggest_pace(self.budget, summary.total),
            daily_advice=pacing.daily_advice(self.budget, summary.total, ref, self.tz),
            alerts=advisor.category_alerts(summary.by_category, self.budget),
        )

    def add_expense(self, name: str, amount: Any, category: Any, now: DateLike = None) -> MonthView:
        if self.offline:
            raise StoreUnavailableError(OFFLINE_ADD_MESSAGE)
        name = (name or '').strip()
        try:
            value = float(amount)
        except (TypeError, ValueError):
            value = float('nan')
        if not name or not math.isfinite(value) or value <= 0:
            raise InvalidInputError('Please enter a valid expense name and amount.')
        try:
            label = Category(category)
        except ValueError as exc:
            raise InvalidInputError(f"Unknown category {category!r}") from exc

        ref = as_reference(now, self.tz)
        with self._store_call("adding an expense"):
            self.store.append(self.user_id, {
                'name': name,
                'amount': value,
                'category': label.value,
                'timestamp': to_millis(ref),
            })
        logger.info("Added %s expense for %s", label.value, self.user_id)
        return self.load_current_month(ref)

    # ------------------------------------------------------------------
    # History and forecast
    # ------------------------------------------------------------------
    def fetch_previous_month(self, month: str) -> PreviousMonthView:
        parse_month_key(month)
        start, end = month_window(month, self.tz)
        try:
            records = self.store.query_range(self.user_id, start, end)
            profile = self.store.get_user_profile(self.user_id)
        except StoreUnavailableError:
            logger.error("Store unavailable while loading %s for %s", month, self.user_id)
            self.offline = True
            return PreviousMonthView(month, False, None, {}, advisor.OFFLINE_PREVIOUS_MESSAGE)

        self.offline = False
        summary = aggregate(records, seed_month=month, tz=self.tz)
        previous_budget = profile.previous_budget if profile else 0.0
        return PreviousMonthView(
            month=month,
            available=True,
            aggregate=summary,
            daily=thin_daily_series(summary.by_day),
            summary=advisor.previous_month_summary(previous_budget, summary.total),
            previous_budget=previous_budget,
        )

    def request_forecast(self, now: DateLike = None) -> ForecastView:
        ref = as_reference(now, self.tz)
        try:
            hist_start, hist_end = trailing_window(ref, FORECAST_LOOKBACK_MONTHS, self.tz)
            history = self.store.query_range(self.user_id, hist_start, hist_end)
            cur_start, cur_end = current_month_window(ref, self.tz)
            current = self.store.query_range(self.user_id, cur_start, cur_end)
        except StoreUnavailableError:
            logger.error("Store unavailable while forecasting for %s", self.user_id)
            self.offline = True
            return ForecastView(False, None, OFFLINE_FORECAST_MESSAGE)

        self.offline = False
        result = forecast(history, current, tz=self.tz)
        return ForecastView(True, result, result.summary)

    # ------------------------------------------------------------------
    # Export and email
    # ------------------------------------------------------------------
    def export_csv(self) -> Tuple[str, str]:
        """Every stored expense as ``(filename, csv_text)``."""
        if self.offline:
            raise StoreUnavailableError(OFFLINE_CSV_MESSAGE)
        with self._store_call("exporting CSV"):
            records = self.store.query_all(self.user_id)
        return reporting.csv_filename(), reporting.format_csv(records, self.tz)

    def export_month_csv(self, month: str) -> Tuple[str, str]:
        if self.offline:
            raise StoreUnavailableError(OFFLINE_CSV_MESSAGE)
        start, end = month_window(month, self.tz)
        with self._store_call("exporting CSV"):
            records = self.store.query_range(self.user_id, start, end)
        return reporting.csv_filename(month), reporting.format_csv(records, self.tz)

    def _resolve_email(self, email: Optional[str]) -> str:
        stored = self.profile.email if self.profile else ''
        target = (email or '').strip() or stored or self.account_email
        if not target or not EMAIL_PATTERN.match(target):
            raise InvalidInputError('Please enter a valid email address.')
        if email and target != stored:
            with self._store_call("updating the email"):
                self.store.put_user_profile(self.user_id, {'email': target}, merge=True)
            if self.profile is not None:
                self.profile = self.profile.evolve(email=target)
        return target

    def _recipient_name(self) -> str:
        return self.display_name or (self.profile.username if self.profile else '') or 'User'

    def build_email_report(self, email: Optional[str] = None, now: DateLike = None) -> Dict[str, str]:
        """Template parameters for the current-month report."""
        if self.offline:
            raise StoreUnavailableError(OFFLINE_EMAIL_MESSAGE)
        view = self.load_current_month(now)
        if not view.available:
            raise StoreUnavailableError(OFFLINE_EMAIL_MESSAGE)
        target = self._resolve_email(email)
        body = reporting.format_report(
            view.aggregate.total,
            view.aggregate.by_category,
            view.pace_message,
            view.daily_advice,
            view.month,
        )
        return reporting.email_template_params(
            target, self._recipient_name(), view.aggregate.total, self.budget, body
        )

    def build_previous_month_email(self, month: str, email: Optional[str] = None) -> Dict[str, str]:
        if self.offline:
            raise StoreUnavailableError(OFFLINE_EMAIL_MESSAGE)
        view = self.fetch_previous_month(month)
        if not view.available:
            raise StoreUnavailableError(OFFLINE_EMAIL_MESSAGE)
        target = self._resolve_email(email)
        body = reporting.format_previous_report(month, view.aggregate.total, view.summary)
        return reporting.email_template_params(
            target, self._recipient_name(), view.aggregate.total, view.previous_budget, body
        )

    def send_email_report(self, email: Optional[str] = None, now: DateLike = None) -> Dict[str, Any]:
        return self.email_sender.send(self.build_email_report(email, now))

    def send_previous_month_email(self, month: str, email: Optional[str] = None) -> Dict[str, Any]:
        return self.email_sender.send(self.build_previous_month_email(month, email))
