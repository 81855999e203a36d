"""Daily spending allowance and monthly budget rollover."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .formatting import format_currency
from .models import UserBudgetProfile, budget_value
from .periods import DateLike, as_reference

SET_BUDGET_DAILY_MESSAGE = 'Set a budget to receive daily spending advice.'
OFFLINE_DAILY_MESSAGE = 'You are offline. Add expenses when reconnected for advice.'

SLOW_PACE_RATIO = 0.5


@dataclass(frozen=True)
class DailyPace:
    days_in_month: int
    days_left: int
    remaining: float
    daily_allowance: float


def daily_pace(budget: float, total: float, reference: DateLike = None, tz: Optional[str] = None) -> DailyPace:
    """Remaining budget spread over the days left in the month, today included."""
    ref = as_reference(reference, tz)
    days_in_month = int(ref.days_in_month)
    days_left = days_in_month - ref.day + 1
    remaining = budget - total
    return DailyPace(days_in_month, days_left, remaining, remaining / days_left)


def daily_advice(budget: Any, total: float, reference: DateLike = None, tz: Optional[str] = None) -> str:
    b = budget_value(budget)
    if b is None:
        return SET_BUDGET_DAILY_MESSAGE

    pace = daily_pace(b, total, reference, tz)
    if pace.daily_allowance < 0:
        return (
            f"You're {format_currency(abs(pace.remaining))} above pace. "
            f"Spend no more than {format_currency(0)}/day to recover."
        )
    if pace.daily_allowance < b / pace.days_in_month * SLOW_PACE_RATIO:
        return (
            "You're spending faster than planned. Keep daily spending under "
            f"{format_currency(pace.daily_allowance)} to stay on track."
        )
    return f"You're on track! Keep spending under {format_currency(pace.daily_allowance)}/day."


@dataclass(frozen=True)
class RolloverResult:
    profile: UserBudgetProfile
    needs_budget_input: bool
    changed: bool


def rollover_if_new_month(
    profile: Optional[UserBudgetProfile],
    now: DateLike = None,
    tz: Optional[str] = None,
) -> RolloverResult:
    """Apply the month-boundary transition to a budget profile.

    * No profile yet: start one for the current month with a zero budget.
    * Stored month differs from the current one: archive the budget into
      ``previous_budget`` and stamp the current month.
    * Same month: nothing changes, so repeated calls are no-ops.
    """
    current_month = as_reference(now, tz).month

    if profile is None:
        fresh = UserBudgetProfile(budget=0.0, last_budget_month=current_month)
        return RolloverResult(fresh, needs_budget_input=True, changed=True)

    if profile.last_budget_month != current_month:
        rolled = profile.evolve(
            previous_budget=profile.budget or 0.0,
            last_budget_month=current_month,
        )
        return RolloverResult(rolled, needs_budget_input=True, changed=True)

    return RolloverResult(profile, needs_budget_input=False, changed=False)
