"""Spending-pace messages and per-category overspend alerts.

The category alerts split the monthly budget evenly across the five fixed
categories; there are no per-category budgets.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping

from .formatting import format_currency
from .models import CATEGORIES, Category, budget_value

SET_BUDGET_MESSAGE = 'Set a budget to get spending insights.'
OVERSPENT_MESSAGE = 'You’ve overspent. Consider reducing non-essential expenses.'
NEAR_LIMIT_MESSAGE = "You're close to your limit. Consider saving more."
UNDER_BUDGET_MESSAGE = 'Great job! You are well below budget.'
MODERATE_MESSAGE = 'You are spending moderately. Keep it up.'
OFFLINE_PACE_MESSAGE = 'You are offline. Set a budget to get insights when reconnected.'

NO_PREVIOUS_BUDGET_MESSAGE = 'No budget set for the previous month.'
OFFLINE_PREVIOUS_MESSAGE = 'You are offline. Previous budget data unavailable.'

NEAR_LIMIT_RATIO = 0.9
UNDER_BUDGET_RATIO = 0.5
WARNING_PERCENT = 80
OVERSPEND_PERCENT = 100


class Severity(str, Enum):
    RED = 'red'
    YELLOW = 'yellow'


@dataclass(frozen=True)
class CategoryAlert:
    category: Category
    severity: Severity
    percentage: float
    message: str

    def __str__(self) -> str:
        return self.message


def suggest_pace(budget: Any, total: float) -> str:
    """Qualitative pace message for the month so far (first matching tier wins)."""
    b = budget_value(budget)
    if b is None:
        return SET_BUDGET_MESSAGE
    if total > b:
        return OVERSPENT_MESSAGE
    if total > b * NEAR_LIMIT_RATIO:
        return NEAR_LIMIT_MESSAGE
    if total < b * UNDER_BUDGET_RATIO:
        return UNDER_BUDGET_MESSAGE
    return MODERATE_MESSAGE


def category_alerts(by_category: Mapping[Any, float], budget: Any) -> Dict[Category, CategoryAlert]:
    """Flag categories that used 80% or more of an equal share of the budget.

    Labels outside the fixed category set never raise alerts.
    """
    b = budget_value(budget)
    if b is None:
        return {}

    share = b / len(CATEGORIES)
    alerts: Dict[Category, CategoryAlert] = {}
    for category in CATEGORIES:
        spent = by_category.get(category, 0.0) or 0.0
        percentage = spent / share * 100
        if percentage >= OVERSPEND_PERCENT:
            alerts[category] = CategoryAlert(
                category, Severity.RED, percentage, f"❗ You’ve overspent on {category}"
            )
        elif percentage >= WARNING_PERCENT:
            alerts[category] = CategoryAlert(
                category,
                Severity.YELLOW,
                percentage,
                f"⚠ You’ve spent {percentage:.0f}% of your {category} budget",
            )
    return alerts


def previous_month_summary(previous_budget: Any, total: float) -> str:
    """Retrospective message for a closed month, judged against the archived budget."""
    b = budget_value(previous_budget)
    if b is None:
        return NO_PREVIOUS_BUDGET_MESSAGE
    if total > b:
        return (
            f"You overspent by {format_currency(total - b)} last month. "
            "Consider cutting back on non-essentials."
        )
    if total > b * NEAR_LIMIT_RATIO:
        return f"You were within 10% of your {format_currency(b)} budget last month. Try to save more."
    if total < b * UNDER_BUDGET_RATIO:
        return (
            f"Excellent! You spent only {format_currency(total)} of your "
            f"{format_currency(b)} budget last month."
        )
    return (
        f"You spent {format_currency(total)} of your {format_currency(b)} budget last month. "
        "Good job staying on track."
    )
