"""Top-level package for the budget tracker.

The computation modules are pure and can be used without Streamlit:

* ``aggregation`` – totals and per-category/day/month sums
* ``advisor`` – spending-pace messages and category alerts
* ``pacing`` – daily allowance advice and monthly budget rollover
* ``forecast`` – next-month per-category projection
* ``reporting`` – report text, CSV export and email parameters

``dashboard_service`` ties them to a record store; ``dashboard`` is the
Streamlit front end.  To run it::

    streamlit run budget_tracker/Home.py
"""

from . import advisor, aggregation, forecast, pacing, reporting  # noqa: F401
from .aggregation import Aggregate, aggregate
from .advisor import category_alerts, suggest_pace
from .forecast import Forecast, ForecastEntry
from .models import Category, ExpenseRecord, UserBudgetProfile
from .pacing import daily_advice, rollover_if_new_month
from .reporting import format_csv, format_report

__all__ = [
    "Aggregate",
    "Category",
    "ExpenseRecord",
    "Forecast",
    "ForecastEntry",
    "UserBudgetProfile",
    "aggregate",
    "category_alerts",
    "daily_advice",
    "format_csv",
    "format_report",
    "rollover_if_new_month",
    "suggest_pace",
]

__version__ = "0.1.0"
