"""Plotly visualisation helpers for the budget dashboard.

Each function accepts the plain mappings produced by
:mod:`budget_tracker.aggregation` or :mod:`budget_tracker.forecast` and
returns a `plotly.graph_objects.Figure` that Streamlit can render via
``st.plotly_chart``.  Empty inputs produce a titled placeholder figure
instead of raising.
"""

from __future__ import annotations

from typing import Mapping

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .config import CURRENCY_SYMBOL
from .forecast import Forecast
from .periods import sort_day_labels

CATEGORY_COLORS = ['#3b82f6', '#10b981', '#fbbf24', '#ef4444', '#a78bfa']
PREDICTED_COLOR = '#3b82f6'
ACTUAL_COLOR = '#fbbf24'
MONTHLY_COLOR = '#10b981'


def _empty_figure(title: str) -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=title)
    return fig


def _amount_axis() -> str:
    return f"Amount ({CURRENCY_SYMBOL})"


def create_category_pie_chart(by_category: Mapping, title: str | None = None) -> go.Figure:
    """Pie chart of spending per category.

    Parameters
    ----------
    by_category : mapping
        Category label to summed amount, as in ``Aggregate.by_category``.
    title : str, optional
        Title for the chart.
    """
    series = pd.Series({str(k): float(v) for k, v in by_category.items()}, dtype=float)
    if series.empty or not (series > 0).any():
        return _empty_figure("No expenses recorded")
    df = series.reset_index()
    df.columns = ["Category", "Amount"]
    fig = px.pie(df, names="Category", values="Amount", color_discrete_sequence=CATEGORY_COLORS)
    fig.update_layout(title=title or "Category Breakdown")
    return fig


def create_daily_line_chart(by_day: Mapping[str, float], title: str | None = None) -> go.Figure:
    """Line chart of spending per day, labels ordered chronologically."""
    if not by_day:
        return _empty_figure("No expenses recorded")
    labels = sort_day_labels(by_day.keys())
    df = pd.DataFrame({"Date": labels, "Amount": [by_day[label] for label in labels]})
    fig = px.line(df, x="Date", y="Amount", markers=True)
    fig.update_traces(line_color=PREDICTED_COLOR, fill='tozeroy')
    fig.update_layout(
        title=title or "Daily Spending",
        xaxis_title="Date",
        yaxis_title=_amount_axis(),
    )
    return fig


def create_monthly_bar_chart(by_month: Mapping[str, float], title: str | None = None) -> go.Figure:
    """Bar chart of spending per ``YYYY-MM`` month."""
    if not by_month:
        return _empty_figure("No expenses recorded")
    df = pd.DataFrame(sorted(by_month.items()), columns=["Month", "Amount"])
    fig = px.bar(df, x="Month", y="Amount")
    fig.update_traces(marker_color=MONTHLY_COLOR)
    fig.update_layout(
        title=title or "Monthly Spending",
        xaxis_title="Month",
        yaxis_title=_amount_axis(),
    )
    return fig


def create_forecast_chart(result: Forecast | None, title: str | None = None) -> go.Figure:
    """Grouped bars of predicted versus actual spending per category."""
    if result is None:
        return _empty_figure("Forecast unavailable")
    predicted = result.predicted_series()
    actual = result.actual_series()
    fig = go.Figure()
    fig.add_trace(go.Bar(x=list(predicted.index), y=list(predicted.values), name="Predicted Spending", marker_color=PREDICTED_COLOR))
    fig.add_trace(go.Bar(x=list(actual.index), y=list(actual.values), name="Actual Spending", marker_color=ACTUAL_COLOR))
    fig.update_layout(
        title=title or "Expense Forecast",
        barmode="group",
        xaxis_title="Category",
        yaxis_title=_amount_axis(),
    )
    return fig
