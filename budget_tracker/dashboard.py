"""Streamlit app for the budget tracker.

Sign-in is handled outside this app; the sidebar only asks which user's
data to open.  Each widget action calls one :class:`DashboardService`
method, which fetches from the record store and recomputes everything.

To run the dashboard from the command line::

    streamlit run budget_tracker/Home.py
"""

from __future__ import annotations

import os
import sys

import streamlit as st

if __package__:
    from . import visualization as viz
    from .dashboard_service import DashboardService
    from .db import SqliteRecordStore
    from .exceptions import BudgetTrackerError, InvalidInputError, StoreUnavailableError
    from .formatting import escape_for_markdown, format_currency
    from .models import CATEGORIES
    from .periods import previous_month_key
else:
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from budget_tracker import visualization as viz  # type: ignore
    from budget_tracker.dashboard_service import DashboardService  # type: ignore
    from budget_tracker.db import SqliteRecordStore  # type: ignore
    from budget_tracker.exceptions import BudgetTrackerError, InvalidInputError, StoreUnavailableError  # type: ignore
    from budget_tracker.formatting import escape_for_markdown, format_currency  # type: ignore
    from budget_tracker.models import CATEGORIES  # type: ignore
    from budget_tracker.periods import previous_month_key  # type: ignore


def _md(text: str) -> str:
    return escape_for_markdown(text)


def _service(user_id: str) -> DashboardService:
    key = f"service::{user_id}"
    if key not in st.session_state:
        st.session_state[key] = DashboardService(SqliteRecordStore(), user_id, display_name=user_id)
    return st.session_state[key]


def render_current_month(service: DashboardService) -> None:
    context = service.load_user_context()
    if context.offline:
        st.error("You are offline. Some features may be unavailable.")

    st.subheader("Monthly budget")
    if context.needs_budget_input:
        budget_input = st.number_input("Set this month's budget", min_value=0.0, step=100.0)
        if st.button("Save budget"):
            try:
                service.set_budget(budget_input)
                st.success("Budget saved.")
            except InvalidInputError as exc:
                st.error(str(exc))
            except StoreUnavailableError:
                st.error("You are offline. Budget will be saved when you reconnect.")
    elif service.budget is not None:
        st.markdown(_md(f"Budget: **{format_currency(service.budget)}**"))

    current = context.current
    if current.status_message:
        st.info(current.status_message)
    if current.available:
        st.metric("Total spent", format_currency(current.total))
    st.markdown(_md(f"**Suggestion:** {current.pace_message}"))
    st.markdown(_md(f"**Daily advice:** {current.daily_advice}"))
    for alert in current.alerts.values():
        (st.error if alert.severity == 'red' else st.warning)(alert.message)

    if current.available:
        cols = st.columns(3)
        cols[0].plotly_chart(viz.create_category_pie_chart(current.aggregate.by_category), use_container_width=True)
        cols[1].plotly_chart(viz.create_daily_line_chart(current.aggregate.by_day), use_container_width=True)
        cols[2].plotly_chart(viz.create_monthly_bar_chart(current.aggregate.by_month), use_container_width=True)

    st.subheader("Forecast")
    st.markdown(_md(context.forecast.message))
    if context.forecast.available:
        st.plotly_chart(viz.create_forecast_chart(context.forecast.forecast), use_container_width=True)
        for entry in context.forecast.forecast.per_category.values():
            st.caption(_md(entry.suggestion))


def render_add_expense(service: DashboardService) -> None:
    st.subheader("Add expense")
    with st.form("add_expense", clear_on_submit=True):
        name = st.text_input("Name")
        amount = st.number_input("Amount", min_value=0.0, step=1.0)
        category = st.selectbox("Category", options=[c.value for c in CATEGORIES])
        if st.form_submit_button("Add"):
            try:
                service.add_expense(name, amount, category)
                st.success("Expense added.")
            except InvalidInputError as exc:
                st.error(str(exc))
            except StoreUnavailableError as exc:
                st.error(str(exc))


def render_previous_month(service: DashboardService) -> None:
    st.subheader("Previous months")
    month_input = st.text_input("Month (YYYY-MM)", value=previous_month_key())
    if st.button("Load month"):
        st.session_state["loaded_month"] = month_input
    month = st.session_state.get("loaded_month")
    if not month:
        return
    try:
        view = service.fetch_previous_month(month)
    except InvalidInputError as exc:
        st.error(str(exc))
        return
    if not view.available:
        st.error(view.summary)
        return
    st.metric(f"Total spent in {month}", format_currency(view.total))
    st.markdown(_md(view.summary))
    st.plotly_chart(viz.create_daily_line_chart(view.daily, title=f"Spending for {month}"), use_container_width=True)
    if st.button(f"Email report for {month}"):
        try:
            service.send_previous_month_email(month)
            st.success(f"Report for {month} sent to your email!")
        except BudgetTrackerError as exc:
            st.error(f"Failed to send report for {month}: {exc}")
    try:
        filename, text = service.export_month_csv(month)
        st.download_button("Download month CSV", data=text, file_name=filename, mime="text/csv")
    except StoreUnavailableError as exc:
        st.error(str(exc))


def render_exports(service: DashboardService) -> None:
    st.subheader("Export and email")
    try:
        filename, text = service.export_csv()
        st.download_button("Download all expenses (CSV)", data=text, file_name=filename, mime="text/csv")
    except StoreUnavailableError as exc:
        st.error(str(exc))

    email = st.text_input("Email address for the report")
    if st.button("Email this month's report"):
        try:
            service.send_email_report(email or None)
            st.success("Current month report sent to your email!")
        except BudgetTrackerError as exc:
            st.error(f"Failed to send current month report: {exc}")


def main() -> None:
    """Entry point for the Streamlit app."""
    st.set_page_config(page_title="Budget Tracker", layout="wide", initial_sidebar_state="expanded")
    st.title("Budget Tracker")

    user_id = st.sidebar.text_input("User", value=st.session_state.get("user_id", ""))
    st.session_state["user_id"] = user_id
    if not user_id:
        st.info("Enter a user name in the sidebar to open a dashboard.")
        st.stop()

    service = _service(user_id)
    render_add_expense(service)
    render_current_month(service)
    render_previous_month(service)
    render_exports(service)


if __name__ == "__main__":  # pragma: no cover
    main()
