import pandas as pd

from budget_tracker import visualization as viz
from budget_tracker.forecast import forecast
from budget_tracker.models import Category


def test_pie_chart_placeholder_when_all_zero():
    fig = viz.create_category_pie_chart({c: 0.0 for c in Category})

    assert len(fig.data) == 0
    assert fig.layout.title.text == 'No expenses recorded'


def test_pie_chart_uses_category_labels():
    fig = viz.create_category_pie_chart({Category.FOOD: 10.0, Category.BILLS: 5.0})

    assert list(fig.data[0].labels) == ['Food', 'Bills']


def test_daily_chart_orders_days():
    fig = viz.create_daily_line_chart({'Jun 12': 3.0, 'Jun 2': 1.0})

    assert list(fig.data[0].x) == ['Jun 2', 'Jun 12']
    assert list(fig.data[0].y) == [1.0, 3.0]


def test_monthly_chart_sorted_by_month():
    fig = viz.create_monthly_bar_chart({'2026-06': 5.0, '2026-05': 2.0})

    assert list(fig.data[0].x) == ['2026-05', '2026-06']


def test_forecast_chart_groups_predicted_and_actual():
    ts = int(pd.Timestamp('2026-05-10', tz='UTC').value // 1_000_000)
    result = forecast([{'name': 'x', 'amount': 40, 'category': 'Food', 'timestamp': ts}], [], tz='UTC')

    fig = viz.create_forecast_chart(result)

    assert [trace.name for trace in fig.data] == ['Predicted Spending', 'Actual Spending']
    assert fig.layout.barmode == 'group'


def test_forecast_chart_placeholder():
    assert viz.create_forecast_chart(None).layout.title.text == 'Forecast unavailable'
