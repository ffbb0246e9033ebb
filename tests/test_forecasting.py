from datetime import date

from finance_tracker.utils.forecasting import ExpenseForecaster

reference_day = date(2024, 12, 15)

linear_history = [
    {"date": f"2024-{month:02d}-10", "amount_paid": amount, "category": "Rent"}
    for month, amount in zip(range(1, 7), [100, 200, 300, 400, 500, 600])
]


def test_basic_forecast_for_short_history():
    forecaster = ExpenseForecaster(today=reference_day)
    result = forecaster.forecast(linear_history[:2], months=2)
    assert result["methodology"] == "basic-linear"
    assert result["confidence"] == 50
    assert result["forecast"] == [
        {"month": "2025-01", "amount": 300.0},
        {"month": "2025-02", "amount": 400.0},
    ]


def test_basic_forecast_without_history_uses_default():
    forecaster = ExpenseForecaster(today=reference_day)
    result = forecaster.forecast([], months=1)
    assert result["forecast"] == [{"month": "2025-01", "amount": 1000.0}]


def test_linear_forecast_with_category_breakdown():
    forecaster = ExpenseForecaster(today=reference_day)
    result = forecaster.forecast(linear_history, months=3)

    assert result["methodology"] == "linear-regression"
    assert result["seasonality_detected"] is False
    assert [item["amount"] for item in result["forecast"]] == [700.0, 800.0, 900.0]
    assert [item["month"] for item in result["forecast"]] == ["2025-01", "2025-02", "2025-03"]
    assert result["confidence"] == 100
    assert result["category_forecasts"][0][0] == {"month": "2025-01", "category": "Rent", "amount": 700.0}


def test_forecast_amounts_are_never_negative():
    forecaster = ExpenseForecaster(today=reference_day)
    falling = [
        {"date": f"2024-{month:02d}-01", "amount": amount}
        for month, amount in zip(range(1, 7), [600, 500, 400, 300, 200, 100])
    ]
    result = forecaster.forecast(falling, months=3)
    assert [item["amount"] for item in result["forecast"]] == [0.0, 0.0, 0.0]


def test_single_month_history_falls_back_to_basic():
    forecaster = ExpenseForecaster(today=reference_day)
    history = [{"date": "2024-05-01", "amount": 100} for _ in range(6)]
    result = forecaster.forecast(history, months=1)
    assert result["methodology"] == "basic-linear"
    assert result["forecast"] == [{"month": "2025-01", "amount": 600.0}]


def test_undated_history_falls_back_to_basic():
    forecaster = ExpenseForecaster(today=reference_day)
    history = [{"description": "no date", "amount": 10} for _ in range(6)]
    result = forecaster.forecast(history, months=1)
    assert result["methodology"] == "basic-linear"
    assert result["forecast"] == [{"month": "2025-01", "amount": 1000.0}]


def test_remove_outliers_replaces_with_median():
    monthly = {"2024-01": 100.0, "2024-02": 110.0, "2024-03": 105.0, "2024-04": 5000.0, "2024-05": 95.0}
    cleaned = ExpenseForecaster.remove_outliers(monthly)
    assert cleaned["2024-04"] == 105.0
    assert cleaned["2024-01"] == 100.0


def test_seasonality_detection():
    forecaster = ExpenseForecaster(today=reference_day)
    pattern = [100, 100, 100, 100, 100, 100, 100, 100, 100, 100, 500, 900]
    monthly = {f"{2022 + i // 12}-{i % 12 + 1:02d}": float(pattern[i % 12]) for i in range(24)}
    assert forecaster.detect_seasonality(monthly) is True
    assert forecaster.detect_seasonality(dict(list(monthly.items())[:11])) is False


def test_next_month_rolls_over_year():
    forecaster = ExpenseForecaster(today=date(2024, 11, 30))
    assert forecaster.next_month(1) == "2024-12"
    assert forecaster.next_month(2) == "2025-01"
    assert forecaster.next_month(14) == "2026-01"


def test_overall_confidence_weights_total():
    assert ExpenseForecaster.overall_confidence(80, [40, 60]) == 71
    assert ExpenseForecaster.overall_confidence(80, []) == 80
