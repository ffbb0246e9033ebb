from __future__ import annotations

import logging
import statistics
from collections import defaultdict
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

from finance_tracker.categorization.catalog import FALLBACK_CATEGORY
from finance_tracker.core.config import settings
from finance_tracker.utils.analyzer import parse_record_date

logger = logging.getLogger(__name__)

DATE_FIELDS = ("date", "payment_date", "invoice_date")
AMOUNT_FIELDS = ("amount", "amount_paid", "salary", "amount_incl_gst")

MIN_RECORDS_FOR_ADVANCED = 6
MIN_MONTHS_FOR_SEASONALITY = 12
SEASONALITY_THRESHOLD = 0.4
DEFAULT_CONFIDENCE = 50
DEFAULT_MONTHLY_AMOUNT = 1000.0

Point = Tuple[float, float]


def _record_month(record: Mapping[str, Any]) -> Optional[str]:
    for field in DATE_FIELDS:
        record_date = parse_record_date(record.get(field))
        if record_date is not None:
            return f"{record_date.year}-{record_date.month:02d}"
    return None


def _record_amount(record: Mapping[str, Any]) -> Optional[float]:
    for field in AMOUNT_FIELDS:
        value = record.get(field)
        if value in (None, ""):
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            return None
    return None


def _linear_fit(points: List[Point]) -> Tuple[float, float]:
    xs, ys = zip(*points)
    slope, intercept = statistics.linear_regression(xs, ys)
    return slope, intercept


class ExpenseForecaster:
    """
    Forecasts monthly expense totals from historical records.

    Small histories get a plain linear trend. Larger ones are cleaned of
    outliers (IQR, replaced by the median), checked for annual seasonality
    (lag-12 autocorrelation) and forecast per category as well.
    """

    def __init__(self, today: Optional[date] = None) -> None:
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    def forecast(self, history: List[Dict[str, Any]], months: Optional[int] = None) -> Dict[str, Any]:
        months = months or settings.FORECAST_MONTHS
        if not history or len(history) < MIN_RECORDS_FOR_ADVANCED:
            return self.basic_forecast(history, months)

        try:
            monthly = self.aggregate_monthly(history)
            by_category = self.aggregate_by_category(history)

            seasonal = self.detect_seasonality(monthly)
            cleaned = self.remove_outliers(monthly)

            total_forecast, total_confidence = self._total_forecast(cleaned, months, seasonal)
            category_forecasts = self._category_forecasts(by_category, months)

            return {
                "forecast": total_forecast,
                "category_forecasts": [item["forecast"] for item in category_forecasts],
                "confidence": self.overall_confidence(
                    total_confidence, [item["confidence"] for item in category_forecasts]
                ),
                "seasonality_detected": seasonal,
                "methodology": "seasonal-adjusted" if seasonal else "linear-regression",
            }
        except (statistics.StatisticsError, ValueError) as e:
            logger.warning(f"Advanced forecasting failed, falling back to basic forecast: {str(e)}")
            return self.basic_forecast(history, months)

    def basic_forecast(self, history: Optional[List[Dict[str, Any]]], months: int = 3) -> Dict[str, Any]:
        monthly = self.aggregate_monthly(history or [])
        points = [(float(index), total) for index, total in enumerate(monthly.values())]

        try:
            slope, intercept = _linear_fit(points)
        except (statistics.StatisticsError, ValueError):
            # Fewer than two points or no variation in x
            average = statistics.fmean(total for _, total in points) if points else DEFAULT_MONTHLY_AMOUNT
            slope, intercept = 0.0, average

        last_index = max(0, len(points) - 1)
        forecast = [
            {"month": self.next_month(i), "amount": _clamp_amount(slope * (last_index + i) + intercept)}
            for i in range(1, months + 1)
        ]
        return {
            "forecast": forecast,
            "confidence": self.confidence(points, slope, intercept) if len(points) > 2 else DEFAULT_CONFIDENCE,
            "methodology": "basic-linear",
        }

    def aggregate_monthly(self, history: List[Dict[str, Any]]) -> Dict[str, float]:
        totals: Dict[str, float] = defaultdict(float)
        for record in history:
            month = _record_month(record)
            amount = _record_amount(record)
            if month is None or amount is None:
                logger.warning(f"Skipping record without date or amount: {record.get('transaction_id')}")
                continue
            totals[month] += amount
        return dict(sorted(totals.items()))

    def aggregate_by_category(self, history: List[Dict[str, Any]]) -> Dict[str, Dict[str, float]]:
        grouped: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        for record in history:
            category = record.get("suggestedCategory") or record.get("category") or FALLBACK_CATEGORY
            grouped[category].append(record)
        return {category: self.aggregate_monthly(records) for category, records in grouped.items()}

    def detect_seasonality(self, monthly: Dict[str, float]) -> bool:
        if len(monthly) < MIN_MONTHS_FOR_SEASONALITY:
            return False
        return self.autocorrelation(list(monthly.values()), 12) > SEASONALITY_THRESHOLD

    @staticmethod
    def autocorrelation(values: List[float], lag: int) -> float:
        n = len(values)
        if n <= lag:
            return 0.0
        mean = statistics.fmean(values)
        variance = sum((value - mean) ** 2 for value in values) / n
        if variance == 0:
            return 0.0
        covariance = sum((values[i] - mean) * (values[i + lag] - mean) for i in range(n - lag))
        return covariance / ((n - lag) * variance)

    @staticmethod
    def remove_outliers(monthly: Dict[str, float]) -> Dict[str, float]:
        values = list(monthly.values())
        if len(values) < 4:
            return dict(monthly)

        q1, _, q3 = statistics.quantiles(values, n=4, method="inclusive")
        iqr = q3 - q1
        upper = q3 + 1.5 * iqr
        lower = max(0.0, q1 - 1.5 * iqr)
        median = statistics.median(values)
        return {month: value if lower <= value <= upper else median for month, value in monthly.items()}

    def _total_forecast(
        self,
        monthly: Dict[str, float],
        months: int,
        seasonal: bool,
    ) -> Tuple[List[Dict[str, Any]], int]:
        points = [(float(index), total) for index, total in enumerate(monthly.values())]
        slope, intercept = _linear_fit(points)

        if seasonal and len(points) >= MIN_MONTHS_FOR_SEASONALITY:
            return self._seasonal_forecast(monthly, points, slope, intercept, months), 70

        last_index = len(points) - 1
        forecast = [
            {"month": self.next_month(i), "amount": _clamp_amount(slope * (last_index + i) + intercept)}
            for i in range(1, months + 1)
        ]
        return forecast, self.confidence(points, slope, intercept)

    def _seasonal_forecast(
        self,
        monthly: Dict[str, float],
        points: List[Point],
        slope: float,
        intercept: float,
        months: int,
    ) -> List[Dict[str, Any]]:
        # Ratio of actual to trend, averaged per calendar month; neutral (1.0) where unknown
        ratios: Dict[int, List[float]] = defaultdict(list)
        for (x, actual), month_key in zip(points, monthly):
            trend = slope * x + intercept
            ratios[int(month_key[5:7])].append(actual / trend if trend > 0 else 1.0)
        factors = {month: statistics.fmean(values) for month, values in ratios.items()}

        last_index = len(points) - 1
        forecast = []
        for i in range(1, months + 1):
            month_key = self.next_month(i)
            trend = slope * (last_index + i) + intercept
            factor = factors.get(int(month_key[5:7]), 1.0)
            forecast.append({"month": month_key, "amount": _clamp_amount(trend * factor)})
        return forecast

    def _category_forecasts(self, by_category: Dict[str, Dict[str, float]], months: int) -> List[Dict[str, Any]]:
        results = []
        for category, monthly in by_category.items():
            points = [(float(index), total) for index, total in enumerate(monthly.values())]
            if len(points) < 3:
                continue
            try:
                slope, intercept = _linear_fit(points)
            except statistics.StatisticsError as e:
                logger.warning(f"Failed to generate forecast for category {category}: {str(e)}")
                continue

            last_index = len(points) - 1
            results.append(
                {
                    "category": category,
                    "forecast": [
                        {
                            "month": self.next_month(i),
                            "category": category,
                            "amount": _clamp_amount(slope * (last_index + i) + intercept),
                        }
                        for i in range(1, months + 1)
                    ],
                    "confidence": self.confidence(points, slope, intercept),
                }
            )
        return results

    def next_month(self, months_ahead: int) -> str:
        month_index = self.today.month - 1 + months_ahead
        return f"{self.today.year + month_index // 12}-{month_index % 12 + 1:02d}"

    @staticmethod
    def confidence(points: List[Point], slope: float, intercept: float) -> int:
        """R-squared of the fit scaled to 0-100."""
        if len(points) < 3:
            return DEFAULT_CONFIDENCE
        ys = [y for _, y in points]
        mean = statistics.fmean(ys)
        ss_total = sum((y - mean) ** 2 for y in ys)
        if ss_total == 0:
            return 100
        ss_residual = sum((y - (slope * x + intercept)) ** 2 for x, y in points)
        r_squared = 1 - ss_residual / ss_total
        return min(100, max(0, round(r_squared * 100)))

    @staticmethod
    def overall_confidence(total_confidence: int, category_confidences: List[int]) -> int:
        if not category_confidences:
            return total_confidence
        # Total forecast weighted 70%, category average 30%
        return round(total_confidence * 0.7 + statistics.fmean(category_confidences) * 0.3)


def _clamp_amount(amount: float) -> float:
    return max(0.0, round(amount, 2))
