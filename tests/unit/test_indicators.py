"""Unit tests for resampling and technical indicators."""

import pytest
from datetime import date, timedelta

from src.dca.indicators import calculate_ema, calculate_rsi, calculate_sma
from src.dca.models import IndicatorTimeframe, PricePoint
from src.dca.resample import carry_forward, resample


def daily_series(start: date, days: int, weekdays_only: bool = False) -> list:
    points = []
    day = start
    while len(points) < days:
        if not weekdays_only or day.weekday() < 5:
            points.append(PricePoint(date=day, price=float(len(points) + 1)))
        day += timedelta(days=1)
    return points


class TestSMA:
    """Tests for the simple moving average."""

    def test_constant_series(self) -> None:
        """A constant series has the constant as SMA at every index."""
        sma = calculate_sma([42.0] * 30, period=10)

        assert len(sma) == 30
        assert sma == pytest.approx([42.0] * 30)

    def test_warm_up_uses_partial_average(self) -> None:
        """Before the window is full, the average of available values is used."""
        sma = calculate_sma([1.0, 2.0, 3.0, 4.0, 5.0], period=3)

        assert sma == pytest.approx([1.0, 1.5, 2.0, 3.0, 4.0])

    def test_empty(self) -> None:
        assert calculate_sma([], period=20) == []


class TestEMA:
    """Tests for the exponential moving average."""

    def test_seeded_with_first_price(self) -> None:
        """EMA starts at the first price and applies k = 2 / (period + 1)."""
        ema = calculate_ema([10.0, 20.0, 20.0], period=3)
        k = 2 / (3 + 1)

        assert ema[0] == pytest.approx(10.0)
        assert ema[1] == pytest.approx(20.0 * k + 10.0 * (1 - k))
        assert ema[2] == pytest.approx(20.0 * k + ema[1] * (1 - k))


class TestRSI:
    """Tests for Wilder's RSI."""

    def test_short_series_is_neutral(self) -> None:
        """Fewer than period + 1 prices gives 50 everywhere."""
        assert calculate_rsi([1.0, 2.0, 3.0], period=14) == [50.0, 50.0, 50.0]

    def test_first_period_values_are_neutral(self) -> None:
        rsi = calculate_rsi([float(i) for i in range(1, 31)], period=14)

        assert len(rsi) == 30
        assert rsi[:14] == [50.0] * 14

    def test_increasing_series_tends_to_100(self) -> None:
        """Without losses RS saturates at 100."""
        rsi = calculate_rsi([float(i) for i in range(1, 41)], period=14)

        assert rsi[-1] > 99.0
        assert rsi[-1] <= 100.0

    def test_decreasing_series_tends_to_0(self) -> None:
        rsi = calculate_rsi([float(i) for i in range(40, 0, -1)], period=14)

        assert rsi[-1] == pytest.approx(0.0)

    def test_bounded(self) -> None:
        prices = [100, 102, 101, 105, 103, 99, 98, 104, 107, 106, 110, 108, 111, 109, 112, 115, 113]
        rsi = calculate_rsi([float(p) for p in prices], period=14)

        assert all(0.0 <= value <= 100.0 for value in rsi)


class TestResample:
    """Tests for period-close resampling."""

    def test_empty(self) -> None:
        assert resample([], IndicatorTimeframe.WEEKLY) == []

    def test_daily_is_passthrough(self) -> None:
        series = daily_series(date(2024, 1, 1), 5)

        assert resample(series, IndicatorTimeframe.DAILY) == series

    def test_weekly_keeps_last_day_of_monday_week(self) -> None:
        """Weeks run Monday to Sunday; the last observation is kept."""
        # 2024-01-01 is a Monday
        series = daily_series(date(2024, 1, 1), 14)

        weekly = resample(series, IndicatorTimeframe.WEEKLY)

        assert [p.date for p in weekly] == [date(2024, 1, 7), date(2024, 1, 14)]
        assert [p.price for p in weekly] == [7.0, 14.0]

    def test_weekly_with_trading_days_only(self) -> None:
        series = daily_series(date(2024, 1, 1), 10, weekdays_only=True)

        weekly = resample(series, IndicatorTimeframe.WEEKLY)

        assert [p.date for p in weekly] == [date(2024, 1, 5), date(2024, 1, 12)]
        assert [p.price for p in weekly] == [5.0, 10.0]

    def test_partial_last_week(self) -> None:
        series = daily_series(date(2024, 1, 1), 9)

        weekly = resample(series, IndicatorTimeframe.WEEKLY)

        assert weekly[-1].date == date(2024, 1, 9)

    def test_monthly_keeps_last_observation(self) -> None:
        series = [
            PricePoint(date=date(2024, 1, 30), price=10.0),
            PricePoint(date=date(2024, 1, 31), price=11.0),
            PricePoint(date=date(2024, 2, 1), price=12.0),
            PricePoint(date=date(2024, 2, 29), price=13.0),
            PricePoint(date=date(2024, 3, 4), price=14.0),
        ]

        monthly = resample(series, IndicatorTimeframe.MONTHLY)

        assert [(p.date, p.price) for p in monthly] == [
            (date(2024, 1, 31), 11.0),
            (date(2024, 2, 29), 13.0),
            (date(2024, 3, 4), 14.0),
        ]


class TestCarryForward:
    """Tests for mapping coarse values back onto daily dates."""

    def test_latest_value_on_or_before(self) -> None:
        dates = [date(2024, 1, d) for d in range(1, 6)]
        values = {date(2024, 1, 2): 20.0, date(2024, 1, 4): 40.0}

        mapped = carry_forward(values, dates, initial=-1.0)

        assert [mapped[d] for d in dates] == [-1.0, 20.0, 20.0, 40.0, 40.0]

    def test_round_trip_reproduces_period_closes(self) -> None:
        """Weekly closes mapped back to daily dates match the daily prices on close dates."""
        series = daily_series(date(2024, 1, 1), 40, weekdays_only=True)
        weekly = resample(series, IndicatorTimeframe.WEEKLY)

        mapped = carry_forward(
            {p.date: p.price for p in weekly},
            [p.date for p in series],
            initial=series[0].price,
        )

        daily_by_date = {p.date: p.price for p in series}
        for point in weekly:
            assert mapped[point.date] == daily_by_date[point.date]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
