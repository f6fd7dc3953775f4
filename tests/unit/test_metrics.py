"""Unit tests for risk/return metrics and XIRR."""

import math

import pytest
from datetime import date

from src.dca.analysis.metrics import (
    calculate_average_purchase_price,
    calculate_best_worst_months,
    calculate_cagr,
    calculate_daily_returns,
    calculate_max_drawdown,
    calculate_monthly_returns,
    calculate_sharpe_from_values,
    calculate_sharpe_ratio,
    calculate_total_return,
    calculate_volatility,
)
from src.dca.analysis.xirr import build_cash_flows, calculate_xirr
from src.dca.models import CashFlow, DcaTransaction


def make_tx(
    day: date,
    value: float,
    invested: float = 0.0,
    shares: float = 0.0,
    accumulated: float = 0.0,
) -> DcaTransaction:
    return DcaTransaction(
        date=day,
        price=1.0,
        invested_amount=invested,
        shares_bought=shares,
        accumulated_shares=accumulated,
        portfolio_value=value,
        multiplier_applied=1.0 if invested else 0.0,
    )


class TestReturns:
    """Tests for CAGR and total return."""

    def test_cagr_doubling_in_one_year(self) -> None:
        assert calculate_cagr(100, 200, 1) == pytest.approx(100.0)

    def test_cagr_halving_in_one_year(self) -> None:
        assert calculate_cagr(100, 50, 1) == pytest.approx(-50.0)

    def test_cagr_two_years(self) -> None:
        assert calculate_cagr(100, 121, 2) == pytest.approx(10.0)

    def test_cagr_degenerate_inputs(self) -> None:
        assert calculate_cagr(0, 100, 1) == 0.0
        assert calculate_cagr(100, 200, 0) == 0.0
        assert calculate_cagr(100, 0, 1) == -100.0

    def test_total_return(self) -> None:
        assert calculate_total_return(100, 150) == pytest.approx(50.0)
        assert calculate_total_return(0, 150) == 0.0


class TestRiskMetrics:
    """Tests for daily returns, volatility and Sharpe."""

    def test_daily_returns_skip_zero_prior(self) -> None:
        returns = calculate_daily_returns([100.0, 0.0, 50.0, 100.0])

        assert list(returns) == pytest.approx([-1.0, 1.0])

    def test_daily_returns_short_series(self) -> None:
        assert calculate_daily_returns([100.0]).size == 0

    def test_volatility_of_constant_series_is_zero(self) -> None:
        assert calculate_volatility([100.0] * 10) == 0.0

    def test_volatility_sample_std_annualized(self) -> None:
        """Returns [+10%, -10%]: sample std = sqrt(0.02), annualized by sqrt(252)."""
        expected = math.sqrt(0.02) * math.sqrt(252) * 100

        assert calculate_volatility([100.0, 110.0, 99.0]) == pytest.approx(expected)

    def test_volatility_needs_two_returns(self) -> None:
        assert calculate_volatility([100.0, 110.0]) == 0.0

    def test_sharpe_ratio(self) -> None:
        assert calculate_sharpe_ratio(0.12, 0.20, 0.02) == pytest.approx(0.5)
        assert calculate_sharpe_ratio(0.12, 0.0) == 0.0

    def test_sharpe_from_values(self) -> None:
        """Zero mean return: Sharpe is -rf / annualized vol."""
        vol = math.sqrt(0.02) * math.sqrt(252)

        sharpe = calculate_sharpe_from_values([100.0, 110.0, 99.0], risk_free_rate=2.0)

        assert sharpe == pytest.approx(-0.02 / vol)

    def test_sharpe_degenerate(self) -> None:
        assert calculate_sharpe_from_values([100.0]) == 0.0
        assert calculate_sharpe_from_values([100.0, 100.0, 100.0]) == 0.0


class TestMaxDrawdown:
    """Tests for maximum drawdown."""

    def test_empty(self) -> None:
        result = calculate_max_drawdown([])

        assert result.max_drawdown == 0.0
        assert result.drawdown_series == []
        assert result.max_drawdown_peak_date is None

    def test_monotonic_increase_has_no_drawdown(self) -> None:
        values = [(date(2024, 1, d), float(d)) for d in range(1, 11)]

        result = calculate_max_drawdown(values)

        assert result.max_drawdown == 0.0
        assert result.current_drawdown == 0.0
        assert all(p.drawdown == 0.0 for p in result.drawdown_series)

    def test_worst_peak_to_trough(self) -> None:
        """The deepest decline is reported with its own peak and trough dates."""
        values = [
            (date(2024, 1, 1), 100.0),
            (date(2024, 1, 2), 120.0),
            (date(2024, 1, 3), 90.0),
            (date(2024, 1, 4), 110.0),
            (date(2024, 1, 5), 60.0),
            (date(2024, 1, 6), 130.0),
        ]

        result = calculate_max_drawdown(values)

        assert result.max_drawdown == pytest.approx(50.0)
        assert result.max_drawdown_peak_date == date(2024, 1, 2)
        assert result.max_drawdown_trough_date == date(2024, 1, 5)
        assert result.current_drawdown == 0.0
        assert len(result.drawdown_series) == 6
        assert result.drawdown_series[2].drawdown == pytest.approx(25.0)

    def test_current_drawdown(self) -> None:
        values = [(date(2024, 1, 1), 100.0), (date(2024, 1, 2), 80.0)]

        assert calculate_max_drawdown(values).current_drawdown == pytest.approx(20.0)

    def test_leading_zero_values(self) -> None:
        """Skipped first dates (value 0) do not produce NaN drawdowns."""
        values = [
            (date(2024, 1, 1), 0.0),
            (date(2024, 1, 2), 0.0),
            (date(2024, 1, 3), 100.0),
            (date(2024, 1, 4), 80.0),
        ]

        result = calculate_max_drawdown(values)

        assert [p.drawdown for p in result.drawdown_series] == pytest.approx([0.0, 0.0, 0.0, 20.0])
        assert result.max_drawdown_peak_date == date(2024, 1, 3)


class TestMonthlyReturns:
    """Tests for best/worst month and average price."""

    def test_best_and_worst_month(self) -> None:
        """Ties keep the earliest month as best."""
        ledger = [
            make_tx(date(2024, 1, 1), 100.0),
            make_tx(date(2024, 1, 15), 110.0),
            make_tx(date(2024, 2, 1), 121.0),
            make_tx(date(2024, 3, 1), 108.9),
        ]

        best, worst = calculate_best_worst_months(ledger)

        assert best.date == "2024-01"
        assert best.return_pct == pytest.approx(10.0)
        assert worst.date == "2024-03"
        assert worst.return_pct == pytest.approx(-10.0)

    def test_months_without_base_value_are_skipped(self) -> None:
        ledger = [
            make_tx(date(2024, 1, 1), 0.0),
            make_tx(date(2024, 2, 1), 100.0),
            make_tx(date(2024, 3, 1), 110.0),
        ]

        monthly = calculate_monthly_returns(ledger)

        assert [m.date for m in monthly] == ["2024-03"]
        assert monthly[0].return_pct == pytest.approx(10.0)

    def test_single_transaction(self) -> None:
        best, worst = calculate_best_worst_months([make_tx(date(2024, 1, 1), 100.0)])

        assert best.date == ""
        assert worst.return_pct == 0.0

    def test_average_purchase_price(self) -> None:
        ledger = [
            make_tx(date(2024, 1, 1), 100.0, invested=100.0, shares=1.0, accumulated=1.0),
            make_tx(date(2024, 2, 1), 300.0, invested=200.0, shares=1.5, accumulated=2.5),
        ]

        assert calculate_average_purchase_price(ledger) == pytest.approx(120.0)

    def test_average_purchase_price_without_shares(self) -> None:
        assert calculate_average_purchase_price([]) == 0.0
        assert calculate_average_purchase_price([make_tx(date(2024, 1, 1), 0.0)]) == 0.0


class TestXIRR:
    """Tests for the Newton-Raphson XIRR solver."""

    def test_ten_percent_over_one_year(self) -> None:
        flows = [
            CashFlow(date=date(2021, 1, 1), amount=-1000.0),
            CashFlow(date=date(2022, 1, 1), amount=1100.0),
        ]

        assert calculate_xirr(flows) == pytest.approx(10.0, abs=0.05)

    def test_loss(self) -> None:
        flows = [
            CashFlow(date=date(2021, 1, 1), amount=-1000.0),
            CashFlow(date=date(2022, 1, 1), amount=500.0),
        ]

        assert calculate_xirr(flows) == pytest.approx(-50.0, abs=0.1)

    def test_break_even_dca(self) -> None:
        flows = [
            CashFlow(date=date(2021, 1, 1), amount=-100.0),
            CashFlow(date=date(2021, 2, 1), amount=-100.0),
            CashFlow(date=date(2021, 3, 1), amount=-100.0),
            CashFlow(date=date(2021, 3, 1), amount=300.0),
        ]

        assert calculate_xirr(flows) == pytest.approx(0.0, abs=1e-4)

    def test_fewer_than_two_flows(self) -> None:
        assert calculate_xirr([]) == 0.0
        assert calculate_xirr([CashFlow(date=date(2021, 1, 1), amount=-100.0)]) == 0.0

    @pytest.mark.parametrize("proceeds,expected", [(0.001, -99.0), (1_000_000.0, 1000.0)])
    def test_rate_stays_within_bounds(self, proceeds, expected) -> None:
        """Roots outside [-99%, 1000%] are reported at the nearest bound."""
        flows = [
            CashFlow(date=date(2021, 1, 1), amount=-1.0),
            CashFlow(date=date(2022, 1, 1), amount=proceeds),
        ]

        assert calculate_xirr(flows) == pytest.approx(expected)

    def test_one_sided_flows(self) -> None:
        flows = [
            CashFlow(date=date(2021, 1, 1), amount=0.0),
            CashFlow(date=date(2021, 1, 1), amount=0.0),
        ]

        assert calculate_xirr(flows) == 0.0

    def test_build_cash_flows(self) -> None:
        ledger = [
            make_tx(date(2024, 1, 1), 100.0, invested=100.0, shares=1.0, accumulated=1.0),
            make_tx(date(2024, 2, 1), 250.0, invested=100.0, shares=1.0, accumulated=2.0),
        ]

        flows = build_cash_flows(ledger, final_value=250.0)

        assert [f.amount for f in flows] == [-100.0, -100.0, 250.0]
        assert flows[-1].date == date(2024, 2, 1)

    def test_build_cash_flows_empty(self) -> None:
        assert build_cash_flows([], final_value=0.0) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
