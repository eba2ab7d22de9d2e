"""绩效指标单元测试"""

import math

import numpy as np
import pytest

from quant.backtest.metrics import calc_metrics, max_drawdown
from quant.backtest.models import EquityPoint, TradeRecord


def make_curve(values):
    return [
        EquityPoint(date=f"2026-01-{i + 1:02d}", time="", equity=v, cash=v, position_value=0.0)
        for i, v in enumerate(values)
    ]


def make_trade(trade_id, profit):
    return TradeRecord(
        trade_id=trade_id, entry_date="2026-01-01", entry_time="", entry_price=10.0,
        shares=100, stop_loss_price=9.7, exit_date="2026-01-05", exit_time="",
        exit_price=10.0 + profit / 100, profit=profit, profit_percent=profit / 1000,
        exit_reason="signal",
    )


class TestMaxDrawdown:
    """最大回撤"""

    def test_basic(self):
        assert max_drawdown([100, 120, 90, 130]) == pytest.approx(-0.25)

    def test_monotonic_rise(self):
        assert max_drawdown([100, 101, 102]) == 0.0

    def test_empty(self):
        assert max_drawdown([]) == 0.0


class TestCalcMetrics:
    """收益与风险"""

    def test_returns(self):
        m = calc_metrics([], make_curve([10_000, 10_500, 11_000]), 10_000)
        assert m["total_return"] == pytest.approx(0.1)
        assert m["annualized_return"] == pytest.approx(0.1 * 252 / 3)
        assert m["final_capital"] == 11_000

    def test_sharpe_and_volatility(self):
        values = [10_000, 10_100, 10_000, 10_300]
        m = calc_metrics([], make_curve(values), 10_000)
        daily = np.diff(values) / np.array(values[:-1])
        std = daily.std()
        assert m["volatility"] == pytest.approx(std * math.sqrt(252))
        assert m["sharpe_ratio"] == pytest.approx((daily.mean() - 0.03 / 252) / std * math.sqrt(252))

    def test_flat_curve(self):
        m = calc_metrics([], make_curve([10_000] * 5), 10_000)
        assert m["sharpe_ratio"] == 0.0
        assert m["volatility"] == 0.0
        assert m["max_drawdown"] == 0.0

    def test_empty_curve(self):
        m = calc_metrics([], [], 10_000)
        assert m["total_return"] == 0.0
        assert m["annualized_return"] == 0.0
        assert m["final_capital"] == 10_000

    def test_explicit_final_capital(self):
        # 期末平仓成本使现金低于最后一个权益点
        m = calc_metrics([], make_curve([10_000, 10_500]), 10_000, final_capital=10_480)
        assert m["final_capital"] == 10_480
        assert m["total_return"] == pytest.approx(0.048)
        assert m["annualized_return"] == pytest.approx(0.048 * 252 / 2)


class TestTradeStats:
    """交易统计"""

    def test_win_loss(self):
        trades = [make_trade(1, 100), make_trade(2, 50), make_trade(3, -30), make_trade(4, 0)]
        m = calc_metrics(trades, make_curve([10_000, 10_120]), 10_000)
        assert m["total_trades"] == 4
        assert m["winning_trades"] == 2
        assert m["losing_trades"] == 2
        assert m["win_rate"] == pytest.approx(0.5)
        assert m["avg_profit"] == pytest.approx(75)
        assert m["avg_loss"] == pytest.approx(-15)
        assert m["profit_factor"] == pytest.approx(5.0)

    def test_no_losses_is_infinite(self):
        m = calc_metrics([make_trade(1, 100)], make_curve([10_000, 10_100]), 10_000)
        assert m["profit_factor"] == float("inf")
        assert m["avg_loss"] == 0.0

    def test_no_winners(self):
        m = calc_metrics([make_trade(1, -100)], make_curve([10_000, 9_900]), 10_000)
        assert m["profit_factor"] == 0.0
        assert m["win_rate"] == 0.0

    def test_no_trades(self):
        m = calc_metrics([], make_curve([10_000]), 10_000)
        assert m["total_trades"] == 0
        assert m["win_rate"] == 0.0
        assert m["profit_factor"] == 0.0
