"""日线形态信号单元测试"""

import pandas as pd
import pytest

from quant.indicators.core import calculate_ema
from quant.signals import daily
from quant.signals.daily import (
    analyze_daily_signals,
    calculate_dx,
    cross,
    hhv,
    llv,
    RELATIVE_BOTTOM,
    ABSOLUTE_BOTTOM,
    STAGE_START,
    PRE_TOP_EXIT,
    HEAVY_DISTRIBUTION,
)
from quant.signals.models import BUY, SELL


def make_daily(closes, volume=1_000_000):
    closes = [float(c) for c in closes]
    n = len(closes)
    return pd.DataFrame({
        "date": pd.bdate_range("2025-09-01", periods=n).strftime("%Y-%m-%d"),
        "open": closes,
        "high": [c + 0.1 for c in closes],
        "low": [c - 0.1 for c in closes],
        "close": closes,
        "volume": [float(volume)] * n,
    })


def fake_dx(n, points):
    """除 points 指定位置外 DX 均为 0"""
    values = [0.0] * n
    for pos, value in points.items():
        values[pos] = value
    return lambda closes: pd.Series(values, dtype="Float64")


def named(signals, name):
    return [s for s in signals if s.name == name]


class TestHelpers:
    """HHV / LLV / CROSS"""

    def test_hhv_llv_partial_window(self):
        values = [3.0, 1.0, 4.0, 1.0, 5.0]
        assert hhv(values, 3).tolist() == [3.0, 3.0, 4.0, 4.0, 5.0]
        assert llv(values, 3).tolist() == [3.0, 1.0, 1.0, 1.0, 1.0]

    def test_cross_constant(self):
        assert cross([-25.0, -21.0, -15.0, -30.0, -10.0], -20.0).tolist() == [
            False, False, True, False, True,
        ]

    def test_cross_equal_then_above(self):
        assert cross([1.0, 2.0, 3.0], [2.0, 2.0, 2.0]).tolist() == [False, False, True]


class TestCalculateDX:
    """DX 动量线"""

    def test_warmup(self):
        dx = calculate_dx(list(range(1, 31)))
        assert dx.iloc[:10].isna().all()
        assert dx.iloc[10:].notna().all()

    def test_rising_is_100(self):
        dx = calculate_dx([10 + i for i in range(30)])
        assert dx.iloc[10:].tolist() == pytest.approx([100.0] * 20)

    def test_falling_is_minus_100(self):
        dx = calculate_dx([50 - i for i in range(30)])
        assert dx.iloc[-1] == pytest.approx(-100.0)

    def test_flat_is_zero(self):
        dx = calculate_dx([10.0] * 30)
        assert dx.iloc[10:].tolist() == [0.0] * 20


class TestBuyPatterns:
    """买入形态"""

    def test_relative_bottom(self):
        frame = make_daily([10.0] * 59 + [9.0, 9.4])
        frame.loc[60, "low"] = 8.8
        found = named(analyze_daily_signals(frame), RELATIVE_BOTTOM)
        assert len(found) == 1
        signal = found[0]
        assert signal.type == BUY
        assert signal.time == frame["date"].iloc[60]
        assert signal.price == 9.4
        assert signal.strength == 75
        assert signal.confidence == 70
        assert signal.reasons[1] == "当日涨幅: 4.44%"
        assert signal.take_profit == pytest.approx(9.4 * 1.08)
        assert signal.stop_loss == pytest.approx(8.8 * 0.97)

    def test_absolute_bottom(self):
        closes = [10.0] * 50 + [7.5] + [9.0] * 9
        frame = make_daily(closes)
        found = named(analyze_daily_signals(frame), ABSOLUTE_BOTTOM)
        assert len(found) == 1
        signal = found[0]
        # 第 50 根偏离度约 -23%，第 51 根回到 -7% 上穿 -20
        assert signal.time == frame["date"].iloc[51]
        assert signal.take_profit == pytest.approx(float(calculate_ema(closes, 21).iloc[51]))
        assert signal.stop_loss == pytest.approx(8.9 * 0.96)

    def test_stage_start(self, monkeypatch):
        monkeypatch.setattr(daily, "calculate_dx", fake_dx(60, {40: -10, 41: -30, 42: -20}))
        frame = make_daily([10.0] * 60)
        signals = analyze_daily_signals(frame)
        assert [(s.name, s.time) for s in signals] == [(STAGE_START, frame["date"].iloc[42])]
        assert signals[0].take_profit == pytest.approx(11.0)
        assert signals[0].stop_loss == pytest.approx(9.5)


class TestSellPatterns:
    """卖出形态"""

    def test_pre_top_exit(self, monkeypatch):
        monkeypatch.setattr(daily, "calculate_dx", fake_dx(60, {40: 60, 41: 80, 42: 78}))
        frame = make_daily([10.0] * 60)
        signals = analyze_daily_signals(frame)
        assert [(s.name, s.type) for s in signals] == [(PRE_TOP_EXIT, SELL)]
        assert signals[0].time == frame["date"].iloc[42]
        assert signals[0].take_profit == pytest.approx(9.5)
        assert signals[0].stop_loss == pytest.approx(10.1 * 1.02)

    def test_heavy_distribution(self):
        frame = make_daily([10.0] * 60)
        frame.loc[59, ["open", "high", "volume"]] = [10.2, 10.25, 2_000_000.0]
        found = named(analyze_daily_signals(frame), HEAVY_DISTRIBUTION)
        assert len(found) == 1
        assert found[0].type == SELL
        assert found[0].take_profit == pytest.approx(9.2)
        assert found[0].stop_loss == pytest.approx(10.25 * 1.01)

    def test_no_spike_no_signal(self):
        frame = make_daily([10.0] * 60)
        frame.loc[59, ["open", "high"]] = [10.2, 10.25]
        assert named(analyze_daily_signals(frame), HEAVY_DISTRIBUTION) == []


class TestPairing:
    """配对与只做多模式"""

    DX = {40: -10, 41: -30, 42: -20, 45: -10, 46: -30, 47: -20, 50: 60, 51: 80, 52: 78}

    def closes(self):
        return [10.0] * 50 + [11.0] * 10

    def test_fifo_pairing(self, monkeypatch):
        monkeypatch.setattr(daily, "calculate_dx", fake_dx(60, self.DX))
        signals = analyze_daily_signals(make_daily(self.closes()))
        assert [s.type for s in signals] == [BUY, BUY, SELL]
        assert signals[0].pairing.trade_id == 1
        assert signals[0].pairing.profit_loss == pytest.approx(1.0)
        assert signals[1].pairing is None

    def test_long_only(self, monkeypatch):
        monkeypatch.setattr(daily, "calculate_dx", fake_dx(60, self.DX))
        frame = make_daily(self.closes())
        signals = analyze_daily_signals(frame, long_only=True)
        assert [(s.type, s.time) for s in signals] == [
            (BUY, frame["date"].iloc[42]), (SELL, frame["date"].iloc[52]),
        ]
        assert signals[1].reasons[-1] == "平仓盈亏: +10.00%"
        assert signals[1].pairing.profit_loss_percent == pytest.approx(10.0)

    def test_long_only_open_position(self, monkeypatch):
        monkeypatch.setattr(daily, "calculate_dx", fake_dx(60, {40: -10, 41: -30, 42: -20}))
        signals = analyze_daily_signals(make_daily(self.closes()), long_only=True)
        assert len(signals) == 1
        assert signals[0].reasons[-1] == "【持仓中】浮动盈亏: +10.00%"
        assert signals[0].pairing is None


class TestShortData:
    """数据不足"""

    def test_fewer_than_60_bars(self):
        assert analyze_daily_signals(make_daily([10.0] * 59)) == []

    def test_signal_name_in_dict(self, monkeypatch):
        monkeypatch.setattr(daily, "calculate_dx", fake_dx(60, {40: 60, 41: 80, 42: 78}))
        data = analyze_daily_signals(make_daily([10.0] * 60))[0].to_dict()
        assert data["signal_name"] == PRE_TOP_EXIT
