"""信号生成单元测试"""

import dataclasses

import numpy as np
import pandas as pd
import pytest

from quant.indicators.frame import INDICATOR_COLUMNS, add_indicators
from quant.signals.generator import generate_signals, INSUFFICIENT_DATA_REASON
from quant.signals.models import BUY, SELL, HOLD
from quant.signals.summary import generate_signal_summary, STRONG_BUY, HOLD as SUMMARY_HOLD


def make_frame(closes, volume=1_000_000, **indicators):
    """
    构造指标列全部为 NA 的 IndicatorFrame，再按 {列名: {位置: 值}} 填入指定指标
    """
    closes = [float(c) for c in closes]
    n = len(closes)
    frame = pd.DataFrame({
        "date": pd.bdate_range("2026-01-05", periods=n).strftime("%Y-%m-%d"),
        "open": closes,
        "high": [c + 0.1 for c in closes],
        "low": [c - 0.1 for c in closes],
        "close": closes,
        "volume": [float(volume)] * n,
    })
    for col in INDICATOR_COLUMNS:
        frame[col] = pd.array([pd.NA] * n, dtype="Float64")
    for col, values in indicators.items():
        for pos, value in values.items():
            frame.loc[pos, col] = value
    return frame


class TestGenerateSignals:
    """逐根 K 线规则评估"""

    def test_buy_on_rsi_and_macd_cross(self):
        frame = make_frame(
            [10] * 30,
            rsi={25: 25.0},
            macd_histogram={24: -0.1, 25: 0.1},
        )
        signals = generate_signals(frame)
        assert len(signals) == 1
        s = signals[0]
        assert s.type == BUY
        assert s.time == frame.loc[25, "date"]
        assert s.strength == 55
        assert s.reasons == ("RSI超卖（25.0）", "MACD金叉")
        # 2 条原因 20 + 强度 50~69 20 + RSI 25~30 10
        assert s.confidence == 50
        assert s.stop_loss == pytest.approx(9.8)
        assert s.take_profit == pytest.approx(10.3)
        assert s.indicators["rsi"] == pytest.approx(25.0)

    def test_sell_on_rsi_and_macd_cross(self):
        frame = make_frame(
            [10] * 30,
            rsi={25: 75.0},
            macd_histogram={24: 0.1, 25: -0.1},
        )
        signals = generate_signals(frame)
        assert [s.type for s in signals] == [SELL]
        assert signals[0].stop_loss == pytest.approx(10.2)
        assert signals[0].take_profit == pytest.approx(9.7)

    def test_single_rule_not_emitted(self):
        frame = make_frame([10] * 30, rsi={25: 25.0})
        assert generate_signals(frame) == []

    def test_balanced_rules_not_emitted(self):
        # 多：RSI 25 + 布林下轨 20；空：MACD 死叉 30 + 放量下跌 15
        closes = [10] * 25 + [9.9] * 5
        frame = make_frame(
            closes,
            rsi={25: 25.0},
            bollinger_lower={25: 9.95},
            macd_histogram={24: 0.1, 25: -0.1},
        )
        frame.loc[25, "volume"] = 3_000_000
        assert generate_signals(frame) == []

    def test_majority_direction_wins(self):
        closes = [10] * 25 + [9.9] * 5
        frame = make_frame(
            closes,
            rsi={25: 25.0},
            bollinger_lower={25: 9.95},
            macd_histogram={24: 0.1, 25: -0.1},
        )
        signals = generate_signals(frame)
        assert len(signals) == 1
        assert signals[0].type == BUY
        assert signals[0].strength == 75
        assert "跌破布林带下轨" in signals[0].reasons
        assert "MACD死叉" in signals[0].reasons

    def test_atr_stops(self):
        frame = make_frame(
            [10] * 30,
            rsi={25: 25.0},
            macd_histogram={24: -0.1, 25: 0.1},
            atr={25: 0.5},
        )
        s = generate_signals(frame, atr_multiplier=2.0)[0]
        assert s.stop_loss == pytest.approx(9.0)
        assert s.take_profit == pytest.approx(11.5)

    def test_support_bounce_uses_confirmed_pivot(self):
        closes = [12.0] * 30
        closes[15] = 10.0
        closes[24] = 10.0
        closes[25] = 10.03
        frame = make_frame(closes, rsi={25: 25.0})
        signals = generate_signals(frame)
        assert len(signals) == 1
        assert signals[0].type == BUY
        assert signals[0].reasons == ("RSI超卖（25.0）", "触及支撑位反弹")

    def test_unconfirmed_pivot_ignored(self):
        # 第 22 根的低点要到第 27 根才能确认
        closes = [12.0] * 30
        closes[22] = 10.0
        closes[24] = 10.0
        closes[25] = 10.03
        frame = make_frame(closes, rsi={25: 25.0})
        assert generate_signals(frame) == []

    def test_signals_before_start_index_ignored(self):
        frame = make_frame(
            [10] * 30,
            rsi={15: 25.0},
            macd_histogram={14: -0.1, 15: 0.1},
        )
        assert generate_signals(frame) == []

    def test_time_column_preferred(self):
        frame = make_frame(
            [10] * 30,
            rsi={25: 25.0},
            macd_histogram={24: -0.1, 25: 0.1},
        )
        frame["time"] = [f"{i:02d}:00" for i in range(30)]
        assert generate_signals(frame)[0].time == "25:00"


class TestShortData:
    """数据不足"""

    def test_empty(self):
        assert generate_signals(make_frame([])) == []

    def test_single_bar_hold(self):
        signals = generate_signals(make_frame([10]))
        assert len(signals) == 1
        assert signals[0].type == HOLD
        assert signals[0].strength == 0
        assert signals[0].reasons == (INSUFFICIENT_DATA_REASON,)

    def test_under_minimum_bars(self):
        frame = make_frame(
            [10] * 29,
            rsi={25: 25.0},
            macd_histogram={24: -0.1, 25: 0.1},
        )
        assert generate_signals(frame) == []


class TestSignalProperties:
    """信号不变量"""

    def make_random_frame(self):
        np.random.seed(21)
        closes = 20 + np.cumsum(np.random.normal(0, 0.6, 250))
        closes = np.maximum(closes, 1.0)
        volume = np.random.uniform(5e5, 3e6, 250)
        bars = pd.DataFrame({
            "date": pd.bdate_range("2025-01-02", periods=250).strftime("%Y-%m-%d"),
            "open": closes,
            "high": closes * 1.01,
            "low": closes * 0.99,
            "close": closes,
            "volume": volume,
        })
        return add_indicators(bars)

    def test_bounds(self):
        for s in generate_signals(self.make_random_frame()):
            assert 0 <= s.strength <= 100
            assert 0 <= s.confidence <= 100
            assert len(s.reasons) >= 2
            assert s.type in (BUY, SELL)

    def test_idempotent(self):
        frame = self.make_random_frame()
        assert generate_signals(frame) == generate_signals(frame)

    def test_frozen(self):
        frame = make_frame(
            [10] * 30,
            rsi={25: 25.0},
            macd_histogram={24: -0.1, 25: 0.1},
        )
        s = generate_signals(frame)[0]
        with pytest.raises(dataclasses.FrozenInstanceError):
            s.price = 11.0

    def test_to_dict(self):
        frame = make_frame(
            [10] * 30,
            rsi={25: 25.0},
            macd_histogram={24: -0.1, 25: 0.1},
        )
        data = generate_signals(frame)[0].to_dict()
        assert data["type"] == "buy"
        assert data["reasons"] == ["RSI超卖（25.0）", "MACD金叉"]
        assert data["indicators"]["ma60"] is None
        assert "trade_id" not in data


class TestSignalSummary:
    """最新 K 线综合信号"""

    def test_empty(self):
        assert generate_signal_summary(make_frame([])) is None

    def test_single_bar(self):
        summary = generate_signal_summary(make_frame([10]))
        assert summary.signal == SUMMARY_HOLD
        assert summary.confidence == 0
        assert summary.stop_loss == pytest.approx(9.5)
        assert summary.take_profit == pytest.approx(10.5)

    def test_strong_buy(self):
        closes = list(np.linspace(8, 10, 30))
        frame = make_frame(
            closes,
            rsi={29: 25.0},
            macd={28: -0.1, 29: 0.2},
            macd_signal={28: 0.0, 29: 0.0},
            ma5={29: 10.0},
            ma10={29: 9.5},
            ma20={29: 9.0},
        )
        summary = generate_signal_summary(frame)
        # RSI 2 + MACD 金叉 3 + 多头排列 2 + 涨幅 >10% 1 = 8
        assert summary.signal == STRONG_BUY
        assert summary.confidence == 95
        assert summary.is_bullish
        assert summary.stop_loss < summary.entry_price < summary.take_profit

    def test_balanced_is_hold(self):
        summary = generate_signal_summary(make_frame([10] * 30))
        assert summary.signal == SUMMARY_HOLD
        assert summary.confidence == 50
