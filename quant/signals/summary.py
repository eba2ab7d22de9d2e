"""
最新 K 线综合信号

对最新一根 K 线给出 STRONG_BUY / BUY / HOLD / SELL / STRONG_SELL 评级，
用于看板展示和波段策略评估。
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import pandas as pd

from quant.indicators.core import calculate_true_range
from quant.indicators.frame import value_or_none
from .generator import INSUFFICIENT_DATA_REASON

STRONG_BUY = "STRONG_BUY"
BUY = "BUY"
HOLD = "HOLD"
SELL = "SELL"
STRONG_SELL = "STRONG_SELL"


@dataclass
class SignalSummary:
    """综合信号"""
    signal: str
    confidence: float
    entry_price: float
    stop_loss: float
    take_profit: float
    reasons: List[str] = field(default_factory=list)

    @property
    def is_bullish(self) -> bool:
        return self.signal in (STRONG_BUY, BUY)

    @property
    def is_bearish(self) -> bool:
        return self.signal in (STRONG_SELL, SELL)


def _recent_atr(frame: pd.DataFrame, bars: int = 14) -> float:
    """最近 bars 根 K 线的平均真实波幅（不含第一根的 high-low）"""
    recent = frame.tail(bars)
    tr = calculate_true_range(recent["high"], recent["low"], recent["close"])
    values = tr.to_numpy(dtype="float64", na_value=np.nan)[1:]
    values = values[~np.isnan(values)]
    return float(values.mean()) if len(values) else 0.0


def generate_signal_summary(frame: pd.DataFrame) -> Optional[SignalSummary]:
    """
    根据最新 K 线的指标打分

    Args:
        frame: add_indicators() 的输出

    Returns:
        SignalSummary；空数据返回 None，少于 2 根返回 HOLD
    """
    if frame.empty:
        return None

    latest = frame.iloc[-1]
    close = float(latest["close"])
    if len(frame) < 2:
        return SignalSummary(
            signal=HOLD,
            confidence=0,
            entry_price=close,
            stop_loss=close * 0.95,
            take_profit=close * 1.05,
            reasons=[INSUFFICIENT_DATA_REASON],
        )
    prev = frame.iloc[-2]

    reasons: List[str] = []
    bullish = 0
    bearish = 0

    # RSI
    rsi = value_or_none(latest.get("rsi"))
    if rsi is not None and rsi < 30:
        bullish += 2
        reasons.append("RSI处于超卖区域（<30），可能出现反弹")
    elif rsi is not None and rsi > 70:
        bearish += 2
        reasons.append("RSI处于超买区域（>70），可能出现回调")

    # MACD
    macd = value_or_none(latest.get("macd"))
    macd_signal = value_or_none(latest.get("macd_signal"))
    prev_macd = value_or_none(prev.get("macd"))
    prev_signal = value_or_none(prev.get("macd_signal"))
    if macd is not None and macd_signal is not None:
        crossed = prev_macd is not None and prev_signal is not None
        if crossed and macd > macd_signal and prev_macd <= prev_signal:
            bullish += 3
            reasons.append("MACD金叉，短期趋势转强")
        elif crossed and macd < macd_signal and prev_macd >= prev_signal:
            bearish += 3
            reasons.append("MACD死叉，短期趋势转弱")
        elif macd > macd_signal:
            bullish += 1
            reasons.append("MACD处于多头状态")
        else:
            bearish += 1
            reasons.append("MACD处于空头状态")

    # 均线排列
    ma5 = value_or_none(latest.get("ma5"))
    ma10 = value_or_none(latest.get("ma10"))
    ma20 = value_or_none(latest.get("ma20"))
    if ma5 is not None and ma10 is not None and ma20 is not None:
        if ma5 > ma10 > ma20:
            bullish += 2
            reasons.append("均线呈多头排列")
        elif ma5 < ma10 < ma20:
            bearish += 2
            reasons.append("均线呈空头排列")

    # 布林带
    lower = value_or_none(latest.get("bollinger_lower"))
    upper = value_or_none(latest.get("bollinger_upper"))
    if lower is not None and close < lower:
        bullish += 1
        reasons.append("价格触及布林带下轨，可能反弹")
    elif upper is not None and close > upper:
        bearish += 1
        reasons.append("价格触及布林带上轨，可能回调")

    # 近 20 根涨跌幅
    if len(frame) >= 20:
        base = float(frame.iloc[-20]["close"])
        if base > 0:
            change = (close - base) / base * 100
            if change > 10:
                bullish += 1
                reasons.append(f"近期涨幅{change:.2f}%，趋势向上")
            elif change < -10:
                bearish += 1
                reasons.append(f"近期跌幅{abs(change):.2f}%，趋势向下")

    if bullish > bearish + 3:
        signal, confidence = STRONG_BUY, min(95, 70 + bullish * 5)
    elif bullish > bearish:
        signal, confidence = BUY, min(85, 60 + bullish * 5)
    elif bearish > bullish + 3:
        signal, confidence = STRONG_SELL, min(95, 70 + bearish * 5)
    elif bearish > bullish:
        signal, confidence = SELL, min(85, 60 + bearish * 5)
    else:
        signal, confidence = HOLD, 50
        reasons.append("多空力量均衡，建议观望")

    atr = _recent_atr(frame)
    if signal in (STRONG_BUY, BUY):
        stop_loss, take_profit = close - 2 * atr, close + 3 * atr
    else:
        stop_loss, take_profit = close + 2 * atr, close - 3 * atr

    return SignalSummary(
        signal=signal,
        confidence=confidence,
        entry_price=close,
        stop_loss=stop_loss,
        take_profit=take_profit,
        reasons=reasons,
    )
