"""
行情辅助分析：动能、K 线形态、关键价位
"""

from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd

from quant.indicators.frame import value_or_none
from quant.indicators.levels import identify_support_resistance

STRONG_UPTREND = "STRONG_UPTREND"
UPTREND = "UPTREND"
SIDEWAYS = "SIDEWAYS"
DOWNTREND = "DOWNTREND"
STRONG_DOWNTREND = "STRONG_DOWNTREND"

MOMENTUM_WINDOW = 20
RECENT_WINDOW = 30


@dataclass
class MomentumAnalysis:
    """动能分析"""
    upward_momentum: float     # 上涨 K 线占比（%）
    downward_momentum: float   # 下跌 K 线占比（%）
    trend: str
    strength: float


@dataclass
class CandlestickPattern:
    """K 线形态"""
    name: str
    type: str                  # BULLISH / BEARISH
    reliability: int
    description: str


@dataclass
class KeyPriceLevels:
    """关键价位"""
    current_price: float
    period_high: float
    period_low: float
    recent_high: float
    recent_low: float
    support: List[float] = field(default_factory=list)
    resistance: List[float] = field(default_factory=list)


def analyze_momentum(frame: pd.DataFrame) -> Optional[MomentumAnalysis]:
    """
    最近 20 根 K 线的涨跌占比 + 均线排列判断趋势

    Args:
        frame: add_indicators() 的输出

    Returns:
        MomentumAnalysis；空数据返回 None
    """
    if frame.empty:
        return None

    recent = frame["close"].astype("float64").tail(MOMENTUM_WINDOW)
    changes = recent.diff().dropna()
    upward = (changes > 0).sum() / len(recent) * 100
    downward = (changes < 0).sum() / len(recent) * 100

    latest = frame.iloc[-1]
    ma5 = value_or_none(latest.get("ma5"))
    ma20 = value_or_none(latest.get("ma20"))
    ma60 = value_or_none(latest.get("ma60"))

    # 均线缺失时视为横盘
    if ma5 is not None and ma20 is not None and ma5 > ma20:
        if ma60 is not None and ma20 > ma60:
            trend, strength = STRONG_UPTREND, 80 + upward / 5
        else:
            trend, strength = UPTREND, 60 + upward / 5
    elif ma5 is not None and ma20 is not None and ma5 < ma20:
        if ma60 is not None and ma20 < ma60:
            trend, strength = STRONG_DOWNTREND, 80 + downward / 5
        else:
            trend, strength = DOWNTREND, 60 + downward / 5
    else:
        trend, strength = SIDEWAYS, 40

    return MomentumAnalysis(
        upward_momentum=min(100.0, float(upward)),
        downward_momentum=min(100.0, float(downward)),
        trend=trend,
        strength=min(100.0, float(strength)),
    )


def identify_candlestick_patterns(df: pd.DataFrame) -> List[CandlestickPattern]:
    """识别最新两根 K 线的锤子线、看涨吞没、看跌吞没"""
    if len(df) < 2:
        return []

    latest = df.iloc[-1]
    prev = df.iloc[-2]
    o, h, l, c = (float(latest[k]) for k in ("open", "high", "low", "close"))
    po, pc = float(prev["open"]), float(prev["close"])

    patterns: List[CandlestickPattern] = []

    body = abs(c - o)
    lower_shadow = min(o, c) - l
    upper_shadow = h - max(o, c)
    if lower_shadow > body * 2 and upper_shadow < body * 0.5:
        patterns.append(CandlestickPattern(
            name="锤子线", type="BULLISH", reliability=70,
            description="下影线较长，可能是底部反转信号",
        ))

    if pc < po and c > o and c > po and o < pc:
        patterns.append(CandlestickPattern(
            name="看涨吞没", type="BULLISH", reliability=80,
            description="阳线完全吞没前一根阴线，强烈的反转信号",
        ))

    if pc > po and c < o and c < po and o > pc:
        patterns.append(CandlestickPattern(
            name="看跌吞没", type="BEARISH", reliability=80,
            description="阴线完全吞没前一根阳线，强烈的反转信号",
        ))

    return patterns


def calculate_key_price_levels(df: pd.DataFrame) -> Optional[KeyPriceLevels]:
    """当前价、区间高低点、最近 30 根高低点、支撑/压力位"""
    if df.empty:
        return None

    high = df["high"].astype("float64")
    low = df["low"].astype("float64")
    recent = df.tail(RECENT_WINDOW)
    support, resistance = identify_support_resistance(high, low)

    return KeyPriceLevels(
        current_price=float(df["close"].iloc[-1]),
        period_high=float(high.max()),
        period_low=float(low.min()),
        recent_high=float(recent["high"].max()),
        recent_low=float(recent["low"].min()),
        support=support,
        resistance=resistance,
    )
