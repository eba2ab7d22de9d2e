"""
交易策略适配度评估

对同一标的评估两种风格：
- 剥头皮（scalping）：看流动性、震荡程度、日内波动
- 波段（swing）：看趋势强度、波动幅度、支撑压力清晰度
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from quant.indicators.frame import value_or_none
from quant.indicators.levels import identify_support_resistance
from quant.signals.summary import (
    SignalSummary, generate_signal_summary, STRONG_BUY, BUY, SELL, STRONG_SELL,
)

SCALPING = "scalping"
SWING = "swing"

HIGHLY_SUITABLE = "highly_suitable"
SUITABLE = "suitable"
MODERATE = "moderate"
NOT_SUITABLE = "not_suitable"

LOOKBACK = 20


@dataclass
class EntryPoint:
    price: float
    reason: str
    confidence: str            # high / medium / low


@dataclass
class ExitPoint:
    price: float
    type: str                  # take_profit / stop_loss
    reason: str


@dataclass
class StrategyRecommendation:
    """策略评估结果"""
    strategy_type: str
    strategy_name: str
    suitability_score: int
    recommendation: str
    entry_points: List[EntryPoint] = field(default_factory=list)
    exit_points: List[ExitPoint] = field(default_factory=list)
    holding_period: str = ""
    expected_return: str = ""
    risk_level: str = "medium"
    key_factors: List[str] = field(default_factory=list)
    operation_suggestions: List[str] = field(default_factory=list)


def _tier(score: float, thresholds) -> str:
    high, mid, low = thresholds
    if score >= high:
        return HIGHLY_SUITABLE
    if score >= mid:
        return SUITABLE
    if score >= low:
        return MODERATE
    return NOT_SUITABLE


def _latest_values(frame: pd.DataFrame) -> Dict[str, Optional[float]]:
    latest = frame.iloc[-1]
    keys = ("ma5", "ma10", "ma20", "ma60", "rsi", "macd", "macd_histogram",
            "bollinger_upper", "bollinger_middle", "bollinger_lower")
    return {k: value_or_none(latest.get(k)) for k in keys}


def _avg_range_pct(frame: pd.DataFrame) -> float:
    """最近 20 根 K 线 (high - low) / close 的平均值（%）"""
    recent = frame.tail(LOOKBACK)
    high = recent["high"].to_numpy(dtype="float64")
    low = recent["low"].to_numpy(dtype="float64")
    close = recent["close"].to_numpy(dtype="float64")
    with np.errstate(divide="ignore", invalid="ignore"):
        ranges = np.where(close > 0, (high - low) / close * 100, 0.0)
    return float(np.nan_to_num(ranges).sum() / len(recent))


def _liquidity_score(frame: pd.DataFrame) -> float:
    avg_volume = float(frame["volume"].tail(LOOKBACK).astype("float64").fillna(0).mean())
    return min(avg_volume / 1_000_000 * 20, 100)


def _oscillation_score(ind: Dict[str, Optional[float]]) -> float:
    upper, middle, lower = ind["bollinger_upper"], ind["bollinger_middle"], ind["bollinger_lower"]
    if upper is None or middle is None or lower is None or middle == 0:
        return 50
    bandwidth = (upper - lower) / middle * 100
    rsi = ind["rsi"]
    rsi_score = 80 if rsi is not None and 30 <= rsi <= 70 else 50
    band_score = 90 if bandwidth < 5 else 70 if bandwidth < 10 else 50
    return (rsi_score + band_score) / 2


def evaluate_scalping(frame: pd.DataFrame, current_price: Optional[float] = None) -> StrategyRecommendation:
    """
    剥头皮适配度

    Args:
        frame: add_indicators() 的输出，非空
        current_price: 当前价，默认取最新收盘价
    """
    if frame.empty:
        raise ValueError("K 线数据为空，无法评估策略")
    price = float(current_price if current_price is not None else frame["close"].iloc[-1])
    ind = _latest_values(frame)

    intraday_vol = _avg_range_pct(frame)
    liquidity = _liquidity_score(frame)
    oscillation = _oscillation_score(ind)
    score = round(liquidity * 0.4 + oscillation * 0.35 + (100 - intraday_vol * 10) * 0.25)
    score = int(max(0, min(100, score)))

    entries: List[EntryPoint] = []
    if score >= 70:
        entries.append(EntryPoint(price, "RSI处于中性区域，适合快速进场", "high"))
    ma5 = ind["ma5"]
    if ma5 is not None and price > 0 and abs(price - ma5) / price < 0.01:
        entries.append(EntryPoint(ma5, "价格接近5日均线，短期支撑位", "medium"))

    exits = [
        ExitPoint(round(price * 1.008, 2), "take_profit", "目标止盈0.8%，快速锁定利润"),
        ExitPoint(round(price * 0.995, 2), "stop_loss", "止损0.5%，严格控制风险"),
    ]

    factors = [
        "流动性充足，适合快速进出" if liquidity > 70 else "流动性一般，需注意滑点风险",
        "价格窄幅震荡，适合高频交易" if oscillation > 70 else "价格波动较大，需谨慎操作",
        "日内波动较小，风险可控" if intraday_vol < 2 else "日内波动较大，需快速决策",
    ]

    if score >= 75:
        suggestions = [
            "适合剥头皮策略，建议使用限价单快速进出",
            "设置严格的止损止盈，目标0.5%-1%收益",
            "关注分钟级K线，捕捉短期价格波动",
        ]
    elif score >= 55:
        suggestions = [
            "可尝试剥头皮，但需降低仓位",
            "选择流动性高的时段操作（开盘后30分钟和收盘前30分钟）",
        ]
    else:
        suggestions = ["当前不太适合剥头皮策略", "建议等待更好的市场环境或考虑其他策略"]
    rsi = ind["rsi"]
    if rsi is not None and rsi < 40:
        suggestions.append("RSI偏低，可考虑逢低买入")
    elif rsi is not None and rsi > 60:
        suggestions.append("RSI偏高，谨慎追高")

    return StrategyRecommendation(
        strategy_type=SCALPING,
        strategy_name="剥头皮策略",
        suitability_score=score,
        recommendation=_tier(score, (80, 65, 50)),
        entry_points=entries,
        exit_points=exits,
        holding_period="5-30分钟",
        expected_return="0.5%-1.5%",
        risk_level="low" if liquidity > 70 else "medium",
        key_factors=factors,
        operation_suggestions=suggestions,
    )


def _trend_strength(ind: Dict[str, Optional[float]]) -> float:
    score = 50
    macd = ind["macd"]
    if macd is not None and macd > 0:
        score += 20
    elif macd is not None and macd < 0:
        score += 10
    ma10, ma20, ma60 = ind["ma10"], ind["ma20"], ind["ma60"]
    if ma10 is not None and ma20 is not None and ma60 is not None:
        if ma10 > ma20 > ma60:
            score += 20
        elif ma10 < ma20 < ma60:
            score += 15
    return min(score, 100)


def _volatility_score(avg_range: float) -> float:
    if 3 <= avg_range <= 8:
        return 90
    if 2 <= avg_range <= 10:
        return 70
    return 50


def _nearest(levels: List[float], price: float) -> float:
    return min(levels, key=lambda v: abs(v - price))


def _clarity_score(support: List[float], resistance: List[float], price: float) -> float:
    if not support or not resistance or price <= 0:
        return 50
    space = (_nearest(resistance, price) - _nearest(support, price)) / price * 100
    if 5 <= space <= 15:
        return 90
    if 3 <= space <= 20:
        return 70
    return 50


def evaluate_swing(
    frame: pd.DataFrame,
    current_price: Optional[float] = None,
    summary: Optional[SignalSummary] = None,
) -> StrategyRecommendation:
    """
    波段交易适配度

    Args:
        frame: add_indicators() 的输出，非空
        current_price: 当前价，默认取最新收盘价
        summary: 最新综合信号，默认由 generate_signal_summary() 计算
    """
    if frame.empty:
        raise ValueError("K 线数据为空，无法评估策略")
    price = float(current_price if current_price is not None else frame["close"].iloc[-1])
    ind = _latest_values(frame)
    summary = summary or generate_signal_summary(frame)
    support, resistance = identify_support_resistance(frame["high"], frame["low"])

    trend = _trend_strength(ind)
    volatility = _volatility_score(_avg_range_pct(frame))
    clarity = _clarity_score(support, resistance, price)
    score = int(round(trend * 0.4 + volatility * 0.35 + clarity * 0.25))

    entries: List[EntryPoint] = []
    if support:
        entries.append(EntryPoint(
            _nearest(support, price), "关键支撑位，回调买入机会",
            "high" if score >= 70 else "medium",
        ))
    if ind["ma20"] is not None:
        entries.append(EntryPoint(ind["ma20"], "20日均线支撑，中期趋势参考", "medium"))
    if ind["bollinger_lower"] is not None:
        rsi = ind["rsi"]
        entries.append(EntryPoint(
            ind["bollinger_lower"], "布林带下轨，超卖反弹机会",
            "high" if rsi is not None and rsi < 35 else "medium",
        ))

    exits: List[ExitPoint] = []
    if resistance:
        exits.append(ExitPoint(_nearest(resistance, price), "take_profit", "关键阻力位，波段止盈目标"))
    if summary is not None and summary.take_profit:
        exits.append(ExitPoint(summary.take_profit, "take_profit", "技术分析目标价位"))
    if support:
        exits.append(ExitPoint(round(_nearest(support, price) * 0.98, 2), "stop_loss", "跌破支撑位止损，控制风险"))
    if summary is not None and summary.stop_loss:
        exits.append(ExitPoint(summary.stop_loss, "stop_loss", "技术分析止损价位"))

    signal = summary.signal if summary is not None else None
    factors = [
        "趋势明确，适合顺势波段操作" if trend > 70 else "趋势不明朗，需谨慎判断方向",
        "波动幅度适中，有足够的利润空间" if volatility > 70 else "波动较小，可能影响收益空间",
        "支撑阻力位清晰，便于设置止盈止损" if clarity > 70 else "支撑阻力位不明显，需结合其他指标",
    ]
    if signal in (STRONG_BUY, BUY):
        factors.append("技术信号偏多，可考虑做多波段")
    elif signal in (STRONG_SELL, SELL):
        factors.append("技术信号偏空，谨慎做多")

    if score >= 70:
        suggestions = [
            "适合波段交易，建议在支撑位附近分批建仓",
            "设置合理的止盈止损，目标收益5%-15%",
            "持仓周期3-10个交易日，关注日K线形态",
        ]
    elif score >= 50:
        suggestions = ["可尝试波段交易，但需降低仓位和预期收益", "严格执行止损纪律，避免深度套牢"]
    else:
        suggestions = ["当前不太适合波段交易", "建议等待趋势更加明确或考虑其他策略"]
    if signal == STRONG_BUY:
        suggestions.append("强烈买入信号，可适当加大仓位")
    elif signal == BUY:
        suggestions.append("买入信号，建议轻仓试探")
    elif signal in (SELL, STRONG_SELL):
        suggestions.append("卖出信号，不建议做多，可考虑观望")
    histogram = ind["macd_histogram"]
    if histogram is not None and histogram > 0:
        suggestions.append("MACD柱线为正，短期趋势向好")
    elif histogram is not None and histogram < 0:
        suggestions.append("MACD柱线为负，短期趋势偏弱")

    return StrategyRecommendation(
        strategy_type=SWING,
        strategy_name="波段交易策略",
        suitability_score=score,
        recommendation=_tier(score, (75, 60, 45)),
        entry_points=entries,
        exit_points=exits,
        holding_period="3-10个交易日",
        expected_return="5%-15%",
        risk_level="high" if volatility > 70 else "medium",
        key_factors=factors,
        operation_suggestions=suggestions,
    )


def evaluate_strategies(frame: pd.DataFrame, current_price: Optional[float] = None) -> Dict[str, StrategyRecommendation]:
    """同时评估两种策略"""
    return {
        SCALPING: evaluate_scalping(frame, current_price),
        SWING: evaluate_swing(frame, current_price),
    }
