"""
多周期共振分析

比较同一标的多个时间周期的最新信号，两个及以上周期方向一致即视为共振。
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Optional, Sequence

from .models import TradingSignal, ResonanceTag, BUY, SELL, HOLD

MAX_TIMEFRAMES = 4
DEFAULT_TIMEFRAMES = ("5分钟", "15分钟", "30分钟", "60分钟")


@dataclass
class ResonanceAnalysis:
    """共振分析结果"""
    has_resonance: bool = False
    level: int = 0
    timeframes: List[str] = field(default_factory=list)
    signal_type: str = HOLD
    strength: int = 0
    description: str = "无明显共振信号"

    def to_dict(self) -> Dict:
        return {
            "has_resonance": self.has_resonance,
            "level": self.level,
            "timeframes": list(self.timeframes),
            "signal_type": self.signal_type,
            "strength": self.strength,
            "description": self.description,
        }


def _resonance_strength(level: int, signals: List[TradingSignal]) -> int:
    """级别 × 20 + 平均强度 × 0.4 + 平均置信度 × 0.4，上限 100"""
    if not signals:
        return min(level * 20, 100)
    avg_strength = sum(s.strength for s in signals) / len(signals)
    avg_confidence = sum(s.confidence for s in signals) / len(signals)
    return min(round(level * 20 + avg_strength * 0.4 + avg_confidence * 0.4), 100)


def analyze_resonance(latest: Mapping[str, Optional[TradingSignal]]) -> ResonanceAnalysis:
    """
    分析共振

    Args:
        latest: 有序映射 {周期名称: 该周期最新信号或 None}，最多 4 个周期

    Returns:
        ResonanceAnalysis
    """
    if len(latest) > MAX_TIMEFRAMES:
        raise ValueError(f"最多支持 {MAX_TIMEFRAMES} 个周期，收到 {len(latest)} 个")

    buy_frames = [tf for tf, s in latest.items() if s is not None and s.type == BUY]
    sell_frames = [tf for tf, s in latest.items() if s is not None and s.type == SELL]
    present = [s for s in latest.values() if s is not None]

    if len(buy_frames) >= 2:
        signal_type, frames, action = BUY, buy_frames, "买入"
    elif len(sell_frames) >= 2:
        signal_type, frames, action = SELL, sell_frames, "卖出"
    else:
        return ResonanceAnalysis()

    level = len(frames)
    return ResonanceAnalysis(
        has_resonance=True,
        level=level,
        timeframes=frames,
        signal_type=signal_type,
        strength=_resonance_strength(level, present),
        description=f"{level}个周期共振{action}信号（{'、'.join(frames)}）",
    )


def analyze_multi_timeframe(
    signal_lists: Sequence[Sequence[TradingSignal]],
    timeframes: Sequence[str] = DEFAULT_TIMEFRAMES,
) -> ResonanceAnalysis:
    """取每个周期信号列表的最后一个信号做共振分析"""
    if len(signal_lists) > len(timeframes):
        raise ValueError(f"周期名称不足：{len(signal_lists)} 组信号，{len(timeframes)} 个名称")
    latest = {
        tf: (signals[-1] if signals else None)
        for tf, signals in zip(timeframes, signal_lists)
    }
    return analyze_resonance(latest)


def enrich_signal_with_resonance(
    signal: TradingSignal,
    analysis: ResonanceAnalysis,
) -> TradingSignal:
    """方向一致的信号附加共振信息，强度 +level×5、置信度 +level×10（上限 100）"""
    if not analysis.has_resonance or signal.type != analysis.signal_type:
        return signal
    return replace(
        signal,
        resonance=ResonanceTag(level=analysis.level, timeframes=tuple(analysis.timeframes)),
        strength=min(signal.strength + analysis.level * 5, 100),
        confidence=min(signal.confidence + analysis.level * 10, 100),
    )


def enrich_signals_with_resonance(
    signals: Sequence[TradingSignal],
    analysis: ResonanceAnalysis,
) -> List[TradingSignal]:
    return [enrich_signal_with_resonance(s, analysis) for s in signals]
