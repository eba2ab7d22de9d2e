"""交易信号模块：生成、配对、共振、模拟"""

from .models import TradingSignal, TradePairing, ResonanceTag, SignalRef, BUY, SELL, HOLD
from .generator import generate_signals
from .summary import SignalSummary, generate_signal_summary
from .pairing import PairingSummary, pair_trades, summarize_pairs
from .resonance import (
    ResonanceAnalysis,
    analyze_resonance,
    analyze_multi_timeframe,
    enrich_signal_with_resonance,
    enrich_signals_with_resonance,
)
from .simulation import SimulationResult, SimulatedTrade, simulate_signal_trades
from .daily import analyze_daily_signals, calculate_dx

__all__ = [
    # 模型
    "TradingSignal",
    "TradePairing",
    "ResonanceTag",
    "SignalRef",
    "BUY",
    "SELL",
    "HOLD",
    # 生成
    "generate_signals",
    "SignalSummary",
    "generate_signal_summary",
    # 配对
    "PairingSummary",
    "pair_trades",
    "summarize_pairs",
    # 共振
    "ResonanceAnalysis",
    "analyze_resonance",
    "analyze_multi_timeframe",
    "enrich_signal_with_resonance",
    "enrich_signals_with_resonance",
    # 模拟
    "SimulationResult",
    "SimulatedTrade",
    "simulate_signal_trades",
    # 日线形态
    "analyze_daily_signals",
    "calculate_dx",
]
