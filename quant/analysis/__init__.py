"""行情辅助分析与策略适配度评估"""

from .market import (
    MomentumAnalysis,
    CandlestickPattern,
    KeyPriceLevels,
    analyze_momentum,
    identify_candlestick_patterns,
    calculate_key_price_levels,
)
from .suitability import (
    StrategyRecommendation,
    EntryPoint,
    ExitPoint,
    evaluate_scalping,
    evaluate_swing,
    evaluate_strategies,
)

__all__ = [
    "MomentumAnalysis",
    "CandlestickPattern",
    "KeyPriceLevels",
    "analyze_momentum",
    "identify_candlestick_patterns",
    "calculate_key_price_levels",
    "StrategyRecommendation",
    "EntryPoint",
    "ExitPoint",
    "evaluate_scalping",
    "evaluate_swing",
    "evaluate_strategies",
]
