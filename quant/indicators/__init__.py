"""技术指标模块"""

from .core import (
    MACDResult,
    BollingerBands,
    KDJResult,
    calculate_sma,
    calculate_ema,
    calculate_rsi,
    calculate_macd,
    calculate_bollinger_bands,
    calculate_kdj,
    calculate_true_range,
    calculate_atr,
)
from .levels import PivotLevel, find_pivot_levels, identify_support_resistance
from .frame import INDICATOR_COLUMNS, add_indicators, indicator_snapshot, value_or_none

__all__ = [
    # 结果类型
    "MACDResult",
    "BollingerBands",
    "KDJResult",
    "PivotLevel",
    # 指标函数
    "calculate_sma",
    "calculate_ema",
    "calculate_rsi",
    "calculate_macd",
    "calculate_bollinger_bands",
    "calculate_kdj",
    "calculate_true_range",
    "calculate_atr",
    # 价位
    "find_pivot_levels",
    "identify_support_resistance",
    # DataFrame 辅助
    "INDICATOR_COLUMNS",
    "add_indicators",
    "indicator_snapshot",
    "value_or_none",
]
