"""
为 K 线数据批量附加技术指标列
"""

import logging
from typing import Dict, Optional

import pandas as pd

from .core import (
    calculate_sma,
    calculate_rsi,
    calculate_macd,
    calculate_bollinger_bands,
    calculate_kdj,
    calculate_atr,
)

logger = logging.getLogger(__name__)

PRICE_COLUMNS = ["open", "high", "low", "close", "volume"]

INDICATOR_COLUMNS = [
    "ma5", "ma10", "ma20", "ma60",
    "rsi",
    "macd", "macd_signal", "macd_histogram",
    "bollinger_upper", "bollinger_middle", "bollinger_lower",
    "kdj_k", "kdj_d", "kdj_j",
    "atr",
]


def add_indicators(
    df: pd.DataFrame,
    rsi_period: int = 14,
    bollinger_period: int = 20,
    kdj_period: int = 9,
    atr_period: int = 14,
) -> pd.DataFrame:
    """
    计算全部指标并返回新的 DataFrame（不修改入参）

    Args:
        df: K 线数据，按时间升序，必须包含 open/high/low/close/volume 列

    Returns:
        附加了 INDICATOR_COLUMNS 的副本，预热期为 NA
    """
    missing = [c for c in PRICE_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"K 线数据缺少列: {missing}")

    frame = df.copy().reset_index(drop=True)
    close = frame["close"]

    for period in (5, 10, 20, 60):
        frame[f"ma{period}"] = calculate_sma(close, period)

    frame["rsi"] = calculate_rsi(close, rsi_period)

    macd = calculate_macd(close)
    frame["macd"] = macd.macd
    frame["macd_signal"] = macd.signal
    frame["macd_histogram"] = macd.histogram

    bands = calculate_bollinger_bands(close, bollinger_period, 2)
    frame["bollinger_upper"] = bands.upper
    frame["bollinger_middle"] = bands.middle
    frame["bollinger_lower"] = bands.lower

    kdj = calculate_kdj(frame["high"], frame["low"], close, kdj_period)
    frame["kdj_k"] = kdj.k
    frame["kdj_d"] = kdj.d
    frame["kdj_j"] = kdj.j

    frame["atr"] = calculate_atr(frame["high"], frame["low"], close, atr_period)

    if len(frame) < 60:
        logger.debug(f"K 线仅 {len(frame)} 根，ma60 等指标处于预热期")

    return frame


def value_or_none(value) -> Optional[float]:
    """NA → None，其余转 float"""
    if value is None or pd.isna(value):
        return None
    return float(value)


def indicator_snapshot(row: pd.Series) -> Dict[str, Optional[float]]:
    """取单行指标值，缺失为 None"""
    return {col: value_or_none(row.get(col)) for col in INDICATOR_COLUMNS if col in row.index}
