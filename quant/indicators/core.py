"""
技术指标计算

所有函数都是纯函数：输入价格序列，输出等长的 pandas Series（Float64 可空类型）。
预热期内的值为 pd.NA，而不是 0 或 NaN，避免误参与运算。
"""

from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np
import pandas as pd

Values = Union[Sequence[float], np.ndarray, pd.Series]


@dataclass(frozen=True)
class MACDResult:
    """MACD 计算结果"""
    macd: pd.Series
    signal: pd.Series
    histogram: pd.Series


@dataclass(frozen=True)
class BollingerBands:
    """布林带计算结果"""
    upper: pd.Series
    middle: pd.Series
    lower: pd.Series


@dataclass(frozen=True)
class KDJResult:
    """KDJ 计算结果"""
    k: pd.Series
    d: pd.Series
    j: pd.Series


def _to_array(values: Values) -> np.ndarray:
    """转换为 float64 数组，缺失值用 NaN 表示（仅在内部计算中使用）"""
    return pd.Series(values).to_numpy(dtype="float64", na_value=np.nan)


def _index_of(values: Values) -> pd.Index:
    if isinstance(values, pd.Series):
        return values.index
    return pd.RangeIndex(len(values))


def _to_series(arr: np.ndarray, index: pd.Index) -> pd.Series:
    """内部 NaN 转为 pd.NA 输出"""
    return pd.Series(arr, index=index, dtype="float64").astype("Float64")


def _window_mean(arr: np.ndarray, period: int) -> np.ndarray:
    """逐窗口独立求均值，结果与窗口之前的数据无关"""
    result = np.full(len(arr), np.nan)
    if period <= 0 or len(arr) < period:
        return result
    windows = np.lib.stride_tricks.sliding_window_view(arr, period)
    result[period - 1:] = windows.mean(axis=1)
    return result


def _ema_values(arr: np.ndarray, period: int) -> np.ndarray:
    """
    EMA 递推

    以第一段连续 period 个有效值的 SMA 作为种子，之后
    ema[i] = (x[i] - ema[i-1]) * 2 / (period + 1) + ema[i-1]
    前导缺失值会被跳过（MACD 信号线需要）。
    """
    result = np.full(len(arr), np.nan)
    if period <= 0:
        return result

    defined = np.flatnonzero(~np.isnan(arr))
    if len(defined) == 0:
        return result
    start = int(defined[0])
    seed_end = start + period - 1
    if seed_end >= len(arr):
        return result

    multiplier = 2 / (period + 1)
    ema = float(np.mean(arr[start:seed_end + 1]))
    result[seed_end] = ema
    for i in range(seed_end + 1, len(arr)):
        ema = (arr[i] - ema) * multiplier + ema
        result[i] = ema
    return result


def calculate_sma(values: Values, period: int) -> pd.Series:
    """
    简单移动平均线

    Args:
        values: 价格序列
        period: 周期

    Returns:
        SMA 序列，前 period-1 个值为 NA
    """
    arr = _to_array(values)
    if period <= 0:
        return _to_series(np.full(len(arr), np.nan), _index_of(values))
    sma = pd.Series(arr).rolling(window=period, min_periods=period).mean()
    return _to_series(sma.to_numpy(dtype="float64"), _index_of(values))


def calculate_ema(values: Values, period: int) -> pd.Series:
    """指数移动平均线，以前 period 个值的 SMA 为种子"""
    return _to_series(_ema_values(_to_array(values), period), _index_of(values))


def calculate_rsi(values: Values, period: int = 14) -> pd.Series:
    """
    相对强弱指标

    使用最近 period 个涨跌幅的平均涨幅/平均跌幅。
    平均跌幅为 0 时 RSI = 100；窗口内完全无波动时 RSI = 50。

    Returns:
        RSI 序列，前 period 个值为 NA，取值范围 [0, 100]
    """
    arr = _to_array(values)
    result = np.full(len(arr), np.nan)
    if period <= 0 or len(arr) < period + 1:
        return _to_series(result, _index_of(values))

    delta = np.diff(arr)
    gains = np.where(delta > 0, delta, 0.0)
    losses = np.where(delta < 0, -delta, 0.0)
    avg_gain = _window_mean(gains, period)
    avg_loss = _window_mean(losses, period)

    for i in range(period - 1, len(delta)):
        g, l = avg_gain[i], avg_loss[i]
        if np.isnan(g) or np.isnan(l):
            continue
        if l == 0:
            rsi = 50.0 if g == 0 else 100.0
        else:
            rsi = 100 - 100 / (1 + g / l)
        # delta[i] 对应价格序列的第 i+1 根
        result[i + 1] = min(max(rsi, 0.0), 100.0)

    return _to_series(result, _index_of(values))


def calculate_macd(
    values: Values,
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MACDResult:
    """
    MACD

    macd = EMA(fast) - EMA(slow)
    signal = EMA(macd, signal_period)，只在 macd 有效部分上计算后对齐回原长度
    histogram = macd - signal
    """
    arr = _to_array(values)
    index = _index_of(values)

    macd = _ema_values(arr, fast_period) - _ema_values(arr, slow_period)
    signal = _ema_values(macd, signal_period)
    histogram = macd - signal

    return MACDResult(
        macd=_to_series(macd, index),
        signal=_to_series(signal, index),
        histogram=_to_series(histogram, index),
    )


def calculate_bollinger_bands(
    values: Values,
    period: int = 20,
    num_std: float = 2.0,
) -> BollingerBands:
    """布林带：中轨 SMA，上下轨 = 中轨 ± num_std × 总体标准差"""
    arr = _to_array(values)
    index = _index_of(values)
    if period <= 0:
        empty = np.full(len(arr), np.nan)
        return BollingerBands(_to_series(empty, index), _to_series(empty, index), _to_series(empty, index))

    rolling = pd.Series(arr).rolling(window=period, min_periods=period)
    middle = rolling.mean().to_numpy(dtype="float64")
    std = rolling.std(ddof=0).to_numpy(dtype="float64")
    # 常数窗口的浮点残差
    std = np.where(std < 1e-12, 0.0, std)

    return BollingerBands(
        upper=_to_series(middle + num_std * std, index),
        middle=_to_series(middle, index),
        lower=_to_series(middle - num_std * std, index),
    )


def calculate_kdj(high: Values, low: Values, close: Values, n: int = 9) -> KDJResult:
    """
    KDJ 随机指标

    RSV = (C - LLV(L, n)) / (HHV(H, n) - LLV(L, n)) * 100，HHV == LLV 时取 50
    K = (2 * K' + RSV) / 3，D = (2 * D' + K) / 3，J = 3K - 2D，K、D 初值 50
    """
    h, l, c = _to_array(high), _to_array(low), _to_array(close)
    index = _index_of(close)
    size = len(c)
    k = np.full(size, np.nan)
    d = np.full(size, np.nan)
    j = np.full(size, np.nan)

    if n <= 0:
        return KDJResult(k=_to_series(k, index), d=_to_series(d, index), j=_to_series(j, index))

    prev_k, prev_d = 50.0, 50.0
    for i in range(n - 1, size):
        highest = np.max(h[i - n + 1:i + 1])
        lowest = np.min(l[i - n + 1:i + 1])
        if np.isnan(highest) or np.isnan(lowest) or np.isnan(c[i]):
            continue
        if highest == lowest:
            rsv = 50.0
        else:
            rsv = (c[i] - lowest) / (highest - lowest) * 100
        cur_k = (2 * prev_k + rsv) / 3
        cur_d = (2 * prev_d + cur_k) / 3
        k[i], d[i], j[i] = cur_k, cur_d, 3 * cur_k - 2 * cur_d
        prev_k, prev_d = cur_k, cur_d

    return KDJResult(k=_to_series(k, index), d=_to_series(d, index), j=_to_series(j, index))


def _true_range_values(h: np.ndarray, l: np.ndarray, c: np.ndarray) -> np.ndarray:
    tr = np.full(len(c), np.nan)
    if len(c) == 0:
        return tr
    tr[0] = h[0] - l[0]
    for i in range(1, len(c)):
        tr[i] = max(h[i] - l[i], abs(h[i] - c[i - 1]), abs(l[i] - c[i - 1]))
    return tr


def calculate_true_range(high: Values, low: Values, close: Values) -> pd.Series:
    """真实波幅 TR，第一根 K 线取 high - low"""
    tr = _true_range_values(_to_array(high), _to_array(low), _to_array(close))
    return _to_series(tr, _index_of(close))


def calculate_atr(high: Values, low: Values, close: Values, period: int = 14) -> pd.Series:
    """
    平均真实波幅 ATR（Wilder 平滑）

    前 period 个 TR 的简单平均为种子，之后 atr = (atr' * (period - 1) + TR) / period
    """
    tr = _true_range_values(_to_array(high), _to_array(low), _to_array(close))
    result = np.full(len(tr), np.nan)
    if 0 < period <= len(tr):
        atr = float(np.mean(tr[:period]))
        result[period - 1] = atr
        for i in range(period, len(tr)):
            atr = (atr * (period - 1) + tr[i]) / period
            result[i] = atr
    return _to_series(result, _index_of(close))
