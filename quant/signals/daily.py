"""
日线形态信号

基于通达信公式的五类日线信号，至少需要 60 根日 K：
- 相对底部：创 60 日新低且当日涨幅 >= 4%
- 绝对底部：收盘价相对 EMA21 的偏离度上穿 -20%
- 阶段启动：DX 动量线从 7 日低点拐头，上穿其 2 日均线，且前两根有负值
- 预顶离场：DX 在 7 日高点附近下穿其 2 日均线，且前两根有 > 50 的值
- 大笔出货：放量 1.8 倍、最高价接近 21 日高点且收阴

输出经过 pair_trades 配对。long_only=True 时只保留空仓时的买入和持仓时的卖出，
与 A 股/港股只能做多的交易方式一致。
"""

import logging
from dataclasses import replace
from typing import List, Optional

import numpy as np
import pandas as pd

from quant.indicators.core import Values, _to_array, _to_series, _index_of, calculate_ema, calculate_sma
from .generator import bar_time
from .models import TradingSignal, BUY, SELL
from .pairing import pair_trades

logger = logging.getLogger(__name__)

MIN_BARS = 60
START_INDEX = 30

DX_PERIOD = 6
DX_WINDOW = 7
DEVIATION_LEVEL = -20.0
DX_OVERBOUGHT = 50.0
VOLUME_RATIO = 1.8

RELATIVE_BOTTOM = "相对底部"
ABSOLUTE_BOTTOM = "绝对底部"
STAGE_START = "阶段启动"
PRE_TOP_EXIT = "预顶离场"
HEAVY_DISTRIBUTION = "大笔出货"


def hhv(values: Values, period: int) -> np.ndarray:
    """N 周期最高值，开头不足 N 根时取已有部分"""
    return pd.Series(_to_array(values)).rolling(period, min_periods=1).max().to_numpy()


def llv(values: Values, period: int) -> np.ndarray:
    """N 周期最低值，开头不足 N 根时取已有部分"""
    return pd.Series(_to_array(values)).rolling(period, min_periods=1).min().to_numpy()


def cross(a, b) -> np.ndarray:
    """a 上穿 b：前一根 a <= b 且当前 a > b；b 可以是常数"""
    a = np.asarray(a, dtype="float64")
    b = np.broadcast_to(np.asarray(b, dtype="float64"), a.shape)
    result = np.zeros(len(a), dtype=bool)
    if len(a) > 1:
        with np.errstate(invalid="ignore"):
            result[1:] = (a[:-1] <= b[:-1]) & (a[1:] > b[1:])
    return result


def calculate_dx(values: Values, period: int = DX_PERIOD) -> pd.Series:
    """
    DX 动量指标

    DX = 100 × EMA(EMA(MTM, N), N) / EMA(EMA(|MTM|, N), N)，MTM = C - REF(C, 1)，
    第一根的 MTM 记为 0。

    Returns:
        取值 [-100, 100] 的序列；平滑未完成的位置为 NA，完全无波动时为 0
    """
    closes = _to_array(values)
    mtm = np.zeros(len(closes))
    if len(closes) > 1:
        mtm[1:] = np.diff(closes)

    smooth = _to_array(calculate_ema(calculate_ema(mtm, period), period))
    smooth_abs = _to_array(calculate_ema(calculate_ema(np.abs(mtm), period), period))

    dx = np.full(len(closes), np.nan)
    defined = ~np.isnan(smooth_abs)
    with np.errstate(divide="ignore", invalid="ignore"):
        dx[defined] = np.where(smooth_abs[defined] == 0, 0.0, 100 * smooth[defined] / smooth_abs[defined])
    return _to_series(dx, _index_of(values))


def _defined(*values: float) -> bool:
    return not any(np.isnan(v) for v in values)


def _signal(row: pd.Series, type_: str, name: str, strength: float, confidence: float,
            reasons, take_profit: float, stop_loss: float, indicators) -> TradingSignal:
    return TradingSignal(
        time=bar_time(row),
        type=type_,
        price=float(row["close"]),
        strength=strength,
        confidence=confidence,
        reasons=tuple(reasons),
        stop_loss=stop_loss,
        take_profit=take_profit,
        indicators=indicators,
        name=name,
    )


def _scan(frame: pd.DataFrame) -> List[TradingSignal]:
    close = _to_array(frame["close"])
    open_ = _to_array(frame["open"])
    high = _to_array(frame["high"])
    low = _to_array(frame["low"])
    volume = _to_array(frame["volume"])

    ema21 = _to_array(calculate_ema(close, 21))
    with np.errstate(divide="ignore", invalid="ignore"):
        deviation = np.where(np.isnan(ema21) | (ema21 == 0), 0.0, (close - ema21) / ema21 * 100)
    deviation_cross = cross(deviation, DEVIATION_LEVEL)

    llv60 = llv(low, 60)
    hhv21 = hhv(high, 21)
    dx = _to_array(calculate_dx(close))
    dx_ma = _to_array(calculate_sma(dx, 2))

    signals: List[TradingSignal] = []
    for i in range(START_INDEX, len(frame)):
        row = frame.iloc[i]
        price = close[i]
        prev = close[i - 1] if close[i - 1] else price
        change_pct = (price - prev) / prev * 100 if prev else 0.0
        indicators = {
            "ema21": None if np.isnan(ema21[i]) else float(ema21[i]),
            "deviation": float(deviation[i]),
            "dx": None if np.isnan(dx[i]) else float(dx[i]),
        }

        # 买入
        if low[i] == llv60[i] and change_pct >= 4:
            signals.append(_signal(
                row, BUY, RELATIVE_BOTTOM, 75, 70,
                ["创60日新低后反弹", f"当日涨幅: {change_pct:.2f}%", "底部确认信号"],
                take_profit=price * 1.08, stop_loss=low[i] * 0.97, indicators=indicators,
            ))

        if deviation_cross[i]:
            target = ema21[i] if not np.isnan(ema21[i]) and ema21[i] else price * 1.05
            signals.append(_signal(
                row, BUY, ABSOLUTE_BOTTOM, 80, 75,
                ["EMA21偏离度突破-20", f"偏离度: {deviation[i]:.2f}%", "超卖后反转信号"],
                take_profit=float(target), stop_loss=low[i] * 0.96, indicators=indicators,
            ))

        window = dx[max(0, i - DX_WINDOW):i]
        if _defined(dx[i], dx[i - 1], dx[i - 2], dx_ma[i], dx_ma[i - 1]) and not np.isnan(window).any():
            # 前一根是 7 日最低点，当前拐头上穿均线
            turned_up = dx[i - 1] <= window.min()
            below_zero = dx[i - 1] < 0 or dx[i - 2] < 0
            cross_up = dx[i - 1] <= dx_ma[i - 1] and dx[i] > dx_ma[i]
            if turned_up and below_zero and cross_up:
                signals.append(_signal(
                    row, BUY, STAGE_START, 85, 80,
                    ["DX动量指标金叉", "超卖区域反转", "阶段性底部确认"],
                    take_profit=price * 1.10, stop_loss=price * 0.95, indicators=indicators,
                ))

            recent_high = dx[max(0, i - DX_WINDOW + 1):i + 1].max()
            near_high = dx[i] >= recent_high * 0.95
            above = dx[i - 1] > DX_OVERBOUGHT or dx[i - 2] > DX_OVERBOUGHT
            cross_down = dx[i - 1] >= dx_ma[i - 1] and dx[i] < dx_ma[i]
            if near_high and above and cross_down:
                signals.append(_signal(
                    row, SELL, PRE_TOP_EXIT, 80, 75,
                    ["DX动量指标死叉", "超买区域回落", "阶段性顶部预警"],
                    take_profit=price * 0.95, stop_loss=high[i] * 1.02, indicators=indicators,
                ))

        # 卖出：放量冲高回落
        avg_volume = np.nansum(volume[max(0, i - 5):i]) / 5
        if volume[i] > avg_volume * VOLUME_RATIO and high[i] >= hhv21[i] * 0.98 and price < open_[i]:
            signals.append(_signal(
                row, SELL, HEAVY_DISTRIBUTION, 85, 80,
                ["成交量异常放大", "价格接近阶段高点", "收盘价低于开盘价（冲高回落）"],
                take_profit=price * 0.92, stop_loss=high[i] * 1.01, indicators=indicators,
            ))

    return signals


def _long_only(signals: List[TradingSignal], current_price: Optional[float]) -> List[TradingSignal]:
    """单笔持仓：空仓才买、持仓才卖，其余信号丢弃"""
    result: List[TradingSignal] = []
    open_pos: Optional[int] = None
    for signal in signals:
        if signal.type == BUY and open_pos is None:
            open_pos = len(result)
            result.append(signal)
        elif signal.type == SELL and open_pos is not None:
            buy_price = result[open_pos].price
            pct = (signal.price - buy_price) / buy_price * 100 if buy_price else 0.0
            result.append(replace(signal, reasons=signal.reasons + (f"平仓盈亏: {pct:+.2f}%",)))
            open_pos = None

    if open_pos is not None and current_price:
        buy = result[open_pos]
        floating = (current_price - buy.price) / buy.price * 100 if buy.price else 0.0
        result[open_pos] = replace(buy, reasons=buy.reasons + (f"【持仓中】浮动盈亏: {floating:+.2f}%",))
    return result


def analyze_daily_signals(frame: pd.DataFrame, long_only: bool = False) -> List[TradingSignal]:
    """
    日线形态信号

    Args:
        frame: 日 K 数据，包含 open/high/low/close/volume，date 或 time 作为时间标签
        long_only: 只做多的单笔持仓模式（A 股、港股）

    Returns:
        配对后的信号列表；少于 60 根返回空列表
    """
    if len(frame) < MIN_BARS:
        return []

    frame = frame.reset_index(drop=True)
    signals = _scan(frame)
    if long_only:
        closes = _to_array(frame["close"])
        signals = _long_only(signals, float(closes[-1]) if not np.isnan(closes[-1]) else None)

    logger.debug(f"日线形态信号 {len(signals)} 个（{len(frame)} 根 K 线）")
    return pair_trades(signals)
