"""
买卖信号生成

逐根 K 线评估多个独立规则，累计多空强度和原因：
- RSI 超买超卖
- MACD 柱线金叉/死叉
- 价格穿越布林带上下轨（均值回归）
- 价格触及已确认的支撑/压力位并同向运动
- 成交量放大（相对前 5 根均量 > 2 倍）

至少两个规则触发且强度 >= 40 才记录信号，输出是稀疏的。
"""

import logging
from typing import List, Optional

import pandas as pd

from quant.indicators.frame import indicator_snapshot, value_or_none
from quant.indicators.levels import find_pivot_levels
from .models import TradingSignal, BUY, SELL, HOLD

logger = logging.getLogger(__name__)

MIN_BARS = 30
START_INDEX = 20

# 规则权重
RSI_WEIGHT = 25
MACD_WEIGHT = 30
BOLLINGER_WEIGHT = 20
LEVEL_WEIGHT = 25
VOLUME_WEIGHT = 15

MIN_RULES = 2
MIN_STRENGTH = 40
LEVEL_TOLERANCE = 0.005
VOLUME_RATIO = 2.0

INSUFFICIENT_DATA_REASON = "数据不足，无法生成有效信号"


def bar_time(row: pd.Series) -> str:
    """K 线时间标签：优先 time 列，否则 date 列"""
    time = row.get("time")
    if time is not None and not pd.isna(time) and str(time) != "":
        return str(time)
    date = row.get("date")
    return "" if date is None or pd.isna(date) else str(date)


def insufficient_data_signal(row: pd.Series) -> TradingSignal:
    """数据不足时的中性信号"""
    return TradingSignal(
        time=bar_time(row),
        type=HOLD,
        price=float(row["close"]),
        strength=0,
        confidence=0,
        reasons=(INSUFFICIENT_DATA_REASON,),
    )


def _confidence(reasons: int, strength: float, rsi: Optional[float],
                macd_cross_up: bool, macd_cross_down: bool,
                price_up: bool, price_down: bool) -> float:
    confidence = 0
    if reasons >= 3:
        confidence += 30
    elif reasons >= 2:
        confidence += 20

    if strength >= 70:
        confidence += 30
    elif strength >= 50:
        confidence += 20
    elif strength >= 40:
        confidence += 10

    if rsi is not None:
        if rsi < 20 or rsi > 80:
            confidence += 20
        elif rsi < 30 or rsi > 70:
            confidence += 10

    # MACD 与价格方向一致
    if macd_cross_up and price_up:
        confidence += 20
    if macd_cross_down and price_down:
        confidence += 20

    return min(confidence, 100)


def _stops(signal_type: str, price: float, atr: Optional[float],
           stop_loss_pct: float, take_profit_pct: float,
           atr_multiplier: Optional[float]):
    """默认 ±2% 止损 / ±3% 目标，提供 ATR 倍数时改用 ATR 距离"""
    if atr_multiplier is not None and atr is not None:
        stop_distance = atr * atr_multiplier
        target_distance = atr * atr_multiplier * 1.5
        if signal_type == BUY:
            return price - stop_distance, price + target_distance
        return price + stop_distance, price - target_distance

    if signal_type == BUY:
        return price * (1 - stop_loss_pct / 100), price * (1 + take_profit_pct / 100)
    return price * (1 + stop_loss_pct / 100), price * (1 - take_profit_pct / 100)


def generate_signals(
    frame: pd.DataFrame,
    stop_loss_pct: float = 2.0,
    take_profit_pct: float = 3.0,
    atr_multiplier: Optional[float] = None,
    support_window: int = 5,
) -> List[TradingSignal]:
    """
    生成买卖信号

    Args:
        frame: add_indicators() 的输出，按时间升序
        stop_loss_pct: 默认止损百分比
        take_profit_pct: 默认目标百分比
        atr_multiplier: 设置后用 ATR × 倍数计算止损，目标为其 1.5 倍
        support_window: 支撑/压力位识别的左右窗口

    Returns:
        信号列表（只包含触发的 K 线）。少于 2 根时返回一个 hold 信号，
        少于 30 根时返回空列表。
    """
    if frame.empty:
        return []
    frame = frame.reset_index(drop=True)
    if len(frame) < 2:
        return [insufficient_data_signal(frame.iloc[-1])]
    if len(frame) < MIN_BARS:
        logger.debug(f"K 线 {len(frame)} 根，少于 {MIN_BARS} 根，不生成信号")
        return []

    closes = frame["close"].astype(float).tolist()
    volumes = frame["volume"].astype(float).tolist() if "volume" in frame.columns else [0.0] * len(frame)
    pivots = find_pivot_levels(frame["close"], support_window)

    signals: List[TradingSignal] = []

    for i in range(START_INDEX, len(frame)):
        row = frame.iloc[i]
        prev = frame.iloc[i - 1]
        price = closes[i]
        prev_price = closes[i - 1]
        price_up = price > prev_price
        price_down = price < prev_price

        reasons: List[str] = []
        bullish = 0
        bearish = 0

        # 1. RSI
        rsi = value_or_none(row.get("rsi"))
        if rsi is not None:
            if rsi < 30:
                reasons.append(f"RSI超卖（{rsi:.1f}）")
                bullish += RSI_WEIGHT
            elif rsi > 70:
                reasons.append(f"RSI超买（{rsi:.1f}）")
                bearish += RSI_WEIGHT

        # 2. MACD 柱线穿越零轴
        hist = value_or_none(row.get("macd_histogram"))
        prev_hist = value_or_none(prev.get("macd_histogram"))
        macd_cross_up = hist is not None and prev_hist is not None and prev_hist <= 0 < hist
        macd_cross_down = hist is not None and prev_hist is not None and prev_hist >= 0 > hist
        if macd_cross_up:
            reasons.append("MACD金叉")
            bullish += MACD_WEIGHT
        elif macd_cross_down:
            reasons.append("MACD死叉")
            bearish += MACD_WEIGHT

        # 3. 布林带
        lower = value_or_none(row.get("bollinger_lower"))
        upper = value_or_none(row.get("bollinger_upper"))
        if lower is not None and price < lower and prev_price >= lower:
            reasons.append("跌破布林带下轨")
            bullish += BOLLINGER_WEIGHT
        elif upper is not None and price > upper and prev_price <= upper:
            reasons.append("突破布林带上轨")
            bearish += BOLLINGER_WEIGHT

        # 4. 支撑/压力位，只使用当前 K 线之前已确认的价位
        confirmed = [p for p in pivots if p.confirmed_at < i]
        near_support = any(
            p.kind == "support" and abs(price - p.price) / p.price < LEVEL_TOLERANCE
            for p in confirmed if p.price > 0
        )
        near_resistance = any(
            p.kind == "resistance" and abs(price - p.price) / p.price < LEVEL_TOLERANCE
            for p in confirmed if p.price > 0
        )
        if near_support and price_up:
            reasons.append("触及支撑位反弹")
            bullish += LEVEL_WEIGHT
        elif near_resistance and price_down:
            reasons.append("触及压力位回落")
            bearish += LEVEL_WEIGHT

        # 5. 成交量
        if i >= 5:
            avg_volume = sum(volumes[i - 5:i]) / 5
            if avg_volume > 0:
                volume_ratio = volumes[i] / avg_volume
                if volume_ratio > VOLUME_RATIO and price_up:
                    reasons.append(f"成交量放大{volume_ratio:.1f}倍")
                    bullish += VOLUME_WEIGHT
                elif volume_ratio > VOLUME_RATIO and price_down:
                    reasons.append(f"成交量放大{volume_ratio:.1f}倍")
                    bearish += VOLUME_WEIGHT

        strength = bullish + bearish
        if len(reasons) < MIN_RULES or strength < MIN_STRENGTH or bullish == bearish:
            continue

        signal_type = BUY if bullish > bearish else SELL
        strength = min(strength, 100)
        confidence = _confidence(
            len(reasons), strength, rsi,
            macd_cross_up, macd_cross_down, price_up, price_down,
        )
        atr = value_or_none(row.get("atr"))
        stop_loss, take_profit = _stops(
            signal_type, price, atr, stop_loss_pct, take_profit_pct, atr_multiplier,
        )

        signals.append(TradingSignal(
            time=bar_time(row),
            type=signal_type,
            price=price,
            strength=strength,
            confidence=confidence,
            reasons=tuple(reasons),
            stop_loss=stop_loss,
            take_profit=take_profit,
            indicators=indicator_snapshot(row),
        ))

    logger.debug(f"共 {len(frame)} 根 K 线，生成 {len(signals)} 个信号")
    return signals
