"""交易策略：RSI 超卖入场，止损 / 止盈 / 超买出场"""

from typing import Optional

from .models import BacktestConfig, Position

ATR_STOP = "atr_stop"
STOP_LOSS = "stop_loss"
TAKE_PROFIT = "take_profit"
SIGNAL = "signal"
OPEN = "open"


class EntryExitStrategy:
    """入场/出场规则"""

    def __init__(self, config: BacktestConfig):
        self.config = config

    def exit_reason(self, position: Position, close: float,
                    rsi: Optional[float]) -> Optional[str]:
        """
        判断持仓是否出场，按优先级：ATR 止损 > 固定止损 > 止盈 > 超买信号

        Returns:
            出场原因；不出场返回 None
        """
        cfg = self.config
        profit_pct = (close - position.entry_price) / position.entry_price

        if cfg.use_atr_stop:
            if close <= position.stop_loss_price:
                return ATR_STOP
        elif profit_pct <= cfg.stop_loss:
            return STOP_LOSS

        if profit_pct >= cfg.take_profit:
            return TAKE_PROFIT
        if rsi is not None and rsi >= cfg.rsi_overbought:
            return SIGNAL
        return None

    def should_enter(self, close: float, rsi: Optional[float], ma: Optional[float],
                     atr: Optional[float]) -> bool:
        cfg = self.config
        if rsi is None or rsi >= cfg.rsi_oversold:
            return False
        if cfg.use_trend_filter and (ma is None or close <= ma):
            return False
        if cfg.use_atr_stop and atr is None:
            return False
        return True

    def stop_loss_price(self, close: float, atr: Optional[float]) -> float:
        """开仓时确定的止损价"""
        if self.config.use_atr_stop and atr is not None:
            return close - atr * self.config.atr_multiplier
        return close * (1 + self.config.stop_loss)
