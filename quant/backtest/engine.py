"""
回测引擎

单标的逐 K 线模拟，每根 K 线依次：
- 出场检查（逆序遍历持仓）
- 入场检查
- 记录权益
结束后按最后收盘价强制平仓剩余持仓。
"""

import logging
import math
from typing import List, Optional

import numpy as np
import pandas as pd

from quant.indicators.core import calculate_rsi, calculate_sma, calculate_ema, calculate_atr
from .models import BacktestConfig, BacktestResult, EquityPoint
from .portfolio import Portfolio
from .strategy import EntryExitStrategy, OPEN
from .metrics import calc_metrics

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["date", "high", "low", "close"]


def _valid_price(price: float) -> bool:
    return math.isfinite(price) and price > 0


def _optional_values(series: pd.Series) -> List[Optional[float]]:
    """nullable 序列转为 float / None 列表"""
    arr = series.to_numpy(dtype="float64", na_value=np.nan)
    return [None if np.isnan(v) else float(v) for v in arr]


class BacktestEngine:
    """回测引擎"""

    def __init__(
        self,
        config: Optional[BacktestConfig] = None,
        initial_capital: float = 10_000,
        risk_free_rate: float = 0.03,
    ):
        self.config = config or BacktestConfig()
        self.initial_capital = initial_capital
        self.risk_free_rate = risk_free_rate
        self.strategy = EntryExitStrategy(self.config)
        self._log_inert_fields()

    def _log_inert_fields(self):
        cfg = self.config
        inert = ["macd_fast", "macd_slow", "macd_signal"]
        if not cfg.use_trend_filter:
            inert += ["ma_period", "ma_type"]
        if not cfg.use_atr_stop:
            inert += ["atr_period", "atr_multiplier"]
        else:
            inert.append("stop_loss")
        logger.debug(f"本次回测未使用的参数: {', '.join(inert)}")

    @staticmethod
    def _snapshot(portfolio: Portfolio, mark: float, date: str, time: str) -> EquityPoint:
        cash = round(portfolio.cash, 2)
        position_value = round(portfolio.position_value(mark), 2)
        return EquityPoint(
            date=date, time=time,
            equity=round(cash + position_value, 2),
            cash=cash, position_value=position_value,
        )

    def run(self, bars: pd.DataFrame, symbol: str = "") -> BacktestResult:
        """
        运行回测

        Args:
            bars: K 线数据，按时间升序，包含 date/high/low/close，可选 time
            symbol: 标的代码，仅用于结果展示

        Returns:
            BacktestResult
        """
        if bars.empty:
            logger.info(f"{symbol or '标的'} 无 K 线数据，跳过回测")
            return BacktestResult(
                symbol=symbol, start_date="", end_date="", trading_days=0,
                initial_capital=self.initial_capital, final_capital=self.initial_capital,
            )

        missing = [c for c in REQUIRED_COLUMNS if c not in bars.columns]
        if missing:
            raise ValueError(f"K 线数据缺少列: {missing}")

        cfg = self.config
        portfolio = Portfolio(self.initial_capital, cfg)

        frame = bars.reset_index(drop=True)
        close_series = frame["close"].astype("float64")
        closes = close_series.tolist()
        rsi = _optional_values(calculate_rsi(close_series, cfg.rsi_period))
        ma_func = calculate_ema if cfg.ma_type == "EMA" else calculate_sma
        ma = _optional_values(ma_func(close_series, cfg.ma_period))
        atr = _optional_values(calculate_atr(frame["high"], frame["low"], close_series, cfg.atr_period))
        dates = frame["date"].astype(str).tolist()
        if "time" in frame.columns:
            times = frame["time"].fillna("").astype(str).tolist()
        else:
            times = [""] * len(frame)

        equity_curve: List[EquityPoint] = []
        last_valid: Optional[int] = None
        skipped = 0

        for i, close in enumerate(closes):
            if not _valid_price(close):
                # 收盘价缺失或非正：不交易，持仓沿用上一个有效收盘价估值
                skipped += 1
                mark = closes[last_valid] if last_valid is not None else 0.0
                equity_curve.append(self._snapshot(portfolio, mark, dates[i], times[i]))
                continue
            last_valid = i

            # (a) 出场
            for position in reversed(list(portfolio.positions)):
                reason = self.strategy.exit_reason(position, close, rsi[i])
                if reason is not None:
                    record = portfolio.sell(position, close, dates[i], times[i], reason)
                    logger.debug(
                        f"{dates[i]} 平仓 #{record.trade_id} @ {close:.2f} ({reason}), "
                        f"盈亏 {record.profit:.2f}"
                    )

            # (b) 入场
            if not portfolio.is_full and self.strategy.should_enter(close, rsi[i], ma[i], atr[i]):
                stop_price = self.strategy.stop_loss_price(close, atr[i])
                record = portfolio.buy(close, i, dates[i], times[i], stop_price)
                if record is not None:
                    logger.debug(
                        f"{dates[i]} 开仓 #{record.trade_id} @ {close:.2f} x {record.shares}, "
                        f"止损价 {stop_price:.2f}"
                    )

            # (c) 权益快照
            equity_curve.append(self._snapshot(portfolio, close, dates[i], times[i]))

        if skipped:
            logger.warning(f"{symbol or '标的'} 有 {skipped} 根 K 线收盘价无效，已跳过交易")

        # 强制平仓：按最后一个有效收盘价，成本规则与普通卖出相同
        if last_valid is not None:
            for position in list(portfolio.positions):
                portfolio.sell(
                    position, closes[last_valid], dates[last_valid], times[last_valid], OPEN,
                )

        # 全部平仓后现金即期末资金
        metrics = calc_metrics(
            portfolio.trades, equity_curve, self.initial_capital, self.risk_free_rate,
            final_capital=round(portfolio.cash, 2),
        )
        logger.info(
            f"{symbol or '标的'} 回测完成: {len(closes)} 根 K 线, "
            f"{metrics['total_trades']} 笔交易, 收益率 {metrics['total_return'] * 100:.2f}%"
        )

        return BacktestResult(
            symbol=symbol,
            start_date=dates[0],
            end_date=dates[-1],
            trading_days=len(closes),
            initial_capital=self.initial_capital,
            final_capital=metrics["final_capital"],
            total_return=metrics["total_return"],
            annualized_return=metrics["annualized_return"],
            max_drawdown=metrics["max_drawdown"],
            sharpe_ratio=metrics["sharpe_ratio"],
            volatility=metrics["volatility"],
            total_trades=metrics["total_trades"],
            winning_trades=metrics["winning_trades"],
            losing_trades=metrics["losing_trades"],
            win_rate=metrics["win_rate"],
            avg_profit=metrics["avg_profit"],
            avg_loss=metrics["avg_loss"],
            profit_factor=metrics["profit_factor"],
            equity_curve=equity_curve,
            trades=portfolio.trades,
        )


def run_backtest(
    bars: pd.DataFrame,
    config: Optional[BacktestConfig] = None,
    initial_capital: float = 10_000,
    symbol: str = "",
    risk_free_rate: float = 0.03,
) -> BacktestResult:
    """函数式入口"""
    engine = BacktestEngine(config, initial_capital=initial_capital, risk_free_rate=risk_free_rate)
    return engine.run(bars, symbol=symbol)
