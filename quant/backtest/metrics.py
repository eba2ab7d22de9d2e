"""绩效指标计算"""

import math
from typing import Dict, List, Optional, Sequence

import numpy as np

from .models import EquityPoint, TradeRecord

TRADING_DAYS_PER_YEAR = 252


def max_drawdown(equity: Sequence[float]) -> float:
    """最大回撤（≤ 0 的小数），峰值从第一个权益点开始"""
    if len(equity) == 0:
        return 0.0
    peak = equity[0]
    worst = 0.0
    for value in equity:
        if value > peak:
            peak = value
        if peak > 0:
            drawdown = (value - peak) / peak
            if drawdown < worst:
                worst = drawdown
    return worst


def calc_metrics(
    trades: List[TradeRecord],
    equity_curve: List[EquityPoint],
    initial_capital: float,
    risk_free_rate: float = 0.03,
    final_capital: Optional[float] = None,
) -> Dict[str, float]:
    """
    计算回测绩效指标

    Args:
        trades: 交易记录（应已全部平仓）
        equity_curve: 权益曲线
        initial_capital: 初始资金
        risk_free_rate: 年化无风险利率
        final_capital: 期末资金（全部平仓后的现金）；缺省取权益曲线最后一点

    Returns:
        绩效指标字典，收益类指标均为小数
    """
    metrics: Dict[str, float] = {}

    equity = np.array([p.equity for p in equity_curve], dtype="float64")
    if final_capital is None:
        final_capital = float(equity[-1]) if len(equity) else initial_capital
    trading_days = len(equity)

    # 收益
    total_return = (final_capital - initial_capital) / initial_capital if initial_capital else 0.0
    metrics["final_capital"] = final_capital
    metrics["total_return"] = total_return
    metrics["annualized_return"] = (
        total_return * TRADING_DAYS_PER_YEAR / trading_days if trading_days else 0.0
    )
    metrics["max_drawdown"] = max_drawdown(equity)

    # 风险：日收益率的总体标准差
    if trading_days > 1:
        daily = equity[1:] / equity[:-1] - 1
        std = float(daily.std())
        mean = float(daily.mean())
    else:
        std = 0.0
        mean = 0.0
    metrics["volatility"] = std * math.sqrt(TRADING_DAYS_PER_YEAR)
    metrics["sharpe_ratio"] = (
        (mean - risk_free_rate / TRADING_DAYS_PER_YEAR) / std * math.sqrt(TRADING_DAYS_PER_YEAR)
        if std > 0 else 0.0
    )

    # 交易统计
    closed = [t for t in trades if t.profit is not None]
    winners = [t.profit for t in closed if t.profit > 0]
    losers = [t.profit for t in closed if t.profit <= 0]

    metrics["total_trades"] = len(closed)
    metrics["winning_trades"] = len(winners)
    metrics["losing_trades"] = len(losers)
    metrics["win_rate"] = len(winners) / len(closed) if closed else 0.0
    metrics["avg_profit"] = sum(winners) / len(winners) if winners else 0.0
    metrics["avg_loss"] = sum(losers) / len(losers) if losers else 0.0

    gross_loss = abs(sum(losers))
    if not winners:
        metrics["profit_factor"] = 0.0
    elif gross_loss > 0:
        metrics["profit_factor"] = sum(winners) / gross_loss
    else:
        metrics["profit_factor"] = float("inf")

    return metrics
