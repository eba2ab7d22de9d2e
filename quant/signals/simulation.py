"""
信号模拟交易

假设每个买入信号投入当前现金的固定比例，按配对的卖出信号平仓，
未配对的买入按当前价计算持仓市值。
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .models import TradingSignal, BUY


@dataclass
class SimulatedTrade:
    """单笔模拟交易"""
    trade_id: int
    buy_price: float
    buy_time: str
    shares: int
    sell_price: Optional[float] = None
    sell_time: Optional[str] = None
    profit: Optional[float] = None
    profit_percent: Optional[float] = None

    @property
    def is_open(self) -> bool:
        return self.sell_price is None


@dataclass
class SimulationResult:
    """模拟交易结果"""
    initial_capital: float
    final_capital: float
    total_profit: float
    total_profit_percent: float
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float               # 百分比
    open_positions: int
    open_positions_value: float
    cash: float
    trades: List[SimulatedTrade] = field(default_factory=list)


def simulate_signal_trades(
    signals: Sequence[TradingSignal],
    initial_capital: float = 10_000,
    current_price: float = 0,
    allocation: float = 0.3,
) -> SimulationResult:
    """
    按配对信号模拟交易盈亏

    Args:
        signals: pair_trades() 的输出
        initial_capital: 初始资金
        current_price: 当前价格，用于未平仓市值；为 0 时使用买入价
        allocation: 每次买入占当前现金的比例

    Returns:
        SimulationResult
    """
    cash = initial_capital
    winning = 0
    losing = 0
    open_positions = 0
    open_value = 0.0
    trades: List[SimulatedTrade] = []

    trade_id = 1
    for signal in signals:
        if signal.type != BUY or signal.price <= 0:
            continue
        shares = math.floor(cash * allocation / signal.price)
        if shares <= 0:
            continue

        cost = shares * signal.price
        cash -= cost
        trade = SimulatedTrade(
            trade_id=trade_id, buy_price=signal.price, buy_time=signal.time, shares=shares,
        )
        trade_id += 1

        if signal.pairing is not None:
            sell = signal.pairing.paired_signal
            proceeds = shares * sell.price
            cash += proceeds
            trade.sell_price = sell.price
            trade.sell_time = sell.time
            trade.profit = proceeds - cost
            trade.profit_percent = trade.profit / cost * 100
            if trade.profit > 0:
                winning += 1
            else:
                losing += 1
        else:
            open_positions += 1
            open_value += shares * (current_price or signal.price)

        trades.append(trade)

    total_trades = winning + losing
    final_capital = cash + open_value
    return SimulationResult(
        initial_capital=initial_capital,
        final_capital=final_capital,
        total_profit=final_capital - initial_capital,
        total_profit_percent=(final_capital - initial_capital) / initial_capital * 100 if initial_capital else 0.0,
        total_trades=total_trades,
        winning_trades=winning,
        losing_trades=losing,
        win_rate=winning / total_trades * 100 if total_trades else 0.0,
        open_positions=open_positions,
        open_positions_value=open_value,
        cash=cash,
        trades=trades,
    )
