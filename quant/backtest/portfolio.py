"""仓位管理：现金、持仓、买卖成本"""

import math
from typing import List, Optional

from .models import BacktestConfig, Position, TradeRecord


class Portfolio:
    """单标的多笔持仓管理器"""

    def __init__(self, initial_capital: float, config: BacktestConfig):
        self.initial_capital = initial_capital
        self.cash = initial_capital
        self.config = config
        self.positions: List[Position] = []
        self.trades: List[TradeRecord] = []
        self._next_trade_id = 1

    @property
    def is_full(self) -> bool:
        return len(self.positions) >= self.config.max_positions

    def buy(self, price: float, index: int, date: str, time: str,
            stop_loss_price: float) -> Optional[TradeRecord]:
        """按现金比例买入；股数为 0 或资金不足时跳过"""
        if not math.isfinite(price) or price <= 0:
            return None
        shares = math.floor(self.cash * self.config.position_size / price)
        if shares <= 0:
            return None

        cost = price * shares * (1 + self.config.commission_rate)
        if cost > self.cash:
            return None

        self.cash -= cost
        trade_id = self._next_trade_id
        self._next_trade_id += 1
        self.positions.append(Position(
            trade_id=trade_id, entry_index=index, entry_price=price,
            shares=shares, stop_loss_price=stop_loss_price,
        ))
        record = TradeRecord(
            trade_id=trade_id, entry_date=date, entry_time=time,
            entry_price=price, shares=shares, stop_loss_price=round(stop_loss_price, 2),
        )
        self.trades.append(record)
        return record

    def sell(self, position: Position, price: float, date: str, time: str,
             reason: str) -> TradeRecord:
        """平仓并补全交易记录"""
        self.positions.remove(position)

        gross = price * position.shares
        buy_commission = position.entry_price * position.shares * self.config.commission_rate
        sell_commission = gross * self.config.commission_rate
        stamp_tax = gross * self.config.stamp_tax_rate
        self.cash += gross - sell_commission - stamp_tax

        record = self._record_of(position.trade_id)
        record.exit_date = date
        record.exit_time = time
        record.exit_price = price
        record.profit = round(
            (price - position.entry_price) * position.shares
            - buy_commission - sell_commission - stamp_tax, 2,
        )
        record.profit_percent = (price - position.entry_price) / position.entry_price
        record.exit_reason = reason
        return record

    def position_value(self, price: float) -> float:
        return sum(p.shares * price for p in self.positions)

    def _record_of(self, trade_id: int) -> TradeRecord:
        for record in self.trades:
            if record.trade_id == trade_id:
                return record
        raise ValueError(f"未知交易编号: {trade_id}")
