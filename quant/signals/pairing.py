"""
买卖信号配对

按时间顺序单次遍历，用 FIFO 队列保存未平仓的买入信号：
每个卖出信号与最早的未配对买入配成一笔交易。
没有可配对买入的卖出信号、hold 信号原样保留。
"""

from collections import deque
from dataclasses import dataclass, replace
from typing import Deque, List, Sequence, Tuple

from .models import TradingSignal, TradePairing, BUY, SELL


@dataclass
class PairingSummary:
    """配对统计"""
    total_buys: int
    winning_trades: int
    losing_trades: int
    open_trades: int

    @property
    def closed_trades(self) -> int:
        return self.winning_trades + self.losing_trades


def pair_trades(signals: Sequence[TradingSignal]) -> List[TradingSignal]:
    """
    FIFO 配对

    Args:
        signals: 按时间升序的信号列表

    Returns:
        与输入等长、同顺序的新列表；已配对的买卖信号带 pairing 字段
    """
    result: List[TradingSignal] = list(signals)
    open_buys: Deque[Tuple[int, TradingSignal]] = deque()
    trade_id = 1

    for pos, signal in enumerate(signals):
        if signal.type == BUY:
            open_buys.append((pos, signal))
            continue
        if signal.type != SELL or not open_buys:
            continue

        buy_pos, buy = open_buys.popleft()
        profit_loss = signal.price - buy.price
        profit_loss_percent = profit_loss / buy.price * 100 if buy.price else 0.0

        result[buy_pos] = replace(buy, pairing=TradePairing(
            trade_id=trade_id,
            paired_signal=signal.ref(),
            profit_loss=profit_loss,
            profit_loss_percent=profit_loss_percent,
        ))
        result[pos] = replace(signal, pairing=TradePairing(
            trade_id=trade_id,
            paired_signal=buy.ref(),
            profit_loss=profit_loss,
            profit_loss_percent=profit_loss_percent,
        ))
        trade_id += 1

    return result


def summarize_pairs(signals: Sequence[TradingSignal]) -> PairingSummary:
    """统计买入信号的配对结果：盈利 + 亏损 + 未平仓 = 买入总数"""
    buys = [s for s in signals if s.type == BUY]
    winning = sum(1 for s in buys if s.pairing is not None and s.pairing.profit_loss > 0)
    losing = sum(1 for s in buys if s.pairing is not None and s.pairing.profit_loss <= 0)
    return PairingSummary(
        total_buys=len(buys),
        winning_trades=winning,
        losing_trades=losing,
        open_trades=len(buys) - winning - losing,
    )
