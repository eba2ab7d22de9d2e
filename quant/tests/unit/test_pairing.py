"""买卖信号配对单元测试"""

import pytest

from quant.signals.models import TradingSignal, SignalRef, BUY, SELL, HOLD
from quant.signals.pairing import pair_trades, summarize_pairs


def sig(time, type_, price):
    return TradingSignal(time=time, type=type_, price=price, strength=50, confidence=50)


class TestPairTrades:
    """FIFO 配对"""

    def test_closed_pair_and_open_buy(self):
        signals = [sig("1", BUY, 100), sig("2", SELL, 110), sig("3", BUY, 105)]
        paired = pair_trades(signals)

        buy, sell, open_buy = paired
        assert buy.pairing.trade_id == 1
        assert buy.pairing.profit_loss == pytest.approx(10)
        assert buy.pairing.profit_loss_percent == pytest.approx(10)
        assert buy.pairing.paired_signal == SignalRef("2", SELL, 110)
        assert sell.pairing.trade_id == 1
        assert sell.pairing.paired_signal == SignalRef("1", BUY, 100)
        assert open_buy.pairing is None
        assert not open_buy.is_paired

    def test_fifo_order(self):
        signals = [
            sig("1", BUY, 100), sig("2", BUY, 90),
            sig("3", SELL, 95), sig("4", SELL, 99),
        ]
        paired = pair_trades(signals)
        assert paired[2].pairing.paired_signal.time == "1"
        assert paired[2].pairing.profit_loss == pytest.approx(-5)
        assert paired[3].pairing.paired_signal.time == "2"
        assert paired[3].pairing.trade_id == 2

    def test_unmatched_sell_and_hold_unchanged(self):
        signals = [sig("1", SELL, 100), sig("2", HOLD, 100), sig("3", BUY, 100)]
        paired = pair_trades(signals)
        assert paired == signals
        assert all(s.pairing is None for s in paired)

    def test_same_length_and_order(self):
        signals = [sig(str(i), BUY if i % 3 else SELL, 100 + i) for i in range(10)]
        paired = pair_trades(signals)
        assert [s.time for s in paired] == [s.time for s in signals]

    def test_input_not_mutated(self):
        signals = [sig("1", BUY, 100), sig("2", SELL, 110)]
        pair_trades(signals)
        assert signals[0].pairing is None
        assert signals[1].pairing is None

    def test_idempotent(self):
        signals = [sig("1", BUY, 100), sig("2", SELL, 110), sig("3", BUY, 105)]
        assert pair_trades(signals) == pair_trades(signals)

    def test_to_dict_flattens_pairing(self):
        paired = pair_trades([sig("1", BUY, 100), sig("2", SELL, 120)])
        data = paired[0].to_dict()
        assert data["trade_id"] == 1
        assert data["paired_signal"] == {"time": "2", "type": "sell", "price": 120}
        assert data["profit_loss_percent"] == pytest.approx(20)


class TestSummarizePairs:
    """配对统计"""

    def test_count_identity(self):
        signals = [
            sig("1", BUY, 100), sig("2", SELL, 110),
            sig("3", BUY, 105), sig("4", SELL, 100),
            sig("5", BUY, 100), sig("6", SELL, 100),
            sig("7", BUY, 101),
        ]
        summary = summarize_pairs(pair_trades(signals))
        assert summary.total_buys == 4
        assert summary.winning_trades == 1
        # 打平计入亏损
        assert summary.losing_trades == 2
        assert summary.open_trades == 1
        assert summary.closed_trades + summary.open_trades == summary.total_buys

    def test_empty(self):
        summary = summarize_pairs([])
        assert summary.total_buys == 0
        assert summary.closed_trades == 0
