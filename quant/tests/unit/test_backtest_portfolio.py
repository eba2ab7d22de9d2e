"""仓位管理单元测试"""

import pytest

from quant.backtest.models import BacktestConfig
from quant.backtest.portfolio import Portfolio


class TestBuy:
    """买入"""

    def test_buy_with_commission(self):
        p = Portfolio(10_000, BacktestConfig())
        record = p.buy(100.0, 0, "2026-01-05", "", 97.0)
        assert record.shares == 30
        assert record.trade_id == 1
        assert p.cash == pytest.approx(10_000 - 3_009)
        assert len(p.positions) == 1

    def test_zero_shares_skipped(self):
        p = Portfolio(100, BacktestConfig())
        assert p.buy(50.0, 0, "2026-01-05", "", 48.0) is None
        assert p.cash == 100
        assert p.trades == []

    def test_cost_exceeds_cash_skipped(self):
        p = Portfolio(1_000, BacktestConfig(position_size=1.0))
        # 10 股 × 100 × 1.003 > 1000
        assert p.buy(100.0, 0, "2026-01-05", "", 97.0) is None
        assert p.cash == 1_000

    def test_is_full(self):
        p = Portfolio(100_000, BacktestConfig(max_positions=2))
        p.buy(10.0, 0, "d1", "", 9.7)
        assert not p.is_full
        p.buy(10.0, 1, "d2", "", 9.7)
        assert p.is_full

    def test_trade_ids_increment(self):
        p = Portfolio(100_000, BacktestConfig())
        ids = [p.buy(10.0, i, f"d{i}", "", 9.7).trade_id for i in range(3)]
        assert ids == [1, 2, 3]


class TestSell:
    """卖出"""

    def test_sell_costs_and_record(self):
        p = Portfolio(10_000, BacktestConfig())
        p.buy(100.0, 0, "2026-01-05", "", 97.0)
        position = p.positions[0]
        record = p.sell(position, 110.0, "2026-01-09", "", "take_profit")

        # 卖出所得 3300 - 佣金 9.9 - 印花税 3.3
        assert p.cash == pytest.approx(10_000 - 3_009 + 3_300 - 9.9 - 3.3)
        assert record.profit == pytest.approx(300 - 9 - 9.9 - 3.3)
        assert record.profit_percent == pytest.approx(0.1)
        assert record.exit_reason == "take_profit"
        assert record.exit_date == "2026-01-09"
        assert p.positions == []

    def test_position_value(self):
        p = Portfolio(100_000, BacktestConfig())
        p.buy(10.0, 0, "d1", "", 9.7)
        p.buy(10.0, 1, "d2", "", 9.7)
        shares = sum(pos.shares for pos in p.positions)
        assert p.position_value(12.0) == pytest.approx(shares * 12.0)

    def test_record_values_rounded(self):
        p = Portfolio(10_000, BacktestConfig())
        record = p.buy(100.0, 0, "d1", "", 96.123456)
        assert record.stop_loss_price == 96.12
        # Position 保留精确止损价
        assert p.positions[0].stop_loss_price == 96.123456
        record = p.sell(p.positions[0], 101.37, "d2", "", "signal")
        assert record.profit == round(record.profit, 2)


class TestInvalidPrice:
    """无效价格"""

    @pytest.mark.parametrize("price", [float("nan"), float("inf"), 0.0, -1.0])
    def test_buy_skipped(self, price):
        p = Portfolio(10_000, BacktestConfig())
        assert p.buy(price, 0, "d1", "", 97.0) is None
        assert p.cash == 10_000
        assert p.trades == []
