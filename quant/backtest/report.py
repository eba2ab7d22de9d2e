"""回测报告：终端格式化 + CSV 导出"""

import csv
import logging

from .models import BacktestResult

logger = logging.getLogger(__name__)

EXIT_REASON_LABELS = {
    "atr_stop": "ATR止损",
    "stop_loss": "止损",
    "take_profit": "止盈",
    "signal": "超买信号",
    "open": "期末平仓",
}


def _signed_pct(value: float) -> str:
    sign = "+" if value >= 0 else ""
    return f"{sign}{value * 100:.2f}%"


def print_report(result: BacktestResult):
    """打印终端回测报告"""
    print()
    print("=" * 50)
    print(f"  回测报告：{result.symbol or '-'}")
    print(f"  回测区间：{result.start_date} ~ {result.end_date}（{result.trading_days} 根K线）")
    print(f"  初始资金：{result.initial_capital:,.0f}")
    print("=" * 50)

    print()
    print("【绩效概览】")
    print(f"  总收益率:      {_signed_pct(result.total_return)}")
    print(f"  年化收益率:    {_signed_pct(result.annualized_return)}")
    print(f"  最大回撤:      {result.max_drawdown * 100:.2f}%")
    print(f"  夏普比率:      {result.sharpe_ratio:.2f}")
    print(f"  年化波动率:    {result.volatility * 100:.2f}%")

    print()
    print("【交易统计】")
    print(f"  总交易笔数:    {result.total_trades}")
    if result.total_trades > 0:
        print(f"  胜率:          {result.win_rate * 100:.1f}%  ({result.winning_trades}/{result.total_trades})")
        print(f"  平均盈利:      {result.avg_profit:,.2f}")
        print(f"  平均亏损:      {result.avg_loss:,.2f}")
        print(f"  盈亏比:        {result.profit_factor:.2f}")

    if result.trades:
        print()
        recent = result.trades[-10:]
        print(f"【交易明细】(最近 {len(recent)} 笔)")
        print(f"  {'编号':>4}  {'买入日':>10}  {'卖出日':>10}  {'买入价':>8}  {'卖出价':>8}  {'收益率':>8}  原因")
        for t in recent:
            exit_price = t.exit_price if t.exit_price is not None else t.entry_price
            pct = t.profit_percent or 0.0
            print(
                f"  {t.trade_id:>4}  {t.entry_date:>10}  {t.exit_date or '-':>10}  "
                f"{t.entry_price:>8.2f}  {exit_price:>8.2f}  {_signed_pct(pct):>8}  "
                f"{EXIT_REASON_LABELS.get(t.exit_reason, t.exit_reason or '-')}"
            )

    print()
    print(f"  期末资金: {result.final_capital:,.2f}")
    print("=" * 50)
    print()


def export_csv(result: BacktestResult, path: str):
    """导出交易明细到 CSV"""
    with open(path, "w", newline="", encoding="utf-8-sig") as f:
        writer = csv.writer(f)
        writer.writerow([
            "编号", "买入日期", "买入时间", "买入价格",
            "卖出日期", "卖出时间", "卖出价格", "股数",
            "盈亏金额", "收益率(%)", "止损价", "出场原因",
        ])
        for t in result.trades:
            writer.writerow([
                t.trade_id, t.entry_date, t.entry_time, f"{t.entry_price:.2f}",
                t.exit_date or "", t.exit_time or "",
                f"{t.exit_price:.2f}" if t.exit_price is not None else "",
                t.shares,
                f"{t.profit:.2f}" if t.profit is not None else "",
                f"{t.profit_percent * 100:.2f}" if t.profit_percent is not None else "",
                f"{t.stop_loss_price:.2f}",
                t.exit_reason or "",
            ])
    logger.info(f"交易明细已导出: {path} ({len(result.trades)} 笔)")
