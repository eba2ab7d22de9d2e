"""
回测 CLI 入口

用法:
    python -m quant.backtest --csv-in 600519.csv
    python -m quant.backtest --csv-in a.csv b.csv --take-profit 0.08 --use-atr-stop
    python -m quant.backtest --csv-in 600519.csv --csv result.csv
    python -m quant.backtest --csv-in 600519.csv --grid take_profit=0.03,0.05,0.08 --grid rsi_oversold=25,30

参数优先级：命令行 > 环境变量 BACKTEST_<FIELD> > 默认值
"""

import argparse
import logging
import os
import time
from typing import Any, Dict, List

from tqdm import tqdm

from quant.data.loader import load_price_bars
from quant.backtest.models import BacktestConfig
from quant.backtest.engine import BacktestEngine
from quant.backtest.grid_search import grid_search
from quant.backtest.report import print_report, export_csv

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def _parse_value(raw: str, default: Any) -> Any:
    if isinstance(default, bool):
        return raw.lower() in ("true", "1", "yes")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw


def parse_grid(items: List[str]) -> Dict[str, List[Any]]:
    """解析 --grid field=v1,v2,... 为参数网格"""
    defaults = BacktestConfig().to_dict()
    grid: Dict[str, List[Any]] = {}
    for item in items:
        name, sep, raw = item.partition("=")
        name = name.strip()
        if not sep or name not in defaults:
            raise ValueError(f"无效的网格参数: {item}")
        grid[name] = [_parse_value(v.strip(), defaults[name]) for v in raw.split(",") if v.strip()]
    return grid


def main():
    parser = argparse.ArgumentParser(description="单标的技术指标回测")
    parser.add_argument("--csv-in", nargs="+", required=True, help="K 线 CSV 文件，可多个")
    parser.add_argument(
        "--capital", type=float, default=10_000,
        help="初始资金（默认 10000）",
    )
    parser.add_argument("--rsi-period", type=int, help="RSI 周期（默认 14）")
    parser.add_argument("--rsi-overbought", type=float, help="RSI 超买阈值（默认 70）")
    parser.add_argument("--rsi-oversold", type=float, help="RSI 超卖阈值（默认 30）")
    parser.add_argument("--position-size", type=float, help="每次开仓占现金比例（默认 0.3）")
    parser.add_argument("--max-positions", type=int, help="最大同时持仓笔数（默认 3）")
    parser.add_argument("--stop-loss", type=float, help="止损比例，如 -0.03")
    parser.add_argument("--take-profit", type=float, help="止盈比例，如 0.05")
    parser.add_argument("--use-trend-filter", action="store_true", default=None, help="开启均线趋势过滤")
    parser.add_argument("--ma-period", type=int, help="趋势均线周期（默认 20）")
    parser.add_argument("--ma-type", choices=["SMA", "EMA"], help="趋势均线类型（默认 SMA）")
    parser.add_argument("--use-atr-stop", action="store_true", default=None, help="使用 ATR 止损")
    parser.add_argument("--atr-period", type=int, help="ATR 周期（默认 14）")
    parser.add_argument("--atr-multiplier", type=float, help="ATR 止损倍数（默认 2.0）")
    parser.add_argument(
        "--grid", action="append", default=[],
        help="网格搜索参数，如 take_profit=0.03,0.05；可重复",
    )
    parser.add_argument("--csv", type=str, help="导出交易明细到 CSV 文件（单文件回测时）")
    args = parser.parse_args()

    start_time = time.time()

    overrides = {
        name: getattr(args, name)
        for name in (
            "rsi_period", "rsi_overbought", "rsi_oversold", "position_size",
            "max_positions", "stop_loss", "take_profit", "use_trend_filter",
            "ma_period", "ma_type", "use_atr_stop", "atr_period", "atr_multiplier",
        )
        if getattr(args, name) is not None
    }
    config = BacktestConfig.from_env(**overrides)
    logger.info(f"回测参数: {config.to_dict()}")

    if args.grid:
        grid = parse_grid(args.grid)
        for path in args.csv_in:
            bars = load_price_bars(path)
            symbol = os.path.splitext(os.path.basename(path))[0]
            pbar = tqdm(desc=f"网格搜索 {symbol}")

            def progress_callback(current, total):
                pbar.total = total
                pbar.update(1)

            rows = grid_search(
                bars, config, grid, initial_capital=args.capital,
                symbol=symbol, progress_callback=progress_callback,
            )
            pbar.close()

            print(f"\n===== {symbol} 按收益率排序 TOP 10 =====")
            for row in rows[:10]:
                params = " ".join(f"{k}={row[k]}" for k in grid)
                print(
                    f"  {params} | 收益率 {row['total_return'] * 100:>+7.2f}% "
                    f"回撤 {row['max_drawdown'] * 100:>6.2f}% 夏普 {row['sharpe_ratio']:>5.2f} "
                    f"({row['total_trades']}笔 胜率{row['win_rate'] * 100:.0f}%)"
                )
    else:
        engine = BacktestEngine(config, initial_capital=args.capital)
        results = []
        for path in tqdm(args.csv_in, desc="回测", disable=len(args.csv_in) < 2):
            bars = load_price_bars(path)
            symbol = os.path.splitext(os.path.basename(path))[0]
            results.append(engine.run(bars, symbol=symbol))

        for result in results:
            print_report(result)

        if args.csv:
            if len(results) == 1:
                export_csv(results[0], args.csv)
            else:
                logger.warning("多文件回测不支持 --csv 导出，已忽略")

    duration = time.time() - start_time
    logger.info(f"回测完成，耗时 {duration:.1f} 秒")


if __name__ == "__main__":
    main()
