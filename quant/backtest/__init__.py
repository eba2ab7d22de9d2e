"""单标的回测：参数、引擎、指标、报告"""

from .models import BacktestConfig, BacktestResult, TradeRecord, EquityPoint, Position
from .engine import BacktestEngine, run_backtest
from .metrics import calc_metrics
from .grid_search import grid_search
from .report import print_report, export_csv

__all__ = [
    "BacktestConfig",
    "BacktestResult",
    "TradeRecord",
    "EquityPoint",
    "Position",
    "BacktestEngine",
    "run_backtest",
    "calc_metrics",
    "grid_search",
    "print_report",
    "export_csv",
]
