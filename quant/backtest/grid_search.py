"""参数网格搜索：对 BacktestConfig 字段的每种组合跑一次回测，按总收益率排序"""

import itertools
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from .engine import BacktestEngine
from .models import BacktestConfig

logger = logging.getLogger(__name__)


def grid_search(
    bars: pd.DataFrame,
    base_config: Optional[BacktestConfig] = None,
    param_grid: Optional[Mapping[str, Sequence[Any]]] = None,
    initial_capital: float = 10_000,
    symbol: str = "",
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> List[Dict[str, Any]]:
    """
    网格搜索

    Args:
        bars: K 线数据
        base_config: 基础参数，网格中的字段会覆盖它
        param_grid: {字段名: 候选值列表}
        progress_callback: 每完成一组调用 (已完成数, 总数)

    Returns:
        每组一行 {参数..., total_return, max_drawdown, sharpe_ratio, win_rate,
        total_trades, profit_factor}，按 total_return 降序
    """
    base_config = base_config or BacktestConfig()
    param_grid = dict(param_grid or {})
    unknown = [k for k in param_grid if k not in base_config.to_dict()]
    if unknown:
        raise ValueError(f"未知参数: {unknown}")

    keys = list(param_grid.keys())
    combos = list(itertools.product(*(param_grid[k] for k in keys)))
    logger.info(f"网格搜索共 {len(combos)} 组")

    rows: List[Dict[str, Any]] = []
    for n, values in enumerate(combos, start=1):
        overrides = dict(zip(keys, values))
        config = base_config.with_overrides(**overrides)
        result = BacktestEngine(config, initial_capital=initial_capital).run(bars, symbol=symbol)
        row: Dict[str, Any] = dict(overrides)
        row.update({
            "total_return": result.total_return,
            "max_drawdown": result.max_drawdown,
            "sharpe_ratio": result.sharpe_ratio,
            "win_rate": result.win_rate,
            "total_trades": result.total_trades,
            "profit_factor": result.profit_factor,
        })
        rows.append(row)
        if progress_callback:
            progress_callback(n, len(combos))

    rows.sort(key=lambda r: r["total_return"], reverse=True)
    return rows
