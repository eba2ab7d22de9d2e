"""回测数据模型"""

import math
import os
from dataclasses import dataclass, field, fields, replace, asdict
from typing import Any, Dict, List, Optional

MA_TYPES = ("SMA", "EMA")


@dataclass(frozen=True)
class BacktestConfig:
    """回测参数（不可变）"""

    rsi_period: int = 14
    rsi_overbought: float = 70.0
    rsi_oversold: float = 30.0
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    use_trend_filter: bool = False
    ma_period: int = 20
    ma_type: str = "SMA"
    position_size: float = 0.3       # 每次开仓占现金比例
    max_positions: int = 3
    use_atr_stop: bool = False
    atr_period: int = 14
    atr_multiplier: float = 2.0
    stop_loss: float = -0.03         # 小数，≤ 0
    take_profit: float = 0.05        # 小数，> 0
    commission_rate: float = 0.003
    stamp_tax_rate: float = 0.001

    def __post_init__(self):
        for name in ("rsi_period", "macd_fast", "macd_slow", "macd_signal", "ma_period", "atr_period"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} 必须为正数，收到 {getattr(self, name)}")
        if self.rsi_oversold >= self.rsi_overbought:
            raise ValueError(
                f"rsi_oversold ({self.rsi_oversold}) 必须小于 rsi_overbought ({self.rsi_overbought})"
            )
        if not 0 < self.position_size <= 1:
            raise ValueError(f"position_size 必须在 (0, 1] 之间，收到 {self.position_size}")
        if self.max_positions < 1:
            raise ValueError(f"max_positions 至少为 1，收到 {self.max_positions}")
        if self.ma_type not in MA_TYPES:
            raise ValueError(f"未知均线类型: {self.ma_type}，可选: {', '.join(MA_TYPES)}")
        if self.stop_loss > 0:
            raise ValueError(f"stop_loss 应为非正小数，收到 {self.stop_loss}")
        if self.take_profit <= 0:
            raise ValueError(f"take_profit 应为正小数，收到 {self.take_profit}")
        if self.commission_rate < 0 or self.stamp_tax_rate < 0:
            raise ValueError("手续费率和印花税率不能为负")
        if self.atr_multiplier <= 0:
            raise ValueError(f"atr_multiplier 必须为正数，收到 {self.atr_multiplier}")

    @classmethod
    def from_env(cls, **overrides) -> "BacktestConfig":
        """
        从环境变量加载参数覆盖
        格式：BACKTEST_<FIELD>，如 BACKTEST_TAKE_PROFIT=0.08
        显式传入的 overrides 优先于环境变量
        """
        values: Dict[str, Any] = {}
        for f in fields(cls):
            env_value = os.environ.get(f"BACKTEST_{f.name.upper()}")
            if env_value is None:
                continue
            default_value = f.default
            # bool 是 int 的子类，需先判断
            if isinstance(default_value, bool):
                values[f.name] = env_value.lower() in ("true", "1", "yes")
            elif isinstance(default_value, int):
                values[f.name] = int(env_value)
            elif isinstance(default_value, float):
                values[f.name] = float(env_value)
            else:
                values[f.name] = env_value
        values.update(overrides)
        return cls(**values)

    def with_overrides(self, **kwargs) -> "BacktestConfig":
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Position:
    """持仓"""
    trade_id: int
    entry_index: int
    entry_price: float
    shares: int
    stop_loss_price: float


@dataclass
class TradeRecord:
    """交易记录：开仓时创建，平仓时补全出场字段"""
    trade_id: int
    entry_date: str
    entry_time: str
    entry_price: float
    shares: int
    stop_loss_price: float
    exit_date: Optional[str] = None
    exit_time: Optional[str] = None
    exit_price: Optional[float] = None
    profit: Optional[float] = None
    profit_percent: Optional[float] = None   # 价格收益率（小数）
    exit_reason: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        return self.exit_price is not None


@dataclass
class EquityPoint:
    """每根 K 线收盘后的权益快照"""
    date: str
    time: str
    equity: float
    cash: float
    position_value: float


def _clean(value: Any) -> Any:
    """NaN、±inf → None"""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


@dataclass
class BacktestResult:
    """回测结果"""
    symbol: str
    start_date: str
    end_date: str
    trading_days: int
    initial_capital: float
    final_capital: float
    total_return: float = 0.0
    annualized_return: float = 0.0
    max_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    volatility: float = 0.0
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    avg_profit: float = 0.0
    avg_loss: float = 0.0
    profit_factor: float = 0.0
    equity_curve: List[EquityPoint] = field(default_factory=list)
    trades: List[TradeRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """转换为可 JSON 序列化的字典，NaN / inf 转为 None（无亏损时 profit_factor 为 None）"""
        data = {k: _clean(v) for k, v in asdict(self).items() if k not in ("equity_curve", "trades")}
        data["equity_curve"] = [
            {k: _clean(v) for k, v in asdict(p).items()} for p in self.equity_curve
        ]
        data["trades"] = [
            {k: _clean(v) for k, v in asdict(t).items()} for t in self.trades
        ]
        return data
