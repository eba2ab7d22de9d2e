"""交易信号数据模型"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Any

BUY = "buy"
SELL = "sell"
HOLD = "hold"


@dataclass(frozen=True)
class SignalRef:
    """对配对信号的引用"""
    time: str
    type: str
    price: float


@dataclass(frozen=True)
class TradePairing:
    """买卖配对信息"""
    trade_id: int
    paired_signal: SignalRef
    profit_loss: float          # 卖出价 - 买入价
    profit_loss_percent: float  # 百分比


@dataclass(frozen=True)
class ResonanceTag:
    """多周期共振信息"""
    level: int
    timeframes: Tuple[str, ...]


@dataclass(frozen=True)
class TradingSignal:
    """
    交易信号

    生成后不可变。配对和共振通过 dataclasses.replace 生成新实例，
    只会填充 pairing / resonance 两个字段。
    """
    time: str
    type: str                 # buy | sell | hold
    price: float
    strength: float           # 0-100
    confidence: float         # 0-100
    reasons: Tuple[str, ...] = ()
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    indicators: Dict[str, Optional[float]] = field(default_factory=dict, compare=False)
    pairing: Optional[TradePairing] = None
    resonance: Optional[ResonanceTag] = None
    name: Optional[str] = None  # 日线形态名称，如 相对底部

    @property
    def is_paired(self) -> bool:
        return self.pairing is not None

    def ref(self) -> SignalRef:
        return SignalRef(time=self.time, type=self.type, price=self.price)

    def to_dict(self) -> Dict[str, Any]:
        """转换为前端使用的 JSON 结构"""
        data: Dict[str, Any] = {
            "time": self.time,
            "type": self.type,
            "price": self.price,
            "strength": self.strength,
            "confidence": self.confidence,
            "reasons": list(self.reasons),
            "stop_loss": self.stop_loss,
            "take_profit": self.take_profit,
            "indicators": dict(self.indicators),
        }
        if self.name is not None:
            data["signal_name"] = self.name
        if self.pairing is not None:
            data["trade_id"] = self.pairing.trade_id
            data["paired_signal"] = {
                "time": self.pairing.paired_signal.time,
                "type": self.pairing.paired_signal.type,
                "price": self.pairing.paired_signal.price,
            }
            data["profit_loss"] = self.pairing.profit_loss
            data["profit_loss_percent"] = self.pairing.profit_loss_percent
        if self.resonance is not None:
            data["resonance"] = {
                "level": self.resonance.level,
                "timeframes": list(self.resonance.timeframes),
            }
        return data
