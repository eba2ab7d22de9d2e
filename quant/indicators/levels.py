"""
支撑位 / 压力位识别
"""

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from .core import Values, _to_array


@dataclass(frozen=True)
class PivotLevel:
    """局部极值点"""
    index: int     # 极值所在 K 线序号
    price: float
    kind: str      # "support" | "resistance"
    window: int

    @property
    def confirmed_at(self) -> int:
        """右侧 window 根 K 线走完后才能确认"""
        return self.index + self.window


def find_pivot_levels(values: Values, window: int = 5) -> List[PivotLevel]:
    """
    识别收盘价的局部极值

    位置 j 前后各 window 个点都不低于它 → 支撑位；都不高于它 → 压力位。

    Args:
        values: 价格序列
        window: 左右比较的点数

    Returns:
        按序号升序排列的 PivotLevel 列表
    """
    arr = _to_array(values)
    levels: List[PivotLevel] = []
    if window <= 0:
        return levels

    for j in range(window, len(arr) - window):
        current = arr[j]
        if np.isnan(current):
            continue
        neighbours = np.concatenate([arr[j - window:j], arr[j + 1:j + window + 1]])
        if np.isnan(neighbours).any():
            continue
        if (neighbours >= current).all():
            levels.append(PivotLevel(index=j, price=float(current), kind="support", window=window))
        if (neighbours <= current).all():
            levels.append(PivotLevel(index=j, price=float(current), kind="resistance", window=window))

    return levels


def identify_support_resistance(
    high: Values,
    low: Values,
    limit: int = 3,
) -> Tuple[List[float], List[float]]:
    """
    用最高/最低价的严格局部极值（左右各 2 根）识别关键价位

    Returns:
        (support, resistance)，各取最近 limit 个，越近越靠前
    """
    h, l = _to_array(high), _to_array(low)
    support: List[float] = []
    resistance: List[float] = []

    for i in range(2, len(l) - 2):
        current = l[i]
        if current < l[i - 1] and current < l[i - 2] and current < l[i + 1] and current < l[i + 2]:
            support.append(float(current))

    for i in range(2, len(h) - 2):
        current = h[i]
        if current > h[i - 1] and current > h[i - 2] and current > h[i + 1] and current > h[i + 2]:
            resistance.append(float(current))

    return support[-limit:][::-1], resistance[-limit:][::-1]
