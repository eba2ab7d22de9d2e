"""K 线 CSV 加载"""

import logging
from typing import Union
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["date", "open", "high", "low", "close", "volume"]
NUMERIC_COLUMNS = ["open", "high", "low", "close", "volume"]


def load_price_bars(path: Union[str, Path]) -> pd.DataFrame:
    """
    读取 K 线 CSV

    列名不区分大小写；time 列可选，缺失时填空字符串。
    按 (date, time) 排序，重复时间戳保留最后一条。

    Raises:
        ValueError: 缺少必需列
    """
    df = pd.read_csv(path, dtype={"date": str, "time": str})
    df.columns = [str(c).strip().lower() for c in df.columns]

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{path} 缺少列: {missing}")

    if "time" not in df.columns:
        df["time"] = ""
    df["time"] = df["time"].fillna("").astype(str)
    df["date"] = df["date"].astype(str)
    for col in NUMERIC_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce").astype("float64")

    df = df.sort_values(["date", "time"], kind="stable")
    before = len(df)
    df = df.drop_duplicates(subset=["date", "time"], keep="last").reset_index(drop=True)
    dropped = before - len(df)
    if dropped:
        logger.warning(f"{path}: 丢弃 {dropped} 条重复时间戳的 K 线")

    logger.info(f"加载 {path}: {len(df)} 根 K 线")
    return df
