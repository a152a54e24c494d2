from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class BacktestConfig(BaseModel):
    """
    BacktestConfig

    语义：
      - 一次回测的实验定义
      - symbols 决定加载哪些 <data_dir>/<SYMBOL>.csv
      - strategy 是 opaque dict，由 StrategyFactory 解释
    """

    name: str = "default"

    # 本次 backtest 要在哪些 symbol 上运行
    symbols: List[str] = Field(..., min_length=1)

    data_dir: str = "data"

    # portfolio
    initial_cash: float = Field(100_000.0, gt=0)
    order_size: int = Field(100, gt=0)

    # exchange
    commission: float = Field(0.0, ge=0)
    commission_rate: float = Field(0.0, ge=0)
    exchange_fee: float = Field(0.0, ge=0)

    strategy: Dict[str, Any]
