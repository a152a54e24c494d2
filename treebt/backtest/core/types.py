from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from treebt.backtest.events import Direction
# treebt/backtest/core/types.py


@dataclass(frozen=True)
class Transaction:
    """
    A settled fill. Immutable historical fact.
    """
    symbol: str
    timestamp: datetime
    direction: Direction
    quantity: int
    price: float
    cost: float
    cash_after: float


@dataclass
class Position:
    symbol: str
    quantity: int = 0
    avg_price: float = 0.0
    market_price: float = 0.0
    updated_at: Optional[datetime] = None

    @property
    def market_value(self) -> float:
        return self.quantity * self.market_price

    @property
    def unrealized_pnl(self) -> float:
        return self.quantity * (self.market_price - self.avg_price)
