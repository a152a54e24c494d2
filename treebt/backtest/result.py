# treebt/backtest/result.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional


@dataclass(frozen=True)
class BacktestResult:
    """
    BacktestResult

    不可变事实结果，用于：
      - 结果打印
      - 回归测试
    """

    # -----------------------
    # Time / event stats
    # -----------------------
    start: Optional[datetime]
    end: Optional[datetime]
    n_events: int
    event_counts: Dict[str, int]   # DataEvent / SignalEvent / ...
    n_transactions: int

    # -----------------------
    # Core trajectories
    # -----------------------
    equity_curve: List[float]
    timestamps: List[datetime]     # 与 equity_curve 对齐

    @property
    def initial_equity(self) -> Optional[float]:
        return self.equity_curve[0] if self.equity_curve else None

    @property
    def final_equity(self) -> Optional[float]:
        return self.equity_curve[-1] if self.equity_curve else None

    @property
    def total_return(self) -> float:
        if not self.equity_curve or self.equity_curve[0] == 0:
            return 0.0
        return self.equity_curve[-1] / self.equity_curve[0] - 1.0
