# treebt/backtest/statistic/statistic.py
from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import List, Optional, Tuple

from rich.console import Console
from rich.table import Table

from treebt.backtest.core.interfaces import PortfolioHandler, StatisticHandler
from treebt.backtest.core.types import Transaction
from treebt.backtest.events import DataEvent, Event
from treebt.backtest.result import BacktestResult
from treebt.utils.logger import logs


class Statistic(StatisticHandler):
    """
    Event / transaction / equity tracker.

    - event_history       : every dispatched event, in dispatch order
    - transaction_history : every settled fill
    - equity              : one (timestamp, portfolio value) point per timestamp;
                            several symbols on the same timestamp overwrite
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self._events: List[Event] = []
        self._transactions: List[Transaction] = []
        self._equity: List[Tuple[datetime, float]] = []
        self._console = console or Console()

    # --------------------------------------------------
    # StatisticHandler
    # --------------------------------------------------
    def track_event(self, event: Event) -> None:
        self._events.append(event)

    def update(self, event: DataEvent, portfolio: PortfolioHandler) -> None:
        point = (event.timestamp, portfolio.value())

        if self._equity and self._equity[-1][0] == event.timestamp:
            self._equity[-1] = point
        else:
            self._equity.append(point)

    def track_transaction(self, transaction: Transaction) -> None:
        self._transactions.append(transaction)

    def print_result(self) -> None:
        result = self.result()

        logs.info(
            f"[Statistic] events={result.n_events} "
            f"transactions={result.n_transactions} "
            f"total_return={result.total_return:.4%}"
        )

        table = Table(title="Backtest Result")
        table.add_column("metric")
        table.add_column("value", justify="right")

        table.add_row("period", f"{result.start} -> {result.end}")
        table.add_row("events", str(result.n_events))
        for name, n in result.event_counts.items():
            table.add_row(f"  {name}", str(n))
        table.add_row("transactions", str(result.n_transactions))
        if result.equity_curve:
            table.add_row("initial equity", f"{result.initial_equity:,.2f}")
            table.add_row("final equity", f"{result.final_equity:,.2f}")
            table.add_row("total return", f"{result.total_return:.2%}")

        self._console.print(table)

    # --------------------------------------------------
    # read side
    # --------------------------------------------------
    @property
    def events(self) -> List[Event]:
        return list(self._events)

    @property
    def transactions(self) -> List[Transaction]:
        return list(self._transactions)

    @property
    def equity(self) -> List[Tuple[datetime, float]]:
        return list(self._equity)

    def result(self) -> BacktestResult:
        counts = Counter(type(ev).__name__ for ev in self._events)

        return BacktestResult(
            start=self._equity[0][0] if self._equity else None,
            end=self._equity[-1][0] if self._equity else None,
            n_events=len(self._events),
            event_counts=dict(counts),
            n_transactions=len(self._transactions),
            equity_curve=[v for _, v in self._equity],
            timestamps=[ts for ts, _ in self._equity],
        )

    def reset(self) -> None:
        self._events.clear()
        self._transactions.clear()
        self._equity.clear()
