# tests/backtest/conftest.py
from __future__ import annotations

from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import Callable, List, Optional

import pytest

from treebt.backtest.core.interfaces import (
    DataHandler,
    ExecutionHandler,
    PortfolioHandler,
    StatisticHandler,
    StrategyHandler,
)
from treebt.backtest.core.types import Position, Transaction
from treebt.backtest.events import (
    DataEvent,
    Direction,
    Event,
    FillEvent,
    OrderEvent,
    SignalEvent,
)
from treebt.backtest.strategy.algo import Algo, AlgoContext


T0 = datetime(2024, 1, 2, 15, 0)


@pytest.fixture
def make_bar() -> Callable[..., DataEvent]:
    def _make(
        symbol: str = "AAA",
        day: int = 0,
        close: float = 10.0,
        volume: float = 1_000.0,
    ) -> DataEvent:
        return DataEvent(
            symbol=symbol,
            timestamp=T0 + timedelta(days=day),
            open=close,
            high=close,
            low=close,
            close=close,
            volume=volume,
        )

    return _make


# -----------------------------------------------------------------------------
# Test algos
# -----------------------------------------------------------------------------
class RecordingAlgo(Algo):
    """Records every invocation, returns a fixed outcome."""

    def __init__(self, outcome: bool, calls: List[str], tag: str) -> None:
        self.outcome = outcome
        self.calls = calls
        self.tag = tag

    def run(self, ctx: AlgoContext) -> bool:
        self.calls.append(self.tag)
        return self.outcome


# -----------------------------------------------------------------------------
# Fake handlers (always produce a successor)
# -----------------------------------------------------------------------------
class ListData(DataHandler):
    def __init__(self, bars: List[DataEvent]) -> None:
        self._bars = list(bars)
        self._i = 0
        self.next_calls = 0

    def stream(self) -> List[DataEvent]:
        return list(self._bars)

    def next(self) -> Optional[DataEvent]:
        self.next_calls += 1
        if self._i >= len(self._bars):
            return None
        bar = self._bars[self._i]
        self._i += 1
        return bar

    def latest(self, symbol: str) -> Optional[DataEvent]:
        seen = [b for b in self._bars[: self._i] if b.symbol == symbol]
        return seen[-1] if seen else None

    def history(self, symbol: str) -> List[DataEvent]:
        return [b for b in self._bars[: self._i] if b.symbol == symbol]

    def reset(self) -> None:
        self._i = 0


class AlwaysSignal(StrategyHandler):
    def calculate_signal(self, event, data, portfolio):
        return SignalEvent(symbol=event.symbol, timestamp=event.timestamp, direction=Direction.BUY)


class FailingStrategy(StrategyHandler):
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    def calculate_signal(self, event, data, portfolio):
        raise self.exc


class DecliningStrategy(StrategyHandler):
    def calculate_signal(self, event, data, portfolio):
        return None


class AlwaysOrderPortfolio(PortfolioHandler):
    def __init__(self, initial: float = 1_000.0) -> None:
        self._initial = initial
        self._cash = 0.0
        self.set_cash_calls: List[float] = []
        self.updates: List[DataEvent] = []

    def initial_cash(self) -> float:
        return self._initial

    def set_cash(self, amount: float) -> None:
        self.set_cash_calls.append(amount)
        self._cash = amount

    @property
    def cash(self) -> float:
        return self._cash

    def update(self, event: DataEvent) -> None:
        self.updates.append(event)

    def on_signal(self, signal, data):
        return OrderEvent(
            symbol=signal.symbol,
            timestamp=signal.timestamp,
            direction=signal.direction,
            quantity=1,
        )

    def on_fill(self, fill, data):
        return Transaction(
            symbol=fill.symbol,
            timestamp=fill.timestamp,
            direction=fill.direction,
            quantity=fill.quantity,
            price=fill.price,
            cost=fill.cost,
            cash_after=self._cash,
        )

    def position(self, symbol: str) -> Optional[Position]:
        return None

    def value(self) -> float:
        return self._cash


class AlwaysFillExchange(ExecutionHandler):
    def execute_order(self, order, data):
        return FillEvent(
            symbol=order.symbol,
            timestamp=order.timestamp,
            direction=order.direction,
            quantity=order.quantity,
            price=1.0,
            commission=0.0,
            exchange_fee=0.0,
            cost=0.0,
        )


class RecordingStatistic(StatisticHandler):
    def __init__(self) -> None:
        self.events: List[Event] = []
        self.transactions: List[Transaction] = []
        self.updates: List[DataEvent] = []
        self.print_calls = 0

    def track_event(self, event: Event) -> None:
        self.events.append(event)

    def update(self, event, portfolio) -> None:
        self.updates.append(event)

    def track_transaction(self, transaction: Transaction) -> None:
        self.transactions.append(transaction)

    def print_result(self) -> None:
        self.print_calls += 1


@pytest.fixture
def fakes() -> SimpleNamespace:
    """
    Test doubles as a namespace (tests dirs are not packages).
    """
    return SimpleNamespace(
        RecordingAlgo=RecordingAlgo,
        ListData=ListData,
        AlwaysSignal=AlwaysSignal,
        FailingStrategy=FailingStrategy,
        DecliningStrategy=DecliningStrategy,
        AlwaysOrderPortfolio=AlwaysOrderPortfolio,
        AlwaysFillExchange=AlwaysFillExchange,
        RecordingStatistic=RecordingStatistic,
    )
