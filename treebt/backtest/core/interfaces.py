from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from treebt.backtest.events import (
    Event,
    DataEvent,
    SignalEvent,
    OrderEvent,
    FillEvent,
)
from treebt.backtest.core.types import Position, Transaction


class DataHandler(ABC):
    """
    Bar provider. Advances a cursor one bar at a time, in timestamp order,
    across all loaded symbols.
    """

    @abstractmethod
    def stream(self) -> List[DataEvent]:
        """Full pre-loaded bar sequence"""

    @abstractmethod
    def next(self) -> Optional[DataEvent]:
        """Next bar, or None once the stream is exhausted"""

    @abstractmethod
    def latest(self, symbol: str) -> Optional[DataEvent]:
        """Last bar seen for symbol"""

    @abstractmethod
    def history(self, symbol: str) -> List[DataEvent]:
        """All bars seen so far for symbol"""

    @abstractmethod
    def reset(self) -> None:
        """Rewind the cursor and forget latest / history"""


class PortfolioHandler(ABC):
    @abstractmethod
    def initial_cash(self) -> float:
        ...

    @abstractmethod
    def set_cash(self, amount: float) -> None:
        ...

    @property
    @abstractmethod
    def cash(self) -> float:
        ...

    @abstractmethod
    def update(self, event: DataEvent) -> None:
        """Mark-to-market"""

    @abstractmethod
    def on_signal(self, signal: SignalEvent, data: DataHandler) -> Optional[OrderEvent]:
        ...

    @abstractmethod
    def on_fill(self, fill: FillEvent, data: DataHandler) -> Optional[Transaction]:
        ...

    @abstractmethod
    def position(self, symbol: str) -> Optional[Position]:
        ...

    @abstractmethod
    def value(self) -> float:
        ...


class StrategyHandler(ABC):
    @abstractmethod
    def calculate_signal(
        self,
        event: DataEvent,
        data: DataHandler,
        portfolio: PortfolioHandler,
    ) -> Optional[SignalEvent]:
        ...


class ExecutionHandler(ABC):
    @abstractmethod
    def execute_order(self, order: OrderEvent, data: DataHandler) -> Optional[FillEvent]:
        ...


class StatisticHandler(ABC):
    @abstractmethod
    def track_event(self, event: Event) -> None:
        ...

    @abstractmethod
    def update(self, event: DataEvent, portfolio: PortfolioHandler) -> None:
        ...

    @abstractmethod
    def track_transaction(self, transaction: Transaction) -> None:
        ...

    @abstractmethod
    def print_result(self) -> None:
        ...
