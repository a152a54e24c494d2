# treebt/backtest/strategy/algo.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, List, Optional, Set

import numpy as np

from treebt.backtest.events import DataEvent, Direction
from treebt.utils.logger import logs

if TYPE_CHECKING:
    from treebt.backtest.core.interfaces import DataHandler, PortfolioHandler
    from treebt.backtest.strategy.base import Strategy


@dataclass
class AlgoContext:
    """
    What an Algo may look at while a bar is evaluated.

    direction is the only writable slot: signal algos set it,
    the Strategy reads it when the asset is reached.
    """
    event: DataEvent
    data: Optional["DataHandler"] = None
    portfolio: Optional["PortfolioHandler"] = None
    strategy: Optional["Strategy"] = None
    direction: Optional[Direction] = None

    @property
    def symbol(self) -> str:
        return self.event.symbol


class Algo(ABC):
    """
    Single pass/fail decision unit.
    """

    @abstractmethod
    def run(self, ctx: AlgoContext) -> bool:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class AlgoStack:
    """
    AND-chain of algos, evaluated in append order.

    - first failing algo short-circuits to False
    - empty stack is vacuously True
    """

    def __init__(self, algos: Optional[List[Algo]] = None) -> None:
        self._stack: List[Algo] = list(algos or [])

    @property
    def stack(self) -> List[Algo]:
        return list(self._stack)

    def append(self, *algos: Algo) -> None:
        for algo in algos:
            if not isinstance(algo, Algo):
                raise TypeError(
                    f"[AlgoStack] expected Algo, got {type(algo).__name__}"
                )
            self._stack.append(algo)

    def run(self, ctx: AlgoContext) -> bool:
        for algo in self._stack:
            if not algo.run(ctx):
                logs.debug(f"[AlgoStack] {algo!r} failed symbol={ctx.symbol}")
                return False
        return True

    def __len__(self) -> int:
        return len(self._stack)

    def __iter__(self) -> Iterator[Algo]:
        return iter(self._stack)

    def __repr__(self) -> str:
        return f"AlgoStack({self._stack!r})"


# ------------------------------------------------------------------
# Built-in algos
# ------------------------------------------------------------------
class TrueAlgo(Algo):
    def run(self, ctx: AlgoContext) -> bool:
        return True


class FalseAlgo(Algo):
    def run(self, ctx: AlgoContext) -> bool:
        return False


class RunOnceAlgo(Algo):
    """
    Passes the first time a symbol is seen, never again.
    """

    def __init__(self) -> None:
        self._seen: Set[str] = set()

    def run(self, ctx: AlgoContext) -> bool:
        if ctx.symbol in self._seen:
            return False
        self._seen.add(ctx.symbol)
        return True


class InvestedAlgo(Algo):
    def run(self, ctx: AlgoContext) -> bool:
        if ctx.portfolio is None:
            return False
        pos = ctx.portfolio.position(ctx.symbol)
        return pos is not None and pos.quantity > 0


class NotInvestedAlgo(Algo):
    def run(self, ctx: AlgoContext) -> bool:
        if ctx.portfolio is None:
            return True
        pos = ctx.portfolio.position(ctx.symbol)
        return pos is None or pos.quantity == 0


class MinVolumeAlgo(Algo):
    def __init__(self, threshold: float) -> None:
        self.threshold = threshold

    def run(self, ctx: AlgoContext) -> bool:
        return ctx.event.volume >= self.threshold

    def __repr__(self) -> str:
        return f"MinVolumeAlgo(threshold={self.threshold})"


class _SMAAlgo(Algo):
    def __init__(self, window: int) -> None:
        if window <= 0:
            raise ValueError(f"[{type(self).__name__}] window must be > 0, got {window}")
        self.window = window

    def _sma(self, ctx: AlgoContext) -> Optional[float]:
        if ctx.data is None:
            return None
        bars = ctx.data.history(ctx.symbol)[-self.window:]
        # 不足 window 根 bar，不给信号
        if len(bars) < self.window:
            return None
        return float(np.mean([b.close for b in bars]))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(window={self.window})"


class AboveSMAAlgo(_SMAAlgo):
    def run(self, ctx: AlgoContext) -> bool:
        sma = self._sma(ctx)
        return sma is not None and ctx.event.close > sma


class BelowSMAAlgo(_SMAAlgo):
    def run(self, ctx: AlgoContext) -> bool:
        sma = self._sma(ctx)
        return sma is not None and ctx.event.close < sma


class SignalAlgo(Algo):
    """
    Always passes; stamps the direction of the signal to emit.
    """

    direction: Direction = Direction.BUY

    def run(self, ctx: AlgoContext) -> bool:
        ctx.direction = self.direction
        return True


class BuyAlgo(SignalAlgo):
    direction = Direction.BUY


class SellAlgo(SignalAlgo):
    direction = Direction.SELL


class ExitAlgo(SignalAlgo):
    direction = Direction.EXIT
