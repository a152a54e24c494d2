# treebt/backtest/strategy/base.py
from __future__ import annotations

from dataclasses import replace
from typing import Iterator, List, Optional, Tuple

from treebt.backtest.core.interfaces import (
    DataHandler,
    PortfolioHandler,
    StrategyHandler,
)
from treebt.backtest.events import DataEvent, Direction, SignalEvent
from treebt.backtest.strategy.algo import Algo, AlgoContext, AlgoStack
from treebt.backtest.strategy.node import Asset, Node
from treebt.utils.logger import logs


class Strategy(Node, StrategyHandler):
    """
    Strategy (composite)

    Tree:
        Strategy ─┬─ Strategy ─┬─ Asset
                  │            └─ Asset
                  └─ Asset

    - owns its AlgoStack, configured per level (no propagation)
    - data / portfolio are shared, non-owning references; setting them
      on a node propagates to every Strategy below it, never to Assets
    - calculate_signal walks root -> asset; every stack on the path must pass
    """

    def __init__(self, name: str) -> None:
        super().__init__(name, root=True)
        self._algos = AlgoStack()
        self._data: Optional[DataHandler] = None
        self._portfolio: Optional[PortfolioHandler] = None

    # --------------------------------------------------
    # shared references
    # --------------------------------------------------
    @property
    def data(self) -> Optional[DataHandler]:
        return self._data

    @property
    def portfolio(self) -> Optional[PortfolioHandler]:
        return self._portfolio

    @property
    def algos(self) -> AlgoStack:
        return self._algos

    def set_data(self, data: Optional[DataHandler]) -> None:
        """
        Set data on this node and every Strategy descendant.

        Returns None on success; validation failures will be raised.
        """
        self._data = data

        strategies, _ = self.strategies()
        for child in strategies:
            child.set_data(data)

    def set_portfolio(self, portfolio: Optional[PortfolioHandler]) -> None:
        self._portfolio = portfolio

        strategies, _ = self.strategies()
        for child in strategies:
            child.set_portfolio(portfolio)

    def set_algo(self, *algos: Algo) -> Strategy:
        self._algos.append(*algos)
        return self

    # --------------------------------------------------
    # navigation
    # --------------------------------------------------
    def strategies(self) -> Tuple[List[Strategy], bool]:
        found = [c for c in self._children if isinstance(c, Strategy)]
        return found, bool(found)

    def assets(self) -> Tuple[List[Asset], bool]:
        found = [c for c in self._children if isinstance(c, Asset)]
        return found, bool(found)

    def walk(self) -> Iterator[Node]:
        """
        Depth-first, pre-order, insertion order.
        """
        yield self
        for child in self._children:
            if isinstance(child, Strategy):
                yield from child.walk()
            else:
                yield child

    def holds(self, symbol: str) -> bool:
        return any(
            isinstance(node, Asset) and node.name == symbol
            for node in self.walk()
        )

    # --------------------------------------------------
    # StrategyHandler
    # --------------------------------------------------
    def calculate_signal(
        self,
        event: DataEvent,
        data: Optional[DataHandler] = None,
        portfolio: Optional[PortfolioHandler] = None,
    ) -> Optional[SignalEvent]:
        ctx = AlgoContext(
            event=event,
            data=data if data is not None else self._data,
            portfolio=portfolio if portfolio is not None else self._portfolio,
        )
        return self._evaluate(ctx)

    def _evaluate(self, ctx: AlgoContext) -> Optional[SignalEvent]:
        symbol = ctx.symbol

        # 不相关的分支不跑 algo（RunOnce 等有状态 algo）
        if not self.holds(symbol):
            return None

        ctx = replace(ctx, strategy=self)

        if not self._algos.run(ctx):
            return None

        assets, _ = self.assets()
        if any(asset.name == symbol for asset in assets):
            direction = ctx.direction or Direction.BUY
            logs.debug(f"[Strategy] {self.name} -> {direction.value} {symbol}")
            return SignalEvent(
                symbol=symbol,
                timestamp=ctx.event.timestamp,
                direction=direction,
            )

        strategies, _ = self.strategies()
        for child in strategies:
            signal = child._evaluate(ctx)
            if signal is not None:
                return signal

        return None
