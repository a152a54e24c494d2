# treebt/backtest/engine.py
from __future__ import annotations

from collections import deque
from typing import Deque, List, Optional

from treebt.backtest.core.interfaces import (
    DataHandler,
    ExecutionHandler,
    PortfolioHandler,
    StatisticHandler,
    StrategyHandler,
)
from treebt.backtest.events import (
    DataEvent,
    Event,
    FillEvent,
    OrderEvent,
    SignalEvent,
)
from treebt.backtest.strategy.base import Strategy
from treebt.observability.progress import ProgressReporter
from treebt.utils.errors import ConfigurationError
from treebt.utils.logger import logs


class Backtest:
    """
    Backtest (event loop)

    统一事件循环：
        Data → Signal → Order → Fill

    Loop:
      - queue empty   → pull next bar; stream exhausted → stop
      - event present → dispatch, then statistic.track_event(event)

    Handler outcomes:
      - return None → decline, no successor, loop continues
      - raise       → fatal, run() re-raises, no final report

    Single-threaded; one run per handler set.
    """

    def __init__(
        self,
        *,
        symbols: Optional[List[str]] = None,
        data: Optional[DataHandler] = None,
        strategy: Optional[StrategyHandler] = None,
        portfolio: Optional[PortfolioHandler] = None,
        exchange: Optional[ExecutionHandler] = None,
        statistic: Optional[StatisticHandler] = None,
        progress: Optional[ProgressReporter] = None,
    ) -> None:
        self._symbols: List[str] = list(symbols or [])
        self._data = data
        self._strategy = strategy
        self._portfolio = portfolio
        self._exchange = exchange
        self._statistic = statistic
        self._progress = progress or ProgressReporter()

        self._queue: Deque[Event] = deque()

    # --------------------------------------------------
    # setup
    # --------------------------------------------------
    def set_symbols(self, symbols: List[str]) -> None:
        self._symbols = list(symbols)

    def set_data(self, data: DataHandler) -> None:
        self._data = data

    def set_strategy(self, strategy: StrategyHandler) -> None:
        self._strategy = strategy

    def set_portfolio(self, portfolio: PortfolioHandler) -> None:
        self._portfolio = portfolio

    def set_exchange(self, exchange: ExecutionHandler) -> None:
        self._exchange = exchange

    def set_statistic(self, statistic: StatisticHandler) -> None:
        self._statistic = statistic

    @property
    def symbols(self) -> List[str]:
        return list(self._symbols)

    @property
    def data(self) -> Optional[DataHandler]:
        return self._data

    @property
    def strategy(self) -> Optional[StrategyHandler]:
        return self._strategy

    @property
    def portfolio(self) -> Optional[PortfolioHandler]:
        return self._portfolio

    @property
    def exchange(self) -> Optional[ExecutionHandler]:
        return self._exchange

    @property
    def statistic(self) -> Optional[StatisticHandler]:
        return self._statistic

    # --------------------------------------------------
    # run
    # --------------------------------------------------
    def run(self) -> None:
        self._check_ready()

        total = len(self._data.stream())
        logs.info(f"[Backtest] running symbols={self._symbols}")
        logs.info(f"[Backtest] counting {total} data events")

        # before first run, set portfolio cash
        self._portfolio.set_cash(self._portfolio.initial_cash())

        # the tree shares this run's providers
        if isinstance(self._strategy, Strategy):
            self._strategy.set_data(self._data)
            self._strategy.set_portfolio(self._portfolio)

        self._progress.start("Backtest", total, "bars")

        while True:
            event = self._next_event()

            if event is None:
                bar = self._data.next()
                # no data event, exit event loop
                if bar is None:
                    break

                self._queue.append(bar)
                self._progress.advance()
                continue

            try:
                self._dispatch(event)
            except Exception:
                logs.exception(
                    f"[Backtest] aborted on {type(event).__name__} "
                    f"symbol={event.symbol} ts={event.timestamp}"
                )
                raise

            self._statistic.track_event(event)

        self._progress.done()
        self._statistic.print_result()

    # --------------------------------------------------
    # internals
    # --------------------------------------------------
    def _check_ready(self) -> None:
        missing = [
            name
            for name, handler in (
                ("data", self._data),
                ("strategy", self._strategy),
                ("portfolio", self._portfolio),
                ("exchange", self._exchange),
                ("statistic", self._statistic),
            )
            if handler is None
        ]
        if missing:
            raise ConfigurationError(f"[Backtest] missing handlers: {missing}")

        if not self._symbols:
            raise ConfigurationError("[Backtest] empty symbol list")

    def _next_event(self) -> Optional[Event]:
        if not self._queue:
            return None
        return self._queue.popleft()

    def _dispatch(self, event: Event) -> None:
        if isinstance(event, DataEvent):
            # update portfolio to the last known price data
            self._portfolio.update(event)
            self._statistic.update(event, self._portfolio)

            signal = self._strategy.calculate_signal(event, self._data, self._portfolio)
            self._enqueue(signal, event, "strategy")

        elif isinstance(event, SignalEvent):
            order = self._portfolio.on_signal(event, self._data)
            self._enqueue(order, event, "portfolio")

        elif isinstance(event, OrderEvent):
            fill = self._exchange.execute_order(event, self._data)
            self._enqueue(fill, event, "exchange")

        elif isinstance(event, FillEvent):
            transaction = self._portfolio.on_fill(event, self._data)
            if transaction is None:
                logs.debug(f"[Backtest] fill not settled symbol={event.symbol}")
                return
            self._statistic.track_transaction(transaction)

        else:
            raise TypeError(f"[Backtest] unknown event type: {type(event).__name__}")

    def _enqueue(self, successor: Optional[Event], source: Event, stage: str) -> None:
        if successor is None:
            logs.debug(
                f"[Backtest] {stage} declined {type(source).__name__} "
                f"symbol={source.symbol} ts={source.timestamp}"
            )
            return
        self._queue.append(successor)
