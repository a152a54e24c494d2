# treebt/backtest/portfolio/portfolio.py
from __future__ import annotations

from typing import Dict, List, Optional

from treebt.backtest.core.interfaces import DataHandler, PortfolioHandler
from treebt.backtest.core.types import Position, Transaction
from treebt.backtest.events import (
    DataEvent,
    Direction,
    FillEvent,
    OrderEvent,
    SignalEvent,
)
from treebt.utils.logger import logs


class Portfolio(PortfolioHandler):
    """
    Long-only cash / position ledger.

    Signal -> Order:
      - BUY  : order_size shares, declined if cash does not cover
               latest close * order_size plus the estimated fees
      - SELL : min(order_size, held), declined when flat
      - EXIT : everything held, declined when flat

    Fill -> Transaction:
      - BUY  : cash -= price * qty + cost
      - SELL : cash += price * qty - cost
    """

    def __init__(
        self,
        initial_cash: float = 100_000.0,
        order_size: int = 100,
        commission: float = 0.0,
        commission_rate: float = 0.0,
        exchange_fee: float = 0.0,
    ) -> None:
        if initial_cash < 0:
            raise ValueError(f"[Portfolio] initial_cash must be >= 0, got {initial_cash}")
        if order_size <= 0:
            raise ValueError(f"[Portfolio] order_size must be > 0, got {order_size}")
        if min(commission, commission_rate, exchange_fee) < 0:
            raise ValueError("[Portfolio] fees must be >= 0")

        self._initial_cash = float(initial_cash)
        self._cash = 0.0
        self.order_size = int(order_size)

        # same schedule as the Exchange, used to reserve fees on BUY
        self.commission = commission
        self.commission_rate = commission_rate
        self.exchange_fee = exchange_fee

        self._holdings: Dict[str, Position] = {}
        self._transactions: List[Transaction] = []

    # --------------------------------------------------
    # cash
    # --------------------------------------------------
    def initial_cash(self) -> float:
        return self._initial_cash

    def set_cash(self, amount: float) -> None:
        self._cash = float(amount)

    @property
    def cash(self) -> float:
        return self._cash

    # --------------------------------------------------
    # holdings
    # --------------------------------------------------
    @property
    def transactions(self) -> List[Transaction]:
        return list(self._transactions)

    def position(self, symbol: str) -> Optional[Position]:
        return self._holdings.get(symbol)

    def value(self) -> float:
        return self._cash + sum(p.market_value for p in self._holdings.values())

    # --------------------------------------------------
    # PortfolioHandler
    # --------------------------------------------------
    def update(self, event: DataEvent) -> None:
        pos = self._holdings.get(event.symbol)
        if pos is None:
            return
        pos.market_price = event.close
        pos.updated_at = event.timestamp

    def on_signal(self, signal: SignalEvent, data: DataHandler) -> Optional[OrderEvent]:
        held = self._held(signal.symbol)

        if signal.direction is Direction.BUY:
            bar = data.latest(signal.symbol) if data is not None else None
            if bar is None:
                logs.debug(f"[Portfolio] no price for {signal.symbol}, BUY declined")
                return None

            notional = bar.close * self.order_size
            need = notional + self.estimate_cost(notional)
            if need > self._cash:
                logs.debug(
                    f"[Portfolio] insufficient cash for {signal.symbol}: "
                    f"need={need:.2f} (fees incl.) cash={self._cash:.2f}"
                )
                return None
            qty = self.order_size

        elif signal.direction is Direction.SELL:
            if held <= 0:
                logs.debug(f"[Portfolio] flat on {signal.symbol}, SELL declined")
                return None
            qty = min(self.order_size, held)

        elif signal.direction is Direction.EXIT:
            if held <= 0:
                logs.debug(f"[Portfolio] flat on {signal.symbol}, EXIT declined")
                return None
            qty = held

        else:
            raise ValueError(f"[Portfolio] unknown direction: {signal.direction}")

        return OrderEvent(
            symbol=signal.symbol,
            timestamp=signal.timestamp,
            direction=signal.direction,
            quantity=qty,
        )

    def on_fill(self, fill: FillEvent, data: DataHandler) -> Optional[Transaction]:
        if fill.quantity <= 0:
            return None

        pos = self._holdings.get(fill.symbol)

        if fill.direction is Direction.BUY:
            if pos is None:
                pos = self._holdings[fill.symbol] = Position(symbol=fill.symbol)

            total = pos.quantity + fill.quantity
            pos.avg_price = (pos.avg_price * pos.quantity + fill.price * fill.quantity) / total
            pos.quantity = total
            self._cash -= fill.value + fill.cost

        else:
            # long-only: 不允许裸卖
            if pos is None or pos.quantity < fill.quantity:
                raise ValueError(
                    f"[Portfolio] fill sells {fill.quantity} {fill.symbol} "
                    f"but holds {0 if pos is None else pos.quantity}"
                )

            pos.quantity -= fill.quantity
            self._cash += fill.value - fill.cost

            if pos.quantity == 0:
                del self._holdings[fill.symbol]

        if pos.quantity:
            pos.market_price = fill.price
            pos.updated_at = fill.timestamp

        txn = Transaction(
            symbol=fill.symbol,
            timestamp=fill.timestamp,
            direction=fill.direction,
            quantity=fill.quantity,
            price=fill.price,
            cost=fill.cost,
            cash_after=self._cash,
        )
        self._transactions.append(txn)

        logs.debug(
            f"[Portfolio] {fill.direction.value} {fill.quantity} {fill.symbol} "
            f"@ {fill.price:.4f} cash={self._cash:.2f}"
        )
        return txn

    def estimate_cost(self, notional: float) -> float:
        return self.commission + self.commission_rate * notional + self.exchange_fee

    # --------------------------------------------------
    def _held(self, symbol: str) -> int:
        pos = self._holdings.get(symbol)
        return pos.quantity if pos is not None else 0
