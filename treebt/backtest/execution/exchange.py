# treebt/backtest/execution/exchange.py
from __future__ import annotations

from typing import Optional

from treebt.backtest.core.interfaces import DataHandler, ExecutionHandler
from treebt.backtest.events import FillEvent, OrderEvent
from treebt.utils.logger import logs


class Exchange(ExecutionHandler):
    """
    Bar-driven execution simulator:
    - 无状态
    - market orders only, filled in full at the latest close
    - commission = commission + commission_rate * price * qty
    - cost = commission + exchange_fee
    """

    def __init__(
        self,
        commission: float = 0.0,
        commission_rate: float = 0.0,
        exchange_fee: float = 0.0,
    ) -> None:
        if min(commission, commission_rate, exchange_fee) < 0:
            raise ValueError("[Exchange] fees must be >= 0")

        self.commission = commission
        self.commission_rate = commission_rate
        self.exchange_fee = exchange_fee

    def execute_order(self, order: OrderEvent, data: DataHandler) -> Optional[FillEvent]:
        bar = data.latest(order.symbol) if data is not None else None
        if bar is None:
            logs.debug(f"[Exchange] no bar for {order.symbol}, order unfillable")
            return None

        price = bar.close  # 冻结：用 close 成交
        commission = self.commission + self.commission_rate * price * order.quantity

        return FillEvent(
            symbol=order.symbol,
            timestamp=bar.timestamp,
            direction=order.direction,
            quantity=order.quantity,
            price=price,
            commission=commission,
            exchange_fee=self.exchange_fee,
            cost=commission + self.exchange_fee,
        )
