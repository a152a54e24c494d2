from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Direction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    EXIT = "EXIT"  # close the whole position


# -------------------------
# Base
# -------------------------
@dataclass(frozen=True)
class Event:
    """
    Closed event set (FROZEN)

        DataEvent -> SignalEvent -> OrderEvent -> FillEvent

    Each variant is produced only by the handler of the previous one.
    """

    symbol: str
    timestamp: datetime


# -------------------------
# Data (bar)
# -------------------------
@dataclass(frozen=True)
class DataEvent(Event):
    open: float
    high: float
    low: float
    close: float
    volume: float


# -------------------------
# Signal
# -------------------------
@dataclass(frozen=True)
class SignalEvent(Event):
    direction: Direction


# -------------------------
# Order
# -------------------------
@dataclass(frozen=True)
class OrderEvent(Event):
    direction: Direction
    quantity: int


# -------------------------
# Fill
# -------------------------
@dataclass(frozen=True)
class FillEvent(Event):
    direction: Direction
    quantity: int
    price: float
    commission: float
    exchange_fee: float
    cost: float  # commission + exchange_fee

    @property
    def value(self) -> float:
        return self.price * self.quantity
