"""Tape (time and sales) and bar (order flow) data types."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from hftsim.types import DEFAULT_CODE, Code


class DealDirection(enum.IntEnum):
    """Direction of the last deal relative to the book."""

    DOWN = -1
    FLAT = 0
    UP = 1


class DealStatus(enum.Enum):
    """How a deal changed the open interest."""

    INVALID = 0
    DOUBLE_OPEN = 1
    OPEN = 2
    CHANGE = 3
    CLOSE = 4
    DOUBLE_CLOSE = 5


@dataclass
class TapeInfo:
    """One entry of the tape: price, traded volume and open interest change."""

    id: Code = DEFAULT_CODE
    time: int = 0
    price: float = 0.0
    volume_delta: int = 0
    interest_delta: float = 0.0
    direction: DealDirection = DealDirection.FLAT

    @property
    def status(self) -> DealStatus:
        """Classify the deal by comparing traded volume with the interest change."""
        volume = self.volume_delta
        interest = self.interest_delta
        if interest > 0:
            if volume == interest:
                return DealStatus.DOUBLE_OPEN
            if volume > interest:
                return DealStatus.OPEN
        elif interest == 0:
            if volume > 0:
                return DealStatus.CHANGE
        else:
            if volume > -interest:
                return DealStatus.CLOSE
            if volume == -interest:
                return DealStatus.DOUBLE_CLOSE
        return DealStatus.INVALID


@dataclass
class BarInfo:
    """A price bar with its order flow detail."""

    id: Code = DEFAULT_CODE
    time: int = 0
    period: int = 0
    open: float = 0.0
    close: float = 0.0
    high: float = 0.0
    low: float = 0.0
    volume: int = 0
    delta: int = 0
    poc: float = 0.0
    price_step: float = 0.0
    price_buy_volume: dict[float, int] = field(default_factory=dict)
    price_sell_volume: dict[float, int] = field(default_factory=dict)

    def buy_volume(self, price: float) -> int:
        """Volume bought at ``price``."""
        return self.price_buy_volume.get(price, 0)

    def sell_volume(self, price: float) -> int:
        """Volume sold at ``price``."""
        return self.price_sell_volume.get(price, 0)

    def price_delta(self, price: float) -> int:
        """Bought minus sold volume at ``price``."""
        return self.buy_volume(price) - self.sell_volume(price)

    def order_book(self) -> list[tuple[float, int, int]]:
        """``(price, buy volume, sell volume)`` for every step from low to high."""
        if self.low == 0.0 or self.high == 0.0 or self.price_step == 0.0:
            return []
        book = []
        price = self.low
        while price <= self.high:
            book.append((price, self.buy_volume(price), self.sell_volume(price)))
            price += self.price_step
        return book

    def unbalance(self, multiple: int) -> tuple[list[float], list[float]]:
        """Prices of demand and supply imbalances, compared diagonally."""
        demand: list[float] = []
        supply: list[float] = []
        book = self.order_book()
        for lower, upper in zip(book, book[1:]):
            if lower[1] * multiple > upper[2]:
                demand.append(lower[0])
            elif upper[2] * multiple > lower[1]:
                supply.append(upper[0])
        return demand, supply

    def clear(self) -> None:
        """Reset every field except the contract id."""
        self.time = 0
        self.period = 0
        self.open = 0.0
        self.high = 0.0
        self.low = 0.0
        self.close = 0.0
        self.volume = 0
        self.delta = 0
        self.poc = 0.0
        self.price_step = 0.0
        self.price_buy_volume.clear()
        self.price_sell_volume.clear()