"""Account money, margin and per-contract positions of a simulated trader."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Protocol

from hftsim.contract import ContractInfo
from hftsim.types import Code, DirectionType, ErrorCode, OffsetType, OrderInfo

logger = logging.getLogger(__name__)


class ContractSource(Protocol):
    """Anything that looks up a contract specification by code."""

    def get(self, code: Code) -> ContractInfo | None: ...


class LedgerError(Exception):
    """An order could not be booked; ``code`` says why."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code


@dataclass
class AccountInfo:
    """Available money and the margin frozen by open orders and positions."""

    money: float = 0.0
    frozen_money: float = 0.0


@dataclass
class PositionItem:
    """Held volume, its average price and the part frozen by pending closes."""

    position: int = 0
    price: float = 0.0
    frozen: int = 0

    @property
    def usable(self) -> int:
        return self.position - self.frozen

    @property
    def empty(self) -> bool:
        return self.position == 0

    def clear(self) -> None:
        self.position = 0
        self.price = 0.0
        self.frozen = 0

    def add(self, volume: int, price: float) -> None:
        """Add ``volume`` lots at ``price``, averaging the held price."""
        total = self.position + volume
        if total:
            self.price = (self.position * self.price + price * volume) / total
        self.position = total

    def reduce(self, volume: int) -> None:
        """Remove up to ``volume`` lots and release as much frozen volume."""
        self.position -= min(volume, self.position)
        self.frozen -= min(volume, self.frozen)


@dataclass
class PositionDetail:
    """Today's and yesterday's long and short positions of one contract."""

    today_long: PositionItem = field(default_factory=PositionItem)
    today_short: PositionItem = field(default_factory=PositionItem)
    yesterday_long: PositionItem = field(default_factory=PositionItem)
    yesterday_short: PositionItem = field(default_factory=PositionItem)

    @property
    def empty(self) -> bool:
        return (
            self.today_long.empty
            and self.today_short.empty
            and self.yesterday_long.empty
            and self.yesterday_short.empty
        )

    @property
    def total(self) -> int:
        return self.long_position + self.short_position

    @property
    def real(self) -> int:
        return self.long_position - self.short_position

    @property
    def long_position(self) -> int:
        return self.today_long.position + self.yesterday_long.position

    @property
    def short_position(self) -> int:
        return self.today_short.position + self.yesterday_short.position

    @property
    def long_frozen(self) -> int:
        return self.today_long.frozen + self.yesterday_long.frozen

    @property
    def short_frozen(self) -> int:
        return self.today_short.frozen + self.yesterday_short.frozen

    def item(self, offset: OffsetType, direction: DirectionType) -> PositionItem:
        """The position an order with this offset and direction works on."""
        long = direction is DirectionType.LONG
        if offset in (OffsetType.OPEN, OffsetType.CLOSE_TODAY):
            return self.today_long if long else self.today_short
        return self.yesterday_long if long else self.yesterday_short


class Ledger:
    """Books margin, fees, profit and positions for simulated orders."""

    def __init__(self, contracts: ContractSource, money: float = 0.0) -> None:
        self.contracts = contracts
        self.account = AccountInfo(money=money)
        self._positions: dict[Code, PositionDetail] = {}

    def _contract(self, code: Code) -> ContractInfo:
        info = self.contracts.get(code)
        if info is None:
            logger.error("no contract info for %s", code.id)
            raise LedgerError(ErrorCode.FAILURE, f"no contract info for {code}")
        return info

    def _existing(self, code: Code) -> PositionDetail:
        detail = self._positions.get(code)
        if detail is None:
            logger.error("no position info for %s", code.id)
            raise LedgerError(ErrorCode.POSITION_NOT_ENOUGH, f"no position for {code}")
        return detail

    def freeze(
        self,
        code: Code,
        offset: OffsetType,
        direction: DirectionType,
        volume: int,
        price: float,
    ) -> None:
        """Freeze margin for an open order or volume for a close order.

        Raises LedgerError when the contract is unknown, margin is short or
        the position to close is not large enough.
        """
        info = self._contract(code)
        if offset is OffsetType.OPEN:
            margin = volume * price * info.multiple * info.margin_rate
            if margin + self.account.frozen_money > self.account.money:
                raise LedgerError(ErrorCode.MARGIN_NOT_ENOUGH, f"margin not enough for {code}")
            self.account.frozen_money += margin
            return
        item = self._existing(code).item(offset, direction)
        if item.usable < volume:
            raise LedgerError(ErrorCode.POSITION_NOT_ENOUGH, f"position not enough for {code}")
        item.frozen += volume

    def unfreeze(
        self,
        code: Code,
        offset: OffsetType,
        direction: DirectionType,
        volume: int,
        price: float,
    ) -> None:
        """Release what ``freeze`` held for the unfilled part of an order."""
        info = self._contract(code)
        if offset is OffsetType.OPEN:
            delta = volume * price * info.multiple * info.margin_rate
            self.account.frozen_money -= min(delta, self.account.frozen_money)
            return
        item = self._existing(code).item(offset, direction)
        item.frozen -= min(volume, item.frozen)

    def settle_deal(self, order: OrderInfo, volume: int) -> None:
        """Book ``volume`` filled lots of ``order`` and lower its remaining volume.

        An open fill adds to today's position when the fee can be paid; a
        close fill realises profit, releases margin and pays the fee.
        """
        info = self._contract(order.code)
        charge = info.service_charge(order.price, order.offset)
        fee = volume * charge
        if order.offset is OffsetType.OPEN:
            item = self._positions.setdefault(order.code, PositionDetail()).item(
                order.offset, order.direction
            )
            if self.account.money >= fee:
                item.add(volume, order.price)
                self.account.money -= fee
        else:
            item = self._existing(order.code).item(order.offset, order.direction)
            if order.direction is DirectionType.LONG:
                gain = order.price - item.price
            else:
                gain = item.price - order.price
            self.account.money += volume * gain * info.multiple
            item.reduce(volume)
            self.account.frozen_money -= volume * item.price * info.multiple * info.margin_rate
            self.account.money -= fee
        order.last_volume -= volume

    def roll_over(self) -> None:
        """Merge yesterday's positions into today's on exchanges that tell them apart."""
        for code, detail in self._positions.items():
            if not code.is_distinct:
                continue
            for today, yesterday in (
                (detail.today_long, detail.yesterday_long),
                (detail.today_short, detail.yesterday_short),
            ):
                if yesterday.position > 0:
                    today.add(yesterday.position, yesterday.price)
                    yesterday.position = 0
                yesterday.frozen = 0

    def position(self, code: Code) -> PositionDetail | None:
        """The positions held in ``code``, or None if it was never traded."""
        return self._positions.get(code)

    def __iter__(self) -> Iterator[tuple[Code, PositionDetail]]:
        return iter(sorted(self._positions.items(), key=lambda pair: pair[0]))

    def __contains__(self, code: object) -> bool:
        return code in self._positions