"""A simulated trader that matches orders against replayed market ticks."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace

from hftsim.contract import ContractParser
from hftsim.ledger import AccountInfo, Ledger, LedgerError
from hftsim.params import Params
from hftsim.types import (
    Code,
    DirectionType,
    ErrorCode,
    ErrorType,
    OffsetType,
    OrderFlag,
    OrderInfo,
    TickInfo,
)

logger = logging.getLogger(__name__)

_U32 = 0xFFFFFFFF


class TraderEvent(enum.Enum):
    """Events a simulated trader reports to its listeners."""

    ORDER_PLACE = enum.auto()
    ORDER_DEAL = enum.auto()
    ORDER_TRADE = enum.auto()
    ORDER_CANCEL = enum.auto()
    ORDER_ERROR = enum.auto()


@dataclass
class PositionSeed:
    """Held volumes of one contract, without prices or frozen amounts."""

    id: Code
    today_long: int = 0
    today_short: int = 0
    history_long: int = 0
    history_short: int = 0


@dataclass
class TraderData:
    """Snapshot of the open orders and positions of a trader."""

    orders: list[OrderInfo] = field(default_factory=list)
    positions: list[PositionSeed] = field(default_factory=list)


class _OrderState(enum.Enum):
    INVALID = enum.auto()
    IN_MATCH = enum.auto()
    CANCELED = enum.auto()
    DELETE = enum.auto()


@dataclass
class _OrderMatch:
    estid: int
    flag: OrderFlag
    queue_seat: int = 0
    state: _OrderState = _OrderState.INVALID


Listener = Callable[..., None]


class TraderSimulator:
    """Matches orders against ticks and books the results in a ledger.

    Listeners are called as ``callback(event, *args)``:

    * ORDER_PLACE: order
    * ORDER_DEAL: estid, deal volume, remaining volume
    * ORDER_TRADE: estid, code, offset, direction, price, total volume
    * ORDER_CANCEL: estid, code, offset, direction, price, cancelled volume, total volume
    * ORDER_ERROR: error type, estid, error code
    """

    def __init__(self, config: Params | Mapping[str, str]) -> None:
        if not isinstance(config, Params):
            config = Params(config)
        self._trading_day = 0
        self._current_time = 0
        self._order_ref = 0
        self.interval = 1
        self._contracts = ContractParser()
        money = 0.0
        try:
            money = config.get_float("initial_capital")
            self._contracts.load(config.get_str("contract_config"))
            self.interval = config.get_int("interval")
        except (KeyError, ValueError, OSError) as exc:
            logger.error("trader simulator init error: %s", exc)
        self._ledger = Ledger(self._contracts, money)
        self._current_tick_info: dict[Code, TickInfo] = {}
        self._last_frame_volume: dict[Code, int] = {}
        self._order_info: dict[int, OrderInfo] = {}
        self._order_match: dict[Code, list[_OrderMatch]] = {}
        self._listeners: list[Listener] = []

    def add_listener(self, callback: Listener) -> None:
        """Register a callback for trader events."""
        self._listeners.append(callback)

    def _fire(self, event: TraderEvent, *args: object) -> None:
        for callback in self._listeners:
            callback(event, *args)

    def push_tick(self, ticks: Iterable[TickInfo | None]) -> None:
        """Remember the latest tick of every contract; None entries are skipped."""
        for tick in ticks:
            if tick is not None:
                self._current_tick_info[tick.id] = replace(tick)

    def crossday(self, trading_day: int) -> None:
        """Start a new trading day: cancel every order and roll positions over."""
        self._trading_day = trading_day
        for estid in list(self._order_info):
            self.cancel_order(estid)
        self._ledger.roll_over()

    @property
    def account(self) -> AccountInfo:
        return self._ledger.account

    def update(self) -> None:
        """Match pending orders against the latest tick of each contract."""
        for code in sorted(self._current_tick_info):
            tick = self._current_tick_info[code]
            self._current_time = tick.time
            self._match_entrust(tick)
            self._last_frame_volume[tick.id] = tick.volume

    @property
    def trading_day(self) -> int:
        return self._trading_day

    @property
    def is_usable(self) -> bool:
        return True

    def place_order(
        self,
        offset: OffsetType,
        direction: DirectionType,
        code: Code,
        count: int,
        price: float = 0.0,
        flag: OrderFlag = OrderFlag.NORMAL,
    ) -> int:
        """Queue an order and return its id; a zero price takes the last tick price."""
        order = OrderInfo(
            estid=self._make_estid(),
            code=code,
            create_time=self._current_time,
            offset=offset,
            direction=direction,
            total_volume=count,
            last_volume=count,
        )
        if price == 0.0:
            tick = self._current_tick_info.get(code)
            if tick is not None:
                order.price = tick.price
        else:
            order.price = price
        logger.debug("place_order %d", order.estid)
        self._order_info[order.estid] = order
        self._order_match.setdefault(code, []).append(_OrderMatch(order.estid, flag))
        return order.estid

    def cancel_order(self, estid: int) -> bool:
        """Mark a matching order for cancellation at the next update."""
        order = self._order_info.get(estid)
        if order is None:
            return False
        match = self._find_match(order)
        if match is None or match.state is _OrderState.INVALID:
            return False
        if match.state is not _OrderState.CANCELED:
            match.state = _OrderState.CANCELED
        return True

    def trader_data(self) -> TraderData:
        """Copies of the open orders and the held positions."""
        orders = [replace(self._order_info[estid]) for estid in sorted(self._order_info)]
        positions = [
            PositionSeed(
                id=code,
                today_long=detail.today_long.position,
                today_short=detail.today_short.position,
                history_long=detail.yesterday_long.position,
                history_short=detail.yesterday_short.position,
            )
            for code, detail in self._ledger
        ]
        return TraderData(orders=orders, positions=positions)

    def _make_estid(self) -> int:
        self._order_ref += 1
        high = (self._current_time << 32) & 0xFFFFFFFF00000000
        low = self._order_ref & 0xFFFF
        return high + low

    def _find_match(self, order: OrderInfo) -> _OrderMatch | None:
        for match in self._order_match.get(order.code, ()):
            if match.estid == order.estid:
                return match
        return None

    def _front_volume(self, book: Iterable[tuple[float, int]], price: float) -> int:
        return next((volume for level, volume in book if level == price), 0)

    def _buy_front(self, code: Code, price: float) -> int:
        tick = self._current_tick_info.get(code)
        return 0 if tick is None else self._front_volume(tick.bid_order, price)

    def _sell_front(self, code: Code, price: float) -> int:
        tick = self._current_tick_info.get(code)
        return 0 if tick is None else self._front_volume(tick.ask_order, price)

    def _match_entrust(self, tick: TickInfo) -> None:
        current_volume = tick.volume & _U32
        last_volume = self._last_frame_volume.get(tick.id)
        if last_volume is not None:
            current_volume = (tick.volume - last_volume) & _U32
        for match in self._order_match.get(tick.id, ()):
            order = self._order_info.get(match.estid)
            if order is not None:
                self._handle_entrust(tick, match, order, current_volume)

        for code in list(self._order_match):
            kept = []
            for match in self._order_match[code]:
                if match.state is _OrderState.DELETE:
                    if self._order_info.pop(match.estid, None) is not None:
                        logger.info("remove_order %d", match.estid)
                else:
                    kept.append(match)
            if kept:
                self._order_match[code] = kept
            else:
                del self._order_match[code]

    def _handle_entrust(
        self, tick: TickInfo, match: _OrderMatch, order: OrderInfo, max_volume: int
    ) -> None:
        if match.state is _OrderState.CANCELED:
            self._order_cancel(match, order)
            return
        if match.state is _OrderState.INVALID:
            try:
                self._ledger.freeze(
                    order.code, order.offset, order.direction, order.last_volume, order.price
                )
            except LedgerError as exc:
                self._order_error(match, ErrorType.PLACE_ORDER, order.estid, exc.code)
                return
            self._fire(TraderEvent.ORDER_PLACE, replace(order))
            if order.is_buy:
                match.queue_seat = self._buy_front(order.code, order.price)
            elif order.is_sell:
                match.queue_seat = self._sell_front(order.code, order.price)
            match.state = _OrderState.IN_MATCH

        if order.is_buy:
            self._handle_side(tick, match, order, max_volume, buying=True)
        else:
            self._handle_side(tick, match, order, max_volume, buying=False)

    def _handle_side(
        self,
        tick: TickInfo,
        match: _OrderMatch,
        order: OrderInfo,
        max_volume: int,
        *,
        buying: bool,
    ) -> None:
        if buying:
            crosses = order.price >= tick.sell_price
            queues = order.price >= tick.price
        else:
            crosses = order.price <= tick.buy_price
            queues = order.price <= tick.price

        if match.flag is OrderFlag.FOK:
            if order.last_volume <= max_volume and crosses:
                self._order_deal(match, order, order.last_volume)
            else:
                self._order_cancel(match, order)
        elif match.flag is OrderFlag.FAK:
            if crosses:
                deal_volume = min(order.last_volume, max_volume)
                if deal_volume > 0:
                    self._order_deal(match, order, deal_volume)
                if (order.last_volume - max_volume) & _U32:
                    self._order_cancel(match, order)
            else:
                self._order_cancel(match, order)
        elif crosses:
            deal_volume = min(order.last_volume, max_volume)
            if deal_volume > 0:
                self._order_deal(match, order, deal_volume)
        elif queues:
            new_seat = match.queue_seat - max_volume
            if new_seat < 0:
                match.queue_seat = 0
                deal_volume = min(order.last_volume, -new_seat)
                if deal_volume > 0:
                    self._order_deal(match, order, deal_volume)
            else:
                match.queue_seat = new_seat

    def _order_deal(self, match: _OrderMatch, order: OrderInfo, deal_volume: int) -> None:
        try:
            self._ledger.settle_deal(order, deal_volume)
        except LedgerError as exc:
            logger.error("order_deal failed for %s: %s", order.code.id, exc)
            return
        self._fire(TraderEvent.ORDER_DEAL, order.estid, deal_volume, order.last_volume)
        if order.last_volume == 0:
            self._fire(
                TraderEvent.ORDER_TRADE,
                order.estid,
                order.code,
                order.offset,
                order.direction,
                order.price,
                order.total_volume,
            )
            match.state = _OrderState.DELETE

    def _order_error(
        self, match: _OrderMatch, kind: ErrorType, estid: int, error: ErrorCode
    ) -> None:
        self._fire(TraderEvent.ORDER_ERROR, kind, estid, error)
        match.state = _OrderState.DELETE

    def _order_cancel(self, match: _OrderMatch, order: OrderInfo) -> None:
        if order.estid not in self._order_info or order.last_volume <= 0:
            return
        try:
            self._ledger.unfreeze(
                order.code, order.offset, order.direction, order.last_volume, order.price
            )
        except LedgerError as exc:
            logger.error("order_cancel error: %s", exc)
            return
        logger.info("order_cancel %d", order.estid)
        self._fire(
            TraderEvent.ORDER_CANCEL,
            order.estid,
            order.code,
            order.offset,
            order.direction,
            order.price,
            order.last_volume,
            order.total_volume,
        )
        match.state = _OrderState.DELETE