"""Core trading value types: contract codes, ticks, positions, orders and market data."""

from __future__ import annotations

import enum
import functools
import re
from dataclasses import dataclass, field

EXCHANGE_ID_SHFE = "SHFE"
EXCHANGE_ID_DCE = "DCE"
EXCHANGE_ID_INE = "INE"
EXCHANGE_ID_CZCE = "CZCE"
EXCHANGE_ID_GFEX = "GFEX"
EXCHANGE_ID_CFFEX = "CFFEX"

INVALID_ESTID = 0

TEI_OPEN_PRICE = 0
TEI_CLOSE_PRICE = 1
TEI_HIGH_PRICE = 2
TEI_LOW_PRICE = 3
TEI_MAX_PRICE = 4
TEI_MIN_PRICE = 5
TEI_STANDARD_PRICE = 6

PRICE_VOLUME_SIZE = 5

CODE_DATA_LEN = 20
_CONTID_BEGIN = 0
_EXCGID_BEGIN = 8
_CMDTID_BEGIN = 14
_CMDTNO_BEGIN = 18

_LEADING_INT = re.compile(rb"[ \t\n\v\f\r]*([+-]?\d+)")
_DIGITS = frozenset(b"0123456789")


def _leading_int(raw: bytes) -> int:
    match = _LEADING_INT.match(raw)
    return int(match.group(1)) if match else 0


def _put(buf: bytearray, index: int, value: int) -> None:
    if 0 <= index < CODE_DATA_LEN:
        buf[index] = value


def _store_number(buf: bytearray, number: int) -> None:
    buf[_CMDTNO_BEGIN:_CMDTNO_BEGIN + 2] = (number & 0xFFFF).to_bytes(2, "little")


def _c_bytes(text: str) -> bytes:
    raw = text.encode("utf-8")
    end = raw.find(b"\0")
    return raw if end < 0 else raw[:end]


@functools.total_ordering
class Code:
    """A futures contract code such as ``SHFE.rb2010``.

    The code is held in a fixed 20 byte layout: contract id, exchange id,
    commodity id and a 16 bit commodity number. Ordering and equality
    compare that layout byte by byte.
    """

    __slots__ = ("_data",)

    def __init__(self, text: str = "") -> None:
        buf = bytearray(CODE_DATA_LEN)
        dot = 0
        number_index = 0
        for i, char in enumerate(_c_bytes(text)[:CODE_DATA_LEN]):
            if char == ord("."):
                dot = i
                continue
            if dot == 0:
                _put(buf, i + _EXCGID_BEGIN, char)
                continue
            j = i - dot - 1
            _put(buf, j, char)
            if char in _DIGITS:
                if number_index == 0:
                    number_index = j
            else:
                _put(buf, j + _CMDTID_BEGIN, char)
        _store_number(buf, _leading_int(bytes(buf[number_index:])))
        self._data = bytes(buf)

    @classmethod
    def _from_buffer(cls, buf: bytearray) -> Code:
        code = cls.__new__(cls)
        code._data = bytes(buf)
        return code

    @staticmethod
    def _write_exchange(buf: bytearray, exchange_id: str) -> None:
        raw = _c_bytes(exchange_id)
        if len(raw) < _CMDTID_BEGIN - _EXCGID_BEGIN:
            buf[_EXCGID_BEGIN:_EXCGID_BEGIN + len(raw)] = raw

    @classmethod
    def from_parts(cls, contract_id: str, exchange_id: str) -> Code:
        """Build a code from a contract id (``rb2010``) and an exchange id."""
        buf = bytearray(CODE_DATA_LEN)
        number_index = 0
        for i, char in enumerate(_c_bytes(contract_id)[:_EXCGID_BEGIN]):
            buf[i] = char
            if char in _DIGITS:
                if number_index == 0:
                    number_index = i
            else:
                _put(buf, i + _CMDTID_BEGIN, char)
        _store_number(buf, _leading_int(bytes(buf[number_index:])))
        cls._write_exchange(buf, exchange_id)
        return cls._from_buffer(buf)

    @classmethod
    def from_commodity(cls, commodity_id: str, commodity_no: str, exchange_id: str) -> Code:
        """Build a code from commodity id, commodity number and exchange id."""
        buf = bytearray(CODE_DATA_LEN)
        cmdt_id = _c_bytes(commodity_id)
        cmdt_no = _c_bytes(commodity_no)
        if len(cmdt_id) + len(cmdt_no) < _EXCGID_BEGIN:
            contract = cmdt_id + cmdt_no
            buf[:len(contract)] = contract
            for offset, char in enumerate(cmdt_id):
                _put(buf, _CMDTID_BEGIN + offset, char)
            _store_number(buf, _leading_int(cmdt_no))
        cls._write_exchange(buf, exchange_id)
        return cls._from_buffer(buf)

    def _field(self, start: int, width: int) -> str:
        chunk = self._data[start:start + width]
        end = chunk.find(b"\0")
        if end >= 0:
            chunk = chunk[:end]
        return chunk.decode("utf-8", errors="replace")

    @property
    def id(self) -> str:
        """Contract id, e.g. ``rb2010``."""
        return self._field(_CONTID_BEGIN, _EXCGID_BEGIN - _CONTID_BEGIN)

    @property
    def exchange(self) -> str:
        """Exchange id, e.g. ``SHFE``."""
        return self._field(_EXCGID_BEGIN, _CMDTID_BEGIN - _EXCGID_BEGIN)

    @property
    def commodity_id(self) -> str:
        """Commodity id, e.g. ``rb``."""
        return self._field(_CMDTID_BEGIN, _CMDTNO_BEGIN - _CMDTID_BEGIN)

    @property
    def commodity_no(self) -> int:
        """Commodity number, e.g. ``2010``."""
        return int.from_bytes(self._data[_CMDTNO_BEGIN:_CMDTNO_BEGIN + 2], "little")

    @property
    def is_distinct(self) -> bool:
        """Whether the exchange tells today's and yesterday's positions apart."""
        return self.exchange in (EXCHANGE_ID_SHFE, EXCHANGE_ID_INE)

    def __str__(self) -> str:
        return f"{self.exchange}.{self.id}"

    def __repr__(self) -> str:
        return f"Code({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Code):
            return NotImplemented
        return self._data == other._data

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Code):
            return NotImplemented
        return self._data < other._data

    def __hash__(self) -> int:
        return hash(self._data)


DEFAULT_CODE = Code()


class OrderFlag(enum.Enum):
    """Order execution flag."""

    NORMAL = "0"
    FAK = "1"
    FOK = "2"


class OffsetType(enum.Enum):
    """Open or close an order; CLOSE closes yesterday's position on SHFE."""

    OPEN = "0"
    CLOSE = "1"
    CLOSE_TODAY = "2"


class DirectionType(enum.Enum):
    """Long or short side."""

    LONG = "0"
    SHORT = "1"


class ErrorCode(enum.IntEnum):
    """Result codes reported for orders."""

    SUCCESS = 0
    FAILURE = 1
    ORDER_FIELD_ERROR = 23
    POSITION_NOT_ENOUGH = 30
    MARGIN_NOT_ENOUGH = 31
    STATE_NOT_READY = 32


class ErrorType(enum.IntEnum):
    """Kind of operation an error belongs to."""

    PLACE_ORDER = 0
    CANCEL_ORDER = 1
    OTHER_ERROR = 2


def _empty_book() -> tuple[tuple[float, int], ...]:
    return tuple((0.0, 0) for _ in range(PRICE_VOLUME_SIZE))


@dataclass
class TickInfo:
    """A market data snapshot for one contract."""

    id: Code = DEFAULT_CODE
    time: int = 0
    price: float = 0.0
    volume: int = 0
    open_interest: float = 0.0
    trading_day: int = 0
    bid_order: tuple[tuple[float, int], ...] = field(default_factory=_empty_book)
    ask_order: tuple[tuple[float, int], ...] = field(default_factory=_empty_book)

    @property
    def buy_price(self) -> float:
        """Best bid price."""
        return self.bid_order[0][0] if self.bid_order else 0.0

    @property
    def sell_price(self) -> float:
        """Best ask price."""
        return self.ask_order[0][0] if self.ask_order else 0.0

    @property
    def total_buy_volume(self) -> int:
        return sum(volume for _, volume in self.bid_order)

    @property
    def total_sell_volume(self) -> int:
        return sum(volume for _, volume in self.ask_order)

    @property
    def invalid(self) -> bool:
        return self.id == DEFAULT_CODE


@dataclass
class PositionCell:
    """Held volume and the part of it frozen by pending close orders."""

    position: int = 0
    frozen: int = 0

    @property
    def usable(self) -> int:
        return self.position - self.frozen

    @property
    def empty(self) -> bool:
        return self.position == 0

    def clear(self) -> None:
        self.position = 0
        self.frozen = 0


@dataclass
class PositionInfo:
    """Today's and yesterday's positions of one contract."""

    id: Code = DEFAULT_CODE
    today_long: PositionCell = field(default_factory=PositionCell)
    today_short: PositionCell = field(default_factory=PositionCell)
    history_long: PositionCell = field(default_factory=PositionCell)
    history_short: PositionCell = field(default_factory=PositionCell)
    long_pending: int = 0
    short_pending: int = 0

    @property
    def empty(self) -> bool:
        return (
            self.today_long.empty
            and self.today_short.empty
            and self.history_long.empty
            and self.history_short.empty
            and self.long_pending == 0
            and self.short_pending == 0
        )

    @property
    def total(self) -> int:
        return self.long_position + self.short_position

    @property
    def real(self) -> int:
        return self.long_position - self.short_position

    @property
    def long_position(self) -> int:
        return self.today_long.position + self.history_long.position

    @property
    def short_position(self) -> int:
        return self.today_short.position + self.history_short.position

    @property
    def long_frozen(self) -> int:
        return self.today_long.frozen + self.history_long.frozen

    @property
    def short_frozen(self) -> int:
        return self.today_short.frozen + self.history_short.frozen


@dataclass
class OrderInfo:
    """An order as known locally."""

    estid: int = INVALID_ESTID
    code: Code = DEFAULT_CODE
    unit_id: str = ""
    total_volume: int = 0
    last_volume: int = 0
    create_time: int = 0
    offset: OffsetType = OffsetType.OPEN
    direction: DirectionType = DirectionType.LONG
    price: float = 0.0

    @property
    def invalid(self) -> bool:
        return self.estid == INVALID_ESTID

    @property
    def is_buy(self) -> bool:
        if self.direction is DirectionType.LONG:
            return self.offset is OffsetType.OPEN
        return self.offset in (OffsetType.CLOSE, OffsetType.CLOSE_TODAY)

    @property
    def is_sell(self) -> bool:
        if self.direction is DirectionType.SHORT:
            return self.offset is OffsetType.OPEN
        return self.offset in (OffsetType.CLOSE, OffsetType.CLOSE_TODAY)


@dataclass
class OrderStatistic:
    """Order counters for one trading day."""

    place_order_amount: int = 0
    entrust_amount: int = 0
    trade_amount: int = 0
    cancel_amount: int = 0
    error_amount: int = 0


@dataclass
class MarketInfo:
    """Today's market summary of one contract."""

    code: Code = DEFAULT_CODE
    open_price: float = 0.0
    close_price: float = 0.0
    standard_price: float = 0.0
    high_price: float = 0.0
    low_price: float = 0.0
    max_price: float = 0.0
    min_price: float = 0.0
    trading_day: int = 0
    volume_distribution: dict[float, int] = field(default_factory=dict)
    last_tick_info: TickInfo = field(default_factory=TickInfo)

    @property
    def control_price(self) -> float:
        """Price with the largest traded volume, lowest price first on ties."""
        control = self.last_tick_info.price
        max_volume = 0
        for price in sorted(self.volume_distribution):
            volume = self.volume_distribution[price]
            if volume > max_volume:
                max_volume = volume
                control = price
        return control

    @property
    def middle_price(self) -> float:
        return (self.high_price + self.low_price) / 2.0

    def clear(self) -> None:
        self.volume_distribution.clear()