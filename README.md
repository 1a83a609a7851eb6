# hftsim

A small toolkit for simulating futures trading on tick data. It has no
dependencies outside the standard library. It provides contract codes and
market data types, a parameter and INI configuration reader, a contract fee
table, a position and margin ledger, and a trader simulator that matches orders
against incoming ticks. The simulator models queue position and FAK/FOK order
flags.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `hftsim.types`: `Code` (for example `Code("SHFE.rb2410")`, with `id`,
  `exchange`, `commodity_id`, `commodity_no` and `is_distinct`), `TickInfo`,
  `OrderInfo`, `PositionCell`, `PositionInfo`, `OrderStatistic`, `MarketInfo`,
  and the enums `OffsetType`, `DirectionType`, `OrderFlag`, `ErrorCode` and
  `ErrorType`.
- `hftsim.params`: `Params`, a typed view over string key/value settings, with
  `get_str`, `get_int`, `get_float`, `get_bool` and `get_code`. A missing key
  raises `KeyError`. `Params.parse("a=1&b=true")` builds one from a
  query-style string.
- `hftsim.ini`: `Ini` and `IniFormat`, an INI reader and writer
  (`parse`, `generate`, `interpolate`, `default_section`,
  `strip_trailing_comments`, `get`). `interpolate` resolves `${key}` and
  `${section:key}` references. `extract` converts a value to `str`, `bool`,
  `int` or `float`.
- `hftsim.engine_types`: `TapeInfo`, whose `status` gives a `DealStatus`, and
  `BarInfo`, with `order_book()` and `unbalance(multiple)` for order-flow
  analysis.
- `hftsim.contract`: `ContractParser`, which loads a CSV of per-contract
  multipliers, margin rates and fees, and `ContractInfo.service_charge`.
- `hftsim.ledger`: `Ledger`, which freezes margin and positions, settles
  deals and rolls positions over at day end. When an order cannot be booked it
  raises `LedgerError`, whose `code` attribute holds an `ErrorCode`.
- `hftsim.trader_simulator`: `TraderSimulator`, which matches orders against
  ticks and reports `TraderEvent`s to its listeners.
- `hftsim.ringbuffer`: `RingBuffer`, a fixed-capacity FIFO queue. Its capacity
  must be a power of two.

## Example

```python
from hftsim.params import Params
from hftsim.trader_simulator import TraderSimulator
from hftsim.types import Code, DirectionType, OffsetType, OrderFlag, TickInfo

config = Params({
    "initial_capital": "1000000",
    "contract_config": "contracts.csv",
    "interval": "1",
})
trader = TraderSimulator(config)
trader.add_listener(lambda event, *args: print(event, args))

code = Code("SHFE.rb2410")
estid = trader.place_order(
    OffsetType.OPEN, DirectionType.LONG, code, 1, 3500.0, OrderFlag.NORMAL
)

tick = TickInfo(
    id=code,
    time=34200000,
    price=3500.0,
    volume=10,
    bid_order=((3499.0, 5),) * 5,
    ask_order=((3500.0, 5),) * 5,
)
trader.push_tick([tick])
trader.update()

print(trader.account)
print(trader.trader_data())
```

The contract CSV needs a header row with the columns `code`, `charge_type`,
`open_charge`, `close_today_charge`, `close_yestoday_charge`, `multiple` and
`margin_rate`. `charge_type` is `1` for a fixed amount per lot and `2` for a
ratio of price times multiplier.

Listeners are called as `callback(event, *args)`:

- `ORDER_PLACE`: the order
- `ORDER_DEAL`: estid, deal volume, remaining volume
- `ORDER_TRADE`: estid, code, offset, direction, price, total volume
- `ORDER_CANCEL`: estid, code, offset, direction, price, cancelled volume,
  total volume
- `ORDER_ERROR`: error type, estid, error code

`TraderSimulator.crossday(trading_day)` cancels every pending order and rolls
yesterday's positions into today's on exchanges that keep them apart (SHFE
and INE).

## What it does not do

The package has no tick data loader, no market replay and no strategy engine.
You supply the ticks to `TraderSimulator.push_tick` yourself and call
`update()` for each frame. It installs no command-line program, and it keeps
no state on disk between runs.