import pytest

from hftsim.engine_types import BarInfo, DealStatus, TapeInfo
from hftsim.types import Code


@pytest.mark.parametrize(
    "volume, interest, expected",
    [
        (10, 10.0, DealStatus.DOUBLE_OPEN),
        (10, 5.0, DealStatus.OPEN),
        (10, 0.0, DealStatus.CHANGE),
        (10, -5.0, DealStatus.CLOSE),
        (10, -10.0, DealStatus.DOUBLE_CLOSE),
        (0, 0.0, DealStatus.INVALID),
        (3, 5.0, DealStatus.INVALID),
    ],
)
def test_tape_status(volume, interest, expected):
    tape = TapeInfo(Code("SHFE.rb2401"), 1000, 3500.0, volume, interest)
    assert tape.status is expected


def _bar():
    return BarInfo(
        low=1.0,
        high=3.0,
        price_step=1.0,
        price_buy_volume={1.0: 10, 2.0: 1, 3.0: 0},
        price_sell_volume={1.0: 0, 2.0: 2, 3.0: 10},
    )


def test_volumes_default_to_zero():
    bar = _bar()
    assert bar.buy_volume(1.0) == 10
    assert bar.sell_volume(3.0) == 10
    assert bar.buy_volume(7.5) == 0
    assert bar.sell_volume(7.5) == 0


def test_price_delta():
    bar = _bar()
    assert bar.price_delta(2.0) == -1
    assert bar.price_delta(1.0) == bar.buy_volume(1.0)


def test_order_book_covers_low_to_high():
    book = _bar().order_book()
    assert book == [(1.0, 10, 0), (2.0, 1, 2), (3.0, 0, 10)]


@pytest.mark.parametrize("field_name", ["low", "high", "price_step"])
def test_order_book_empty_when_unset(field_name):
    bar = _bar()
    setattr(bar, field_name, 0.0)
    assert bar.order_book() == []


def test_unbalance():
    demand, supply = _bar().unbalance(2)
    assert demand == [1.0]
    assert supply == [3.0]


def test_unbalance_of_empty_bar():
    assert BarInfo().unbalance(3) == ([], [])


def test_clear_resets_fields():
    bar = _bar()
    bar.volume = 12
    bar.poc = 2.0
    bar.clear()
    assert bar.order_book() == []
    assert bar.volume == 0
    assert bar.poc == 0.0
    assert bar.price_buy_volume == {}
    assert bar.price_sell_volume == {}