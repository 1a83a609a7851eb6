import pytest

from hftsim.contract import ChargeType, ContractInfo, ContractParser
from hftsim.ledger import (
    AccountInfo,
    Ledger,
    LedgerError,
    PositionDetail,
    PositionItem,
)
from hftsim.types import Code, DirectionType, ErrorCode, OffsetType, OrderInfo

SHFE = Code("SHFE.rb2010")
DCE = Code("DCE.m2009")
UNKNOWN = Code("CZCE.SR009")


def _contracts(charge=0.0, multiple=10.0, margin=0.1):
    return {
        code: ContractInfo(
            code=code,
            charge_type=ChargeType.FIXED_AMOUNT,
            open_charge=charge,
            close_today_charge=charge,
            close_yesterday_charge=charge,
            multiple=multiple,
            margin_rate=margin,
        )
        for code in (SHFE, DCE)
    }


def _order(code, offset, direction, volume, price):
    return OrderInfo(
        estid=1,
        code=code,
        total_volume=volume,
        last_volume=volume,
        offset=offset,
        direction=direction,
        price=price,
    )


def test_position_item_usable_and_clear():
    item = PositionItem(position=5, price=10.0, frozen=2)
    assert item.usable == 3
    assert not item.empty
    item.clear()
    assert item == PositionItem()
    assert item.empty


def test_position_detail_sums():
    detail = PositionDetail(
        today_long=PositionItem(position=3, frozen=1),
        yesterday_long=PositionItem(position=2),
        today_short=PositionItem(position=1, frozen=1),
    )
    assert detail.long_position == 3 + 2
    assert detail.short_position == 1
    assert detail.total == detail.long_position + detail.short_position
    assert detail.real == detail.long_position - detail.short_position
    assert detail.long_frozen == 1
    assert detail.short_frozen == 1
    assert not detail.empty
    assert PositionDetail().empty


def test_account_defaults():
    account = AccountInfo()
    assert account.money == 0.0
    assert account.frozen_money == 0.0


def test_freeze_and_unfreeze_open_round_trip():
    ledger = Ledger(_contracts(), money=100000.0)
    ledger.freeze(SHFE, OffsetType.OPEN, DirectionType.LONG, 2, 3500.0)
    assert ledger.account.frozen_money > 0
    ledger.unfreeze(SHFE, OffsetType.OPEN, DirectionType.LONG, 2, 3500.0)
    assert ledger.account.frozen_money == pytest.approx(0.0)
    assert ledger.account.money == 100000.0


def test_unfreeze_open_never_goes_negative():
    ledger = Ledger(_contracts(), money=100000.0)
    ledger.unfreeze(SHFE, OffsetType.OPEN, DirectionType.LONG, 5, 3500.0)
    assert ledger.account.frozen_money == 0.0


def test_freeze_margin_not_enough():
    ledger = Ledger(_contracts(), money=1.0)
    with pytest.raises(LedgerError) as info:
        ledger.freeze(SHFE, OffsetType.OPEN, DirectionType.LONG, 1, 3500.0)
    assert info.value.code is ErrorCode.MARGIN_NOT_ENOUGH
    assert ledger.account.frozen_money == 0.0


def test_unknown_contract_fails():
    ledger = Ledger(_contracts(), money=1000.0)
    with pytest.raises(LedgerError) as info:
        ledger.freeze(UNKNOWN, OffsetType.OPEN, DirectionType.LONG, 1, 10.0)
    assert info.value.code is ErrorCode.FAILURE
    with pytest.raises(LedgerError) as info:
        ledger.settle_deal(_order(UNKNOWN, OffsetType.OPEN, DirectionType.LONG, 1, 10.0), 1)
    assert info.value.code is ErrorCode.FAILURE


def test_freeze_close_without_position():
    ledger = Ledger(_contracts(), money=1000.0)
    with pytest.raises(LedgerError) as info:
        ledger.freeze(SHFE, OffsetType.CLOSE_TODAY, DirectionType.LONG, 1, 10.0)
    assert info.value.code is ErrorCode.POSITION_NOT_ENOUGH


def test_open_deal_builds_today_position():
    ledger = Ledger(_contracts(), money=100000.0)
    order = _order(SHFE, OffsetType.OPEN, DirectionType.LONG, 3, 3500.0)
    ledger.settle_deal(order, 2)
    detail = ledger.position(SHFE)
    assert detail.today_long.position == 2
    assert detail.today_long.price == 3500.0
    assert order.last_volume == 1
    ledger.settle_deal(order, 1)
    assert detail.today_long.position == 3
    assert order.last_volume == 0
    assert SHFE in ledger


def test_open_deal_averages_price():
    ledger = Ledger(_contracts(), money=100000.0)
    ledger.settle_deal(_order(DCE, OffsetType.OPEN, DirectionType.SHORT, 1, 100.0), 1)
    ledger.settle_deal(_order(DCE, OffsetType.OPEN, DirectionType.SHORT, 1, 200.0), 1)
    item = ledger.position(DCE).today_short
    assert item.position == 2
    assert item.price == pytest.approx(150.0)


def test_open_deal_charges_fixed_fee():
    ledger = Ledger(_contracts(charge=5.0), money=1000.0)
    ledger.settle_deal(_order(SHFE, OffsetType.OPEN, DirectionType.LONG, 1, 3500.0), 1)
    assert ledger.account.money == 1000.0 - 5.0


def test_open_deal_skipped_when_fee_unaffordable():
    ledger = Ledger(_contracts(charge=5.0), money=1.0)
    order = _order(SHFE, OffsetType.OPEN, DirectionType.LONG, 1, 3500.0)
    ledger.settle_deal(order, 1)
    assert ledger.position(SHFE).today_long.position == 0
    assert ledger.account.money == 1.0
    assert order.last_volume == 0


def test_close_freeze_then_deal_releases_position():
    ledger = Ledger(_contracts(), money=100000.0)
    ledger.settle_deal(_order(SHFE, OffsetType.OPEN, DirectionType.LONG, 2, 100.0), 2)
    ledger.freeze(SHFE, OffsetType.CLOSE_TODAY, DirectionType.LONG, 2, 110.0)
    item = ledger.position(SHFE).today_long
    assert item.frozen == 2
    assert item.usable == 0
    with pytest.raises(LedgerError) as info:
        ledger.freeze(SHFE, OffsetType.CLOSE_TODAY, DirectionType.LONG, 1, 110.0)
    assert info.value.code is ErrorCode.POSITION_NOT_ENOUGH
    before = ledger.account.money
    ledger.settle_deal(_order(SHFE, OffsetType.CLOSE_TODAY, DirectionType.LONG, 2, 110.0), 2)
    assert item.position == 0
    assert item.frozen == 0
    assert ledger.account.money > before


def test_close_short_at_higher_price_loses():
    ledger = Ledger(_contracts(), money=100000.0)
    ledger.settle_deal(_order(SHFE, OffsetType.OPEN, DirectionType.SHORT, 1, 100.0), 1)
    before = ledger.account.money
    ledger.settle_deal(_order(SHFE, OffsetType.CLOSE_TODAY, DirectionType.SHORT, 1, 110.0), 1)
    assert ledger.account.money < before
    assert ledger.position(SHFE).today_short.position == 0


def test_close_freeze_unfreeze_round_trip():
    ledger = Ledger(_contracts(), money=100000.0)
    ledger.settle_deal(_order(DCE, OffsetType.OPEN, DirectionType.LONG, 3, 100.0), 3)
    ledger.freeze(DCE, OffsetType.CLOSE_TODAY, DirectionType.LONG, 2, 100.0)
    ledger.unfreeze(DCE, OffsetType.CLOSE_TODAY, DirectionType.LONG, 5, 100.0)
    assert ledger.position(DCE).today_long.frozen == 0
    assert ledger.position(DCE).today_long.usable == 3


def test_close_yesterday_needs_yesterday_position():
    ledger = Ledger(_contracts(), money=100000.0)
    ledger.settle_deal(_order(SHFE, OffsetType.OPEN, DirectionType.LONG, 1, 100.0), 1)
    with pytest.raises(LedgerError) as info:
        ledger.freeze(SHFE, OffsetType.CLOSE, DirectionType.LONG, 1, 100.0)
    assert info.value.code is ErrorCode.POSITION_NOT_ENOUGH


def test_roll_over_merges_yesterday_on_distinct_exchange():
    ledger = Ledger(_contracts(), money=100000.0)
    ledger.settle_deal(_order(SHFE, OffsetType.OPEN, DirectionType.LONG, 1, 100.0), 1)
    ledger.settle_deal(_order(DCE, OffsetType.OPEN, DirectionType.LONG, 1, 100.0), 1)
    shfe = ledger.position(SHFE)
    dce = ledger.position(DCE)
    shfe.yesterday_long = PositionItem(position=1, price=200.0, frozen=1)
    dce.yesterday_long = PositionItem(position=1, price=200.0, frozen=1)
    ledger.roll_over()
    assert shfe.today_long.position == 2
    assert shfe.today_long.price == pytest.approx(150.0)
    assert shfe.yesterday_long == PositionItem(position=0, price=200.0, frozen=0)
    assert dce.yesterday_long.position == 1
    assert dce.yesterday_long.frozen == 1
    assert dce.today_long.position == 1


def test_iteration_is_sorted_by_code():
    ledger = Ledger(_contracts(), money=100000.0)
    ledger.settle_deal(_order(SHFE, OffsetType.OPEN, DirectionType.LONG, 1, 100.0), 1)
    ledger.settle_deal(_order(DCE, OffsetType.OPEN, DirectionType.LONG, 1, 100.0), 1)
    codes = [code for code, _ in ledger]
    assert codes == sorted([SHFE, DCE])
    assert ledger.position(UNKNOWN) is None


def test_ledger_with_contract_parser(tmp_path):
    path = tmp_path / "contracts.csv"
    path.write_text(
        "code,charge_type,open_charge,close_today_charge,close_yestoday_charge,multiple,margin_rate\n"
        "SHFE.rb2010,1,0,0,0,10,0.1\n",
        encoding="utf-8",
    )
    parser = ContractParser()
    parser.load(path)
    ledger = Ledger(parser, money=100000.0)
    ledger.freeze(SHFE, OffsetType.OPEN, DirectionType.LONG, 1, 3500.0)
    assert 0 < ledger.account.frozen_money <= ledger.account.money
    with pytest.raises(LedgerError):
        ledger.freeze(DCE, OffsetType.OPEN, DirectionType.LONG, 1, 3500.0)