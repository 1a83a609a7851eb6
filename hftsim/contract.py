"""Contract specifications: fees, multiplier and margin rate."""

from __future__ import annotations

import csv
import enum
import logging
import os
from dataclasses import dataclass

from hftsim.types import DEFAULT_CODE, Code, OffsetType

logger = logging.getLogger(__name__)

_COLUMNS = (
    "code",
    "charge_type",
    "open_charge",
    "close_today_charge",
    "close_yestoday_charge",
    "multiple",
    "margin_rate",
)


class ChargeType(enum.IntEnum):
    """How a service charge is computed."""

    FIXED_AMOUNT = 1
    PRICE_RATIO = 2


@dataclass
class ContractInfo:
    """Fees, multiplier and margin rate of one contract."""

    code: Code = DEFAULT_CODE
    charge_type: ChargeType = ChargeType.FIXED_AMOUNT
    open_charge: float = 0.0
    close_today_charge: float = 0.0
    close_yesterday_charge: float = 0.0
    multiple: float = 0.0
    margin_rate: float = 0.0

    def service_charge(self, price: float, offset: OffsetType) -> float:
        """Fee per lot for an order at ``price`` with the given offset."""
        if offset is OffsetType.OPEN:
            rate = self.open_charge
        elif offset is OffsetType.CLOSE_TODAY:
            rate = self.close_today_charge
        else:
            rate = self.close_yesterday_charge
        if self.charge_type is ChargeType.FIXED_AMOUNT:
            return rate
        if self.charge_type is ChargeType.PRICE_RATIO:
            return rate * price * self.multiple
        return 0.0


class ContractParser:
    """Contract specifications loaded from a CSV file with a header row."""

    def __init__(self) -> None:
        self._contracts: dict[Code, ContractInfo] = {}

    def load(self, path: str | os.PathLike[str]) -> None:
        """Replace the known contracts with those in the CSV file at ``path``."""
        logger.info("contract_parser init")
        self._contracts.clear()
        with open(path, newline="", encoding="utf-8") as handle:
            reader = csv.DictReader(handle)
            missing = [name for name in _COLUMNS if name not in (reader.fieldnames or ())]
            if missing:
                raise ValueError(f"{path}: missing columns {', '.join(missing)}")
            for line, row in enumerate(reader, start=2):
                try:
                    info = self._read_row(row)
                except (TypeError, ValueError) as exc:
                    raise ValueError(f"{path}:{line}: {exc}") from exc
                self._contracts[info.code] = info

    @staticmethod
    def _read_row(row: dict[str, str]) -> ContractInfo:
        logger.info("load contract code: %s", row["code"])
        return ContractInfo(
            code=Code(row["code"]),
            charge_type=ChargeType(int(row["charge_type"])),
            open_charge=float(row["open_charge"]),
            close_today_charge=float(row["close_today_charge"]),
            close_yesterday_charge=float(row["close_yestoday_charge"]),
            multiple=float(row["multiple"]),
            margin_rate=float(row["margin_rate"]),
        )

    def get(self, code: Code) -> ContractInfo | None:
        """The specification of ``code``, or None if it is unknown."""
        return self._contracts.get(code)

    def __contains__(self, code: object) -> bool:
        return code in self._contracts

    def __len__(self) -> int:
        return len(self._contracts)