from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class Instrument(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    path: str
    # plausible quote magnitude, used only by the last-resort token scan
    band: tuple[Decimal, Decimal]


class PeggedInstrument(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    base: str
    ratio: Decimal


INSTRUMENTS: tuple[Instrument, ...] = (
    Instrument(code="USD", path="/currencies/usdbrl/idc-lite", band=(Decimal("3.5"), Decimal("8"))),
    Instrument(code="EUR", path="/currencies/eurbrl/idc-lite", band=(Decimal("4"), Decimal("9"))),
    Instrument(code="GBP", path="/currencies/gbpbrl/idc-lite", band=(Decimal("5"), Decimal("10"))),
)

AED_USD_PEG = Decimal("3.6725")

PEGS: tuple[PeggedInstrument, ...] = (
    PeggedInstrument(code="AED", base="USD", ratio=AED_USD_PEG),
)


def all_codes() -> list[str]:
    return [i.code for i in INSTRUMENTS] + [p.code for p in PEGS]
