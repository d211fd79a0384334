from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer

PRECISION = 5
_STEP = Decimal(1).scaleb(-PRECISION)

Price = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


def quantize(value: Decimal | str | float) -> Decimal:
    return Decimal(str(value)).quantize(_STEP, rounding=ROUND_HALF_UP)


def midpoint(buy: Decimal, sell: Decimal) -> Decimal:
    return quantize((Decimal(buy) + Decimal(sell)) / 2)


class Quote(BaseModel):
    model_config = ConfigDict(frozen=True)

    buy: Price
    sell: Price
    spot: Price
    variation: Price
    high: Price
    low: Price
    source: str | None = None

    @classmethod
    def from_prices(
        cls,
        *,
        buy: Decimal | str,
        sell: Decimal | str,
        high: Decimal | str,
        low: Decimal | str,
        variation: Decimal | str = "0",
    ) -> "Quote":
        buy_d = Decimal(str(buy))
        sell_d = Decimal(str(sell))
        return cls(
            buy=buy_d,
            sell=sell_d,
            spot=midpoint(buy_d, sell_d),
            variation=Decimal(str(variation)),
            high=Decimal(str(high)),
            low=Decimal(str(low)),
        )

    def to_public(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


class Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    rates: dict[str, Quote]
    updated_at: datetime | None = None


class LogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    ts: datetime
    message: str

    def render(self) -> str:
        return f"{self.ts.strftime('%H:%M:%S')} {self.message}"
