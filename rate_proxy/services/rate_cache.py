from __future__ import annotations

from datetime import datetime, timezone
from typing import Mapping

from rate_proxy.config.instruments import PEGS, all_codes
from rate_proxy.schemas.quote import Quote, Snapshot
from rate_proxy.services.peg import derive_peg


def _build_static_default() -> dict[str, Quote]:
    rates = {
        "USD": Quote.from_prices(buy="5.1277", sell="5.1346", high="5.1698", low="5.1203", variation="-0.17"),
        "EUR": Quote.from_prices(buy="5.7800", sell="5.7900", high="5.8100", low="5.7500"),
        "GBP": Quote.from_prices(buy="6.5200", sell="6.5400", high="6.5600", low="6.5000"),
    }
    for peg in PEGS:
        rates[peg.code] = derive_peg(rates[peg.base], peg.ratio)
    return rates


STATIC_DEFAULT: Mapping[str, Quote] = _build_static_default()


class RateCache:
    """Holds the last published snapshot; a single reference swap replaces it."""

    def __init__(self, static_default: Mapping[str, Quote] | None = None) -> None:
        self.static_default = dict(static_default if static_default is not None else STATIC_DEFAULT)
        self._default_snapshot = Snapshot(rates=self.static_default, updated_at=None)
        self._snapshot: Snapshot | None = None

    @property
    def has_published(self) -> bool:
        return self._snapshot is not None

    def read(self) -> Snapshot:
        snapshot = self._snapshot
        return snapshot if snapshot is not None else self._default_snapshot

    def fallback_for(self, code: str) -> Quote:
        snapshot = self._snapshot
        if snapshot is not None and code in snapshot.rates:
            return snapshot.rates[code]
        return self.static_default[code]

    def publish(self, rates: Mapping[str, Quote]) -> Snapshot:
        missing = [code for code in all_codes() if code not in rates]
        if missing:
            raise ValueError(f"incomplete rate set, missing: {','.join(missing)}")
        snapshot = Snapshot(rates=dict(rates), updated_at=datetime.now(timezone.utc))
        self._snapshot = snapshot
        return snapshot
