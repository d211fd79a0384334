from __future__ import annotations

from decimal import Decimal

from rate_proxy.errors import DerivationPreconditionError
from rate_proxy.schemas.quote import Quote, quantize

PEG_SOURCE = "peg"


def derive_peg(base: Quote | None, ratio: Decimal) -> Quote:
    """Derive a pegged quote by dividing every price of ``base`` by ``ratio``."""
    if base is None:
        raise DerivationPreconditionError("base quote must be resolved before derivation")
    return Quote(
        buy=quantize(base.buy / ratio),
        sell=quantize(base.sell / ratio),
        spot=quantize(base.spot / ratio),
        variation=base.variation,
        high=quantize(base.high / ratio),
        low=quantize(base.low / ratio),
        source=PEG_SOURCE,
    )
