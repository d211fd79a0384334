from __future__ import annotations

import re
from decimal import Decimal

from rate_proxy.config.instruments import INSTRUMENTS
from rate_proxy.errors import ParseError
from rate_proxy.schemas.quote import Quote, quantize

# "5.12776/3456": ask shares its leading decimals with the bid
_BID_ASK_RE = re.compile(r"(\d+)\.(\d{2,6})/(\d+)")
_RANGE_RE = re.compile(r"(\d+\.\d{2,6})\s*-\s*(\d+\.\d{2,6})")
_VARIATION_RE = re.compile(r"([-+]?\d+\.\d+)%")
DECIMAL_TOKEN_RE = re.compile(r"\d+\.\d+")

_SCAN_SPREAD = Decimal("0.001")

_BANDS = {i.code: i.band for i in INSTRUMENTS}


def decimal_tokens(text: str, limit: int | None = None) -> list[str]:
    tokens = DECIMAL_TOKEN_RE.findall(text or "")
    return tokens if limit is None else tokens[:limit]


def reconstruct_ask(integer: str, fraction: str, suffix: str) -> Decimal:
    """Rebuild the ask from the bid digits and the compact ask suffix.

    The suffix replaces the trailing ``len(suffix)`` fractional digits of the
    bid. A suffix at least as long as the bid's fraction replaces it whole.
    """
    if len(suffix) >= len(fraction):
        ask_fraction = suffix
    else:
        ask_fraction = fraction[: len(fraction) - len(suffix)] + suffix
    return Decimal(f"{integer}.{ask_fraction}")


def match_bid_ask(text: str) -> tuple[Decimal, Decimal] | None:
    m = _BID_ASK_RE.search(text)
    if not m:
        return None
    integer, fraction, suffix = m.groups()
    return Decimal(f"{integer}.{fraction}"), reconstruct_ask(integer, fraction, suffix)


def match_range(text: str) -> tuple[Decimal, Decimal] | None:
    m = _RANGE_RE.search(text)
    if not m:
        return None
    return Decimal(m.group(1)), Decimal(m.group(2))


def match_variation(text: str) -> Decimal | None:
    m = _VARIATION_RE.search(text)
    if not m:
        return None
    return Decimal(m.group(1))


def scan_magnitude(tokens: list[str], code: str) -> tuple[Decimal, Decimal] | None:
    band = _BANDS.get(code)
    if band is None:
        return None
    low, high = band
    for token in tokens:
        value = Decimal(token)
        if low <= value <= high:
            return quantize(value * (1 - _SCAN_SPREAD)), quantize(value * (1 + _SCAN_SPREAD))
    return None


def parse_quote(text: str, code: str, tokens: list[str] | None = None) -> Quote:
    """Extract a quote from unstructured page text.

    Strategies are tried in priority order: compact bid/ask token, then a
    magnitude-bounded scan over the page's decimal tokens. Range and
    variation are picked up independently and default to bid/ask and 0.
    """
    text = text or ""
    prices = match_bid_ask(text)
    if prices is None:
        prices = scan_magnitude(tokens if tokens is not None else decimal_tokens(text), code)
    if prices is None:
        raise ParseError(f"{code}: bid/ask pattern not found")

    buy, sell = prices
    low, high = match_range(text) or (buy, sell)
    variation = match_variation(text)
    return Quote.from_prices(
        buy=buy,
        sell=sell,
        high=high,
        low=low,
        variation=variation if variation is not None else Decimal("0"),
    )
