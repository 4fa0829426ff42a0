"""Synthetic adapter that derives a cross rate from two other adapters.

Useful for instruments no feed quotes directly, e.g. ``STETH/ETH`` from
``STETH/USD`` and ``ETH/USD``: ``price = base * 1e18 / quote``.
"""

import logging
from dataclasses import dataclass

from ..SourceRegistry import SourceIdentifier
from .base import (
    PRICE_SCALE,
    PriceReading,
    PriceSourceAdapter,
    SourceConfigError,
    SourceFailure,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Leg:
    """One side of a cross rate: an adapter and the instrument to ask it for."""

    adapter: PriceSourceAdapter
    instrument: str


class SyntheticFeedAdapter(PriceSourceAdapter):
    """Cross-rate adapter.

    The reading is as old as its oldest leg and as confident as its least
    confident leg.

    :ivar legs: Instrument to (base leg, quote leg).
    """

    def __init__(
        self,
        source: SourceIdentifier = SourceIdentifier.AGGREGATED_SYNTHETIC,
        legs: dict[str, tuple[Leg, Leg]] | None = None,
    ) -> None:
        super().__init__(source)
        self.legs: dict[str, tuple[Leg, Leg]] = dict(legs or {})

    def set_legs(self, instrument: str, base: Leg, quote: Leg) -> None:
        """Define an instrument as base / quote."""
        self.legs[instrument] = (base, quote)

    async def _read(self, instrument: str) -> PriceReading:
        legs = self.legs.get(instrument)
        if legs is None:
            raise SourceConfigError(f"no legs for {instrument}")

        base_leg, quote_leg = legs
        base = await base_leg.adapter.query(base_leg.instrument)
        if base is None:
            raise SourceFailure(f"base leg {base_leg.instrument} unavailable")
        quote = await quote_leg.adapter.query(quote_leg.instrument)
        if quote is None or quote.price == 0:
            raise SourceFailure(f"quote leg {quote_leg.instrument} unavailable")

        return PriceReading(
            price=base.price * PRICE_SCALE // quote.price,
            timestamp=min(base.timestamp, quote.timestamp),
            confidence=min(base.confidence, quote.confidence),
            source=self.source,
        )
