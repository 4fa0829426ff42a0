"""AggregateCache: Last explicitly refreshed aggregate per instrument."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AggregatedPrice:
    """Combined price for one instrument at one point in time.

    :ivar price: Weighted median price, 1e18 fixed point.
    :ivar timestamp: Newest timestamp among the contributing readings.
    :ivar sources_used: Number of fresh readings that contributed.
    :ivar is_valid: False if too few fresh readings were available.
    :ivar confidence: Mean confidence of the contributing readings.
    """

    price: int = 0
    timestamp: int = 0
    sources_used: int = 0
    is_valid: bool = False
    confidence: int = 0


INVALID_AGGREGATE = AggregatedPrice()


class AggregateCache:
    """Holds one AggregatedPrice per instrument.

    Values are only ever replaced whole.
    """

    def __init__(self) -> None:
        self._values: dict[str, AggregatedPrice] = {}

    def store(self, instrument: str, aggregate: AggregatedPrice) -> None:
        self._values[instrument] = aggregate

    def get(self, instrument: str) -> AggregatedPrice:
        """Get the cached aggregate, or the invalid zero value if none."""
        return self._values.get(instrument, INVALID_AGGREGATE)

    def instruments(self) -> list[str]:
        return list(self._values.keys())
