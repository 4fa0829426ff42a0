"""AggregationEngine: Weighted-median aggregation over configured sources.

Algorithm for one instrument:
    1. Walk the priority order; skip sources that are inactive or unwired
    2. Query every remaining adapter concurrently, each under a timeout
    3. Drop readings older than the source's max staleness
    4. Fail (invalid aggregate) if fewer than min_sources readings remain
    5. One reading: use its price as is
    6. Otherwise: weighted lower median over the readings sorted by price
    7. Timestamp is the newest contributing timestamp

.. code-block:: python

    >>> weighted_median([(10, 3333), (20, 3333), (30, 3334)])
    20
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from typing import NamedTuple

from .adapters.base import AdapterDirectory, PriceReading, PriceSourceAdapter
from .AggregateCache import INVALID_AGGREGATE, AggregateCache, AggregatedPrice
from .OracleErrors import AggregationFailure
from .OracleSettings import OracleSettings
from .PriorityOrder import PriorityOrder
from .SourceRegistry import SourceConfig, SourceIdentifier, SourceRegistry

logger = logging.getLogger(__name__)


class _Entry(NamedTuple):
    price: int
    weight: int
    timestamp: int
    confidence: int


def weighted_median(entries: Sequence[tuple[int, int]]) -> int:
    """Compute the weighted lower median of (price, weight) pairs.

    Pairs are sorted ascending by price (ties keep their input order). The
    result is the price of the first pair at which the running weight reaches
    ``total // 2``. If no pair reaches it, the highest price is returned.

    :param entries: Non-empty sequence of (price, weight) pairs.
    :returns: Median price.
    :raises ValueError: If entries is empty.
    """
    if not entries:
        raise ValueError("weighted_median requires at least one entry")

    ordered = sorted(entries, key=lambda entry: entry[0])
    threshold = sum(weight for _, weight in ordered) // 2

    cumulative = 0
    for price, weight in ordered:
        cumulative += weight
        if cumulative >= threshold:
            return price
    return ordered[-1][0]


class AggregationEngine:
    """Computes aggregates from live adapter responses.

    :ivar registry: Source configuration.
    :ivar priority: Shared source order.
    :ivar adapters: Handle to adapter directory.
    :ivar cache: Store for refreshed aggregates.
    :ivar settings: Oracle constants.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        priority: PriorityOrder,
        adapters: AdapterDirectory,
        cache: AggregateCache | None = None,
        settings: OracleSettings | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the engine.

        :param registry: Source configuration.
        :param priority: Shared source order.
        :param adapters: Directory resolving adapter handles.
        :param cache: Aggregate cache (a new one if None).
        :param settings: Oracle constants (defaults if None).
        :param clock: Callable returning the current Unix time.
        """
        self.registry = registry
        self.priority = priority
        self.adapters = adapters
        self.cache = cache if cache is not None else AggregateCache()
        self.settings = settings or OracleSettings()
        self.clock = clock
        self._refresh_locks: dict[str, asyncio.Lock] = {}

    def _now(self) -> int:
        return int(self.clock())

    async def get_aggregate(self, instrument: str) -> AggregatedPrice:
        """Aggregate the current readings of every active source.

        Never raises because of a source; a pass where too few sources
        deliver fresh readings returns the invalid aggregate.

        :param instrument: Instrument key.
        :returns: The aggregate, ``is_valid`` False if insufficient.
        """
        wired: list[tuple[SourceIdentifier, SourceConfig, PriceSourceAdapter]] = []
        for source in self.priority.sources():
            config = self.registry.get_config(instrument, source)
            if not config.active:
                continue
            adapter = self.adapters.resolve(config.adapter_ref)
            if adapter is None:
                logger.debug(
                    f"{instrument}: {source} has no adapter for {config.adapter_ref!r}"
                )
                continue
            wired.append((source, config, adapter))

        readings = await asyncio.gather(
            *(self._query(source, adapter, instrument) for source, _, adapter in wired)
        )

        now = self._now()
        entries: list[_Entry] = []
        for (source, config, _), reading in zip(wired, readings, strict=True):
            if reading is None:
                continue
            # Only excess age disqualifies; future timestamps count as fresh.
            if now - reading.timestamp > config.max_staleness:
                logger.debug(
                    f"{instrument}: {source} stale "
                    f"(age={now - reading.timestamp}s > {config.max_staleness}s)"
                )
                continue
            entries.append(
                _Entry(reading.price, config.weight_bps, reading.timestamp, reading.confidence)
            )

        if len(entries) < self.settings.min_sources:
            logger.debug(
                f"{instrument}: {len(entries)} fresh sources, "
                f"need {self.settings.min_sources}"
            )
            return INVALID_AGGREGATE

        if len(entries) == 1:
            price = entries[0].price
        else:
            price = weighted_median([(e.price, e.weight) for e in entries])

        return AggregatedPrice(
            price=price,
            timestamp=max(e.timestamp for e in entries),
            sources_used=len(entries),
            is_valid=True,
            confidence=sum(e.confidence for e in entries) // len(entries),
        )

    async def _query(
        self,
        source: SourceIdentifier,
        adapter: PriceSourceAdapter,
        instrument: str,
    ) -> PriceReading | None:
        """Query one adapter with timeout; any fault means no reading."""
        try:
            return await asyncio.wait_for(
                adapter.query(instrument),
                timeout=self.settings.query_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"[{source}] Timeout querying {instrument}")
            return None
        except Exception as e:  # Misbehaving adapter
            logger.warning(f"[{source}] Error querying {instrument}: {e}")
            return None

    async def refresh(self, instrument: str) -> AggregatedPrice:
        """Compute the aggregate and store it in the cache.

        :param instrument: Instrument key.
        :returns: The stored aggregate.
        :raises AggregationFailure: If the aggregate is invalid. The cache is
            left as it was.
        """
        if not self.registry.configured_sources(instrument):
            logger.warning(f"{instrument}: refresh failed, no configured sources")
            raise AggregationFailure(instrument)

        lock = self._refresh_locks.get(instrument)
        if lock is None:
            lock = self._refresh_locks[instrument] = asyncio.Lock()
        async with lock:
            aggregate = await self.get_aggregate(instrument)
            if not aggregate.is_valid:
                logger.warning(f"{instrument}: refresh failed, no valid aggregate")
                raise AggregationFailure(instrument)
            self.cache.store(instrument, aggregate)

        logger.info(
            f"{instrument}: refreshed price={aggregate.price} "
            f"(sources={aggregate.sources_used}, timestamp={aggregate.timestamp})"
        )
        return aggregate

    def get_cached(self, instrument: str) -> AggregatedPrice:
        """Get the last refreshed aggregate, or the invalid zero value."""
        return self.cache.get(instrument)

    def get_cached_validity(self, instrument: str) -> bool:
        """Check that the cached aggregate is valid and not too old.

        Age is measured against the default staleness window, not against any
        per-source bound.
        """
        cached = self.cache.get(instrument)
        if not cached.is_valid:
            return False
        return self._now() - cached.timestamp <= self.settings.default_staleness
