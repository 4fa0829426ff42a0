"""PriceOracle: External interface of the multi-source oracle.

Wires the source registry, priority order, adapter directory, aggregation
engine and cache together, and gates every mutating call by role.

Architecture:
    - Reads compute aggregates from live adapter responses and never mutate
    - ``update_price`` refreshes the cached aggregate of one instrument
    - Configuration writes require ADMIN, operational writes OPERATOR
    - Per-source faults stay inside the engine; only an insufficient
      aggregate surfaces, as AggregationFailure

.. code-block:: python

    oracle = PriceOracle(admin="deployer")
    oracle.register_adapter("deployer", "pyth", DirectFeedAdapter(feed_ids={...}))
    oracle.configure_oracle("deployer", "BTC", SourceIdentifier.DIRECT_FEED, "pyth", 10000, 60)
    oracle.set_priority_order("deployer", [SourceIdentifier.DIRECT_FEED])
    reading = await oracle.get_price("BTC")
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable

from .AccessControl import ADMIN_ROLE, OPERATOR_ROLE, AccessControl
from .adapters.base import AdapterDirectory, PriceReading, PriceSourceAdapter
from .AggregateCache import AggregateCache, AggregatedPrice
from .AggregationEngine import AggregationEngine
from .OracleErrors import UNCONFIGURED_SOURCE, AggregationFailure, ConfigurationError
from .OracleSettings import OracleSettings
from .PriorityOrder import PriorityOrder
from .SourceRegistry import SourceConfig, SourceIdentifier, SourceRegistry

logger = logging.getLogger(__name__)


class PriceOracle:
    """Multi-source weighted-median price oracle.

    :ivar settings: Oracle constants.
    :ivar access: Role membership.
    :ivar registry: Per-(instrument, source) configuration.
    :ivar priority: Shared source order.
    :ivar adapters: Adapter handle directory.
    :ivar engine: Aggregation engine.
    """

    def __init__(
        self,
        admin: str,
        settings: OracleSettings | None = None,
        priority_order: Iterable[SourceIdentifier] = (),
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the oracle.

        :param admin: Identity granted ADMIN and OPERATOR.
        :param settings: Oracle constants (defaults if None).
        :param priority_order: Initial source order.
        :param clock: Callable returning the current Unix time.
        """
        self.settings = settings or OracleSettings()
        self.clock = clock
        self.access = AccessControl(admin=admin)
        self.registry = SourceRegistry(bps_denominator=self.settings.bps_denominator)
        self.priority = PriorityOrder(priority_order)
        self.adapters = AdapterDirectory()
        self.engine = AggregationEngine(
            registry=self.registry,
            priority=self.priority,
            adapters=self.adapters,
            cache=AggregateCache(),
            settings=self.settings,
            clock=clock,
        )

        logger.info(
            f"PriceOracle initialized: admin={admin!r}, "
            f"min_sources={self.settings.min_sources}, "
            f"default_staleness={self.settings.default_staleness}s, "
            f"query_timeout={self.settings.query_timeout}s"
        )

    # Reads

    async def get_price(self, instrument: str) -> PriceReading:
        """Get the live aggregated price.

        :param instrument: Instrument key.
        :returns: Reading tagged AGGREGATED_SYNTHETIC.
        :raises AggregationFailure: ALL_SOURCES_FAILED if no valid aggregate.
        """
        aggregate = await self.engine.get_aggregate(instrument)
        if not aggregate.is_valid:
            raise AggregationFailure(instrument)
        return PriceReading(
            price=aggregate.price,
            timestamp=aggregate.timestamp,
            confidence=aggregate.confidence,
            source=SourceIdentifier.AGGREGATED_SYNTHETIC,
        )

    def is_valid_price(self, reading: PriceReading) -> bool:
        """Check a reading is non-zero and within the default staleness window."""
        if reading.price == 0 or reading.timestamp == 0:
            return False
        return int(self.clock()) - reading.timestamp <= self.settings.default_staleness

    async def is_price_available(self, instrument: str) -> bool:
        """Check whether ``get_price`` would currently succeed."""
        aggregate = await self.engine.get_aggregate(instrument)
        return aggregate.is_valid

    async def get_aggregate(self, instrument: str) -> AggregatedPrice:
        return await self.engine.get_aggregate(instrument)

    def get_cached_price(self, instrument: str) -> AggregatedPrice:
        return self.engine.get_cached(instrument)

    def get_cached_validity(self, instrument: str) -> bool:
        return self.engine.get_cached_validity(instrument)

    def get_oracle_config(self, instrument: str, source: SourceIdentifier) -> SourceConfig:
        return self.registry.get_config(instrument, source)

    async def get_historical_price(
        self,
        instrument: str,
        source: SourceIdentifier,
        round_id: int,
    ) -> PriceReading | None:
        """Look up a past round on a source that keeps round history.

        :param instrument: Instrument key.
        :param source: Configured source to ask.
        :param round_id: Round identifier on that source's feed.
        :returns: The round's reading, or None if the feed cannot provide it.
        :raises ConfigurationError: UNCONFIGURED_SOURCE if the source has no
            adapter, or its adapter keeps no round history.
        """
        config = self.registry.get_config(instrument, source)
        adapter = self.adapters.resolve(config.adapter_ref)
        get_round = getattr(adapter, "get_round", None)
        if get_round is None:
            raise ConfigurationError(
                UNCONFIGURED_SOURCE,
                f"{source} has no round history for {instrument}",
            )
        return await get_round(instrument, round_id)

    # Writes

    def register_adapter(self, caller: str, ref: str, adapter: PriceSourceAdapter) -> None:
        """Bind an adapter handle. Requires ADMIN."""
        self.access.require(caller, ADMIN_ROLE)
        self.adapters.register(ref, adapter)

    def configure_oracle(
        self,
        caller: str,
        instrument: str,
        source: SourceIdentifier,
        adapter_ref: str | None,
        weight: int,
        max_staleness: int,
    ) -> None:
        """Create or fully replace a source config. Requires ADMIN."""
        self.access.require(caller, ADMIN_ROLE)
        self.registry.configure(instrument, source, adapter_ref, weight, max_staleness)

    async def update_price(self, caller: str, instrument: str) -> AggregatedPrice:
        """Refresh the cached aggregate. Requires OPERATOR or ADMIN.

        :raises AggregationFailure: If no valid aggregate; cache untouched.
        """
        self.access.require(caller, OPERATOR_ROLE, ADMIN_ROLE)
        return await self.engine.refresh(instrument)

    def set_priority_order(self, caller: str, order: Iterable[SourceIdentifier]) -> None:
        """Replace the shared source order. Requires ADMIN."""
        self.access.require(caller, ADMIN_ROLE)
        self.priority.replace(order)

    def set_oracle_active(
        self,
        caller: str,
        instrument: str,
        source: SourceIdentifier,
        active: bool,
    ) -> None:
        """Toggle a source on or off. Requires OPERATOR or ADMIN."""
        self.access.require(caller, OPERATOR_ROLE, ADMIN_ROLE)
        self.registry.set_active(instrument, source, active)

    def update_weights(
        self,
        caller: str,
        instrument: str,
        sources: list[SourceIdentifier],
        weights: list[int],
    ) -> None:
        """Replace several weights at once. Requires ADMIN."""
        self.access.require(caller, ADMIN_ROLE)
        self.registry.update_weights(instrument, sources, weights)
