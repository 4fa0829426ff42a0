"""SourceRegistry: Per-(instrument, source) oracle configuration.

Each entry binds an adapter handle, a weight in basis points, an active flag
and a maximum reading age. Entries are immutable; every write swaps in a new
:class:`SourceConfig` under a per-instrument lock, so a reader sees either
the previous or the next configuration, never a mix of the two.

.. code-block:: python

    >>> registry = SourceRegistry()
    >>> registry.configure("BTC", SourceIdentifier.DIRECT_FEED, "pyth", 6000, 60)
    >>> registry.get_config("BTC", SourceIdentifier.DIRECT_FEED).weight_bps
    6000
    >>> registry.get_config("ETH", SourceIdentifier.DIRECT_FEED).active
    False
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, replace

from .OracleErrors import (
    INVALID_STALENESS,
    INVALID_WEIGHT,
    LENGTH_MISMATCH,
    UNCONFIGURED_SOURCE,
    ConfigurationError,
)

logger = logging.getLogger(__name__)


class SourceIdentifier(enum.Enum):
    """Closed set of upstream source tags."""

    DIRECT_FEED = "direct_feed"
    REGISTRY_FEED_A = "registry_feed_a"
    REGISTRY_FEED_B = "registry_feed_b"
    AGGREGATED_SYNTHETIC = "aggregated_synthetic"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SourceConfig:
    """Configuration of one source for one instrument.

    :ivar adapter_ref: Handle of the adapter in the AdapterDirectory.
    :ivar weight_bps: Weight in basis points.
    :ivar active: Whether the source takes part in aggregation.
    :ivar max_staleness: Max reading age in seconds.
    """

    adapter_ref: str | None = None
    weight_bps: int = 0
    active: bool = False
    max_staleness: int = 0


EMPTY_CONFIG = SourceConfig()


class SourceRegistry:
    """Holds every SourceConfig, keyed by (instrument, source).

    :ivar bps_denominator: Basis points that make up 100% of weight.
    """

    def __init__(self, bps_denominator: int = 10000) -> None:
        """Initialize an empty registry.

        :param bps_denominator: Upper bound for one weight and the required
            sum for a batch weight update.
        """
        self.bps_denominator = bps_denominator
        self._configs: dict[str, dict[SourceIdentifier, SourceConfig]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, instrument: str, create: bool = False) -> threading.Lock | None:
        # Locks exist only for instruments that have been configured.
        with self._locks_guard:
            lock = self._locks.get(instrument)
            if lock is None and create:
                lock = self._locks[instrument] = threading.Lock()
            return lock

    def _existing_lock(self, instrument: str, source: SourceIdentifier) -> threading.Lock:
        lock = self._lock_for(instrument)
        if lock is None:
            raise ConfigurationError(
                UNCONFIGURED_SOURCE, f"{source} not configured for {instrument}"
            )
        return lock

    def _check_weight(self, weight: int) -> None:
        if weight < 0 or weight > self.bps_denominator:
            raise ConfigurationError(
                INVALID_WEIGHT,
                f"weight {weight} outside 0..{self.bps_denominator}",
            )

    def configure(
        self,
        instrument: str,
        source: SourceIdentifier,
        adapter_ref: str | None,
        weight: int,
        max_staleness: int,
    ) -> None:
        """Create or fully replace the config for (instrument, source).

        The new entry is active. Nothing from a previous entry carries over.

        :param instrument: Instrument key.
        :param source: Source tag.
        :param adapter_ref: Adapter handle, or None to leave the source unwired.
        :param weight: Weight in basis points.
        :param max_staleness: Max reading age in seconds.
        :raises ConfigurationError: INVALID_WEIGHT or INVALID_STALENESS.
        """
        self._check_weight(weight)
        if max_staleness < 0:
            raise ConfigurationError(
                INVALID_STALENESS, f"max_staleness {max_staleness} is negative"
            )

        config = SourceConfig(
            adapter_ref=adapter_ref,
            weight_bps=weight,
            active=True,
            max_staleness=max_staleness,
        )
        with self._lock_for(instrument, create=True):
            self._configs.setdefault(instrument, {})[source] = config

        logger.info(
            f"{instrument}: configured {source} "
            f"(adapter={adapter_ref}, weight={weight}bps, max_staleness={max_staleness}s)"
        )

    def set_active(self, instrument: str, source: SourceIdentifier, active: bool) -> None:
        """Toggle the active flag, leaving every other field untouched.

        :raises ConfigurationError: UNCONFIGURED_SOURCE if no entry exists.
        """
        with self._existing_lock(instrument, source):
            current = self._configs.get(instrument, {}).get(source)
            if current is None:
                raise ConfigurationError(
                    UNCONFIGURED_SOURCE, f"{source} not configured for {instrument}"
                )
            self._configs[instrument][source] = replace(current, active=active)

        logger.info(f"{instrument}: {source} {'activated' if active else 'deactivated'}")

    def update_weights(
        self,
        instrument: str,
        sources: list[SourceIdentifier],
        weights: list[int],
    ) -> None:
        """Replace the weights of several sources at once.

        Only the weights passed in are summed; sources left out of the call
        keep their weight and are not part of the check.

        :param instrument: Instrument key.
        :param sources: Sources to update.
        :param weights: New weights, parallel to ``sources``.
        :raises ConfigurationError: LENGTH_MISMATCH, INVALID_WEIGHT or
            UNCONFIGURED_SOURCE. No weight is written when any check fails.
        """
        if len(sources) != len(weights):
            raise ConfigurationError(
                LENGTH_MISMATCH,
                f"{len(sources)} sources but {len(weights)} weights",
            )
        for weight in weights:
            self._check_weight(weight)
        total = sum(weights)
        if total != self.bps_denominator:
            raise ConfigurationError(
                INVALID_WEIGHT,
                f"weights sum to {total}, expected {self.bps_denominator}",
            )

        with self._existing_lock(instrument, sources[0]):
            current = self._configs.get(instrument, {})
            updated: dict[SourceIdentifier, SourceConfig] = {}
            for source, weight in zip(sources, weights, strict=True):
                # Later duplicates win, matching sequential writes.
                base = updated.get(source) or current.get(source)
                if base is None:
                    raise ConfigurationError(
                        UNCONFIGURED_SOURCE, f"{source} not configured for {instrument}"
                    )
                updated[source] = replace(base, weight_bps=weight)
            current.update(updated)

        logger.info(
            f"{instrument}: weights updated "
            + ", ".join(f"{s}={w}bps" for s, w in zip(sources, weights, strict=True))
        )

    def get_config(self, instrument: str, source: SourceIdentifier) -> SourceConfig:
        """Get the config for (instrument, source).

        :returns: The stored config, or the zero-valued config if absent.
        """
        return self._configs.get(instrument, {}).get(source, EMPTY_CONFIG)

    def configured_sources(self, instrument: str) -> list[SourceIdentifier]:
        """List the sources that have a stored config for an instrument."""
        return list(self._configs.get(instrument, {}).keys())
