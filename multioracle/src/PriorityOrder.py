"""PriorityOrder: Shared iteration order of sources during aggregation."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from .OracleErrors import INVALID_SOURCE, ConfigurationError
from .SourceRegistry import SourceIdentifier

logger = logging.getLogger(__name__)


class PriorityOrder:
    """Replace-only ordered sequence of source identifiers.

    Duplicates are kept as given. A duplicated source is consulted once per
    occurrence during aggregation.
    """

    def __init__(self, order: Iterable[SourceIdentifier] = ()) -> None:
        self._lock = threading.Lock()
        self._order: tuple[SourceIdentifier, ...] = ()
        self.replace(order)

    def replace(self, order: Iterable[SourceIdentifier]) -> None:
        """Swap in a new order wholesale.

        :param order: New sequence of sources.
        :raises ConfigurationError: INVALID_SOURCE if an entry is not a
            SourceIdentifier. The current order is kept in that case.
        """
        new_order = tuple(order)
        for source in new_order:
            if not isinstance(source, SourceIdentifier):
                raise ConfigurationError(INVALID_SOURCE, f"unknown source {source!r}")

        with self._lock:
            self._order = new_order
        logger.info(f"Priority order set to [{', '.join(str(s) for s in new_order)}]")

    def sources(self) -> tuple[SourceIdentifier, ...]:
        """Get the current order."""
        return self._order

    def __len__(self) -> int:
        return len(self._order)
