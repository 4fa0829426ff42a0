"""OracleSettings: Runtime-configurable oracle constants.

Values come from keyword arguments or, via :meth:`OracleSettings.from_env`,
from environment variables:

    BPS_DENOMINATOR, MIN_SOURCES, DEFAULT_STALENESS_SECONDS, QUERY_TIMEOUT

.. code-block:: python

    >>> settings = OracleSettings()
    >>> settings.bps_denominator
    10000
    >>> settings.default_staleness
    300
"""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class OracleSettings:
    """Oracle-wide constants.

    :ivar bps_denominator: Basis points that make up 100% of weight.
    :ivar min_sources: Minimum fresh sources for a valid aggregate.
    :ivar default_staleness: Max age in seconds of a cached aggregate.
    :ivar query_timeout: Per-adapter query timeout in seconds.
    """

    bps_denominator: int = 10000
    min_sources: int = 1
    default_staleness: int = 300
    query_timeout: float = 10.0

    def __post_init__(self) -> None:
        if self.bps_denominator <= 0:
            raise ValueError("bps_denominator must be positive")
        if self.min_sources < 1:
            raise ValueError("min_sources must be at least 1")
        if self.default_staleness < 0:
            raise ValueError("default_staleness must not be negative")
        if self.query_timeout <= 0:
            raise ValueError("query_timeout must be positive")

    @classmethod
    def from_env(cls) -> OracleSettings:
        """Build settings from environment variables.

        :returns: Settings with unset variables at their defaults.
        :raises ValueError: If a variable is malformed or out of range.
        """
        return cls(
            bps_denominator=int(os.environ.get("BPS_DENOMINATOR") or "10000"),
            min_sources=int(os.environ.get("MIN_SOURCES") or "1"),
            default_staleness=int(os.environ.get("DEFAULT_STALENESS_SECONDS") or "300"),
            query_timeout=float(os.environ.get("QUERY_TIMEOUT") or "10.0"),
        )
