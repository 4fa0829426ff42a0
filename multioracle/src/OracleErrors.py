"""OracleErrors: Failures surfaced by the oracle to its callers.

Only configuration problems, aggregate-level insufficiency and permission
failures ever reach a caller. Per-source faults and stale readings are
absorbed inside the adapters and the aggregation engine.

.. code-block:: python

    >>> err = ConfigurationError(INVALID_WEIGHT, "weight 10001 exceeds 10000")
    >>> err.code
    'INVALID_WEIGHT'
"""

from __future__ import annotations

INVALID_WEIGHT = "INVALID_WEIGHT"
LENGTH_MISMATCH = "LENGTH_MISMATCH"
UNCONFIGURED_SOURCE = "UNCONFIGURED_SOURCE"
INVALID_STALENESS = "INVALID_STALENESS"
INVALID_SOURCE = "INVALID_SOURCE"
ALL_SOURCES_FAILED = "ALL_SOURCES_FAILED"
ACCESS_DENIED = "ACCESS_DENIED"


class OracleError(Exception):
    """Base exception for oracle errors.

    :ivar code: Stable error code identifier.
    """

    def __init__(self, code: str, message: str) -> None:
        """Initialize the error.

        :param code: Error code (e.g., "INVALID_WEIGHT").
        :param message: Human readable description.
        """
        self.code = code
        super().__init__(f"{code}: {message}")


class ConfigurationError(OracleError):
    """Raised when a configuration write is rejected."""

    pass


class AggregationFailure(OracleError):
    """Raised when fewer than the minimum number of fresh sources survive."""

    def __init__(self, instrument: str, message: str | None = None) -> None:
        self.instrument = instrument
        super().__init__(
            ALL_SOURCES_FAILED,
            message or f"no valid aggregate for {instrument}",
        )


class AccessDenied(OracleError):
    """Raised when a caller lacks the role a mutating call requires.

    :ivar caller: Identity that attempted the call.
    :ivar roles: Roles any one of which would have been sufficient.
    """

    def __init__(self, caller: str, roles: tuple[str, ...]) -> None:
        self.caller = caller
        self.roles = roles
        super().__init__(
            ACCESS_DENIED,
            f"{caller!r} requires one of {', '.join(roles)}",
        )
