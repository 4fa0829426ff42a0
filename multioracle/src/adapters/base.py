"""Base adapter interface, reading types and shared HTTP client management.

All source adapters inherit from PriceSourceAdapter and implement ``_read()``.
The public ``query()`` wraps it so that any fault inside an adapter ends up as
"no reading" (None) and never reaches the aggregation loop.

Adapters are bound to opaque string handles in an AdapterDirectory. Source
configs store the handle, and the engine resolves it on every pass.

.. code-block:: python

    class MyAdapter(PriceSourceAdapter):
        async def _read(self, instrument: str) -> PriceReading:
            response = await self._get(f"https://feed.example.com/{instrument}")
            data = response.json()
            return PriceReading(
                price=normalize_price(int(data["raw"]), data["decimals"]),
                timestamp=int(data["ts"]),
                confidence=100,
                source=self.source,
            )

    directory = AdapterDirectory()
    directory.register("example", MyAdapter(SourceIdentifier.DIRECT_FEED))
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar

import httpx

from ..SourceRegistry import SourceIdentifier

logger = logging.getLogger(__name__)

# Fixed-point scale of every normalized price.
PRICE_SCALE = 10**18

# Parse faults that mean the upstream payload had an unexpected shape.
MALFORMED_DATA_ERRORS = (KeyError, IndexError, ValueError, TypeError, AttributeError)


class SourceFailure(Exception):
    """Base exception for faults inside an adapter."""

    pass


class SourceConfigError(SourceFailure):
    """Raised when the adapter has no feed configured for an instrument."""

    pass


class SourceHTTPError(SourceFailure):
    """Raised when an upstream HTTP request fails.

    :ivar status_code: HTTP status code from the failed request.
    """

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}: {message}")


@dataclass(frozen=True)
class PriceReading:
    """One price observation.

    :ivar price: Price as an unsigned integer scaled by 1e18.
    :ivar timestamp: Unix timestamp in seconds of the observation.
    :ivar confidence: Confidence score, 0 to 100.
    :ivar source: Source that produced the reading.
    """

    price: int
    timestamp: int
    confidence: int
    source: SourceIdentifier


def normalize_price(raw: int, native_decimals: int, target_decimals: int = 0) -> int:
    """Scale a raw integer price to 1e18 fixed point.

    Computes ``raw * 1e18 / 10**(native_decimals - target_decimals)``. When
    the feed has fewer decimals than the target, the factor multiplies
    instead, so small prices do not truncate to zero.

    :param raw: Raw integer price from the feed.
    :param native_decimals: Decimals of the raw value.
    :param target_decimals: Decimals the caller wants to drop.
    :returns: Normalized price.

    .. code-block:: python

        >>> normalize_price(6_512_345_000_000, 8)
        65123450000000000000000
    """
    if native_decimals >= target_decimals:
        return raw * PRICE_SCALE // 10 ** (native_decimals - target_decimals)
    return raw * PRICE_SCALE * 10 ** (target_decimals - native_decimals)


class PriceSourceAdapter(ABC):
    """Abstract base class for source adapters.

    Subclasses must implement ``_read()``, which may raise freely. Callers use
    ``query()``, which never raises.

    :cvar DEFAULT_TIMEOUT: Default HTTP request timeout in seconds.
    :ivar source: Source tag stamped on every reading.
    :ivar timeout: HTTP request timeout in seconds.
    """

    # Class-level shared HTTP client
    _shared_client: ClassVar[httpx.AsyncClient | None] = None

    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        source: SourceIdentifier,
        *,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the adapter.

        :param source: Source tag stamped on every reading.
        :param timeout: HTTP request timeout in seconds (default: 10).
        :param client: Optional HTTP client; the shared client is used if None.
        """
        self.source = source
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self._client = client

    @property
    def name(self) -> str:
        """Label used in log lines."""
        return str(self.source)

    @classmethod
    def get_shared_client(cls) -> httpx.AsyncClient:
        """Get or create the shared HTTP client.

        :returns: Shared httpx.AsyncClient instance.
        """
        if cls._shared_client is None or cls._shared_client.is_closed:
            PriceSourceAdapter._shared_client = httpx.AsyncClient(
                timeout=httpx.Timeout(30.0, connect=10.0),
                limits=httpx.Limits(max_connections=50, max_keepalive_connections=20),
                follow_redirects=True,
            )
        return PriceSourceAdapter._shared_client

    @classmethod
    async def close_shared_client(cls) -> None:
        """Close the shared HTTP client."""
        client = PriceSourceAdapter._shared_client
        if client is not None and not client.is_closed:
            await client.aclose()
        PriceSourceAdapter._shared_client = None

    async def query(self, instrument: str) -> PriceReading | None:
        """Query the upstream feed for one instrument.

        :param instrument: Instrument key.
        :returns: A reading, or None if the source could not deliver one.
        """
        try:
            return await self._read(instrument)
        except SourceFailure as e:
            logger.warning(f"[{self.name}] No reading for {instrument}: {e}")
            return None
        except MALFORMED_DATA_ERRORS as e:
            logger.warning(f"[{self.name}] Malformed data for {instrument}: {e}")
            return None

    @abstractmethod
    async def _read(self, instrument: str) -> PriceReading:
        """Read one price from the upstream feed.

        :param instrument: Instrument key.
        :returns: Normalized reading.
        :raises SourceFailure: If the feed cannot deliver a usable reading.
        """
        pass

    async def _get(
        self,
        url: str,
        *,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        """Make an HTTP GET request.

        :param url: Request URL.
        :param params: Optional query parameters.
        :param headers: Optional request headers.
        :returns: httpx.Response object.
        :raises SourceHTTPError: On non-2xx response.
        :raises SourceFailure: On network/timeout errors.
        """
        client = self._client or self.get_shared_client()
        try:
            response = await client.get(
                url,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
            if not response.is_success:
                logger.debug(
                    "HTTP GET %s failed with status %s: %s",
                    url,
                    response.status_code,
                    response.text[:200],
                )
                raise SourceHTTPError(response.status_code, response.text[:200])
            return response
        except httpx.TimeoutException as e:
            raise SourceFailure(f"Request timeout: {e}") from e
        except httpx.RequestError as e:
            raise SourceFailure(f"Request failed: {e}") from e


class AdapterDirectory:
    """Maps opaque adapter handles to adapter instances.

    .. code-block:: python

        >>> directory = AdapterDirectory()
        >>> directory.resolve("missing") is None
        True
    """

    def __init__(self) -> None:
        self._adapters: dict[str, PriceSourceAdapter] = {}

    def register(self, ref: str, adapter: PriceSourceAdapter) -> None:
        """Bind a handle to an adapter, replacing any previous binding.

        :param ref: Adapter handle.
        :param adapter: Adapter instance.
        :raises ValueError: If the handle is empty.
        """
        if not ref:
            raise ValueError("adapter handle must not be empty")
        self._adapters[ref] = adapter
        logger.info(f"Adapter {ref!r} bound to {type(adapter).__name__} ({adapter.name})")

    def unregister(self, ref: str) -> None:
        """Remove a handle binding if present."""
        self._adapters.pop(ref, None)

    def resolve(self, ref: str | None) -> PriceSourceAdapter | None:
        """Resolve a handle.

        :returns: The bound adapter, or None if the handle is unset or unbound.
        """
        if not ref:
            return None
        return self._adapters.get(ref)

    def refs(self) -> list[str]:
        """Get the sorted list of bound handles."""
        return sorted(self._adapters.keys())
