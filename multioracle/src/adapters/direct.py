"""Direct feed adapter backed by a Pyth Hermes price service.

Hermes serves the latest signed Pyth update for a feed id with low latency.
Prices come as raw integers with a negative exponent, which this adapter
scales to 1e18 fixed point.

Endpoint: https://hermes.pyth.network/v2/updates/price/latest?ids[]={feed_id}
Rate Limit: 30 requests / 10s per IP on the public instance
"""

import logging

import httpx

from ..SourceRegistry import SourceIdentifier
from .base import (
    PriceReading,
    PriceSourceAdapter,
    SourceConfigError,
    SourceFailure,
    normalize_price,
)

logger = logging.getLogger(__name__)


class DirectFeedAdapter(PriceSourceAdapter):
    """Adapter for a single low-latency native feed.

    :ivar base_url: Hermes instance base URL.
    :ivar target_decimals: Decimals removed during normalization.
    :ivar feed_ids: Instrument to Pyth price feed id.
    """

    BASE_URL = "https://hermes.pyth.network"

    def __init__(
        self,
        source: SourceIdentifier = SourceIdentifier.DIRECT_FEED,
        *,
        base_url: str | None = None,
        target_decimals: int = 0,
        feed_ids: dict[str, str] | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(source, timeout=timeout, client=client)
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.target_decimals = target_decimals
        self.feed_ids: dict[str, str] = {}
        for instrument, feed_id in (feed_ids or {}).items():
            self.set_feed(instrument, feed_id)

    def set_feed(self, instrument: str, feed_id: str) -> None:
        """Map an instrument to a Pyth feed id (hex, with or without 0x)."""
        self.feed_ids[instrument] = feed_id.lower().removeprefix("0x")

    async def _read(self, instrument: str) -> PriceReading:
        feed_id = self.feed_ids.get(instrument)
        if not feed_id:
            raise SourceConfigError(f"no feed id for {instrument}")

        response = await self._get(
            f"{self.base_url}/v2/updates/price/latest",
            params={"ids[]": feed_id, "parsed": "true"},
        )
        data = response.json()

        entry = next(
            (
                item
                for item in data.get("parsed", [])
                if item.get("id", "").lower().removeprefix("0x") == feed_id
            ),
            None,
        )
        if entry is None:
            raise SourceFailure(f"feed {feed_id} not in response")

        price_data = entry["price"]
        raw = int(price_data["price"])
        if raw <= 0:
            raise SourceFailure(f"non-positive price {raw}")

        native_decimals = -int(price_data["expo"])
        conf = int(price_data["conf"])

        return PriceReading(
            price=normalize_price(raw, native_decimals, self.target_decimals),
            timestamp=int(price_data["publish_time"]),
            confidence=self._confidence_score(raw, conf),
            source=self.source,
        )

    @staticmethod
    def _confidence_score(raw: int, conf: int) -> int:
        """Map a Pyth confidence interval to a 0-100 score.

        Every basis point of interval width relative to the price costs one
        point.
        """
        width_bps = conf * 10000 // raw
        return max(0, 100 - width_bps)
