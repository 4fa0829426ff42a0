"""Registry feed adapter backed by round-indexed aggregator contracts.

Reads on-chain feeds that expose the AggregatorV3 interface (``decimals``,
``latestRoundData``, ``getRoundData``), as published by Chainlink, RedStone
and compatible push oracles. One adapter instance serves one feed family;
each instrument maps to its own feed contract.

Contracts come from an ``AsyncWeb3`` instance (see ContractUtility), so a
cancelled query also cancels its RPC request.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import aiohttp
from web3.exceptions import Web3Exception

from .base import (
    MALFORMED_DATA_ERRORS,
    PRICE_SCALE,
    PriceReading,
    PriceSourceAdapter,
    SourceConfigError,
    SourceFailure,
)

if TYPE_CHECKING:
    from web3.contract import AsyncContract

    from ..SourceRegistry import SourceIdentifier

logger = logging.getLogger(__name__)

# AggregatorV3 rounds carry no dispersion data.
REGISTRY_CONFIDENCE = 100


class RegistryFeedAdapter(PriceSourceAdapter):
    """Adapter for feeds that keep a round-indexed price history.

    :ivar feeds: Instrument to aggregator contract.
    """

    def __init__(
        self,
        source: SourceIdentifier,
        feeds: dict[str, AsyncContract] | None = None,
    ) -> None:
        super().__init__(source)
        self.feeds: dict[str, AsyncContract] = dict(feeds or {})
        self._decimals: dict[str, int] = {}

    def set_feed(self, instrument: str, contract: AsyncContract) -> None:
        """Map an instrument to its aggregator contract."""
        self.feeds[instrument] = contract
        self._decimals.pop(instrument, None)

    async def _read(self, instrument: str) -> PriceReading:
        return await self._read_round(instrument, None)

    async def get_round(self, instrument: str, round_id: int) -> PriceReading | None:
        """Look up a historical round.

        Not used during aggregation. Faults are absorbed the same way as in
        ``query()``.

        :param instrument: Instrument key.
        :param round_id: Round identifier on the feed.
        :returns: The round's reading, or None if unavailable or invalid.
        """
        try:
            return await self._read_round(instrument, round_id)
        except SourceFailure as e:
            logger.warning(
                f"[{self.name}] No round {round_id} for {instrument}: {e}"
            )
            return None
        except MALFORMED_DATA_ERRORS as e:
            logger.warning(
                f"[{self.name}] Malformed round {round_id} for {instrument}: {e}"
            )
            return None

    async def _read_round(self, instrument: str, round_id: int | None) -> PriceReading:
        contract = self.feeds.get(instrument)
        if contract is None:
            raise SourceConfigError(f"no feed for {instrument}")

        try:
            decimals = await self._feed_decimals(instrument, contract)
            if round_id is None:
                round_data = await contract.functions.latestRoundData().call()
            else:
                round_data = await contract.functions.getRoundData(round_id).call()
        except (Web3Exception, aiohttp.ClientError, OSError) as e:
            raise SourceFailure(f"contract call failed: {e}") from e

        _, answer, _, updated_at, _ = round_data
        if answer <= 0:
            raise SourceFailure(f"non-positive answer {answer}")

        return PriceReading(
            price=answer * PRICE_SCALE // 10**decimals,
            timestamp=int(updated_at),
            confidence=REGISTRY_CONFIDENCE,
            source=self.source,
        )

    async def _feed_decimals(self, instrument: str, contract: AsyncContract) -> int:
        decimals = self._decimals.get(instrument)
        if decimals is None:
            decimals = int(await contract.functions.decimals().call())
            self._decimals[instrument] = decimals
        return decimals
