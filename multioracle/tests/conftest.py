"""Pytest configuration, fake adapters and a controllable clock."""

import asyncio

import pytest

from multioracle.src.adapters.base import (
    PriceReading,
    PriceSourceAdapter,
    SourceConfigError,
)
from multioracle.src.SourceRegistry import SourceIdentifier

NOW = 1_700_000_000


class FakeClock:
    """Clock whose time only moves when a test says so."""

    def __init__(self, now: int = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return float(self.now)

    def advance(self, seconds: int) -> None:
        self.now += seconds


class StaticAdapter(PriceSourceAdapter):
    """Serves fixed (price, timestamp) readings per instrument."""

    def __init__(
        self,
        source: SourceIdentifier,
        readings: dict[str, tuple[int, int]] | None = None,
        confidence: int = 100,
    ) -> None:
        super().__init__(source)
        self.readings = dict(readings or {})
        self.confidence = confidence
        self.calls: list[str] = []

    async def _read(self, instrument: str) -> PriceReading:
        self.calls.append(instrument)
        if instrument not in self.readings:
            raise SourceConfigError(f"no reading for {instrument}")
        price, timestamp = self.readings[instrument]
        return PriceReading(
            price=price,
            timestamp=timestamp,
            confidence=self.confidence,
            source=self.source,
        )


class ExplodingAdapter(PriceSourceAdapter):
    """Raises straight out of query(), bypassing the adapter boundary."""

    async def query(self, instrument: str) -> PriceReading | None:
        raise RuntimeError("adapter exploded")

    async def _read(self, instrument: str) -> PriceReading:
        raise RuntimeError("adapter exploded")


class GatedAdapter(StaticAdapter):
    """Static adapter whose reads wait until the test opens the gate.

    Tracks how many reads are in flight at once.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.gate = asyncio.Event()
        self.started = asyncio.Event()
        self.in_flight = 0
        self.max_in_flight = 0

    async def _read(self, instrument: str) -> PriceReading:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.started.set()
        try:
            await self.gate.wait()
            return await super()._read(instrument)
        finally:
            self.in_flight -= 1


class HangingAdapter(PriceSourceAdapter):
    """Never answers."""

    async def _read(self, instrument: str) -> PriceReading:
        await asyncio.sleep(3600)
        raise AssertionError("unreachable")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def static_adapter() -> type[StaticAdapter]:
    return StaticAdapter


@pytest.fixture
def exploding_adapter() -> type[ExplodingAdapter]:
    return ExplodingAdapter


@pytest.fixture
def gated_adapter() -> type[GatedAdapter]:
    return GatedAdapter


@pytest.fixture
def hanging_adapter() -> type[HangingAdapter]:
    return HangingAdapter
