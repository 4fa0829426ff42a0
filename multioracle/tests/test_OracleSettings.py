"""Unit tests for OracleSettings."""

import pytest

from multioracle.src.OracleSettings import OracleSettings


class TestOracleSettingsInit:
    """Test OracleSettings defaults and validation."""

    def test_default_values(self) -> None:
        """Defaults match the reference deployment."""
        settings = OracleSettings()
        assert settings.bps_denominator == 10000
        assert settings.min_sources == 1
        assert settings.default_staleness == 300
        assert settings.query_timeout == 10.0

    def test_invalid_denominator(self) -> None:
        """bps_denominator must be positive."""
        with pytest.raises(ValueError, match="bps_denominator must be positive"):
            OracleSettings(bps_denominator=0)

    def test_invalid_min_sources(self) -> None:
        """min_sources < 1 should raise ValueError."""
        with pytest.raises(ValueError, match="min_sources must be at least 1"):
            OracleSettings(min_sources=0)

    def test_invalid_staleness(self) -> None:
        """Negative staleness should raise ValueError."""
        with pytest.raises(ValueError, match="default_staleness must not be negative"):
            OracleSettings(default_staleness=-1)

    def test_invalid_timeout(self) -> None:
        """Non-positive timeouts should raise ValueError."""
        with pytest.raises(ValueError, match="query_timeout must be positive"):
            OracleSettings(query_timeout=0)


class TestOracleSettingsFromEnv:
    """Test OracleSettings.from_env()."""

    def test_defaults_when_unset(self, monkeypatch) -> None:
        """Unset variables fall back to defaults."""
        for name in (
            "BPS_DENOMINATOR",
            "MIN_SOURCES",
            "DEFAULT_STALENESS_SECONDS",
            "QUERY_TIMEOUT",
        ):
            monkeypatch.delenv(name, raising=False)
        assert OracleSettings.from_env() == OracleSettings()

    def test_reads_environment(self, monkeypatch) -> None:
        """Set variables override defaults."""
        monkeypatch.setenv("BPS_DENOMINATOR", "1000000")
        monkeypatch.setenv("MIN_SOURCES", "2")
        monkeypatch.setenv("DEFAULT_STALENESS_SECONDS", "120")
        monkeypatch.setenv("QUERY_TIMEOUT", "2.5")

        settings = OracleSettings.from_env()

        assert settings == OracleSettings(
            bps_denominator=1000000,
            min_sources=2,
            default_staleness=120,
            query_timeout=2.5,
        )

    def test_empty_variable_uses_default(self, monkeypatch) -> None:
        """Empty strings count as unset."""
        monkeypatch.setenv("MIN_SOURCES", "")
        assert OracleSettings.from_env().min_sources == 1

    def test_invalid_environment(self, monkeypatch) -> None:
        """Out-of-range values are rejected."""
        monkeypatch.setenv("MIN_SOURCES", "0")
        with pytest.raises(ValueError):
            OracleSettings.from_env()
