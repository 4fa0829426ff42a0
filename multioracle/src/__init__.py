"""
Multi-Source Price Oracle - Weighted-Median Aggregation Module

This module combines independent upstream price readings into one aggregate:
- SourceRegistry: Per-(instrument, source) adapter, weight and staleness config
- PriorityOrder: Shared order in which sources are consulted
- AggregationEngine: Freshness filtering and weighted median
- AggregateCache: Last refreshed aggregate per instrument
- PriceOracle: Role-gated external interface
- adapters: Failure-isolating upstream feed adapters
"""

from .AccessControl import ADMIN_ROLE, OPERATOR_ROLE, AccessControl
from .AggregateCache import AggregateCache, AggregatedPrice
from .AggregationEngine import AggregationEngine, weighted_median
from .OracleErrors import (
    AccessDenied,
    AggregationFailure,
    ConfigurationError,
    OracleError,
)
from .OracleSettings import OracleSettings
from .PriceOracle import PriceOracle
from .PriorityOrder import PriorityOrder
from .SourceRegistry import SourceConfig, SourceIdentifier, SourceRegistry

__all__ = [
    "ADMIN_ROLE",
    "OPERATOR_ROLE",
    "AccessControl",
    "AccessDenied",
    "AggregateCache",
    "AggregatedPrice",
    "AggregationEngine",
    "AggregationFailure",
    "ConfigurationError",
    "OracleError",
    "OracleSettings",
    "PriceOracle",
    "PriorityOrder",
    "SourceConfig",
    "SourceIdentifier",
    "SourceRegistry",
    "weighted_median",
]
