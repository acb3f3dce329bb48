from __future__ import annotations


class ActivityStatsError(Exception):
    """Base class for errors raised by the aggregation engine."""


class ConfigError(ActivityStatsError, ValueError):
    """Invalid parameter combination; the update is rejected."""


class DataError(ActivityStatsError, ValueError):
    """Activity data lacks a field the engine needs."""


class ComputeError(ActivityStatsError):
    """Numerical degeneracy; the view falls back to its empty state."""
