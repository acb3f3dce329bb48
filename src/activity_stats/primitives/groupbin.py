"""Grouping, histogram binning and extent helpers shared by the view aggregators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Hashable, Sequence

import numpy as np
import pandas as pd

from activity_stats.errors import ConfigError


@dataclass(frozen=True)
class HistogramBin:
    lower: float
    upper: float
    members: tuple[int, ...]

    @property
    def count(self) -> int:
        return len(self.members)


def group_by(frame: pd.DataFrame, keys: pd.Series) -> dict[Hashable, pd.DataFrame]:
    """Split ``frame`` by ``keys`` preserving first-seen key order.

    Rows whose key is missing are left out of every group.
    """
    if frame.empty:
        return {}
    keyed = pd.Series(keys, index=frame.index)
    return {
        key: sub
        for key, sub in frame.groupby(keyed, sort=False, dropna=True)
    }


def validate_thresholds(thresholds: Sequence[float]) -> np.ndarray:
    edges = np.asarray(thresholds, dtype=float)
    if edges.ndim != 1 or edges.size < 2:
        raise ConfigError("histogram needs at least two thresholds")
    if not np.all(np.isfinite(edges)):
        raise ConfigError("histogram thresholds must be finite")
    if np.any(np.diff(edges) <= 0):
        raise ConfigError("histogram thresholds must be strictly increasing")
    return edges


def histogram(values: Sequence[float] | pd.Series, thresholds: Sequence[float]) -> list[HistogramBin]:
    """Bin ``values`` into ``[t[i], t[i + 1])`` intervals; the last bin is closed.

    Values outside the threshold range or NaN fall into no bin.
    """
    edges = validate_thresholds(thresholds)
    data = np.asarray(values, dtype=float)

    inside = np.isfinite(data) & (data >= edges[0]) & (data <= edges[-1])
    positions = np.searchsorted(edges, data, side="right") - 1
    positions = np.clip(positions, 0, edges.size - 2)

    bins: list[HistogramBin] = []
    for index in range(edges.size - 1):
        members = np.flatnonzero(inside & (positions == index))
        bins.append(
            HistogramBin(
                lower=float(edges[index]),
                upper=float(edges[index + 1]),
                members=tuple(int(member) for member in members),
            )
        )
    return bins


def extent(values: Sequence[Any] | pd.Series) -> tuple[Any, Any]:
    """Return ``(min, max)`` ignoring missing entries, ``(None, None)`` when nothing is left."""
    series = pd.Series(values)
    if series.dtype == object:
        series = pd.to_numeric(series, errors="coerce")
    series = series.dropna()
    if series.empty:
        return None, None
    return series.min(), series.max()
