from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from scipy.ndimage import correlate1d

from activity_stats.errors import ConfigError


def _as_float_array(series: Sequence[float] | np.ndarray) -> np.ndarray:
    return np.asarray(series, dtype=float).reshape(-1)


def weighted_average(series: Sequence[float] | np.ndarray, weights: np.ndarray) -> np.ndarray:
    """Correlate ``series`` with ``weights`` renormalizing over in-bounds, non-NaN samples.

    Out-of-bounds and NaN samples contribute to neither the weighted sum nor the
    normalizer. Points with no usable sample in their window stay NaN.
    """
    values = _as_float_array(series)
    if values.size == 0:
        return np.array([], dtype=float)

    valid = np.isfinite(values)
    filled = np.where(valid, values, 0.0)
    numerator = correlate1d(filled, weights, mode="constant", cval=0.0)
    denominator = correlate1d(valid.astype(float), weights, mode="constant", cval=0.0)
    return np.divide(
        numerator,
        denominator,
        out=np.full(values.size, np.nan, dtype=float),
        where=denominator > 0,
    )


def moving_average(series: Sequence[float] | np.ndarray, window: int) -> np.ndarray:
    """Centered moving average; edge windows are clipped and renormalized.

    Even windows reach one sample further back than forward.
    """
    if window < 1:
        raise ConfigError("moving average window must be >= 1")
    return weighted_average(series, np.ones(int(window), dtype=float))


def gaussian_kernel(sigma: float, truncate: float = 3.0) -> np.ndarray:
    if sigma <= 0:
        raise ConfigError("gaussian sigma must be > 0")
    radius = max(1, int(math.ceil(truncate * sigma)))
    offsets = np.arange(-radius, radius + 1, dtype=float)
    return np.exp(-0.5 * (offsets / sigma) ** 2)


def gaussian_average(series: Sequence[float] | np.ndarray, sigma: float) -> np.ndarray:
    """Gaussian-weighted average truncated at three sigma, renormalized per point."""
    return weighted_average(series, gaussian_kernel(sigma))
