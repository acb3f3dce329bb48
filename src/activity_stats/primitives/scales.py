from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np

from activity_stats.errors import ComputeError, ConfigError


class ScaleKind(str, Enum):
    LINEAR = "linear"
    LOG = "log"
    SQRT = "sqrt"

    def transform(self, values: np.ndarray | float) -> np.ndarray:
        data = np.asarray(values, dtype=float)
        if self is ScaleKind.LOG:
            with np.errstate(divide="ignore", invalid="ignore"):
                return np.log10(data)
        if self is ScaleKind.SQRT:
            return np.sign(data) * np.sqrt(np.abs(data))
        return data

    def untransform(self, values: np.ndarray | float) -> np.ndarray:
        data = np.asarray(values, dtype=float)
        if self is ScaleKind.LOG:
            return np.power(10.0, data)
        if self is ScaleKind.SQRT:
            return np.sign(data) * np.square(data)
        return data

    def check_domain(self, low: float, high: float) -> None:
        if self is ScaleKind.LOG and (low <= 0 or high <= 0):
            raise ConfigError("log scale domain must be strictly positive")


@dataclass(frozen=True)
class ContinuousScale:
    """Maps a value domain onto a pixel range through a monotone transform."""

    kind: ScaleKind
    domain: tuple[float, float]
    range: tuple[float, float]

    @classmethod
    def build(
        cls,
        kind: ScaleKind,
        domain: tuple[float, float],
        output_range: tuple[float, float],
    ) -> "ContinuousScale":
        low, high = float(domain[0]), float(domain[1])
        if not (np.isfinite(low) and np.isfinite(high)) or high <= low:
            raise ComputeError(f"empty scale domain: [{low}, {high}]")
        kind.check_domain(low, high)
        return cls(kind=kind, domain=(low, high), range=(float(output_range[0]), float(output_range[1])))

    def __call__(self, values: np.ndarray | float) -> np.ndarray:
        t0, t1 = self.kind.transform(np.array(self.domain))
        r0, r1 = self.range
        fraction = (self.kind.transform(values) - t0) / (t1 - t0)
        return r0 + fraction * (r1 - r0)

    def invert(self, positions: np.ndarray | float) -> np.ndarray:
        t0, t1 = self.kind.transform(np.array(self.domain))
        r0, r1 = self.range
        fraction = (np.asarray(positions, dtype=float) - r0) / (r1 - r0)
        return self.kind.untransform(t0 + fraction * (t1 - t0))

    def thresholds(self, count: int) -> np.ndarray:
        """``count + 1`` increasing bin edges evenly spaced along the transformed domain."""
        if count < 1:
            raise ConfigError("bin count must be >= 1")
        t0, t1 = self.kind.transform(np.array(self.domain))
        edges = self.kind.untransform(np.linspace(t0, t1, count + 1))
        edges[0], edges[-1] = self.domain
        return edges
