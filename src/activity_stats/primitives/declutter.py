"""Deterministic force layout that pushes overlapping circles apart.

Each point starts on its true coordinate. Every tick applies a spring toward the
true coordinate and resolves pairwise collisions, following the d3-force
defaults (alpha decay over 300 ticks, velocity decay 0.4, collide strength 1).
No randomness is involved: coincident points are separated by an index-based
nudge, so identical inputs always produce identical outputs.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd

DEFAULT_TICKS = 100
SPRING_STRENGTH = 0.1
VELOCITY_DECAY = 0.4
ALPHA_MIN = 0.001
ALPHA_DECAY = 1.0 - ALPHA_MIN ** (1.0 / 300.0)
NUDGE = 1e-6


def _pair_offsets(x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    dx = x[:, None] - x[None, :]
    dy = y[:, None] - y[None, :]
    coincident = (dx == 0) & (dy == 0)
    if coincident.any():
        index = np.arange(x.size, dtype=float)
        dx = np.where(coincident, NUDGE * (index[:, None] - index[None, :]), dx)
    return dx, dy


def declutter(
    x0: Sequence[float] | np.ndarray,
    y0: Sequence[float] | np.ndarray,
    radius: Sequence[float] | np.ndarray | float,
    *,
    ticks: int = DEFAULT_TICKS,
    strength: float = SPRING_STRENGTH,
) -> tuple[np.ndarray, np.ndarray]:
    anchor_x = np.asarray(x0, dtype=float).reshape(-1)
    anchor_y = np.asarray(y0, dtype=float).reshape(-1)
    if anchor_x.shape != anchor_y.shape:
        raise ValueError("x0 and y0 must have the same length")
    radii = np.broadcast_to(np.asarray(radius, dtype=float), anchor_x.shape).copy()

    x = anchor_x.copy()
    y = anchor_y.copy()
    if x.size == 0:
        return x, y

    vx = np.zeros_like(x)
    vy = np.zeros_like(y)
    reach = radii[:, None] + radii[None, :]
    squared = radii**2
    pair_total = squared[:, None] + squared[None, :]
    share = np.divide(
        np.broadcast_to(squared[None, :], pair_total.shape),
        pair_total,
        out=np.full(pair_total.shape, 0.5),
        where=pair_total > 0,
    )
    upper = np.triu(np.ones((x.size, x.size), dtype=bool), k=1)

    alpha = 1.0
    for _ in range(int(ticks)):
        alpha += (0.0 - alpha) * ALPHA_DECAY

        vx += (anchor_x - x) * strength * alpha
        vy += (anchor_y - y) * strength * alpha

        px = x + vx
        py = y + vy
        dx, dy = _pair_offsets(px, py)
        distance = np.sqrt(dx**2 + dy**2)
        overlap = upper & (distance < reach)
        if overlap.any():
            push = np.zeros_like(distance)
            push[overlap] = (reach[overlap] - distance[overlap]) / distance[overlap]
            # i moves away from j by j's share of the overlap and j away from i by the rest.
            fx = dx * push
            fy = dy * push
            vx += (fx * share).sum(axis=1) - (fx * (1.0 - share)).sum(axis=0)
            vy += (fy * share).sum(axis=1) - (fy * (1.0 - share)).sum(axis=0)

        vx *= 1.0 - VELOCITY_DECAY
        vy *= 1.0 - VELOCITY_DECAY
        x += vx
        y += vy

    return x, y


def declutter_frame(
    points: pd.DataFrame,
    *,
    ticks: int = DEFAULT_TICKS,
    strength: float = SPRING_STRENGTH,
) -> pd.DataFrame:
    """Add adjusted ``x``/``y`` columns to a frame holding ``x0``, ``y0`` and ``r``."""
    out = points.copy()
    if out.empty:
        out["x"] = pd.Series(dtype=float)
        out["y"] = pd.Series(dtype=float)
        return out
    x, y = declutter(out["x0"], out["y0"], out["r"], ticks=ticks, strength=strength)
    out["x"] = x
    out["y"] = y
    return out
