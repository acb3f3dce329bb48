"""Violin view: per-group distribution bins, quartile stats and decluttered outliers.

A group's values are binned along ``bin_count`` equal steps of the scale's
transformed domain. Bins holding at least ``outlier_threshold`` members form the
bulk; the bulk region runs from the first to the last bulk bin. Members of bins
outside the region are outliers and are drawn as individual points, nudged
apart so they stay readable. Groups whose bulk holds fewer than ``min_bulk``
members get no silhouette and no stats; all their members become points.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Hashable

import numpy as np
import pandas as pd
from pydantic import Field, InstanceOf, model_validator

from activity_stats.config import LayoutConfig
from activity_stats.errors import ComputeError
from activity_stats.primitives.declutter import declutter_frame
from activity_stats.primitives.groupbin import group_by, histogram
from activity_stats.primitives.scales import ContinuousScale, ScaleKind
from activity_stats.settings import GroupOption, ValueOption
from activity_stats.views.base import (
    AggregationContext,
    Aggregator,
    ViewKind,
    ViewParameters,
    usable_rows,
)

LOGGER = logging.getLogger(__name__)

BIN_COLUMNS = ["lower", "upper", "count"]
POINT_COLUMNS = ["id", "value", "x0", "y0", "r", "x", "y"]


class ViolinParameters(ViewParameters):
    value: InstanceOf[ValueOption]
    group: InstanceOf[GroupOption]
    scale: ScaleKind = ScaleKind.LOG
    min_value: float | None = None
    max_value: float | None = None
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    bin_count: int = Field(default=20, ge=1)
    outlier_threshold: int = Field(default=8, ge=1)
    min_bulk: int = Field(default=20, ge=1)
    ticks: int = Field(default=100, ge=0)
    point_radius: float = Field(default=4.0, gt=0.0)
    sparse_point_radius: float = Field(default=3.0, gt=0.0)

    @property
    def lower_bound(self) -> float:
        if self.min_value is not None:
            return self.min_value
        return self.value.min_value if self.value.min_value is not None else 0.0

    @property
    def upper_bound(self) -> float | None:
        return self.max_value if self.max_value is not None else self.value.max_value

    @model_validator(mode="after")
    def _check_clamp(self) -> "ViolinParameters":
        if self.value.kind != "number":
            raise ValueError(f"violin value must be numeric, got {self.value.id!r}")
        upper = self.upper_bound
        if upper is not None and upper < self.lower_bound:
            raise ValueError("max_value must be >= min_value")
        if self.scale is ScaleKind.LOG and self.lower_bound <= 0:
            raise ValueError("log scale needs a strictly positive min_value")
        return self


@dataclass(frozen=True)
class QuartileStats:
    count: int
    min: float
    max: float
    median: float
    first_quartile: float
    third_quartile: float


@dataclass(frozen=True)
class GroupViolin:
    group: Hashable
    color: str
    icon: str
    center_x: float
    bins: pd.DataFrame
    stats: QuartileStats | None
    points: pd.DataFrame


@dataclass(frozen=True)
class ViolinData:
    groups: tuple[GroupViolin, ...]
    group_order: tuple[Hashable, ...]
    domain: tuple[float, float] | None
    thresholds: tuple[float, ...]


def quartile_stats(values: np.ndarray) -> QuartileStats:
    first, median, third = np.quantile(values, [0.25, 0.5, 0.75])
    return QuartileStats(
        count=int(values.size),
        min=float(values.min()),
        max=float(values.max()),
        median=float(median),
        first_quartile=float(first),
        third_quartile=float(third),
    )


class ViolinAggregator(Aggregator[ViolinParameters]):
    kind = ViewKind.VIOLIN

    def empty(self, params: ViolinParameters) -> ViolinData:
        return ViolinData(groups=(), group_order=(), domain=None, thresholds=())

    def _points(
        self,
        rows: pd.DataFrame,
        center_x: float,
        y_scale: ContinuousScale,
        radius: float,
        ticks: int,
    ) -> pd.DataFrame:
        points = pd.DataFrame(
            {
                "id": rows["id"].to_numpy(),
                "value": rows["value"].to_numpy(dtype=float),
                "x0": center_x,
                "y0": y_scale(rows["value"].to_numpy(dtype=float)),
                "r": radius,
            }
        )
        return declutter_frame(points, ticks=ticks)[POINT_COLUMNS]

    def compute(
        self,
        frame: pd.DataFrame,
        params: ViolinParameters,
        context: AggregationContext,
    ) -> ViolinData:
        rows = usable_rows(
            self.kind,
            {
                "id": frame["id"],
                "value": params.value.values(frame),
                "group": params.group.keys(frame),
            },
        )
        group_order = tuple(pd.unique(rows["group"]))

        lower, upper = params.lower_bound, params.upper_bound
        in_range = rows["value"] >= lower
        if upper is not None:
            in_range &= rows["value"] <= upper
        rows = rows[in_range]
        if rows.empty:
            raise ComputeError(f"violin: no values within [{lower}, {upper}]")

        high = upper if upper is not None else float(rows["value"].max())
        if high <= lower:
            high = lower + (abs(lower) or 1.0)
        domain = (lower, high)
        layout = params.layout
        y_scale = ContinuousScale.build(
            params.scale,
            domain,
            (layout.height - layout.margin_bottom, layout.margin_top),
        )
        thresholds = y_scale.thresholds(params.bin_count)
        inner_width = layout.width - layout.margin_left - layout.margin_right
        step = inner_width / max(len(group_order), 1)

        groups: list[GroupViolin] = []
        for group, sub in group_by(rows, rows["group"]).items():
            center_x = layout.margin_left + step * (group_order.index(group) + 0.5)
            values = sub["value"].to_numpy(dtype=float)
            bins = histogram(values, thresholds)
            bulk = [index for index, item in enumerate(bins) if item.count >= params.outlier_threshold]
            bulk_total = sum(bins[index].count for index in bulk)

            if bulk_total < params.min_bulk:
                groups.append(
                    GroupViolin(
                        group=group,
                        color=params.group.color(group),
                        icon=params.group.icon(group),
                        center_x=center_x,
                        bins=pd.DataFrame(columns=BIN_COLUMNS),
                        stats=None,
                        points=self._points(
                            sub, center_x, y_scale, params.sparse_point_radius, params.ticks
                        ),
                    )
                )
                continue

            region = np.zeros(values.size, dtype=bool)
            for item in bins[bulk[0] : bulk[-1] + 1]:
                region[list(item.members)] = True

            groups.append(
                GroupViolin(
                    group=group,
                    color=params.group.color(group),
                    icon=params.group.icon(group),
                    center_x=center_x,
                    bins=pd.DataFrame(
                        {
                            "lower": [item.lower for item in bins],
                            "upper": [item.upper for item in bins],
                            "count": [item.count for item in bins],
                        }
                    ),
                    stats=quartile_stats(values[region]),
                    points=self._points(
                        sub[~region], center_x, y_scale, params.point_radius, params.ticks
                    ),
                )
            )

        LOGGER.debug("violin: %d groups on a %s scale", len(groups), params.scale.value)
        return ViolinData(
            groups=tuple(groups),
            group_order=group_order,
            domain=domain,
            thresholds=tuple(float(edge) for edge in thresholds),
        )
