from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable

import pandas as pd
from pydantic import InstanceOf, model_validator

from activity_stats.errors import ComputeError
from activity_stats.primitives.groupbin import extent
from activity_stats.settings import (
    CalendarPeriod,
    GaussianAverage,
    GroupOption,
    MovingAverage,
    ValueOption,
)
from activity_stats.views.base import (
    AggregationContext,
    Aggregator,
    ViewKind,
    ViewParameters,
    usable_rows,
)

TREND_COLUMNS = ["period", "group", "value", "smoothed"]


class TrendParameters(ViewParameters):
    time_period: InstanceOf[CalendarPeriod]
    value: InstanceOf[ValueOption]
    group: InstanceOf[GroupOption]
    averaging: InstanceOf[MovingAverage] | InstanceOf[GaussianAverage] = MovingAverage(7)

    @model_validator(mode="after")
    def _numeric_value(self) -> "TrendParameters":
        if self.value.kind != "number":
            raise ValueError(f"trend value must be numeric, got {self.value.id!r}")
        return self


@dataclass(frozen=True)
class TrendData:
    groups: tuple[Hashable, ...]
    frame: pd.DataFrame
    colors: dict[Hashable, str]
    extent: tuple[pd.Timestamp | None, pd.Timestamp | None]


class TrendAggregator(Aggregator[TrendParameters]):
    """Per-period group sums with a smoothed line per group."""

    kind = ViewKind.TREND

    def empty(self, params: TrendParameters) -> TrendData:
        return TrendData(
            groups=(),
            frame=pd.DataFrame(columns=TREND_COLUMNS),
            colors={},
            extent=(None, None),
        )

    def compute(
        self,
        frame: pd.DataFrame,
        params: TrendParameters,
        context: AggregationContext,
    ) -> TrendData:
        rows = usable_rows(
            self.kind,
            {
                "date": pd.to_datetime(frame["date"], errors="coerce"),
                "value": params.value.values(frame),
                "group": params.group.keys(frame),
            },
        )
        start, end = extent(rows["date"])
        if start is None:
            raise ComputeError("trend: no dated activities")

        period = params.time_period
        keys = period.range(start, end)
        rows["period"] = period.keys(rows["date"])
        groups = list(pd.unique(rows["group"]))

        table = (
            rows.groupby(["period", "group"], sort=False)["value"]
            .sum()
            .unstack("group")
            .reindex(index=keys, columns=groups)
            .fillna(0.0)
        )

        parts = []
        for group in groups:
            values = table[group].to_numpy(dtype=float)
            parts.append(
                pd.DataFrame(
                    {
                        "period": keys,
                        "group": group,
                        "value": values,
                        "smoothed": params.averaging.apply(values),
                    }
                )
            )
        return TrendData(
            groups=tuple(groups),
            frame=pd.concat(parts, ignore_index=True),
            colors={group: params.group.color(group) for group in groups},
            extent=(start, end),
        )
