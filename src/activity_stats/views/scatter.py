from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pandas as pd
from pydantic import InstanceOf

from activity_stats.primitives.groupbin import extent
from activity_stats.settings import GroupOption, ValueOption
from activity_stats.views.base import (
    AggregationContext,
    Aggregator,
    ViewKind,
    ViewParameters,
)


class ScatterParameters(ViewParameters):
    x_value: InstanceOf[ValueOption]
    y_value: InstanceOf[ValueOption]
    r_value: InstanceOf[ValueOption]
    group: InstanceOf[GroupOption]


@dataclass(frozen=True)
class ScatterData:
    x_extent: tuple[Any, Any]
    y_extent: tuple[Any, Any]
    r_extent: tuple[Any, Any]
    count: int


class ScatterProjector(Aggregator[ScatterParameters]):
    """Axis bundle for the scatter renderer plus the domains it needs."""

    kind = ViewKind.SCATTER

    def empty(self, params: ScatterParameters) -> ScatterData:
        return ScatterData(
            x_extent=(None, None),
            y_extent=(None, None),
            r_extent=(None, None),
            count=0,
        )

    def compute(
        self,
        frame: pd.DataFrame,
        params: ScatterParameters,
        context: AggregationContext,
    ) -> ScatterData:
        return ScatterData(
            x_extent=extent(params.x_value.values(frame)),
            y_extent=extent(params.y_value.values(frame)),
            r_extent=extent(params.r_value.values(frame)),
            count=len(frame),
        )
