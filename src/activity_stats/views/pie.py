from __future__ import annotations

from dataclasses import dataclass

import pandas as pd
from pydantic import InstanceOf, model_validator

from activity_stats.settings import AllYears, ByYear, GroupOption, ValueOption
from activity_stats.views.base import (
    AggregationContext,
    Aggregator,
    ViewKind,
    ViewParameters,
    usable_rows,
)

SLICE_COLUMNS = ["id", "label", "value", "color", "icon"]


class PieParameters(ViewParameters):
    value: InstanceOf[ValueOption]
    group: InstanceOf[GroupOption]
    time_group: InstanceOf[AllYears] | InstanceOf[ByYear] = AllYears()

    @model_validator(mode="after")
    def _numeric_value(self) -> "PieParameters":
        if self.value.kind != "number":
            raise ValueError(f"pie value must be numeric, got {self.value.id!r}")
        return self


@dataclass(frozen=True)
class PieData:
    slices: pd.DataFrame
    total: float


class PieAggregator(Aggregator[PieParameters]):
    """Sum of the value per group key for the selected year (or all years)."""

    kind = ViewKind.PIE

    def empty(self, params: PieParameters) -> PieData:
        return PieData(slices=pd.DataFrame(columns=SLICE_COLUMNS), total=0.0)

    def compute(
        self,
        frame: pd.DataFrame,
        params: PieParameters,
        context: AggregationContext,
    ) -> PieData:
        dates = pd.to_datetime(frame["date"], errors="coerce")
        scoped = frame[params.time_group.mask(dates).fillna(False).to_numpy(dtype=bool)]
        rows = usable_rows(
            self.kind,
            {"value": params.value.values(scoped), "group": params.group.keys(scoped)},
        )
        if rows.empty:
            return self.empty(params)

        sums = rows.groupby("group", sort=False)["value"].sum()
        order = sorted(sums.index, key=lambda key: params.group.sort_key(key, float(sums[key])))
        slices = pd.DataFrame(
            {
                "id": order,
                "label": [params.group.format(key) for key in order],
                "value": [float(sums[key]) for key in order],
                "color": [params.group.color(key) for key in order],
                "icon": [params.group.icon(key) for key in order],
            },
            columns=SLICE_COLUMNS,
        )
        return PieData(slices=slices, total=float(sums.sum()))
