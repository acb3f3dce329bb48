from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

import pandas as pd
from pydantic import Field, InstanceOf, model_validator

from activity_stats.config import DEFAULT_PALETTE
from activity_stats.errors import ComputeError, ConfigError
from activity_stats.primitives.groupbin import extent, group_by
from activity_stats.settings import ValueOption
from activity_stats.views.base import (
    AggregationContext,
    Aggregator,
    ViewKind,
    ViewParameters,
    usable_rows,
)

DAY_FORMAT = "%Y-%m-%d"
DAY_COLUMNS = ["day", "value", "selected", "count"]


class CalendarParameters(ViewParameters):
    value: InstanceOf[ValueOption]
    palette: tuple[str, ...] = Field(default=tuple(DEFAULT_PALETTE), min_length=3)

    @model_validator(mode="after")
    def _numeric_value(self) -> "CalendarParameters":
        if self.value.kind != "number":
            raise ValueError(f"calendar value must be numeric, got {self.value.id!r}")
        return self


@dataclass(frozen=True)
class CalendarDay:
    day: str
    value: float
    selected: bool = False


def color_scale(palette: Sequence[str], cap: float) -> Callable[[CalendarDay], str]:
    """Map a day entry onto ``[below_min, *scale, selected]``.

    Selected days always take the last color; days with no value take the first;
    other values are quantized linearly by ``value / cap`` into the scale colors.
    """
    if len(palette) < 3:
        raise ConfigError("calendar palette needs below-min, at least one scale and a selected color")
    below_min, scale, selected = palette[0], list(palette[1:-1]), palette[-1]

    def pick(entry: CalendarDay) -> str:
        if entry.selected:
            return selected
        value = entry.value
        if value is None or (isinstance(value, float) and math.isnan(value)) or value <= 0:
            return below_min
        fraction = min(value / cap, 1.0) if cap > 0 else 1.0
        return scale[int(math.floor(fraction * (len(scale) - 1)))]

    return pick


def _ignore_selection(ids: list[str]) -> None:
    return None


@dataclass(frozen=True)
class CalendarData:
    days: pd.DataFrame
    activities_by_day: dict[str, pd.DataFrame]
    extent: tuple[pd.Timestamp | None, pd.Timestamp | None]
    cap: float
    on_select: Callable[[list[str]], Any] = field(
        default=_ignore_selection, compare=False, repr=False
    )

    def entry(self, day: str) -> CalendarDay:
        match = self.days[self.days["day"] == day]
        if match.empty:
            return CalendarDay(day=day, value=0.0)
        row = match.iloc[0]
        return CalendarDay(day=day, value=float(row["value"]), selected=bool(row["selected"]))

    def entries(self) -> list[CalendarDay]:
        return [
            CalendarDay(day=row.day, value=float(row.value), selected=bool(row.selected))
            for row in self.days.itertuples(index=False)
        ]

    def color_scale_fn(self, palette: Sequence[str]) -> Callable[[CalendarDay], str]:
        return color_scale(palette, self.cap)

    def on_click(self, day: str) -> None:
        members = self.activities_by_day.get(day)
        ids = [] if members is None else [str(value) for value in members["id"]]
        self.on_select(ids)


class CalendarAggregator(Aggregator[CalendarParameters]):
    kind = ViewKind.CALENDAR

    def empty(self, params: CalendarParameters) -> CalendarData:
        return CalendarData(
            days=pd.DataFrame(columns=DAY_COLUMNS),
            activities_by_day={},
            extent=(None, None),
            cap=0.0,
        )

    def compute(
        self,
        frame: pd.DataFrame,
        params: CalendarParameters,
        context: AggregationContext,
    ) -> CalendarData:
        dates = pd.to_datetime(frame["date"], errors="coerce")
        rows = usable_rows(
            self.kind,
            {"id": frame["id"], "date": dates, "value": params.value.values(frame)},
            required=["id", "date"],
        )
        start, end = extent(rows["date"])
        if start is None:
            raise ComputeError("calendar: no dated activities")

        day_keys = rows["date"].dt.strftime(DAY_FORMAT)
        by_day = group_by(frame.loc[rows.index], day_keys)
        selected_ids = context.selected_ids

        records = []
        for day, members in by_day.items():
            ids = {str(value) for value in members["id"]}
            records.append(
                {
                    "day": day,
                    "value": float(rows.loc[members.index, "value"].sum()),
                    "selected": bool(ids & selected_ids),
                    "count": len(members),
                }
            )
        days = pd.DataFrame.from_records(records, columns=DAY_COLUMNS)

        configured_cap = params.value.max_value
        cap = float(configured_cap) if configured_cap is not None else float(days["value"].max())
        return CalendarData(
            days=days,
            activities_by_day=by_day,
            extent=(start, end),
            cap=cap,
            on_select=context.on_select,
        )
