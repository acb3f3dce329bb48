from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Hashable, Mapping

import pandas as pd
from pydantic import InstanceOf, model_validator

from activity_stats.errors import ComputeError
from activity_stats.primitives.groupbin import extent
from activity_stats.settings import (
    AllYears,
    ByYear,
    CalendarPeriod,
    GroupOption,
    RelativePeriod,
    Stat,
    TimeGroup,
    TimePeriod,
    ValueOption,
    stat_for,
)
from activity_stats.views.base import (
    AggregationContext,
    Aggregator,
    ViewKind,
    ViewParameters,
    usable_rows,
)

LOGGER = logging.getLogger(__name__)

HIGHLIGHT_ALPHA = 1.0
DIMMED_ALPHA = 0.1
ALL_YEARS_KEY = 0


class TimelineParameters(ViewParameters):
    time_period: InstanceOf[CalendarPeriod] | InstanceOf[RelativePeriod]
    value: InstanceOf[ValueOption]
    group: InstanceOf[GroupOption]
    cumulative: bool = True
    time_group: InstanceOf[AllYears] | InstanceOf[ByYear] = AllYears()

    @model_validator(mode="after")
    def _numeric_value(self) -> "TimelineParameters":
        if self.value.kind != "number":
            raise ValueError(f"timeline value must be numeric, got {self.value.id!r}")
        return self

    @property
    def stat(self) -> Stat:
        return stat_for(self.cumulative, self.value.unit)

    def merged(self, update: Mapping[str, Any]) -> "TimelineParameters":
        params = super().merged(update)
        # Leaving a year-of overlay for absolute periods drops the highlight.
        if (
            "time_period" in update
            and not params.time_period.relative
            and params.time_group.highlight is not None
        ):
            params = params.model_copy(update={"time_group": AllYears()})
        return params


@dataclass(frozen=True)
class TimelineSeries:
    id: str
    group: Hashable
    year: int | None
    color: str
    icon: str
    alpha: float
    data: pd.DataFrame
    x_label: Callable[[Any], str] = field(compare=False, repr=False)
    y_label: Callable[[float], str] = field(compare=False, repr=False)
    on_click: Callable[[], Any] = field(compare=False, repr=False)


@dataclass(frozen=True)
class TimelineData:
    series: tuple[TimelineSeries, ...]
    extent: tuple[pd.Timestamp | None, pd.Timestamp | None]


def _x_label(period: TimePeriod, year: int | None, key: Any) -> str:
    prefix = f"{year}-" if year is not None else ""
    return prefix + period.format(key)


def _no_op() -> None:
    return None


def fill_range(
    period: TimePeriod,
    time_group: TimeGroup,
    year: int | None,
    start: pd.Timestamp,
    end: pd.Timestamp,
) -> pd.DatetimeIndex:
    """Period keys a series must cover, in chronological order."""
    if period.relative:
        return period.range(start, end)
    if isinstance(time_group, ByYear) and year is not None:
        low = max(start, pd.Timestamp(year, 1, 1))
        high = min(end, pd.Timestamp(year, 12, 31, 23, 59, 59))
        return period.range(low, high)
    return period.range(start, end)


class TimelineAggregator(Aggregator[TimelineParameters]):
    kind = ViewKind.TIMELINE

    def empty(self, params: TimelineParameters) -> TimelineData:
        return TimelineData(series=(), extent=(None, None))

    def compute(
        self,
        frame: pd.DataFrame,
        params: TimelineParameters,
        context: AggregationContext,
    ) -> TimelineData:
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
            raise ComputeError("timeline: no dated activities")

        period = params.time_period
        time_group = params.time_group
        rows["period"] = period.keys(rows["date"])
        if isinstance(time_group, ByYear):
            rows["year"] = rows["date"].dt.year
        else:
            rows["year"] = ALL_YEARS_KEY

        series: list[TimelineSeries] = []
        for (group, year_key), sub in rows.groupby(["group", "year"], sort=False):
            year = None if year_key == ALL_YEARS_KEY else int(year_key)
            sums = sub.groupby("period")["value"].sum()
            keys = fill_range(period, time_group, year, start, end).unique()
            filled = sums.reindex(keys, fill_value=0.0).astype(float)
            filled = params.stat.transform(filled)

            highlight = time_group.highlight
            alpha = HIGHLIGHT_ALPHA if highlight is None or year == highlight else DIMMED_ALPHA
            on_click: Callable[[], Any] = _no_op
            if year is not None:
                on_click = partial(context.update_view, self.kind, time_group=ByYear(year))

            series.append(
                TimelineSeries(
                    id=f"{group}/{year if year is not None else 'all'}",
                    group=group,
                    year=year,
                    color=params.group.color(group),
                    icon=params.group.icon(group),
                    alpha=alpha,
                    data=pd.DataFrame(
                        {
                            "period": keys,
                            "x": keys.strftime("%Y-%m-%d"),
                            "y": filled.to_numpy(),
                        }
                    ),
                    x_label=partial(_x_label, period, year),
                    y_label=params.value.format,
                    on_click=on_click,
                )
            )

        LOGGER.debug("timeline: built %d series over %s..%s", len(series), start, end)
        return TimelineData(series=tuple(series), extent=(start, end))
