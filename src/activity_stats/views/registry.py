from __future__ import annotations

from typing import Any, Mapping

from activity_stats.config import AppConfig
from activity_stats.errors import ConfigError
from activity_stats.settings import (
    Averaging,
    GaussianAverage,
    MovingAverage,
    SettingsLibrary,
    time_group_for,
)
from activity_stats.views.base import Aggregator, ViewKind, ViewParameters
from activity_stats.views.calendar import CalendarAggregator, CalendarParameters
from activity_stats.views.geo import GeoParameters, GeoRollupAggregator
from activity_stats.views.pie import PieAggregator, PieParameters
from activity_stats.views.scatter import ScatterParameters, ScatterProjector
from activity_stats.views.timeline import TimelineAggregator, TimelineParameters
from activity_stats.views.trend import TrendAggregator, TrendParameters
from activity_stats.views.violin import ViolinAggregator, ViolinParameters

VALUE_FIELDS = ("value", "x_value", "y_value", "r_value")


def default_aggregators() -> dict[ViewKind, Aggregator[Any]]:
    aggregators: list[Aggregator[Any]] = [
        TimelineAggregator(),
        TrendAggregator(),
        ViolinAggregator(),
        CalendarAggregator(),
        PieAggregator(),
        GeoRollupAggregator(),
        ScatterProjector(),
    ]
    return {aggregator.kind: aggregator for aggregator in aggregators}


def _averaging(kind: str, window: int, sigma: float) -> Averaging:
    if kind == "moving_average":
        return MovingAverage(window)
    if kind == "gaussian":
        return GaussianAverage(sigma)
    raise ConfigError(f"Unknown averaging: {kind!r}")


def _resolve_averaging(existing: Averaging | None, update: Mapping[str, Any]) -> Averaging:
    chosen = update.get("averaging", existing)
    explicit = "averaging" in update
    if isinstance(chosen, str):
        kind = chosen
    elif "window" in update and not explicit:
        kind = "moving_average"
    elif "sigma" in update and not explicit:
        kind = "gaussian"
    elif isinstance(chosen, (MovingAverage, GaussianAverage)):
        return chosen
    else:
        kind = "moving_average"
    window = update.get("window", getattr(existing, "window", MovingAverage().window))
    sigma = update.get("sigma", getattr(existing, "sigma", GaussianAverage().sigma))
    return _averaging(kind, int(window), float(sigma))


def resolve_update(
    library: SettingsLibrary,
    current: ViewParameters | None,
    update: Mapping[str, Any],
) -> dict[str, Any]:
    """Turn option ids in a partial update into the option objects the parameters hold.

    Option objects pass through untouched. ``year`` is shorthand for ``time_group``;
    ``window`` / ``sigma`` rebuild the averaging kernel.
    """
    resolved: dict[str, Any] = {}
    for key, value in update.items():
        if key in VALUE_FIELDS and isinstance(value, str):
            resolved[key] = library.value(value)
        elif key == "group" and isinstance(value, str):
            resolved[key] = library.group(value)
        elif key == "time_period" and isinstance(value, str):
            resolved[key] = library.time_period(value)
        elif key == "scale" and isinstance(value, str):
            resolved[key] = library.scale(value)
        elif key == "year":
            resolved["time_group"] = time_group_for(value)
        elif key in ("averaging", "window", "sigma"):
            continue
        else:
            resolved[key] = value

    if any(key in update for key in ("averaging", "window", "sigma")):
        resolved["averaging"] = _resolve_averaging(getattr(current, "averaging", None), update)
    return resolved


def default_parameters(library: SettingsLibrary, config: AppConfig) -> dict[ViewKind, ViewParameters]:
    timeline = config.timeline
    trend = config.trend
    violin = config.violin
    return {
        ViewKind.TIMELINE: TimelineParameters(
            time_period=library.time_period(timeline.time_period),
            value=library.value(timeline.value),
            group=library.group(timeline.group),
            cumulative=timeline.cumulative,
            time_group=time_group_for(timeline.highlight_year),
        ),
        ViewKind.TREND: TrendParameters(
            time_period=library.time_period(trend.time_period),
            value=library.value(trend.value),
            group=library.group(trend.group),
            averaging=_averaging(trend.averaging, trend.window, trend.sigma),
        ),
        ViewKind.VIOLIN: ViolinParameters(
            value=library.value(violin.value),
            group=library.group(violin.group),
            scale=library.scale(violin.scale),
            layout=violin.layout,
            bin_count=violin.bin_count,
            outlier_threshold=violin.outlier_threshold,
            min_bulk=violin.min_bulk,
            ticks=violin.ticks,
            point_radius=violin.point_radius,
            sparse_point_radius=violin.sparse_point_radius,
        ),
        ViewKind.CALENDAR: CalendarParameters(
            value=library.value(config.calendar.value),
            palette=tuple(config.calendar.palette),
        ),
        ViewKind.PIE: PieParameters(
            value=library.value(config.pie.value),
            group=library.group(config.pie.group),
            time_group=time_group_for(config.pie.year),
        ),
        ViewKind.GEO: GeoParameters(
            value=library.value(config.geo.value),
            time_group=time_group_for(config.geo.year),
        ),
        ViewKind.SCATTER: ScatterParameters(
            x_value=library.value(config.scatter.x_value),
            y_value=library.value(config.scatter.y_value),
            r_value=library.value(config.scatter.r_value),
            group=library.group(config.scatter.group),
        ),
    }
