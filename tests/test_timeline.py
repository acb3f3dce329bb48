from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from activity_stats.errors import ComputeError, ConfigError
from activity_stats.settings import AllYears, ByYear, SettingsLibrary
from activity_stats.views.base import AggregationContext, ViewKind
from activity_stats.views.timeline import TimelineAggregator, TimelineParameters


def _params(library: SettingsLibrary, **overrides: object) -> TimelineParameters:
    fields = {
        "time_period": library.time_period("week"),
        "value": library.value("elevation"),
        "group": library.group("sport_group"),
        "cumulative": False,
    }
    fields.update(overrides)
    return TimelineParameters(**fields)


def test_weekly_sums_per_group(library: SettingsLibrary, weekly_runs, context) -> None:
    data = TimelineAggregator().compute(weekly_runs, _params(library), context)

    assert len(data.series) == 1
    series = data.series[0]
    assert series.id == "run/all"
    assert series.group == "run"
    assert series.year is None
    assert series.alpha == 1.0
    assert series.color == "#ef4444"
    assert series.data["y"].tolist() == [10.0, 20.0, 30.0]
    assert series.data["x"].tolist() == ["2023-01-01", "2023-01-08", "2023-01-15"]
    assert series.x_label(pd.Timestamp("2023-01-08")) == "2023-01-08"
    assert series.y_label(10.0) == "10m"
    assert series.on_click() is None


def test_cumulative_series_is_monotonic(library: SettingsLibrary, weekly_runs, context) -> None:
    data = TimelineAggregator().compute(weekly_runs, _params(library, cumulative=True), context)

    values = data.series[0].data["y"].to_numpy()
    np.testing.assert_allclose(values, [10.0, 30.0, 60.0])
    assert np.all(np.diff(values) >= 0)


def test_missing_periods_are_zero_filled(library: SettingsLibrary, activities, context) -> None:
    frame = activities(
        [
            {"start_date_local": "2023-01-01", "sport_type": "Ride", "total_elevation_gain": 1.0},
            {"start_date_local": "2023-01-08", "total_elevation_gain": 7.0},
            {"start_date_local": "2023-01-15", "sport_type": "Ride", "total_elevation_gain": 1.0},
        ]
    )

    data = TimelineAggregator().compute(frame, _params(library), context)

    by_group = {series.group: series.data["y"].tolist() for series in data.series}
    assert by_group == {"ride": [1.0, 0.0, 1.0], "run": [0.0, 7.0, 0.0]}


def test_highlighted_year_splits_series(library: SettingsLibrary, activities) -> None:
    frame = activities(
        [
            {"start_date_local": "2022-12-25", "total_elevation_gain": 5.0},
            {"start_date_local": "2023-01-01", "total_elevation_gain": 7.0},
        ]
    )
    calls: list[tuple[ViewKind, dict[str, object]]] = []
    context = AggregationContext(update_view=lambda kind, **update: calls.append((kind, update)))

    data = TimelineAggregator().compute(frame, _params(library, time_group=ByYear(2023)), context)

    assert [(series.year, series.alpha) for series in data.series] == [(2022, 0.1), (2023, 1.0)]
    assert data.series[0].data["y"].tolist() == [5.0]
    assert data.series[1].data["y"].tolist() == [7.0]
    data.series[0].on_click()
    assert calls == [(ViewKind.TIMELINE, {"time_group": ByYear(2022)})]


def test_relative_period_spans_reference_year(library: SettingsLibrary, activities, context) -> None:
    frame = activities(
        [
            {"start_date_local": "2022-01-03", "total_elevation_gain": 5.0},
            {"start_date_local": "2023-01-02", "total_elevation_gain": 7.0},
        ]
    )
    params = _params(
        library, time_period=library.time_period("week_of_year"), time_group=ByYear(2023)
    )

    data = TimelineAggregator().compute(frame, params, context)

    assert [len(series.data) for series in data.series] == [53, 53]
    assert data.series[1].data["y"].iloc[0] == 7.0
    assert data.series[1].x_label(pd.Timestamp("2018-01-01")) == "2023-01 Jan"


def test_switching_to_absolute_period_drops_highlight(library: SettingsLibrary) -> None:
    params = _params(
        library, time_period=library.time_period("week_of_year"), time_group=ByYear(2023)
    )

    assert params.merged({"time_period": library.time_period("month")}).time_group == AllYears()
    kept = params.merged({"time_period": library.time_period("month_of_year")})
    assert kept.time_group == ByYear(2023)
    assert params.merged({"cumulative": True}).time_group == ByYear(2023)


def test_timeline_rejects_non_numeric_values(library: SettingsLibrary) -> None:
    with pytest.raises(ConfigError, match="must be numeric"):
        _params(library).merged({"value": library.value("date")})


def test_timeline_without_dates_is_a_compute_error(
    library: SettingsLibrary, activities, context
) -> None:
    frame = activities([{"total_elevation_gain": 5.0}])

    with pytest.raises(ComputeError, match="no dated activities"):
        TimelineAggregator().compute(frame, _params(library), context)
