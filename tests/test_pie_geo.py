from __future__ import annotations

import pytest

from activity_stats.settings import ByYear, SettingsLibrary
from activity_stats.views.geo import GeoParameters, GeoRollupAggregator
from activity_stats.views.pie import PieAggregator, PieParameters
from activity_stats.views.scatter import ScatterParameters, ScatterProjector


def _frame(activities):
    return activities(
        [
            {"start_date_local": "2022-06-01", "total_elevation_gain": 100.0, "country": "FR"},
            {"start_date_local": "2023-06-01", "total_elevation_gain": 40.0, "country": "FR"},
            {
                "start_date_local": "2023-06-02",
                "sport_type": "Ride",
                "total_elevation_gain": 300.0,
                "country": "IT",
            },
            {
                "start_date_local": "2023-06-03",
                "sport_type": "Hike",
                "total_elevation_gain": 60.0,
                "country": None,
            },
        ]
    )


def test_pie_sums_per_group_sorted_by_value(library: SettingsLibrary, activities, context) -> None:
    params = PieParameters(value=library.value("elevation"), group=library.group("sport_group"))

    data = PieAggregator().compute(_frame(activities), params, context)

    assert data.slices["id"].tolist() == ["ride", "run", "hike"]
    assert data.slices["value"].tolist() == [300.0, 140.0, 60.0]
    assert data.slices["color"].tolist() == ["#3b82f6", "#ef4444", "#22c55e"]
    assert data.slices["label"].tolist() == ["Ride", "Run", "Hike"]
    assert data.total == pytest.approx(data.slices["value"].sum())
    assert data.total == 500.0


def test_pie_respects_the_time_group(library: SettingsLibrary, activities, context) -> None:
    params = PieParameters(
        value=library.value("elevation"),
        group=library.group("sport_group"),
        time_group=ByYear(2022),
    )

    data = PieAggregator().compute(_frame(activities), params, context)

    assert data.slices["id"].tolist() == ["run"]
    assert data.total == 100.0

    empty = PieAggregator().compute(
        _frame(activities), params.merged({"time_group": ByYear(2019)}), context
    )
    assert empty.slices.empty
    assert empty.total == 0.0


def test_pie_keeps_activities_without_a_sport_type(
    library: SettingsLibrary, activities, context
) -> None:
    frame = activities(
        [
            {"start_date_local": "2023-06-01", "total_elevation_gain": 40.0},
            {"start_date_local": "2023-06-02", "sport_type": None, "total_elevation_gain": 60.0},
        ]
    )
    params = PieParameters(value=library.value("elevation"), group=library.group("sport_group"))

    data = PieAggregator().compute(frame, params, context)

    assert data.slices["id"].tolist() == ["other", "run"]
    assert data.total == 100.0


def test_geo_rolls_up_countries_with_an_untagged_bucket(
    library: SettingsLibrary, activities, context
) -> None:
    params = GeoParameters(value=library.value("elevation"))

    data = GeoRollupAggregator().compute(_frame(activities), params, context)

    assert data.countries["country"].tolist() == ["FR", "IT", None]
    assert data.countries["value"].tolist() == [140.0, 300.0, 60.0]
    assert data.countries["count"].tolist() == [2, 1, 1]
    assert data.domain == (140.0, 300.0)
    assert data.value_for("IT") == 300.0
    assert data.value_for(None) == 60.0
    assert data.value_for("DE") == 0.0
    assert data.countries["value"].sum() == 500.0


def test_geo_by_year(library: SettingsLibrary, activities, context) -> None:
    params = GeoParameters(value=library.value("elevation"), time_group=ByYear(2022))

    data = GeoRollupAggregator().compute(_frame(activities), params, context)

    assert data.countries["country"].tolist() == ["FR"]
    assert data.domain == (100.0, 100.0)


def test_scatter_reports_axis_extents(library: SettingsLibrary, activities, context) -> None:
    params = ScatterParameters(
        x_value=library.value("date"),
        y_value=library.value("elevation"),
        r_value=library.value("duration"),
        group=library.group("sport_group"),
    )

    data = ScatterProjector().compute(_frame(activities), params, context)

    assert data.count == 4
    assert data.y_extent == (40.0, 300.0)
    assert data.x_extent[0].year == 2022
    assert data.r_extent == (None, None)

    swapped = params.merged({"y_value": library.value("distance")})
    assert swapped.y_value.id == "distance"
    assert swapped.x_value is params.x_value
