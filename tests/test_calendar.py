from __future__ import annotations

import math

import pandas as pd
import pytest

from activity_stats.errors import ComputeError, ConfigError
from activity_stats.settings import SettingsLibrary
from activity_stats.views.base import AggregationContext
from activity_stats.views.calendar import (
    CalendarAggregator,
    CalendarDay,
    CalendarParameters,
    color_scale,
)

PALETTE = ("below", "c1", "c2", "c3", "selected")


def _frame(activities) -> pd.DataFrame:
    return activities(
        [
            {"id": "a", "start_date_local": "2023-01-01T07:00:00Z", "total_elevation_gain": 10.0},
            {"id": "b", "start_date_local": "2023-01-01T18:00:00Z", "total_elevation_gain": 20.0},
            {"id": "c", "start_date_local": "2023-01-03T07:00:00Z", "total_elevation_gain": 50.0},
        ]
    )


def test_calendar_rolls_up_by_day(library: SettingsLibrary, activities, context) -> None:
    params = CalendarParameters(value=library.value("elevation").with_limits(None, None))

    data = CalendarAggregator().compute(_frame(activities), params, context)

    assert data.days["day"].tolist() == ["2023-01-01", "2023-01-03"]
    assert data.days["value"].tolist() == [30.0, 50.0]
    assert data.days["count"].tolist() == [2, 1]
    assert data.cap == 50.0
    assert data.extent == (pd.Timestamp("2023-01-01 07:00"), pd.Timestamp("2023-01-03 07:00"))
    assert sorted(data.activities_by_day["2023-01-01"]["id"]) == ["a", "b"]


def test_calendar_cap_uses_value_maximum(library: SettingsLibrary, activities, context) -> None:
    params = CalendarParameters(value=library.value("elevation"))

    data = CalendarAggregator().compute(_frame(activities), params, context)

    assert data.cap == 2000.0


def test_selected_days_override_the_scale(library: SettingsLibrary, activities) -> None:
    params = CalendarParameters(value=library.value("elevation").with_limits(None, 100.0))
    context = AggregationContext(selected_ids=frozenset({"c"}))

    data = CalendarAggregator().compute(_frame(activities), params, context)
    pick = data.color_scale_fn(PALETTE)

    assert data.days["selected"].tolist() == [False, True]
    assert pick(data.entry("2023-01-01")) == "c1"
    assert pick(data.entry("2023-01-03")) == "selected"
    assert pick(data.entry("2023-01-02")) == "below"
    assert [entry.day for entry in data.entries()] == ["2023-01-01", "2023-01-03"]


def test_color_scale_quantizes_against_the_cap() -> None:
    pick = color_scale(PALETTE, cap=100.0)

    assert pick(CalendarDay("d", 0.0)) == "below"
    assert pick(CalendarDay("d", math.nan)) == "below"
    assert pick(CalendarDay("d", 10.0)) == "c1"
    assert pick(CalendarDay("d", 50.0)) == "c2"
    assert pick(CalendarDay("d", 100.0)) == "c3"
    assert pick(CalendarDay("d", 250.0)) == "c3"
    assert pick(CalendarDay("d", 0.0, selected=True)) == "selected"

    with pytest.raises(ConfigError, match="calendar palette"):
        color_scale(("a", "b"), cap=1.0)


def test_palette_length_is_validated(library: SettingsLibrary) -> None:
    params = CalendarParameters(value=library.value("elevation"))

    with pytest.raises(ConfigError):
        params.merged({"palette": ("a", "b")})


def test_on_click_selects_the_day(library: SettingsLibrary, activities) -> None:
    selections: list[list[str]] = []
    context = AggregationContext(on_select=selections.append)
    params = CalendarParameters(value=library.value("elevation"))

    data = CalendarAggregator().compute(_frame(activities), params, context)
    data.on_click("2023-01-01")
    data.on_click("2024-01-01")

    assert selections == [["a", "b"], []]


def test_calendar_without_dates_is_a_compute_error(
    library: SettingsLibrary, activities, context
) -> None:
    params = CalendarParameters(value=library.value("elevation"))

    with pytest.raises(ComputeError):
        CalendarAggregator().compute(activities([{"total_elevation_gain": 1.0}]), params, context)
