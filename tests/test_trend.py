from __future__ import annotations

import numpy as np
import pytest

from activity_stats.errors import ComputeError
from activity_stats.settings import GaussianAverage, MovingAverage, SettingsLibrary
from activity_stats.views.trend import TrendAggregator, TrendParameters


def _params(library: SettingsLibrary, **overrides: object) -> TrendParameters:
    fields = {
        "time_period": library.time_period("day"),
        "value": library.value("elevation"),
        "group": library.group("sport_group"),
        "averaging": MovingAverage(3),
    }
    fields.update(overrides)
    return TrendParameters(**fields)


def test_trend_zero_fills_and_smooths(library: SettingsLibrary, activities, context) -> None:
    frame = activities(
        [
            {"start_date_local": "2023-01-01", "total_elevation_gain": 3.0},
            {"start_date_local": "2023-01-03", "total_elevation_gain": 6.0},
            {"start_date_local": "2023-01-02", "sport_type": "Ride", "total_elevation_gain": 9.0},
        ]
    )

    data = TrendAggregator().compute(frame, _params(library), context)

    assert data.groups == ("run", "ride")
    run = data.frame[data.frame["group"] == "run"]
    ride = data.frame[data.frame["group"] == "ride"]
    assert run["value"].tolist() == [3.0, 0.0, 6.0]
    np.testing.assert_allclose(run["smoothed"], [1.5, 3.0, 3.0])
    assert ride["value"].tolist() == [0.0, 9.0, 0.0]
    assert data.colors == {"run": "#ef4444", "ride": "#3b82f6"}


def test_trend_gaussian_keeps_flat_series_flat(library: SettingsLibrary, activities, context) -> None:
    frame = activities(
        [{"start_date_local": f"2023-01-0{day}", "total_elevation_gain": 4.0} for day in range(1, 8)]
    )

    data = TrendAggregator().compute(
        frame, _params(library, averaging=GaussianAverage(2.0)), context
    )

    np.testing.assert_allclose(data.frame["smoothed"], np.full(7, 4.0))


def test_trend_without_dates_is_a_compute_error(
    library: SettingsLibrary, activities, context
) -> None:
    with pytest.raises(ComputeError):
        TrendAggregator().compute(activities([{"total_elevation_gain": 1.0}]), _params(library), context)
