from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pandas as pd
import pytest

from activity_stats.config import AppConfig, load_config
from activity_stats.io.schema import normalize_activity_frame
from activity_stats.settings import SettingsLibrary, build_library
from activity_stats.views.base import AggregationContext

CONFIG_PATH = Path(__file__).resolve().parents[1] / "configs" / "default.yaml"


def make_activities(records: list[dict[str, Any]]) -> pd.DataFrame:
    rows = []
    for index, record in enumerate(records):
        row = {"id": f"a{index}", "sport_type": "Run"}
        row.update(record)
        rows.append(row)
    return normalize_activity_frame(pd.DataFrame(rows))


@pytest.fixture
def app_config() -> AppConfig:
    return load_config(CONFIG_PATH)


@pytest.fixture
def library(app_config: AppConfig) -> SettingsLibrary:
    return build_library(app_config)


@pytest.fixture
def activities() -> Callable[[list[dict[str, Any]]], pd.DataFrame]:
    return make_activities


@pytest.fixture
def context() -> AggregationContext:
    return AggregationContext()


@pytest.fixture
def weekly_runs() -> pd.DataFrame:
    return make_activities(
        [
            {"start_date_local": "2023-01-01T08:00:00Z", "total_elevation_gain": 10.0},
            {"start_date_local": "2023-01-08T08:00:00Z", "total_elevation_gain": 20.0},
            {"start_date_local": "2023-01-15T08:00:00Z", "total_elevation_gain": 30.0},
        ]
    )
