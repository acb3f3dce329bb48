from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

LOG_LEVEL_ENV = "ACTIVITY_STATS_LOG_LEVEL"

DEFAULT_PALETTE = [
    "#f1f5f9",
    "#fde68a",
    "#fbbf24",
    "#f97316",
    "#dc2626",
    "#7f1d1d",
    "#1976d2",
]


class CategoryStyle(BaseModel):
    color: str
    icon: str = "circle"
    label: str | None = None


class CategoriesConfig(BaseModel):
    aliases: dict[str, str] = Field(default_factory=dict)
    groups: dict[str, CategoryStyle] = Field(default_factory=dict)
    fallback: CategoryStyle = Field(
        default_factory=lambda: CategoryStyle(color="#94a3b8", icon="question")
    )


class ValueLimits(BaseModel):
    min_value: float | None = None
    max_value: float | None = None

    @model_validator(mode="after")
    def _check_order(self) -> "ValueLimits":
        if (
            self.min_value is not None
            and self.max_value is not None
            and self.max_value < self.min_value
        ):
            raise ValueError("max_value must be >= min_value")
        return self


class TimelineDefaults(BaseModel):
    time_period: str = "week"
    value: str = "duration"
    group: str = "sport_group"
    cumulative: bool = True
    highlight_year: int | None = None


class TrendDefaults(BaseModel):
    time_period: str = "day"
    value: str = "elevation"
    group: str = "sport_group"
    averaging: Literal["moving_average", "gaussian"] = "moving_average"
    window: int = Field(default=7, ge=1)
    sigma: float = Field(default=3.0, gt=0.0)


class LayoutConfig(BaseModel):
    width: float = Field(default=800.0, gt=0.0)
    height: float = Field(default=500.0, gt=0.0)
    margin_top: float = Field(default=80.0, ge=0.0)
    margin_right: float = Field(default=30.0, ge=0.0)
    margin_bottom: float = Field(default=30.0, ge=0.0)
    margin_left: float = Field(default=60.0, ge=0.0)


class ViolinDefaults(BaseModel):
    value: str = "elevation"
    group: str = "sport_group"
    scale: Literal["linear", "log", "sqrt"] = "log"
    bin_count: int = Field(default=20, ge=1)
    outlier_threshold: int = Field(default=8, ge=1)
    min_bulk: int = Field(default=20, ge=1)
    ticks: int = Field(default=100, ge=0)
    point_radius: float = Field(default=4.0, gt=0.0)
    sparse_point_radius: float = Field(default=3.0, gt=0.0)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)


class CalendarDefaults(BaseModel):
    value: str = "elevation"
    palette: list[str] = Field(default_factory=lambda: list(DEFAULT_PALETTE), min_length=3)


class PieDefaults(BaseModel):
    value: str = "elevation"
    group: str = "sport_group"
    year: int | None = None


class GeoDefaults(BaseModel):
    value: str = "elevation"
    year: int | None = None


class ScatterDefaults(BaseModel):
    x_value: str = "date"
    y_value: str = "elevation"
    r_value: str = "duration"
    group: str = "sport_group"


class LoggingConfig(BaseModel):
    level: str = "INFO"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    categories: CategoriesConfig = Field(default_factory=CategoriesConfig)
    values: dict[str, ValueLimits] = Field(default_factory=dict)
    timeline: TimelineDefaults = Field(default_factory=TimelineDefaults)
    trend: TrendDefaults = Field(default_factory=TrendDefaults)
    violin: ViolinDefaults = Field(default_factory=ViolinDefaults)
    calendar: CalendarDefaults = Field(default_factory=CalendarDefaults)
    pie: PieDefaults = Field(default_factory=PieDefaults)
    geo: GeoDefaults = Field(default_factory=GeoDefaults)
    scatter: ScatterDefaults = Field(default_factory=ScatterDefaults)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    config = AppConfig.model_validate(data)
    config.logging.level = os.getenv(LOG_LEVEL_ENV) or config.logging.level
    return config
