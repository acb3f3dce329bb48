"""Option variants injected into the views: values, groups, time periods, stats, kernels.

Every option category is a small closed set of frozen dataclasses so callers can
dispatch on the variant type instead of probing for attributes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, ClassVar, Literal, Mapping, Union

import numpy as np
import pandas as pd

from activity_stats.config import AppConfig, CategoriesConfig, CategoryStyle
from activity_stats.errors import ConfigError
from activity_stats.primitives.scales import ScaleKind
from activity_stats.primitives.smoothing import gaussian_average, moving_average

LOGGER = logging.getLogger(__name__)

REFERENCE_YEAR = 2018
OTHER_GROUP = "other"


@dataclass(frozen=True)
class ValueOption:
    id: str
    label: str
    column: str
    unit: str = ""
    factor: float = 1.0
    decimals: int = 0
    kind: Literal["number", "date"] = "number"
    min_value: float | None = None
    max_value: float | None = None

    def __post_init__(self) -> None:
        if (
            self.min_value is not None
            and self.max_value is not None
            and self.max_value < self.min_value
        ):
            raise ConfigError(f"{self.id}: max_value must be >= min_value")

    def values(self, frame: pd.DataFrame) -> pd.Series:
        if self.column not in frame.columns:
            LOGGER.warning("Column %r missing for value %r; treating as empty", self.column, self.id)
            if self.kind == "date":
                return pd.Series(pd.NaT, index=frame.index, dtype="datetime64[ns]")
            return pd.Series(np.nan, index=frame.index, dtype=float)
        if self.kind == "date":
            return pd.to_datetime(frame[self.column], errors="coerce")
        return pd.to_numeric(frame[self.column], errors="coerce") * self.factor

    def format(self, value: Any) -> str:
        if self.kind == "date":
            return pd.Timestamp(value).strftime("%Y-%m-%d")
        return f"{float(value):.{self.decimals}f}{self.unit}"

    def format_axis(self, value: Any) -> str:
        if self.kind == "date":
            return pd.Timestamp(value).strftime("%b %Y")
        return f"{float(value):.{self.decimals}f}"

    def with_limits(self, min_value: float | None, max_value: float | None) -> "ValueOption":
        return replace(self, min_value=min_value, max_value=max_value)


def default_values() -> dict[str, ValueOption]:
    options = [
        ValueOption("distance", "Distance", "distance", unit="km", factor=1 / 1000),
        ValueOption("elevation", "Elevation", "total_elevation_gain", unit="m", min_value=1.0),
        ValueOption("duration", "Duration", "elapsed_time", unit="h", factor=1 / 3600, decimals=1),
        ValueOption("average_speed", "Avg Speed", "average_speed", unit="km/h", factor=3.6, decimals=1),
        ValueOption("date", "Date", "date", kind="date"),
    ]
    return {option.id: option for option in options}


def _descending_value(key: Any, value: float) -> Any:
    return (-value, str(key))


@dataclass(frozen=True)
class GroupOption:
    id: str
    label: str
    key_fn: Callable[[pd.DataFrame], pd.Series]
    styles: Mapping[str, CategoryStyle] = field(default_factory=dict)
    fallback: CategoryStyle = field(
        default_factory=lambda: CategoryStyle(color="#94a3b8", icon="question")
    )
    sort_key: Callable[[Any, float], Any] = _descending_value

    def keys(self, frame: pd.DataFrame) -> pd.Series:
        return self.key_fn(frame)

    def style(self, key: Any) -> CategoryStyle:
        return self.styles.get(str(key), self.fallback)

    def color(self, key: Any) -> str:
        return self.style(key).color

    def icon(self, key: Any) -> str:
        return self.style(key).icon

    def format(self, key: Any) -> str:
        return self.style(key).label or str(key)


def _sport_group_keys(aliases: Mapping[str, str]) -> Callable[[pd.DataFrame], pd.Series]:
    def keys(frame: pd.DataFrame) -> pd.Series:
        sport = frame["sport_type"] if "sport_type" in frame.columns else pd.Series(
            None, index=frame.index, dtype=object
        )
        return sport.map(aliases).fillna(OTHER_GROUP)

    return keys


def _sport_type_keys(frame: pd.DataFrame) -> pd.Series:
    if "sport_type" not in frame.columns:
        return pd.Series(OTHER_GROUP, index=frame.index, dtype=object)
    return frame["sport_type"].astype(object).where(frame["sport_type"].notna(), OTHER_GROUP)


def default_groups(categories: CategoriesConfig) -> dict[str, GroupOption]:
    group_styles = {OTHER_GROUP: categories.fallback, **categories.groups}
    sport_styles = {
        sport: group_styles[group]
        for sport, group in categories.aliases.items()
        if group in group_styles
    }
    options = [
        GroupOption(
            "sport_group",
            "Group",
            _sport_group_keys(dict(categories.aliases)),
            styles=group_styles,
            fallback=categories.fallback,
        ),
        GroupOption(
            "sport_type",
            "Sport",
            _sport_type_keys,
            styles=sport_styles,
            fallback=categories.fallback,
        ),
    ]
    return {option.id: option for option in options}


@dataclass(frozen=True)
class CalendarPeriod:
    """Absolute calendar buckets (a pandas period frequency)."""

    id: str
    label: str
    freq: str
    fmt: str
    relative: ClassVar[bool] = False

    def keys(self, dates: pd.Series) -> pd.Series:
        return dates.dt.to_period(self.freq).dt.start_time

    def range(self, start: pd.Timestamp, end: pd.Timestamp) -> pd.DatetimeIndex:
        return pd.period_range(start=start, end=end, freq=self.freq).start_time

    def format(self, key: pd.Timestamp) -> str:
        return pd.Timestamp(key).strftime(self.fmt)


@dataclass(frozen=True)
class RelativePeriod:
    """Week or month of year, folded onto a reference year so years overlay."""

    id: str
    label: str
    unit: Literal["week", "month"]
    fmt: str
    relative: ClassVar[bool] = True

    def keys(self, dates: pd.Series) -> pd.Series:
        reference = pd.Timestamp(REFERENCE_YEAR, 1, 1)
        if self.unit == "week":
            weeks = (dates.dt.dayofyear - 1) // 7
            return reference + pd.to_timedelta(weeks * 7, unit="D")
        if dates.empty:
            return pd.Series(pd.NaT, index=dates.index, dtype="datetime64[ns]")
        parts = pd.DataFrame(
            {"year": REFERENCE_YEAR, "month": dates.dt.month, "day": 1}, index=dates.index
        )
        return pd.to_datetime(parts, errors="coerce")

    def range(self, start: pd.Timestamp, end: pd.Timestamp) -> pd.DatetimeIndex:
        if self.unit == "week":
            return pd.date_range(pd.Timestamp(REFERENCE_YEAR, 1, 1), periods=53, freq="7D")
        return pd.period_range(
            start=f"{REFERENCE_YEAR}-01", periods=12, freq="M"
        ).start_time

    def format(self, key: pd.Timestamp) -> str:
        return pd.Timestamp(key).strftime(self.fmt)


TimePeriod = Union[CalendarPeriod, RelativePeriod]


def default_time_periods() -> dict[str, TimePeriod]:
    periods: list[TimePeriod] = [
        CalendarPeriod("day", "Day", "D", "%Y-%m-%d"),
        # Weeks start on Sunday.
        CalendarPeriod("week", "Week", "W-SAT", "%Y-%m-%d"),
        CalendarPeriod("month", "Month", "M", "%b %Y"),
        CalendarPeriod("year", "Year", "Y", "%Y"),
        RelativePeriod("week_of_year", "Week of year", "week", "%d %b"),
        RelativePeriod("month_of_year", "Month of year", "month", "%b"),
    ]
    return {period.id: period for period in periods}


@dataclass(frozen=True)
class Sum:
    unit: str = ""
    cumulative: ClassVar[bool] = False

    def transform(self, series: pd.Series) -> pd.Series:
        return series


@dataclass(frozen=True)
class CumulativeSum:
    unit: str = ""
    cumulative: ClassVar[bool] = True

    def transform(self, series: pd.Series) -> pd.Series:
        return series.cumsum()


Stat = Union[Sum, CumulativeSum]


def stat_for(cumulative: bool, unit: str = "") -> Stat:
    return CumulativeSum(unit=unit) if cumulative else Sum(unit=unit)


@dataclass(frozen=True)
class MovingAverage:
    window: int = 7

    def __post_init__(self) -> None:
        if self.window < 1:
            raise ConfigError("moving average window must be >= 1")

    def apply(self, values: np.ndarray) -> np.ndarray:
        return moving_average(values, self.window)


@dataclass(frozen=True)
class GaussianAverage:
    sigma: float = 3.0

    def __post_init__(self) -> None:
        if self.sigma <= 0:
            raise ConfigError("gaussian sigma must be > 0")

    def apply(self, values: np.ndarray) -> np.ndarray:
        return gaussian_average(values, self.sigma)


Averaging = Union[MovingAverage, GaussianAverage]


@dataclass(frozen=True)
class AllYears:
    highlight: ClassVar[int | None] = None

    def mask(self, dates: pd.Series) -> pd.Series:
        return pd.Series(True, index=dates.index)


@dataclass(frozen=True)
class ByYear:
    year: int

    @property
    def highlight(self) -> int:
        return self.year

    def mask(self, dates: pd.Series) -> pd.Series:
        return dates.dt.year == self.year


TimeGroup = Union[AllYears, ByYear]


def time_group_for(year: int | None) -> TimeGroup:
    return AllYears() if year is None else ByYear(int(year))


@dataclass(frozen=True)
class SettingsLibrary:
    values: Mapping[str, ValueOption]
    groups: Mapping[str, GroupOption]
    time_periods: Mapping[str, TimePeriod]

    def value(self, value_id: str) -> ValueOption:
        try:
            return self.values[value_id]
        except KeyError:
            raise ConfigError(f"Unknown value: {value_id!r}") from None

    def group(self, group_id: str) -> GroupOption:
        try:
            return self.groups[group_id]
        except KeyError:
            raise ConfigError(f"Unknown group: {group_id!r}") from None

    def time_period(self, period_id: str) -> TimePeriod:
        try:
            return self.time_periods[period_id]
        except KeyError:
            raise ConfigError(f"Unknown time period: {period_id!r}") from None

    def scale(self, scale_id: str) -> ScaleKind:
        try:
            return ScaleKind(scale_id)
        except ValueError:
            raise ConfigError(f"Unknown scale: {scale_id!r}") from None


def build_library(config: AppConfig) -> SettingsLibrary:
    values = default_values()
    for value_id, limits in config.values.items():
        if value_id not in values:
            raise ConfigError(f"Limits configured for unknown value: {value_id!r}")
        current = values[value_id]
        values[value_id] = current.with_limits(
            limits.min_value if limits.min_value is not None else current.min_value,
            limits.max_value if limits.max_value is not None else current.max_value,
        )
    return SettingsLibrary(
        values=values,
        groups=default_groups(config.categories),
        time_periods=default_time_periods(),
    )
