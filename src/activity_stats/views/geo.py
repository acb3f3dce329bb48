from __future__ import annotations

from dataclasses import dataclass

import pandas as pd
from pydantic import InstanceOf, model_validator

from activity_stats.primitives.groupbin import extent
from activity_stats.settings import AllYears, ByYear, ValueOption
from activity_stats.views.base import (
    AggregationContext,
    Aggregator,
    ViewKind,
    ViewParameters,
    usable_rows,
)

COUNTRY_COLUMNS = ["country", "value", "count"]


class GeoParameters(ViewParameters):
    value: InstanceOf[ValueOption]
    time_group: InstanceOf[AllYears] | InstanceOf[ByYear] = AllYears()

    @model_validator(mode="after")
    def _numeric_value(self) -> "GeoParameters":
        if self.value.kind != "number":
            raise ValueError(f"geo value must be numeric, got {self.value.id!r}")
        return self


@dataclass(frozen=True)
class GeoData:
    countries: pd.DataFrame
    domain: tuple[float | None, float | None]

    def value_for(self, country: str | None) -> float:
        keys = self.countries["country"]
        matches = keys.isna() if country is None else keys == country
        match = self.countries.loc[matches, "value"]
        return float(match.iloc[0]) if not match.empty else 0.0


class GeoRollupAggregator(Aggregator[GeoParameters]):
    """Per-country sums; activities without a country tag roll up under ``None``."""

    kind = ViewKind.GEO

    def empty(self, params: GeoParameters) -> GeoData:
        return GeoData(countries=pd.DataFrame(columns=COUNTRY_COLUMNS), domain=(None, None))

    def compute(
        self,
        frame: pd.DataFrame,
        params: GeoParameters,
        context: AggregationContext,
    ) -> GeoData:
        dates = pd.to_datetime(frame["date"], errors="coerce")
        scoped = frame[params.time_group.mask(dates).fillna(False).to_numpy(dtype=bool)]
        country = (
            scoped["country"]
            if "country" in scoped.columns
            else pd.Series(None, index=scoped.index, dtype=object)
        )
        rows = usable_rows(
            self.kind,
            {"country": country, "value": params.value.values(scoped)},
            required=["value"],
        )
        if rows.empty:
            return self.empty(params)

        rolled = rows.groupby("country", sort=True, dropna=False)["value"].agg(["sum", "size"])
        countries = pd.DataFrame(
            {
                "country": pd.Series(
                    [None if pd.isna(key) else str(key) for key in rolled.index], dtype=object
                ),
                "value": rolled["sum"].to_numpy(dtype=float),
                "count": rolled["size"].to_numpy(dtype=int),
            },
            columns=COUNTRY_COLUMNS,
        )
        low, high = extent(countries.loc[countries["country"].notna(), "value"])
        return GeoData(countries=countries, domain=(low, high))
