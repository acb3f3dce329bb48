from __future__ import annotations

from dataclasses import dataclass, fields

import numpy as np
import pandas as pd

from activity_stats.errors import DataError


@dataclass(frozen=True)
class CanonicalColumns:
    id: str = "id"
    name: str = "name"
    sport_type: str = "sport_type"
    distance: str = "distance"
    total_elevation_gain: str = "total_elevation_gain"
    elapsed_time: str = "elapsed_time"
    average_speed: str = "average_speed"
    date: str = "date"
    country: str = "country"


CANONICAL_COLUMNS = [column.default for column in fields(CanonicalColumns)]
NUMERIC_COLUMNS = [
    CanonicalColumns.distance,
    CanonicalColumns.total_elevation_gain,
    CanonicalColumns.elapsed_time,
    CanonicalColumns.average_speed,
]
TEXT_COLUMNS = [CanonicalColumns.name, CanonicalColumns.sport_type, CanonicalColumns.country]
START_DATE_COLUMN = "start_date_local"


def empty_activity_frame() -> pd.DataFrame:
    frame = pd.DataFrame({column: pd.Series(dtype=object) for column in CANONICAL_COLUMNS})
    for column in NUMERIC_COLUMNS:
        frame[column] = frame[column].astype(float)
    frame[CanonicalColumns.date] = pd.Series(dtype="datetime64[ns]")
    return frame


def _parse_local_dates(values: pd.Series) -> pd.Series:
    if pd.api.types.is_datetime64_any_dtype(values):
        dates = pd.to_datetime(values)
        return dates.dt.tz_localize(None) if dates.dt.tz is not None else dates
    # Local start times carry no offset; any suffix such as "Z" is dropped.
    return pd.to_datetime(
        values.astype("string").str.slice(0, 19), errors="coerce", format="ISO8601"
    )


def normalize_activity_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Coerce a raw activity table into the canonical columns used by the views.

    ``date`` is parsed from ``start_date_local`` when absent; optional columns are
    filled with missing values; extra columns are kept.
    """
    if CanonicalColumns.id not in df.columns:
        raise DataError(f"Activity data missing column: {CanonicalColumns.id}")

    frame = df.copy().reset_index(drop=True)
    frame[CanonicalColumns.id] = frame[CanonicalColumns.id].astype(str)

    if CanonicalColumns.date not in frame.columns:
        source = frame[START_DATE_COLUMN] if START_DATE_COLUMN in frame.columns else pd.NaT
        frame[CanonicalColumns.date] = source
    frame[CanonicalColumns.date] = _parse_local_dates(frame[CanonicalColumns.date])

    for column in NUMERIC_COLUMNS:
        if column in frame.columns:
            frame[column] = pd.to_numeric(frame[column], errors="coerce")
        else:
            frame[column] = np.nan
    for column in TEXT_COLUMNS:
        if column not in frame.columns:
            frame[column] = pd.Series(pd.NA, index=frame.index, dtype=object)

    ordered = CANONICAL_COLUMNS + [column for column in frame.columns if column not in CANONICAL_COLUMNS]
    return frame[ordered]
