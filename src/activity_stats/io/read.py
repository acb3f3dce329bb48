from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping

import pandas as pd

from activity_stats.errors import DataError
from activity_stats.io.schema import normalize_activity_frame

LOGGER = logging.getLogger(__name__)

GEOJSON_SUFFIXES = {".geojson", ".json"}


def activities_from_features(features: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """Flatten GeoJSON features into an activity frame, one row per feature's ``properties``."""
    rows = []
    for feature in features:
        properties = dict(feature.get("properties") or {})
        if "id" not in properties and feature.get("id") is not None:
            properties["id"] = feature["id"]
        rows.append(properties)
    if not rows:
        return normalize_activity_frame(pd.DataFrame({"id": pd.Series(dtype=object)}))
    return normalize_activity_frame(pd.DataFrame.from_records(rows))


def _read_features(path: Path) -> list[Mapping[str, Any]]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and payload.get("type") == "FeatureCollection":
        return list(payload.get("features") or [])
    raise DataError(f"Expected a GeoJSON FeatureCollection in {path}")


def load_activities(path: Path) -> pd.DataFrame:
    """Load activities from GeoJSON or CSV and return canonical columns."""
    if path.suffix in GEOJSON_SUFFIXES:
        frame = activities_from_features(_read_features(path))
    elif path.suffix == ".csv":
        # utf-8-sig strips BOM-prefixed headers commonly found in exported CSV files.
        frame = normalize_activity_frame(pd.read_csv(path, encoding="utf-8-sig"))
    else:
        raise ValueError(f"Unsupported activity file type: {path.suffix}")
    LOGGER.info("Loaded %d activities from %s", len(frame), path)
    return frame


def load_id_list(path: Path) -> list[str]:
    """Read an allow-list: a JSON array of ids, or one id per line."""
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        payload = json.loads(text)
        if not isinstance(payload, list):
            raise DataError(f"Expected a JSON array of ids in {path}")
        return [str(value) for value in payload]
    return [line.strip() for line in text.splitlines() if line.strip()]
