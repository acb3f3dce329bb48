from __future__ import annotations

import dataclasses
import json
import math
from enum import Enum
from typing import Any, Mapping

import numpy as np
import pandas as pd
from pydantic import BaseModel

from activity_stats.views.base import ViewState


def _parameter(value: Any) -> Any:
    option_id = getattr(value, "id", None)
    if isinstance(option_id, str) and dataclasses.is_dataclass(value):
        return option_id
    return to_jsonable(value)


def to_jsonable(value: Any) -> Any:
    """Convert view data into plain JSON types; callables are dropped."""
    if value is None or value is pd.NaT or value is pd.NA:
        return None
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (bool, str)):
        return value
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, (pd.Timestamp, np.datetime64)):
        stamp = pd.Timestamp(value)
        return None if pd.isna(stamp) else stamp.isoformat()
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)):
        number = float(value)
        return None if math.isnan(number) or math.isinf(number) else number
    if isinstance(value, pd.DataFrame):
        return [
            {str(column): to_jsonable(cell) for column, cell in zip(value.columns, row)}
            for row in value.itertuples(index=False, name=None)
        ]
    if isinstance(value, (pd.Series, pd.Index, np.ndarray)):
        return [to_jsonable(item) for item in list(value)]
    if isinstance(value, BaseModel):
        return {name: _parameter(getattr(value, name)) for name in type(value).model_fields}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            item.name: to_jsonable(getattr(value, item.name))
            for item in dataclasses.fields(value)
            if not callable(getattr(value, item.name))
        }
    if isinstance(value, Mapping):
        return {str(to_jsonable(key)): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(item) for item in value]
    if callable(value):
        return None
    return str(value)


def view_payload(state: ViewState) -> dict[str, Any]:
    return {
        "kind": state.kind.value,
        "loaded": state.loaded,
        "parameters": to_jsonable(state.parameters),
        "data": to_jsonable(state.data),
    }


def dumps_payload(data: Mapping[str, Any]) -> str:
    return json.dumps(data, indent=2, sort_keys=True)
