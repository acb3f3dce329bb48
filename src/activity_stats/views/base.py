from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Mapping, TypeVar

import pandas as pd
from pydantic import BaseModel, ConfigDict, ValidationError

from activity_stats.errors import ConfigError

LOGGER = logging.getLogger(__name__)


class ViewKind(str, Enum):
    TIMELINE = "timeline"
    TREND = "trend"
    VIOLIN = "violin"
    CALENDAR = "calendar"
    PIE = "pie"
    GEO = "geo"
    SCATTER = "scatter"


class ViewParameters(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    def merged(self, update: Mapping[str, Any]) -> "ViewParameters":
        """Return a validated copy with ``update`` applied; ``self`` is untouched."""
        try:
            return type(self).model_validate({**dict(self), **dict(update)})
        except ValidationError as exc:
            raise ConfigError(f"Invalid {type(self).__name__} update: {exc}") from exc


P = TypeVar("P", bound=ViewParameters)


@dataclass(frozen=True)
class ViewState:
    kind: ViewKind
    loaded: bool
    parameters: ViewParameters
    data: Any


@dataclass(frozen=True)
class AggregationContext:
    """Inputs an aggregator may use besides the filtered frame and its own parameters."""

    selected_ids: frozenset[str] = frozenset()
    on_select: Callable[[list[str]], Any] = field(default=lambda ids: None)
    update_view: Callable[..., Any] = field(default=lambda kind, **update: None)


class Aggregator(Generic[P]):
    kind: ViewKind

    def compute(self, frame: pd.DataFrame, params: P, context: AggregationContext) -> Any:
        raise NotImplementedError

    def empty(self, params: P) -> Any:
        raise NotImplementedError


def usable_rows(
    kind: ViewKind,
    columns: Mapping[str, pd.Series],
    *,
    required: Iterable[str] | None = None,
) -> pd.DataFrame:
    """Assemble ``columns`` into one frame and drop rows missing a required field.

    Dropped rows are counted in a log message rather than failing the recompute.
    """
    working = pd.DataFrame(dict(columns))
    subset = list(required) if required is not None else list(working.columns)
    kept = working.dropna(subset=subset)
    dropped = len(working) - len(kept)
    if dropped:
        LOGGER.info(
            "%s: excluded %d of %d activities missing %s",
            kind.value,
            dropped,
            len(working),
            ", ".join(subset),
        )
    return kept
