"""Reactive holder of the activity set, the filter/selection state and every view.

Each setter runs the affected aggregators to completion and publishes a new
immutable :class:`StoreSnapshot`. A raw-set or allow-list change recomputes all
views; a selection change recomputes the calendar; a view's own parameter
change recomputes only that view.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping

import pandas as pd

from activity_stats.config import AppConfig
from activity_stats.errors import ComputeError, ConfigError
from activity_stats.io.schema import empty_activity_frame
from activity_stats.primitives.groupbin import extent
from activity_stats.settings import SettingsLibrary, build_library
from activity_stats.views.base import (
    AggregationContext,
    Aggregator,
    ViewKind,
    ViewParameters,
    ViewState,
)
from activity_stats.views.registry import default_aggregators, default_parameters, resolve_update

LOGGER = logging.getLogger(__name__)

Listener = Callable[["StoreSnapshot"], Any]


@dataclass(frozen=True)
class StoreSnapshot:
    raw: pd.DataFrame
    filtered: pd.DataFrame
    extent: tuple[pd.Timestamp | None, pd.Timestamp | None]
    views: Mapping[ViewKind, ViewState]
    filter_ids: frozenset[str] | None = None
    selected_ids: frozenset[str] = field(default_factory=frozenset)

    def view(self, kind: ViewKind | str) -> ViewState:
        return self.views[ViewKind(kind)]


def _view_kind(kind: ViewKind | str) -> ViewKind:
    try:
        return ViewKind(kind)
    except ValueError:
        raise ConfigError(f"Unknown view: {kind!r}") from None


class AggregationStore:
    def __init__(
        self,
        library: SettingsLibrary,
        defaults: Mapping[ViewKind, ViewParameters],
        *,
        on_select: Callable[[list[str]], Any] | None = None,
        aggregators: Mapping[ViewKind, Aggregator[Any]] | None = None,
    ) -> None:
        self.library = library
        self._aggregators = dict(aggregators) if aggregators is not None else default_aggregators()
        missing = set(self._aggregators) - set(defaults)
        if missing:
            raise ConfigError(
                "Missing default parameters for: "
                + ", ".join(sorted(kind.value for kind in missing))
            )
        self._on_select = on_select
        self._listeners: list[Listener] = []
        self._has_activities = False

        raw = empty_activity_frame()
        self._snapshot = StoreSnapshot(
            raw=raw,
            filtered=raw,
            extent=(None, None),
            views=MappingProxyType({
                kind: ViewState(
                    kind=kind,
                    loaded=False,
                    parameters=defaults[kind],
                    data=aggregator.empty(defaults[kind]),
                )
                for kind, aggregator in self._aggregators.items()
            }),
        )

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        on_select: Callable[[list[str]], Any] | None = None,
    ) -> "AggregationStore":
        library = build_library(config)
        return cls(library, default_parameters(library, config), on_select=on_select)

    @property
    def snapshot(self) -> StoreSnapshot:
        return self._snapshot

    def view(self, kind: ViewKind | str) -> ViewState:
        return self._snapshot.views[_view_kind(kind)]

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_activities(self, frame: pd.DataFrame) -> StoreSnapshot:
        self._has_activities = True
        return self._refilter(frame, self._snapshot.filter_ids)

    def set_filter_ids(self, ids: Iterable[Any] | None) -> StoreSnapshot:
        allowed = None if ids is None else frozenset(str(value) for value in ids)
        return self._refilter(self._snapshot.raw, allowed)

    def set_selection(self, ids: Iterable[Any]) -> StoreSnapshot:
        selected = frozenset(str(value) for value in ids)
        snapshot = replace(self._snapshot, selected_ids=selected)
        kinds = [ViewKind.CALENDAR] if ViewKind.CALENDAR in self._aggregators else []
        return self._publish(self._recompute(snapshot, kinds))

    def update_view(self, kind: ViewKind | str, **partial: Any) -> ViewState:
        view_kind = _view_kind(kind)
        if view_kind not in self._aggregators:
            raise ConfigError(f"View not registered: {view_kind.value}")
        current = self._snapshot.views[view_kind]
        resolved = resolve_update(self.library, current.parameters, partial)
        parameters = current.parameters.merged(resolved)

        views = dict(self._snapshot.views)
        views[view_kind] = replace(current, parameters=parameters)
        snapshot = replace(self._snapshot, views=MappingProxyType(views))
        snapshot = self._recompute(snapshot, [view_kind])
        self._publish(snapshot)
        return snapshot.views[view_kind]

    def set_timeline(self, **partial: Any) -> ViewState:
        return self.update_view(ViewKind.TIMELINE, **partial)

    def set_trend(self, **partial: Any) -> ViewState:
        return self.update_view(ViewKind.TREND, **partial)

    def set_violin(self, **partial: Any) -> ViewState:
        return self.update_view(ViewKind.VIOLIN, **partial)

    def set_calendar(self, **partial: Any) -> ViewState:
        return self.update_view(ViewKind.CALENDAR, **partial)

    def set_pie(self, **partial: Any) -> ViewState:
        return self.update_view(ViewKind.PIE, **partial)

    def set_geo(self, **partial: Any) -> ViewState:
        return self.update_view(ViewKind.GEO, **partial)

    def set_scatter(self, **partial: Any) -> ViewState:
        return self.update_view(ViewKind.SCATTER, **partial)

    def _context(self, snapshot: StoreSnapshot) -> AggregationContext:
        return AggregationContext(
            selected_ids=snapshot.selected_ids,
            on_select=self._on_select or self.set_selection,
            update_view=self.update_view,
        )

    def _refilter(self, raw: pd.DataFrame, allowed: frozenset[str] | None) -> StoreSnapshot:
        if allowed is None:
            filtered = raw
        else:
            filtered = raw[raw["id"].astype(str).isin(allowed)]
        snapshot = replace(
            self._snapshot,
            raw=raw,
            filtered=filtered,
            extent=extent(pd.to_datetime(filtered["date"], errors="coerce")),
            filter_ids=allowed,
        )
        LOGGER.debug("Filtered %d of %d activities", len(filtered), len(raw))
        return self._publish(self._recompute(snapshot, list(self._aggregators)))

    def _recompute(self, snapshot: StoreSnapshot, kinds: Iterable[ViewKind]) -> StoreSnapshot:
        if not self._has_activities:
            return snapshot
        context = self._context(snapshot)
        views = dict(snapshot.views)
        for kind in kinds:
            aggregator = self._aggregators[kind]
            parameters = views[kind].parameters
            try:
                data = aggregator.compute(snapshot.filtered, parameters, context)
            except ComputeError as exc:
                LOGGER.warning("%s view left empty: %s", kind.value, exc)
                data = aggregator.empty(parameters)
            views[kind] = ViewState(kind=kind, loaded=True, parameters=parameters, data=data)
        return replace(snapshot, views=MappingProxyType(views))

    def _publish(self, snapshot: StoreSnapshot) -> StoreSnapshot:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot
