from __future__ import annotations

from pathlib import Path

import typer

from activity_stats.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from activity_stats.errors import ConfigError
from activity_stats.io.payload import dumps_payload, view_payload
from activity_stats.io.read import load_activities, load_id_list
from activity_stats.logging import configure_logging
from activity_stats.primitives.scales import ScaleKind
from activity_stats.settings import build_library
from activity_stats.store import AggregationStore
from activity_stats.views.base import ViewKind

app = typer.Typer(no_args_is_help=True, add_completion=False)

YEAR_SCOPED_VIEWS = (ViewKind.TIMELINE, ViewKind.PIE, ViewKind.GEO)


def _load_app_config(config_path: Path | None) -> AppConfig:
    if config_path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return AppConfig()
        config_path = DEFAULT_CONFIG_PATH
    return load_config(config_path)


@app.command()
def views(
    activities: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    config: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    view: list[ViewKind] | None = typer.Option(
        None,
        "--view",
        help="View to include; repeat for several. Defaults to every view.",
    ),
    filter_ids: Path | None = typer.Option(
        None,
        exists=True,
        readable=True,
        resolve_path=True,
        help="Allow-list of activity ids: a JSON array or one id per line.",
    ),
    year: int | None = typer.Option(
        None,
        help="Highlight one year in the timeline and scope pie and geo to it.",
    ),
) -> None:
    """Compute view states for an activity file and print them as JSON."""
    cfg = _load_app_config(config)
    configure_logging(cfg.logging.level)
    try:
        store = AggregationStore.from_config(cfg)
        frame = load_activities(activities)
        if filter_ids is not None:
            store.set_filter_ids(load_id_list(filter_ids))
        store.set_activities(frame)
        if year is not None:
            for kind in YEAR_SCOPED_VIEWS:
                store.update_view(kind, year=year)
    except (ConfigError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc

    kinds = view or list(ViewKind)
    payload = {kind.value: view_payload(store.view(kind)) for kind in kinds}
    typer.echo(dumps_payload(payload))


@app.command()
def settings(
    config: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
) -> None:
    """List the value, group, time period and scale ids views accept."""
    cfg = _load_app_config(config)
    configure_logging(cfg.logging.level)
    try:
        library = build_library(cfg)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc

    typer.echo("Values")
    for option in library.values.values():
        limits = ""
        if option.min_value is not None or option.max_value is not None:
            limits = f" [{option.min_value}, {option.max_value}]"
        typer.echo(f"- {option.id}: {option.label} ({option.unit or option.kind}){limits}")
    typer.echo("Groups")
    for group in library.groups.values():
        typer.echo(f"- {group.id}: {group.label}")
    typer.echo("Time periods")
    for period in library.time_periods.values():
        suffix = " (relative)" if period.relative else ""
        typer.echo(f"- {period.id}: {period.label}{suffix}")
    typer.echo("Scales")
    for scale in ScaleKind:
        typer.echo(f"- {scale.value}")


if __name__ == "__main__":
    app()
