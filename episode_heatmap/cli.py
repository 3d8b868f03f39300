"""Command-line entry point for the episode heatmap client.

This is the thin bootstrap layer that ties everything together:

    1. Loads config from environment variables
    2. Configures structured JSON logging
    3. Builds the cache (MongoDB when MONGODB_URI is set, else in-memory)
       and sweeps expired entries once
    4. Runs one application action and prints the result

The heavy lifting lives in AppState; this module only renders text.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Optional

import typer
from pymongo.errors import PyMongoError

from episode_heatmap.app_state import AppState
from episode_heatmap.cache import MemoryStore, TTLCache
from episode_heatmap.color_scale import color_legend
from episode_heatmap.config import AppConfig, load_config
from episode_heatmap.fetchers import AsyncTMDBClient, TMDBClient, create_session
from episode_heatmap.models import HeatmapModel, Season, ShowSummary
from episode_heatmap.storage import MongoCacheStore, close_connection, get_database

logger = logging.getLogger(__name__)

app = typer.Typer(help="Browse TV shows and print per-episode rating heatmaps.")


class _JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Serialize the log record to a JSON string."""
        return json.dumps({
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        })


def configure_logging(level: str = "WARNING") -> None:
    """Send JSON log lines to stderr, keeping stdout for results."""
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not any(
        isinstance(h.formatter, _JSONFormatter) for h in root.handlers
    ):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(_JSONFormatter())
        root.addHandler(handler)


def build_cache(config: AppConfig) -> TTLCache:
    """Create the cache over MongoDB, or memory when no URI is configured."""
    if config.mongo.uri:
        store = MongoCacheStore(get_database(config.mongo), config.mongo)
    else:
        logger.warning("MONGODB_URI not set; cache will not survive restarts")
        store = MemoryStore()
    return TTLCache(store, prefix=config.cache.prefix)


def build_app_state(config: AppConfig) -> AppState:
    """Wire the API client, cache and history into an AppState."""
    cache = build_cache(config)
    cache.sweep_expired()
    client = TMDBClient(create_session(config.tmdb), config.tmdb)
    return AppState(
        api=AsyncTMDBClient(client),
        cache=cache,
        cache_config=config.cache,
        search_config=config.search,
    )


def _cells_by_number(season: Season) -> dict[int, str]:
    cells: dict[int, str] = {}
    for position, ep in enumerate(season.episodes, start=1):
        number = ep.episode_number if ep.episode_number > 0 else position
        cells[number] = f"{ep.rating:>5.1f}" if ep.is_rated else f"{'--':>5}"
    return cells


def render_heatmap(show_name: str, model: HeatmapModel) -> str:
    """Render the heatmap as a season-by-episode text grid."""
    if not model.seasons:
        return f"{show_name}: no episode data"

    # Cells sit under their episode number; gaps in a season stay blank.
    rows = [
        (season.season_number, _cells_by_number(season))
        for season in model.seasons
    ]
    width = max(
        [model.max_episodes_per_season]
        + [max(cells, default=0) for _, cells in rows]
    )
    header = "     " + "".join(f"{n:>5}" for n in range(1, width + 1))
    lines = [show_name, header]
    for season_number, cells in rows:
        row = "".join(cells.get(n, f"{'':>5}") for n in range(1, width + 1))
        lines.append(f"S{season_number:<3} {row}".rstrip())

    stats = model.stats
    lines.append("")
    lines.append(
        f"Episodes: {stats.total_episode_count} "
        f"(rated {stats.rated_episode_count}), "
        f"average {stats.average_rating:.2f}"
    )
    for label, episode in (
        ("Best", stats.highest_rated_episode),
        ("Worst", stats.lowest_rated_episode),
    ):
        if episode is not None:
            lines.append(
                f"{label}: S{episode.season_number}E{episode.episode_number} "
                f"{episode.name} ({episode.rating:.1f})"
            )
    return "\n".join(lines)


def _render_results(results: list[ShowSummary]) -> str:
    if not results:
        return "No results found. Try a different search term."
    return "\n".join(
        f"{show.id:>8}  {show.name} ({show.first_air_date[:4] or '----'})"
        for show in results
    )


def _state_or_exit(ctx: typer.Context) -> AppState:
    try:
        config = load_config()
    except ValueError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=2)
    try:
        state = build_app_state(config)
    except PyMongoError as exc:
        typer.echo(f"Cache store unavailable: {exc}", err=True)
        raise typer.Exit(code=2)
    ctx.call_on_close(state.close)
    return state


def _print_listing(state: AppState) -> None:
    if state.search_error:
        typer.echo(state.search_error, err=True)
        raise typer.Exit(code=1)
    typer.echo(_render_results(state.search_results))


def _print_show(state: AppState) -> None:
    if state.show_error:
        typer.echo(state.show_error, err=True)
        raise typer.Exit(code=1)
    name = state.selected_show.name if state.selected_show else ""
    if state.show_details:
        name = state.show_details.get("name") or name
    typer.echo(render_heatmap(name, state.heatmap or HeatmapModel()))


@app.callback()
def main(
    ctx: typer.Context,
    log_level: str = typer.Option("WARNING", help="Logging level."),
) -> None:
    configure_logging(log_level)
    ctx.call_on_close(close_connection)


@app.command()
def search(ctx: typer.Context, query: str) -> None:
    """Search shows by name."""
    state = _state_or_exit(ctx)
    asyncio.run(state.search(query))
    _print_listing(state)


@app.command()
def show(ctx: typer.Context, show_id: int, name: Optional[str] = typer.Option(None)) -> None:
    """Print the rating heatmap of one show."""
    state = _state_or_exit(ctx)
    asyncio.run(state.select_show(ShowSummary(id=show_id, name=name or "")))
    _print_show(state)


@app.command("top-rated")
def top_rated(ctx: typer.Context) -> None:
    """List the top rated shows."""
    state = _state_or_exit(ctx)
    asyncio.run(state.browse_top_rated())
    _print_listing(state)


@app.command()
def popular(ctx: typer.Context) -> None:
    """List currently popular shows."""
    state = _state_or_exit(ctx)
    asyncio.run(state.browse_popular())
    _print_listing(state)


@app.command("random")
def random_show(ctx: typer.Context) -> None:
    """Print the heatmap of a random popular show."""
    state = _state_or_exit(ctx)
    asyncio.run(state.select_random_show())
    if state.search_error and not state.selected_show:
        typer.echo(state.search_error, err=True)
        raise typer.Exit(code=1)
    _print_show(state)


@app.command()
def legend() -> None:
    """Print the rating color legend."""
    for color, rating_range, label in color_legend():
        typer.echo(f"{label:<10} {rating_range:<10} {color}")


@app.command("sweep-cache")
def sweep_cache() -> None:
    """Remove expired cache entries."""
    try:
        config = load_config()
    except ValueError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=2)
    removed = build_cache(config).sweep_expired()
    typer.echo(f"Removed {removed} expired entries")


@app.command("clear-cache")
def clear_cache(
    namespace: Optional[str] = typer.Option(
        None, help="Only clear one namespace (show, season, search, providers)."
    ),
) -> None:
    """Delete cached entries."""
    try:
        config = load_config()
    except ValueError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=2)
    cache = build_cache(config)
    removed = cache.clear_namespace(namespace) if namespace else cache.clear_all()
    typer.echo(f"Removed {removed} entries")


if __name__ == "__main__":
    app()
