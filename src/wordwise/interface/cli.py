"""wordwise CLI — review, queue, shuffle, cache administration and config."""

import asyncio
import json
import logging
import random
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated

import typer

from wordwise.application.config import resolve_config
from wordwise.interface._common import _resolve_with_overrides, parse_grade

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="wordwise: spaced-repetition review for vocabulary collections.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Subgroups
# ---------------------------------------------------------------------------

cache_app = typer.Typer(help="Inspect and manage the local cache.", no_args_is_help=True)
app.add_typer(cache_app, name="cache")

config_app = typer.Typer(help="Manage wordwise configuration.")
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
):
    """Global settings for wordwise."""
    ctx.ensure_object(dict)
    ctx.obj["verbose_bonus"] = verbose


def _state_json(state) -> str:
    return json.dumps(state.to_record(), indent=2)


def _run(service, coro):
    """Run a service coroutine, then release the service's connections."""

    async def runner():
        try:
            return await coro
        finally:
            await service.close()

    return asyncio.run(runner())


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def grade(
    ctx: typer.Context,
    word_id: Annotated[str, typer.Argument(help="Word to grade.")],
    outcome: Annotated[str, typer.Argument(help="easy, medium, hard or again.")],
    at: Annotated[
        datetime | None, typer.Option(help="Review time (ISO 8601). Defaults to now.")
    ] = None,
):
    """[bold green]Grade[/bold green] a review and print the updated state."""
    from wordwise.application.factory import get_progress_service
    from wordwise.domain.review.ports import RepositoryError

    parsed = parse_grade(outcome)
    if at is not None:
        # Naive input is local time
        at = at.astimezone(timezone.utc)
    config = _resolve_with_overrides(verbose=ctx.obj.get("verbose_bonus", 1))
    service = get_progress_service(config)

    try:
        state = _run(service, service.record_grade(word_id, parsed, now=at))
    except (RepositoryError, ValueError) as e:
        typer.secho(f"Grading failed: {e}", fg="red")
        raise typer.Exit(1) from e

    typer.echo(_state_json(state))


@app.command("queue")
def queue(
    ctx: typer.Context,
    word_ids: Annotated[
        list[str] | None, typer.Argument(help="Word IDs to consider.")
    ] = None,
    file: Annotated[
        Path | None, typer.Option("--file", "-f", help="YAML word list to consider.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show the words due for review, never-studied words first."""
    from wordwise.application.factory import get_progress_service
    from wordwise.application.sm2 import review_progress
    from wordwise.application.word_list import WordListError, load_word_list
    from wordwise.domain.review.ports import RepositoryError

    ids = list(word_ids or [])
    if file is not None:
        try:
            ids.extend(load_word_list(file))
        except (OSError, WordListError) as e:
            typer.secho(f"Could not read word list: {e}", fg="red")
            raise typer.Exit(1) from e

    if not ids:
        typer.secho("No word IDs given. Pass IDs or --file.", fg="yellow")
        raise typer.Exit(2)

    config = _resolve_with_overrides(verbose=ctx.obj.get("verbose_bonus", 1))
    service = get_progress_service(config)
    now = datetime.now(timezone.utc)

    try:
        due = _run(service, service.review_queue(ids, now=now))
    except RepositoryError as e:
        typer.secho(f"Could not load review states: {e}", fg="red")
        raise typer.Exit(1) from e

    if json_output:
        items = [{**s.to_record(), **review_progress(s, now)} for s in due]
        typer.echo(json.dumps(items, indent=2))
        return

    typer.echo(f"Due: {len(due)} of {len(ids)}")
    for state in due:
        progress = review_progress(state, now)
        typer.echo(
            f"  {state.word_id}  ({progress['nextReviewDescription']}, "
            f"mastery {progress['mastery']}%, ease {state.ease_factor:.2f})"
        )


@app.command()
def shuffle(
    count: Annotated[int, typer.Argument(help="Number of cards in the session.", min=0)],
    seed: Annotated[int | None, typer.Option(help="Random seed for a repeatable order.")] = None,
):
    """Print a shuffled flashcard order for COUNT cards."""
    from wordwise.application.scheduler import reset_order, shuffle_order

    rng = random.Random(seed)
    typer.echo(json.dumps(shuffle_order(reset_order(count), rng)))


@app.command("import")
def import_words(
    ctx: typer.Context,
    file: Annotated[Path, typer.Argument(help="YAML word list.")],
):
    """Seed default review states for every word in a YAML word list."""
    from wordwise.application.factory import get_progress_service
    from wordwise.application.word_list import WordListError, load_word_list
    from wordwise.domain.review.ports import RepositoryError

    try:
        ids = load_word_list(file)
    except (OSError, WordListError) as e:
        typer.secho(f"Could not read word list: {e}", fg="red")
        raise typer.Exit(1) from e

    config = _resolve_with_overrides(verbose=ctx.obj.get("verbose_bonus", 1))
    service = get_progress_service(config)

    try:
        created = _run(service, service.seed_states(ids))
    except RepositoryError as e:
        typer.secho(f"Import failed: {e}", fg="red")
        raise typer.Exit(1) from e

    typer.secho(f"Imported {len(ids)} words ({created} new).", fg="green")


@app.command()
def serve(
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8777,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API server."""
    import uvicorn

    uvicorn.run("wordwise.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Cache subgroup
# ---------------------------------------------------------------------------


def _cache_manager(ctx: typer.Context):
    from wordwise.application.factory import get_cache_manager

    verbose = ctx.obj.get("verbose_bonus", 1) if ctx.obj else 1
    return get_cache_manager(_resolve_with_overrides(verbose=verbose))


@cache_app.command("stats")
def cache_stats(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show cache counters and a snapshot of stored entries."""
    stats = _cache_manager(ctx).get_stats()

    if json_output:
        typer.echo(json.dumps(stats.to_dict(), indent=2))
        return

    typer.echo(
        f"Entries: {stats.total_entries}  Valid: {stats.valid_entries}"
        f"  Expired: {stats.expired_entries}  Size: {stats.size_in_mb} MB"
    )
    typer.echo(
        f"Hits: {stats.hits}  Misses: {stats.misses}  Sets: {stats.sets}"
        f"  Removes: {stats.removes}  Clears: {stats.clears}"
    )
    if stats.errors:
        typer.secho(f"Errors: {stats.errors}", fg="yellow")


@cache_app.command("clear")
def cache_clear(
    ctx: typer.Context,
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation.")] = False,
):
    """Delete every cached entry."""
    if not force:
        typer.confirm("Delete all cached entries?", abort=True)
    removed = _cache_manager(ctx).clear()
    typer.secho(f"Cleared {removed} cache entries.", fg="green")


@cache_app.command("remove")
def cache_remove(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key (without namespace).")],
):
    """Delete a single cached entry."""
    _cache_manager(ctx).remove(key)
    typer.echo(f"Removed '{key}'.")


@cache_app.command("remove-pattern")
def cache_remove_pattern(
    ctx: typer.Context,
    pattern: Annotated[str, typer.Argument(help="Regular expression matched after the namespace.")],
):
    """Delete every cached entry whose key matches PATTERN."""
    import re

    try:
        removed = _cache_manager(ctx).remove_pattern(pattern)
    except re.error as e:
        typer.secho(f"Invalid pattern: {e}", fg="red")
        raise typer.Exit(1) from e
    typer.echo(f"Removed {removed} entries.")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    if d.get("document_store_token"):
        d["document_store_token"] = "***"
    typer.echo(json.dumps(d, indent=2))
