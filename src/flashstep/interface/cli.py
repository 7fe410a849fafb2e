"""flashstep CLI: deck inspection, queue/batch planning, and rating."""

import asyncio
import json
import logging
import random
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer

from flashstep.application.config import AppConfig, resolve_config
from flashstep.application.phase_batcher import next_batch, open_phase, resolve_batch
from flashstep.application.queue_builder import build_queue
from flashstep.application.scheduler import Scheduler, format_interval
from flashstep.application.set_stats import summarize
from flashstep.domain.errors import ContractViolation, FlashstepError
from flashstep.domain.models import Phase, Rating
from flashstep.infrastructure.adapters.yaml_store import YamlCardStore

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="flashstep: spaced-repetition scheduling for flashcard decks.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage flashstep configuration.")
app.add_typer(config_app, name="config")

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
# Helpers
# ---------------------------------------------------------------------------


def humanize_error(error: Exception) -> str:
    """Turn a library error into a one-line message for the terminal."""
    if isinstance(error, ContractViolation):
        return f"Invalid request: {error}"
    if isinstance(error, FlashstepError):
        return f"Deck error: {error}"
    return f"Unexpected error: {error}"


def _fail(error: Exception) -> NoReturn:
    typer.secho(humanize_error(error), fg="red", err=True)
    raise typer.Exit(1)


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    try:
        return resolve_config(overrides)
    except ValueError as e:
        _fail(e)


def _deck_path(config: AppConfig) -> Path:
    if config.deck_path is None:
        typer.secho(
            "No deck given. Pass a path or set 'deck_path' in config.", fg="yellow", err=True
        )
        raise typer.Exit(2)
    return config.deck_path


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _load_cards(path: Path):
    store = YamlCardStore(path)
    try:
        return store, asyncio.run(store.get_cards())
    except FlashstepError as e:
        _fail(e)


def _parse_phase(raw: str | None) -> Phase | None:
    if not raw:
        return None
    try:
        return Phase.from_payload(json.loads(raw))
    except json.JSONDecodeError as e:
        _fail(ContractViolation(f"--phase is not valid JSON: {e}"))
    except FlashstepError as e:
        _fail(e)
    return None


def _split_ids(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


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
    ] = 0,
):
    """Global settings for flashstep."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose:
        logging.getLogger("flashstep").setLevel(logging.DEBUG)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def queue(
    deck: Annotated[Path | None, typer.Argument(help="Path to a YAML deck file.")] = None,
    new_limit: Annotated[
        int | None, typer.Option("--new-limit", help="Daily new-card limit.")
    ] = None,
    review_limit: Annotated[
        int | None, typer.Option("--review-limit", help="Daily review limit.")
    ] = None,
    no_shuffle: Annotated[
        bool, typer.Option("--no-shuffle", help="Keep reviews first, most overdue first.")
    ] = False,
    seed: Annotated[int | None, typer.Option(help="Seed for the shuffle.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Build today's study queue (due reviews plus new cards)."""
    config = _resolve_with_overrides(
        deck_path=deck, daily_new_limit=new_limit, daily_review_limit=review_limit
    )
    _, cards = _load_cards(_deck_path(config))

    try:
        result = build_queue(
            cards,
            config.daily_new_limit,
            config.daily_review_limit,
            _now(),
            shuffle=config.shuffle and not no_shuffle,
            rng=random.Random(seed) if seed is not None else None,
        )
    except FlashstepError as e:
        _fail(e)

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "queue": result.queue,
                    "due_total": result.due_total,
                    "new_total": result.new_total,
                    "selected_due": len(result.selected_due),
                    "selected_new": len(result.selected_new),
                },
                indent=2,
            )
        )
        return

    if result.is_empty:
        typer.secho("Nothing to study today.", fg="green")
        return

    typer.echo(
        f"Due: {len(result.selected_due)}/{result.due_total}  "
        f"New: {len(result.selected_new)}/{result.new_total}"
    )
    for card_id in result.queue:
        typer.echo(f"  {card_id}")


@app.command()
def batch(
    deck: Annotated[Path | None, typer.Argument(help="Path to a YAML deck file.")] = None,
    phase: Annotated[
        str | None, typer.Option("--phase", help="Phase payload (JSON) from a previous batch.")
    ] = None,
    pool: Annotated[
        str | None,
        typer.Option("--pool", help="Comma-separated poolIds printed when the phase opened."),
    ] = None,
    limit: Annotated[int | None, typer.Option("--limit", help="Cards per batch.")] = None,
    seed: Annotated[int | None, typer.Option(help="Seed for the shuffle.")] = None,
):
    """Slice the next batch of a phase. Opens a new phase when none is given."""
    config = _resolve_with_overrides(deck_path=deck, card_limit=limit)
    _, cards = _load_cards(_deck_path(config))

    current = _parse_phase(phase) or open_phase(cards)
    order = _split_ids(pool) if pool else [c.id for c in cards]
    try:
        result = next_batch(
            cards,
            current,
            config.card_limit,
            _now(),
            shuffle=config.shuffle,
            rng=random.Random(seed) if seed is not None else None,
            order=order,
        )
    except FlashstepError as e:
        _fail(e)

    typer.echo(
        json.dumps(
            {
                "batch": result.card_ids,
                "pendingInBatch": result.pending_in_batch,
                "skippedIds": list(result.skipped_ids),
                "staleIds": list(result.stale_ids),
                "poolIds": order,
                "phase": current.to_payload(),
            },
            indent=2,
        )
    )


@app.command()
def resolve(
    phase: Annotated[str, typer.Option("--phase", help="Phase payload (JSON).")],
    batch_ids: Annotated[str, typer.Option("--batch", help="Comma-separated batch card IDs.")],
    correct: Annotated[int, typer.Option("--correct", help="Cards answered correctly.")],
    wrong: Annotated[
        str | None, typer.Option("--wrong", help="Comma-separated wrong card IDs.")
    ] = None,
    pending: Annotated[
        int, typer.Option("--pending", help="pendingInBatch reported by 'batch'.")
    ] = 0,
    skipped: Annotated[
        str | None, typer.Option("--skipped", help="skippedIds reported by 'batch'.")
    ] = None,
    stale: Annotated[
        str | None, typer.Option("--stale", help="staleIds reported by 'batch'.")
    ] = None,
):
    """Fold a batch's answers into its phase and print the next phase payload."""
    current = _parse_phase(phase)
    if current is None:
        _fail(ContractViolation("--phase is required"))

    try:
        resolved = resolve_batch(
            current,
            _split_ids(batch_ids),
            _split_ids(wrong),
            correct,
            pending,
            skipped_ids=_split_ids(skipped),
            stale_ids=_split_ids(stale),
        )
    except FlashstepError as e:
        _fail(e)

    payload = resolved.to_payload()
    payload["finished"] = resolved.is_finished
    typer.echo(json.dumps(payload, indent=2))


@app.command()
def preview(
    card_id: Annotated[str, typer.Argument(help="Card to preview.")],
    deck: Annotated[Path | None, typer.Argument(help="Path to a YAML deck file.")] = None,
):
    """Show when a card would come back for each rating."""
    config = _resolve_with_overrides(deck_path=deck)
    _, cards = _load_cards(_deck_path(config))

    card = next((c for c in cards if c.id == card_id), None)
    if card is None:
        typer.secho(f"Card {card_id} not found.", fg="yellow", err=True)
        raise typer.Exit(1)

    scheduler = Scheduler(config.scheduling_policy())
    intervals = scheduler.preview_intervals(card, _now())
    typer.echo(f"{card.id} ({card.status.value}, step {card.learning_step})")
    for rating, interval in intervals.items():
        typer.echo(f"  {rating.value} {rating.name.title():<5}  {format_interval(interval)}")


@app.command()
def rate(
    card_id: Annotated[str, typer.Argument(help="Card to rate.")],
    rating: Annotated[int, typer.Argument(help="1=Again, 2=Hard, 3=Good, 4=Easy.")],
    deck: Annotated[Path | None, typer.Argument(help="Path to a YAML deck file.")] = None,
):
    """Rate a card and save its new schedule to the deck file."""
    config = _resolve_with_overrides(deck_path=deck)
    store, cards = _load_cards(_deck_path(config))

    card = next((c for c in cards if c.id == card_id), None)
    if card is None:
        typer.secho(f"Card {card_id} not found.", fg="yellow", err=True)
        raise typer.Exit(1)

    scheduler = Scheduler(config.scheduling_policy())
    try:
        update = scheduler.apply_rating(card, Rating.coerce(rating), _now())
        asyncio.run(store.save_update(update))
    except FlashstepError as e:
        _fail(e)

    typer.secho(
        f"{card.id}: step {update.previous_learning_step} -> {update.learning_step} "
        f"({update.status.value}), next review in {format_interval(update.interval)}",
        fg="green",
    )


@app.command()
def stats(
    deck: Annotated[Path | None, typer.Argument(help="Path to a YAML deck file.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show progress counts for a deck."""
    config = _resolve_with_overrides(deck_path=deck)
    _, cards = _load_cards(_deck_path(config))
    summary = summarize(cards, _now())

    if json_output:
        typer.echo(json.dumps(summary.to_dict(), indent=2))
        return

    typer.echo(f"Cards: {summary.total}  Mastered: {summary.mastered} ({summary.progress_percent}%)")
    typer.echo(
        f"New: {summary.new}  Learning: {summary.learning}  "
        f"Young: {summary.young}  Mature: {summary.mature}"
    )
    typer.echo(f"Due today: {summary.due_today}")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


def main():
    app()


if __name__ == "__main__":
    main()
