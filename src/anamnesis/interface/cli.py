"""anamnesis CLI: apply scheduling operations to a card stored as JSON."""

import json
import logging
import sys
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from anamnesis.application.config import load_deck_options, resolve_config
from anamnesis.application.factory import build_scheduler
from anamnesis.application.scheduler import Scheduler
from anamnesis.domain.scheduling.models import Choice
from anamnesis.interface.schemas import CardModel

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="anamnesis: SM-2 spaced-repetition scheduling for single cards.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage anamnesis configuration.")
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


class ChoiceName(str, Enum):
    again = "again"
    hard = "hard"
    ok = "ok"
    easy = "easy"

    def to_choice(self) -> Choice:
        return Choice[self.name.upper()]


CardPath = Annotated[
    Path, typer.Argument(help="Card JSON file, or '-' to read from stdin.")
]

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
    seed: Annotated[
        int | None, typer.Option(help="Seed the random source for reproducible fuzz.")
    ] = None,
    deck_config: Annotated[
        Path | None,
        typer.Option("--deck-config", help="TOML or JSON file with deck options."),
    ] = None,
):
    """Global settings for anamnesis."""
    ctx.ensure_object(dict)
    ctx.obj["seed"] = seed
    ctx.obj["deck_config"] = deck_config
    ctx.obj["log_level"] = logging.DEBUG if verbose else None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def humanize_error(e: Exception) -> str:
    """Turn validation and scheduling errors into a single readable line."""
    if isinstance(e, ValidationError):
        parts = []
        for err in e.errors():
            loc = ".".join(str(p) for p in err["loc"]) or "input"
            parts.append(f"{loc}: {err['msg']}")
        return "; ".join(parts)
    return str(e)


def _load_scheduler(ctx: typer.Context, card_path: Path) -> Scheduler:
    obj = ctx.obj or {}
    if str(card_path) == "-":
        raw = sys.stdin.read()
    else:
        raw = card_path.read_text(encoding="utf-8")
    card = CardModel.model_validate_json(raw).to_domain()

    config = resolve_config({"seed": obj.get("seed")})
    logging.getLogger().setLevel(obj.get("log_level") or config.log_level)

    deck_path = obj.get("deck_config")
    deck = load_deck_options(deck_path).to_domain() if deck_path else None
    return build_scheduler(card, config, deck=deck)


def _run(ctx: typer.Context, card_path: Path, action: Callable[[Scheduler], None]) -> None:
    """Load the card, apply `action`, and print the updated card as JSON."""
    try:
        scheduler = _load_scheduler(ctx, card_path)
        action(scheduler)
        logger.debug(f"Card now {scheduler.card}")
    except (ValueError, OSError) as e:
        typer.secho(f"Error: {humanize_error(e)}", fg="red", err=True)
        raise typer.Exit(1)

    typer.echo(CardModel.from_domain(scheduler.card).model_dump_json(indent=2))


# ---------------------------------------------------------------------------
# Card commands
# ---------------------------------------------------------------------------


@app.command()
def answer(
    ctx: typer.Context,
    card: CardPath,
    choice: Annotated[
        ChoiceName, typer.Option("--choice", "-c", help="Button pressed by the learner.")
    ],
):
    """[bold green]Answer[/bold green] a card and print its next state."""
    _run(ctx, card, lambda s: s.answer(choice.to_choice()))


@app.command()
def bury(ctx: typer.Context, card: CardPath):
    """Bury a card until it is unburied."""
    _run(ctx, card, lambda s: s.bury())


@app.command()
def unbury(ctx: typer.Context, card: CardPath):
    """Return a buried card to the new queue."""
    _run(ctx, card, lambda s: s.unbury())


@app.command()
def suspend(ctx: typer.Context, card: CardPath):
    """Suspend a card."""
    _run(ctx, card, lambda s: s.suspend())


@app.command()
def unsuspend(ctx: typer.Context, card: CardPath):
    """Restore a suspended card to the queue its type implies."""
    _run(ctx, card, lambda s: s.unsuspend())


@app.command()
def reset(
    ctx: typer.Context,
    card: CardPath,
    position: Annotated[int, typer.Option(help="Position in the new queue.")] = 0,
):
    """Forget a card's progress and make it new again."""
    _run(ctx, card, lambda s: s.schedule_as_new(position))


@app.command()
def reschedule(
    ctx: typer.Context,
    card: CardPath,
    min_days: Annotated[int, typer.Option("--min-days", help="Earliest due day.")],
    max_days: Annotated[int, typer.Option("--max-days", help="Latest due day.")],
):
    """Make a card a review card due in a random number of days."""
    _run(ctx, card, lambda s: s.schedule_as_review(min_days, max_days))


@app.command()
def preview(
    ctx: typer.Context,
    card: CardPath,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show when the card would be due after each answer (the card is not changed)."""
    try:
        scheduler = _load_scheduler(ctx, card)
    except (ValueError, OSError) as e:
        typer.secho(f"Error: {humanize_error(e)}", fg="red", err=True)
        raise typer.Exit(1)

    rows = [
        {
            "choice": choice.name.lower(),
            "seconds": scheduler.next_interval(choice),
            "label": scheduler.next_interval_string(choice),
        }
        for choice in Choice
    ]

    if json_output:
        typer.echo(json.dumps(rows, indent=2))
        return

    table = Table(title="Next intervals")
    table.add_column("Choice")
    table.add_column("Seconds", justify="right")
    table.add_column("Due in", justify="right")
    for row in rows:
        table.add_row(row["choice"], str(row["seconds"]), row["label"])
    Console().print(table)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    try:
        config = resolve_config()
    except ValidationError as e:
        typer.secho(f"Error: {humanize_error(e)}", fg="red", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))
