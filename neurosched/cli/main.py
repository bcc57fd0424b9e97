"""
neurosched: command line front end for the scheduling engine.

Commands:
- neurosched add         - Register a new card
- neurosched import-sm2  - Register a card carrying legacy SM-2 state
- neurosched review      - Submit a rating for a card
- neurosched preview     - Show the interval each rating would give
- neurosched due         - List cards due now
- neurosched session     - Compose a load-aware review session
- neurosched stats       - Show the progress report
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from neurosched.analytics.progress_analyzer import ProgressAnalyzer, ProgressTrend
from neurosched.config import get_settings
from neurosched.core.clock import SystemClock
from neurosched.core.errors import SchedulingError
from neurosched.core.models import Card, ItemDomain
from neurosched.delivery.review_service import ReviewService
from neurosched.delivery.state_store import SqliteCardStore
from neurosched.study.legacy import SM2Snapshot, card_from_sm2

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="neurosched",
    help="neurosched: FSRS scheduling with cognitive-load adaptation",
    no_args_is_help=True,
)
console = Console()

DbOption = typer.Option(None, "--db", help="SQLite database path (defaults to settings)")

STATE_STYLES = {
    "new": "green",
    "learning": "yellow",
    "review": "cyan",
    "relearning": "red",
}

TREND_STYLES = {
    ProgressTrend.IMPROVING: "[green]improving[/green]",
    ProgressTrend.STABLE: "[cyan]stable[/cyan]",
    ProgressTrend.DECLINING: "[red]declining[/red]",
}


def _open_store(db_path: Optional[Path]) -> SqliteCardStore:
    return SqliteCardStore(db_path or get_settings().database_path)


def _service(store: SqliteCardStore) -> ReviewService:
    return ReviewService.from_settings(store=store, clock=SystemClock())


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(code=1)


def _styled_state(card: Card) -> str:
    color = STATE_STYLES[card.state.value]
    return f"[{color}]{card.state.value}[/{color}]"


def _card_table(cards: list[Card], title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID")
    table.add_column("Domain")
    table.add_column("State")
    table.add_column("Due", style="dim")
    table.add_column("S", justify="right")
    table.add_column("D", justify="right")
    for card in cards:
        table.add_row(
            card.id,
            card.domain.value,
            _styled_state(card),
            card.due.strftime("%Y-%m-%d %H:%M"),
            f"{card.stability:.2f}",
            f"{card.difficulty:.2f}",
        )
    return table


# =============================================================================
# Commands
# =============================================================================

@app.command()
def add(
    card_id: str = typer.Argument(..., help="Card identifier"),
    domain: ItemDomain = typer.Option(ItemDomain.FLASHCARD, "--domain", "-d", help="Kind of material"),
    topic: Optional[str] = typer.Option(None, "--topic", "-t", help="Topic used for progress grouping"),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Register a new card, due immediately."""
    with _open_store(db_path) as store:
        if store.get(card_id) is not None:
            _fail(f"Card {card_id} already exists")
        card = Card.new(card_id, SystemClock().now(), domain=domain, topic=topic)
        store.put(card)
    console.print(f"[green]✓[/green] Added {domain.display_name.lower()} card [bold]{card_id}[/bold]")


@app.command("import-sm2")
def import_sm2(
    card_id: str = typer.Argument(..., help="Card identifier"),
    ease: float = typer.Option(2.5, "--ease", help="SM-2 easiness factor"),
    interval: int = typer.Option(1, "--interval", help="SM-2 interval in days"),
    repetitions: int = typer.Option(0, "--repetitions", help="SM-2 consecutive correct answers"),
    domain: ItemDomain = typer.Option(ItemDomain.FLASHCARD, "--domain", "-d"),
    topic: Optional[str] = typer.Option(None, "--topic", "-t"),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Register a card migrated from SM-2 state."""
    snapshot = SM2Snapshot(item_id=card_id, easiness_factor=ease, interval_days=interval, repetitions=repetitions)
    card = card_from_sm2(snapshot, SystemClock().now(), domain=domain, topic=topic)
    with _open_store(db_path) as store:
        if store.get(card_id) is not None:
            _fail(f"Card {card_id} already exists")
        store.put(card)
    console.print(
        f"[green]✓[/green] Imported [bold]{card_id}[/bold] as {card.state.value} "
        f"(S={card.stability:.2f}, D={card.difficulty:.2f})"
    )


@app.command()
def review(
    card_id: str = typer.Argument(..., help="Card identifier"),
    rating: str = typer.Argument(..., help="Flashcard: 1-4 or again/hard/good/easy; logic: 1-5"),
    load: Optional[float] = typer.Option(None, "--load", "-l", help="Cognitive load 0-1"),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Submit a review and show the next due date."""
    with _open_store(db_path) as store:
        try:
            outcome = _service(store).submit_review(card_id, rating, cognitive_load=load)
        except SchedulingError as exc:
            _fail(str(exc))

    card = outcome.card
    lines = [
        f"Rating: [bold]{outcome.rating.label}[/bold]",
        f"State: {_styled_state(card)}",
        f"Next review: {card.due.strftime('%Y-%m-%d %H:%M')} UTC "
        f"([bold]{outcome.adjusted_interval_days}[/bold] days)",
        f"Stability: {card.stability:.2f}  Difficulty: {card.difficulty:.2f}",
    ]
    if outcome.adjusted_interval_days != outcome.raw_interval_days:
        lines.append(
            f"[dim]Load {outcome.cognitive_load:.2f} adjusted interval from "
            f"{outcome.raw_interval_days} days[/dim]"
        )
    if outcome.degraded:
        lines.append(f"[yellow]Degraded scheduling: {outcome.degraded_reason}[/yellow]")

    console.print(Panel("\n".join(lines), title=f"Reviewed {card_id}", border_style="cyan"))


@app.command()
def preview(
    card_id: str = typer.Argument(..., help="Card identifier"),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Show the interval each rating would produce, without saving."""
    with _open_store(db_path) as store:
        card = store.get(card_id)
        if card is None:
            _fail(f"Card {card_id} not found")
        service = _service(store)
        try:
            outcomes = service.engine.preview(card, service.clock.now())
        except SchedulingError as exc:
            _fail(str(exc))

    table = Table(title=f"Preview for {card_id}")
    table.add_column("Rating")
    table.add_column("State")
    table.add_column("Interval", justify="right")
    table.add_column("Stability", justify="right")
    for rating, outcome in outcomes.items():
        table.add_row(
            rating.label,
            _styled_state(outcome.card),
            f"{outcome.card.scheduled_days}d",
            f"{outcome.card.stability:.2f}",
        )
    console.print(table)


@app.command()
def due(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum cards to list"),
    db_path: Optional[Path] = DbOption,
) -> None:
    """List cards due for review."""
    with _open_store(db_path) as store:
        cards = _service(store).due_cards(limit=limit)

    if not cards:
        console.print("[green]Nothing due.[/green]")
        return
    console.print(_card_table(cards, f"{len(cards)} due"))


@app.command()
def session(
    minutes: float = typer.Option(30.0, "--minutes", "-m", help="Available study time"),
    load: Optional[float] = typer.Option(None, "--load", "-l", help="Cognitive load 0-1"),
    db_path: Optional[Path] = DbOption,
) -> None:
    """Compose a review session from the due queue."""
    with _open_store(db_path) as store:
        plan = _service(store).request_session(cognitive_load=load, available_minutes=minutes)

    console.print(f"[bold cyan]{plan.reasoning}[/bold cyan]")
    if plan.items:
        console.print(_card_table(plan.items, f"Session (~{plan.estimated_minutes:.0f} min)"))


@app.command()
def stats(db_path: Optional[Path] = DbOption) -> None:
    """Show mastery, at-risk cards and trend."""
    with _open_store(db_path) as store:
        report = ProgressAnalyzer(SystemClock()).analyze(store.all_cards(), store.review_logs())

    table = Table(title="Progress")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Cards", str(report.total_cards))
    table.add_row("Reviews", str(report.review_count))
    table.add_row("Overall mastery", f"{report.mastery_percentage:.0f}%")
    table.add_row("Retention", f"{report.average_retention:.0%}")
    table.add_row("Trend", TREND_STYLES[report.trend])
    for band, count in report.distribution.items():
        table.add_row(f"[{band.color}]{band.display_name}[/{band.color}]", str(count))
    console.print(table)

    if report.at_risk:
        console.print(f"\n[bold yellow]At risk ({len(report.at_risk)}):[/bold yellow]")
        for item in report.at_risk:
            console.print(f"  {item.card.id}: {item.reason}")

    for recommendation in report.recommendations:
        console.print(f"[dim]•[/dim] {recommendation}")


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """CLI entry point."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level,
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()
