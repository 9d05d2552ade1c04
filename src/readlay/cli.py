"""Command-line interface for readlay.

Built with Typer for commands and Rich for output. Every command loads the
engine from the state file, runs one operation and saves it back.
"""

import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table

from .books import Book, Difficulty, PageCountingStyle, ReadingPreferences
from .config import get_config
from .errors import NotEnoughLegs, PersistenceFailure
from .journal import JsonJournalStore
from .log import setup_logging
from .odds import GoalSpec, combine_parlay_odds, get_odds_engine
from .reading import SessionStateMachine, format_elapsed
from .wagers import (
    EngagementGoal,
    ParlayStatus,
    PlacementResult,
    ProgressStatus,
    ReadingWager,
    WagerEngine,
    load_state,
    save_state,
)
from .wagers.engine import Wager

# Create the main app
app = typer.Typer(
    name="readlay",
    help="Wager on your reading goals.",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()

STATUS_STYLES = {
    ProgressStatus.ON_TRACK: "green",
    ProgressStatus.AHEAD: "bold green",
    ProgressStatus.BEHIND: "yellow",
    ProgressStatus.OVERDUE: "bold red",
    ProgressStatus.COMPLETED: "cyan",
}


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show info logs"),
) -> None:
    """Wager on your reading goals."""
    config = get_config()
    setup_logging("INFO" if verbose else config.log_level)


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def _session_path() -> Path:
    return get_config().state_path.with_name("session.json")


def _load_engine() -> WagerEngine:
    """Restore the engine from the state file, or start a fresh one."""
    config = get_config()
    store = JsonJournalStore(config.journal_path)
    try:
        state = load_state(config.state_path)
    except PersistenceFailure as e:
        print_error(str(e))
        raise typer.Exit(1)

    if state is None:
        return WagerEngine(journal_store=store)
    return WagerEngine.restore(state, journal_store=store)


def _save_engine(engine: WagerEngine) -> None:
    try:
        save_state(get_config().state_path, engine.snapshot())
    except PersistenceFailure as e:
        print_error(str(e))
        raise typer.Exit(1)


def _make_book(
    engine: Optional[WagerEngine],
    title: str,
    pages: Optional[int],
    author: Optional[str] = None,
    chapters: Optional[int] = None,
    difficulty: Difficulty = Difficulty.MEDIUM,
    main_only: bool = False,
) -> Book:
    """Reuse the book of an active wager with this title, or build a new one."""
    if engine is not None:
        for wager in [*engine.reading_wagers, *engine.engagement_wagers]:
            if wager.book.title.lower() == title.strip().lower():
                return wager.book

    if pages is None:
        print_error(f"No active wager on '{title}'; pass --pages to describe the book.")
        raise typer.Exit(1)

    style = PageCountingStyle.MAIN_ONLY if main_only else PageCountingStyle.INCLUSIVE
    return Book(
        title=title,
        author=author,
        total_pages=pages,
        total_chapters=chapters,
        difficulty=difficulty,
        preferences=ReadingPreferences.default_for(
            pages, chapters, page_counting_style=style
        ),
    )


def _find_wager(engine: WagerEngine, ref: str) -> Wager:
    """Find an active wager by id prefix or book title."""
    ref = ref.strip().lower()
    wagers = [*engine.reading_wagers, *engine.engagement_wagers]

    matches = [w for w in wagers if str(w.id).startswith(ref)]
    if not matches:
        matches = [w for w in wagers if w.book.title.lower() == ref]
    if not matches:
        print_error(f"No active wager matching: {ref}")
        raise typer.Exit(1)
    if len(matches) > 1:
        print_error(f"'{ref}' matches {len(matches)} wagers; use the wager id.")
        raise typer.Exit(1)
    return matches[0]


def _find_reading_wager(engine: WagerEngine, ref: str) -> ReadingWager:
    wager = _find_wager(engine, ref)
    if not isinstance(wager, ReadingWager):
        print_error(f"'{wager.book.title}' is an engagement wager, not a reading wager.")
        raise typer.Exit(1)
    return wager


def _report_placement(result: PlacementResult, engine: WagerEngine) -> None:
    if not result.ok:
        print_error(str(result.error))
        raise typer.Exit(1)

    for wager in result.reading_wagers:
        console.print(
            f"  [cyan]{wager.book.title}[/cyan] {wager.timeframe} at {wager.odds}, "
            f"{wager.pages_per_day} pages/day  [dim]{str(wager.id)[:8]}[/dim]"
        )
    for wager in result.engagement_wagers:
        console.print(
            f"  [cyan]{wager.book.title}[/cyan] {wager.total_target_count} notes at {wager.odds}"
            f"  [dim]{str(wager.id)[:8]}[/dim]"
        )
    if result.parlay:
        console.print(
            f"  Parlay at {result.parlay.combined_odds}, pays "
            f"${result.parlay.total_payout:.2f}"
        )
    print_success(f"Placed {result.placed_count} wager(s). Balance: ${engine.formatted_balance}")


def _parse_leg(spec: str) -> tuple[str, int, str]:
    """Parse a parlay leg written as TITLE:PAGES:TIMEFRAME."""
    parts = [p.strip() for p in spec.rsplit(":", 2)]
    if len(parts) != 3 or not parts[0]:
        raise typer.BadParameter(f"Leg must look like 'Title:300:1 Week', got '{spec}'")
    try:
        pages = int(parts[1])
    except ValueError:
        raise typer.BadParameter(f"Page count must be a number in '{spec}'")
    return parts[0], pages, parts[2]


# ============================================================================
# Odds Commands
# ============================================================================


@app.command()
def odds(
    title: str = typer.Argument(..., help="Book title"),
    pages: int = typer.Option(..., "--pages", "-p", help="Total pages"),
    days: Optional[int] = typer.Option(None, "--days", "-d", help="Timeframe in days"),
    chapters: Optional[int] = typer.Option(None, "--chapters", "-c", help="Total chapters"),
    difficulty: Difficulty = typer.Option(Difficulty.MEDIUM, "--difficulty", help="Book difficulty"),
    main_only: bool = typer.Option(False, "--main-only", help="Skip front and back matter"),
) -> None:
    """Show odds for reading a book.

    Without --days, shows the standard day/week/month menu and journaling odds.
    """
    book = _make_book(None, title, pages, None, chapters, difficulty, main_only)
    calculator = get_odds_engine()

    if days is not None:
        if days <= 0:
            print_error("Days must be positive")
            raise typer.Exit(1)
        console.print(f"{book.title}: {calculator.compute_odds(book, GoalSpec.pages(days))}")
        if book.effective_total_chapters:
            console.print(
                f"  by chapters: {calculator.compute_odds(book, GoalSpec.chapters(days))}"
            )
        return

    table = Table(title=f"Odds: {book.title}", show_header=True, header_style="bold magenta")
    table.add_column("Goal", style="cyan")
    table.add_column("Odds", justify="right", style="green")
    for label, value in calculator.timeframe_odds(book):
        table.add_row(label, value)
    for label, value in calculator.journal_odds(book):
        table.add_row(label, value)
    console.print(table)
    print_info(book.preference_summary)


@app.command("parlay-odds")
def parlay_odds(
    legs: list[str] = typer.Argument(..., help="Odds of each leg, e.g. +150 +120"),
) -> None:
    """Combine leg odds into a parlay price."""
    if len(legs) < 2:
        print_error(str(NotEnoughLegs(len(legs))))
        raise typer.Exit(1)

    combined = combine_parlay_odds(legs)
    if combined is None:
        print_error(f"Could not parse odds: {' '.join(legs)}")
        raise typer.Exit(1)
    console.print(combined)


# ============================================================================
# Placement Commands
# ============================================================================


@app.command()
def bet(
    title: str = typer.Argument(..., help="Book title"),
    timeframe: str = typer.Option("1 Week", "--timeframe", "-t", help="e.g. '1 Day', '2 Weeks'"),
    pages: Optional[int] = typer.Option(None, "--pages", "-p", help="Total pages"),
    amount: Optional[float] = typer.Option(None, "--amount", "-a", help="Stake"),
    author: Optional[str] = typer.Option(None, "--author", help="Book author"),
    chapters: Optional[int] = typer.Option(None, "--chapters", "-c", help="Total chapters"),
    difficulty: Difficulty = typer.Option(Difficulty.MEDIUM, "--difficulty", help="Book difficulty"),
    main_only: bool = typer.Option(False, "--main-only", help="Skip front and back matter"),
) -> None:
    """Wager on finishing a book within a timeframe.

    Examples:
      readlay bet "Dune" --pages 412 --timeframe "2 Weeks" --amount 5
    """
    engine = _load_engine()
    book = _make_book(engine, title, pages, author, chapters, difficulty, main_only)

    selection = engine.add_reading_selection(book, timeframe)
    if selection is None:
        print_error(f"'{book.title}' already has an active reading wager.")
        raise typer.Exit(1)
    if amount is not None:
        engine.update_selection_wager(selection.id, amount)

    _report_placement(engine.place_single(), engine)
    _save_engine(engine)


@app.command()
def engage(
    title: str = typer.Argument(..., help="Book title"),
    pages: Optional[int] = typer.Option(None, "--pages", "-p", help="Total pages"),
    notes: int = typer.Option(5, "--notes", "-n", help="Notes to write"),
    amount: Optional[float] = typer.Option(None, "--amount", "-a", help="Stake"),
    difficulty: Difficulty = typer.Option(Difficulty.MEDIUM, "--difficulty", help="Book difficulty"),
) -> None:
    """Wager on writing journal notes about a book."""
    if notes <= 0:
        print_error("Notes must be positive")
        raise typer.Exit(1)

    engine = _load_engine()
    book = _make_book(engine, title, pages, difficulty=difficulty)
    bucket = "1-3" if notes <= 3 else "4-7" if notes <= 7 else "8+"

    selection = engine.add_engagement_selection(
        book, [EngagementGoal(target_count=notes)], target_bucket=bucket
    )
    if selection is None:
        print_error(f"'{book.title}' already has an active engagement wager.")
        raise typer.Exit(1)
    if amount is not None:
        engine.update_selection_wager(selection.id, amount)

    _report_placement(engine.place_single(), engine)
    _save_engine(engine)


@app.command()
def parlay(
    legs: list[str] = typer.Argument(..., help="Legs as 'Title:PAGES:TIMEFRAME'"),
    amount: float = typer.Option(..., "--amount", "-a", help="Stake for the whole parlay"),
) -> None:
    """Combine reading wagers into one parlay.

    Examples:
      readlay parlay "Dune:412:2 Weeks" "Emma:320:1 Month" --amount 5
    """
    if len(legs) < 2:
        print_error(str(NotEnoughLegs(len(legs))))
        raise typer.Exit(1)

    engine = _load_engine()
    for spec in legs:
        title, pages, timeframe = _parse_leg(spec)
        book = _make_book(engine, title, pages)
        if engine.add_reading_selection(book, timeframe) is None:
            print_error(f"'{book.title}' already has an active reading wager.")
            raise typer.Exit(1)

    _report_placement(engine.place_parlay(amount), engine)
    _save_engine(engine)


# ============================================================================
# Progress Commands
# ============================================================================


@app.command()
def log(
    wager_ref: str = typer.Argument(..., help="Wager id prefix or book title"),
    start_page: int = typer.Option(..., "--from", help="First page read"),
    end_page: int = typer.Option(..., "--to", help="Last page read"),
    minutes: int = typer.Option(0, "--minutes", "-m", help="Minutes spent reading"),
    note: str = typer.Option("", "--note", "-n", help="Session comment"),
) -> None:
    """Log a finished reading session against a wager."""
    engine = _load_engine()
    wager = _find_reading_wager(engine, wager_ref)

    started_at = engine.clock() - timedelta(minutes=max(0, minutes))
    machine = SessionStateMachine(clock=engine.clock)
    machine.begin(wager.id, wager.book, engine.get_last_read_page(wager.id) or 0)
    if not machine.submit_start_page(start_page):
        print_error(machine.validation_error)
        raise typer.Exit(1)
    machine.started_at = started_at

    _finish_session(engine, machine, end_page, note)


@app.command()
def start(
    wager_ref: str = typer.Argument(..., help="Wager id prefix or book title"),
    page: Optional[int] = typer.Option(None, "--page", "-p", help="Starting page"),
) -> None:
    """Start a timed reading session."""
    session_file = _session_path()
    if session_file.exists():
        print_error("A session is already running. Use 'readlay stop' or 'readlay cancel'.")
        raise typer.Exit(1)

    engine = _load_engine()
    wager = _find_reading_wager(engine, wager_ref)

    machine = SessionStateMachine(clock=engine.clock)
    machine.begin(wager.id, wager.book, engine.get_last_read_page(wager.id) or 0)
    accepted = machine.submit_start_page(page if page is not None else machine.proposed_start_page)
    if not accepted:
        print_error(machine.validation_error)
        raise typer.Exit(1)

    session_file.parent.mkdir(parents=True, exist_ok=True)
    with open(session_file, "w") as f:
        json.dump(
            {
                "wager_id": str(wager.id),
                "start_page": machine.start_page,
                "started_at": machine.started_at.isoformat(),
            },
            f,
        )
    console.print(f"[green]Started reading:[/green] {wager.book.title} at page {machine.start_page}")
    print_info("Use 'readlay stop --page N' when done.")


@app.command()
def stop(
    page: Optional[int] = typer.Option(None, "--page", "-p", help="Last page read"),
    note: str = typer.Option("", "--note", "-n", help="Session comment"),
) -> None:
    """Stop the running session and record it."""
    session_file = _session_path()
    if not session_file.exists():
        print_warning("No active session to stop.")
        return

    with open(session_file, "r") as f:
        data = json.load(f)

    engine = _load_engine()
    wager = engine.get_reading_wager(UUID(data["wager_id"]))
    if wager is None:
        session_file.unlink()
        print_warning("The session's wager is no longer active; session discarded.")
        return

    machine = SessionStateMachine.resume(
        wager.id,
        wager.book,
        data["start_page"],
        datetime.fromisoformat(data["started_at"]),
        clock=engine.clock,
    )
    _finish_session(engine, machine, page, note)
    session_file.unlink()


@app.command()
def cancel() -> None:
    """Discard the running session without recording it."""
    session_file = _session_path()
    if not session_file.exists():
        print_warning("No active session to cancel.")
        return
    session_file.unlink()
    print_success("Reading session cancelled.")


def _finish_session(
    engine: WagerEngine,
    machine: SessionStateMachine,
    end_page: Optional[int],
    note: str,
) -> None:
    machine.stop()
    if not machine.submit_end_page(end_page):
        print_error(machine.validation_error)
        raise typer.Exit(1)

    session = machine.commit(note)
    entry = engine.process_completed_session(session)
    if entry is None:
        print_error("Wager is no longer active.")
        raise typer.Exit(1)

    console.print("[green]Reading session logged![/green]")
    console.print(f"  Pages: {entry.starting_page}-{entry.ending_page} ({entry.pages_read} read)")
    console.print(f"  Duration: {format_elapsed(session.duration)}")

    settled = [c for c in engine.completed_wagers if c.wager_id == session.wager_id]
    if settled and settled[-1].was_successful:
        print_success(f"Wager on '{settled[-1].book.title}' complete!")
    _save_engine(engine)


@app.command()
def note(
    wager_ref: str = typer.Argument(..., help="Wager id prefix or book title"),
    text: str = typer.Argument("", help="Note text"),
    count: int = typer.Option(1, "--count", "-c", help="Notes to count"),
) -> None:
    """Count a journal note toward an engagement wager."""
    engine = _load_engine()
    wager = _find_wager(engine, wager_ref)
    if isinstance(wager, ReadingWager):
        print_error(f"'{wager.book.title}' is a reading wager, not an engagement wager.")
        raise typer.Exit(1)

    goal = next((g for g in wager.goals if not g.is_completed), None)
    if goal is None or not engine.update_engagement_progress(wager.id, goal.id, count, text or None):
        print_warning("Nothing to update.")
        return

    console.print(f"  Notes: {goal.current_count}/{goal.target_count}")
    if engine.get_wager(wager.id) is None:
        print_success(f"Engagement wager on '{wager.book.title}' complete!")
    _save_engine(engine)


@app.command()
def advance(
    wager_ref: str = typer.Argument(..., help="Wager id prefix or book title"),
) -> None:
    """Move a wager to its next day once today's pages are read."""
    engine = _load_engine()
    wager = _find_reading_wager(engine, wager_ref)

    if not engine.advance_day(wager.id):
        record = engine.get_progress(wager.id)
        if wager.current_day >= wager.total_days:
            print_warning(f"'{wager.book.title}' is already on its final day.")
        else:
            print_warning(
                f"Read to page {wager.expected_page} first "
                f"(currently at {record.current_page_position})."
            )
        raise typer.Exit(1)

    print_success(f"'{wager.book.title}' is now on day {wager.current_day} of {wager.total_days}.")
    _save_engine(engine)


@app.command()
def forfeit(
    wager_ref: str = typer.Argument(..., help="Wager id prefix or book title"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Give up on a wager. A parlay leg loses the whole parlay."""
    engine = _load_engine()
    wager = _find_wager(engine, wager_ref)

    if not yes and not typer.confirm(f"Forfeit wager on '{wager.book.title}'?", default=False):
        print_info("Cancelled.")
        raise typer.Exit(0)

    if not engine.forfeit_wager(wager.id):
        print_error(f"Could not forfeit wager on '{wager.book.title}'")
        raise typer.Exit(1)
    print_success(f"Wager on '{wager.book.title}' forfeited.")
    _save_engine(engine)


# ============================================================================
# Reporting Commands
# ============================================================================


@app.command()
def status() -> None:
    """Show active wagers and their pace."""
    engine = _load_engine()
    if not engine.reading_wagers and not engine.engagement_wagers:
        print_info("No active wagers. Use 'readlay bet' to place one.")
        return

    if engine.reading_wagers:
        table = Table(title="Reading Wagers", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Book", style="cyan", max_width=35)
        table.add_column("Odds", justify="right")
        table.add_column("Day", justify="center")
        table.add_column("Page", justify="right")
        table.add_column("Target", justify="right")
        table.add_column("Status")

        for wager in engine.reading_wagers:
            record = engine.get_progress(wager.id)
            wager_status = engine.derive_status(wager.id)
            style = STATUS_STYLES.get(wager_status, "white")
            title = wager.book.title + (" [dim](parlay)[/dim]" if wager.is_part_of_parlay else "")
            table.add_row(
                str(wager.id)[:8],
                title,
                wager.odds,
                f"{wager.current_day}/{wager.total_days}",
                str(record.current_page_position if record else "-"),
                str(min(wager.expected_page, wager.book.reading_end_page)),
                f"[{style}]{wager_status.value}[/{style}]" if wager_status else "-",
            )
        console.print(table)

    if engine.engagement_wagers:
        table = Table(title="Engagement Wagers", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Book", style="cyan")
        table.add_column("Odds", justify="right")
        table.add_column("Notes", justify="right")
        for wager in engine.engagement_wagers:
            table.add_row(
                str(wager.id)[:8],
                wager.book.title,
                wager.odds,
                f"{wager.total_current_count}/{wager.total_target_count}",
            )
        console.print(table)

    for group in engine.active_parlays:
        console.print(
            f"Parlay {str(group.id)[:8]}: {group.completed_legs_count}/{group.total_legs} legs, "
            f"{group.combined_odds}, pays ${group.total_payout:.2f}"
        )

    summary = engine.status_summary()
    if summary.has_urgent:
        print_warning(f"{summary.behind} behind, {summary.overdue} overdue")


@app.command()
def settled() -> None:
    """Show settled wagers and parlays."""
    engine = _load_engine()
    if not engine.completed_wagers and not engine.settled_parlays:
        print_info("No settled wagers yet.")
        return

    table = Table(title="Settled Wagers", show_header=True, header_style="bold magenta")
    table.add_column("Date")
    table.add_column("Book", style="cyan", max_width=35)
    table.add_column("Odds", justify="right")
    table.add_column("Stake", justify="right")
    table.add_column("Pages", justify="right")
    table.add_column("Result")
    table.add_column("Payout", justify="right", style="green")

    for completed in reversed(engine.completed_wagers):
        result = "[green]won[/green]" if completed.was_successful else "[red]lost[/red]"
        if completed.parlay_id is not None:
            result += " [dim](leg)[/dim]"
        table.add_row(
            completed.completed_date.strftime("%Y-%m-%d"),
            completed.book.title,
            completed.odds,
            f"${completed.wager:.2f}",
            str(completed.total_pages_read),
            result,
            f"${completed.payout:.2f}",
        )
    console.print(table)

    for group in engine.settled_parlays:
        payout = group.total_payout if group.status == ParlayStatus.WON else 0.0
        console.print(
            f"Parlay {str(group.id)[:8]} {group.status.value} at {group.combined_odds}: "
            f"${payout:.2f}"
        )


@app.command()
def balance(
    reset: bool = typer.Option(False, "--reset", help="Restore the starting balance"),
) -> None:
    """Show the current balance."""
    engine = _load_engine()
    if reset:
        engine.reset_balance()
        _save_engine(engine)
        print_success(f"Balance reset to ${engine.formatted_balance}")
        return
    console.print(f"Balance: [bold green]${engine.formatted_balance}[/bold green]")


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"readlay version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
