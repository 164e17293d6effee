"""CLI commands for the mastery log.

Commands:
- init-db: Create the database schema
- log: Log a practice attempt
- update-attempt / delete-attempt: Edit or remove an attempt
- show: Problem detail with attempt history
- batches: Per-batch statistics for a problem
- update-problem / delete-problem: Edit or remove a problem
- serve: Run the Web API
"""

import os
from pathlib import Path
from typing import TypeVar

import typer
from rich.console import Console
from rich.table import Table

from mastery.config.app_config import DB_PATH_ENV, clear_config_cache
from mastery.core.attempt_log import (
    delete_attempt as do_delete_attempt,
    delete_problem as do_delete_problem,
    log_attempt,
    update_attempt as do_update_attempt,
    update_problem as do_update_problem,
)
from mastery.core.errors import MasteryError
from mastery.core.models import AttemptInput
from mastery.db.database import Store, open_store
from mastery.db.queries import (
    get_attempt,
    get_problem_batch_stats,
    get_problem_detail,
    get_problem_id_by_generated_id,
)

app = typer.Typer(
    name="mastery",
    help="Log practice attempts and track mastery over time.",
    no_args_is_help=True,
)

console = Console()

DB_OPTION_HELP = "Database file (default from config)"

PROBLEM_REF_HELP = "Problem id or display id (e.g. ALGE_001)"

T = TypeVar("T")


def _open_store_or_exit(db: Path | None) -> Store:
    """Open the store, or exit with a readable error."""
    try:
        return open_store(db)
    except MasteryError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)


def _fail(error: MasteryError) -> None:
    console.print(f"[red]✗ {error}[/red]")
    raise typer.Exit(code=1)


def _keep(new: T | None, stored: T | None) -> T | None:
    """Prefer an explicitly passed option over the stored value."""
    return stored if new is None else new


def _resolve_problem_ref(store: Store, ref: str) -> int:
    """Accept either a row id ("3") or a display id ("ALGE_001")."""
    if ref.isdigit():
        return int(ref)
    return get_problem_id_by_generated_id(store, ref.upper())


def _truncate(text: str | None, max_len: int = 40) -> str:
    """Truncate text with ellipsis if too long."""
    if not text:
        return ""
    if len(text) <= max_len:
        return text
    return text[:max_len - 3] + "..."


@app.command(name="init-db")
def init_db(
    db: Path | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Create the database and schema if missing."""
    store = _open_store_or_exit(db)
    console.print(f"[green]✓ Database ready:[/green] {store.db_path}")
    store.close()


@app.command()
def log(
    subject: str = typer.Argument(..., help="Subject name"),
    material: str = typer.Argument(..., help="Material (English name)"),
    title: str = typer.Argument(..., help="Problem title"),
    material_ru: str | None = typer.Option(None, "--material-ru", help="Material secondary name"),
    description: str | None = typer.Option(None, "--description", "-d", help="Problem description"),
    image: str | None = typer.Option(None, "--image", help="Problem image filename"),
    successful: bool = typer.Option(True, "--success/--fail", help="Attempt outcome"),
    minutes: float | None = typer.Option(None, "--minutes", "-m", help="Time spent (minutes)"),
    difficulty: int | None = typer.Option(None, "--difficulty", help="Difficulty rating 1-5"),
    errors: str | None = typer.Option(None, "--errors", help="Errors made"),
    resolution: str | None = typer.Option(None, "--resolution", help="How it was resolved"),
    commentary: str | None = typer.Option(None, "--commentary", "-c", help="Free-text notes"),
    tag: str | None = typer.Option(None, "--tag", "-t", help="Status tag"),
    resource: list[str] | None = typer.Option(None, "--resource", "-r", help="Resource used (repeatable)"),
    fresh_start: bool = typer.Option(False, "--fresh-start", "-f", help="Start a new batch"),
    db: Path | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Log a practice attempt."""
    attempt = AttemptInput(
        successful=successful,
        time_spent_minutes=minutes,
        difficulty_rating=difficulty,
        errors=errors,
        resolution=resolution,
        commentary=commentary,
        status_tag=tag,
        resources=list(resource or []),
    )

    store = _open_store_or_exit(db)
    try:
        result = log_attempt(
            store,
            subject_name=subject,
            material_name_en=material,
            material_name_ru=material_ru,
            problem_title=title,
            problem_description=description,
            problem_image_filename=image,
            attempt=attempt,
            is_fresh_start=fresh_start,
        )
    except MasteryError as e:
        _fail(e)
    finally:
        store.close()

    outcome = "[green]success[/green]" if successful else "[red]fail[/red]"
    console.print(
        f"[green]✓ Logged attempt #{result.attempt_number}[/green] "
        f"for {result.generated_id} ({outcome})"
    )
    console.print(f"  [dim]problem_id:[/dim] {result.problem_id}")
    console.print(f"  [dim]attempt_id:[/dim] {result.attempt_id}")
    console.print(f"  [dim]batch:[/dim]      {result.batch_number}")
    if result.batch_closed:
        console.print("  [yellow]Previous batch closed[/yellow]")
    if result.is_solved:
        console.print("  [bold green]Problem solved (streak reached)[/bold green]")


@app.command(name="update-attempt")
def update_attempt(
    attempt_id: int = typer.Argument(..., help="Attempt id"),
    successful: bool | None = typer.Option(None, "--success/--fail", help="Attempt outcome"),
    minutes: float | None = typer.Option(None, "--minutes", "-m", help="Time spent (minutes)"),
    difficulty: int | None = typer.Option(None, "--difficulty", help="Difficulty rating 1-5"),
    errors: str | None = typer.Option(None, "--errors", help="Errors made"),
    resolution: str | None = typer.Option(None, "--resolution", help="How it was resolved"),
    commentary: str | None = typer.Option(None, "--commentary", "-c", help="Free-text notes"),
    tag: str | None = typer.Option(None, "--tag", "-t", help="Status tag"),
    resource: list[str] | None = typer.Option(None, "--resource", "-r", help="Resource used (repeatable)"),
    db: Path | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Edit an existing attempt. Omitted options keep their stored values."""
    store = _open_store_or_exit(db)
    try:
        current = get_attempt(store, attempt_id)
        attempt = AttemptInput(
            successful=current.successful if successful is None else successful,
            time_spent_minutes=_keep(minutes, current.time_spent_minutes),
            difficulty_rating=_keep(difficulty, current.difficulty_rating),
            errors=_keep(errors, current.errors),
            resolution=_keep(resolution, current.resolution),
            commentary=_keep(commentary, current.commentary),
            status_tag=_keep(tag, current.status_tag),
            resources=list(resource) if resource else list(current.resources),
        )
        is_solved = do_update_attempt(store, attempt_id, attempt)
    except MasteryError as e:
        _fail(e)
    finally:
        store.close()

    console.print(f"[green]✓ Updated attempt {attempt_id}[/green]")
    console.print(f"  [dim]solved:[/dim] {'yes' if is_solved else 'no'}")


@app.command(name="delete-attempt")
def delete_attempt(
    attempt_id: int = typer.Argument(..., help="Attempt id"),
    db: Path | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Delete an attempt."""
    store = _open_store_or_exit(db)
    try:
        do_delete_attempt(store, attempt_id)
    except MasteryError as e:
        _fail(e)
    finally:
        store.close()

    console.print(f"[green]✓ Deleted attempt {attempt_id}[/green]")


@app.command()
def show(
    problem: str = typer.Argument(..., help=PROBLEM_REF_HELP),
    db: Path | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Show a problem and its attempt history."""
    store = _open_store_or_exit(db)
    try:
        detail = get_problem_detail(store, _resolve_problem_ref(store, problem))
    except MasteryError as e:
        _fail(e)
    finally:
        store.close()

    status = "[green]solved[/green]" if detail.is_solved else "[yellow]unsolved[/yellow]"
    console.print(f"[bold]{detail.generated_id}[/bold] {detail.title} ({status})")
    console.print(f"  [dim]subject:[/dim]  {detail.subject_name or '-'}")
    console.print(f"  [dim]material:[/dim] {detail.material_name}")
    if detail.description:
        console.print(f"  [dim]description:[/dim] {detail.description}")

    if not detail.attempts:
        console.print("\n[dim]No attempts yet.[/dim]")
        return

    table = Table(title="Attempts")
    table.add_column("#", justify="right")
    table.add_column("Batch", justify="right")
    table.add_column("Result")
    table.add_column("Min", justify="right")
    table.add_column("Diff", justify="right")
    table.add_column("Tag")
    table.add_column("When")
    table.add_column("Notes")

    for a in detail.attempts:
        table.add_row(
            str(a.attempt_number),
            str(a.batch_number),
            "✓" if a.successful else "✗",
            f"{a.time_spent_minutes:g}" if a.time_spent_minutes is not None else "",
            str(a.difficulty_rating or ""),
            a.status_tag or "",
            a.timestamp,
            _truncate(a.commentary or a.errors),
        )

    console.print(table)


@app.command()
def batches(
    problem: str = typer.Argument(..., help=PROBLEM_REF_HELP),
    db: Path | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Show per-batch statistics for a problem."""
    store = _open_store_or_exit(db)
    try:
        stats = get_problem_batch_stats(store, _resolve_problem_ref(store, problem))
    except MasteryError as e:
        _fail(e)
    finally:
        store.close()

    table = Table(title=f"Batches: {stats[0].problem_title}")
    table.add_column("Batch", justify="right")
    table.add_column("Started")
    table.add_column("Ended")
    table.add_column("Fresh")
    table.add_column("Attempts", justify="right")
    table.add_column("Success %", justify="right")
    table.add_column("Minutes", justify="right")

    for s in stats:
        table.add_row(
            str(s.batch_number),
            s.started_at,
            s.ended_at or "[green]open[/green]",
            "yes" if s.is_fresh_start else "",
            f"{s.successful_attempts}/{s.total_attempts}",
            f"{s.success_rate:.0f}",
            f"{s.total_time_minutes:g}",
        )

    console.print(table)


@app.command(name="update-problem")
def update_problem(
    problem_id: int = typer.Argument(..., help="Problem id"),
    title: str = typer.Option(..., "--title", help="New title"),
    description: str | None = typer.Option(None, "--description", "-d", help="New description"),
    db: Path | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Update a problem's title and description."""
    store = _open_store_or_exit(db)
    try:
        do_update_problem(store, problem_id, title, description)
    except MasteryError as e:
        _fail(e)
    finally:
        store.close()

    console.print(f"[green]✓ Updated problem {problem_id}[/green]")


@app.command(name="delete-problem")
def delete_problem(
    problem_id: int = typer.Argument(..., help="Problem id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    db: Path | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Delete a problem with all its batches and attempts."""
    if not yes and not typer.confirm(f"Delete problem {problem_id} and its history?"):
        console.print("[dim]Cancelled[/dim]")
        raise typer.Exit(code=0)

    store = _open_store_or_exit(db)
    try:
        do_delete_problem(store, problem_id)
    except MasteryError as e:
        _fail(e)
    finally:
        store.close()

    console.print(f"[green]✓ Deleted problem {problem_id}[/green]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
    db: Path | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Run the Web API with uvicorn."""
    import uvicorn

    if db is not None:
        os.environ[DB_PATH_ENV] = str(db)
        clear_config_cache()

    console.print(f"[green]Serving on http://{host}:{port}[/green]")
    uvicorn.run("mastery.web.api:create_app", factory=True, host=host, port=port)
