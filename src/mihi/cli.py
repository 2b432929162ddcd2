"""Command line interface for mihi.

Commands:
    mihi init                     - Create the database tables
    mihi session                  - Build and print the next practice session
    mihi record WORD EXERCISE     - Record an answer for an item
    mihi poke WORD EXERCISE       - Force an item into the next session
    mihi status WORD EXERCISE     - Show the practice state of an item
    mihi words|tags|exercises ... - Manage the corpus
"""
from contextlib import contextmanager
from typing import Iterator, List, Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table
from sqlalchemy.orm import Session

from mihi.config import ensure_directories, settings
from mihi.errors import MihiError
from mihi.logging_config import setup_logging
from mihi.models import base
from mihi.models.models import Exercise, Word
from mihi.models.practice_models import SessionFilters
from mihi.monitoring import start_monitoring
from mihi.services.exercise_service import ExerciseService
from mihi.services.practice_service import PracticeService
from mihi.services.tag_service import TagService
from mihi.services.word_service import WordService

console = Console()

app = typer.Typer(
    name="mihi",
    help="Self-assessment tool for language learning.",
    no_args_is_help=True,
)
words_app = typer.Typer(help="Manage the words to practice.", no_args_is_help=True)
tags_app = typer.Typer(help="Manage tags.", no_args_is_help=True)
exercises_app = typer.Typer(help="Manage exercises.", no_args_is_help=True)
app.add_typer(words_app, name="words")
app.add_typer(tags_app, name="tags")
app.add_typer(exercises_app, name="exercises")


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL."),
) -> None:
    """Configure logging and metrics before any command runs."""
    setup_logging(log_level)
    if settings.metrics.enabled:
        start_monitoring(settings.metrics.port)


@contextmanager
def open_db() -> Iterator[Session]:
    """Open a database session and report mihi errors as a clean exit."""
    db = base.SessionLocal()
    try:
        yield db
    except MihiError as e:
        rprint(f"[red]error:[/red] {e}")
        raise typer.Exit(code=1) from e
    finally:
        db.close()


@app.command("init")
def init() -> None:
    """Create the database for this application."""
    ensure_directories()
    base.init_db()
    rprint(f"[green]Database ready at[/green] {settings.database.url}")


@app.command("session")
def session(
    size: Optional[int] = typer.Option(None, "--size", "-n", min=0, help="Number of items."),
    tag: List[str] = typer.Option([], "--tag", "-t", help="Only words with any of these tags."),
    kind: List[str] = typer.Option([], "--kind", "-k", help="Only exercises of these kinds."),
    category: List[str] = typer.Option([], "--category", "-c", help="Only words of these categories."),
    flag: List[str] = typer.Option([], "--flag", "-f", help="Only words with any of these flags set."),
) -> None:
    """Build the next practice session and print it in presentation order."""
    with open_db() as db:
        filters = SessionFilters.build(
            tags=tag, exercise_kinds=kind, categories=category, flags=flag
        )
        service = PracticeService(db)
        items = service.build_session(size, filters)
        if not items:
            rprint("[yellow]Nothing to practice.[/yellow]")
            return

        table = Table(title="Practice session")
        table.add_column("#", justify="right")
        table.add_column("Word")
        table.add_column("Exercise")
        table.add_column("Kind")
        for position, item in enumerate(items, start=1):
            word = db.get(Word, item.word_id)
            exercise = db.get(Exercise, item.exercise_id)
            table.add_row(str(position), word.enunciated, exercise.title, exercise.kind.value)
        console.print(table)


@app.command("record")
def record(
    word: str = typer.Argument(..., help="Enunciate of the word."),
    exercise: str = typer.Argument(..., help="Title of the exercise."),
    ok: bool = typer.Option(..., "--ok/--fail", help="Whether the answer was right."),
) -> None:
    """Record the outcome of an answered item."""
    with open_db() as db:
        service = PracticeService(db)
        item = service.find_item(word, exercise)
        service.submit(item, ok)
        status = service.item_status(item)
        mark = "[green]✓[/green]" if ok else "[red]✗[/red]"
        rprint(f"{mark} {word} / {exercise} (streak: {status.trailing_successes})")


@app.command("poke")
def poke(
    word: str = typer.Argument(..., help="Enunciate of the word."),
    exercise: str = typer.Argument(..., help="Title of the exercise."),
) -> None:
    """Force an item into the next practice session."""
    with open_db() as db:
        service = PracticeService(db)
        service.poke(service.find_item(word, exercise))
        rprint(f"Poked {word} / {exercise}")


@app.command("status")
def status(
    word: str = typer.Argument(..., help="Enunciate of the word."),
    exercise: str = typer.Argument(..., help="Title of the exercise."),
) -> None:
    """Show the practice state of an item."""
    with open_db() as db:
        service = PracticeService(db)
        info = service.item_status(service.find_item(word, exercise))
        last = info.last_attempt.strftime("%Y-%m-%d %H:%M") if info.last_attempt else "never"
        rprint(f"[bold]{word} / {exercise}[/bold]")
        rprint(f"  attempts:  {info.attempts} (last: {last})")
        rprint(f"  streak:    {info.trailing_successes}")
        rprint(f"  mastered:  {'yes' if info.mastered else 'no'}")
        rprint(f"  poked:     {'yes' if info.poked else 'no'}")
        rprint(f"  score:     {info.score:.3f}")


@words_app.command("add")
def words_add(
    enunciated: str = typer.Argument(...),
    translation: str = typer.Option("", "--translation"),
    category: str = typer.Option("unknown", "--category", "-c"),
    weight: int = typer.Option(5, "--weight", min=0, max=10),
    tag: List[str] = typer.Option([], "--tag", "-t"),
    flag: List[str] = typer.Option([], "--flag", "-f"),
) -> None:
    """Add a word."""
    with open_db() as db:
        try:
            word = WordService(db).create_word(
                enunciated, translation, category, weight, tag, flag
            )
        except ValueError as e:
            rprint(f"[red]error:[/red] {e}")
            raise typer.Exit(code=1) from e
        rprint(f"Created word {word.id}: {word.enunciated}")


@words_app.command("ls")
def words_ls(
    filter: Optional[str] = typer.Argument(None),
    tag: List[str] = typer.Option([], "--tag", "-t"),
) -> None:
    """List words, optionally filtered."""
    with open_db() as db:
        for word in WordService(db).search_words(filter, tag):
            print(word.enunciated)


@tags_app.command("add")
def tags_add(name: str = typer.Argument(...)) -> None:
    """Add a tag."""
    with open_db() as db:
        try:
            tag = TagService(db).create_tag(name)
        except ValueError as e:
            rprint(f"[red]error:[/red] {e}")
            raise typer.Exit(code=1) from e
        rprint(f"Created tag {tag.name}")


@tags_app.command("ls")
def tags_ls(filter: Optional[str] = typer.Argument(None)) -> None:
    """List tags."""
    with open_db() as db:
        for name in TagService(db).list_tag_names(filter):
            print(name)


@exercises_app.command("add")
def exercises_add(
    title: str = typer.Argument(...),
    kind: str = typer.Option("pensum", "--kind", "-k"),
    enunciate: str = typer.Option("", "--enunciate"),
    solution: str = typer.Option("", "--solution"),
    word: List[str] = typer.Option([], "--word", "-w", help="Word the exercise applies to."),
) -> None:
    """Add an exercise applying to the given words."""
    with open_db() as db:
        words = WordService(db)
        ids = []
        for text in word:
            found = words.get_word_by_text(text)
            if not found:
                rprint(f"[red]error:[/red] word '{text}' not found")
                raise typer.Exit(code=1)
            ids.append(found.id)
        try:
            exercise = ExerciseService(db).create_exercise(
                title, kind, enunciate=enunciate, solution=solution, word_ids=ids
            )
        except ValueError as e:
            rprint(f"[red]error:[/red] {e}")
            raise typer.Exit(code=1) from e
        rprint(f"Created exercise {exercise.id}: {exercise.title}")


@exercises_app.command("ls")
def exercises_ls(filter: Optional[str] = typer.Argument(None)) -> None:
    """List exercise titles."""
    with open_db() as db:
        for title in ExerciseService(db).list_titles(filter):
            print(title)


def run() -> None:
    """Entry point for the `mihi` script."""
    app()
