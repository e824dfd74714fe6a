"""
Offline quiz client.

Imports Daypo XML exports into the local database and runs quizzes in the
terminal, using the same sampling and grading as the API.
"""
import json
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from quizbank.core.database import SessionLocal, init_db
from quizbank.core.errors import QuizBankError
from quizbank.core.logging_config import setup_logging
from quizbank.models.quiz_db import quiz_crud
from quizbank.services import quiz_session
from quizbank.services.daypo_import import parse_daypo_xml
from quizbank.services.quiz_session import QuizSession, SessionState

app = typer.Typer(
    name="quizbank",
    help="Import Daypo quizzes and take them offline.",
    no_args_is_help=True,
)
console = Console()


def _fail(exc: Exception):
    console.print(f"[red]Error:[/red] {exc}")
    raise typer.Exit(code=1)


@app.callback()
def _setup(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs")):
    setup_logging("DEBUG" if verbose else "WARNING")
    init_db()


@app.command("import")
def import_xml(path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Daypo XML export")):
    """Import a Daypo XML export as a new quiz."""
    db = SessionLocal()
    try:
        parsed = parse_daypo_xml(path.read_text(encoding="utf-8-sig"))
        quiz = quiz_crud.import_parsed_quiz(db, parsed)
        console.print(f"[green]Imported[/green] #{quiz.id} {quiz.title} ({len(parsed.items)} questions)")
    except QuizBankError as e:
        _fail(e)
    finally:
        db.close()


@app.command("list")
def list_quizzes():
    """List stored quizzes by title."""
    db = SessionLocal()
    try:
        quizzes = quiz_crud.list_quizzes(db, limit=10_000)
        quizzes.sort(key=lambda q: (q.title or "").casefold())
        table = Table(title="Quizzes")
        table.add_column("ID", justify="right")
        table.add_column("Title")
        table.add_column("Questions", justify="right")
        for q in quizzes:
            table.add_row(str(q.id), q.title, str(len(q.questions)))
        console.print(table)
    finally:
        db.close()


def _render_question(q, position: int):
    tag = q.orig_no or position
    console.print(f"\n[bold]{tag}. {q.prompt}[/bold]")
    if q.image:
        console.print("[dim](image attached)[/dim]")
    for n, opt in enumerate(q.options, start=1):
        console.print(f"  {n}) {opt.text}")


def _ask_answers(session: QuizSession) -> QuizSession:
    for position, q in enumerate(session.shown, start=1):
        _render_question(q, position)
        choices = [str(n) for n in range(1, len(q.options) + 1)]
        raw = Prompt.ask("Answer (blank to skip)", choices=choices + [""], default="", show_choices=False)
        selected = q.options[int(raw) - 1].i if raw else None
        session = quiz_session.answer(session, q.id, selected)
    return session


def _show_result(session: QuizSession):
    result = session.result
    style = "green" if result.score_percent >= 50 else "red"
    console.print(Panel(result.summary(), style=style))
    for q in session.shown:
        if not result.verdicts.get(q.id):
            right = ", ".join(o.text for o in q.options if o.i in q.correct) or "-"
            console.print(f"[red]x[/red] {q.orig_no or ''} {q.prompt}\n    [dim]correct: {right}[/dim]")


@app.command("take")
def take(
    quiz_id: int = typer.Argument(..., help="Quiz id from `quizbank list`"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Only N questions"),
    randomize: bool = typer.Option(False, "--random", "-r", help="Stable shuffle before taking N"),
):
    """Take a quiz, then retry the questions you got wrong."""
    db = SessionLocal()
    try:
        session = QuizSession(limit=limit, randomize=randomize)
        session = quiz_session.open_quiz(session, quiz_id, lambda qid: quiz_crud.load_quiz_full(db, qid))
        console.print(Panel(f"{session.title} - {len(session.shown)} questions", style="cyan"))

        while session.state in (SessionState.loaded, SessionState.retry_filtered):
            session = _ask_answers(session)
            session = quiz_session.grade(session)
            _show_result(session)
            if not session.can_retry or not Confirm.ask("Retry the wrong ones?", default=False):
                break
            session = quiz_session.retry(session)
    except QuizBankError as e:
        _fail(e)
    finally:
        db.close()


@app.command("delete")
def delete(quiz_id: int, yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation")):
    """Delete a quiz with all its questions and images."""
    db = SessionLocal()
    try:
        quiz = quiz_crud.get_quiz(db, quiz_id)
        if not yes and not Confirm.ask(f"Delete '{quiz.title}'?", default=False):
            raise typer.Abort()
        quiz_crud.delete_quiz(db, quiz_id)
        console.print(f"Deleted #{quiz_id}")
    except QuizBankError as e:
        _fail(e)
    finally:
        db.close()


@app.command("export")
def export(out: Path = typer.Argument(Path("daypo_backup.json"), help="Backup file to write")):
    """Write a JSON backup of every quiz."""
    db = SessionLocal()
    try:
        backup = quiz_crud.export_backup(db)
        out.write_text(json.dumps(backup, ensure_ascii=False, indent=2), encoding="utf-8")
        console.print(f"Exported {len(backup['quizzes'])} quizzes to {out}")
    finally:
        db.close()


@app.command("restore")
def restore(path: Path = typer.Argument(..., exists=True, dir_okay=False)):
    """Load quizzes from a JSON backup as new quizzes."""
    db = SessionLocal()
    try:
        snapshot = json.loads(path.read_text(encoding="utf-8"))
        quiz_ids = quiz_crud.restore_backup(db, snapshot)
        console.print(f"Restored {len(quiz_ids)} quizzes")
    except json.JSONDecodeError as e:
        _fail(f"{path} is not valid JSON: {e}")
    except QuizBankError as e:
        _fail(e)
    finally:
        db.close()


@app.command("serve")
def serve(host: str = "127.0.0.1", port: int = 4000, reload: bool = False):
    """Run the HTTP API."""
    import uvicorn

    logger.info("Starting API on {}:{}", host, port)
    uvicorn.run("main:app", host=host, port=port, reload=reload)


def main():
    app()


if __name__ == "__main__":
    main()
