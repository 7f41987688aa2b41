"""CLI commands for the exam-preparation platform.

Commands:
- init-db: Create the database schema
- seed: Create the default universities and disciplines
- create-admin: Register an administrator account
- import-questions: Bulk-import questions into an exam from a JSON file
- import-syllabus: Import syllabus topics and course requirements (YAML or JSON)
- insights: Print the academic AI report of a user
- serve: Run the Web API with uvicorn
"""

import json
from pathlib import Path
from typing import NoReturn

import typer
import yaml
from rich.console import Console
from rich.table import Table

from examprep.core import academic_ai, accounts, content, exams, syllabus, tracking, users
from examprep.core.errors import ExamPrepError
from examprep.db.database import init_db as do_init_db
from examprep.db.exams_repository import NewQuestion

app = typer.Typer(
    name="examprep",
    help="Exam-preparation platform: challenges, study mode, rankings and analytics.",
    no_args_is_help=True,
)

console = Console()


def _fail(message: str) -> NoReturn:
    console.print(f"[red]✗ {message}[/red]")
    raise typer.Exit(code=1)


def _load_questions(file: Path) -> list[NewQuestion]:
    """Questions from a JSON list, or an object with a "questions" list."""
    data = json.loads(file.read_text(encoding="utf-8"))
    items = data.get("questions", []) if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise ValueError("Expected a list of questions")

    questions = []
    for item in items:
        questions.append(
            NewQuestion(
                statement=item.get("statement", ""),
                options=item.get("options", []),
                correct_option=item.get("correct_option", -1),
                explanation=item.get("explanation"),
                difficulty=item.get("difficulty"),
                order_index=item.get("order_index"),
                discipline_id=item.get("discipline_id"),
            )
        )
    return questions


@app.command(name="init-db")
def init_db(
    db_path: Path | None = typer.Option(None, "--db", help="Database file (defaults to config)"),
) -> None:
    """Create the database schema."""
    path = do_init_db(db_path)
    console.print(f"[green]✓ Database ready[/green] [dim]{path}[/dim]")


@app.command()
def seed() -> None:
    """Create the default universities and disciplines (only on an empty catalogue)."""
    do_init_db()
    if content.initialize_default_content():
        universities = content.list_universities()
        disciplines = content.list_disciplines()
        console.print(
            f"[green]✓ Seeded {len(universities)} universities "
            f"and {len(disciplines)} disciplines[/green]"
        )
    else:
        console.print("[yellow]⚠ Catalogue not empty, nothing seeded[/yellow]")


@app.command(name="create-admin")
def create_admin(
    email: str = typer.Argument(..., help="Login email"),
    display_name: str = typer.Option("Admin", "--name", "-n", help="Display name"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True
    ),
) -> None:
    """Register an administrator account."""
    do_init_db()
    try:
        user = accounts.register(email, password, display_name, role="admin")
    except ExamPrepError as e:
        _fail(str(e))
    console.print("[green]✓ Admin created[/green]")
    console.print(f"  [dim]uid:[/dim]   {user.uid}")
    console.print(f"  [dim]email:[/dim] {user.email}")


@app.command(name="import-questions")
def import_questions(
    exam_id: str = typer.Argument(..., help="Exam to import into"),
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with questions"),
) -> None:
    """Bulk-import questions; nothing is written if any question is invalid."""
    do_init_db()
    try:
        questions = _load_questions(file)
    except (json.JSONDecodeError, ValueError, AttributeError) as e:
        _fail(f"Invalid questions file: {e}")

    try:
        records = exams.bulk_import_questions(exam_id, questions)
    except ExamPrepError as e:
        _fail(str(e))
    console.print(f"[green]✓ Imported {len(records)} questions into {exam_id}[/green]")


@app.command(name="import-syllabus")
def import_syllabus(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML or JSON syllabus file"),
) -> None:
    """Import syllabus topics and course requirements; nothing is written if any entry is invalid."""
    do_init_db()
    try:
        text = file.read_text(encoding="utf-8")
        document = json.loads(text) if file.suffix == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        _fail(f"Invalid syllabus file: {e}")
    if not isinstance(document, dict):
        _fail("Invalid syllabus file: expected \"topics\" and/or \"courses\" lists")

    try:
        topics, courses = syllabus.import_syllabus(document)
    except ExamPrepError as e:
        _fail(str(e))
    console.print(f"[green]✓ Imported {topics} topics and {courses} courses[/green]")


@app.command()
def insights(
    uid: str = typer.Argument(..., help="User id"),
) -> None:
    """Print prediction, plateau check, study patterns and recommendations."""
    do_init_db()
    try:
        user = users.get_user(uid)
    except ExamPrepError as e:
        _fail(str(e))

    console.print(f"[bold]{user.display_name}[/bold] [dim]level {user.level}, {user.xp} XP[/dim]")

    profile = tracking.get_profile(uid)
    if profile is not None:
        console.print(
            f"  [dim]accuracy:[/dim] {profile.overall_accuracy:.0f}%  "
            f"[dim]streak:[/dim] {profile.current_streak} days"
        )

    prediction = academic_ai.predict_future_performance(uid)
    console.print(
        f"\n[blue]Prediction[/blue] {prediction.predicted_score}% "
        f"(confidence {prediction.confidence}%, {prediction.trajectory}, "
        f"data {prediction.data_quality})"
    )
    if prediction.bottleneck:
        console.print(f"  [dim]bottleneck:[/dim] {prediction.bottleneck}")

    plateau = academic_ai.detect_learning_plateau(uid)
    if plateau.is_in_plateau:
        console.print(
            f"\n[yellow]⚠ Plateau ({plateau.plateau_severity}) for {plateau.plateau_duration} days[/yellow]"
        )
        console.print(f"  {plateau.suggested_action}")

    patterns = academic_ai.analyze_study_patterns(uid)
    console.print(
        f"\n[blue]Patterns[/blue] best time: {patterns.best_time_of_day}, "
        f"best day: {patterns.best_day_of_week}, "
        f"avg session: {patterns.avg_session_length} min"
    )
    for insight in patterns.insights:
        console.print(f"  - {insight}")

    recommendations = academic_ai.generate_smart_recommendations(uid)
    if not recommendations:
        console.print("\n[dim]No recommendations yet[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Priority", justify="center", width=8)
    table.add_column("Type", style="cyan", width=10)
    table.add_column("Recommendation", width=50)
    table.add_column("Impact", justify="center", width=8)
    for rec in recommendations:
        table.add_row(str(rec.priority), rec.type, rec.title, f"+{rec.estimated_impact}")
    console.print()
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
) -> None:
    """Run the Web API."""
    import uvicorn

    console.print(f"[blue]Serving on http://{host}:{port}[/blue]")
    uvicorn.run("examprep.web.api:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
