"""Interactive CLI application."""
import sys
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from ccp_tutor.badges import BADGES, sort_badges
from ccp_tutor.clock import SystemClock
from ccp_tutor.config import Settings, get_settings
from ccp_tutor.dashboard import (
    calc_readiness_score, get_domain_scores, get_readiness_color, get_readiness_label,
    get_weakest_domain,
)
from ccp_tutor.errors import TutorError
from ccp_tutor.exam import EXAM_CONFIGS, incorrect_questions, is_answer_correct, is_passing
from ccp_tutor.importer import import_file
from ccp_tutor.models import DOMAINS, Question
from ccp_tutor.progress import ProgressEngine
from ccp_tutor.questions import get_domain_counts, get_questions_by_ids, get_random_questions, total_count
from ccp_tutor.seed import is_seeded, seed_all
from ccp_tutor.store import ProgressStore

console = Console()

CONFIDENCE_CHOICES = {"1": "guessed", "2": "unsure", "3": "confident"}


class SessionExitRequested(Exception):
    """Raised when the learner types q/menu inside a session."""


def session_prompt(prompt: str, choices: list[str] | None = None, **kwargs) -> str:
    """Prompt inside a session; q or menu ends the session."""
    if choices:
        kwargs["choices"] = list(choices) + ["q"]
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in ("q", "menu"):
        raise SessionExitRequested()
    return answer


def configure_logging(settings: Settings) -> None:
    logger.remove()
    if settings.log_file:
        Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(settings.log_file, level=settings.log_level, rotation="1 MB", retention=3)
    else:
        logger.add(sys.stderr, level=settings.log_level)


def build_engine(settings: Settings) -> ProgressEngine:
    store = ProgressStore(settings.db_path)
    return ProgressEngine(
        store,
        clock=SystemClock(settings.timezone),
        question_count=lambda: total_count(settings.db_path),
        learner_key=settings.learner_key,
        streak_threshold=settings.streak_threshold,
    )


def show_welcome():
    console.print(Panel(
        "[bold]AWS Certified Cloud Practitioner[/bold]\n[dim]Practice & Review Tutor[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("practice", "Practice questions"),
        ("review", "Due review queue"),
        ("exam", "Exam simulation"),
        ("dashboard", "Readiness, level + domain breakdown"),
        ("badges", "Achievements"),
        ("import", "Add a question bank file"),
        ("reset", "Reset all progress"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def show_new_badges(badge_ids) -> None:
    for badge_id in sort_badges(badge_ids):
        badge = BADGES[badge_id]
        console.print(Panel(
            f"{badge.icon}  [bold]{badge.name}[/bold]\n[dim]{badge.description}[/dim]",
            title="Badge unlocked", border_style="magenta",
        ))


def show_question(question: Question, number: int, total: int) -> None:
    console.print(f"[bold]Q{number}/{total}.[/bold] [dim]({question.domain})[/dim] {question.prompt}\n")
    for option in question.options:
        console.print(f"  [cyan]{option.id})[/cyan] {option.text}")


def ask_question(question: Question, number: int, total: int) -> frozenset[str]:
    """Show a question and return the selected option ids."""
    show_question(question, number, total)
    ids = [o.id for o in question.options]
    if not question.multi_select:
        return frozenset([session_prompt("\nYour answer", choices=ids)])
    pick = len(question.correct_option_ids)
    while True:
        raw = session_prompt(f"\nYour answers (select {pick}, comma-separated)")
        selected = frozenset(s.strip() for s in raw.split(",") if s.strip())
        if selected and selected <= set(ids):
            return selected
        console.print(f"[red]Choose from: {', '.join(ids)}[/red]")


def show_feedback(question: Question, is_correct: bool) -> None:
    if is_correct:
        console.print("[green]Correct![/green]")
    else:
        answer = ", ".join(sorted(question.correct_option_ids))
        console.print(f"[red]Incorrect.[/red] Answer: [green]{answer}[/green]")


def show_exam_review(questions: list[Question], answers: dict, mode: str = "incorrect") -> int:
    """Step through finished exam questions with the learner's selection and the answer.

    ``mode`` is "incorrect" for the missed questions only, or "all".
    Returns how many questions were shown.
    """
    shown = incorrect_questions(questions, answers) if mode == "incorrect" else list(questions)
    if not shown:
        console.print("[green]Nothing to review, every answer was correct.[/green]")
        return 0
    for i, q in enumerate(shown, 1):
        show_question(q, i, len(shown))
        selected = answers.get(q.id) or frozenset()
        console.print(f"\n  Your answer: [bold]{', '.join(sorted(selected)) or '(none)'}[/bold]")
        show_feedback(q, is_answer_correct(q, selected))
        if i < len(shown):
            session_prompt("[dim]Enter for the next question[/dim]", default="", show_default=False)
        console.print()
    return len(shown)


def ask_confidence() -> str:
    choice = session_prompt("How sure were you? (1=guessed, 2=unsure, 3=confident)", choices=list(CONFIDENCE_CHOICES))
    return CONFIDENCE_CHOICES[choice]


def run_question_session(engine: ProgressEngine, questions: list[Question], review: bool = False) -> tuple[int, int]:
    """Ask each question, record the answer, and reschedule it by confidence."""
    if not questions:
        console.print("[yellow]No questions available![/yellow]")
        return 0, 0
    correct = 0
    answered = 0
    for i, q in enumerate(questions, 1):
        selected = ask_question(q, i, len(questions))
        is_correct = is_answer_correct(q, selected)
        _, new_badges = engine.record_answer(q.id, is_correct, q.domain, is_review_bonus=review)
        answered += 1
        correct += int(is_correct)
        show_feedback(q, is_correct)
        show_new_badges(new_badges)
        item = engine.schedule_review(q.id, is_correct, ask_confidence())
        console.print(f"[dim]Next review in {item.interval} day(s).[/dim]\n")
    console.print(f"[bold]Score: {correct}/{answered} ({correct/answered*100:.0f}%)[/bold]\n")
    return correct, answered


def cmd_practice(engine: ProgressEngine, db_path: str):
    console.print("\n[bold]Practice[/bold]")
    mode = Prompt.ask("Mode", choices=["all", "domain", "unseen", "incorrect"], default="all")
    count = IntPrompt.ask("Number of questions", default=10)
    progress = engine.load()
    domain = None
    if mode == "domain":
        for i, name in enumerate(DOMAINS, 1):
            console.print(f"  [cyan]{i}[/cyan]) {name}")
        domain = DOMAINS[IntPrompt.ask("Select domain", choices=[str(i) for i in range(1, len(DOMAINS) + 1)]) - 1]
    questions = get_random_questions(
        db_path, count=count, domain=domain,
        unseen_from=progress.seen_question_ids if mode == "unseen" else None,
        incorrect_from=progress.incorrect_question_ids if mode == "incorrect" else None,
    )
    run_question_session(engine, questions)


def cmd_review(engine: ProgressEngine, db_path: str):
    console.print("\n[bold]Review Queue[/bold]\n")
    due = engine.due_items()
    if not due:
        console.print("[green]Nothing due for review. Come back later![/green]")
        return
    console.print(f"{len(due)} question(s) due. Each answered review earns bonus XP.\n")
    questions = get_questions_by_ids(db_path, [item.question_id for item in due])
    run_question_session(engine, questions, review=True)


def cmd_exam(engine: ProgressEngine, db_path: str):
    exam_type = Prompt.ask("Exam type", choices=list(EXAM_CONFIGS), default="mini")
    config = EXAM_CONFIGS[exam_type]
    questions = get_random_questions(db_path, count=config.question_count)
    if not questions:
        console.print("[yellow]No questions available![/yellow]")
        return
    console.print(Panel(
        f"{len(questions)} questions • {config.time_minutes} minutes\nNo feedback until you finish.",
        title=f"{exam_type.title()} Exam",
    ))
    started_at = engine.clock.now()
    answers = {}
    try:
        for i, q in enumerate(questions, 1):
            answers[q.id] = ask_question(q, i, len(questions))
            console.print()
    except SessionExitRequested:
        if not Confirm.ask("Submit the exam with the answers so far?", default=False):
            raise
    attempt, result, new_badges = engine.complete_exam(exam_type, questions, answers, started_at)
    color = "green" if is_passing(result.percentage) else "red"
    verdict = "PASS" if is_passing(result.percentage) else "FAIL"
    console.print(f"\n  Score: [bold]{result.correct}/{result.total}[/bold] "
                  f"([{color}]{result.percentage}% {verdict}[/{color}])\n")
    table = Table(title="Domain Breakdown")
    table.add_column("Domain", style="cyan")
    table.add_column("Correct", justify="right")
    for name, dr in result.domain_breakdown.items():
        if dr.total:
            table.add_row(name, f"{dr.correct}/{dr.total}")
    console.print(table)
    show_new_badges(new_badges)

    mode = Prompt.ask("Review answers", choices=["incorrect", "all", "skip"], default="incorrect")
    if mode != "skip":
        show_exam_review(questions, answers, mode)


def cmd_dashboard(engine: ProgressEngine, db_path: str):
    progress = engine.load()
    stats = engine.get_stats()
    attempts = engine.exam_history()
    score = calc_readiness_score(progress, total_count(db_path), attempts)
    label = get_readiness_label(score)
    color = get_readiness_color(score)

    header = (f"Level {stats['level']}  •  {stats['xp_in_current_level']}/{stats['xp_for_next_level']} XP"
              f"  •  🔥 {stats['streak']} day streak")
    console.print(Panel(f"[bold]{header}[/bold]", title="CCP Readiness Dashboard", border_style="blue"))

    bar_filled = int(score / 5)
    bar_empty = 20 - bar_filled
    bar = f"[{color}]{'█' * bar_filled}{'░' * bar_empty}[/{color}]"
    console.print(f"\n  Overall Readiness: [bold]{score}%[/bold] {bar} [{color}]{label}[/{color}]\n")

    domain_scores = get_domain_scores(progress)
    bank_counts = get_domain_counts(db_path)
    table = Table(title="Domain Breakdown")
    table.add_column("Domain", style="cyan")
    table.add_column("Bank", justify="right")
    table.add_column("Answered", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Status")
    for ds in domain_scores:
        sc_color = get_readiness_color(ds["score"])
        table.add_row(
            ds["name"], str(bank_counts.get(ds["name"], 0)), str(ds["answered"]),
            f"{ds['score']}%", f"[{sc_color}]{ds['label']}[/{sc_color}]",
        )
    console.print(table)

    console.print(f"\n  Answered: [bold]{stats['questions_answered']}[/bold]  |  "
                  f"Accuracy: [bold]{stats['accuracy']}%[/bold]  |  "
                  f"Due reviews: [bold]{len(engine.due_items())}[/bold]  |  "
                  f"Exams: [bold]{len(attempts)}[/bold]")

    weakest = get_weakest_domain(progress)
    if weakest:
        console.print(f"\n  [yellow]Recommendation: Focus on {weakest['name']}[/yellow]")


def cmd_badges(engine: ProgressEngine):
    earned = engine.load().earned_badges
    table = Table(title=f"Badges ({len(earned)}/{len(BADGES)})")
    table.add_column("")
    table.add_column("Badge")
    table.add_column("How")
    for badge in BADGES.values():
        if badge.id in earned:
            table.add_row(badge.icon, f"[bold]{badge.name}[/bold]", badge.description)
        else:
            table.add_row("🔒", f"[dim]{badge.name}[/dim]", f"[dim]{badge.description}[/dim]")
    console.print(table)


def cmd_import(db_path: str):
    file_path = Prompt.ask("Question file path (.json/.yaml)")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    result = import_file(db_path, file_path)
    console.print(f"[green]Imported {result['count']} questions from {result['filename']} "
                  f"({', '.join(result['domains'])})[/green]")


def cmd_reset(engine: ProgressEngine):
    if Confirm.ask("[red]Erase all progress, streaks and badges?[/red]", default=False):
        engine.reset_progress()
        console.print("[green]Progress reset.[/green]")


def main():
    settings = get_settings()
    configure_logging(settings)
    engine = build_engine(settings)
    db_path = settings.db_path
    first_run = not is_seeded(db_path)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
    seed_all(db_path)
    if first_run:
        console.print("[green]Ready![/green]\n")

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="practice").strip().lower()
        try:
            if choice == "practice":
                cmd_practice(engine, db_path)
            elif choice == "review":
                cmd_review(engine, db_path)
            elif choice == "exam":
                cmd_exam(engine, db_path)
            elif choice == "dashboard":
                cmd_dashboard(engine, db_path)
            elif choice == "badges":
                cmd_badges(engine)
            elif choice == "import":
                cmd_import(db_path)
            elif choice == "reset":
                cmd_reset(engine)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Good luck on your exam![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except SessionExitRequested:
            console.print("[dim]Back to menu.[/dim]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except TutorError as e:
            logger.warning(f"Command {choice} failed: {e}")
            console.print(f"[red]Error: {e}[/red]")
        except Exception as e:
            logger.exception(f"Unexpected error in {choice}")
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
