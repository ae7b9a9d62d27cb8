"""Rich renderers for the dashboard, history and quiz review."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from rich import box
from rich.columns import Columns
from rich.console import Console, Group
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from study_tutor.quiz.models import Question, QuizResult

from .stats import Overview, ScoreBucket

__all__ = [
    "render_overview",
    "render_buckets",
    "render_recent_scores",
    "render_history",
    "render_quiz_review",
    "render_diagnosis",
    "format_date",
]

BAR_WIDTH = 30


def format_date(stamp: str, *, with_time: bool = False) -> str:
    try:
        moment = datetime.fromisoformat(stamp)
    except ValueError:
        return stamp
    if with_time:
        return moment.strftime("%Y-%m-%d %H:%M")
    return moment.strftime("%Y-%m-%d")


def _card(title: str, value: str, unit: str = "") -> Panel:
    body = Text.assemble((value, "tutor.title"), (f" {unit}" if unit else ""))
    return Panel(body, title=title, box=box.ROUNDED, padding=(0, 2))


def render_overview(console: Console, overview: Overview) -> None:
    console.print(
        Columns(
            [
                _card("Quizzes taken", str(overview.total_quizzes)),
                _card("Questions solved", str(overview.total_questions)),
                _card("Average score", f"{overview.average_score:.1f}", "pts"),
            ]
        )
    )


def _bar(score: float) -> Text:
    filled = max(0, min(BAR_WIDTH, round(score / 100 * BAR_WIDTH)))
    return Text.assemble(
        ("█" * filled, "tutor.bar"),
        ("░" * (BAR_WIDTH - filled), "tutor.muted"),
    )


def render_buckets(
    console: Console, title: str, buckets: Sequence[ScoreBucket]
) -> None:
    table = Table(title=Text(title), box=box.SIMPLE, expand=False)
    table.add_column("Name")
    table.add_column("Quizzes", justify="right")
    table.add_column("Average", justify="right")
    table.add_column("")
    for bucket in buckets:
        table.add_row(
            Text(bucket.name),
            str(bucket.count),
            str(bucket.score),
            _bar(bucket.score),
        )
    console.print(table)


def render_recent_scores(
    console: Console, results: Sequence[QuizResult]
) -> None:
    table = Table(title="Recent scores", box=box.SIMPLE, expand=False)
    table.add_column("Date")
    table.add_column("Standard")
    table.add_column("Score", justify="right")
    table.add_column("")
    for result in results:
        table.add_row(
            format_date(result.date),
            Text(result.standard_id),
            f"{result.score:.1f}",
            _bar(result.score),
        )
    console.print(table)


def render_history(console: Console, history: Sequence[QuizResult]) -> None:
    """Print every result, newest first."""

    if not history:
        console.print(Text("No quiz history yet.", style="tutor.muted"))
        return
    table = Table(title="Study history", box=box.SIMPLE, expand=True)
    table.add_column("ID", no_wrap=True)
    table.add_column("Date")
    table.add_column("Subject")
    table.add_column("Standard", overflow="fold")
    table.add_column("Score", justify="right")
    table.add_column("Correct", justify="right")
    table.add_column("Review", justify="center")
    for result in reversed(history):
        table.add_row(
            result.id[:8],
            format_date(result.date, with_time=True),
            Text(result.subject),
            Text(
                f"{result.standard_id} {result.standard_description}".strip()
            ),
            f"{result.score:.1f}",
            f"{result.correct_answers}/{result.total_questions}",
            "yes" if result.reviewable else "-",
        )
    console.print(table)


def _translation(text: Optional[str], show: bool) -> Optional[Text]:
    if show and text:
        return Text(text, style="tutor.translation")
    return None


def _question_block(
    index: int,
    question: Question,
    user_answer: Optional[str],
    correct: bool,
    show_translation: bool,
) -> Panel:
    parts: list = [Markdown(question.prompt)]
    prompt_translation = _translation(
        question.prompt_translation, show_translation
    )
    if prompt_translation is not None:
        parts.append(prompt_translation)
    if question.passage:
        passage: list = [Markdown(question.passage)]
        passage_translation = _translation(
            question.passage_translation, show_translation
        )
        if passage_translation is not None:
            passage.append(passage_translation)
        parts.append(
            Panel(Group(*passage), title="Passage / script", box=box.SQUARE)
        )
    for pos, option in enumerate(question.options):
        marker = "  "
        style = ""
        is_key = question.is_correct_option(pos)
        if option == user_answer:
            marker = "▶ "
            style = "tutor.selected" if is_key else "tutor.wrong"
        line = Text(f"{marker}{pos + 1}. {option}", style=style)
        option_translation = question.option_translation(pos)
        if show_translation and option_translation:
            line.append(f"  ({option_translation})", style="tutor.translation")
        if is_key:
            line.append("  ✓ correct", style="tutor.correct")
        parts.append(line)
    parts.append(
        Text.assemble(
            ("Your answer: ", "bold"),
            (
                user_answer or "(no answer)",
                "tutor.correct" if correct else "tutor.wrong",
            ),
        )
    )
    answer_line = Text.assemble(("Answer: ", "bold"), question.answer)
    if show_translation and question.answer_translation:
        answer_line.append(
            f"  ({question.answer_translation})", style="tutor.translation"
        )
    parts.append(answer_line)
    if question.explanation:
        parts.append(Markdown(question.explanation))
    explanation_translation = _translation(
        question.explanation_translation, show_translation
    )
    if explanation_translation is not None:
        parts.append(explanation_translation)
    verdict = "Correct" if correct else "Incorrect"
    return Panel(
        Group(*parts),
        title=f"Question {index + 1} · {question.question_type.label}",
        subtitle=verdict,
        border_style="green" if correct else "red",
    )


def render_quiz_review(
    console: Console, result: QuizResult, *, show_translation: bool = False
) -> bool:
    """Print each saved question with the recorded answer.

    Returns ``False`` for legacy results saved without their questions.
    """

    console.rule(
        Text(
            f"{result.subject} {result.standard_id} · "
            f"{format_date(result.date, with_time=True)}",
            style="tutor.title",
        )
    )
    if not result.reviewable:
        console.print(
            Text(
                "This result was saved without its questions, so it cannot "
                "be reviewed.",
                style="tutor.muted",
            )
        )
        return False
    for index, question in enumerate(result.questions):
        answer = (
            result.user_answers[index]
            if index < len(result.user_answers)
            else None
        )
        correct = (
            result.correctness[index]
            if index < len(result.correctness)
            else False
        )
        console.print(
            _question_block(index, question, answer, correct, show_translation)
        )
    console.print(
        Text(
            f"Score {result.score:.1f} · {result.correct_answers}/"
            f"{result.total_questions} correct",
            style="tutor.title",
        )
    )
    return True


def render_diagnosis(console: Console, report: str) -> None:
    console.print(
        Panel(Markdown(report), title="Learning diagnosis", box=box.ROUNDED)
    )
