"""Rich console front-end for :class:`~study_tutor.quiz.session.QuizSession`.

The loop renders the current question, reads one command per line and
applies it to the session. Rejected transitions print a hint and leave the
session unchanged.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Literal, Optional, Protocol

from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from study_tutor.errors import TutorError

from .evaluator import option_position
from .models import QuizOutcome
from .session import Grader, QuizSession

__all__ = [
    "QuizCommand",
    "Speaker",
    "parse_quiz_command",
    "run_quiz",
]

InputProvider = Callable[[], str]
CommandType = Literal[
    "select",
    "draft",
    "check",
    "next",
    "prev",
    "grade",
    "ai",
    "translation",
    "script",
    "listen",
    "quit",
]

_GRADE = re.compile(r"^g(?:rade)?\s*([a-e])$", re.IGNORECASE)
_DRAFT_PREFIX = ">"

_KEYWORDS: dict[str, CommandType] = {
    "c": "check",
    "check": "check",
    "n": "next",
    "next": "next",
    "p": "prev",
    "prev": "prev",
    "previous": "prev",
    "ai": "ai",
    "t": "translation",
    "translate": "translation",
    "s": "script",
    "script": "script",
    "l": "listen",
    "listen": "listen",
    "q": "quit",
    "quit": "quit",
    "exit": "quit",
}


class Speaker(Protocol):
    def toggle(self, text: str) -> bool: ...

    def stop(self) -> None: ...


@dataclass(frozen=True)
class QuizCommand:
    """Normalized user command parsed from console input."""

    type: CommandType
    value: Optional[str] = None


def parse_quiz_command(
    raw: Optional[str], *, option_count: int = 0, free_text: bool = False
) -> Optional[QuizCommand]:
    """Parse one console line.

    Keywords win over answers. On a free-text question anything else is a
    draft; on an objective question it is an option number or option text.
    A leading ``>`` on a free-text question always starts a draft, so an
    answer such as "n" or "c" can still be typed.
    """

    if raw is None:
        return None
    text = raw.strip()
    if free_text and text.startswith(_DRAFT_PREFIX):
        draft = text[len(_DRAFT_PREFIX):].strip()
        return QuizCommand("draft", draft) if draft else None
    if not text:
        return None
    keyword = _KEYWORDS.get(text.lower())
    if keyword is not None:
        return QuizCommand(keyword)
    grade = _GRADE.match(text)
    if grade:
        return QuizCommand("grade", grade.group(1).upper())
    if free_text:
        return QuizCommand("draft", text)
    if text.isdigit():
        number = int(text)
        if 1 <= number <= option_count:
            return QuizCommand("select", str(number - 1))
        return None
    return QuizCommand("select", text)


def run_quiz(
    session: QuizSession,
    console: Console,
    input_provider: InputProvider,
    *,
    grader: Optional[Grader] = None,
    speaker: Optional[Speaker] = None,
) -> Optional[QuizOutcome]:
    """Drive ``session`` until it completes; ``None`` if the student quits."""

    try:
        while not session.completed:
            _render_question(console, session)
            question = session.current
            try:
                raw = input_provider()
            except (EOFError, KeyboardInterrupt, StopIteration):
                console.print("\n[bold yellow]Quiz interrupted.[/]")
                return None
            command = parse_quiz_command(
                raw,
                option_count=len(question.options),
                free_text=question.question_type.is_free_text,
            )
            if command is None:
                console.print("[red]Unrecognized command. Try again.[/]")
                continue
            if command.type == "quit":
                console.print("[bold yellow]Quiz ended without a score.[/]")
                return None
            index = session.index
            _apply_command(command, session, console, grader, speaker)
            if speaker is not None and session.index != index:
                speaker.stop()
    finally:
        if speaker is not None:
            speaker.stop()
    outcome = session.outcome
    if outcome is not None:
        _render_outcome(console, outcome)
    return outcome


def _apply_command(
    command: QuizCommand,
    session: QuizSession,
    console: Console,
    grader: Optional[Grader],
    speaker: Optional[Speaker],
) -> None:
    question = session.current
    kind = command.type
    if kind == "select":
        option = _resolve_option(question.options, command.value)
        if option is None:
            console.print(
                f"[red]'{escape(command.value or '')}' is not an option "
                "for this question.[/]"
            )
        elif not session.select_option(option):
            console.print("[red]This question has already been checked.[/]")
    elif kind == "draft":
        if session.edit_free_text(command.value or ""):
            console.print("Answer saved. Type [bold]c[/] to check it.")
        else:
            console.print("[red]This question has already been checked.[/]")
    elif kind == "check":
        if not session.check_answer():
            if session.is_checked():
                console.print("[red]Already checked.[/]")
            else:
                console.print("[red]Choose or type an answer first.[/]")
    elif kind == "grade":
        if not session.select_grade(command.value or ""):
            console.print(
                "[red]Grades apply to checked short-answer and open-ended "
                "questions.[/]"
            )
    elif kind == "ai":
        _request_ai(session, console, grader)
    elif kind == "next":
        if not session.advance():
            if not session.is_checked():
                console.print("[red]Check your answer first.[/]")
            else:
                console.print(
                    "[red]Pick a grade (g A ... g E) before moving on.[/]"
                )
    elif kind == "prev":
        if not session.go_back():
            console.print("[red]Already at the first question.[/]")
    elif kind == "translation":
        session.toggle_translation()
    elif kind == "script":
        if not session.toggle_script():
            console.print("[red]This question has no passage.[/]")
    elif kind == "listen":
        _listen(session, console, speaker)


def _resolve_option(options, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if value.isdigit() and int(value) < len(options):
        return options[int(value)]
    for option in options:
        if option == value:
            return option
    return None


def _request_ai(
    session: QuizSession, console: Console, grader: Optional[Grader]
) -> None:
    if grader is None:
        console.print("[red]AI grading is not available.[/]")
        return
    try:
        with console.status("Grading with AI..."):
            evaluation = session.request_ai_evaluation(grader)
    except TutorError as exc:
        console.print(f"[red]{escape(str(exc))}[/]")
        console.print("You can still grade yourself with g A ... g E.")
        return
    if evaluation is None:
        console.print(
            "[red]Check a short-answer or open-ended answer before asking "
            "for AI grading.[/]"
        )


def _listen(
    session: QuizSession, console: Console, speaker: Optional[Speaker]
) -> None:
    passage = session.current.passage
    if not passage:
        console.print("[red]This question has no passage.[/]")
        return
    if speaker is None:
        console.print("[red]Listening is not available.[/]")
        return
    try:
        started = speaker.toggle(passage)
    except TutorError as exc:
        console.print(f"[red]{escape(str(exc))}[/]")
        return
    console.print("Playing the passage." if started else "Audio stopped.")


def _render_question(console: Console, session: QuizSession) -> None:
    question = session.current
    show_translation = session.show_translation
    header = Text.assemble(
        (f"Question {session.index + 1}", "bold cyan"),
        (f" / {session.total}", "dim"),
        (f" · {question.question_type.label}", "dim"),
    )
    console.print()
    console.rule(header)

    if question.passage:
        if session.show_script:
            body = [question.passage]
            if show_translation and question.passage_translation:
                body.append(f"\n---\n{question.passage_translation}")
            console.print(
                Panel(
                    Markdown("".join(body)),
                    title="Passage / script",
                    box=box.SQUARE,
                )
            )
        else:
            console.print(
                Text(
                    "Passage hidden: s shows the script, l plays it.",
                    style="dim",
                )
            )

    console.print(Markdown(question.prompt))
    if show_translation and question.prompt_translation:
        console.print(Text(question.prompt_translation, style="italic dim"))
    if question.image_base64:
        console.print(
            Text("(This question comes with an illustration.)", style="dim")
        )

    checked = session.is_checked()
    answer = session.current_answer()
    if question.question_type.is_objective:
        _render_options(console, session, answer, checked)
    elif not checked and session.current_draft():
        console.print(
            Text.assemble(("Draft: ", "bold"), session.current_draft())
        )

    if checked:
        _render_review(console, session, answer)
    console.print(Text(_hint(session), style="dim"))


def _render_options(
    console: Console,
    session: QuizSession,
    answer: Optional[str],
    checked: bool,
) -> None:
    question = session.current
    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Option")
    for pos, option in enumerate(question.options):
        selected = option == answer
        correct = checked and question.is_correct_option(pos)
        style = "bold green" if selected else ""
        if checked and selected and not correct:
            style = "bold red"
        row = Text("• " if selected else "  ")
        row.append(option, style=style)
        translation = question.option_translation(pos)
        if session.show_translation and translation:
            row.append(f"  ({translation})", style="italic dim")
        if correct:
            row.append("  ✓ correct", style="bold green")
        table.add_row(str(pos + 1), row)
    console.print(table)


def _render_review(
    console: Console, session: QuizSession, answer: Optional[str]
) -> None:
    question = session.current
    lines = [f"**Your answer:** {answer or '(none)'}"]
    if question.question_type.is_objective:
        chosen = option_position(question.options, answer)
        verdict = question.is_correct_option(chosen)
        lines.append("**Correct!**" if verdict else "**Incorrect.**")
    lines.append(f"**Answer:** {question.answer}")
    if session.show_translation and question.answer_translation:
        lines.append(f"*({question.answer_translation})*")
    if question.explanation:
        lines.append(question.explanation)
    if session.show_translation and question.explanation_translation:
        lines.append(f"*{question.explanation_translation}*")
    console.print(
        Panel(
            Markdown("\n\n".join(lines)),
            title="Answer & explanation",
            border_style="blue",
        )
    )
    if question.question_type.is_free_text:
        evaluation = session.current_evaluation()
        if evaluation is not None:
            console.print(
                Panel(
                    Markdown(evaluation.feedback or "(no feedback)"),
                    title=f"AI grade: {evaluation.grade.value}",
                    border_style="magenta",
                )
            )
        grade = session.current_grade()
        console.print(
            Text.assemble(
                ("Your grade: ", "bold"),
                grade.value if grade else "not selected",
            )
        )


def _hint(session: QuizSession) -> str:
    question = session.current
    parts = []
    if not session.is_checked():
        if question.question_type.is_objective:
            parts.append(f"1-{len(question.options)} choose")
        else:
            parts.append(
                "type your answer (prefix > to type a command word)"
            )
        parts.append("c check")
    else:
        if question.question_type.is_free_text:
            parts.extend(["g A..g E grade", "ai AI grading"])
        parts.append("n finish" if session.is_last else "n next")
    if session.index > 0:
        parts.append("p prev")
    parts.append("t translation")
    if question.passage:
        parts.extend(["s script", "l listen"])
    parts.append("q quit")
    return "Commands: " + ", ".join(parts)


def _render_outcome(console: Console, outcome: QuizOutcome) -> None:
    console.print()
    console.rule(Text("Quiz complete", style="bold magenta"))
    table = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Score", f"{outcome.score:.1f}")
    table.add_row("Correct", f"{outcome.correct_count} / {outcome.total}")
    console.print(table)
    results = Table(box=box.SIMPLE, expand=True)
    results.add_column("#", justify="right")
    results.add_column("Your answer", overflow="fold")
    results.add_column("Result", justify="center")
    for idx, (answer, correct) in enumerate(
        zip(outcome.answers, outcome.correctness), start=1
    ):
        results.add_row(
            str(idx), Text(answer or "—"), "✅" if correct else "❌"
        )
    console.print(results)
