"""``tutor quiz``: generate a quiz for one standard and take it."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from rich.console import Console
from rich.text import Text

from study_tutor.config import DIFFICULTIES
from study_tutor.context import TutorContext
from study_tutor.core.runtime import (
    CLI_ERRORS,
    InputProvider,
    add_common_arguments,
    console_for,
    open_catalog,
    open_context,
    print_error,
    require_standard,
)
from study_tutor.curriculum.catalog import StandardEntry
from study_tutor.generation.service import QuestionRequest, TutorService
from study_tutor.study.audio import AudioPlayer, toggle_speech

from .console import run_quiz
from .history import HistoryStore
from .models import QuestionType, QuizOutcome, QuizResult
from .session import QuizSession

__all__ = ["PassageSpeaker", "start_quiz", "requests_from_args", "main"]

_COUNT_FLAGS = (
    ("multiple_choice", QuestionType.MULTIPLE_CHOICE),
    ("short_answer", QuestionType.SHORT_ANSWER),
    ("true_false", QuestionType.TRUE_FALSE),
    ("open_ended", QuestionType.OPEN_ENDED),
)


class PassageSpeaker:
    """Reads listening passages aloud with a fixed voice."""

    def __init__(
        self, service: TutorService, player: AudioPlayer, voice: str
    ) -> None:
        self._service = service
        self._player = player
        self._voice = voice

    def toggle(self, text: str) -> bool:
        return toggle_speech(
            self._player,
            lambda: self._service.synthesize_speech(text, self._voice),
        )

    def stop(self) -> None:
        self._player.stop()


def _count(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not a number")
    if number < 0:
        raise argparse.ArgumentTypeError("counts cannot be negative")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tutor quiz",
        description="Generate a quiz for an achievement standard.",
    )
    add_common_arguments(parser)
    parser.add_argument("standard", help="Standard id, e.g. '[9수01-01]'.")
    for dest, question_type in _COUNT_FLAGS:
        parser.add_argument(
            f"--{dest.replace('_', '-')}",
            dest=dest,
            type=_count,
            metavar="N",
            help=f"Number of {question_type.label.lower()} questions.",
        )
    parser.add_argument(
        "--difficulty",
        choices=DIFFICULTIES,
        help="Question difficulty (defaults to the configured one).",
    )
    return parser


def requests_from_args(
    args: argparse.Namespace, context: TutorContext
) -> list[QuestionRequest]:
    """Combine command-line counts with the configured defaults."""

    defaults = context.config.quiz
    requests = []
    for dest, question_type in _COUNT_FLAGS:
        value = getattr(args, dest, None)
        count = getattr(defaults, dest) if value is None else value
        requests.append(QuestionRequest(question_type, count))
    return requests


def start_quiz(
    context: TutorContext,
    entry: StandardEntry,
    console: Console,
    input_provider: InputProvider,
    *,
    requests: Sequence[QuestionRequest],
    difficulty: str,
    service: Optional[TutorService] = None,
    player: Optional[AudioPlayer] = None,
) -> Optional[QuizOutcome]:
    """Generate questions for ``entry``, run the quiz and save the result.

    Returns ``None`` when the student leaves before finishing; nothing is
    saved in that case.
    """

    if not any(request.count > 0 for request in requests):
        raise ValueError("Ask for at least one question.")
    service = service or TutorService(context)
    with console.status("Generating questions..."):
        questions = service.generate_questions(
            entry.subject, entry.label, requests, difficulty
        )
    history = HistoryStore(context.store)

    def save(outcome: QuizOutcome) -> None:
        result = QuizResult.from_outcome(
            outcome,
            subject=entry.subject,
            standard_id=entry.id,
            standard_description=entry.description,
            questions=questions,
        )
        history.append(result)

    session = QuizSession(questions, on_complete=save)
    speaker = PassageSpeaker(
        service,
        player or AudioPlayer(context.layout.audio_dir),
        context.config.speech.passage_voice,
    )
    outcome = run_quiz(
        session,
        console,
        input_provider,
        grader=service.evaluate_answer,
        speaker=speaker,
    )
    if outcome is not None:
        console.print(
            Text("Result saved to your study history.", style="tutor.muted")
        )
    return outcome


def main(
    argv: Sequence[str] | None = None,
    *,
    context: Optional[TutorContext] = None,
    console: Optional[Console] = None,
    input_provider: Optional[InputProvider] = None,
    service: Optional[TutorService] = None,
    player: Optional[AudioPlayer] = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        context = open_context(args, with_client=True, context=context)
        entry = require_standard(open_catalog(context), args.standard)
    except CLI_ERRORS as exc:
        print_error(str(exc))
        return 1

    out = console_for(context, console)
    reader = input_provider or (lambda: out.input("[bold]quiz>[/] "))
    try:
        start_quiz(
            context,
            entry,
            out,
            reader,
            requests=requests_from_args(args, context),
            difficulty=args.difficulty or context.config.quiz.difficulty,
            service=service,
            player=player,
        )
    except ValueError as exc:
        print_error(str(exc))
        return 2
    except CLI_ERRORS as exc:
        print_error(str(exc))
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
