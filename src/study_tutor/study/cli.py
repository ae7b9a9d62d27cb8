"""``tutor study``: open a study session for one standard."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from rich.console import Console

from study_tutor.config import VOICES
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
from study_tutor.generation.service import TutorService
from study_tutor.quiz.cli import requests_from_args, start_quiz

from .audio import AudioPlayer
from .console import run_study
from .session import StudySession


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tutor study",
        description=(
            "Explain an achievement standard, then answer follow-up "
            "questions. Type 'quiz' to move on to a quiz."
        ),
    )
    add_common_arguments(parser)
    parser.add_argument("standard", help="Standard id, e.g. '[9과11-01]'.")
    parser.add_argument(
        "--voice",
        choices=VOICES,
        help="Voice for reading the explanation aloud.",
    )
    return parser


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
    reader = input_provider or (lambda: out.input("[bold]study>[/] "))
    service = service or TutorService(context)
    player = player or AudioPlayer(context.layout.audio_dir)
    voice = args.voice or context.config.speech.explanation_voice

    with StudySession(
        service, entry.subject, entry.label, player=player
    ) as session:
        choice = run_study(
            session,
            out,
            reader,
            voice=voice,
            image_dir=context.layout.images_dir,
            title=f"{entry.subject} · {entry.unit}",
        )
    if choice != "quiz":
        return 0

    try:
        start_quiz(
            context,
            entry,
            out,
            reader,
            requests=requests_from_args(args, context),
            difficulty=context.config.quiz.difficulty,
            service=service,
            player=player,
        )
    except CLI_ERRORS as exc:
        print_error(str(exc))
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
