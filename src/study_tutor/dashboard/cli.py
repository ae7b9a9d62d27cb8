"""``tutor dashboard``, ``tutor history`` and ``tutor diagnose``."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from rich.console import Console
from rich.text import Text

from study_tutor.context import TutorContext
from study_tutor.core.runtime import (
    CLI_ERRORS,
    add_common_arguments,
    console_for,
    open_catalog,
    open_context,
    print_error,
)
from study_tutor.generation.service import TutorService
from study_tutor.quiz.history import HistoryStore
from study_tutor.quiz.models import QuizResult

from .stats import (
    compute_overview,
    recent_scores,
    subject_averages,
    unit_averages,
)
from .view import (
    render_buckets,
    render_diagnosis,
    render_history,
    render_overview,
    render_quiz_review,
    render_recent_scores,
)


def resolve_result(
    history: Sequence[QuizResult], result_id: str
) -> Optional[QuizResult]:
    """Find a result by full id or by a unique id prefix."""

    wanted = result_id.strip().lower()
    if not wanted:
        return None
    for result in history:
        if result.id == wanted:
            return result
    matches = [result for result in history if result.id.startswith(wanted)]
    if len(matches) == 1:
        return matches[0]
    return None


# Dashboard ----------------------------------------------------------------


def _build_dashboard_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tutor dashboard",
        description="Summarize quiz scores by subject and unit.",
    )
    add_common_arguments(parser)
    parser.add_argument(
        "--recent",
        type=int,
        default=10,
        help="How many recent results to chart (default 10).",
    )
    return parser


def dashboard_main(
    argv: Sequence[str] | None = None,
    *,
    context: Optional[TutorContext] = None,
    console: Optional[Console] = None,
) -> int:
    parser = _build_dashboard_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        context = open_context(args, with_client=False, context=context)
        history = HistoryStore(context.store).list()
        catalog = open_catalog(context)
    except CLI_ERRORS as exc:
        print_error(str(exc))
        return 1

    out = console_for(context, console)
    render_overview(out, compute_overview(history))
    if not history:
        out.print(
            Text(
                "No quizzes yet. Run 'tutor quiz <standard-id>' to start.",
                style="tutor.muted",
            )
        )
        return 0
    subjects = subject_averages(history)
    render_buckets(out, "Average by subject", subjects)
    for bucket in subjects:
        render_buckets(
            out,
            f"{bucket.name}: average by unit",
            unit_averages(history, bucket.name, catalog),
        )
    render_recent_scores(out, recent_scores(history, args.recent))
    return 0


# History ------------------------------------------------------------------


def _build_history_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tutor history",
        description="List, review or delete saved quiz results.",
    )
    add_common_arguments(parser)
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("list", help="List saved results (default).")

    show_parser = subparsers.add_parser("show", help="Review one result.")
    show_parser.add_argument("id", help="Result id or its first characters.")
    show_parser.add_argument(
        "--translation",
        action="store_true",
        help="Show translations for bilingual questions.",
    )

    delete_parser = subparsers.add_parser("delete", help="Delete a result.")
    delete_parser.add_argument("id", help="Result id or its first characters.")
    return parser


def history_main(
    argv: Sequence[str] | None = None,
    *,
    context: Optional[TutorContext] = None,
    console: Optional[Console] = None,
) -> int:
    parser = _build_history_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        context = open_context(args, with_client=False, context=context)
        store = HistoryStore(context.store)
        history = store.list()
        out = console_for(context, console)
        if args.command in (None, "list"):
            render_history(out, history)
            return 0

        result = resolve_result(history, args.id)
        if result is None:
            print_error(f"No unique quiz result matches '{args.id}'.")
            return 1
        if args.command == "show":
            render_quiz_review(
                out, result, show_translation=args.translation
            )
            return 0
        store.delete(result.id)
        out.print(f"Deleted result {result.id[:8]}.")
        return 0
    except CLI_ERRORS as exc:
        print_error(str(exc))
        return 1


# Diagnosis ----------------------------------------------------------------


def _build_diagnose_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tutor diagnose",
        description="Ask the AI for a learning diagnosis of your history.",
    )
    add_common_arguments(parser)
    return parser


def diagnose_main(
    argv: Sequence[str] | None = None,
    *,
    context: Optional[TutorContext] = None,
    console: Optional[Console] = None,
    service: Optional[TutorService] = None,
) -> int:
    parser = _build_diagnose_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        context = open_context(args, with_client=True, context=context)
        history = HistoryStore(context.store).list()
        out = console_for(context, console)
        service = service or TutorService(context)
        with out.status("Analyzing your study history..."):
            report = service.learning_diagnosis(history)
    except CLI_ERRORS as exc:
        print_error(str(exc))
        return 1
    render_diagnosis(out, report)
    return 0
