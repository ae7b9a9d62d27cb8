"""Plumbing shared by the ``tutor`` subcommands."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape

from study_tutor.context import TutorContext, build_context
from study_tutor.curriculum.catalog import (
    CatalogError,
    Curriculum,
    StandardEntry,
    find_standard,
    load_catalog,
)
from study_tutor.errors import TutorError
from study_tutor.preferences.theme import make_console, resolve_theme

from .config import ConfigError
from .logging import configure_logger
from .store import StoreError
from .workspace import WorkspaceError

__all__ = [
    "CLI_ERRORS",
    "InputProvider",
    "add_common_arguments",
    "open_context",
    "console_for",
    "print_error",
    "open_catalog",
    "require_standard",
]

# Failures a subcommand reports to the student instead of a traceback.
CLI_ERRORS = (
    TutorError,
    ConfigError,
    WorkspaceError,
    StoreError,
    CatalogError,
)

InputProvider = Callable[[], str]


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help=(
            "Path to tutor.toml (defaults to STUDY_TUTOR_CONFIG or the "
            "workspace config)."
        ),
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Echo log records to stderr.",
    )
    parser.set_defaults(tutor_command=parser.prog.rsplit(" ", 1)[-1])


def open_context(
    args: argparse.Namespace,
    *,
    with_client: bool,
    context: Optional[TutorContext] = None,
) -> TutorContext:
    """Return ``context`` or build one, then attach logging to it."""

    if context is None:
        context = build_context(
            config_path=getattr(args, "config", None),
            with_client=with_client,
        )
    elif with_client:
        context.require_client()
    settings = context.config.logging
    configure_logger(
        "study_tutor",
        log_dir=context.layout.logs_dir,
        level=settings.level,
        verbose=bool(getattr(args, "verbose", False)) or settings.verbose,
        fields={"command": getattr(args, "tutor_command", "tutor")},
    )
    return context


def console_for(
    context: Optional[TutorContext], console: Optional[Console] = None
) -> Console:
    if console is not None:
        return console
    return make_console(resolve_theme(context.store if context else None))


def print_error(message: str) -> None:
    Console(stderr=True).print(f"[bold red]Error:[/] {escape(message)}")


def open_catalog(context: TutorContext) -> tuple[Curriculum, ...]:
    return load_catalog(context.config.curriculum.path)


def require_standard(
    catalog: tuple[Curriculum, ...], standard_id: str
) -> StandardEntry:
    entry = find_standard(catalog, standard_id)
    if entry is None:
        raise CatalogError(
            f"Unknown standard '{standard_id}'. Try 'tutor standards search'."
        )
    return entry
