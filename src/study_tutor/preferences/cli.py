"""``tutor key`` and ``tutor theme``: stored credential and colour theme."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from openai import OpenAI
from rich.console import Console

from study_tutor.context import TutorContext
from study_tutor.core.ai import (
    API_KEY_ENV,
    ClientFactory,
    resolve_api_key,
    validate_api_key,
)
from study_tutor.core.runtime import (
    CLI_ERRORS,
    add_common_arguments,
    console_for,
    open_context,
    print_error,
)
from study_tutor.core.store import API_KEY, THEME, THEMES
from study_tutor.errors import CredentialError

from .theme import DEFAULT_THEME, resolve_theme


def _mask(key: str) -> str:
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}...{key[-4:]}"


def _build_key_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tutor key",
        description="Manage the OpenAI API key used for all AI features.",
    )
    add_common_arguments(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    set_parser = subparsers.add_parser(
        "set", help="Validate and store an API key."
    )
    set_parser.add_argument("key", help="The OpenAI API key.")
    set_parser.add_argument(
        "--no-verify",
        action="store_true",
        help="Store the key without the validation request.",
    )
    subparsers.add_parser(
        "check", help="Validate the stored (or environment) key."
    )
    subparsers.add_parser("clear", help="Remove the stored key.")
    return parser


def key_main(
    argv: Sequence[str] | None = None,
    *,
    context: Optional[TutorContext] = None,
    console: Optional[Console] = None,
    client_factory: ClientFactory = OpenAI,
) -> int:
    parser = _build_key_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        context = open_context(args, with_client=False, context=context)
        out = console_for(context, console)
        store = context.store
        if args.command == "set":
            key = args.key.strip()
            if not args.no_verify:
                with out.status("Checking the API key..."):
                    validate_api_key(key, factory=client_factory)
            store.set(API_KEY, key)
            out.print(f"[green]API key saved[/] ({_mask(key)}).")
            return 0
        if args.command == "check":
            key = resolve_api_key(store.get(API_KEY))
            if not key:
                raise CredentialError(
                    "No API key configured. Run 'tutor key set <KEY>' or "
                    f"set {API_KEY_ENV}."
                )
            with out.status("Checking the API key..."):
                validate_api_key(key, factory=client_factory)
            out.print(f"[green]API key is valid[/] ({_mask(key)}).")
            return 0
        if store.delete(API_KEY):
            out.print("Stored API key removed.")
        else:
            out.print("No stored API key.")
        return 0
    except CLI_ERRORS as exc:
        print_error(str(exc))
        return 1


def _build_theme_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tutor theme",
        description="Show or change the console colour theme.",
    )
    add_common_arguments(parser)
    parser.add_argument(
        "name",
        nargs="?",
        choices=THEMES,
        help=f"New theme (default '{DEFAULT_THEME}').",
    )
    return parser


def theme_main(
    argv: Sequence[str] | None = None,
    *,
    context: Optional[TutorContext] = None,
    console: Optional[Console] = None,
) -> int:
    parser = _build_theme_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        context = open_context(args, with_client=False, context=context)
        if args.name:
            context.store.set(THEME, args.name)
        out = console_for(context, console)
        out.print(f"Theme: [tutor.accent]{resolve_theme(context.store)}[/]")
        return 0
    except CLI_ERRORS as exc:
        print_error(str(exc))
        return 1
