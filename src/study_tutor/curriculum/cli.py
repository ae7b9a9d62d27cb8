"""``tutor standards``: browse and search the achievement standards."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table
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

from .catalog import StandardEntry, iter_standards, search_standards


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tutor standards",
        description="List or search the curriculum's achievement standards.",
    )
    add_common_arguments(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List every standard.")
    list_parser.add_argument("--subject", help="Only show this subject.")

    search_parser = subparsers.add_parser(
        "search", help="Search descriptions, unit names and ids."
    )
    search_parser.add_argument("query", nargs="+", help="Search text.")
    search_parser.add_argument("--subject", help="Only search this subject.")
    return parser


def render_standards(
    console: Console, entries: Sequence[StandardEntry], *, title: str
) -> None:
    if not entries:
        console.print(Text("No matching standards.", style="tutor.muted"))
        return
    table = Table(title=Text(title), box=box.SIMPLE, expand=True)
    table.add_column("ID", no_wrap=True, style="cyan")
    table.add_column("Subject", no_wrap=True)
    table.add_column("Grade", no_wrap=True)
    table.add_column("Unit")
    table.add_column("Description", overflow="fold")
    for entry in entries:
        table.add_row(
            Text(entry.id),
            Text(entry.subject),
            Text(entry.grade),
            Text(entry.unit),
            Text(entry.description),
        )
    console.print(table)


def main(
    argv: Sequence[str] | None = None,
    *,
    context: Optional[TutorContext] = None,
    console: Optional[Console] = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        context = open_context(args, with_client=False, context=context)
        catalog = open_catalog(context)
    except CLI_ERRORS as exc:
        print_error(str(exc))
        return 1

    out = console_for(context, console)
    if args.command == "list":
        entries = [
            entry
            for entry in iter_standards(catalog)
            if args.subject is None or entry.subject == args.subject
        ]
        render_standards(out, entries, title="Achievement standards")
        return 0

    query = " ".join(args.query)
    entries = search_standards(catalog, query, subject=args.subject)
    render_standards(out, entries, title=f"Search: {query}")
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
