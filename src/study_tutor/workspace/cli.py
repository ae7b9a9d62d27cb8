"""``tutor init``: prepare the workspace and write the config template."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape

from study_tutor import config as config_mod
from study_tutor.core.config import ConfigError
from study_tutor.core.runtime import console_for, print_error
from study_tutor.core.workspace import (
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tutor init",
        description=(
            "Create the study-tutor workspace (config, logs, local store, "
            "audio and images) and write a starter tutor.toml."
        ),
    )
    parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Workspace root (defaults to STUDY_TUTOR_DATA_HOME or "
            "~/.study-tutor-data)."
        ),
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--force",
        action="store_true",
        help="Replace an existing tutor.toml with the template.",
    )
    mode.add_argument(
        "--show",
        action="store_true",
        help="Only print where the workspace lives; create nothing.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Print nothing on success.",
    )
    return parser


def _write_config(layout: WorkspaceLayout, *, force: bool) -> str:
    target = layout.config_file
    if target.exists() and not force:
        return "exists"
    config_mod.write_template(target, overwrite=force)
    return "written"


def _report(
    out: Console, layout: WorkspaceLayout, config_status: str
) -> None:
    def status(key: str) -> str:
        return "created" if layout.created.get(key) else "exists"

    width = max(len(name) for name, _ in layout.items())
    out.print(
        f"Workspace ready at {escape(str(layout.home))} ({status('home')})",
        soft_wrap=True,
    )
    out.print("Subdirectories:")
    for name, directory in layout.items():
        out.print(
            f"  [tutor.accent]{name.ljust(width)}[/]  "
            f"{escape(str(directory))} ({status(name)})",
            soft_wrap=True,
        )
    out.print(
        f"Config: {escape(str(layout.config_file))} ({config_status})",
        soft_wrap=True,
    )


def main(
    argv: Sequence[str] | None = None,
    *,
    console: Optional[Console] = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    out = console_for(None, console)

    try:
        layout = ensure_workspace(path=args.path, create=not args.show)
        if args.show:
            out.print(escape(str(layout.home)), soft_wrap=True)
            return 0
        config_status = _write_config(layout, force=args.force)
    except (WorkspaceError, ConfigError) as exc:
        print_error(str(exc))
        return 1

    if not args.quiet:
        _report(out, layout, config_status)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
