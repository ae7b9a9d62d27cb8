"""``tutor`` entry point: routes a subcommand to its module's ``main``."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Callable, Dict, List, Optional, Sequence, TextIO


@dataclass(frozen=True)
class CommandSpec:
    """One ``tutor`` subcommand, resolved lazily from ``target``."""

    name: str
    summary: str
    target: str
    section: str
    needs_key: bool = False

    def run(self, argv: Sequence[str]) -> int:
        module_name, _, func_name = self.target.partition(":")
        func = getattr(import_module(module_name), func_name)
        return _call_with_prog(func, f"tutor {self.name}", argv)


_SECTIONS = ("Setup", "Learning", "Review")

_COMMAND_SPECS: Sequence[CommandSpec] = (
    CommandSpec(
        "init",
        "Bootstrap the workspace and write a starter tutor.toml.",
        "study_tutor.workspace.cli:main",
        "Setup",
    ),
    CommandSpec(
        "key",
        "Set, check or clear the OpenAI API key.",
        "study_tutor.preferences.cli:key_main",
        "Setup",
    ),
    CommandSpec(
        "theme",
        "Show or change the console colour theme.",
        "study_tutor.preferences.cli:theme_main",
        "Setup",
    ),
    CommandSpec(
        "standards",
        "List or search the curriculum's achievement standards.",
        "study_tutor.curriculum.cli:main",
        "Learning",
    ),
    CommandSpec(
        "study",
        "Study a standard with an AI explanation and follow-ups.",
        "study_tutor.study.cli:main",
        "Learning",
        needs_key=True,
    ),
    CommandSpec(
        "quiz",
        "Generate and take a quiz for a standard.",
        "study_tutor.quiz.cli:main",
        "Learning",
        needs_key=True,
    ),
    CommandSpec(
        "dashboard",
        "Show score averages by subject and unit.",
        "study_tutor.dashboard.cli:dashboard_main",
        "Review",
    ),
    CommandSpec(
        "history",
        "List, review or delete saved quiz results.",
        "study_tutor.dashboard.cli:history_main",
        "Review",
    ),
    CommandSpec(
        "diagnose",
        "Get an AI learning diagnosis of your quiz history.",
        "study_tutor.dashboard.cli:diagnose_main",
        "Review",
        needs_key=True,
    ),
)

COMMANDS: Dict[str, CommandSpec] = {
    spec.name: spec for spec in _COMMAND_SPECS
}


def format_command_table() -> str:
    """Return the grouped command listing used by help output."""

    width = max(len(name) for name in COMMANDS)
    lines: List[str] = ["Available commands:"]
    for section in _SECTIONS:
        lines.append(f" {section}:")
        for spec in _COMMAND_SPECS:
            if spec.section != section:
                continue
            name = spec.name.ljust(width)
            marker = " (API key)" if spec.needs_key else ""
            lines.append(f"  {name}  {spec.summary}{marker}")
    return "\n".join(lines)


def format_usage() -> str:
    return "\n".join(
        (
            "Usage: tutor <command> [args...]",
            "Run `tutor list` for commands or `tutor help <name>` for "
            "details.",
            "",
            format_command_table(),
        )
    )


def _emit(text: str, stream: Optional[TextIO] = None) -> None:
    (stream or sys.stdout).write(text + "\n")


def _unknown(name: str) -> int:
    _emit(f"Unknown command '{name}'.", sys.stderr)
    _emit(format_command_table(), sys.stderr)
    return 2


def _version() -> int:
    try:
        _emit(metadata.version("study-tutor"))
    except metadata.PackageNotFoundError:
        _emit("unknown")
    return 0


def _list(rest: Sequence[str]) -> int:
    _emit(format_command_table())
    return 0


def _help(topic: Sequence[str]) -> int:
    if not topic:
        _emit(format_usage())
        return 0
    spec = COMMANDS.get(topic[0])
    if spec is None:
        return _unknown(topic[0])
    _emit(f"{spec.name}: {spec.summary}")
    _emit(f"Run `tutor {spec.name} --help` for command-specific options.")
    return 0


_BUILTINS: Dict[str, Callable[[Sequence[str]], int]] = {
    "-h": lambda rest: _help(()),
    "--help": lambda rest: _help(()),
    "help": _help,
    "list": _list,
    "version": lambda rest: _version(),
    "--version": lambda rest: _version(),
    "-V": lambda rest: _version(),
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        _emit(format_usage())
        return 2

    head, rest = args[0], args[1:]
    builtin = _BUILTINS.get(head)
    if builtin is not None:
        return builtin(rest)
    spec = COMMANDS.get(head)
    if spec is None:
        return _unknown(head)
    return spec.run(rest)


def _call_with_prog(
    func: Callable[..., object], prog: str, argv: Sequence[str]
) -> int:
    """Run ``func(argv)`` with ``sys.argv[0]`` set to ``prog``.

    argparse reads the program name from ``sys.argv`` and exits via
    ``SystemExit`` on ``--help`` and usage errors; both are mapped to a
    plain exit status here.
    """

    saved = sys.argv
    sys.argv = [prog, *argv]
    try:
        result = func(list(argv))
    except SystemExit as exc:
        return _exit_status(exc.code)
    finally:
        sys.argv = saved
    return result if isinstance(result, int) else 0


def _exit_status(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    _emit(str(code), sys.stderr)
    return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
