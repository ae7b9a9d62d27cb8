"""Rich console front-end for a :class:`StudySession`."""

from __future__ import annotations

import base64
import binascii
import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Literal, Optional

from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from study_tutor.config import VOICES
from study_tutor.errors import TutorError

from .session import StudySession

__all__ = [
    "StudyCommand",
    "parse_study_command",
    "run_study",
    "save_illustration",
]

logger = logging.getLogger(__name__)

InputProvider = Callable[[], str]
CommandType = Literal[
    "ask", "listen", "stop", "summary", "voice", "quiz", "help", "quit"
]
StudyExit = Literal["quiz", "quit"]

_POLL_SECONDS = 0.1
_SAFE_NAME = re.compile(r"[^0-9A-Za-z가-힣_-]+")

_KEYWORDS: dict[str, CommandType] = {
    "l": "listen",
    "listen": "listen",
    "stop": "stop",
    "summary": "summary",
    "sum": "summary",
    "quiz": "quiz",
    "h": "help",
    "help": "help",
    "?": "help",
    "q": "quit",
    "quit": "quit",
    "exit": "quit",
}

HELP_TEXT = (
    "Commands: ask <question> (or just type it), listen, stop, summary, "
    "voice <name>, quiz, quit"
)


@dataclass(frozen=True)
class StudyCommand:
    type: CommandType
    value: Optional[str] = None


def parse_study_command(raw: Optional[str]) -> Optional[StudyCommand]:
    """Parse one line; text that is not a command is a follow-up question."""

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    head, _, rest = text.partition(" ")
    head = head.lower()
    rest = rest.strip()
    if head == "ask":
        return StudyCommand("ask", rest) if rest else None
    if head == "voice":
        return StudyCommand("voice", rest.lower()) if rest else None
    keyword = _KEYWORDS.get(text.lower())
    if keyword is not None:
        return StudyCommand(keyword)
    return StudyCommand("ask", text)


def save_illustration(image_base64: str, directory: Path, label: str) -> Path:
    """Decode a base64 PNG into ``directory`` and return its path."""

    try:
        data = base64.b64decode(image_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise TutorError("The illustration data is not valid base64.") from exc
    stem = _SAFE_NAME.sub("-", label).strip("-") or "illustration"
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{stem}-{uuid.uuid4().hex[:8]}.png"
    path.write_bytes(data)
    return path


def run_study(
    session: StudySession,
    console: Console,
    input_provider: InputProvider,
    *,
    voice: str,
    image_dir: Optional[Path] = None,
    title: Optional[str] = None,
) -> StudyExit:
    """Show the opened session, then answer commands until quit or quiz."""

    console.rule(Text(title or session.standard, style="tutor.title"))
    _render_opening(console, session, image_dir)
    console.print(Text(HELP_TEXT, style="tutor.muted"))

    while True:
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print()
            return "quit"
        command = parse_study_command(raw)
        if command is None:
            console.print(Text(HELP_TEXT, style="tutor.muted"))
            continue
        if command.type == "quit":
            return "quit"
        if command.type == "quiz":
            return "quiz"
        if command.type == "help":
            console.print(Text(HELP_TEXT, style="tutor.muted"))
        elif command.type == "ask":
            _ask(console, session, command.value or "")
        elif command.type == "voice":
            if command.value in VOICES:
                voice = command.value
                console.print(f"Voice set to [tutor.accent]{voice}[/].")
            else:
                console.print(
                    f"[red]Unknown voice '{escape(command.value or '')}'. "
                    f"Choose one of: {', '.join(VOICES)}[/]"
                )
        elif command.type == "listen":
            _listen(console, session, voice)
        elif command.type == "summary":
            _summary(console, session)
        elif command.type == "stop":
            if session.player is not None:
                session.player.stop()
            console.print("Audio stopped.")


def _render_opening(
    console: Console, session: StudySession, image_dir: Optional[Path]
) -> None:
    placeholder = Text("Preparing the explanation...", style="tutor.muted")
    with Live(placeholder, console=console, refresh_per_second=8) as live:
        while not session.wait(_POLL_SECONDS):
            if session.explanation:
                live.update(Markdown(session.explanation))
        if session.explanation:
            live.update(Markdown(session.explanation))
        else:
            live.update(Text(""))
    if session.explanation_error is not None:
        console.print(
            f"[red]Explanation unavailable: "
            f"{escape(str(session.explanation_error))}[/]"
        )

    if session.summary:
        console.print(
            Panel(
                Markdown(session.summary),
                title="Key concepts",
                border_style="cyan",
            )
        )
    if session.illustration and image_dir is not None:
        try:
            path = save_illustration(
                session.illustration, image_dir, session.standard[:40]
            )
        except (TutorError, OSError) as exc:
            logger.warning("illustration not saved", extra={"error": str(exc)})
        else:
            console.print(
                Text.assemble(("Illustration saved: ", "bold"), str(path))
            )


def _ask(console: Console, session: StudySession, question: str) -> None:
    console.print(Text.assemble(("You: ", "bold"), question))
    try:
        with Live(
            Text("Thinking...", style="tutor.muted"),
            console=console,
            refresh_per_second=8,
        ) as live:
            session.ask(question, lambda text: live.update(Markdown(text)))
    except (TutorError, ValueError) as exc:
        console.print(f"[red]{escape(str(exc))}[/]")


def _listen(console: Console, session: StudySession, voice: str) -> None:
    if session.player is None:
        console.print("[red]Listening is not available.[/]")
        return
    if not session.explanation:
        console.print("[red]There is no explanation to read yet.[/]")
        return
    try:
        with console.status("Synthesizing speech..."):
            started = session.toggle_speech(voice)
    except TutorError as exc:
        console.print(f"[red]{escape(str(exc))}[/]")
        return
    console.print("Reading the explanation." if started else "Audio stopped.")


def _summary(console: Console, session: StudySession) -> None:
    try:
        with console.status("Summarizing..."):
            summary = session.summarize_explanation()
    except (TutorError, ValueError) as exc:
        console.print(f"[red]{escape(str(exc))}[/]")
        return
    console.print(
        Panel(Markdown(summary), title="Summary", border_style="cyan")
    )
