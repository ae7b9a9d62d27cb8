"""Per-user workspace holding config, logs, the local store and media."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping


WORKSPACE_ENV = "STUDY_TUTOR_DATA_HOME"
DEFAULT_WORKSPACE = Path.home() / ".study-tutor-data"

# config: tutor.toml, store: key/value state.json, audio: temporary WAV
# files for playback, images: illustrations saved from study sessions.
SUBDIRECTORIES = ("config", "logs", "store", "audio", "images")


class WorkspaceError(RuntimeError):
    """Raised when the workspace layout cannot be prepared."""


@dataclass(frozen=True)
class WorkspaceLayout:
    home: Path
    directories: Mapping[str, Path]
    created: Mapping[str, bool]

    def path_for(self, key: str) -> Path:
        try:
            return self.directories[key]
        except KeyError as exc:
            raise WorkspaceError(
                f"Unknown workspace directory '{key}'."
            ) from exc

    def items(self) -> tuple[tuple[str, Path], ...]:
        return tuple(self.directories.items())

    @property
    def config_file(self) -> Path:
        return self.path_for("config") / "tutor.toml"

    @property
    def store_file(self) -> Path:
        return self.path_for("store") / "state.json"

    @property
    def logs_dir(self) -> Path:
        return self.path_for("logs")

    @property
    def audio_dir(self) -> Path:
        return self.path_for("audio")

    @property
    def images_dir(self) -> Path:
        return self.path_for("images")


def ensure_workspace(
    *,
    env: Mapping[str, str] | None = None,
    path: Path | None = None,
    create: bool = True,
) -> WorkspaceLayout:
    """Return the workspace layout, creating directories when ``create``.

    ``path`` beats ``STUDY_TUTOR_DATA_HOME`` which beats the default home
    location. Only the default location falls back to the system temp
    directory when it cannot be written.
    """

    base, explicit = _resolve_base(
        os.environ if env is None else env, override=path
    )
    if not create:
        return _layout(base, create=False)
    try:
        return _layout(base, create=True)
    except PermissionError as exc:
        if explicit:
            raise WorkspaceError(
                f"Unable to prepare workspace at {base}"
            ) from exc
        fallback = Path(tempfile.gettempdir()) / "study-tutor-data"
        try:
            return _layout(fallback, create=True)
        except PermissionError as fallback_exc:
            raise WorkspaceError(
                f"Unable to prepare workspace at {base} or {fallback}"
            ) from fallback_exc


def _resolve_base(
    env: Mapping[str, str], *, override: Path | None
) -> tuple[Path, bool]:
    custom = (env.get(WORKSPACE_ENV) or "").strip()
    if override is not None:
        target, explicit = Path(override), True
    elif custom:
        target, explicit = Path(custom), True
    else:
        target, explicit = DEFAULT_WORKSPACE, False
    try:
        return target.expanduser().resolve(), explicit
    except FileNotFoundError:
        return target.expanduser().absolute(), explicit


def _layout(base: Path, *, create: bool) -> WorkspaceLayout:
    if base.exists() and not base.is_dir():
        raise WorkspaceError(
            f"Configured workspace exists and is not a directory: {base}"
        )
    created: Dict[str, bool] = {"home": create and _ensure_dir(base)}
    directories: Dict[str, Path] = {}
    for name in SUBDIRECTORIES:
        directory = directories[name] = base / name
        if create:
            created[name] = _ensure_dir(directory)
            continue
        created[name] = False
        if directory.exists() and not directory.is_dir():
            raise WorkspaceError(
                f"Expected workspace directory for '{name}' but found a "
                f"file: {directory}"
            )
    return WorkspaceLayout(
        home=base,
        directories=MappingProxyType(directories),
        created=MappingProxyType(created),
    )


def _ensure_dir(path: Path) -> bool:
    """Create ``path`` owner-only; return whether it was new."""

    if path.exists():
        if not path.is_dir():
            raise WorkspaceError(
                f"Expected directory but found a non-directory entry: {path}"
            )
        return False
    path.mkdir(parents=True, exist_ok=True)
    try:
        path.chmod(0o700)
    except (PermissionError, NotImplementedError):
        pass
    return True
