"""Playback of synthesized speech through ``ffplay``.

Speech arrives as base64 16-bit mono PCM at 24 kHz. It is wrapped in a WAV
file under the workspace ``audio/`` directory and handed to an external
player process. At most one playback exists at a time.
"""

from __future__ import annotations

import base64
import binascii
import logging
import subprocess
import threading
import uuid
from pathlib import Path
from typing import Any, Callable, Literal, Optional, Sequence

from pydub import AudioSegment

from study_tutor.errors import TutorError

__all__ = [
    "PlaybackError",
    "AudioPlayer",
    "SAMPLE_RATE",
    "SAMPLE_WIDTH",
    "CHANNELS",
    "PLAYER_COMMAND",
    "pcm_to_segment",
    "toggle_speech",
]

SAMPLE_RATE = 24000
SAMPLE_WIDTH = 2
CHANNELS = 1

PLAYER_COMMAND = ("ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet")

logger = logging.getLogger(__name__)

Launcher = Callable[..., Any]
PlayerState = Literal["idle", "loading", "playing"]


class PlaybackError(TutorError):
    """Raised when speech audio cannot be decoded or played."""


def pcm_to_segment(pcm_base64: str) -> AudioSegment:
    try:
        raw = base64.b64decode(pcm_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise PlaybackError(
            "Received audio data is not valid base64."
        ) from exc
    if not raw or len(raw) % (SAMPLE_WIDTH * CHANNELS):
        raise PlaybackError("Received audio data is empty or truncated.")
    return AudioSegment(
        data=raw,
        sample_width=SAMPLE_WIDTH,
        frame_rate=SAMPLE_RATE,
        channels=CHANNELS,
    )


class AudioPlayer:
    """Single-slot speech player.

    ``begin`` reserves the slot (tearing down whatever held it) and returns a
    token. ``play`` only starts audio while that token is still current, so a
    ``stop`` issued during synthesis discards the late result.
    """

    def __init__(
        self,
        audio_dir: Path,
        *,
        launcher: Launcher = subprocess.Popen,
        command: Sequence[str] = PLAYER_COMMAND,
    ) -> None:
        self._audio_dir = audio_dir
        self._launcher = launcher
        self._command = tuple(command)
        self._lock = threading.Lock()
        self._token = 0
        self._loading = False
        self._process: Any = None
        self._path: Optional[Path] = None

    @property
    def state(self) -> PlayerState:
        with self._lock:
            if self._loading:
                return "loading"
            if self._process is not None and self._process.poll() is None:
                return "playing"
            self._release_locked()
            return "idle"

    @property
    def active(self) -> bool:
        return self.state != "idle"

    def begin(self) -> int:
        with self._lock:
            self._teardown_locked()
            self._token += 1
            self._loading = True
            return self._token

    def play(self, pcm_base64: str, token: int) -> bool:
        """Play ``pcm_base64`` if ``token`` is still current."""

        with self._lock:
            if token != self._token:
                logger.debug("discarding stale speech", extra={"token": token})
                return False
        segment = pcm_to_segment(pcm_base64)
        self._audio_dir.mkdir(parents=True, exist_ok=True)
        path = self._audio_dir / f"speech-{uuid.uuid4().hex}.wav"
        segment.export(str(path), format="wav")
        with self._lock:
            if token != self._token:
                path.unlink(missing_ok=True)
                return False
            try:
                process = self._launcher(
                    [*self._command, str(path)],
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
            except OSError as exc:
                self._loading = False
                path.unlink(missing_ok=True)
                raise PlaybackError(
                    f"Could not start the audio player '{self._command[0]}'. "
                    "Install ffmpeg to enable listening."
                ) from exc
            self._loading = False
            self._process = process
            self._path = path
        logger.info(
            "playback started",
            extra={"seconds": round(segment.duration_seconds, 2)},
        )
        return True

    def fail(self, token: int) -> None:
        """Release the slot reserved by ``token`` after a failed synthesis."""

        with self._lock:
            if token == self._token:
                self._loading = False

    def stop(self) -> None:
        with self._lock:
            self._token += 1
            self._teardown_locked()

    def _teardown_locked(self) -> None:
        self._loading = False
        process = self._process
        if process is not None and process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=2)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()
            logger.info("playback stopped")
        self._release_locked()

    def _release_locked(self) -> None:
        self._process = None
        if self._path is not None:
            self._path.unlink(missing_ok=True)
            self._path = None


def toggle_speech(player: AudioPlayer, synthesize: Callable[[], str]) -> bool:
    """Stop ``player`` if it is busy, else synthesize and play.

    Returns ``True`` when playback started.
    """

    if player.active:
        player.stop()
        return False
    token = player.begin()
    try:
        return player.play(synthesize(), token)
    except (TutorError, ValueError):
        player.fail(token)
        raise
