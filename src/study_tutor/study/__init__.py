"""Study sessions and speech playback."""

from __future__ import annotations

from .audio import AudioPlayer, PlaybackError
from .session import StudySession

__all__ = ["AudioPlayer", "PlaybackError", "StudySession"]
