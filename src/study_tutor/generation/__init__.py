"""OpenAI-backed content generation for the tutor."""

from __future__ import annotations

from .service import ConversationTurn, QuestionRequest, TutorService
from .streaming import TextStream, consume_stream

__all__ = [
    "ConversationTurn",
    "QuestionRequest",
    "TutorService",
    "TextStream",
    "consume_stream",
]
