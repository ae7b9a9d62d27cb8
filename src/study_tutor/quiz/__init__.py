"""Quiz model, answer evaluation, session state machine and history."""

from __future__ import annotations

from .evaluator import is_answer_match, normalize_answer, option_position
from .history import HistoryStore
from .models import (
    AnswerEvaluation,
    Grade,
    Question,
    QuestionType,
    QuizOutcome,
    QuizResult,
)
from .session import QuizSession, SessionState, score_session

__all__ = [
    "is_answer_match",
    "normalize_answer",
    "option_position",
    "HistoryStore",
    "AnswerEvaluation",
    "Grade",
    "Question",
    "QuestionType",
    "QuizOutcome",
    "QuizResult",
    "QuizSession",
    "SessionState",
    "score_session",
]
