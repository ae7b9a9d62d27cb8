"""Quiz questions, rubric grades and recorded results."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, MutableMapping, Optional, Sequence

from .evaluator import is_answer_match

__all__ = [
    "QuestionType",
    "Question",
    "Grade",
    "GRADE_WEIGHTS",
    "CORRECT_WEIGHT_THRESHOLD",
    "AnswerEvaluation",
    "QuizOutcome",
    "QuizResult",
    "TRUE_FALSE_OPTIONS",
]

TRUE_FALSE_OPTIONS = ("O", "X")


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    SHORT_ANSWER = "short-answer"
    OPEN_ENDED = "open-ended"

    @property
    def is_objective(self) -> bool:
        return self in (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE)

    @property
    def is_free_text(self) -> bool:
        return not self.is_objective

    @property
    def label(self) -> str:
        return _TYPE_LABELS[self]

    @classmethod
    def from_value(cls, raw: Any) -> "QuestionType":
        key = str(raw or "").strip().lower().replace("_", "-")
        key = _TYPE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError as exc:
            raise ValueError(f"Unknown question type '{raw}'.") from exc


_TYPE_ALIASES = {
    "mcq": "multiple-choice",
    "multiple choice": "multiple-choice",
    "ox": "true-false",
    "true/false": "true-false",
    "short": "short-answer",
    "creativity": "open-ended",
    "open": "open-ended",
}

_TYPE_LABELS = {
    QuestionType.MULTIPLE_CHOICE: "Multiple choice",
    QuestionType.TRUE_FALSE: "True / False",
    QuestionType.SHORT_ANSWER: "Short answer",
    QuestionType.OPEN_ENDED: "Open-ended",
}


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def _text_list(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(_text(item) for item in value if _text(item))


@dataclass(frozen=True)
class Question:
    """One generated quiz item."""

    prompt: str
    question_type: QuestionType
    answer: str
    explanation: str
    options: tuple[str, ...] = ()
    prompt_translation: Optional[str] = None
    passage: Optional[str] = None
    passage_translation: Optional[str] = None
    options_translation: tuple[str, ...] = ()
    answer_translation: Optional[str] = None
    explanation_translation: Optional[str] = None
    image_base64: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Question":
        """Build a question from generated or persisted data.

        Raises ``ValueError`` when the item breaks the per-type invariants.
        """

        if not isinstance(data, Mapping):
            raise ValueError("question must be an object")
        prompt = _text(data.get("question") or data.get("prompt"))
        if not prompt:
            raise ValueError("question text is required")
        qtype = QuestionType.from_value(
            data.get("questionType") or data.get("question_type")
        )
        answer = _text(data.get("answer"))
        options = _text_list(data.get("options"))
        options_translation = _text_list(
            data.get("optionsTranslation") or data.get("options_translation")
        )
        if qtype is QuestionType.TRUE_FALSE and not options:
            options = TRUE_FALSE_OPTIONS
        if qtype.is_objective:
            if not options:
                raise ValueError(f"{qtype.value} question requires options")
            if not answer:
                raise ValueError(f"{qtype.value} question requires an answer")
        else:
            options, options_translation = (), ()
            if not answer:
                raise ValueError(
                    f"{qtype.value} question requires a model answer"
                )
        return cls(
            prompt=prompt,
            question_type=qtype,
            answer=answer,
            explanation=_text(data.get("explanation")),
            options=options,
            prompt_translation=_optional_text(
                data.get("questionTranslation")
                or data.get("prompt_translation")
            ),
            passage=_optional_text(data.get("passage")),
            passage_translation=_optional_text(
                data.get("passageTranslation")
                or data.get("passage_translation")
            ),
            options_translation=options_translation,
            answer_translation=_optional_text(
                data.get("answerTranslation") or data.get("answer_translation")
            ),
            explanation_translation=_optional_text(
                data.get("explanationTranslation")
                or data.get("explanation_translation")
            ),
            image_base64=_optional_text(
                data.get("imageBase64") or data.get("image_base64")
            ),
        )

    def to_dict(self) -> MutableMapping[str, Any]:
        payload: MutableMapping[str, Any] = {
            "prompt": self.prompt,
            "question_type": self.question_type.value,
            "answer": self.answer,
            "explanation": self.explanation,
        }
        optional = {
            "options": list(self.options),
            "prompt_translation": self.prompt_translation,
            "passage": self.passage,
            "passage_translation": self.passage_translation,
            "options_translation": list(self.options_translation),
            "answer_translation": self.answer_translation,
            "explanation_translation": self.explanation_translation,
            "image_base64": self.image_base64,
        }
        payload.update({k: v for k, v in optional.items() if v})
        return payload

    def with_image(self, image_base64: Optional[str]) -> "Question":
        return replace(self, image_base64=image_base64 or None)

    def option_translation(self, index: int) -> Optional[str]:
        if 0 <= index < len(self.options_translation):
            return self.options_translation[index]
        return None

    def is_correct_option(self, index: int) -> bool:
        if not 0 <= index < len(self.options):
            return False
        return is_answer_match(self.options[index], self.answer, index)


class Grade(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"

    @property
    def weight(self) -> float:
        return GRADE_WEIGHTS[self]

    @classmethod
    def parse(cls, raw: Any) -> "Grade":
        key = str(raw or "").strip().upper()[:1]
        try:
            return cls(key)
        except ValueError as exc:
            raise ValueError(
                f"Grade must be one of A-E, got '{raw}'."
            ) from exc


GRADE_WEIGHTS: Mapping[Grade, float] = {
    Grade.A: 1.0,
    Grade.B: 0.75,
    Grade.C: 0.5,
    Grade.D: 0.25,
    Grade.E: 0.0,
}

# Free-text answers count as "correct" only at grade B or better.
CORRECT_WEIGHT_THRESHOLD = 0.75


@dataclass(frozen=True)
class AnswerEvaluation:
    """Rubric grade and feedback returned by AI grading."""

    grade: Grade
    feedback: str


@dataclass(frozen=True)
class QuizOutcome:
    """Score computed when a quiz session completes."""

    score: float
    correct_count: int
    total: int
    answers: tuple[Optional[str], ...]
    correctness: tuple[bool, ...]


@dataclass(frozen=True)
class QuizResult:
    """Immutable history record of a completed quiz."""

    id: str
    date: str
    subject: str
    standard_id: str
    standard_description: str
    score: float
    total_questions: int
    correct_answers: int
    questions: tuple[Question, ...] = ()
    user_answers: tuple[Optional[str], ...] = ()
    correctness: tuple[bool, ...] = field(default_factory=tuple)

    @property
    def reviewable(self) -> bool:
        return bool(self.questions)

    @classmethod
    def from_outcome(
        cls,
        outcome: QuizOutcome,
        *,
        subject: str,
        standard_id: str,
        standard_description: str,
        questions: Sequence[Question],
        now: Optional[datetime] = None,
    ) -> "QuizResult":
        stamp = (now or datetime.now(timezone.utc)).isoformat()
        return cls(
            id=uuid.uuid4().hex,
            date=stamp,
            subject=subject,
            standard_id=standard_id,
            standard_description=standard_description,
            score=float(outcome.score),
            total_questions=outcome.total,
            correct_answers=outcome.correct_count,
            questions=tuple(questions),
            user_answers=tuple(outcome.answers),
            correctness=tuple(outcome.correctness),
        )

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "subject": self.subject,
            "standard_id": self.standard_id,
            "standard_description": self.standard_description,
            "score": self.score,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "questions": [q.to_dict() for q in self.questions],
            "user_answers": list(self.user_answers),
            "correctness": list(self.correctness),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "QuizResult":
        try:
            result_id = str(payload["id"])
            date = str(payload["date"])
            score = float(payload["score"])
            total = int(payload["total_questions"])
            correct = int(payload["correct_answers"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid quiz result record: {exc}") from exc
        questions = tuple(
            Question.from_dict(item) for item in payload.get("questions") or []
        )
        answers = tuple(
            None if item is None else str(item)
            for item in payload.get("user_answers") or []
        )
        return cls(
            id=result_id,
            date=date,
            subject=str(payload.get("subject", "")),
            standard_id=str(payload.get("standard_id", "")),
            standard_description=str(payload.get("standard_description", "")),
            score=score,
            total_questions=total,
            correct_answers=correct,
            questions=questions,
            user_answers=answers,
            correctness=tuple(
                bool(item) for item in payload.get("correctness") or []
            ),
        )
