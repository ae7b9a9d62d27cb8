"""Quiz session state machine and final scoring.

A session walks the student through the questions one at a time. Each
question must be checked before moving on, and free-text questions also need
a rubric grade. Every transition returns ``True`` when it was applied and
``False`` when it was rejected, in which case the session is unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal, Optional, Protocol, Sequence

from .evaluator import is_answer_match, option_position
from .models import (
    CORRECT_WEIGHT_THRESHOLD,
    GRADE_WEIGHTS,
    AnswerEvaluation,
    Grade,
    Question,
    QuizOutcome,
)

__all__ = [
    "SessionState",
    "QuizSession",
    "Grader",
    "score_session",
]

logger = logging.getLogger(__name__)

StateKind = Literal["in-progress", "completed"]


class Grader(Protocol):
    def __call__(
        self, question: str, correct_answer: str, user_answer: str
    ) -> AnswerEvaluation: ...


@dataclass(frozen=True)
class SessionState:
    kind: StateKind
    index: Optional[int]

    @property
    def completed(self) -> bool:
        return self.kind == "completed"


class QuizSession:
    """Mutable state for one pass through a list of questions."""

    def __init__(
        self,
        questions: Sequence[Question],
        *,
        on_complete: Callable[[QuizOutcome], None] | None = None,
    ) -> None:
        if not questions:
            raise ValueError("A quiz session needs at least one question.")
        self.questions: tuple[Question, ...] = tuple(questions)
        count = len(self.questions)
        self.answers: list[Optional[str]] = [None] * count
        self.drafts: list[str] = [""] * count
        self.checked: list[bool] = [False] * count
        self.grades: list[Optional[Grade]] = [None] * count
        self.evaluations: list[Optional[AnswerEvaluation]] = [None] * count
        self.show_script = False
        self.show_translation = False
        self.index = 0
        self.outcome: Optional[QuizOutcome] = None
        self._on_complete = on_complete

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def completed(self) -> bool:
        return self.outcome is not None

    @property
    def state(self) -> SessionState:
        if self.completed:
            return SessionState("completed", None)
        return SessionState("in-progress", self.index)

    @property
    def current(self) -> Question:
        return self.questions[self.index]

    @property
    def is_last(self) -> bool:
        return self.index == self.total - 1

    def current_answer(self) -> Optional[str]:
        return self.answers[self.index]

    def current_draft(self) -> str:
        return self.drafts[self.index]

    def is_checked(self) -> bool:
        return self.checked[self.index]

    def current_grade(self) -> Optional[Grade]:
        return self.grades[self.index]

    def current_evaluation(self) -> Optional[AnswerEvaluation]:
        return self.evaluations[self.index]

    def select_option(self, option: str) -> bool:
        if self.completed or self.is_checked():
            return False
        question = self.current
        if not question.question_type.is_objective:
            return False
        if option not in question.options:
            return False
        self.answers[self.index] = option
        return True

    def edit_free_text(self, text: str) -> bool:
        if self.completed or self.is_checked():
            return False
        if not self.current.question_type.is_free_text:
            return False
        self.drafts[self.index] = text
        return True

    def check_answer(self) -> bool:
        if self.completed or self.is_checked():
            return False
        question = self.current
        if question.question_type.is_free_text:
            draft = self.drafts[self.index]
            if not draft.strip():
                return False
            self.answers[self.index] = draft
        elif self.answers[self.index] is None:
            return False
        self.checked[self.index] = True
        if question.passage:
            self.show_script = True
        return True

    def _free_text_checked(self) -> bool:
        return (
            not self.completed
            and self.is_checked()
            and self.current.question_type.is_free_text
        )

    def select_grade(self, grade: Grade | str) -> bool:
        if not self._free_text_checked():
            return False
        try:
            value = grade if isinstance(grade, Grade) else Grade.parse(grade)
        except ValueError:
            return False
        self.grades[self.index] = value
        return True

    def request_ai_evaluation(
        self, grader: Grader
    ) -> Optional[AnswerEvaluation]:
        """Ask ``grader`` to grade the current free-text answer.

        Returns ``None`` when grading is not permitted. Errors raised by the
        grader propagate unchanged and leave the session untouched.
        """

        if not self._free_text_checked():
            return None
        index = self.index
        question = self.current
        evaluation = grader(
            question.prompt, question.answer, self.answers[index] or ""
        )
        self.evaluations[index] = evaluation
        return evaluation

    def advance(self) -> bool:
        if self.completed or not self.is_checked():
            return False
        if (
            self.current.question_type.is_free_text
            and self.grades[self.index] is None
        ):
            return False
        if self.is_last:
            self._complete()
            return True
        self.index += 1
        self.show_script = False
        return True

    def go_back(self) -> bool:
        if self.completed or self.index == 0:
            return False
        self.index -= 1
        self.show_script = False
        return True

    def toggle_translation(self) -> bool:
        if self.completed:
            return False
        self.show_translation = not self.show_translation
        return True

    def toggle_script(self) -> bool:
        if self.completed or not self.current.passage:
            return False
        self.show_script = not self.show_script
        return True

    def _complete(self) -> None:
        outcome = score_session(self.questions, self.answers, self.grades)
        self.outcome = outcome
        logger.info(
            "quiz completed",
            extra={
                "score": outcome.score,
                "correct": outcome.correct_count,
                "total": outcome.total,
            },
        )
        if self._on_complete is not None:
            self._on_complete(outcome)


def score_session(
    questions: Sequence[Question],
    answers: Sequence[Optional[str]],
    grades: Sequence[Optional[Grade]],
) -> QuizOutcome:
    """Score a finished quiz in one pass over the questions."""

    total = len(questions)
    earned = 0.0
    correct_count = 0
    correctness: list[bool] = []
    for question, answer, grade in zip(questions, answers, grades):
        if question.question_type.is_objective:
            position = option_position(question.options, answer)
            correct = is_answer_match(answer, question.answer, position)
            weight = 1.0 if correct else 0.0
        else:
            weight = GRADE_WEIGHTS[grade] if grade is not None else 0.0
            correct = weight >= CORRECT_WEIGHT_THRESHOLD
        earned += weight
        correct_count += int(correct)
        correctness.append(correct)
    score = (earned / total) * 100 if total else 0.0
    return QuizOutcome(
        score=score,
        correct_count=correct_count,
        total=total,
        answers=tuple(answers),
        correctness=tuple(correctness),
    )
