"""Aggregate statistics over quiz history."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from study_tutor.curriculum.catalog import Curriculum, iter_standards
from study_tutor.quiz.models import QuizResult

__all__ = [
    "Overview",
    "ScoreBucket",
    "compute_overview",
    "subject_averages",
    "unit_averages",
    "recent_scores",
    "UNKNOWN_UNIT",
]

UNKNOWN_UNIT = "Unknown unit"


@dataclass(frozen=True)
class Overview:
    total_quizzes: int
    total_questions: int
    average_score: float


@dataclass(frozen=True)
class ScoreBucket:
    name: str
    score: int
    count: int


def compute_overview(history: Sequence[QuizResult]) -> Overview:
    total = len(history)
    average = sum(r.score for r in history) / total if total else 0.0
    return Overview(
        total_quizzes=total,
        total_questions=sum(r.total_questions for r in history),
        average_score=average,
    )


def _average(groups: Dict[str, List[float]]) -> List[ScoreBucket]:
    return [
        ScoreBucket(
            name=name,
            score=round(sum(values) / len(values)),
            count=len(values),
        )
        for name, values in groups.items()
    ]


def subject_averages(history: Sequence[QuizResult]) -> List[ScoreBucket]:
    """Rounded average score per subject, in first-seen order."""

    groups: Dict[str, List[float]] = {}
    for result in history:
        groups.setdefault(result.subject or "Unknown", []).append(result.score)
    return _average(groups)


def unit_averages(
    history: Sequence[QuizResult],
    subject: str,
    catalog: Sequence[Curriculum],
) -> List[ScoreBucket]:
    """Rounded average per unit of ``subject``, highest score first."""

    units = {entry.id: entry.unit for entry in iter_standards(catalog)}
    groups: Dict[str, List[float]] = {}
    for result in history:
        if result.subject != subject:
            continue
        unit = units.get(result.standard_id, UNKNOWN_UNIT)
        groups.setdefault(unit, []).append(result.score)
    return sorted(_average(groups), key=lambda bucket: -bucket.score)


def recent_scores(
    history: Sequence[QuizResult], limit: Optional[int] = 10
) -> List[QuizResult]:
    """Return the last ``limit`` results, oldest first."""

    if limit is None:
        return list(history)
    return list(history)[-limit:] if limit > 0 else []
