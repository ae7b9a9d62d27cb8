from __future__ import annotations

from typing import List

import pytest

from fixtures import make_question, sample_questions
from study_tutor.errors import ServiceError
from study_tutor.quiz.models import (
    AnswerEvaluation,
    Grade,
    QuestionType,
    QuizOutcome,
)
from study_tutor.quiz.session import QuizSession, SessionState, score_session


def answer_objective(session: QuizSession, option: str) -> None:
    assert session.select_option(option)
    assert session.check_answer()
    assert session.advance()


def answer_free_text(session: QuizSession, text: str, grade: str) -> None:
    assert session.edit_free_text(text)
    assert session.check_answer()
    assert session.select_grade(grade)
    assert session.advance()


def test_mixed_session_scores_68_75() -> None:
    outcomes: List[QuizOutcome] = []
    session = QuizSession(sample_questions(), on_complete=outcomes.append)

    answer_objective(session, "②5")
    answer_objective(session, "5")
    answer_free_text(session, "the sun", "B")
    answer_free_text(session, "no idea", "E")

    assert session.state == SessionState("completed", None)
    outcome = session.outcome
    assert outcome is not None
    assert outcome.score == pytest.approx(68.75)
    assert outcome.correct_count == 3
    assert outcome.total == 4
    assert outcome.answers == ("②5", "5", "the sun", "no idea")
    assert outcome.correctness == (True, True, True, False)
    assert outcomes == [outcome]


def test_grade_d_adds_weight_without_counting_as_correct() -> None:
    session = QuizSession(
        [make_question(), make_question(QuestionType.SHORT_ANSWER)]
    )
    answer_objective(session, "5")
    answer_free_text(session, "a star", "D")

    outcome = session.outcome
    assert outcome is not None
    assert outcome.score == pytest.approx(62.5)
    assert outcome.correct_count == 1
    assert outcome.correctness == (True, False)


def test_advance_without_grade_is_rejected() -> None:
    session = QuizSession(
        [make_question(QuestionType.SHORT_ANSWER), make_question()]
    )
    session.edit_free_text("The Sun")
    assert session.check_answer()

    before = session.state
    assert not session.advance()
    assert session.state == before == SessionState("in-progress", 0)
    assert not session.completed


def test_advance_requires_check() -> None:
    session = QuizSession([make_question(), make_question()])
    assert session.select_option("5")
    assert not session.advance()
    assert session.index == 0


def test_check_requires_an_answer() -> None:
    session = QuizSession(
        [make_question(), make_question(QuestionType.OPEN_ENDED)]
    )
    assert not session.check_answer()
    session.select_option("3")
    assert session.check_answer()
    assert session.advance()
    session.edit_free_text("   ")
    assert not session.check_answer()


def test_select_option_rules() -> None:
    session = QuizSession([make_question(), make_question()])
    assert not session.select_option("42")
    assert session.select_option("3")
    assert session.select_option("5")
    assert session.current_answer() == "5"
    session.check_answer()
    assert not session.select_option("7")
    assert session.current_answer() == "5"


def test_free_text_and_option_transitions_respect_type() -> None:
    session = QuizSession(
        [make_question(), make_question(QuestionType.SHORT_ANSWER)]
    )
    assert not session.edit_free_text("five")
    assert not session.select_grade("A")
    session.select_option("5")
    session.check_answer()
    assert not session.select_grade("A")
    session.advance()
    assert not session.select_option("5")


def test_check_commits_the_draft() -> None:
    session = QuizSession([make_question(QuestionType.SHORT_ANSWER)])
    session.edit_free_text("Sun")
    assert session.current_answer() is None
    session.check_answer()
    assert session.current_answer() == "Sun"
    assert not session.edit_free_text("Moon")
    assert session.current_answer() == "Sun"


def test_grade_is_overwritable_and_validated() -> None:
    session = QuizSession([make_question(QuestionType.SHORT_ANSWER)])
    session.edit_free_text("Sun")
    session.check_answer()
    assert session.select_grade("C")
    assert session.select_grade(Grade.A)
    assert session.current_grade() is Grade.A
    assert not session.select_grade("Z")
    assert session.current_grade() is Grade.A


def test_go_back_keeps_recorded_state() -> None:
    session = QuizSession([make_question(), make_question()])
    assert not session.go_back()
    answer_objective(session, "7")
    assert session.index == 1
    assert session.go_back()
    assert session.index == 0
    assert session.current_answer() == "7"
    assert session.is_checked()
    assert session.advance()
    assert session.index == 1


def test_passage_reveals_script_and_flags_reset() -> None:
    listening = make_question(passage="A: Hello. B: Hi there.")
    session = QuizSession([listening, make_question()])
    assert not session.show_script
    session.toggle_translation()
    session.select_option("5")
    session.check_answer()
    assert session.show_script
    session.advance()
    assert not session.show_script
    assert session.show_translation
    assert not session.toggle_script()


def test_ai_evaluation_stores_result() -> None:
    calls = []

    def grader(question: str, correct: str, user: str) -> AnswerEvaluation:
        calls.append((question, correct, user))
        return AnswerEvaluation(Grade.B, "Close enough.")

    session = QuizSession([make_question(QuestionType.SHORT_ANSWER)])
    assert session.request_ai_evaluation(grader) is None
    session.edit_free_text("the sun")
    session.check_answer()

    evaluation = session.request_ai_evaluation(grader)

    assert evaluation == AnswerEvaluation(Grade.B, "Close enough.")
    assert session.current_evaluation() == evaluation
    assert calls == [("Name the closest star.", "The Sun", "the sun")]
    # The AI grade is advisory until the student picks one.
    assert session.current_grade() is None
    assert not session.advance()


def test_ai_evaluation_failure_leaves_state_unchanged() -> None:
    def good(question: str, correct: str, user: str) -> AnswerEvaluation:
        return AnswerEvaluation(Grade.A, "Great.")

    def failing(question: str, correct: str, user: str) -> AnswerEvaluation:
        raise ServiceError("network down")

    session = QuizSession([make_question(QuestionType.OPEN_ENDED)])
    session.edit_free_text("Because of the angles.")
    session.check_answer()
    session.request_ai_evaluation(good)

    with pytest.raises(ServiceError):
        session.request_ai_evaluation(failing)

    assert session.current_evaluation() == AnswerEvaluation(Grade.A, "Great.")
    assert session.select_grade("A")
    assert session.advance()
    assert session.completed


def test_completed_session_rejects_transitions() -> None:
    session = QuizSession([make_question()])
    answer_objective(session, "5")
    assert session.completed
    assert not session.select_option("3")
    assert not session.advance()
    assert not session.go_back()


def test_empty_session_is_rejected() -> None:
    with pytest.raises(ValueError):
        QuizSession([])


@pytest.mark.parametrize(
    "grades",
    [
        [Grade.A, Grade.A],
        [Grade.E, Grade.E],
        [Grade.B, Grade.D],
        [None, Grade.C],
    ],
)
def test_score_is_bounded(grades) -> None:
    questions = [make_question(QuestionType.SHORT_ANSWER)] * 2
    outcome = score_session(questions, ["a", "b"], grades)
    assert 0.0 <= outcome.score <= 100.0
    assert (outcome.score == 100.0) == all(g is Grade.A for g in grades)


def test_unanswered_objective_scores_zero() -> None:
    outcome = score_session([make_question()], [None], [None])
    assert outcome.score == 0.0
    assert outcome.correctness == (False,)
