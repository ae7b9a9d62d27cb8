from __future__ import annotations

import pytest

from study_tutor.quiz.evaluator import (
    CIRCLED_DIGITS,
    NO_POSITION,
    is_answer_match,
    normalize_answer,
    option_position,
)

OPTIONS = [
    "apple",
    "banana",
    "cherry",
    "grape",
    "kiwi",
    "lemon",
    "mango",
    "melon",
    "peach",
    "plum",
]


def test_circled_options_match_only_the_marked_option() -> None:
    options = ["①3", "②5", "③7"]
    assert is_answer_match("②5", "②", option_position(options, "②5"))
    assert not is_answer_match("①3", "②", option_position(options, "①3"))
    assert not is_answer_match("③7", "②", option_position(options, "③7"))


@pytest.mark.parametrize("position", range(len(OPTIONS)))
def test_decimal_and_circled_answers_match_exactly_one_position(
    position: int,
) -> None:
    for answer in (str(position + 1), CIRCLED_DIGITS[position]):
        matches = [
            index
            for index, option in enumerate(OPTIONS)
            if is_answer_match(option, answer, index)
        ]
        assert matches == [position]


@pytest.mark.parametrize(
    "answer",
    ["2. banana", "2) banana", "(2) banana", "The answer is ② banana"],
)
def test_prefixed_and_embedded_answers(answer: str) -> None:
    assert is_answer_match("banana", answer, 1)
    assert not is_answer_match("apple", answer, 0)


def test_direct_text_comparison_ignores_spacing_case_and_punctuation() -> None:
    assert is_answer_match("Photo Synthesis.", "photosynthesis", 0)
    assert is_answer_match("O", " o ", NO_POSITION)


def test_sentinel_position_only_compares_text() -> None:
    assert not is_answer_match("banana", "2", NO_POSITION)
    assert not is_answer_match("banana", "②", NO_POSITION)
    assert is_answer_match("banana", "Banana,", NO_POSITION)


def test_evaluator_is_total_for_empty_and_missing_input() -> None:
    assert not is_answer_match(None, "1", 0)
    assert is_answer_match("", "", NO_POSITION)
    assert not is_answer_match("", "1", 5)
    assert not is_answer_match("x", "", 12)
    assert not is_answer_match("x", "⑪", 10)


@pytest.mark.parametrize(
    "raw",
    ["  Hello World. ", "a..", "Tom,", "①  3", "", "x, y.", "MiXeD"],
)
def test_normalization_is_idempotent(raw: str) -> None:
    once = normalize_answer(raw)
    assert normalize_answer(once) == once


def test_normalize_answer_examples() -> None:
    assert normalize_answer(" The Sun. ") == "thesun"
    assert normalize_answer("3,") == "3"
    assert normalize_answer(None) == ""


def test_option_position() -> None:
    assert option_position(["a", "b"], "b") == 1
    assert option_position(["a", "b"], "c") == NO_POSITION
    assert option_position(["a", "b"], None) == NO_POSITION
