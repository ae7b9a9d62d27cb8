from __future__ import annotations

import argparse
from pathlib import Path
from typing import List

import pytest
from rich.console import Console

from fixtures import FakeLauncher, make_context, mc_item, tutor_script
from study_tutor.generation.service import QuestionRequest
from study_tutor.quiz import cli as quiz_cli
from study_tutor.quiz.history import HistoryStore
from study_tutor.quiz.models import QuestionType
from study_tutor.study.audio import AudioPlayer

ONLY_ONE_MC = [
    "--multiple-choice",
    "1",
    "--short-answer",
    "0",
    "--true-false",
    "0",
]
NO_QUESTIONS = [
    "--multiple-choice",
    "0",
    "--short-answer",
    "0",
    "--true-false",
    "0",
]


def make_provider(commands: List[str]):
    iterator = iter(commands)
    return lambda: next(iterator)


def make_console() -> Console:
    return Console(record=True, width=100, force_terminal=True)


def make_player(tmp_path: Path) -> AudioPlayer:
    return AudioPlayer(tmp_path / "audio", launcher=FakeLauncher())


def test_quiz_command_generates_runs_and_saves(
    tutor_context, fake_client, tmp_path: Path
) -> None:
    fake_client.chat_side_effect = tutor_script()
    console = make_console()

    code = quiz_cli.main(
        ["9과11-01", *ONLY_ONE_MC, "--difficulty", "low"],
        context=tutor_context,
        console=console,
        input_provider=make_provider(["1", "c", "n"]),
        player=make_player(tmp_path),
    )

    assert code == 0
    prompt = fake_client.chat_calls[0]["messages"][-1]["content"]
    assert "[9과11-01] 태양계를 구성하는 행성의 특징" in prompt
    assert "1 multiple-choice question(s)" in prompt
    assert "short-answer" not in prompt.split("Rules:")[0]
    assert "Basic difficulty" in prompt
    results = HistoryStore(tutor_context.store).list()
    assert len(results) == 1
    result = results[0]
    assert result.score == 100.0
    assert result.subject == "과학"
    assert result.standard_id == "[9과11-01]"
    assert result.standard_description.startswith("태양계를 구성하는")
    assert result.user_answers == ("Mercury",)
    assert "Result saved to your study history." in console.export_text()


def test_leaving_early_saves_nothing(
    tutor_context, fake_client, tmp_path: Path
) -> None:
    fake_client.chat_side_effect = tutor_script(
        questions=[mc_item("First?"), mc_item("Second?")]
    )

    code = quiz_cli.main(
        ["[9과11-01]"],
        context=tutor_context,
        console=make_console(),
        input_provider=make_provider(["1", "c", "n", "q"]),
        player=make_player(tmp_path),
    )

    assert code == 0
    assert HistoryStore(tutor_context.store).list() == []


def test_zero_questions_is_a_usage_error(
    tutor_context, fake_client, capsys
) -> None:
    code = quiz_cli.main(
        ["[9과11-01]", *NO_QUESTIONS],
        context=tutor_context,
        console=make_console(),
        input_provider=make_provider([]),
    )

    assert code == 2
    assert "Ask for at least one question." in capsys.readouterr().err
    assert fake_client.chat_calls == []


def test_unknown_standard(tutor_context, capsys) -> None:
    code = quiz_cli.main(["[9과99-99]"], context=tutor_context)
    assert code == 1
    assert "Unknown standard '[9과99-99]'" in capsys.readouterr().err


def test_missing_api_key(offline_context, capsys) -> None:
    code = quiz_cli.main(["[9과11-01]"], context=offline_context)
    assert code == 1
    assert "No API key configured" in capsys.readouterr().err


def test_malformed_generation_is_reported(
    tutor_context, fake_client, capsys
) -> None:
    fake_client.queue_response("not json")
    code = quiz_cli.main(
        ["[9과11-01]"],
        context=tutor_context,
        console=make_console(),
        input_provider=make_provider([]),
    )
    assert code == 1
    assert "could not be read" in capsys.readouterr().err


def test_negative_counts_are_rejected(tutor_context) -> None:
    with pytest.raises(SystemExit):
        quiz_cli.main(
            ["[9과11-01]", "--short-answer", "-1"], context=tutor_context
        )


def test_requests_from_args_fall_back_to_config(tmp_path: Path) -> None:
    context = make_context(tmp_path, multiple_choice=2, open_ended=1)
    args = argparse.Namespace(
        multiple_choice=None, short_answer=0, true_false=None, open_ended=None
    )

    requests = quiz_cli.requests_from_args(args, context)

    assert requests == [
        QuestionRequest(QuestionType.MULTIPLE_CHOICE, 2),
        QuestionRequest(QuestionType.SHORT_ANSWER, 0),
        QuestionRequest(QuestionType.TRUE_FALSE, 1),
        QuestionRequest(QuestionType.OPEN_ENDED, 1),
    ]
