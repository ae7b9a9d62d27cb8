"""Shared testing fixtures for the study_tutor test suite."""

from .audio import SILENCE, FakeLauncher, FakeProcess  # noqa: F401
from .context import make_context  # noqa: F401
from .errors import auth_error, connection_error, rate_limit_error  # noqa
from .openai import (  # noqa: F401
    FakeOpenAI,
    FakeOpenAIFactory,
    FakeStream,
    completion,
    mc_item,
    tutor_script,
)
from .quiz import make_question, make_result, sample_questions  # noqa: F401
from .study import FakeStudyService  # noqa: F401

__all__ = [
    "SILENCE",
    "FakeLauncher",
    "FakeProcess",
    "FakeOpenAI",
    "FakeOpenAIFactory",
    "FakeStream",
    "FakeStudyService",
    "completion",
    "mc_item",
    "tutor_script",
    "auth_error",
    "connection_error",
    "rate_limit_error",
    "make_context",
    "make_question",
    "make_result",
    "sample_questions",
]
