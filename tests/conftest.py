from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

# Ensure src/ is importable without an editable install
ROOT = TESTS_DIR.parent
SRC = str(ROOT / "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from fixtures import (  # noqa: E402
    FakeOpenAI,
    FakeOpenAIFactory,
    make_context,
)
from study_tutor.context import TutorContext  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    """Keep every test away from the real workspace and API key."""

    monkeypatch.setenv("STUDY_TUTOR_DATA_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("STUDY_TUTOR_CONFIG", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    # resolve_api_key calls load_dotenv(); keep a stray .env out of reach.
    monkeypatch.chdir(tmp_path)
    yield


@pytest.fixture
def fake_client() -> FakeOpenAI:
    return FakeOpenAI()


@pytest.fixture
def openai_factory() -> FakeOpenAIFactory:
    """Factory passed as ``client_factory`` to inspect created clients."""

    return FakeOpenAIFactory()


@pytest.fixture
def tutor_context(tmp_path: Path, fake_client: FakeOpenAI) -> TutorContext:
    return make_context(tmp_path, client=fake_client)


@pytest.fixture
def offline_context(tmp_path: Path) -> TutorContext:
    return make_context(tmp_path)
