from __future__ import annotations

import pytest

from fixtures import auth_error, connection_error, rate_limit_error
from study_tutor.core import ai
from study_tutor.errors import (
    CredentialError,
    MalformedResponseError,
    ServiceError,
)


def test_resolve_api_key_prefers_stored_value(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "env-key")
    assert ai.resolve_api_key("  stored-key ") == "stored-key"
    assert ai.resolve_api_key("   ") == "env-key"
    assert ai.resolve_api_key(None) == "env-key"


def test_resolve_api_key_reads_dotenv(tmp_path) -> None:
    (tmp_path / ".env").write_text(
        "OPENAI_API_KEY=from-dotenv\n", encoding="utf-8"
    )
    assert ai.resolve_api_key() == "from-dotenv"


def test_resolve_api_key_missing() -> None:
    assert ai.resolve_api_key() is None


def test_load_client_requires_api_key(openai_factory) -> None:
    with pytest.raises(CredentialError) as exc:
        ai.load_client(None, factory=openai_factory)
    assert "OPENAI_API_KEY" in str(exc.value)
    assert openai_factory.instances == []


def test_load_client_passes_options(openai_factory) -> None:
    client = ai.load_client(
        "test-key",
        base_url="http://localhost:8080/v1",
        timeout=30,
        factory=openai_factory,
    )
    assert client is openai_factory.last
    assert client.init_kwargs == {
        "api_key": "test-key",
        "base_url": "http://localhost:8080/v1",
        "timeout": 30,
    }


def test_validate_api_key_success(openai_factory) -> None:
    ai.validate_api_key(" sk-good ", factory=openai_factory)

    client = openai_factory.last
    assert client.init_kwargs == {"api_key": "sk-good"}
    call = client.chat_calls[0]
    assert call["max_tokens"] == 1
    assert call["model"] == ai.VALIDATION_MODEL


def test_validate_api_key_rejects_empty_key(openai_factory) -> None:
    with pytest.raises(CredentialError):
        ai.validate_api_key("   ", factory=openai_factory)
    assert openai_factory.instances == []


@pytest.mark.parametrize(
    "error, expected",
    [
        (auth_error, CredentialError),
        (connection_error, ServiceError),
        (rate_limit_error, ServiceError),
    ],
)
def test_validate_api_key_failures(openai_factory, error, expected) -> None:
    openai_factory.configure = lambda client: client.queue_error(error())
    with pytest.raises(expected):
        ai.validate_api_key("sk-test", factory=openai_factory)


def test_translate_error_mapping() -> None:
    existing = MalformedResponseError("bad")
    assert ai.translate_error(existing, "testing") is existing
    assert isinstance(
        ai.translate_error(auth_error(), "testing"), CredentialError
    )
    translated = ai.translate_error(RuntimeError("boom"), "grading")
    assert isinstance(translated, ServiceError)
    assert "grading" in str(translated)
