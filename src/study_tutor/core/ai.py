"""OpenAI client construction, credential validation and error mapping."""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Optional

import openai
from dotenv import find_dotenv, load_dotenv
from openai import OpenAI

from study_tutor.errors import CredentialError, ServiceError, TutorError

__all__ = [
    "API_KEY_ENV",
    "VALIDATION_MODEL",
    "resolve_api_key",
    "load_client",
    "validate_api_key",
    "translate_error",
]

API_KEY_ENV = "OPENAI_API_KEY"
VALIDATION_MODEL = "gpt-4o-mini"

logger = logging.getLogger(__name__)

ClientFactory = Callable[..., Any]

# SDK failures that mean the credential itself is unusable.
_CREDENTIAL_ERRORS = (
    openai.AuthenticationError,
    openai.PermissionDeniedError,
)


def resolve_api_key(stored: Optional[str] = None) -> Optional[str]:
    """Return the stored key, falling back to ``OPENAI_API_KEY``/``.env``."""

    if stored and stored.strip():
        return stored.strip()
    load_dotenv(find_dotenv(usecwd=True))
    value = os.getenv(API_KEY_ENV, "").strip()
    return value or None


def load_client(
    api_key: Optional[str],
    *,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    factory: ClientFactory = OpenAI,
) -> Any:
    """Create an OpenAI client, failing fast when no key is available."""

    if not api_key:
        raise CredentialError(
            "No API key configured. Run 'tutor key set <KEY>' or set "
            f"{API_KEY_ENV} in the environment or a .env file."
        )
    kwargs: dict[str, Any] = {"api_key": api_key}
    if base_url:
        kwargs["base_url"] = base_url
    if timeout:
        kwargs["timeout"] = timeout
    return factory(**kwargs)


def validate_api_key(
    api_key: str,
    *,
    factory: ClientFactory = OpenAI,
    model: str = VALIDATION_MODEL,
) -> None:
    """Confirm ``api_key`` with one minimal live request.

    Raises :class:`CredentialError` when the service rejects the key and
    :class:`ServiceError` for network or transient failures.
    """

    if not api_key or not api_key.strip():
        raise CredentialError("Enter an API key.")
    client = factory(api_key=api_key.strip())
    try:
        client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": "hello"}],
            max_tokens=1,
        )
    except Exception as exc:
        logger.warning("api key validation failed", extra={"error": str(exc)})
        if isinstance(exc, _CREDENTIAL_ERRORS):
            raise CredentialError(
                "The API key is not valid. Check that you copied the whole "
                "key from your OpenAI dashboard."
            ) from exc
        raise ServiceError(
            "Could not verify the API key. Check your network connection "
            "and try again."
        ) from exc


def translate_error(exc: Exception, action: str) -> TutorError:
    """Map an SDK exception raised while performing ``action``."""

    if isinstance(exc, TutorError):
        return exc
    if isinstance(exc, _CREDENTIAL_ERRORS):
        return CredentialError(
            "The API key is no longer valid. Set a valid key with "
            "'tutor key set <KEY>'."
        )
    return ServiceError(
        f"Communication with the AI model failed while {action}. Check your "
        "network connection or try again shortly."
    )
