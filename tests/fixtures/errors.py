"""Real ``openai`` SDK exceptions built around fake HTTP exchanges."""

from __future__ import annotations

import httpx
import openai

_URL = "https://api.openai.com/v1/chat/completions"


def _request() -> httpx.Request:
    return httpx.Request("POST", _URL)


def auth_error() -> openai.AuthenticationError:
    response = httpx.Response(401, request=_request())
    return openai.AuthenticationError(
        "Incorrect API key provided", response=response, body=None
    )


def rate_limit_error() -> openai.RateLimitError:
    response = httpx.Response(429, request=_request())
    return openai.RateLimitError(
        "Rate limit reached", response=response, body=None
    )


def connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=_request())
