"""Cancellable text streams over chat completion chunks."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterator, Optional

from study_tutor.core.ai import translate_error

__all__ = ["TextStream", "consume_stream"]

logger = logging.getLogger(__name__)


def _chunk_text(chunk: Any) -> str:
    choices = getattr(chunk, "choices", None) or []
    if not choices:
        return ""
    delta = getattr(choices[0], "delta", None)
    return getattr(delta, "content", None) or ""


class TextStream:
    """Iterate text fragments from a streamed completion.

    ``cancel`` may be called from any thread. Iteration then stops quietly,
    and the underlying HTTP response is closed.
    """

    def __init__(self, response: Any, *, action: str) -> None:
        self._response = response
        self._action = action
        self._cancelled = threading.Event()
        self._closed = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        logger.debug("stream cancelled", extra={"action": self._action})
        self._close()

    def _close(self) -> None:
        if self._closed:
            return
        self._closed = True
        close = getattr(self._response, "close", None)
        if callable(close):
            close()

    def __iter__(self) -> Iterator[str]:
        try:
            for chunk in self._response:
                if self._cancelled.is_set():
                    break
                text = _chunk_text(chunk)
                if text:
                    yield text
        except Exception as exc:
            # Closing the response from another thread aborts the read.
            if self._cancelled.is_set():
                return
            raise translate_error(exc, self._action) from exc
        finally:
            self._close()


def consume_stream(
    stream: TextStream,
    on_update: Optional[Callable[[str], None]] = None,
) -> str:
    """Drain ``stream`` and publish the growing buffer after each fragment."""

    parts: list[str] = []
    for fragment in stream:
        parts.append(fragment)
        if on_update is not None:
            on_update("".join(parts))
    return "".join(parts)
