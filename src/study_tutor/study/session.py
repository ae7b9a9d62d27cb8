"""Study session: explanation, illustration, summary and follow-up chat."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Protocol, Sequence

from study_tutor.errors import TutorError
from study_tutor.generation.service import ConversationTurn
from study_tutor.generation.streaming import TextStream, consume_stream

from .audio import AudioPlayer, toggle_speech

__all__ = ["StudySession", "StudyService"]

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[str], None]


class StudyService(Protocol):
    def explanation_stream(self, subject: str, standard: str) -> TextStream:
        ...

    def generate_illustration(self, prompt: str) -> Optional[str]: ...

    def key_concept_summary(self, subject: str, standard: str) -> str: ...

    def follow_up_stream(
        self,
        subject: str,
        standard: str,
        explanation: str,
        history: Sequence[ConversationTurn],
        question: str,
    ) -> TextStream: ...

    def summarize(self, text: str) -> str: ...

    def synthesize_speech(self, text: str, voice: str) -> str: ...


class StudySession:
    """One open study page for a single achievement standard.

    ``open`` starts three independent fetches. Each writes only its own slot
    and only while the session is not stale; ``close`` marks it stale so late
    results are dropped.
    """

    def __init__(
        self,
        service: StudyService,
        subject: str,
        standard: str,
        *,
        player: Optional[AudioPlayer] = None,
        on_explanation: Optional[UpdateCallback] = None,
    ) -> None:
        self.service = service
        self.subject = subject
        self.standard = standard
        self.player = player
        self.explanation = ""
        self.explanation_error: Optional[TutorError] = None
        self.illustration: Optional[str] = None
        self.summary = ""
        self.conversation: List[ConversationTurn] = []
        self._on_explanation = on_explanation
        self._stale = threading.Event()
        self._pool: Optional[ThreadPoolExecutor] = None
        self._futures: List[Future] = []
        self._explanation_stream: Optional[TextStream] = None
        self._stream_lock = threading.Lock()

    @property
    def stale(self) -> bool:
        return self._stale.is_set()

    def open(self) -> None:
        if self._pool is not None:
            raise RuntimeError("Study session is already open.")
        self._pool = ThreadPoolExecutor(
            max_workers=3, thread_name_prefix="study"
        )
        self._futures = [
            self._pool.submit(self._load_explanation),
            self._pool.submit(self._load_illustration),
            self._pool.submit(self._load_summary),
        ]
        logger.info(
            "study session opened",
            extra={"subject": self.subject, "standard": self.standard},
        )

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the opening fetches finish; ``False`` on timeout."""

        if not self._futures:
            return True
        _, pending = wait(self._futures, timeout=timeout)
        return not pending

    def close(self) -> None:
        self._stale.set()
        with self._stream_lock:
            stream = self._explanation_stream
        if stream is not None:
            stream.cancel()
        if self.player is not None:
            self.player.stop()
        if self._pool is not None:
            self._pool.shutdown(wait=False, cancel_futures=True)
            self._pool = None
        logger.info("study session closed", extra={"subject": self.subject})

    def __enter__(self) -> "StudySession":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # Opening fetches ------------------------------------------------------

    def _load_explanation(self) -> None:
        try:
            stream = self.service.explanation_stream(
                self.subject, self.standard
            )
            with self._stream_lock:
                if self.stale:
                    stream.cancel()
                    return
                self._explanation_stream = stream
            consume_stream(stream, self._commit_explanation)
        except TutorError as exc:
            logger.warning(
                "explanation unavailable", extra={"error": str(exc)}
            )
            if not self.stale:
                self.explanation_error = exc

    def _commit_explanation(self, text: str) -> None:
        if self.stale:
            return
        self.explanation = text
        if self._on_explanation is not None:
            self._on_explanation(text)

    def _load_illustration(self) -> None:
        image = self.service.generate_illustration(self.standard)
        if not self.stale:
            self.illustration = image

    def _load_summary(self) -> None:
        summary = self.service.key_concept_summary(self.subject, self.standard)
        if not self.stale:
            self.summary = summary

    # Follow-up chat -------------------------------------------------------

    def ask(
        self, question: str, on_update: Optional[UpdateCallback] = None
    ) -> str:
        """Stream an answer to ``question`` into the conversation.

        On failure both new turns are removed and the error is re-raised.
        """

        question = question.strip()
        if not question:
            raise ValueError("Ask a question first.")
        history = tuple(self.conversation)
        self.conversation.append(ConversationTurn("user", question))
        self.conversation.append(ConversationTurn("model", ""))
        reply_index = len(self.conversation) - 1

        def publish(text: str) -> None:
            self.conversation[reply_index] = ConversationTurn("model", text)
            if on_update is not None:
                on_update(text)

        try:
            stream = self.service.follow_up_stream(
                self.subject,
                self.standard,
                self.explanation,
                history,
                question,
            )
            answer = consume_stream(stream, publish)
        except TutorError:
            del self.conversation[reply_index - 1:]
            raise
        return answer

    def summarize_explanation(self) -> str:
        """Condense the loaded explanation into a few bullet points."""

        if not self.explanation:
            raise ValueError("There is no explanation to summarize yet.")
        return self.service.summarize(self.explanation)

    # Speech ---------------------------------------------------------------

    def toggle_speech(self, voice: str, text: Optional[str] = None) -> bool:
        """Stop audio if any is active, else read ``text`` aloud.

        Returns ``True`` when playback started.
        """

        if self.player is None:
            raise RuntimeError("No audio player is configured.")
        content = text if text is not None else self.explanation
        return toggle_speech(
            self.player,
            lambda: self.service.synthesize_speech(content, voice),
        )
