"""Fake OpenAI client shared across tests.

Production code receives its client through ``TutorContext`` (or a
``client_factory`` argument), so the fake is injected directly instead of
replacing the ``openai`` module. It mirrors the small surface the tutor uses:
``chat.completions.create`` (plain, streamed and structured),
``images.generate`` and ``audio.speech.create``.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence


def completion(content: str) -> SimpleNamespace:
    """Build a chat completion response carrying ``content``."""

    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


def chunk(text: Optional[str]) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(delta=SimpleNamespace(content=text))]
    )


class FakeStream:
    """Iterable of streamed chunks with the SDK's ``close`` hook.

    ``error`` is raised after the fragments are exhausted; ``gate`` (an
    event) blocks iteration before the first chunk until it is set.
    """

    def __init__(
        self,
        fragments: Sequence[Optional[str]],
        *,
        error: Optional[BaseException] = None,
        gate: Optional[threading.Event] = None,
    ) -> None:
        self.fragments = list(fragments)
        self.error = error
        self.gate = gate
        self.closed = False

    def __iter__(self) -> Iterator[SimpleNamespace]:
        if self.gate is not None:
            self.gate.wait(timeout=5)
        for fragment in self.fragments:
            if self.closed:
                return
            yield chunk(fragment)
        if self.error is not None:
            raise self.error

    def close(self) -> None:
        self.closed = True


Responder = Callable[[Dict[str, Any]], Any]


@dataclass
class FakeOpenAI:
    """Stand-in for ``openai.OpenAI`` that records every request."""

    init_kwargs: Dict[str, Any] = field(default_factory=dict)
    chat_calls: List[Dict[str, Any]] = field(default_factory=list)
    image_calls: List[Dict[str, Any]] = field(default_factory=list)
    speech_calls: List[Dict[str, Any]] = field(default_factory=list)
    responses: List[Any] = field(default_factory=list)
    chat_side_effect: Optional[Responder] = None
    image_side_effect: Optional[Responder] = None
    speech_audio: bytes = b"\x00\x01" * 16
    speech_error: Optional[BaseException] = None

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self.chat = SimpleNamespace(
            completions=SimpleNamespace(create=self._create_completion)
        )
        self.images = SimpleNamespace(generate=self._generate_image)
        self.audio = SimpleNamespace(
            speech=SimpleNamespace(create=self._create_speech)
        )

    # Queueing -------------------------------------------------------------

    def queue_response(self, content: str) -> None:
        """Return ``content`` from the next non-streamed chat call."""

        self.responses.append(completion(content))

    def queue_stream(self, *fragments: Optional[str], **kwargs: Any) -> None:
        self.responses.append(FakeStream(fragments, **kwargs))

    def queue_error(self, exc: BaseException) -> None:
        self.responses.append(exc)

    # SDK surface ----------------------------------------------------------

    def _create_completion(self, **kwargs: Any) -> Any:
        with self._lock:
            self.chat_calls.append(kwargs)
            if self.chat_side_effect is not None:
                result = self.chat_side_effect(kwargs)
                if result is not None:
                    return result
            item = self.responses.pop(0) if self.responses else completion("")
        if isinstance(item, BaseException):
            raise item
        return item

    def _generate_image(self, **kwargs: Any) -> SimpleNamespace:
        with self._lock:
            self.image_calls.append(kwargs)
        if self.image_side_effect is not None:
            b64 = self.image_side_effect(kwargs)
        else:
            b64 = "aW1hZ2U="
        return SimpleNamespace(data=[SimpleNamespace(b64_json=b64)])

    def _create_speech(self, **kwargs: Any) -> SimpleNamespace:
        with self._lock:
            self.speech_calls.append(kwargs)
        if self.speech_error is not None:
            raise self.speech_error
        return SimpleNamespace(content=self.speech_audio)


class FakeOpenAIFactory:
    """Callable used wherever code accepts a ``client_factory``."""

    def __init__(self) -> None:
        self.instances: List[FakeOpenAI] = []
        self.configure: Optional[Callable[[FakeOpenAI], None]] = None

    def __call__(self, **kwargs: Any) -> FakeOpenAI:
        client = FakeOpenAI(init_kwargs=dict(kwargs))
        if self.configure is not None:
            self.configure(client)
        self.instances.append(client)
        return client

    @property
    def last(self) -> Optional[FakeOpenAI]:
        return self.instances[-1] if self.instances else None


def mc_item(question: str = "Which planet is closest to the Sun?") -> dict:
    return {
        "questionType": "multiple-choice",
        "question": question,
        "options": ["Mercury", "Venus", "Earth"],
        "answer": "Mercury",
        "explanation": "Mercury orbits closest to the Sun.",
    }


def tutor_script(
    *,
    questions: Optional[List[dict]] = None,
    explanation: str = "Planets orbit the Sun.",
    answer: str = "Gravity keeps them in orbit.",
    summary: str = "- Eight planets",
    grading: Optional[dict] = None,
    diagnosis: str = "## Keep going",
) -> Responder:
    """``chat_side_effect`` answering each tutoring request by its shape."""

    def respond(kwargs: Dict[str, Any]) -> Any:
        prompt = kwargs["messages"][-1]["content"]
        if kwargs.get("stream"):
            if "The student now asks" in prompt:
                return FakeStream([answer])
            return FakeStream([explanation])
        response_format = kwargs.get("response_format") or {}
        name = response_format.get("json_schema", {}).get("name")
        if name == "quiz_questions":
            items = questions if questions is not None else [mc_item()]
            return completion(json.dumps({"questions": items}))
        if name == "grading":
            return completion(
                json.dumps(grading or {"grade": "A", "feedback": "Great."})
            )
        if "learning diagnosis" in prompt:
            return completion(diagnosis)
        return completion(summary)

    return respond
