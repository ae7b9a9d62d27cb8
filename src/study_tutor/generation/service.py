"""OpenAI-backed tutoring operations.

Every SDK failure is converted into a :class:`~study_tutor.errors.TutorError`
here, so callers only ever deal with the study-tutor error taxonomy.
"""

from __future__ import annotations

import base64
import json
import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Sequence

from study_tutor.config import DIFFICULTIES, VOICES
from study_tutor.context import TutorContext
from study_tutor.core.ai import translate_error
from study_tutor.errors import (
    MalformedResponseError,
    ServiceError,
    TutorError,
)
from study_tutor.quiz.models import (
    AnswerEvaluation,
    Grade,
    Question,
    QuestionType,
    QuizResult,
)

from . import prompts
from .streaming import TextStream

__all__ = [
    "ConversationTurn",
    "QuestionRequest",
    "TutorService",
]

logger = logging.getLogger(__name__)

_BILINGUAL_REQUIRED = (
    "questionTranslation",
    "answerTranslation",
    "explanationTranslation",
)


@dataclass(frozen=True)
class ConversationTurn:
    role: Literal["user", "model"]
    text: str


@dataclass(frozen=True)
class QuestionRequest:
    question_type: QuestionType
    count: int


def _token_params(model: str, limit: int) -> Dict[str, Any]:
    if "gpt-5" in model:
        return {"max_completion_tokens": limit}
    return {"max_tokens": limit}


def _extract_json(content: str) -> Any:
    fenced = re.search(r"```(?:json)?\s*(.+?)```", content, re.DOTALL)
    payload = fenced.group(1) if fenced else content
    try:
        return json.loads(payload)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(
            "The AI returned a response that could not be read. Please try "
            "again."
        ) from exc


def _json_format(name: str, schema: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "json_schema",
        "json_schema": {"name": name, "schema": schema},
    }


class TutorService:
    """Tutoring requests issued through the client held by ``context``."""

    def __init__(self, context: TutorContext) -> None:
        self._client = context.require_client()
        self._openai = context.config.openai
        self._settings = context.config.tutor

    # Chat helpers ---------------------------------------------------------

    def _params(self, prompt: str, *, max_tokens: int) -> Dict[str, Any]:
        model = self._openai.chat_model
        params: Dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": prompts.SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        }
        # gpt-5 models only accept the default temperature.
        if "gpt-5" not in model:
            params["temperature"] = self._openai.temperature
        params.update(_token_params(model, max_tokens))
        return params

    def _complete(
        self,
        prompt: str,
        *,
        action: str,
        max_tokens: int = 2048,
        response_format: Optional[Dict[str, Any]] = None,
    ) -> str:
        params = self._params(prompt, max_tokens=max_tokens)
        if response_format is not None:
            params["response_format"] = response_format
        try:
            resp = self._client.chat.completions.create(**params)
        except Exception as exc:
            logger.warning(
                "chat request failed",
                extra={"action": action, "error": str(exc)},
            )
            raise translate_error(exc, action) from exc
        choices = resp.choices or []
        if not choices or choices[0].message is None:
            logger.warning(
                "chat response had no choices", extra={"action": action}
            )
            raise MalformedResponseError(
                "The AI returned an empty response. Please try again."
            )
        return (choices[0].message.content or "").strip()

    def _stream(self, prompt: str, *, action: str) -> TextStream:
        params = self._params(prompt, max_tokens=4096)
        try:
            response = self._client.chat.completions.create(
                stream=True, **params
            )
        except Exception as exc:
            logger.warning(
                "stream request failed",
                extra={"action": action, "error": str(exc)},
            )
            raise translate_error(exc, action) from exc
        return TextStream(response, action=action)

    # Study ----------------------------------------------------------------

    def explanation_stream(self, subject: str, standard: str) -> TextStream:
        prompt = prompts.explanation_prompt(
            subject,
            standard,
            language=self._settings.language,
            bilingual=self._settings.is_bilingual(subject),
        )
        return self._stream(prompt, action="explaining the standard")

    def key_concept_summary(self, subject: str, standard: str) -> str:
        """Return a short bullet summary, or ``""`` when it cannot be made."""

        prompt = prompts.key_concept_prompt(
            subject, standard, language=self._settings.language
        )
        try:
            return self._complete(prompt, action="summarising key concepts")
        except TutorError as exc:
            logger.warning(
                "key concept summary unavailable", extra={"error": str(exc)}
            )
            return ""

    def summarize(self, text: str) -> str:
        prompt = prompts.summary_prompt(text, language=self._settings.language)
        content = self._complete(prompt, action="summarising")
        return content or "No summary could be produced."

    def follow_up_stream(
        self,
        subject: str,
        standard: str,
        explanation: str,
        history: Sequence[ConversationTurn],
        question: str,
    ) -> TextStream:
        lines = [
            f"{'Student' if turn.role == 'user' else 'AI tutor'}: {turn.text}"
            for turn in history
        ]
        prompt = prompts.follow_up_prompt(
            subject,
            standard,
            explanation,
            lines,
            question,
            language=self._settings.language,
            bilingual=self._settings.is_bilingual(subject),
        )
        return self._stream(prompt, action="answering your question")

    # Quiz -----------------------------------------------------------------

    def generate_questions(
        self,
        subject: str,
        standard: str,
        requests: Sequence[QuestionRequest],
        difficulty: str = "medium",
    ) -> List[Question]:
        """Generate quiz questions and their optional illustrations.

        Items that break the question invariants are dropped. Raises
        :class:`MalformedResponseError` when nothing usable comes back.
        """

        if difficulty not in DIFFICULTIES:
            raise ValueError(
                f"Difficulty must be one of {', '.join(DIFFICULTIES)}."
            )
        wanted = [(r.question_type, r.count) for r in requests if r.count > 0]
        if not wanted:
            return []
        bilingual = self._settings.is_bilingual(subject)
        prompt = prompts.question_prompt(
            standard,
            wanted,
            difficulty=difficulty,
            language=self._settings.language,
            translation_language=self._settings.translation_language,
            bilingual=bilingual,
        )
        content = self._complete(
            prompt,
            action="generating quiz questions",
            max_tokens=8192,
            response_format=_json_format(
                "quiz_questions", prompts.question_schema(bilingual=bilingual)
            ),
        )
        items = self._question_items(content)

        questions: List[Question] = []
        image_prompts: Dict[int, str] = {}
        for item in items:
            try:
                if bilingual:
                    missing = [
                        k for k in _BILINGUAL_REQUIRED if not item.get(k)
                    ]
                    if missing:
                        raise ValueError(
                            "missing translations: " + ", ".join(missing)
                        )
                question = Question.from_dict(item)
            except (ValueError, AttributeError) as exc:
                logger.warning(
                    "dropping invalid question", extra={"error": str(exc)}
                )
                continue
            image_prompt = str(item.get("imagePrompt") or "").strip()
            if image_prompt:
                image_prompts[len(questions)] = image_prompt
            questions.append(question)
        if not questions:
            raise MalformedResponseError(
                "The AI did not return any usable questions. Please try again."
            )

        if image_prompts:
            self._attach_illustrations(questions, image_prompts)
        logger.info(
            "quiz generated",
            extra={
                "questions": len(questions),
                "illustrations": sum(1 for q in questions if q.image_base64),
            },
        )
        return questions

    def _question_items(self, content: str) -> List[Any]:
        data = _extract_json(content) if content else None
        if isinstance(data, dict):
            data = data.get("questions")
        if not isinstance(data, list):
            raise MalformedResponseError(
                "The AI response did not contain a list of questions. Please "
                "try again."
            )
        return data

    def _attach_illustrations(
        self, questions: List[Question], image_prompts: Dict[int, str]
    ) -> None:
        workers = min(self._openai.illustration_workers, len(image_prompts))
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="illustration"
        ) as pool:
            futures = {
                pool.submit(self.generate_illustration, prompt): index
                for index, prompt in image_prompts.items()
            }
            for future in as_completed(futures):
                index = futures[future]
                questions[index] = questions[index].with_image(future.result())

    def generate_illustration(self, prompt: str) -> Optional[str]:
        """Return a base64 PNG for ``prompt`` or ``None``; never raises."""

        if not prompt or not prompt.strip():
            return None
        try:
            response = self._client.images.generate(
                model=self._openai.image_model,
                prompt=prompts.illustration_prompt(prompt.strip()),
                size="1024x1024",
                n=1,
            )
            data = getattr(response, "data", None) or []
            if not data:
                return None
            return getattr(data[0], "b64_json", None) or None
        except Exception as exc:
            logger.warning(
                "illustration failed", extra={"error": str(exc)}
            )
            return None

    def evaluate_answer(
        self, question: str, correct_answer: str, user_answer: str
    ) -> AnswerEvaluation:
        prompt = prompts.grading_prompt(
            question,
            correct_answer,
            user_answer,
            language=self._settings.language,
        )
        content = self._complete(
            prompt,
            action="grading your answer",
            max_tokens=800,
            response_format=_json_format("grading", prompts.GRADING_SCHEMA),
        )
        data = _extract_json(content) if content else None
        if not isinstance(data, dict):
            raise MalformedResponseError(
                "The AI grading response could not be read. Please try again."
            )
        try:
            grade = Grade.parse(data.get("grade"))
        except ValueError as exc:
            raise MalformedResponseError(
                "The AI grading response had no valid grade. Please try again."
            ) from exc
        return AnswerEvaluation(
            grade=grade, feedback=str(data.get("feedback") or "").strip()
        )

    # Speech ---------------------------------------------------------------

    def synthesize_speech(self, text: str, voice: str) -> str:
        """Return base64 16-bit mono 24 kHz PCM for ``text``."""

        if voice not in VOICES:
            raise ValueError(
                f"Unknown voice '{voice}'. Choose one of: {', '.join(VOICES)}"
            )
        if not text or not text.strip():
            raise ValueError("Nothing to read aloud.")
        try:
            response = self._client.audio.speech.create(
                model=self._openai.speech_model,
                voice=voice,
                input=text,
                response_format="pcm",
            )
        except Exception as exc:
            logger.warning("speech request failed", extra={"error": str(exc)})
            raise translate_error(exc, "synthesising speech") from exc
        audio = getattr(response, "content", b"") or b""
        if not audio:
            raise ServiceError("The speech service returned no audio data.")
        return base64.b64encode(audio).decode("ascii")

    # Dashboard ------------------------------------------------------------

    def learning_diagnosis(self, history: Sequence[QuizResult]) -> str:
        if not history:
            return prompts.NO_HISTORY_MESSAGE
        recent = list(history)[-prompts.DIAGNOSIS_LIMIT:][::-1]
        lines = [
            f"{idx}. [{_date_label(result.date)}] subject: {result.subject}, "
            "content: "
            f"{result.standard_description or result.standard_id}, "
            f"score: {round(result.score)}"
            for idx, result in enumerate(recent, start=1)
        ]
        prompt = prompts.diagnosis_prompt(
            lines, language=self._settings.language
        )
        content = self._complete(
            prompt, action="writing the diagnosis report", max_tokens=4096
        )
        return content or "The diagnosis report could not be produced."


def _date_label(stamp: str) -> str:
    try:
        return datetime.fromisoformat(stamp).date().isoformat()
    except ValueError:
        return stamp
