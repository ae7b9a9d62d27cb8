"""Configuration for study-tutor, backed by TOML in the workspace.

Defaults live in ``_DEFAULTS``; a user TOML file may override any known key
and unknown keys are rejected so typos surface immediately.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from study_tutor.core.config import (
    ConfigError,
    load_toml,
    merge_defaults,
    optional_path,
    optional_string,
    require_bool,
    require_choice,
    require_float_range,
    require_non_negative_int,
    require_positive_int,
    require_string,
    write_toml_template,
)

CONFIG_PATH_ENV = "STUDY_TUTOR_CONFIG"

DIFFICULTIES = ("low", "medium", "high")

# Prebuilt OpenAI text-to-speech voices.
VOICES = (
    "alloy",
    "ash",
    "ballad",
    "coral",
    "echo",
    "fable",
    "nova",
    "onyx",
    "sage",
    "shimmer",
)


@dataclass(frozen=True)
class OpenAIConfig:
    chat_model: str
    image_model: str
    speech_model: str
    temperature: float
    request_timeout_seconds: int
    api_base: Optional[str]
    illustration_workers: int


@dataclass(frozen=True)
class TutorSettings:
    language: str
    translation_language: str
    bilingual_subjects: tuple[str, ...]

    def is_bilingual(self, subject: str) -> bool:
        return subject.strip().lower() in {
            name.lower() for name in self.bilingual_subjects
        }


@dataclass(frozen=True)
class SpeechConfig:
    explanation_voice: str
    passage_voice: str


@dataclass(frozen=True)
class QuizDefaults:
    multiple_choice: int
    short_answer: int
    true_false: int
    open_ended: int
    difficulty: str


@dataclass(frozen=True)
class CurriculumConfig:
    path: Optional[Path]


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool


@dataclass(frozen=True)
class TutorConfig:
    openai: OpenAIConfig
    tutor: TutorSettings
    speech: SpeechConfig
    quiz: QuizDefaults
    curriculum: CurriculumConfig
    logging: LoggingConfig


def default_tree() -> Dict[str, Any]:
    """Return a copy of the default configuration tree."""

    return copy.deepcopy(_DEFAULTS)


def default_config() -> TutorConfig:
    return build_config(default_tree())


def resolve_config_path(
    layout_config_file: Path,
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
) -> Path:
    env_map = os.environ if env is None else env
    if explicit_path is not None:
        return explicit_path.expanduser().resolve()
    override = (env_map.get(CONFIG_PATH_ENV) or "").strip()
    if override:
        return Path(override).expanduser().resolve()
    return layout_config_file


def load_config(path: Path, *, required: bool = False) -> TutorConfig:
    """Load ``path`` over the defaults.

    A missing file yields the defaults unless ``required`` is set.
    """

    tree = default_tree()
    if path.is_file() or required:
        data = load_toml(path)
        merge_defaults(tree, data)
    return build_config(tree)


def build_config(tree: Mapping[str, Any]) -> TutorConfig:
    providers = _table(tree, "providers")
    openai_section = _table(providers, "openai", prefix="providers.")
    tutor = _table(tree, "tutor")
    speech = _table(tree, "speech")
    quiz = _table(tree, "quiz")
    curriculum = _table(tree, "curriculum")
    logging_section = _table(tree, "logging")

    openai_config = OpenAIConfig(
        chat_model=require_string(
            openai_section.get("chat_model"),
            field="providers.openai.chat_model",
        ),
        image_model=require_string(
            openai_section.get("image_model"),
            field="providers.openai.image_model",
        ),
        speech_model=require_string(
            openai_section.get("speech_model"),
            field="providers.openai.speech_model",
        ),
        temperature=require_float_range(
            openai_section.get("temperature"),
            field="providers.openai.temperature",
            min_value=0.0,
            max_value=2.0,
        ),
        request_timeout_seconds=require_positive_int(
            openai_section.get("request_timeout_seconds"),
            field="providers.openai.request_timeout_seconds",
        ),
        api_base=optional_string(
            openai_section.get("api_base"), field="providers.openai.api_base"
        ),
        illustration_workers=require_positive_int(
            openai_section.get("illustration_workers"),
            field="providers.openai.illustration_workers",
        ),
    )

    subjects = tutor.get("bilingual_subjects")
    if not isinstance(subjects, list) or not all(
        isinstance(item, str) for item in subjects
    ):
        raise ConfigError("'tutor.bilingual_subjects' must be a string list.")
    tutor_settings = TutorSettings(
        language=require_string(
            tutor.get("language"), field="tutor.language"
        ),
        translation_language=require_string(
            tutor.get("translation_language"),
            field="tutor.translation_language",
        ),
        bilingual_subjects=tuple(s.strip() for s in subjects if s.strip()),
    )

    speech_config = SpeechConfig(
        explanation_voice=require_choice(
            speech.get("explanation_voice"),
            field="speech.explanation_voice",
            choices=VOICES,
        ),
        passage_voice=require_choice(
            speech.get("passage_voice"),
            field="speech.passage_voice",
            choices=VOICES,
        ),
    )

    quiz_defaults = QuizDefaults(
        multiple_choice=require_non_negative_int(
            quiz.get("multiple_choice"), field="quiz.multiple_choice"
        ),
        short_answer=require_non_negative_int(
            quiz.get("short_answer"), field="quiz.short_answer"
        ),
        true_false=require_non_negative_int(
            quiz.get("true_false"), field="quiz.true_false"
        ),
        open_ended=require_non_negative_int(
            quiz.get("open_ended"), field="quiz.open_ended"
        ),
        difficulty=require_choice(
            quiz.get("difficulty"),
            field="quiz.difficulty",
            choices=DIFFICULTIES,
        ),
    )

    return TutorConfig(
        openai=openai_config,
        tutor=tutor_settings,
        speech=speech_config,
        quiz=quiz_defaults,
        curriculum=CurriculumConfig(
            path=optional_path(curriculum.get("path"), field="curriculum.path")
        ),
        logging=LoggingConfig(
            level=require_string(
                logging_section.get("level"), field="logging.level"
            ).upper(),
            verbose=require_bool(
                logging_section.get("verbose"), field="logging.verbose"
            ),
        ),
    )


def config_template() -> str:
    """Return the TOML template written by ``tutor init``."""

    return _CONFIG_TEMPLATE.strip() + "\n"


def write_template(path: Path, *, overwrite: bool = False) -> Path:
    return write_toml_template(
        path, template=config_template(), overwrite=overwrite
    )


def _table(
    tree: Mapping[str, Any], key: str, *, prefix: str = ""
) -> Mapping[str, Any]:
    section = tree.get(key)
    if not isinstance(section, Mapping):
        raise ConfigError(f"'{prefix}{key}' table is required.")
    return section


# TOML has no null, so optional keys default to None and are only set when
# present in the user's file.
_DEFAULTS: Dict[str, Any] = {
    "providers": {
        "openai": {
            "chat_model": "gpt-4o-mini",
            "image_model": "gpt-image-1",
            "speech_model": "gpt-4o-mini-tts",
            "temperature": 0.4,
            "request_timeout_seconds": 60,
            "api_base": None,
            "illustration_workers": 4,
        },
    },
    "tutor": {
        "language": "Korean",
        "translation_language": "Korean",
        "bilingual_subjects": ["English", "영어"],
    },
    "speech": {
        "explanation_voice": "coral",
        "passage_voice": "onyx",
    },
    "quiz": {
        "multiple_choice": 3,
        "short_answer": 1,
        "true_false": 1,
        "open_ended": 0,
        "difficulty": "medium",
    },
    "curriculum": {
        "path": None,
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}


_CONFIG_TEMPLATE = """
# study-tutor configuration

[providers.openai]
chat_model = "gpt-4o-mini"
image_model = "gpt-image-1"
speech_model = "gpt-4o-mini-tts"
# Sampling temperature (0.0-2.0)
temperature = 0.4
request_timeout_seconds = 60
# Optional API base override
# api_base = "https://api.openai.com/v1"
# Concurrent illustration requests while generating a quiz
illustration_workers = 4

[tutor]
# Language used for explanations, questions and feedback
language = "Korean"
# Bilingual subjects are taught in English with translations in this language
translation_language = "Korean"
bilingual_subjects = ["English", "영어"]

[speech]
# One of: alloy, ash, ballad, coral, echo, fable, nova, onyx, sage, shimmer
explanation_voice = "coral"
passage_voice = "onyx"

[quiz]
multiple_choice = 3
short_answer = 1
true_false = 1
open_ended = 0
# low, medium or high
difficulty = "medium"

[curriculum]
# Use your own standards file instead of the bundled catalog
# path = "~/standards.toml"

[logging]
level = "INFO"
verbose = false
"""
