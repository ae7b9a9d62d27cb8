"""Answer matching for objective questions.

Generated answer keys come in several equivalent forms: the option text
itself, a 1-based option number ("3"), a circled digit ("③"), or a numbered
prefix ("3. ...", "3) ...", "(3) ..."). ``is_answer_match`` accepts all of
them for the option at a given position.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

__all__ = [
    "NO_POSITION",
    "CIRCLED_DIGITS",
    "normalize_answer",
    "option_position",
    "is_answer_match",
]

NO_POSITION = -1

CIRCLED_DIGITS = ("①", "②", "③", "④", "⑤", "⑥", "⑦", "⑧", "⑨", "⑩")

_WHITESPACE = re.compile(r"\s+")
_TRAILING_PUNCT = re.compile(r"[.,]+$")


def normalize_answer(text: Optional[str]) -> str:
    """Drop whitespace and trailing periods/commas, then lower-case."""

    if not text:
        return ""
    compact = _WHITESPACE.sub("", str(text))
    return _TRAILING_PUNCT.sub("", compact).lower()


def option_position(options: Sequence[str], candidate: Optional[str]) -> int:
    """Return the index of ``candidate`` in ``options`` or ``NO_POSITION``."""

    if candidate is None:
        return NO_POSITION
    for index, option in enumerate(options):
        if option == candidate:
            return index
    return NO_POSITION


def is_answer_match(
    candidate: Optional[str],
    answer: Optional[str],
    position: int = NO_POSITION,
) -> bool:
    """Return whether ``candidate`` (the option at ``position``) is correct."""

    if candidate is None:
        return False
    normalized_answer = normalize_answer(answer)
    if normalize_answer(candidate) == normalized_answer:
        return True
    if not isinstance(position, int) or position < 0:
        return False

    number = str(position + 1)
    circled = (
        CIRCLED_DIGITS[position] if position < len(CIRCLED_DIGITS) else None
    )
    prefixes = (f"{number}.", f"{number})", f"({number})")

    if normalized_answer == number:
        return True
    if circled and normalized_answer == circled:
        return True
    if normalized_answer.startswith(prefixes):
        return True
    if circled and circled in normalized_answer:
        return True
    return False
