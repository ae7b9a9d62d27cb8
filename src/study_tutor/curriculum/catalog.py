"""Curriculum catalog of achievement standards.

The catalog is a TOML document nested as curriculum -> subject -> grade ->
unit -> standard. A packaged copy is used unless the configuration points at
another file.
"""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Iterator, List, Mapping, Optional, Sequence

__all__ = [
    "CatalogError",
    "Standard",
    "Unit",
    "GradeContent",
    "Subject",
    "Curriculum",
    "StandardEntry",
    "load_catalog",
    "iter_standards",
    "search_standards",
    "find_standard",
]

_PACKAGE = "study_tutor.curriculum"
_RESOURCE = "standards.toml"
_WHITESPACE = re.compile(r"\s+")


class CatalogError(RuntimeError):
    """Raised when the standards catalog is missing or malformed."""


@dataclass(frozen=True)
class Standard:
    id: str
    description: str


@dataclass(frozen=True)
class Unit:
    name: str
    standards: tuple[Standard, ...]


@dataclass(frozen=True)
class GradeContent:
    grade: str
    units: tuple[Unit, ...]


@dataclass(frozen=True)
class Subject:
    name: str
    grades: tuple[GradeContent, ...]


@dataclass(frozen=True)
class Curriculum:
    name: str
    subjects: tuple[Subject, ...]


@dataclass(frozen=True)
class StandardEntry:
    """A standard together with where it sits in the catalog."""

    curriculum: str
    subject: str
    grade: str
    unit: str
    standard: Standard

    @property
    def id(self) -> str:
        return self.standard.id

    @property
    def description(self) -> str:
        return self.standard.description

    @property
    def label(self) -> str:
        return f"{self.standard.id} {self.standard.description}"


def load_catalog(path: Optional[Path] = None) -> tuple[Curriculum, ...]:
    """Load ``path`` or the packaged catalog."""

    if path is None:
        text = (
            resources.files(_PACKAGE)
            .joinpath(_RESOURCE)
            .read_text(encoding="utf-8")
        )
        source = f"{_PACKAGE}/{_RESOURCE}"
    else:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise CatalogError(f"Standards file not found: {path}") from exc
        source = str(path)
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise CatalogError(f"Failed to parse {source}: {exc}") from exc
    curriculums = tuple(
        _curriculum(item, source) for item in _list(data, "curriculum", source)
    )
    if not curriculums:
        raise CatalogError(f"No curriculum defined in {source}.")
    return curriculums


def _list(table: Mapping[str, Any], key: str, source: str) -> List[Any]:
    value = table.get(key, [])
    if not isinstance(value, list):
        raise CatalogError(f"'{key}' in {source} must be an array of tables.")
    return value


def _name(table: Mapping[str, Any], key: str, source: str) -> str:
    value = table.get(key)
    if not isinstance(value, str) or not value.strip():
        raise CatalogError(f"Missing '{key}' in {source}.")
    return value.strip()


def _curriculum(table: Mapping[str, Any], source: str) -> Curriculum:
    return Curriculum(
        name=_name(table, "name", source),
        subjects=tuple(
            Subject(
                name=_name(subject, "name", source),
                grades=tuple(
                    GradeContent(
                        grade=_name(grade, "grade", source),
                        units=tuple(
                            Unit(
                                name=_name(unit, "name", source),
                                standards=tuple(
                                    Standard(
                                        id=_name(std, "id", source),
                                        description=_name(
                                            std, "description", source
                                        ),
                                    )
                                    for std in _list(unit, "standard", source)
                                ),
                            )
                            for unit in _list(grade, "unit", source)
                        ),
                    )
                    for grade in _list(subject, "grade", source)
                ),
            )
            for subject in _list(table, "subject", source)
        ),
    )


def iter_standards(
    catalog: Sequence[Curriculum],
) -> Iterator[StandardEntry]:
    for curriculum in catalog:
        for subject in curriculum.subjects:
            for grade in subject.grades:
                for unit in grade.units:
                    for standard in unit.standards:
                        yield StandardEntry(
                            curriculum=curriculum.name,
                            subject=subject.name,
                            grade=grade.grade,
                            unit=unit.name,
                            standard=standard,
                        )


def _squash(text: str) -> str:
    return _WHITESPACE.sub("", text).lower()


def search_standards(
    catalog: Sequence[Curriculum],
    query: str,
    *,
    subject: Optional[str] = None,
) -> list[StandardEntry]:
    """Match ``query`` against descriptions and unit names.

    Whitespace and case are ignored on both sides, so "태양 계" finds "태양계".
    """

    needle = _squash(query)
    if not needle:
        return []
    return [
        entry
        for entry in iter_standards(catalog)
        if (subject is None or entry.subject == subject)
        and (
            needle in _squash(entry.description + entry.unit)
            or needle in _squash(entry.id)
        )
    ]


def find_standard(
    catalog: Sequence[Curriculum], standard_id: str
) -> Optional[StandardEntry]:
    wanted = standard_id.strip()
    bracketed = wanted if wanted.startswith("[") else f"[{wanted}]"
    for entry in iter_standards(catalog):
        if entry.id in (wanted, bracketed):
            return entry
    return None
