"""Curriculum catalog of achievement standards."""

from __future__ import annotations

from .catalog import (
    CatalogError,
    StandardEntry,
    find_standard,
    iter_standards,
    load_catalog,
    search_standards,
)

__all__ = [
    "CatalogError",
    "StandardEntry",
    "find_standard",
    "iter_standards",
    "load_catalog",
    "search_standards",
]
