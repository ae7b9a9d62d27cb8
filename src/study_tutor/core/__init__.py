"""Core shared helpers for study_tutor subcommands."""

from __future__ import annotations

from .ai import load_client, resolve_api_key, translate_error, validate_api_key
from .config import ConfigError, load_toml, merge_defaults, write_toml_template
from .logging import CommandFields, JsonLogFormatter, configure_logger
from .store import KeyValueStore, StoreError
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "load_client",
    "resolve_api_key",
    "translate_error",
    "validate_api_key",
    "ConfigError",
    "load_toml",
    "merge_defaults",
    "write_toml_template",
    "CommandFields",
    "JsonLogFormatter",
    "configure_logger",
    "KeyValueStore",
    "StoreError",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
]
