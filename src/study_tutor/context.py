"""Runtime context passed explicitly to everything that talks to the AI."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from openai import OpenAI

from study_tutor.config import TutorConfig, load_config, resolve_config_path
from study_tutor.core.ai import ClientFactory, load_client, resolve_api_key
from study_tutor.core.store import API_KEY, KeyValueStore
from study_tutor.core.workspace import WorkspaceLayout, ensure_workspace
from study_tutor.errors import CredentialError

__all__ = ["TutorContext", "build_context"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TutorContext:
    """Configuration, workspace, store and (optionally) an API client."""

    config: TutorConfig
    layout: WorkspaceLayout
    store: KeyValueStore
    client: Optional[Any] = None

    def require_client(self) -> Any:
        if self.client is None:
            raise CredentialError(
                "No API key configured. Run 'tutor key set <KEY>' first."
            )
        return self.client


def build_context(
    *,
    config_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
    with_client: bool = True,
    client_factory: ClientFactory = OpenAI,
) -> TutorContext:
    """Resolve the workspace, load configuration and create the client.

    With ``with_client`` the API key must resolve, otherwise
    :class:`CredentialError` is raised before any request is made.
    """

    layout = ensure_workspace(env=env)
    resolved = resolve_config_path(
        layout.config_file, explicit_path=config_path, env=env
    )
    config = load_config(resolved, required=config_path is not None)
    store = KeyValueStore(layout.store_file)
    client = None
    if with_client:
        client = load_client(
            resolve_api_key(store.get(API_KEY)),
            base_url=config.openai.api_base,
            timeout=config.openai.request_timeout_seconds,
            factory=client_factory,
        )
        logger.debug("client ready", extra={"model": config.openai.chat_model})
    return TutorContext(
        config=config, layout=layout, store=store, client=client
    )
