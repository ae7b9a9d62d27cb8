"""Build ``TutorContext`` objects rooted in a temporary workspace."""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any, Optional

from study_tutor.config import TutorConfig, default_config
from study_tutor.context import TutorContext
from study_tutor.core.store import KeyValueStore
from study_tutor.core.workspace import ensure_workspace


def make_context(
    root: Path,
    *,
    client: Any = None,
    config: Optional[TutorConfig] = None,
    **quiz_overrides: Any,
) -> TutorContext:
    layout = ensure_workspace(path=root / "workspace")
    config = config or default_config()
    if quiz_overrides:
        config = dataclasses.replace(
            config, quiz=dataclasses.replace(config.quiz, **quiz_overrides)
        )
    return TutorContext(
        config=config,
        layout=layout,
        store=KeyValueStore(layout.store_file),
        client=client,
    )
