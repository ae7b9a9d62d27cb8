"""Quiz result history persisted under the ``study_history`` store key."""

from __future__ import annotations

import logging
from typing import Optional

from study_tutor.core.store import STUDY_HISTORY, KeyValueStore, StoreError

from .models import QuizResult

logger = logging.getLogger(__name__)


class HistoryStore:
    """Append-only list of :class:`QuizResult` records, oldest first."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def list(self) -> list[QuizResult]:
        raw = self._store.get(STUDY_HISTORY, [])
        if not isinstance(raw, list):
            raise StoreError(f"'{STUDY_HISTORY}' must be a list of results.")
        results: list[QuizResult] = []
        for item in raw:
            try:
                results.append(QuizResult.from_dict(item))
            except (ValueError, TypeError, AttributeError) as exc:
                logger.warning(
                    "skipping unreadable history record",
                    extra={"error": str(exc)},
                )
        return results

    def append(self, result: QuizResult) -> None:
        raw = self._raw()
        raw.append(result.to_dict())
        self._store.set(STUDY_HISTORY, raw)
        logger.info(
            "quiz result saved",
            extra={"result_id": result.id, "score": result.score},
        )

    def delete(self, result_id: str) -> bool:
        raw = self._raw()
        kept = [
            item
            for item in raw
            if not (isinstance(item, dict) and item.get("id") == result_id)
        ]
        if len(kept) == len(raw):
            return False
        self._store.set(STUDY_HISTORY, kept)
        logger.info("quiz result deleted", extra={"result_id": result_id})
        return True

    def get(self, result_id: str) -> Optional[QuizResult]:
        for result in self.list():
            if result.id == result_id:
                return result
        return None

    def _raw(self) -> list:
        raw = self._store.get(STUDY_HISTORY, [])
        if not isinstance(raw, list):
            raise StoreError(f"'{STUDY_HISTORY}' must be a list of results.")
        return list(raw)
