"""
Local Review Repository — single-user review records in a JSON file.

Implements ReviewStateRepository on top of a JSON document keyed by word ID.
"""

import json
import logging
from pathlib import Path
from typing import Any

from wordwise.domain.review.ports import RepositoryError, ReviewStateRepository

logger = logging.getLogger(__name__)


class LocalReviewRepository(ReviewStateRepository):
    def __init__(self, path: Path):
        self.path = Path(path)

    async def get(self, word_id: str) -> dict[str, Any] | None:
        return self._read().get(word_id)

    async def get_many(self, word_ids: list[str]) -> dict[str, dict[str, Any]]:
        records = self._read()
        return {wid: records[wid] for wid in word_ids if wid in records}

    async def set(self, word_id: str, record: dict[str, Any]) -> None:
        records = self._read()
        records[word_id] = record
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(records, indent=2), encoding="utf-8")
        except OSError as e:
            raise RepositoryError(f"Could not write {self.path}: {e}") from e

    def _read(self) -> dict[str, dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise RepositoryError(f"Could not read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise RepositoryError(f"{self.path} does not contain a JSON object")
        return data
