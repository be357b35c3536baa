"""The custom problem bank: user-saved and AI-generated problems."""
import json
import logging
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from backend.catalog.models import Problem
from backend.config import STORAGE_KEY

from .storage import LocalStorage

logger = logging.getLogger(__name__)

_PROBLEM_LIST = TypeAdapter(list[Problem])


class CustomBank:
    """Ordered problem list, newest first, written through to storage on every change."""

    def __init__(self, storage: LocalStorage, key: str = STORAGE_KEY):
        self._storage = storage
        self._key = key
        self._problems: list[Problem] = []

    @property
    def problems(self) -> list[Problem]:
        return list(self._problems)

    def __len__(self) -> int:
        return len(self._problems)

    def __contains__(self, problem_id: object) -> bool:
        return any(p.id == problem_id for p in self._problems)

    def get(self, problem_id: str) -> Optional[Problem]:
        for p in self._problems:
            if p.id == problem_id:
                return p
        return None

    def load(self) -> list[Problem]:
        """Read the bank from storage. Missing or corrupt data yields an empty bank."""
        raw = self._storage.get_item(self._key)
        if raw is None:
            self._problems = []
            return []
        try:
            self._problems = _PROBLEM_LIST.validate_json(raw)
        except ValidationError as e:
            logger.warning(
                "Failed to load custom problems from %r (%d errors); starting empty",
                self._key,
                e.error_count(),
            )
            self._problems = []
        else:
            logger.info("Loaded %d custom problems", len(self._problems))
        return list(self._problems)

    def save(self, problem: Problem) -> bool:
        """Prepend a problem unless one with the same id exists. Returns True if added."""
        if problem.id in self:
            return False
        self._problems.insert(0, problem)
        self._persist()
        return True

    def clear(self) -> None:
        self._problems = []
        self._persist()

    def _persist(self) -> None:
        payload = [p.model_dump(mode="json", exclude_none=True) for p in self._problems]
        self._storage.set_item(self._key, json.dumps(payload))
