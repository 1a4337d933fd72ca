"""
In-memory search index adapter.

Implements the search repository protocol for environments without a search cluster. Documents are
plain dicts keyed by their `id`; filters follow the metadata stores' equality semantics.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Any

from drive_backend.infra.repositories import matches


class InMemorySearchIndex:
    """In-memory index with naïve filter matching."""

    def __init__(self, name: str) -> None:
        """Initialize an empty index."""
        self.name = name
        self._docs: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def index(self, doc: Any) -> None:
        """
        Indexe (ou remplace) un document.

        Args:
            doc: Modèle pydantic ou dict portant un champ `id`.
        """
        payload = doc.model_dump() if hasattr(doc, "model_dump") else dict(doc)
        with self._lock:
            self._docs[str(payload["id"])] = payload

    def search(self, filters: dict[str, Any]) -> list[dict[str, Any]]:
        """Retourne les documents correspondant aux filtres."""
        with self._lock:
            return [dict(d) for d in self._docs.values() if matches(d, filters)]

    def remove(self, entities: Iterable[Any]) -> None:
        """Retire les documents des entités fournies (absents ignorés)."""
        with self._lock:
            for entity in entities:
                self._docs.pop(str(getattr(entity, "id", entity)), None)

    def __len__(self) -> int:
        return len(self._docs)
