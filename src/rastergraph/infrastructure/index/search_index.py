from __future__ import annotations

import copy
from typing import Any, Protocol


class SearchIndex(Protocol):
    def add(self, doc_id: str, document: dict[str, Any]) -> None: ...

    def remove(self, doc_id: str) -> None: ...

    def get(self, doc_id: str) -> dict[str, Any] | None: ...


class MemorySearchIndex:
    """Keeps the latest document per id; stands in for a Solr core."""

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}

    def add(self, doc_id: str, document: dict[str, Any]) -> None:
        self._documents[doc_id] = copy.deepcopy(document)

    def remove(self, doc_id: str) -> None:
        self._documents.pop(doc_id, None)

    def get(self, doc_id: str) -> dict[str, Any] | None:
        document = self._documents.get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    def search(self, field_name: str, value: str) -> list[str]:
        matches: list[str] = []
        for doc_id, document in self._documents.items():
            stored = document.get(field_name)
            values = stored if isinstance(stored, list) else [stored]
            if value in values:
                matches.append(doc_id)
        return matches
