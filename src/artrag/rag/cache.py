"""Process-lifetime answer cache keyed by normalized query text."""

from __future__ import annotations

from artrag.models import RagResponse


def normalize_query(query: str) -> str:
    return query.strip().lower()


class ResultCache:
    """In-memory mapping from normalized query to a finished RagResponse.

    Created once per process and never persisted. There is no eviction and
    no locking: each call touches a single dict key, and two identical
    in-flight queries at worst both generate and write equivalent values.
    """

    def __init__(self) -> None:
        self._entries: dict[str, RagResponse] = {}

    def get(self, query: str) -> RagResponse | None:
        return self._entries.get(normalize_query(query))

    def set(self, query: str, response: RagResponse) -> None:
        self._entries[normalize_query(query)] = response

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, query: object) -> bool:
        return isinstance(query, str) and normalize_query(query) in self._entries
