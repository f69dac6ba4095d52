"""Query surface — the only calls the outer server makes into the repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rulebook.repository.errors import UnknownKey
from rulebook.repository.keys import ALL_KEY

if TYPE_CHECKING:
    from rulebook.repository.cache import RepositoryCache

SECTION_DELIMITER = "\n\n---\n\n"


class RuleQuery:
    """Read-only view over a RepositoryCache."""

    def __init__(self, cache: RepositoryCache) -> None:
        self._cache = cache

    def list_keys(self) -> list[str]:
        """All rule keys in the current snapshot, plus ALL."""
        return self._cache.read().keys() + [ALL_KEY]

    def get(self, key: str) -> str:
        """Content for one key, or every entry concatenated for ALL.

        Raises UnknownKey if the key is not in the current snapshot.
        """
        snapshot = self._cache.read()
        if key == ALL_KEY:
            return SECTION_DELIMITER.join(
                f"## {entry.key}\n\n{entry.content}" for entry in snapshot.entries.values()
            )
        entry = snapshot.entries.get(key)
        if entry is None:
            raise UnknownKey(key)
        return entry.content

    def describe(self) -> dict[str, str]:
        """Map each key to its document title."""
        return {key: entry.title for key, entry in self._cache.read().entries.items()}
