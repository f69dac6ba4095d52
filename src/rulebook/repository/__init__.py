"""Rule repository: scan a rules directory, cache it, answer queries.

Layout:
    keys.py     (group, file name) -> rule key
    scanner.py  rules directory -> Snapshot
    cache.py    current Snapshot + TTL / invalidation policy
    query.py    list_keys() / get(key) / describe()
"""

from rulebook.repository.cache import CACHE_TTL_SECONDS, RepositoryCache
from rulebook.repository.errors import (
    GroupReadFailure,
    RootNotFound,
    RulebookError,
    UnknownKey,
)
from rulebook.repository.keys import ALL_KEY, derive_key
from rulebook.repository.models import Entry, ScanResult, Snapshot
from rulebook.repository.query import RuleQuery
from rulebook.repository.scanner import scan

__all__ = [
    "ALL_KEY",
    "CACHE_TTL_SECONDS",
    "Entry",
    "GroupReadFailure",
    "RepositoryCache",
    "RootNotFound",
    "RuleQuery",
    "RulebookError",
    "ScanResult",
    "Snapshot",
    "UnknownKey",
    "derive_key",
    "scan",
]
