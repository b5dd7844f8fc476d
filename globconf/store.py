"""Variable store — identity to value entries for one invocation.

Entries are kept in memory and, when a cache file is configured, mirrored to
JSON so they survive across invocations the way build-tool cache entries do.
An identity is written once; the store never replaces an existing value.
"""

from __future__ import annotations

import json
from pathlib import Path

from globconf.errors import InvalidCache


class VariableStore:
    """First-write-wins mapping of ``SYSTEM_KEY`` identities to values."""

    def __init__(self, cache_file: str | Path | None = None):
        self.cache_file = Path(cache_file) if cache_file else None
        self._entries: dict[str, str] = self._load()

    def __contains__(self, identity: str) -> bool:
        return identity in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, identity: str) -> str | None:
        return self._entries.get(identity)

    def define(self, identity: str, value: str) -> bool:
        """Store a value unless the identity already exists.

        Returns True when the entry was created.
        """
        if identity in self._entries:
            return False
        self._entries[identity] = value
        self._save()
        return True

    def items(self) -> list[tuple[str, str]]:
        return sorted(self._entries.items())

    def _load(self) -> dict[str, str]:
        if not (self.cache_file and self.cache_file.exists()):
            return {}
        try:
            with open(self.cache_file) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidCache(f"Invalid JSON in cache file {self.cache_file}: {e}")

        if not isinstance(data, dict) or not all(isinstance(v, str) for v in data.values()):
            raise InvalidCache(
                f"Cache file {self.cache_file} must contain an object of string values. "
                "Delete it to start over."
            )
        return data

    def _save(self):
        if not self.cache_file:
            return
        self.cache_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.cache_file, "w") as f:
            json.dump(self._entries, f, indent=2)
