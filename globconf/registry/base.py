"""The registry client contract."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Protocol


class PackageRegistry(Protocol):
    """Key/value directory service used to discover providers."""

    def register(self, package: str, location: Path) -> None:
        """Record ``location`` for ``package``; the same location twice is a no-op."""

    def resolve(self, package: str) -> Path | None:
        """Return the registered location, or None when not registered."""

    def unregister(self, package: str) -> None:
        """Forget every location recorded for ``package``."""

    def packages(self) -> dict[str, Path]:
        """All resolvable packages and their locations."""


def entry_name(location: Path) -> str:
    """Stable per-location entry name, the MD5 of the location string."""
    return hashlib.md5(str(location).encode("utf-8")).hexdigest()
