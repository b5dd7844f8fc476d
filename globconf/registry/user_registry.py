"""File-based user package registry.

Layout::

    ~/.globconf/packages/<package>/<md5 of location>

Each entry file holds the absolute location of a provider directory. Entries
whose directory no longer exists are ignored on lookup.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Mapping
from pathlib import Path

from globconf.errors import HomeNotSet, RegistrationConflict
from globconf.registry.base import entry_name
from globconf.settings import Settings

logger = logging.getLogger(__name__)

PACKAGES_DIR = "packages"


def user_packages_dir(settings: Settings, environ: Mapping[str, str], system: str | None = None) -> Path:
    """Root of the user package registry, derived from HOME."""
    home = environ.get("HOME")
    if not home:
        raise HomeNotSet("HOME environment variable is not set; cannot locate the package registry.", system)
    return Path(home) / settings.registry_dir_name / PACKAGES_DIR


class UserPackageRegistry:
    """Package registry stored as plain files under the user's home."""

    def __init__(self, packages_dir: str | Path):
        self.packages_dir = Path(packages_dir)

    @classmethod
    def from_environ(cls, settings: Settings, environ: Mapping[str, str]) -> "UserPackageRegistry":
        return cls(user_packages_dir(settings, environ))

    def package_dir(self, package: str) -> Path:
        return self.packages_dir / package

    def register(self, package: str, location: Path) -> None:
        location = Path(location).resolve()
        existing = self.resolve(package)
        if existing is not None:
            if existing == location:
                return
            raise RegistrationConflict(
                f"Package '{package}' is already registered at '{existing}', "
                f"cannot register '{location}'."
            )

        package_dir = self.package_dir(package)
        package_dir.mkdir(parents=True, exist_ok=True)
        (package_dir / entry_name(location)).write_text(str(location), encoding="utf-8")
        logger.debug("Registered %s -> %s", package, location)

    def resolve(self, package: str) -> Path | None:
        package_dir = self.package_dir(package)
        if not package_dir.is_dir():
            return None
        for entry in sorted(package_dir.iterdir()):
            if not entry.is_file():
                continue
            location = Path(entry.read_text(encoding="utf-8").strip())
            if location.is_dir():
                return location
        return None

    def unregister(self, package: str) -> None:
        package_dir = self.package_dir(package)
        if package_dir.exists():
            shutil.rmtree(package_dir)

    def packages(self) -> dict[str, Path]:
        if not self.packages_dir.is_dir():
            return {}
        found = {}
        for package_dir in sorted(self.packages_dir.iterdir()):
            if not package_dir.is_dir():
                continue
            location = self.resolve(package_dir.name)
            if location is not None:
                found[package_dir.name] = location
        return found
