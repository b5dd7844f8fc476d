"""Package registry backed by the Windows registry (HKEY_CURRENT_USER).

Each package is a key under ``Software\\<Vendor>\\<Tool>\\Packages`` whose
string values hold provider locations, named by the MD5 of the location.
"""

from __future__ import annotations

import logging
from pathlib import Path

from globconf.errors import RegistrationConflict
from globconf.registry.base import entry_name

logger = logging.getLogger(__name__)


class WindowsPackageRegistry:
    """Package registry stored under HKCU. Only importable on Windows hosts."""

    def __init__(self, packages_key: str):
        import winreg

        self._winreg = winreg
        self.packages_key = packages_key

    def _key_path(self, package: str) -> str:
        return f"{self.packages_key}\\{package}"

    def _values(self, key) -> list[tuple[str, str]]:
        values = []
        index = 0
        while True:
            try:
                name, data, _ = self._winreg.EnumValue(key, index)
            except OSError:
                break
            values.append((name, data))
            index += 1
        return values

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

        winreg = self._winreg
        with winreg.CreateKey(winreg.HKEY_CURRENT_USER, self._key_path(package)) as key:
            winreg.SetValueEx(key, entry_name(location), 0, winreg.REG_SZ, str(location))
        logger.debug("Registered %s -> %s", package, location)

    def resolve(self, package: str) -> Path | None:
        winreg = self._winreg
        try:
            key = winreg.OpenKey(winreg.HKEY_CURRENT_USER, self._key_path(package))
        except FileNotFoundError:
            return None
        with key:
            for _, data in sorted(self._values(key)):
                location = Path(str(data))
                if location.is_dir():
                    return location
        return None

    def unregister(self, package: str) -> None:
        winreg = self._winreg
        try:
            winreg.DeleteKey(winreg.HKEY_CURRENT_USER, self._key_path(package))
        except FileNotFoundError:
            pass

    def packages(self) -> dict[str, Path]:
        winreg = self._winreg
        try:
            root = winreg.OpenKey(winreg.HKEY_CURRENT_USER, self.packages_key)
        except FileNotFoundError:
            return {}
        names = []
        with root:
            index = 0
            while True:
                try:
                    names.append(winreg.EnumKey(root, index))
                except OSError:
                    break
                index += 1
        found = {}
        for name in sorted(names):
            location = self.resolve(name)
            if location is not None:
                found[name] = location
        return found
