"""Registry clients — where a System's provider can be found.

The registry maps a package name (``<prefix><SYSTEM>``) to the directory
holding the System's provider file:
- Unix-like hosts: one directory per package under ``~/.globconf/packages``
- Windows hosts: values under ``HKCU\\Software\\<Vendor>\\<Tool>\\Packages``
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping

from globconf.registry.base import PackageRegistry
from globconf.registry.user_registry import UserPackageRegistry
from globconf.settings import Settings


def open_registry(
    settings: Settings,
    environ: Mapping[str, str] | None = None,
    platform: str | None = None,
) -> PackageRegistry:
    """Return the registry client for the current host."""
    environ = os.environ if environ is None else environ
    platform = platform or sys.platform

    if platform in ("win32", "cygwin"):
        from globconf.registry.windows_registry import WindowsPackageRegistry

        return WindowsPackageRegistry(settings.windows_packages_key)

    return UserPackageRegistry.from_environ(settings, environ)


__all__ = ["PackageRegistry", "UserPackageRegistry", "open_registry"]
