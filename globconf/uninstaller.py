"""Uninstaller — remove a System's registration.

Only a provider run in script mode with the uninstall switch may uninstall.
The registration is removed as a single unit: one registry key on Windows,
one package directory elsewhere.
"""

from __future__ import annotations

import logging
import shutil
import subprocess

from globconf.context import Context, InvocationMode
from globconf.errors import (
    UninstallFailed,
    UninstallNotPermitted,
    UnsupportedPlatform,
)
from globconf.registry.user_registry import user_packages_dir

logger = logging.getLogger(__name__)

WINDOWS_PLATFORMS = ("win32", "cygwin")
POSIX_PLATFORM_PREFIXES = ("linux", "darwin", "freebsd", "openbsd", "netbsd")


def uninstall(ctx: Context) -> None:
    system = ctx.require_system()
    if ctx.invocation is not InvocationMode.SCRIPT or not ctx.switches.uninstall:
        raise UninstallNotPermitted(
            "Uninstall is only possible when running the provider file directly "
            "with the uninstall switch.",
            system,
        )

    if ctx.platform in WINDOWS_PLATFORMS:
        _uninstall_windows(ctx)
    elif ctx.platform.startswith(POSIX_PLATFORM_PREFIXES):
        _uninstall_posix(ctx)
    else:
        raise UnsupportedPlatform(f"Uninstall is not supported on platform '{ctx.platform}'.", system)


def _uninstall_windows(ctx: Context) -> None:
    package = ctx.package_name
    key = f"HKCU\\{ctx.settings.windows_packages_key}\\{package}"

    query = subprocess.run(["reg", "query", key], capture_output=True, text=True)
    if query.returncode != 0:
        logger.warning(ctx.message(f"Package '{package}' is not installed, nothing to uninstall."))
        return

    delete = subprocess.run(["reg", "delete", key, "/f"], capture_output=True, text=True)
    if delete.returncode != 0:
        raise UninstallFailed(
            f"Failed to delete registry key '{key}': {delete.stderr}{delete.stdout}",
            ctx.system_name,
        )
    logger.info(ctx.message(f"Uninstalled {package}"))


def _uninstall_posix(ctx: Context) -> None:
    package = ctx.package_name
    package_dir = user_packages_dir(ctx.settings, ctx.environ, ctx.system_name) / package

    if ctx.registry.resolve(package) is None:
        logger.warning(ctx.message(f"Package '{package}' is not installed, nothing to uninstall."))
        return

    try:
        shutil.rmtree(package_dir)
    except OSError as e:
        raise UninstallFailed(f"Failed to remove '{package_dir}': {e}", ctx.system_name)
    logger.info(ctx.message(f"Uninstalled {package}"))
