"""Installer — make a System's provider discoverable through the registry.

Installation records the provider's directory under the package name
``<prefix><SYSTEM>``. It is always explicit: the provider run must carry the
install-as-symlink switch and finish with
:func:`finalize_install_if_requested`.

Project-mode invocations register directly, but only when the invoking
project passes the allow-install capability. Script-mode invocations register
directly when the host allows it (``direct_script_registration``); otherwise
the install is escalated to a throwaway install project run in a child
process, and every file that project leaves behind is removed afterwards.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from pathlib import Path
from string import Template

import yaml

from globconf.context import Context, InvocationMode
from globconf.errors import (
    FilenameMismatch,
    InstallNotPermitted,
    InstallSubprocessFailed,
    InvalidProvider,
    InvalidSettings,
    RegistrationConflict,
)
from globconf.provider import provider_stem

logger = logging.getLogger(__name__)

PROJECT_FILE = "globconf_project.yaml"
PROJECT_SETTINGS_FILE = "globconf_project_settings.yaml"


def finalize_install_if_requested(ctx: Context) -> bool:
    """Second phase of a provider run: install if the switch asks for it.

    Returns True when an install ran or was already in place.
    """
    if not ctx.switches.install_as_symlink:
        return False
    if ctx.install_completed:
        return True
    install(ctx)
    return True


def install(ctx: Context) -> None:
    """Register the provider of ``ctx`` under its package name."""
    system = ctx.require_system()
    if ctx.install_completed:
        return
    if ctx.provider_path is None:
        raise InvalidProvider("Install requires a provider file.", system)

    package = ctx.package_name
    location = ctx.provider_path.parent
    logger.info(ctx.message(f"Installing configuration for {system} as symlink"))

    existing = ctx.registry.resolve(package)
    if existing is not None:
        if Path(existing).resolve() == location:
            logger.info(ctx.message(f"Configuration is already installed at '{location}'."))
            ctx.install_completed = True
            return
        raise RegistrationConflict(
            f"Package '{package}' is already installed from '{existing}'. "
            f"Uninstall it before installing from '{location}'.",
            system,
        )

    if ctx.invocation is InvocationMode.PROJECT:
        if not ctx.switches.allow_install:
            raise InstallNotPermitted(
                "Installing from a project requires the allow-install capability.",
                system,
            )
        _register(ctx, package, location)
    else:
        check_provider_filename(ctx)
        if ctx.settings.direct_script_registration:
            _register(ctx, package, location)
        else:
            install_via_project(ctx)

    ctx.install_completed = True


def check_provider_filename(ctx: Context) -> None:
    """The provider file must be named after the package it installs."""
    expected = provider_stem(ctx.settings, ctx.require_system())
    actual = ctx.provider_path.stem
    if actual != expected:
        raise FilenameMismatch(
            f"Provider file '{ctx.provider_path.name}' does not match the expected "
            f"name '{expected}'. Rename the file so the package can be found.",
            ctx.system_name,
        )


def _register(ctx: Context, package: str, location: Path) -> None:
    ctx.registry.register(package, location)
    logger.info(ctx.message(f"Registered {package} -> {location}"))


def render_install_project(ctx: Context) -> str:
    """Fill the install project template for the provider of ``ctx``."""
    path = ctx.settings.template_path
    if not path.is_file():
        raise InvalidSettings(f"Install project template not found: {path}", ctx.system_name)
    template = Template(path.read_text(encoding="utf-8"))
    return template.safe_substitute(
        system_name=ctx.require_system(),
        package_name=ctx.package_name,
        provider_file=ctx.provider_path.name,
    )


def install_via_project(ctx: Context) -> None:
    """Escalate an install to a child process running in project mode.

    The install project and its settings file are written next to the
    provider. Whatever appears in that directory during the escalation is
    deleted afterwards, whether or not the child succeeded.
    """
    directory = ctx.provider_path.parent
    before = _snapshot(directory)

    try:
        (directory / PROJECT_FILE).write_text(render_install_project(ctx), encoding="utf-8")
        with open(directory / PROJECT_SETTINGS_FILE, "w") as f:
            yaml.safe_dump(_child_settings(ctx), f)

        command = [
            sys.executable,
            "-m",
            "globconf.cli",
            "--settings",
            str(directory / PROJECT_SETTINGS_FILE),
            "project",
            str(directory),
            "--install-as-symlink",
            "--allow-install",
        ]
        logger.debug(ctx.message(f"Running install project: {' '.join(command)}"))
        proc = subprocess.run(
            command,
            cwd=directory,
            env=dict(ctx.environ),
            capture_output=True,
            text=True,
        )
    finally:
        _remove_new_entries(directory, before)

    if proc.returncode != 0:
        raise InstallSubprocessFailed(
            f"Install project failed with exit code {proc.returncode}:\n"
            f"{proc.stderr}{proc.stdout}",
            ctx.system_name,
            returncode=proc.returncode,
            stdout=proc.stdout,
            stderr=proc.stderr,
        )


def _child_settings(ctx: Context) -> dict:
    # the child runs in the provider directory and only registers
    settings = ctx.settings.to_dict()
    settings["install_project_template"] = str(ctx.settings.template_path.resolve())
    settings["cache_file"] = None
    return settings


def _snapshot(directory: Path) -> set[str]:
    return {entry.name for entry in directory.iterdir()}


def _remove_new_entries(directory: Path, before: set[str]) -> None:
    for entry in directory.iterdir():
        if entry.name in before:
            continue
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
