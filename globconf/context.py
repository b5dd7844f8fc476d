"""Execution context — everything one invocation knows about itself.

A ``Context`` is built once per entry point (provider run, install project,
consumer session) and passed to every operation. Nested provider loads get a
child context that shares the store and registry but has its own session
state and execution mode.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from globconf.errors import (
    InstallUninstallConflict,
    SystemNotDeclared,
    format_message,
)
from globconf.registry import PackageRegistry, open_registry
from globconf.settings import Settings, load_settings
from globconf.store import VariableStore


class ExecutionMode(str, Enum):
    """Who is calling: the provider declaring a System, or a consumer of it."""

    PROVIDER = "provider"
    CONSUMER = "consumer"


class InvocationMode(str, Enum):
    """How the host was started.

    SCRIPT runs a single provider file directly. PROJECT processes a project
    directory and may register packages when explicitly allowed.
    """

    SCRIPT = "script"
    PROJECT = "project"


@dataclass(frozen=True)
class Switches:
    """Command-line switches consumed by the install lifecycle."""

    install_as_symlink: bool = False
    uninstall: bool = False
    allow_install: bool = False

    def __post_init__(self):
        if self.install_as_symlink and self.uninstall:
            raise InstallUninstallConflict(
                "install-as-symlink and uninstall cannot be requested together."
            )


@dataclass
class SessionState:
    """Whether this context has read or written variables yet."""

    has_called_get: bool = False
    has_called_set: bool = False

    @property
    def phase(self) -> str:
        if self.has_called_set:
            return "writing"
        if self.has_called_get:
            return "reading"
        return "fresh"


@dataclass
class Context:
    settings: Settings
    registry: PackageRegistry
    store: VariableStore
    mode: ExecutionMode = ExecutionMode.CONSUMER
    invocation: InvocationMode = InvocationMode.SCRIPT
    switches: Switches = field(default_factory=Switches)
    provider_path: Path | None = None
    environ: Mapping[str, str] = field(default_factory=lambda: os.environ)
    platform: str = sys.platform

    system_name: str = ""
    state: SessionState = field(default_factory=SessionState)
    install_completed: bool = False
    loaded_systems: set[str] = field(default_factory=set)

    @classmethod
    def create(
        cls,
        settings: Settings | None = None,
        *,
        mode: ExecutionMode = ExecutionMode.CONSUMER,
        invocation: InvocationMode = InvocationMode.SCRIPT,
        switches: Switches | None = None,
        provider_path: str | Path | None = None,
        registry: PackageRegistry | None = None,
        store: VariableStore | None = None,
        environ: Mapping[str, str] | None = None,
        platform: str | None = None,
    ) -> "Context":
        """Build a context, filling collaborators from settings and the host."""
        environ = os.environ if environ is None else environ
        platform = platform or sys.platform
        settings = settings or load_settings(environ=environ)
        if registry is None:
            registry = open_registry(settings, environ, platform)
        if store is None:
            store = VariableStore(settings.cache_file)
        return cls(
            settings=settings,
            registry=registry,
            store=store,
            mode=mode,
            invocation=invocation,
            switches=switches or Switches(),
            provider_path=Path(provider_path).resolve() if provider_path else None,
            environ=environ,
            platform=platform,
        )

    @property
    def package_name(self) -> str:
        return self.settings.package_name(self.require_system())

    def require_system(self) -> str:
        if not self.system_name:
            raise SystemNotDeclared(
                "System name is not set. Call set_system_name before get or set."
            )
        return self.system_name

    def for_provider(self, provider_path: Path) -> "Context":
        """Child context used while loading a provider on behalf of this one."""
        return Context(
            settings=self.settings,
            registry=self.registry,
            store=self.store,
            mode=ExecutionMode.PROVIDER,
            invocation=self.invocation,
            provider_path=Path(provider_path).resolve(),
            environ=self.environ,
            platform=self.platform,
            loaded_systems=self.loaded_systems,
        )

    def message(self, text: str) -> str:
        return format_message(text, self.system_name)
