"""Provider files — the single source of a System's variables.

A provider is named ``<prefix><SYSTEM>Config`` and comes in two flavours:

Python, with a ``configure`` function receiving a :class:`Session`::

    def configure(conf):
        conf.set_system_name("MQTTCOMM")
        conf.set("OPENSSL_URI", "https://example.com/openssl.tar.gz")

YAML, for plain declarations::

    system: MQTTCOMM
    variables:
      OPENSSL_URI: https://example.com/openssl.tar.gz
"""

from __future__ import annotations

import logging
import runpy
from pathlib import Path

import yaml

from globconf.context import Context, ExecutionMode, InvocationMode, Switches
from globconf.errors import InvalidProvider, NotFound, SystemNameConflict
from globconf.identifiers import normalize
from globconf.protocol import Session
from globconf.settings import Settings

logger = logging.getLogger(__name__)

PROVIDER_SUFFIXES = (".py", ".yaml", ".yml")


def provider_stem(settings: Settings, system_name: str) -> str:
    """Expected file name of a provider, without suffix."""
    return f"{settings.package_name(normalize(system_name, 'system name'))}Config"


def find_provider_file(location: Path, package: str) -> Path | None:
    """Find ``<package>Config.<suffix>`` in a registered location."""
    for suffix in PROVIDER_SUFFIXES:
        candidate = Path(location) / f"{package}Config{suffix}"
        if candidate.is_file():
            return candidate
    return None


def execute_provider(ctx: Context, path: Path) -> None:
    """Run a provider file against a provider-mode context."""
    path = Path(path)
    session = Session(ctx)

    if path.suffix == ".py":
        namespace = runpy.run_path(str(path), run_name="__globconf_provider__")
        configure = namespace.get("configure")
        if not callable(configure):
            raise InvalidProvider(f"Provider {path} does not define a configure(conf) function.")
        configure(session)
    elif path.suffix in (".yaml", ".yml"):
        _execute_yaml_provider(session, path)
    else:
        raise InvalidProvider(
            f"Unsupported provider file {path}. Expected one of: {', '.join(PROVIDER_SUFFIXES)}"
        )


def _execute_yaml_provider(session: Session, path: Path) -> None:
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InvalidProvider(f"Invalid YAML in provider {path}: {e}")

    if not isinstance(data, dict) or "system" not in data:
        raise InvalidProvider(f"Provider {path} must be a mapping with a 'system' key.")

    session.set_system_name(data["system"])

    variables = data.get("variables") or {}
    if not isinstance(variables, dict):
        raise InvalidProvider(f"'variables' in provider {path} must be a mapping.", session.system_name)

    for key, value in variables.items():
        if not isinstance(value, str):
            raise InvalidProvider(
                f"Value of '{key}' in provider {path} must be a string; quote it in the YAML.",
                session.system_name,
            )
        session.set(key, value)


def require_installed(ctx: Context) -> Path:
    """Return the registered location of the declared System or raise NotFound."""
    system = ctx.require_system()
    location = ctx.registry.resolve(ctx.package_name)
    if location is None:
        raise NotFound(
            f"Cannot find configuration for system '{system}'. Is the configuration installed?",
            system,
        )
    return location


def load_system(ctx: Context) -> None:
    """Locate the declared System through the registry and load its provider.

    The provider runs in a child context that writes into ``ctx.store``.
    Each System is loaded at most once per context.
    """
    system = ctx.require_system()
    if system in ctx.loaded_systems:
        return

    package = ctx.package_name
    location = require_installed(ctx)

    path = find_provider_file(location, package)
    if path is None:
        raise NotFound(
            f"Configuration for system '{system}' is registered at '{location}' "
            f"but no {package}Config file exists there.",
            system,
        )

    logger.debug(ctx.message(f"Loading provider {path}"))
    provider_ctx = ctx.for_provider(path)
    execute_provider(provider_ctx, path)
    if provider_ctx.system_name != system:
        raise SystemNameConflict(
            f"Provider {path} declares system '{provider_ctx.system_name}', expected '{system}'.",
            system,
        )
    ctx.loaded_systems.add(system)


def run_provider(
    path: str | Path,
    switches: Switches | None = None,
    settings: Settings | None = None,
    invocation: InvocationMode = InvocationMode.SCRIPT,
    expected_system: str | None = None,
    **context_kwargs,
) -> Context:
    """Run a provider file as the entry point of an invocation.

    After the provider body the install lifecycle runs: uninstall when that
    switch is set, otherwise any requested install is finalized.
    """
    from globconf.installer import finalize_install_if_requested
    from globconf.uninstaller import uninstall

    path = Path(path)
    if not path.is_file():
        raise InvalidProvider(f"Provider file not found: {path}")

    ctx = Context.create(
        settings,
        mode=ExecutionMode.PROVIDER,
        invocation=invocation,
        switches=switches,
        provider_path=path,
        **context_kwargs,
    )
    execute_provider(ctx, path)
    system = ctx.require_system()

    if expected_system is not None and normalize(expected_system, "system name") != system:
        raise SystemNameConflict(
            f"Provider {path} declares system '{system}', expected '{expected_system}'.",
            system,
        )

    if ctx.switches.uninstall:
        uninstall(ctx)
    else:
        finalize_install_if_requested(ctx)
    return ctx
