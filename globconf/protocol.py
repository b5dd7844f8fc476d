"""Get/Set protocol — the rules for declaring and consuming variables.

A consumer context may either read or write variables, never both: the
first Get or Set fixes the direction for the rest of the context. Provider
contexts are exempt because a provider both declares values and reads back
the ones it already declared.
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping

from globconf.context import Context, ExecutionMode
from globconf.errors import (
    AlreadyDefined,
    InvalidProvider,
    ModeViolation,
    NotFound,
    SystemNameConflict,
)
from globconf.identifiers import normalize, variable_identity

logger = logging.getLogger(__name__)


def set_system_name(ctx: Context, name: str) -> str:
    """Declare the System this context works with.

    May be repeated only with the same (normalized) name.
    """
    system_name = normalize(name, "system name", ctx.system_name)
    if ctx.system_name and ctx.system_name != system_name:
        raise SystemNameConflict(
            f"System name already set. Cannot change system name from "
            f"'{ctx.system_name}' to '{system_name}'",
            ctx.system_name,
        )
    ctx.system_name = system_name
    return system_name


init_system = set_system_name


def get_variable(
    ctx: Context,
    key: str,
    scope: MutableMapping[str, str] | None = None,
) -> str:
    """Look up a variable of the declared System.

    Args:
        ctx: The current context.
        key: Variable name, case insensitive.
        scope: Optional caller namespace. The value is stored there under
            ``key`` exactly as given; an existing entry is an error.

    An environment variable named ``SYSTEM_KEY`` overrides the stored value.
    """
    system = ctx.require_system()
    if ctx.mode is ExecutionMode.CONSUMER and ctx.state.has_called_set:
        raise ModeViolation("get cannot be called once set is called.", system)

    identity = variable_identity(system, key)
    if scope is not None and key in scope:
        raise AlreadyDefined(
            f"Variable '{key}' is already defined. Cannot override existing context variable.",
            system,
        )

    if ctx.mode is ExecutionMode.CONSUMER:
        from globconf.provider import load_system, require_installed

        # cached values only count while the System is registered
        require_installed(ctx)
        if identity not in ctx.store:
            load_system(ctx)

    value = ctx.store.get(identity)
    if value is None:
        raise NotFound(
            f"Variable '{key}' is not defined in configuration for system '{system}'.",
            system,
        )
    ctx.state.has_called_get = True

    override = ctx.environ.get(identity)
    if override is not None:
        logger.debug(ctx.message(f"'{identity}' taken from the environment"))
        value = override

    if scope is not None:
        scope[key] = value
    return value


def set_variable(ctx: Context, key: str, value: str) -> str:
    """Declare a variable of the declared System.

    The first value stored under an identity wins. Repeating it is a no-op;
    a different value is reported and ignored.
    """
    system = ctx.require_system()
    if ctx.mode is ExecutionMode.CONSUMER and ctx.state.has_called_get:
        raise ModeViolation("Cannot call set after get.", system)

    identity = variable_identity(system, key)
    if not isinstance(value, str):
        raise InvalidProvider(
            f"Value of '{identity}' must be a string, got {type(value).__name__}.",
            system,
        )

    ctx.state.has_called_set = True
    if not ctx.store.define(identity, value):
        existing = ctx.store.get(identity)
        if existing != value:
            logger.warning(
                ctx.message(
                    f"Variable '{identity}' is already set to '{existing}'; "
                    f"ignoring new value '{value}'."
                )
            )
    return identity


class Session:
    """Convenience wrapper binding the protocol functions to one context.

    Provider files receive a ``Session`` in their ``configure`` function;
    consumers create one with :meth:`consumer`::

        conf = Session.consumer()
        conf.set_system_name("mqttcomm")
        uri = conf.get("openssl_uri")
    """

    def __init__(self, context: Context):
        self.context = context

    @classmethod
    def consumer(cls, settings=None, **kwargs) -> "Session":
        return cls(Context.create(settings, mode=ExecutionMode.CONSUMER, **kwargs))

    @property
    def system_name(self) -> str:
        return self.context.system_name

    def set_system_name(self, name: str) -> str:
        return set_system_name(self.context, name)

    def init_system(self, name: str) -> str:
        return init_system(self.context, name)

    def get(self, key: str, scope: MutableMapping[str, str] | None = None) -> str:
        return get_variable(self.context, key, scope)

    def set(self, key: str, value: str) -> str:
        return set_variable(self.context, key, value)

    def finalize_install_if_requested(self) -> bool:
        from globconf.installer import finalize_install_if_requested

        return finalize_install_if_requested(self.context)
