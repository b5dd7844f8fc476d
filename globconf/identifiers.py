"""Validation and normalization of System and Variable names."""

from __future__ import annotations

import re

from globconf.errors import InvalidIdentifier

IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_]+")


def normalize(raw: str, kind: str = "identifier", system: str | None = None) -> str:
    """Return the uppercase form of a System or Variable name.

    Names are case insensitive and may contain only letters and underscores.
    ``kind`` only shapes the error message.
    """
    if not isinstance(raw, str) or not IDENTIFIER_PATTERN.fullmatch(raw):
        raise InvalidIdentifier(
            f"Invalid {kind} '{raw}'. It can contain only [a-zA-Z_] characters.",
            system,
        )
    return raw.upper()


def variable_identity(system: str, key: str) -> str:
    """Durable storage key of a variable: ``SYSTEM_KEY``."""
    system_name = normalize(system, "system name")
    return f"{system_name}_{normalize(key, 'variable name', system_name)}"
