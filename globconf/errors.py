"""Error taxonomy for globconf.

Every failure is fatal for the current invocation. Library code raises one of
the classes below; only the CLI turns them into an exit status.
"""

from __future__ import annotations

MESSAGE_PREFIX = "GLOBCONF"


def format_message(message: str, system: str | None = None) -> str:
    """Prefix a message with the System name when it is known."""
    if system:
        return f"{MESSAGE_PREFIX}[{system}] - {message}"
    return f"{MESSAGE_PREFIX} - {message}"


class GlobconfError(Exception):
    """Base class for all globconf failures."""

    def __init__(self, message: str, system: str | None = None):
        super().__init__(message)
        self.message = message
        self.system = system or None

    def __str__(self) -> str:
        return format_message(self.message, self.system)


class InvalidIdentifier(GlobconfError):
    """A System or Variable name contains characters outside [A-Za-z_]."""


class SystemNotDeclared(GlobconfError):
    """Get or Set was called before the System name was set."""


class SystemNameConflict(GlobconfError):
    """The System name was already set to a different value."""


class ModeViolation(GlobconfError):
    """Get and Set were both called in one consumer context."""


class AlreadyDefined(GlobconfError):
    """The target name already exists in the caller's scope."""


class NotFound(GlobconfError):
    """The System is not installed or does not define the variable."""


class RegistrationConflict(GlobconfError):
    """The package is registered from a different location."""


class InstallNotPermitted(GlobconfError):
    """Direct registration in project mode without the allow-install flag."""


class FilenameMismatch(GlobconfError):
    """The provider file name does not follow <prefix><SYSTEM>Config."""


class InstallSubprocessFailed(GlobconfError):
    """The escalated install project exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        system: str | None = None,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
    ):
        super().__init__(message, system)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class UninstallNotPermitted(GlobconfError):
    """Uninstall was requested outside a script-mode provider run."""


class UninstallFailed(GlobconfError):
    """The platform command removing the registration failed."""


class HomeNotSet(GlobconfError):
    """HOME is required to locate the user package registry."""


class UnsupportedPlatform(GlobconfError):
    """No uninstall strategy exists for this platform."""


class InstallUninstallConflict(GlobconfError):
    """Install and uninstall were requested together."""


class InvalidProvider(GlobconfError):
    """A provider file cannot be loaded."""


class InvalidProject(GlobconfError):
    """An install project directory is missing or malformed."""


class InvalidSettings(GlobconfError):
    """The settings file cannot be parsed, has unknown keys or mistyped values."""


class InvalidCache(GlobconfError):
    """The variable cache file cannot be read back."""
