# desktopsetup/core/errors.py
"""
Error taxonomy.

FatalPrecondition and its subclasses abort the run with a non-zero exit code.
RecoverableActionFailure is confined to a single tool; the reconciler turns it
into a warning and carries on with the next tool.
"""

from __future__ import annotations


class FatalPrecondition(Exception):
    """A condition nothing else in the run can proceed without."""

    exit_code: int = 1

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class UnsupportedPlatformError(FatalPrecondition):
    pass


class PrivilegeError(FatalPrecondition):
    pass


class BootstrapError(FatalPrecondition):
    """Homebrew (or the platform developer tools) could not be made available."""


class InvalidConfigError(FatalPrecondition):
    """An existing JSON document failed validation and must not be overwritten."""


class ConfigurationError(FatalPrecondition):
    """Bad settings or overrides supplied by the user."""

    exit_code = 2


class RecoverableActionFailure(Exception):
    """A single tool's install/upgrade/uninstall/migrate step failed."""

    def __init__(self, tool: str, step: str, detail: str = ""):
        self.tool = tool
        self.step = step
        self.detail = detail
        msg = f"{tool}: {step} failed"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)
