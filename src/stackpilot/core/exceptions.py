"""Exception hierarchy for stackpilot."""

from __future__ import annotations


class StackPilotError(Exception):
    """Base class for all stackpilot errors."""


class ConfigError(StackPilotError):
    """The configuration file is unreadable or holds invalid values."""


class ConfigNotFoundError(ConfigError):
    """An explicitly requested configuration file does not exist."""


class EngineError(StackPilotError):
    """A call into the infrastructure engine failed."""

    def __init__(self, operation: str, detail: str) -> None:
        super().__init__(f"{operation} failed: {detail}")
        self.operation = operation
        self.detail = detail


class SetupError(StackPilotError):
    """
    A deployment setup step failed and the run cannot continue.

    Raised for stack selection, plugin installation, configuration, refresh,
    and for an update whose outputs are unusable.  The CLI turns this into
    exit code 1.
    """
