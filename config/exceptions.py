"""Custom exception hierarchy for netdash.

Provides specific exceptions for the different error categories of the
acquisition layer, so callers can decide which ones are transient.
"""

from typing import Optional


class NetDashError(Exception):
    """Base exception for all netdash errors.

    All custom exceptions in this application should inherit from this class.
    This allows catching all application-specific errors with a single except clause.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class CounterReadError(NetDashError):
    """The kernel counter source could not be read.

    The tick is skipped and the last known rates are kept.

    Examples:
        >>> raise CounterReadError("Cannot open counters", {"path": "/proc/net/dev"})
    """

    pass


class BridgeError(NetDashError):
    """An external management command did not produce usable output.

    Attributes:
        command: The argv that was run (secret files shown as a placeholder).
    """

    def __init__(self, message: str, command: Optional[list] = None,
                 details: Optional[dict] = None):
        details = details or {}
        if command:
            details["command"] = command
        super().__init__(message, details)
        self.command = command

    @property
    def short(self) -> str:
        """One-line description for status indicators."""
        return self.message


class BridgeTimeoutError(BridgeError):
    """The command did not finish within its timeout and was killed."""

    def __init__(self, command: Optional[list] = None, timeout: Optional[float] = None):
        super().__init__(
            f"Command timed out after {timeout}s",
            command=command,
            details={"timeout": timeout},
        )
        self.timeout = timeout


class SpawnFailedError(BridgeError):
    """The command could not be started (not installed, not allowed, ...)."""

    def __init__(self, reason: str, command: Optional[list] = None):
        super().__init__(f"Could not start command: {reason}", command=command)
        self.reason = reason


class NonZeroExitError(BridgeError):
    """The command exited with a non-zero status.

    Attributes:
        returncode: Exit code of the process.
        stderr: Excerpt of standard error, for diagnostics.

    Examples:
        >>> raise NonZeroExitError(10, "Error: Connection activation failed", ["nmcli"])
    """

    def __init__(self, returncode: int, stderr: str = "", command: Optional[list] = None):
        excerpt = (stderr or "").strip()[:500]
        details = {"returncode": returncode}
        if excerpt:
            details["stderr"] = excerpt
        super().__init__(f"Command exited with status {returncode}", command=command,
                         details=details)
        self.returncode = returncode
        self.stderr = excerpt

    @property
    def short(self) -> str:
        # nmcli puts the useful sentence on the last stderr line
        lines = [line for line in self.stderr.splitlines() if line.strip()]
        if lines:
            return lines[-1].strip()
        return self.message


class ParseError(NetDashError):
    """A single line of command output could not be turned into a record.

    Raised per line; the parser drops the line and keeps the rest.
    """

    def __init__(self, message: str, line: str = ""):
        super().__init__(message, {"line": line} if line else None)
        self.line = line


class AlreadyPendingError(NetDashError):
    """A mutating action is already in flight for this target."""

    def __init__(self, target: str, kind: Optional[str] = None):
        details = {"target": target}
        if kind:
            details["pending"] = kind
        super().__init__(f"An action is already pending for {target}", details)
        self.target = target
        self.kind = kind


class NotificationDeliveryError(NetDashError):
    """A desktop notification could not be delivered. Logged, never escalated."""

    pass


class ConfigurationError(NetDashError):
    """Settings and configuration errors.

    Raised when there are issues with:
    - Invalid configuration values
    - Configuration file parsing

    Examples:
        >>> raise ConfigurationError("Invalid poll interval", {"value": -1})
    """

    pass
