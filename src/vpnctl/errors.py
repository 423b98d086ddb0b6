"""vpnctl exception hierarchy.

All vpnctl-specific exceptions inherit from VpnCtlError,
enabling structured error handling and cleaner catch clauses.
"""


class VpnCtlError(Exception):
    """Base exception for all vpnctl errors."""

    def __init__(self, message: str = "", *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class NetworkUnavailable(VpnCtlError):
    """Remote fetch or connectivity probe failed."""

    def __init__(self, message: str = "", *, retryable: bool = True) -> None:
        super().__init__(message, retryable=retryable)


class ArtifactWriteFailure(VpnCtlError):
    """Backup, replace, or restore of an on-disk artifact failed."""


class ReportWriteFailure(ArtifactWriteFailure):
    """Diagnosis report could not be written."""


class CollaboratorCommandFailure(VpnCtlError):
    """External system or VPN client command reported failure."""

    def __init__(self, message: str = "", *, command: str = "", exit_code: int = -1) -> None:
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code


class ConfigError(VpnCtlError):
    """Invalid or missing configuration."""
