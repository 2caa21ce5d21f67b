"""appwrite-sync error types.

All custom exceptions inherit from SyncError to allow
catching any sync-specific error.
"""

from typing import Any


class SyncError(Exception):
    """Base exception for all appwrite-sync errors."""

    pass


class ConfigurationError(SyncError):
    """Invalid configuration."""

    pass


class ManifestError(SyncError):
    """Manifest file is missing, invalid, or lacks a requested resource."""

    pass


class ProjectNotInitializedError(ManifestError):
    """The manifest does not name a project."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "Project configuration not found. Set 'projectId' in the manifest "
            "or APPWRITE_SYNC_CLIENT__PROJECT_ID before pushing or pulling."
        )


class GatewayError(SyncError):
    """The remote API rejected a request."""

    def __init__(
        self,
        message: str,
        code: int = 0,
        error_type: str = "",
        response: Any = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.error_type = error_type
        self.response = response


class NotFoundError(GatewayError):
    """The requested remote resource does not exist (HTTP 404)."""

    def __init__(self, message: str, error_type: str = "", response: Any = None) -> None:
        super().__init__(message, code=404, error_type=error_type, response=response)


class RuntimeMismatchError(GatewayError):
    """Local function runtime differs from the deployed function."""

    def __init__(self, local: str | None, remote: str | None) -> None:
        super().__init__(
            f"Runtime mismatch! (local={local},remote={remote}) "
            "Please delete remote function or update your manifest"
        )
        self.local = local
        self.remote = remote


class PollTimeoutError(SyncError):
    """A poll exhausted its iteration ceiling before the condition held."""

    pass


class PollFailureError(SyncError):
    """The backend reported a terminal failure for an awaited element."""

    def __init__(self, message: str, key: str) -> None:
        super().__init__(message)
        self.key = key
