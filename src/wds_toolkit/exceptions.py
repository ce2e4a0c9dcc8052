"""Error taxonomy shared by the batch runtime and the remote client."""

from __future__ import annotations


class ToolkitError(RuntimeError):
    """Base class for toolkit failures."""


class RemoteError(ToolkitError):
    """Raised when a remote API call fails."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientRemoteError(RemoteError):
    """Retryable remote failure; becomes a unit failure once retries run out."""


class ConflictError(RemoteError):
    """Remote target already exists in an equivalent state."""


class FatalSetupError(ToolkitError):
    """Raised when an operation cannot start (connection, count, inputs)."""


class DataError(ToolkitError):
    """Raised when a document lacks data required to process it."""


class OperationError(ToolkitError):
    """Raised when a fail-fast step of an operation cannot complete."""


__all__ = [
    "ConflictError",
    "DataError",
    "FatalSetupError",
    "OperationError",
    "RemoteError",
    "ToolkitError",
    "TransientRemoteError",
]
