"""Error taxonomy — every repository failure carries a kind callers can branch on."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    CONNECTION = "connection"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    INTEGRITY = "integrity"


class RepositoryError(Exception):
    """Base class for all errors raised by the persistence layer."""

    kind: ErrorKind

    def __init__(self, message: str, kind: ErrorKind | None = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        elif not hasattr(self, "kind"):
            raise TypeError(f"{type(self).__name__} needs a kind")

    @property
    def retryable(self) -> bool:
        """Only transport failures are worth retrying (with a fresh unit of work)."""
        return self.kind == ErrorKind.CONNECTION

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class ConfigurationError(RepositoryError):
    """A required connection parameter is missing or malformed."""

    kind = ErrorKind.CONFIGURATION


class StorageConnectionError(RepositoryError):
    """Transport or authentication failure talking to the storage engine."""

    kind = ErrorKind.CONNECTION


class ValidationError(RepositoryError):
    """Caller input violates a precondition (empty password, malformed id)."""

    kind = ErrorKind.VALIDATION


class NotFoundError(RepositoryError):
    """The requested entity or relation does not exist."""

    kind = ErrorKind.NOT_FOUND


class IntegrityError(RepositoryError):
    """A write violates a storage-level constraint."""

    kind = ErrorKind.INTEGRITY
