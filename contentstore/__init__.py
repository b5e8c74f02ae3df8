"""Content platform persistence — users, posts, likes and sessions over SQL or MongoDB."""

from contentstore.errors import (
    ConfigurationError,
    ErrorKind,
    IntegrityError,
    NotFoundError,
    RepositoryError,
    StorageConnectionError,
    ValidationError,
)
from contentstore.models import Post, Settings, User

__all__ = [
    "ErrorKind",
    "RepositoryError",
    "ConfigurationError",
    "StorageConnectionError",
    "ValidationError",
    "NotFoundError",
    "IntegrityError",
    "User",
    "Settings",
    "Post",
]
