"""Repository contracts and backend composition."""

from contentstore.repository.base import (
    LikeRepository,
    PostRepository,
    SessionRepository,
    UserRepository,
)
from contentstore.repository.factory import Repositories, build_repositories, initialize_storage

__all__ = [
    "UserRepository",
    "PostRepository",
    "LikeRepository",
    "SessionRepository",
    "Repositories",
    "build_repositories",
    "initialize_storage",
]
