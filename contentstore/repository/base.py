"""Repository contracts — the capabilities every storage backend must provide.

Backends satisfy these structurally; nothing inherits from them. Each
operation runs in its own unit of work and either commits fully or leaves
no visible change.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from contentstore.models import Post, Settings, User


@runtime_checkable
class UserRepository(Protocol):
    def create(self, user: User) -> str:
        """Insert the user and its settings; fills in ``user.id`` and ``user.settings``.

        Raises ValidationError if the password is empty.
        """
        ...

    def get_id(self, email: str, password: str) -> str:
        """Raises NotFoundError if no user matches both email and password."""
        ...

    def get_settings(self, id: str) -> User:
        """Raises NotFoundError if the user does not exist."""
        ...

    def edit(self, settings: Settings) -> None: ...


@runtime_checkable
class PostRepository(Protocol):
    def create(self, post: Post) -> str: ...

    def get(self, id: str, viewer: str | None = None) -> Post:
        """Raises NotFoundError if the post does not exist."""
        ...

    def list(self, viewer: str | None = None) -> list[Post]: ...

    def liked_list(self, viewer: str) -> list[Post]: ...


@runtime_checkable
class LikeRepository(Protocol):
    def create(self, viewer: str, post: str) -> None: ...

    def delete(self, viewer: str, post: str) -> None: ...


@runtime_checkable
class SessionRepository(Protocol):
    def create(self, user: str, code: str) -> None: ...

    def get_user_id(self, code: str) -> str:
        """Raises NotFoundError if no user holds the code."""
        ...
