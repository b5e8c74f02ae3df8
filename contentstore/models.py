"""Domain entities shared by every storage backend."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Settings:
    id: str = ""
    user_id: str = ""
    posts_per_page: int = 10
    display_email: bool = False


@dataclass
class User:
    id: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str | None = None
    # Only set by callers on create/auth, never populated on reads.
    password: str | None = None
    # None on redacted author views.
    settings: Settings | None = field(default_factory=Settings)


@dataclass
class Post:
    id: str = ""
    title: str = ""
    text: str | None = None
    description: str | None = None
    # Relative to the viewer of the read, never stored.
    liked: bool = False
    author: User | None = None
