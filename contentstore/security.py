"""Password hashing shared by both backends."""

from __future__ import annotations

import hashlib

from contentstore.errors import ValidationError
from contentstore.models import User


def hash_password(password: str) -> str:
    """Unsalted MD5 hex digest, stored and compared as-is."""
    return hashlib.md5(password.encode("utf-8")).hexdigest()


def require_password(user: User) -> str:
    """Return the hashed password of a user about to be created."""
    if not user.password:
        raise ValidationError("Password should be non-empty")
    return hash_password(user.password)
