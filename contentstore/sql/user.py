"""Users and their settings on the relational engine."""

from __future__ import annotations

import logging
from typing import Any

from contentstore.errors import NotFoundError
from contentstore.models import Settings, User
from contentstore.security import hash_password, require_password
from contentstore.sql.connection import Database, parse_id

logger = logging.getLogger(__name__)


class SqlUserRepository:
    """Database operations for users and settings."""

    def __init__(self, db: Database):
        self.db = db

    def create(self, user: User) -> str:
        password_hash = require_password(user)
        settings = user.settings or Settings()

        with self.db.transaction() as tx:
            row = tx.execute_one(
                """INSERT INTO users (first_name, last_name, email, password_hash)
                   VALUES (?, ?, ?, ?)
                   RETURNING id""",
                (user.first_name, user.last_name, user.email, password_hash),
            )
            user_id = row["id"]
            row = tx.execute_one(
                """INSERT INTO settings (user_id, posts_per_page, display_email)
                   VALUES (?, ?, ?)
                   RETURNING id""",
                (user_id, settings.posts_per_page, settings.display_email),
            )
            settings_id = row["id"]

        user.id = str(user_id)
        settings.id = str(settings_id)
        settings.user_id = user.id
        user.settings = settings
        logger.info("Created user %s", user.id)
        return user.id

    def get_id(self, email: str, password: str) -> str:
        with self.db.transaction() as tx:
            row = tx.execute_one(
                "SELECT id FROM users WHERE email = ? AND password_hash = ?",
                (email, hash_password(password)),
            )
        if row is None:
            raise NotFoundError("User with this email and password doesn't exist")
        return str(row["id"])

    def get_settings(self, id: str) -> User:
        user_id = parse_id(id, "user", self.db.max_id)
        with self.db.transaction() as tx:
            row = tx.execute_one(
                """SELECT
                       u.id AS user_id, u.first_name, u.last_name,
                       CASE
                           WHEN s.display_email = false THEN NULL
                           ELSE u.email
                       END AS email,
                       s.id AS settings_id, s.posts_per_page, s.display_email
                   FROM users u
                   JOIN settings s ON s.user_id = u.id
                   WHERE u.id = ?""",
                (user_id,),
            )
        if row is None:
            raise NotFoundError("User with this id doesn't exist")
        return self._read(row)

    def edit(self, settings: Settings) -> None:
        user_id = parse_id(settings.user_id, "user", self.db.max_id)
        with self.db.transaction() as tx:
            updated = tx.execute_write(
                """UPDATE settings
                   SET posts_per_page = ?, display_email = ?
                   WHERE user_id = ?""",
                (settings.posts_per_page, settings.display_email, user_id),
            )
            if not updated:
                raise NotFoundError("User with this id doesn't exist")

    @staticmethod
    def _read(row: dict[str, Any]) -> User:
        user_id = str(row["user_id"])
        return User(
            id=user_id,
            first_name=row["first_name"],
            last_name=row["last_name"],
            email=row["email"],
            settings=Settings(
                id=str(row["settings_id"]),
                user_id=user_id,
                posts_per_page=row["posts_per_page"],
                display_email=bool(row["display_email"]),
            ),
        )
