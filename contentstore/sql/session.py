"""Login session codes on the relational engine."""

from __future__ import annotations

import logging

from contentstore.errors import IntegrityError, NotFoundError
from contentstore.sql.connection import Database, parse_id

logger = logging.getLogger(__name__)


class SqlSessionRepository:
    """Database operations for session codes. A code belongs to at most one user."""

    def __init__(self, db: Database):
        self.db = db

    def create(self, user: str, code: str) -> None:
        user_id = parse_id(user, "user", self.db.max_id)
        with self.db.transaction() as tx:
            owner = tx.execute_one("SELECT user_id FROM sessions WHERE code = ?", (code,))
            if owner is not None:
                if owner["user_id"] != user_id:
                    raise IntegrityError("Session code is already held by another user")
                return
            tx.execute_write(
                "INSERT INTO sessions (user_id, code) VALUES (?, ?)",
                (user_id, code),
            )
        logger.debug("Attached session code to user %s", user_id)

    def get_user_id(self, code: str) -> str:
        with self.db.transaction() as tx:
            rows = tx.execute(
                "SELECT DISTINCT user_id FROM sessions WHERE code = ?",
                (code,),
            )
        if not rows:
            raise NotFoundError("User with this session code doesn't exist")
        if len(rows) > 1:
            raise IntegrityError("Session code is held by more than one user")
        return str(rows[0]["user_id"])
