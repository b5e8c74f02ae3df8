"""Login session codes on the document engine, kept in ``users.sessions``."""

from __future__ import annotations

import logging

from contentstore.errors import IntegrityError, NotFoundError
from contentstore.mongo.connection import MongoDatabase, parse_object_id

logger = logging.getLogger(__name__)


class MongoSessionRepository:
    """A code belongs to at most one user."""

    def __init__(self, db: MongoDatabase):
        self.db = db

    def create(self, user: str, code: str) -> None:
        user_id = parse_object_id(user, "user")
        with self.db.transaction() as tx:
            users = tx.collection("users")
            other = users.find_one(
                {"sessions": code, "_id": {"$ne": user_id}},
                {"_id": 1},
                session=tx.session,
            )
            if other is not None:
                raise IntegrityError("Session code is already held by another user")
            result = users.update_one(
                {"_id": user_id},
                {"$addToSet": {"sessions": code}},
                session=tx.session,
            )
            if result.matched_count == 0:
                raise IntegrityError(f"User {user_id} does not exist")
        logger.debug("Attached session code to user %s", user_id)

    def get_user_id(self, code: str) -> str:
        with self.db.transaction() as tx:
            docs = list(
                tx.collection("users").find(
                    {"sessions": code},
                    {"_id": 1},
                    limit=2,
                    session=tx.session,
                )
            )
        if not docs:
            raise NotFoundError("User with this session code doesn't exist")
        if len(docs) > 1:
            raise IntegrityError("Session code is held by more than one user")
        return str(docs[0]["_id"])
