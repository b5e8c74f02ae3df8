"""Users on the document engine — settings and session codes are embedded in the user."""

from __future__ import annotations

import logging
from typing import Any

from bson import ObjectId

from contentstore.errors import NotFoundError
from contentstore.models import Settings, User
from contentstore.mongo.connection import MongoDatabase, parse_object_id
from contentstore.security import hash_password, require_password

logger = logging.getLogger(__name__)


class MongoUserRepository:
    def __init__(self, db: MongoDatabase):
        self.db = db

    def create(self, user: User) -> str:
        password_hash = require_password(user)
        settings = user.settings or Settings()
        settings_id = ObjectId()

        with self.db.transaction() as tx:
            result = tx.collection("users").insert_one(
                {
                    "first_name": user.first_name,
                    "last_name": user.last_name,
                    "email": user.email,
                    "password_hash": password_hash,
                    "settings": {
                        "_id": settings_id,
                        "posts_per_page": settings.posts_per_page,
                        "display_email": settings.display_email,
                    },
                    "sessions": [],
                },
                session=tx.session,
            )

        user.id = str(result.inserted_id)
        settings.id = str(settings_id)
        settings.user_id = user.id
        user.settings = settings
        logger.info("Created user %s", user.id)
        return user.id

    def get_id(self, email: str, password: str) -> str:
        with self.db.transaction() as tx:
            doc = tx.collection("users").find_one(
                {"email": email, "password_hash": hash_password(password)},
                {"_id": 1},
                session=tx.session,
            )
        if doc is None:
            raise NotFoundError("User with this email and password doesn't exist")
        return str(doc["_id"])

    def get_settings(self, id: str) -> User:
        user_id = parse_object_id(id, "user")
        with self.db.transaction() as tx:
            doc = tx.collection("users").find_one(
                {"_id": user_id},
                {"first_name": 1, "last_name": 1, "email": 1, "settings": 1},
                session=tx.session,
            )
        if doc is None:
            raise NotFoundError("User with this id doesn't exist")
        return self._read(doc)

    def edit(self, settings: Settings) -> None:
        user_id = parse_object_id(settings.user_id, "user")
        with self.db.transaction() as tx:
            result = tx.collection("users").update_one(
                {"_id": user_id},
                {
                    "$set": {
                        "settings.posts_per_page": settings.posts_per_page,
                        "settings.display_email": settings.display_email,
                    }
                },
                session=tx.session,
            )
            if result.matched_count == 0:
                raise NotFoundError("User with this id doesn't exist")

    @staticmethod
    def _read(doc: dict[str, Any]) -> User:
        user_id = str(doc["_id"])
        stored = doc.get("settings") or {}
        settings = Settings(
            id=str(stored.get("_id", "")),
            user_id=user_id,
            posts_per_page=stored.get("posts_per_page", Settings.posts_per_page),
            display_email=bool(stored.get("display_email", False)),
        )
        return User(
            id=user_id,
            first_name=doc.get("first_name", ""),
            last_name=doc.get("last_name", ""),
            email=doc.get("email") if settings.display_email else None,
            settings=settings,
        )
