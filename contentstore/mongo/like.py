"""Likes on the document engine."""

from __future__ import annotations

from contentstore.errors import IntegrityError
from contentstore.mongo.connection import MongoDatabase, parse_object_id


class MongoLikeRepository:
    def __init__(self, db: MongoDatabase):
        self.db = db

    def create(self, viewer: str, post: str) -> None:
        user_id = parse_object_id(viewer, "user")
        post_id = parse_object_id(post, "post")
        with self.db.transaction() as tx:
            # No foreign keys here, so check both ends of the relation.
            if not tx.collection("users").count_documents(
                {"_id": user_id}, limit=1, session=tx.session
            ):
                raise IntegrityError(f"User {user_id} does not exist")
            if not tx.collection("posts").count_documents(
                {"_id": post_id}, limit=1, session=tx.session
            ):
                raise IntegrityError(f"Post {post_id} does not exist")
            tx.collection("likes").insert_one(
                {"user_id": user_id, "post_id": post_id},
                session=tx.session,
            )

    def delete(self, viewer: str, post: str) -> None:
        user_id = parse_object_id(viewer, "user")
        post_id = parse_object_id(post, "post")
        with self.db.transaction() as tx:
            tx.collection("likes").delete_many(
                {"user_id": user_id, "post_id": post_id},
                session=tx.session,
            )
