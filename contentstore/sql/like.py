"""Likes on the relational engine."""

from __future__ import annotations

from contentstore.sql.connection import Database, parse_id


class SqlLikeRepository:
    def __init__(self, db: Database):
        self.db = db

    def create(self, viewer: str, post: str) -> None:
        params = (
            parse_id(viewer, "user", self.db.max_id),
            parse_id(post, "post", self.db.max_id),
        )
        with self.db.transaction() as tx:
            tx.execute_write("INSERT INTO likes (user_id, post_id) VALUES (?, ?)", params)

    def delete(self, viewer: str, post: str) -> None:
        params = (
            parse_id(viewer, "user", self.db.max_id),
            parse_id(post, "post", self.db.max_id),
        )
        with self.db.transaction() as tx:
            tx.execute_write("DELETE FROM likes WHERE user_id = ? AND post_id = ?", params)
