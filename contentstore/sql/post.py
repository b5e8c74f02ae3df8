"""Posts on the relational engine — joins author, settings and the viewer's likes."""

from __future__ import annotations

import logging
from typing import Any

from contentstore.errors import NotFoundError
from contentstore.models import Post, User
from contentstore.sql.connection import Database, parse_id, parse_viewer

logger = logging.getLogger(__name__)

# The viewer's likes are collapsed to one row per post so duplicate likes
# never duplicate a post. A NULL viewer matches no likes.
_SELECT_POSTS = """
    SELECT
        u.id AS user_id, u.first_name, u.last_name,
        CASE
            WHEN s.display_email IS NULL OR s.display_email = false THEN NULL
            ELSE u.email
        END AS email,
        p.id AS post_id, p.title, p.text, p.description,
        CASE
            WHEN l.post_id IS NULL THEN false
            ELSE true
        END AS liked
    FROM posts p
    LEFT JOIN users u ON p.user_id = u.id
    LEFT JOIN settings s ON p.user_id = s.user_id
    {join} JOIN (
        SELECT DISTINCT post_id FROM likes WHERE user_id = ?
    ) l ON p.id = l.post_id
"""


class SqlPostRepository:
    """Database operations for posts."""

    def __init__(self, db: Database):
        self.db = db

    def create(self, post: Post) -> str:
        author_id = parse_id(post.author.id, "author", self.db.max_id) if post.author else None
        with self.db.transaction() as tx:
            row = tx.execute_one(
                """INSERT INTO posts (user_id, title, text, description)
                   VALUES (?, ?, ?, ?)
                   RETURNING id""",
                (author_id, post.title, post.text, post.description),
            )
        post_id = str(row["id"])
        logger.info("Created post %s (author %s)", post_id, author_id)
        return post_id

    def get(self, id: str, viewer: str | None = None) -> Post:
        post_id = parse_id(id, "post", self.db.max_id)
        with self.db.transaction() as tx:
            row = tx.execute_one(
                _SELECT_POSTS.format(join="LEFT") + " WHERE p.id = ?",
                (parse_viewer(viewer, self.db.max_id), post_id),
            )
        if row is None:
            raise NotFoundError("Post with this id not found")
        return self._read(row)

    def list(self, viewer: str | None = None) -> list[Post]:
        with self.db.transaction() as tx:
            rows = tx.execute(
                _SELECT_POSTS.format(join="LEFT"),
                (parse_viewer(viewer, self.db.max_id),),
            )
        return [self._read(r) for r in rows]

    def liked_list(self, viewer: str) -> list[Post]:
        viewer_id = parse_id(viewer, "viewer", self.db.max_id)
        with self.db.transaction() as tx:
            rows = tx.execute(_SELECT_POSTS.format(join="INNER"), (viewer_id,))
        return [self._read(r) for r in rows]

    @staticmethod
    def _read(row: dict[str, Any]) -> Post:
        author = None
        if row["user_id"] is not None:
            author = User(
                id=str(row["user_id"]),
                first_name=row["first_name"],
                last_name=row["last_name"],
                email=row["email"],
                settings=None,
            )
        return Post(
            id=str(row["post_id"]),
            title=row["title"],
            text=row["text"],
            description=row["description"],
            liked=bool(row["liked"]),
            author=author,
        )
