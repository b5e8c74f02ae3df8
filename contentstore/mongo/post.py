"""Posts on the document engine — read through the projection pipelines."""

from __future__ import annotations

import logging
from typing import Any

from contentstore.errors import IntegrityError, NotFoundError
from contentstore.models import Post, User
from contentstore.mongo import pipelines
from contentstore.mongo.connection import MongoDatabase, parse_object_id, parse_viewer

logger = logging.getLogger(__name__)


class MongoPostRepository:
    def __init__(self, db: MongoDatabase):
        self.db = db

    def create(self, post: Post) -> str:
        author_id = parse_object_id(post.author.id, "author") if post.author else None
        with self.db.transaction() as tx:
            if author_id is not None and not tx.collection("users").count_documents(
                {"_id": author_id}, limit=1, session=tx.session
            ):
                raise IntegrityError(f"Author {author_id} does not exist")
            result = tx.collection("posts").insert_one(
                {
                    "user_id": author_id,
                    "title": post.title,
                    "text": post.text,
                    "description": post.description,
                },
                session=tx.session,
            )
        post_id = str(result.inserted_id)
        logger.info("Created post %s (author %s)", post_id, author_id)
        return post_id

    def get(self, id: str, viewer: str | None = None) -> Post:
        pipeline = pipelines.single_post(parse_object_id(id, "post"), parse_viewer(viewer))
        with self.db.transaction() as tx:
            docs = list(tx.collection("posts").aggregate(pipeline, session=tx.session))
        if not docs:
            raise NotFoundError("Post with this id not found")
        return self._read(docs[0])

    def list(self, viewer: str | None = None) -> list[Post]:
        pipeline = pipelines.post_projection(parse_viewer(viewer))
        with self.db.transaction() as tx:
            docs = list(tx.collection("posts").aggregate(pipeline, session=tx.session))
        return [self._read(d) for d in docs]

    def liked_list(self, viewer: str) -> list[Post]:
        pipeline = pipelines.liked_posts(parse_object_id(viewer, "viewer"))
        with self.db.transaction() as tx:
            docs = list(tx.collection("posts").aggregate(pipeline, session=tx.session))
        return [self._read(d) for d in docs]

    @staticmethod
    def _read(doc: dict[str, Any]) -> Post:
        author = None
        if doc.get("author"):
            author = User(
                id=str(doc["author"]["_id"]),
                first_name=doc["author"].get("first_name", ""),
                last_name=doc["author"].get("last_name", ""),
                settings=None,
            )
        return Post(
            id=str(doc["_id"]),
            title=doc.get("title", ""),
            text=doc.get("text"),
            description=doc.get("description"),
            liked=bool(doc.get("liked", False)),
            author=author,
        )
