"""Aggregation pipelines that project stored posts into viewer-relative read models.

Every post is joined with its author and with the viewer's likes:

1. ``$lookup`` the author from ``users`` by ``user_id`` and keep the first match.
2. Strip the author's password, session codes, settings and email.
3. ``$lookup`` likes with the same ``post_id`` and the viewer's ``user_id``.
4. ``liked`` is true when that lookup found anything.

Posts without an author keep no ``author`` field. Liked lists filter on
``liked`` after the projection, so they contain each liked post once.
"""

from __future__ import annotations

from typing import Any

from bson import ObjectId

AUTHOR_REDACTED_FIELDS = [
    "author.sessions",
    "author.settings",
    "author.email",
    "author.password_hash",
]


def post_projection(viewer: ObjectId) -> list[dict[str, Any]]:
    return [
        {
            "$lookup": {
                "from": "users",
                "localField": "user_id",
                "foreignField": "_id",
                "as": "author",
            }
        },
        {"$set": {"author": {"$first": "$author"}}},
        {"$unset": ["user_id", *AUTHOR_REDACTED_FIELDS]},
        {
            "$lookup": {
                "from": "likes",
                "let": {"post_id": "$_id"},
                "pipeline": [
                    {
                        "$match": {
                            "$expr": {
                                "$and": [
                                    {"$eq": ["$post_id", "$$post_id"]},
                                    {"$eq": ["$user_id", viewer]},
                                ]
                            }
                        }
                    },
                    {"$limit": 1},
                ],
                "as": "like",
            }
        },
        {"$set": {"liked": {"$gt": [{"$size": "$like"}, 0]}}},
        {"$unset": ["like"]},
    ]


def single_post(post_id: ObjectId, viewer: ObjectId) -> list[dict[str, Any]]:
    return [{"$match": {"_id": post_id}}, *post_projection(viewer)]


def liked_posts(viewer: ObjectId) -> list[dict[str, Any]]:
    return [*post_projection(viewer), {"$match": {"liked": True}}]
