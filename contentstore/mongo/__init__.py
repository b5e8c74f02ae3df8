"""Document backend — MongoDB aggregation pipelines and multi-document transactions."""

from contentstore.mongo.connection import MongoDatabase, MongoTransaction
from contentstore.mongo.like import MongoLikeRepository
from contentstore.mongo.post import MongoPostRepository
from contentstore.mongo.session import MongoSessionRepository
from contentstore.mongo.user import MongoUserRepository

__all__ = [
    "MongoDatabase",
    "MongoTransaction",
    "MongoUserRepository",
    "MongoPostRepository",
    "MongoLikeRepository",
    "MongoSessionRepository",
]
