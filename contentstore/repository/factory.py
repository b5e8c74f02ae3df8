"""Composition root — picks the repository implementations for the configured backend."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from contentstore.config import AppConfig, StorageBackend
from contentstore.mongo import (
    MongoDatabase,
    MongoLikeRepository,
    MongoPostRepository,
    MongoSessionRepository,
    MongoUserRepository,
)
from contentstore.repository.base import (
    LikeRepository,
    PostRepository,
    SessionRepository,
    UserRepository,
)
from contentstore.sql import (
    Database,
    SqlLikeRepository,
    SqlPostRepository,
    SqlSessionRepository,
    SqlUserRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class Repositories:
    users: UserRepository
    posts: PostRepository
    likes: LikeRepository
    sessions: SessionRepository


def build_repositories(config: AppConfig) -> Repositories:
    """Wire all four repositories against one storage engine."""
    if config.backend == StorageBackend.MONGODB:
        mongo = MongoDatabase(config)
        repos = Repositories(
            users=MongoUserRepository(mongo),
            posts=MongoPostRepository(mongo),
            likes=MongoLikeRepository(mongo),
            sessions=MongoSessionRepository(mongo),
        )
    else:
        db = Database(config)
        repos = Repositories(
            users=SqlUserRepository(db),
            posts=SqlPostRepository(db),
            likes=SqlLikeRepository(db),
            sessions=SqlSessionRepository(db),
        )
    logger.debug("Built repositories for %s", config.backend.value)
    return repos


def initialize_storage(config: AppConfig) -> None:
    """Create tables (relational) or indexes (document) for the configured backend."""
    if config.backend == StorageBackend.MONGODB:
        MongoDatabase(config).ensure_indexes()
    else:
        Database(config).initialize_schema()
