"""Relational backend — SQLite (default) and PostgreSQL."""

from contentstore.sql.connection import Database, Transaction
from contentstore.sql.like import SqlLikeRepository
from contentstore.sql.post import SqlPostRepository
from contentstore.sql.session import SqlSessionRepository
from contentstore.sql.user import SqlUserRepository

__all__ = [
    "Database",
    "Transaction",
    "SqlUserRepository",
    "SqlPostRepository",
    "SqlLikeRepository",
    "SqlSessionRepository",
]
