"""Shared fixtures — SQLite always, PostgreSQL and MongoDB when their env vars are set."""

from __future__ import annotations

import os
from dataclasses import dataclass

import pytest
from bson import ObjectId

from contentstore.config import AppConfig, MongoConfig, SqliteConfig, StorageBackend
from contentstore.repository import Repositories, build_repositories, initialize_storage
from contentstore.sql.connection import Database


def _has_postgres() -> bool:
    return bool(os.getenv("POSTGRES_HOST"))


def _has_mongodb() -> bool:
    return bool(os.getenv("MONGODB_URI"))


# ── skip markers ─────────────────────────────────────────────────────────────

skip_without_postgres = pytest.mark.skipif(
    not _has_postgres(),
    reason="No PostgreSQL configured (need POSTGRES_HOST, POSTGRES_USER, POSTGRES_DB)",
)

skip_without_mongodb = pytest.mark.skipif(
    not _has_mongodb(),
    reason="No MongoDB replica set configured (need MONGODB_URI)",
)


# ── fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def sqlite_config(tmp_path) -> AppConfig:
    """Config pointing at a throwaway SQLite database."""
    return AppConfig(
        backend=StorageBackend.SQLITE,
        sqlite=SqliteConfig(path=tmp_path / "test.db"),
    )


@pytest.fixture
def db(sqlite_config) -> Database:
    """A temporary SQLite database with the schema applied."""
    database = Database(sqlite_config)
    database.initialize_schema()
    return database


@dataclass
class BackendUnderTest:
    name: str
    repos: Repositories
    # A well-formed id that references nothing.
    missing_id: str


def _backend_config(name: str, tmp_path) -> AppConfig:
    if name == "sqlite":
        return AppConfig(
            backend=StorageBackend.SQLITE,
            sqlite=SqliteConfig(path=tmp_path / "contract.db"),
        )
    if name == "postgresql":
        return AppConfig(backend=StorageBackend.POSTGRESQL)
    return AppConfig(
        backend=StorageBackend.MONGODB,
        mongodb=MongoConfig(
            uri=os.environ["MONGODB_URI"],
            db=os.getenv("MONGODB_DB", "contentstore_test"),
        ),
    )


@pytest.fixture(
    params=[
        "sqlite",
        pytest.param("postgresql", marks=skip_without_postgres),
        pytest.param("mongodb", marks=skip_without_mongodb),
    ]
)
def backend(request, tmp_path) -> BackendUnderTest:
    """Every backend the contract suite runs against."""
    config = _backend_config(request.param, tmp_path)
    initialize_storage(config)
    missing_id = str(ObjectId()) if request.param == "mongodb" else "2147483000"
    return BackendUnderTest(request.param, build_repositories(config), missing_id)
