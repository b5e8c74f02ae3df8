"""MongoDB connection management — one client and one multi-document transaction per call."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Generator

import pymongo
from bson import ObjectId
from bson.errors import InvalidId
from pymongo.client_session import ClientSession
from pymongo.collection import Collection
from pymongo.errors import ConfigurationError as MongoConfigurationError
from pymongo.errors import ConnectionFailure, DuplicateKeyError, InvalidURI, OperationFailure

from contentstore.config import AppConfig
from contentstore.errors import (
    ConfigurationError,
    IntegrityError,
    StorageConnectionError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Server error code for a failed authentication handshake.
_AUTH_FAILED = 18


class MongoTransaction:
    """A client session with an open transaction on the configured database."""

    def __init__(self, database: Any, session: ClientSession):
        self.database = database
        self.session = session

    def collection(self, name: str) -> Collection:
        return self.database[name]


class MongoDatabase:
    """Document engine behind the repositories."""

    def __init__(
        self,
        config: AppConfig,
        client_factory: Callable[[str], Any] = pymongo.MongoClient,
    ):
        self.config = config.mongodb
        self.config.validate_required()
        self._client_factory = client_factory

    def _connect(self) -> Any:
        try:
            return self._client_factory(self.config.uri)
        except (InvalidURI, MongoConfigurationError) as e:
            raise ConfigurationError(f"Invalid MongoDB connection string: {e}") from e

    @contextmanager
    def transaction(self) -> Generator[MongoTransaction, None, None]:
        """Open a unit of work: commit on success, abort on any error."""
        client = self._connect()
        try:
            session = client.start_session()
            try:
                session.start_transaction()
                logger.debug("Opened mongodb unit of work")
                try:
                    yield MongoTransaction(client[self.config.db], session)
                    session.commit_transaction()
                except Exception as e:
                    if session.in_transaction:
                        session.abort_transaction()
                    logger.warning("Aborted mongodb unit of work: %s", e)
                    raise
            finally:
                session.end_session()
        except DuplicateKeyError as e:
            raise IntegrityError(str(e)) from e
        except ConnectionFailure as e:
            raise StorageConnectionError(f"Failed to reach MongoDB: {e}") from e
        except OperationFailure as e:
            if e.code == _AUTH_FAILED:
                raise StorageConnectionError(f"MongoDB authentication failed: {e}") from e
            raise
        finally:
            client.close()

    def ensure_indexes(self) -> None:
        """Create collections and indexes. Runs outside any transaction."""
        client = self._connect()
        try:
            database = client[self.config.db]
            database["users"].create_index("email")
            # A session code belongs to at most one user. Users without codes
            # stay out of the index.
            database["users"].create_index(
                "sessions",
                unique=True,
                partialFilterExpression={"sessions": {"$type": "string"}},
            )
            database["posts"].create_index("user_id")
            database["likes"].create_index([("post_id", 1), ("user_id", 1)])
            logger.info("Ensured indexes on %s", self.config.db)
        except ConnectionFailure as e:
            raise StorageConnectionError(f"Failed to reach MongoDB: {e}") from e
        finally:
            client.close()


def parse_object_id(value: str, entity: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise ValidationError(f"Malformed {entity} id: {value!r}") from None


def parse_viewer(value: str | None) -> ObjectId:
    """A missing or malformed viewer becomes a fresh id that matches no like."""
    if value is not None and ObjectId.is_valid(value):
        return ObjectId(value)
    return ObjectId()
