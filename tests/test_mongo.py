"""Tests for the MongoDB backend — pipelines, projection and transactions against a mock client."""

from __future__ import annotations

from collections import defaultdict
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, OperationFailure, ServerSelectionTimeoutError

from contentstore.config import AppConfig, MongoConfig, StorageBackend
from contentstore.errors import (
    ConfigurationError,
    IntegrityError,
    NotFoundError,
    StorageConnectionError,
    ValidationError,
)
from contentstore.models import Post, Settings, User
from contentstore.mongo import pipelines
from contentstore.mongo.connection import MongoDatabase, parse_object_id, parse_viewer
from contentstore.mongo.like import MongoLikeRepository
from contentstore.mongo.post import MongoPostRepository
from contentstore.mongo.session import MongoSessionRepository
from contentstore.mongo.user import MongoUserRepository


@pytest.fixture
def client():
    """A MongoClient stand-in whose database hands out one mock per collection name."""
    client = MagicMock()
    client.collections = defaultdict(MagicMock)
    client.__getitem__.return_value.__getitem__.side_effect = client.collections.__getitem__
    return client


@pytest.fixture
def session(client):
    return client.start_session.return_value


@pytest.fixture
def mongo(client) -> MongoDatabase:
    config = AppConfig(
        backend=StorageBackend.MONGODB,
        mongodb=MongoConfig(uri="mongodb://localhost:27017/?replicaSet=rs0", db="content"),
    )
    return MongoDatabase(config, client_factory=lambda uri: client)


class TestPipelines:
    def test_projection_redacts_author(self):
        stages = pipelines.post_projection(ObjectId())
        unset = stages[2]["$unset"]
        for field in ("user_id", "author.sessions", "author.settings", "author.email", "author.password_hash"):
            assert field in unset

    def test_projection_matches_viewer_likes(self):
        viewer = ObjectId()
        lookup = pipelines.post_projection(viewer)[3]["$lookup"]
        assert lookup["from"] == "likes"
        conditions = lookup["pipeline"][0]["$match"]["$expr"]["$and"]
        assert {"$eq": ["$user_id", viewer]} in conditions
        assert {"$eq": ["$post_id", "$$post_id"]} in conditions

    def test_single_post_matches_first(self):
        post_id = ObjectId()
        stages = pipelines.single_post(post_id, ObjectId())
        assert stages[0] == {"$match": {"_id": post_id}}

    def test_liked_posts_filters_last(self):
        stages = pipelines.liked_posts(ObjectId())
        assert stages[-1] == {"$match": {"liked": True}}
        assert stages[:-1][0]["$lookup"]["from"] == "users"


class TestIds:
    def test_parse_object_id(self):
        oid = ObjectId()
        assert parse_object_id(str(oid), "post") == oid

    def test_parse_malformed_object_id(self):
        with pytest.raises(ValidationError):
            parse_object_id("42", "post")

    def test_viewer_sentinel(self):
        oid = ObjectId()
        assert parse_viewer(str(oid)) == oid
        assert isinstance(parse_viewer(None), ObjectId)
        assert parse_viewer("42") != parse_viewer("42")


class TestTransaction:
    def test_commit_on_success(self, mongo, client, session):
        with mongo.transaction() as tx:
            assert tx.session is session

        session.start_transaction.assert_called_once()
        session.commit_transaction.assert_called_once()
        session.abort_transaction.assert_not_called()
        session.end_session.assert_called_once()
        client.close.assert_called_once()

    def test_abort_on_error(self, mongo, client, session):
        with pytest.raises(RuntimeError):
            with mongo.transaction():
                raise RuntimeError("boom")

        session.abort_transaction.assert_called_once()
        session.commit_transaction.assert_not_called()
        client.close.assert_called_once()

    def test_duplicate_key_is_integrity_error(self, mongo, client):
        client.collections["likes"].insert_one.side_effect = DuplicateKeyError("E11000")

        with pytest.raises(IntegrityError):
            with mongo.transaction() as tx:
                tx.collection("likes").insert_one({}, session=tx.session)

    def test_unreachable_server(self, mongo, client):
        client.start_session.side_effect = ServerSelectionTimeoutError("no primary")

        with pytest.raises(StorageConnectionError):
            with mongo.transaction():
                pass
        client.close.assert_called_once()

    def test_auth_failure(self, mongo, client):
        client.start_session.side_effect = OperationFailure("Authentication failed.", code=18)

        with pytest.raises(StorageConnectionError):
            with mongo.transaction():
                pass

    def test_missing_config(self):
        config = AppConfig(backend=StorageBackend.MONGODB, mongodb=MongoConfig(uri="", db=""))
        with pytest.raises(ConfigurationError, match="MONGODB_URI"):
            MongoDatabase(config)


class TestMongoUserRepository:
    def test_create_rejects_empty_password(self, mongo, client):
        with pytest.raises(ValidationError):
            MongoUserRepository(mongo).create(User(first_name="A", password=None))
        client.start_session.assert_not_called()

    def test_create_embeds_settings(self, mongo, client):
        users = client.collections["users"]
        inserted = ObjectId()
        users.insert_one.return_value.inserted_id = inserted
        user = User(
            first_name="Ada",
            last_name="Lovelace",
            email="ada@example.com",
            password="test",
            settings=Settings(posts_per_page=25),
        )

        user_id = MongoUserRepository(mongo).create(user)

        assert user_id == str(inserted)
        assert user.settings.user_id == user_id
        assert user.settings.id
        doc = users.insert_one.call_args.args[0]
        assert doc["password_hash"] == "098f6bcd4621d373cade4e832627b4f6"
        assert doc["settings"]["posts_per_page"] == 25
        assert doc["settings"]["display_email"] is False
        assert doc["sessions"] == []
        assert "password" not in doc

    def test_get_id_not_found(self, mongo, client):
        client.collections["users"].find_one.return_value = None
        with pytest.raises(NotFoundError):
            MongoUserRepository(mongo).get_id("ada@example.com", "test")

    @pytest.mark.parametrize("display_email", [True, False])
    def test_get_settings_email_follows_flag(self, mongo, client, display_email):
        oid = ObjectId()
        client.collections["users"].find_one.return_value = {
            "_id": oid,
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email": "ada@example.com",
            "settings": {"_id": ObjectId(), "posts_per_page": 10, "display_email": display_email},
        }

        user = MongoUserRepository(mongo).get_settings(str(oid))

        assert user.id == str(oid)
        assert user.settings.user_id == str(oid)
        assert user.settings.display_email is display_email
        assert user.email == ("ada@example.com" if display_email else None)

    def test_edit_missing_user(self, mongo, client, session):
        client.collections["users"].update_one.return_value.matched_count = 0
        with pytest.raises(NotFoundError):
            MongoUserRepository(mongo).edit(Settings(user_id=str(ObjectId())))
        session.abort_transaction.assert_called_once()


class TestMongoPostRepository:
    def test_read_projects_redacted_author(self, mongo, client):
        post_id, author_id = ObjectId(), ObjectId()
        client.collections["posts"].aggregate.return_value = iter(
            [
                {
                    "_id": post_id,
                    "title": "Hello",
                    "text": None,
                    "description": "intro",
                    "author": {"_id": author_id, "first_name": "Ada", "last_name": "Lovelace"},
                    "liked": True,
                }
            ]
        )

        post = MongoPostRepository(mongo).get(str(post_id), str(ObjectId()))

        assert post.id == str(post_id)
        assert post.liked is True
        assert post.author.id == str(author_id)
        assert post.author.email is None
        assert post.author.settings is None

    def test_get_missing(self, mongo, client):
        client.collections["posts"].aggregate.return_value = iter([])
        with pytest.raises(NotFoundError):
            MongoPostRepository(mongo).get(str(ObjectId()))

    def test_list_without_author(self, mongo, client):
        client.collections["posts"].aggregate.return_value = iter(
            [{"_id": ObjectId(), "title": "orphan", "liked": False}]
        )

        posts = MongoPostRepository(mongo).list()

        assert len(posts) == 1
        assert posts[0].author is None
        assert posts[0].liked is False

    def test_create_checks_author(self, mongo, client, session):
        client.collections["users"].count_documents.return_value = 0
        author = User(id=str(ObjectId()))

        with pytest.raises(IntegrityError):
            MongoPostRepository(mongo).create(Post(title="t", author=author))
        client.collections["posts"].insert_one.assert_not_called()
        session.abort_transaction.assert_called_once()

    def test_liked_list_pipeline(self, mongo, client):
        viewer = ObjectId()
        client.collections["posts"].aggregate.return_value = iter([])

        MongoPostRepository(mongo).liked_list(str(viewer))

        pipeline = client.collections["posts"].aggregate.call_args.args[0]
        assert pipeline == pipelines.liked_posts(viewer)


class TestMongoLikeRepository:
    def test_delete_removes_every_duplicate(self, mongo, client):
        viewer, post = ObjectId(), ObjectId()

        MongoLikeRepository(mongo).delete(str(viewer), str(post))

        client.collections["likes"].delete_many.assert_called_once()
        assert client.collections["likes"].delete_many.call_args.args[0] == {
            "user_id": viewer,
            "post_id": post,
        }

    def test_create_missing_post(self, mongo, client):
        client.collections["posts"].count_documents.return_value = 0
        with pytest.raises(IntegrityError):
            MongoLikeRepository(mongo).create(str(ObjectId()), str(ObjectId()))
        client.collections["likes"].insert_one.assert_not_called()


class TestMongoSessionRepository:
    def test_create_adds_to_set(self, mongo, client):
        users = client.collections["users"]
        users.find_one.return_value = None
        user_id = ObjectId()

        MongoSessionRepository(mongo).create(str(user_id), "code-1")

        filter_, update = users.update_one.call_args.args
        assert filter_ == {"_id": user_id}
        assert update == {"$addToSet": {"sessions": "code-1"}}

    def test_code_held_by_other_user(self, mongo, client, session):
        users = client.collections["users"]
        users.find_one.return_value = {"_id": ObjectId()}

        with pytest.raises(IntegrityError):
            MongoSessionRepository(mongo).create(str(ObjectId()), "code-1")
        users.update_one.assert_not_called()
        session.abort_transaction.assert_called_once()

    def test_get_user_id_ambiguous(self, mongo, client):
        client.collections["users"].find.return_value = iter(
            [{"_id": ObjectId()}, {"_id": ObjectId()}]
        )
        with pytest.raises(IntegrityError):
            MongoSessionRepository(mongo).get_user_id("code-1")

    def test_get_user_id_unknown(self, mongo, client):
        client.collections["users"].find.return_value = iter([])
        with pytest.raises(NotFoundError):
            MongoSessionRepository(mongo).get_user_id("code-1")

    def test_concurrent_claim_is_integrity_error(self, mongo, client, session):
        users = client.collections["users"]
        users.find_one.return_value = None
        users.update_one.side_effect = DuplicateKeyError("E11000 duplicate key error: sessions_1")

        with pytest.raises(IntegrityError):
            MongoSessionRepository(mongo).create(str(ObjectId()), "code-1")
        session.abort_transaction.assert_called_once()


class TestEnsureIndexes:
    def test_indexes(self, mongo, client):
        mongo.ensure_indexes()

        users = client.collections["users"]
        users.create_index.assert_any_call("email")
        users.create_index.assert_any_call(
            "sessions",
            unique=True,
            partialFilterExpression={"sessions": {"$type": "string"}},
        )
        client.collections["posts"].create_index.assert_called_once_with("user_id")
        client.collections["likes"].create_index.assert_called_once_with(
            [("post_id", 1), ("user_id", 1)]
        )
        client.start_session.assert_not_called()
        client.close.assert_called_once()

    def test_unreachable_server(self, mongo, client):
        client.collections["users"].create_index.side_effect = ServerSelectionTimeoutError(
            "no primary"
        )

        with pytest.raises(StorageConnectionError):
            mongo.ensure_indexes()
        client.close.assert_called_once()
