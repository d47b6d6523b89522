from __future__ import annotations

import copy
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import bson
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from userservice.api.dependencies import get_user_repository
from userservice.api.main import app
from userservice.storage.users import UserRepository


class StubCursor:
    def __init__(self, documents: List[Dict[str, Any]]) -> None:
        self._documents = documents

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._documents if length is None else self._documents[:length])


class StubUserCollection:
    """In-memory stand-in for the motor collection subset the repository uses."""

    def __init__(self) -> None:
        self.documents: List[Dict[str, Any]] = []
        self.indexes: List[str] = []

    async def create_index(self, key: str, unique: bool = False) -> str:
        self.indexes.append(key)
        return f"{key}_1"

    def find(self, query: Optional[Dict[str, Any]] = None) -> StubCursor:
        return StubCursor([doc for doc in self.documents if _matches(doc, query or {})])

    async def find_one(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        for doc in self.documents:
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    async def insert_one(self, document: Dict[str, Any]) -> SimpleNamespace:
        bson.encode(document)
        self._check_email(document.get("email"), exclude_id=None)
        document.setdefault("_id", ObjectId())
        self.documents.append(copy.deepcopy(document))
        return SimpleNamespace(inserted_id=document["_id"])

    async def find_one_and_update(
        self,
        query: Dict[str, Any],
        update: Dict[str, Any],
        return_document: bool = ReturnDocument.BEFORE,
    ) -> Optional[Dict[str, Any]]:
        for doc in self.documents:
            if _matches(doc, query):
                changes = update["$set"]
                bson.encode(changes)
                if "email" in changes:
                    self._check_email(changes["email"], exclude_id=doc["_id"])
                before = copy.deepcopy(doc)
                doc.update(copy.deepcopy(changes))
                return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else before
        return None

    async def find_one_and_delete(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        for index, doc in enumerate(self.documents):
            if _matches(doc, query):
                return self.documents.pop(index)
        return None

    def aggregate(self, pipeline: List[Dict[str, Any]]) -> StubCursor:
        assert pipeline == [{"$group": {"_id": None, "avgAge": {"$avg": "$age"}}}]
        if not self.documents:
            return StubCursor([])
        ages = [doc["age"] for doc in self.documents if isinstance(doc.get("age"), (int, float))]
        average = sum(ages) / len(ages) if ages else None
        return StubCursor([{"_id": None, "avgAge": average}])

    def _check_email(self, email: Any, exclude_id: Optional[ObjectId]) -> None:
        for doc in self.documents:
            if doc.get("email") == email and doc["_id"] != exclude_id:
                raise DuplicateKeyError("E11000 duplicate key error collection: testdb.users index: email_1", 11000)


def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    return all(document.get(key) == value for key, value in query.items())


class TickingClock:
    """Advances one second on every call."""

    def __init__(self) -> None:
        self.current = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture
def collection() -> StubUserCollection:
    return StubUserCollection()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def repository(collection: StubUserCollection, clock: TickingClock) -> UserRepository:
    return UserRepository(collection, clock=clock)


@pytest.fixture
def client(repository: UserRepository):
    async def override() -> UserRepository:
        return repository

    app.dependency_overrides[get_user_repository] = override
    yield TestClient(app)
    app.dependency_overrides.clear()
