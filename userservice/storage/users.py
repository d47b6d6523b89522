"""MongoDB access for user documents.

Every failure leaves this module as an `ApplicationError` subclass so the
HTTP layer never has to inspect driver exceptions.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Mapping, Optional

from bson.errors import BSONError
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from userservice.core.exceptions import ApplicationError, NotFoundError, ServerFault, UniqueConstraintViolation
from userservice.models.user import User, UserCreate, UserRole, UserUpdate
from userservice.utils.monitoring import record_store_error
from userservice.utils.validators import require_object_id

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@asynccontextmanager
async def _storage_errors(operation: str) -> AsyncIterator[None]:
    try:
        yield
    except DuplicateKeyError as exc:
        logger.info("Duplicate key rejected during %s: %s", operation, exc.details)
        error: ApplicationError = UniqueConstraintViolation("email")
        record_store_error(operation, error.kind.value)
        raise error from exc
    except (PyMongoError, BSONError, OverflowError) as exc:
        logger.exception("Storage failure during %s", operation)
        error = ServerFault(f"{operation} failed: {exc}")
        record_store_error(operation, error.kind.value)
        raise error from exc


class UserRepository:
    """CRUD and aggregate queries over the users collection."""

    def __init__(
        self,
        collection: Any,
        clock: Callable[[], datetime] = utcnow,
        before_write: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> None:
        self.collection = collection
        self.clock = clock
        # Awaited before every insert and update.
        self.before_write = before_write

    async def _prepare_write(self) -> None:
        if self.before_write is not None:
            await self.before_write()

    async def list_users(self, query: Optional[Mapping[str, Any]] = None) -> List[User]:
        async with _storage_errors("list users"):
            documents = await self.collection.find(dict(query or {})).to_list(length=None)
        return [User.from_document(document) for document in documents]

    async def list_by_role(self, role: UserRole) -> List[User]:
        return await self.list_users({"role": role.value})

    async def get_user(self, user_id: str) -> User:
        object_id = require_object_id(user_id)
        async with _storage_errors("get user"):
            document = await self.collection.find_one({"_id": object_id})
        if document is None:
            raise NotFoundError()
        return User.from_document(document)

    async def create_user(self, payload: UserCreate) -> User:
        timestamp = self.clock()
        document: Dict[str, Any] = {**payload.to_document(), "createdAt": timestamp, "updatedAt": timestamp}

        async with _storage_errors("create user"):
            await self._prepare_write()
            result = await self.collection.insert_one(document)

        document["_id"] = result.inserted_id
        logger.info("Created user id=%s", result.inserted_id)
        return User.from_document(document)

    async def update_user(self, user_id: str, payload: UserUpdate) -> User:
        object_id = require_object_id(user_id)
        changes = {**payload.to_changes(), "updatedAt": self.clock()}

        async with _storage_errors("update user"):
            await self._prepare_write()
            document = await self.collection.find_one_and_update(
                {"_id": object_id},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        if document is None:
            raise NotFoundError()
        return User.from_document(document)

    async def delete_user(self, user_id: str) -> None:
        object_id = require_object_id(user_id)
        async with _storage_errors("delete user"):
            document = await self.collection.find_one_and_delete({"_id": object_id})
        if document is None:
            raise NotFoundError()
        logger.info("Deleted user id=%s", object_id)

    async def average_age(self) -> float:
        pipeline = [{"$group": {"_id": None, "avgAge": {"$avg": "$age"}}}]
        async with _storage_errors("average age"):
            results = await self.collection.aggregate(pipeline).to_list(length=None)
        if not results or results[0].get("avgAge") is None:
            return 0
        return results[0]["avgAge"]
