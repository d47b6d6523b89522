from __future__ import annotations

from userservice.core.database import database_manager
from userservice.storage.users import UserRepository


async def get_user_repository() -> UserRepository:
    return UserRepository(database_manager.users, before_write=database_manager.ensure_indexes)
