"""User CRUD and aggregate endpoints."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, status

from userservice.api.dependencies import get_user_repository
from userservice.models import AverageAge, Message, User, UserRole
from userservice.storage.users import UserRepository
from userservice.utils.validators import parse_user_create, parse_user_update

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[User])
async def list_users(repository: UserRepository = Depends(get_user_repository)) -> List[User]:
    """Return every stored user."""

    return await repository.list_users()


# Literal paths must be declared before "/{user_id}" or they would be matched as ids.
@router.get("/admin", response_model=List[User])
async def list_admins(repository: UserRepository = Depends(get_user_repository)) -> List[User]:
    """Return users whose role is admin."""

    return await repository.list_by_role(UserRole.ADMIN)


@router.get("/average-age", response_model=AverageAge)
async def average_age(repository: UserRepository = Depends(get_user_repository)) -> AverageAge:
    """Mean age over all users, 0 when there are none."""

    return AverageAge(average_age=await repository.average_age())


@router.get("/{user_id}", response_model=User)
async def get_user(user_id: str, repository: UserRepository = Depends(get_user_repository)) -> User:
    return await repository.get_user(user_id)


@router.post("", response_model=User, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: Optional[Dict[str, Any]] = Body(None),
    repository: UserRepository = Depends(get_user_repository),
) -> User:
    """Validate and persist a new user.

    All violated fields are reported together; a taken email is reported
    separately from field validation.
    """

    return await repository.create_user(parse_user_create(payload or {}))


@router.put("/{user_id}", response_model=User)
async def update_user(
    user_id: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    repository: UserRepository = Depends(get_user_repository),
) -> User:
    """Apply a partial update and return the stored result."""

    return await repository.update_user(user_id, parse_user_update(payload or {}))


@router.delete("/{user_id}", response_model=Message)
async def delete_user(user_id: str, repository: UserRepository = Depends(get_user_repository)) -> Message:
    await repository.delete_user(user_id)
    return Message(message="User deleted successfully")
