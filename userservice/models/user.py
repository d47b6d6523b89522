"""User schemas: write-time validation rules and the external representation."""

from __future__ import annotations

import math
import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

EMAIL_PATTERN = re.compile(r".+@.+\..+")
NAME_MIN_LENGTH = 2
AGE_MINIMUM = 1
# BSON stores integers as signed 64-bit; anything wider is kept as a double.
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1

# Violations are reported in this order, one message per field.
FIELD_ORDER = ("name", "email", "age", "role")
FIELD_LABELS = {"name": "Name", "email": "Email", "age": "Age", "role": "Role"}

Number = Union[int, float]


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


_ROLE_VALUES = frozenset(role.value for role in UserRole)


class _UserRules(BaseModel):
    """Field rules shared by create and update payloads.

    Validators only fire for values present in the payload, so a partial
    update is checked on the supplied fields alone.
    """

    model_config = ConfigDict(extra="ignore")

    @field_validator("name", "email", "age", mode="before", check_fields=False)
    @classmethod
    def _require_value(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or value == "":
            raise PydanticCustomError(
                "user_required", "{label} is required", {"label": FIELD_LABELS[info.field_name]}
            )
        return value

    @field_validator("name", check_fields=False)
    @classmethod
    def _check_name(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) < NAME_MIN_LENGTH:
            raise PydanticCustomError(
                "user_name_too_short",
                "Name must be at least {min_length} characters long",
                {"min_length": NAME_MIN_LENGTH},
            )
        return value

    @field_validator("email", check_fields=False)
    @classmethod
    def _check_email(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not EMAIL_PATTERN.search(value):
            raise PydanticCustomError("user_email_format", "Please enter a valid email address")
        return value

    @field_validator("age", check_fields=False)
    @classmethod
    def _check_age(cls, value: Optional[Number]) -> Optional[Number]:
        if value is None:
            return value
        if isinstance(value, int) and not INT64_MIN <= value <= INT64_MAX:
            try:
                value = float(value)
            except OverflowError:
                raise PydanticCustomError("user_age_type", "Age must be a number") from None
        if not math.isfinite(value):
            raise PydanticCustomError("user_age_type", "Age must be a number")
        if value < AGE_MINIMUM:
            raise PydanticCustomError(
                "user_age_minimum", "Age must be at least {minimum}", {"minimum": AGE_MINIMUM}
            )
        return value

    @field_validator("role", mode="before", check_fields=False)
    @classmethod
    def _check_role(cls, value: Any) -> Any:
        if value is None:
            return UserRole.USER
        if not isinstance(value, str) or value not in _ROLE_VALUES:
            raise PydanticCustomError("user_role_enum", "Role must be either admin or user")
        return value


class UserCreate(_UserRules):
    name: str
    email: str
    age: Number
    role: UserRole = UserRole.USER

    def to_document(self) -> Dict[str, Any]:
        return {"name": self.name, "email": self.email, "age": self.age, "role": self.role.value}


class UserUpdate(_UserRules):
    name: Optional[str] = None
    email: Optional[str] = None
    age: Optional[Number] = None
    role: Optional[UserRole] = None

    def to_changes(self) -> Dict[str, Any]:
        """Only the fields the client actually sent."""

        changes = self.model_dump(exclude_unset=True)
        if "role" in changes:
            changes["role"] = UserRole(changes["role"]).value
        return changes


class User(BaseModel):
    """Persisted user as returned to clients.

    Fields are optional because documents written before a rule existed
    are returned as stored.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    age: Optional[Number] = None
    role: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "User":
        return cls(
            id=str(document["_id"]),
            name=document.get("name"),
            email=document.get("email"),
            age=document.get("age"),
            role=document.get("role"),
            created_at=document.get("createdAt"),
            updated_at=document.get("updatedAt"),
        )


class AverageAge(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    average_age: Number = Field(alias="averageAge")


class Message(BaseModel):
    message: str
