"""Input validation helpers."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Type, TypeVar

from bson import ObjectId
from pydantic import BaseModel, ValidationError

from userservice.core.exceptions import InvalidIdentifierError, ValidationFailure
from userservice.models.user import FIELD_LABELS, FIELD_ORDER, UserCreate, UserUpdate

RulesT = TypeVar("RulesT", bound=BaseModel)


def require_object_id(value: str) -> ObjectId:
    if not ObjectId.is_valid(value):
        raise InvalidIdentifierError()
    return ObjectId(value)


def violation_messages(exc: ValidationError) -> List[str]:
    """Collapse pydantic errors into one readable message per field."""

    by_field: Dict[str, str] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else ""
        if field not in by_field:
            by_field[field] = _describe(field, error)

    def rank(field: str) -> int:
        return FIELD_ORDER.index(field) if field in FIELD_ORDER else len(FIELD_ORDER)

    return [by_field[field] for field in sorted(by_field, key=rank)]


def _describe(field: str, error: Mapping[str, Any]) -> str:
    label = FIELD_LABELS.get(field, field.capitalize())
    error_type = error["type"]
    if error_type.startswith("user_"):
        return error["msg"]
    if error_type == "missing":
        return f"{label} is required"
    if field == "age":
        return "Age must be a number"
    return f"{label} must be a string"


def _parse(model: Type[RulesT], payload: Mapping[str, Any]) -> RulesT:
    try:
        return model.model_validate(dict(payload))
    except ValidationError as exc:
        raise ValidationFailure(violation_messages(exc)) from exc


def parse_user_create(payload: Mapping[str, Any]) -> UserCreate:
    return _parse(UserCreate, payload)


def parse_user_update(payload: Mapping[str, Any]) -> UserUpdate:
    return _parse(UserUpdate, payload)
