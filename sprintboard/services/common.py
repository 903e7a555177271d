"""Lookup and validation helpers shared by the planning services."""
from typing import Optional, Type, TypeVar

from sqlalchemy.orm import Session

from sprintboard.exceptions import NotFoundError, ValidationError

T = TypeVar("T")


def load_entity(db: Session, model: Type[T], entity_id: int, label: Optional[str] = None) -> T:
    """Return ``model`` row ``entity_id`` or raise ``NotFoundError``."""
    entity = db.query(model).filter(model.id == entity_id).first()
    if entity is None:
        raise NotFoundError(label or model.__name__, entity_id)
    return entity


def require_name(value: Optional[str], what: str = "Name") -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{what} cannot be empty")
    return cleaned
