"""
Declarative base and the columns every FoodCost table shares.

Each table gets an integer key, a UUID string usable outside the database,
and UTC creation / modification timestamps.
"""

import uuid as uuid_lib
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base, validates

from foodcost.utils.datetime_utils import utc_now

Base = declarative_base()


def _new_uuid() -> str:
    return str(uuid_lib.uuid4())


class BaseModel(Base):
    """Abstract parent of the ingredient, recipe, dish and sales tables."""

    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, default=_new_uuid, index=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    def to_dict(self, include_relationships: bool = False) -> Dict[str, Any]:
        """
        Plain-dict view of the row; datetimes become ISO strings.

        With include_relationships, loaded relations are nested one level
        deep (collections as lists, None kept as None).
        """
        data = {
            column.name: _plain(getattr(self, column.name)) for column in self.__table__.columns
        }
        if not include_relationships:
            return data

        for relation in self.__mapper__.relationships:
            related = getattr(self, relation.key)
            if related is None:
                data[relation.key] = None
            elif relation.uselist:
                data[relation.key] = [item.to_dict() for item in related]
            else:
                data[relation.key] = related.to_dict()
        return data

    @validates("uuid")
    def _validate_uuid(self, _key: str, value: Any) -> str:
        # uuid.UUID objects are stored as their string form
        return value if value is None else str(value)

    def __repr__(self) -> str:
        label = getattr(self, "name", None)
        if label is not None:
            return f"<{type(self).__name__} {self.id} {label!r}>"
        return f"<{type(self).__name__} {self.id}>"


def _plain(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value
