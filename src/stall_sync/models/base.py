"""Declarative base shared by all Stall Sync tables."""

from typing import Any

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JsonType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for ORM models."""

    type_annotation_map = {
        dict[str, Any]: JsonType,
        list[str]: JsonType,
    }
