"""
Base model untuk SQLAlchemy.
Semua model harus inherit dari BaseModel untuk mendapatkan common fields dan behavior.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
import uuid

from sqlalchemy import Column, DateTime, inspect
from sqlalchemy.orm import declarative_base, declared_attr
from sqlalchemy.types import TypeDecorator


class TZDateTime(TypeDecorator):
    """
    DateTime yang selalu timezone-aware (UTC).
    Backend tanpa dukungan timezone (misal SQLite) mengembalikan naive datetime,
    jadi nilai dinormalisasi ke UTC saat ditulis dan dibaca.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class _Base:
    """
    Base class untuk semua SQLAlchemy models.
    """

    def dict(self, exclude: Optional[set] = None) -> Dict[str, Any]:
        """
        Convert model instance to dictionary.

        Args:
            exclude: Set of fields to exclude

        Returns:
            Dictionary representation of model
        """
        exclude = exclude or set()

        result = {}
        for column in inspect(self.__class__).columns:
            if column.name in exclude:
                continue
            value = getattr(self, column.name)

            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, uuid.UUID):
                value = str(value)

            result[column.name] = value

        return result

    def __repr__(self) -> str:
        """
        String representation of model instance.
        """
        class_name = self.__class__.__name__

        primary_keys = []
        for column in inspect(self.__class__).primary_key:
            value = getattr(self, column.name)
            primary_keys.append(f"{column.name}={value}")

        if primary_keys:
            return f"<{class_name}({', '.join(primary_keys)})>"
        return f"<{class_name}>"


Base = declarative_base(cls=_Base)


class BaseModel(Base):
    """
    Abstract base model dengan common fields.
    Semua models yang perlu timestamp fields harus inherit dari ini.
    """
    __abstract__ = True

    created_at = Column(
        TZDateTime(),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True
    )

    updated_at = Column(
        TZDateTime(),
        default=None,
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=True
    )

    @declared_attr
    def __mapper_args__(cls):
        """
        SQLAlchemy mapper arguments.
        Enable eager defaults untuk mendapatkan server-generated values.
        """
        return {
            "eager_defaults": True
        }
