"""
Database module untuk ContextAuth API.
Berisi base model, session management, dan konfigurasi database.
"""

from contextauth.db.base import Base, BaseModel, TZDateTime
from contextauth.db.session import (
    engine,
    SessionLocal,
    init_db,
    close_db
)

__all__ = [
    "Base",
    "BaseModel",
    "TZDateTime",
    "engine",
    "SessionLocal",
    "init_db",
    "close_db"
]
