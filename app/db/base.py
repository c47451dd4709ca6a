# app/db/base.py
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlalchemy.orm import DeclarativeBase


def new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base declarativa para todos los modelos ORM."""
    pass


class TimestampMixin:
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


# IMPORTANTE: importar modelos para que Base.metadata los registre
from app import models  # noqa: F401,E402
