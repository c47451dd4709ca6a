# app/db/deps.py
from typing import Iterator

from sqlalchemy.orm import Session

from app.db.session import SessionLocal


def get_db() -> Iterator[Session]:
    """Una sesión por request; se cierra (y descarta lo no confirmado) al final."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
