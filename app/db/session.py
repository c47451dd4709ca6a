# app/db/session.py
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.core.config import get_settings


def normalize_database_url(url: str) -> str:
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def build_engine(url: str, *, echo: bool = False) -> Engine:
    url = normalize_database_url(url)
    connect_args = {}
    if url.startswith("sqlite"):
        # Las sesiones por request pueden vivir en otro hilo (threadpool de FastAPI)
        connect_args = {"check_same_thread": False, "timeout": 30}

    eng = create_engine(url, future=True, echo=echo, connect_args=connect_args)

    if eng.dialect.name == "sqlite":
        # Sin esto SQLite ignora ON DELETE RESTRICT / SET NULL
        @event.listens_for(eng, "connect")
        def _sqlite_fk_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
            # El driver no emite BEGIN; lo hacemos nosotros abajo
            dbapi_connection.isolation_level = None

        # Lock de escritura desde el inicio de la transacción
        @event.listens_for(eng, "begin")
        def _sqlite_begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return eng


settings = get_settings()

engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    future=True,
)
