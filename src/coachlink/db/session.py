from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

from coachlink.config import settings
from coachlink.db import models  # noqa: F401  (registers tables on SQLModel.metadata)

DATABASE_URL = settings.DATABASE_URL
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL must be set in the environment")


def build_engine(url: str) -> Engine:
    """Create an engine; SQLite gets cross-thread connections and enforced foreign keys."""
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    engine = create_engine(
        url,
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


engine = build_engine(DATABASE_URL)


def init_db():
    """Initialize database schema in local/dev when explicitly enabled.

    Prefer running Alembic migrations in non-dev environments. To enable
    automatic table creation for local development, set DB_AUTO_CREATE=1.
    """
    if settings.DB_AUTO_CREATE:
        SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
