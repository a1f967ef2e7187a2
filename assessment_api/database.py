"""Database utilities and setup."""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from assessment_api.config import DATABASE_URL, DB_DIR, DB_ECHO


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, **kwargs) -> Engine:
    """Create an engine, switching on foreign keys for SQLite."""
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    new_engine = create_engine(url, echo=DB_ECHO, **kwargs)
    if is_sqlite:
        event.listen(new_engine, "connect", _enable_sqlite_foreign_keys)
    return new_engine


if DATABASE_URL.startswith("sqlite:///") and ":memory:" not in DATABASE_URL:
    DB_DIR.mkdir(parents=True, exist_ok=True)

# Create engine
engine = build_engine(DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Base class for models
class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def get_session_factory() -> sessionmaker:
    """Dependency to get the session factory handed to services."""
    return SessionLocal


def init_db(bind: Engine | None = None) -> None:
    """Initialize database (create all tables)."""
    # Register models on the metadata before creating tables
    import assessment_api.models.db  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
