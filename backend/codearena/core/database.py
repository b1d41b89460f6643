"""Engine, session factory and the few dialect-aware helpers the services share"""

import logging
from typing import Any, Dict, Generator, Sequence

from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from codearena.config import settings

logger = logging.getLogger(__name__)

VERSION_TABLE = "alembic_version"


def _engine_options(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        # Judging threads and request threads use the same engine.
        return {"connect_args": {"check_same_thread": False}}
    return dict(
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
    )


DATABASE_URL = settings.get_database_url()
engine = create_engine(DATABASE_URL, echo=settings.DEBUG, **_engine_options(DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()

# Registers every table on Base.metadata; must follow the Base definition.
from codearena import models  # noqa: E402,F401


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a session that is always closed afterwards"""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _dialect_insert(dialect: str):
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        return None
    return insert


def insert_if_absent(
    db: Session,
    model: Any,
    values: Dict[str, Any],
    conflict_columns: Sequence[str],
) -> bool:
    """
    Insert ``values`` into ``model`` unless a row with the same
    ``conflict_columns`` already exists. Returns True only for the caller
    whose row landed.

    PostgreSQL and SQLite do this as one ON CONFLICT DO NOTHING statement;
    anything else relies on the unique constraint inside a savepoint.
    """
    insert = _dialect_insert(db.get_bind().dialect.name)
    if insert is not None:
        stmt = insert(model).values(**values).on_conflict_do_nothing(index_elements=list(conflict_columns))
        return db.execute(stmt).rowcount == 1

    try:
        with db.begin_nested():
            db.add(model(**values))
    except IntegrityError:
        return False
    return True


def _has_version_table() -> bool:
    with engine.connect() as conn:
        return inspect(conn).has_table(VERSION_TABLE)


def init_db() -> None:
    """
    Prepare the schema according to DB_INIT_MODE:

    ``migrate``     expect Alembic to have run (fail fast when DB_REQUIRE_HEAD)
    ``create_all``  build tables straight from the models, for local use
    ``off``         do nothing
    """
    mode = settings.DB_INIT_MODE.strip().lower()
    if mode == "off":
        logger.info("Schema check disabled")
    elif mode == "create_all":
        logger.warning("Creating tables from models; use Alembic migrations outside local development")
        Base.metadata.create_all(bind=engine)
    elif mode == "migrate":
        if _has_version_table():
            logger.info("Alembic version table present")
        elif settings.DB_REQUIRE_HEAD:
            raise RuntimeError("Database is not migrated; run `alembic upgrade head` first")
        else:
            logger.warning("Alembic version table missing; continuing because DB_REQUIRE_HEAD is off")
    else:
        raise RuntimeError(f"Unknown DB_INIT_MODE: {settings.DB_INIT_MODE}")
