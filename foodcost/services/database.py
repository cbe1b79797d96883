"""
SQLite engine and session handling for the FoodCost store.

One process-wide engine and session factory are created lazily from the
configured database URL. Every service call opens its own unit of work
through session_scope(); the tests swap get_session_factory() for an
in-memory database.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..models.base import Base
from ..utils.config import get_config

logger = logging.getLogger(__name__)

# Tables the costing core cannot work without
REQUIRED_TABLES = ("ingredients", "recipes", "recipe_ingredients", "dishes", "sales_records")

_SQLITE_PRAGMAS = (
    ("foreign_keys", "ON"),
    ("journal_mode", "WAL"),
    ("synchronous", "NORMAL"),
)

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


@event.listens_for(Engine, "connect")
def _apply_sqlite_pragmas(dbapi_connection, _connection_record):
    """Turn on FK enforcement (RESTRICT on used ingredients) and WAL for each connection."""
    cursor = dbapi_connection.cursor()
    for pragma, value in _SQLITE_PRAGMAS:
        cursor.execute(f"PRAGMA {pragma}={value}")
    cursor.close()


def _is_memory_url(url: str) -> bool:
    return ":memory:" in url or "mode=memory" in url


def create_database_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Build an engine for a SQLite URL.

    In-memory URLs share one connection (StaticPool) so that every session
    sees the same tables.

    Args:
        database_url: SQLAlchemy URL; the configured database when None
        echo: Log emitted SQL
    """
    url = database_url or get_config().database_url
    logger.info(f"Opening FoodCost database {url}")

    if _is_memory_url(url):
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=echo, connect_args={"check_same_thread": False, "timeout": 30})


def init_database(engine: Optional[Engine] = None) -> None:
    """Create any missing table for the FoodCost models (idempotent)."""
    target = engine if engine is not None else get_engine()

    # Registers every model on Base.metadata
    from ..models import dish, ingredient, recipe, sales_record  # noqa: F401

    Base.metadata.create_all(target)
    logger.info(f"Schema ready: {len(Base.metadata.tables)} tables")


def get_engine(force_recreate: bool = False) -> Engine:
    """Return the shared engine, creating it on first use or when forced."""
    global _engine

    if force_recreate or _engine is None:
        _engine = create_database_engine()
    return _engine


def get_session_factory() -> sessionmaker:
    """
    Return the shared session factory.

    Sessions keep loaded attributes after commit so that services can hand
    ORM instances back to callers.
    """
    global _session_factory

    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine(), expire_on_commit=False)
    return _session_factory


def get_session() -> Session:
    """Open a session from the current factory."""
    return get_session_factory()()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Unit of work for a single service call.

    The session is committed when the block exits normally, rolled back when
    it raises, and closed in both cases.

    Example:
        with session_scope() as session:
            recipe = session.query(Recipe).filter_by(id=recipe_id).first()
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def verify_database() -> bool:
    """True when the shared engine can be inspected and holds every required table."""
    try:
        present = set(inspect(get_engine()).get_table_names())
    except SQLAlchemyError as e:
        logger.error(f"Could not inspect FoodCost database: {e}")
        return False

    missing = [table for table in REQUIRED_TABLES if table not in present]
    if missing:
        logger.warning(f"FoodCost database is missing tables: {', '.join(missing)}")
    return not missing


def close_connections() -> None:
    """Dispose the shared engine; the next call creates a fresh one."""
    global _engine, _session_factory

    _session_factory = None
    if _engine is not None:
        _engine.dispose()
        _engine = None
    logger.debug("FoodCost engine disposed")


def initialize_app_database() -> None:
    """Create the configured database file and its tables, then check them."""
    config = get_config()
    state = "existing" if config.database_exists() else "new"
    logger.info(f"Preparing {state} database at {config.database_path}")

    init_database(get_engine())
    if verify_database():
        logger.info("FoodCost database ready")
