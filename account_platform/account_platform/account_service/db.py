from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_db_engine(database_url: str) -> Engine:
    """
    Build the SQLAlchemy engine for the given URL.

    SQLite connections are shared across FastAPI's worker threads, so
    same-thread checking is disabled. An in-memory SQLite database lives
    on a single connection, otherwise every new connection would see an
    empty database.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create the account tables and verify the email uniqueness index."""
    from .models import User  # noqa: F401  registers the table on Base

    Base.metadata.create_all(bind=engine)

    inspector = inspect(engine)
    unique_columns = [c["column_names"] for c in inspector.get_unique_constraints("users")]
    unique_columns += [i["column_names"] for i in inspector.get_indexes("users") if i.get("unique")]
    if ["email"] not in unique_columns:
        raise RuntimeError("users.email is missing its unique constraint")
    logger.info("Database initialized successfully")


def check_db_connection(engine: Engine) -> bool:
    """
    Check if database connection is working.

    Returns:
        bool: True if connection is successful, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
