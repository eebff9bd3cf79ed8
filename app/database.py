"""AdsIntel — Database Engine & Session Factory.

SQLite by default; PostgreSQL when DATABASE_URL points at one. All tables
live in one metadata and are created on startup.
"""

from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from app.config import settings
from app.core.logging import get_logger

logger = get_logger("database")


def mask_url(url: str) -> str:
    """Hide the password of a connection URL for logging."""
    scheme, sep, rest = url.partition("://")
    if not sep or "@" not in rest:
        return url
    credentials, host = rest.rsplit("@", 1)
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:****@{host}"


def build_engine(url: str) -> Engine:
    """Create an engine with backend-appropriate pooling.

    In-memory SQLite shares one connection so every session sees the same
    tables.
    """
    kwargs: Dict[str, Any] = {"echo": False}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        logger.info(f"📦 Database backend: SQLite ({url})")
    else:
        kwargs.update(pool_pre_ping=True, pool_size=5, max_overflow=10, pool_recycle=300)
        logger.info(f"🐘 Database backend: PostgreSQL ({mask_url(url)})")
    return create_engine(url, **kwargs)


engine = build_engine(settings.effective_database_url)


def check_connection() -> bool:
    """Run SELECT 1 against the configured database."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("✅ Database connection: OK")
        return True
    except SQLAlchemyError as e:
        logger.error(f"❌ Database connection failed: {e}")
        return False


def create_tables(target: Engine) -> None:
    # Table models register themselves on import
    from app.models import lead_models, metric_models, raw_models, secret_models  # noqa: F401

    SQLModel.metadata.create_all(target)


def init_db() -> None:
    """Create all tables on the application engine."""
    logger.info("🔨 Creating database tables...")
    create_tables(engine)
    logger.info("✅ Database tables ready")


def get_session():
    """Dependency: yields a DB session."""
    with Session(engine) as session:
        yield session
