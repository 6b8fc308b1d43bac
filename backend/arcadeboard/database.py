"""
Database engine, session factory and FastAPI session dependency.
"""
import logging
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from arcadeboard.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

Base = declarative_base()


def build_engine(database_url: str):
    """Create an engine, using pool sizing only where the dialect supports it."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,  # Test connection health before using
    )


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for FastAPI routes.

    Usage:
        @router.get("/api/leaderboard")
        async def leaderboard(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create all tables registered on Base."""
    # Models must be imported so their tables are registered
    from arcadeboard import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready")
