import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from phishlens.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str):
    """SQLite needs cross-thread access; server databases get a real pool"""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False}
        )
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def get_db():
    """Dependency for FastAPI routes"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db(bind=None):
    """Initialize database tables"""
    # Models must be imported so they register with Base
    import phishlens.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ready")
