from typing import Optional

from redis import ConnectionPool, Redis
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import settings

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # Sessions are used from FastAPI's worker threads
    connect_args = {"check_same_thread": False, "timeout": 30}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

redis_pool: Optional[ConnectionPool] = (
    ConnectionPool.from_url(settings.REDIS_URL, decode_responses=True) if settings.REDIS_URL else None
)

Base = declarative_base()


def init_db():
    # Import models so their tables are registered on Base
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_redis_client() -> Optional[Redis]:
    if redis_pool is None:
        return None
    return Redis(connection_pool=redis_pool)
