import os
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./psychodash.db")

Base = declarative_base()


def make_engine(url: str = DATABASE_URL) -> Engine:
    """Engine for the blob store. SQLite needs check_same_thread off for FastAPI's threadpool."""
    connect_args = {}
    kwargs = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        # in-memory sqlite lives per connection, so pin a single one
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(url, echo=False, connect_args=connect_args, **kwargs)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


def init_db(bind: Engine) -> None:
    from . import models  # noqa: F401  (registers kv_store on Base.metadata)
    Base.metadata.create_all(bind=bind)


engine = make_engine()

SessionLocal = make_session_factory(engine)
