# coachdesk/db.py
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

LOG = logging.getLogger(__name__)

Base = declarative_base()

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def make_engine(database_url: str, timeout: float = 5.0):
    """Create an engine whose connects and pool checkouts give up after ``timeout`` seconds."""
    if database_url.startswith("sqlite"):
        # connect_args for sqlite to allow multithreading
        connect_args = {"check_same_thread": False, "timeout": timeout}
        if database_url in IN_MEMORY_URLS:
            return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(database_url, connect_args=connect_args)
    return create_engine(
        database_url,
        connect_args={"connect_timeout": max(1, int(timeout))},
        pool_timeout=timeout,
        pool_pre_ping=True,
    )


def make_sessionmaker(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def check_connection(engine) -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        LOG.warning("Database connectivity check failed: %s", exc)
        return False
    return True


def init_db(engine):
    # registers the tables on Base.metadata
    from coachdesk import models  # noqa: F401
    Base.metadata.create_all(bind=engine)
