from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def make_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # FastAPI and the scheduler call in from worker threads
        connect_args["check_same_thread"] = False
    return create_engine(database_url, future=True, connect_args=connect_args)


def utcnow_naive() -> datetime:
    """
    Create a timezone-aware UTC datetime, then strip tzinfo so it is
    SQLite-safe and future-proof.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
