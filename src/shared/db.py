"""SQLAlchemy plumbing for the order ledger and pending-payment tables.

Both stores share one declarative ``Base`` and one engine per database URL.
In-memory SQLite URLs get a static pool so every session sees the same
database, which is what the test suite runs against.
"""

from functools import lru_cache

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from shared.config import get_settings


class Base(DeclarativeBase):
    pass


def build_engine(database_url: str, timeout_seconds: float = 10.0) -> Engine:
    """Create an engine whose connections give up after ``timeout_seconds``."""
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": timeout_seconds}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(database_url, connect_args=connect_args)

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_timeout=timeout_seconds,
        connect_args={"connect_timeout": int(timeout_seconds)},
    )


@lru_cache
def get_engine() -> Engine:
    settings = get_settings()
    return build_engine(settings.database_url, settings.store_timeout_seconds)


def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def _load_tables() -> None:
    # Table classes register themselves on Base when their modules are imported
    import ordering.order.store.sql_adapter  # noqa: F401
    import payments.pending.sql_adapter  # noqa: F401


def setup_db(engine: Engine) -> None:
    """Create the ledger and pending-payment tables."""
    _load_tables()
    Base.metadata.create_all(engine)


def drop_db(engine: Engine) -> None:
    """Drop the ledger and pending-payment tables."""
    _load_tables()
    Base.metadata.drop_all(engine)
