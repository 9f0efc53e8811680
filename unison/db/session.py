"""
Database engine and session management for the SQL credential store.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from unison.core.config import settings
from unison.db.base import Base


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine; SQLite URLs get thread-sharing enabled."""
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        _begin_immediate(engine)
        return engine
    return create_engine(
        database_url,
        echo=echo,
        connect_args={"connect_timeout": 10},
        pool_size=5,  # Number of connections to maintain
        max_overflow=10,  # Additional connections beyond pool_size
        pool_pre_ping=True,  # Verify connections before use
        pool_recycle=3600,  # Recycle connections every hour
    )


def _begin_immediate(engine: Engine) -> None:
    """Take the SQLite write lock when a transaction begins.

    pysqlite's own deferred BEGIN is disabled so the emitted one is used.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection):
        connection.exec_driver_sql("BEGIN IMMEDIATE")


def create_tables(engine: Engine) -> None:
    """Create all database tables."""
    import unison.models  # noqa: F401  registers tables on Base.metadata

    Base.metadata.create_all(bind=engine)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def default_engine() -> Engine:
    return build_engine(settings.database_url, echo=settings.debug)
