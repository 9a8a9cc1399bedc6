"""
Database engine and session factory for the XIGRA+ backend.

Uses SQLAlchemy ORM with an SQLite database. Nothing here is a process-wide
instance: ``RecordStore`` builds its own engine from a URL.
"""

import os
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Base class for declarative models
Base = declarative_base()


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine, making the SQLite directory if it doesn't exist.
    """
    connect_args = {}
    engine_kwargs = {}

    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

        db_file = database_url.replace("sqlite:///", "")
        if db_file in ("", ":memory:", "sqlite://"):
            # One shared connection, otherwise every session sees an empty DB
            engine_kwargs["poolclass"] = StaticPool
        else:
            db_dir = os.path.dirname(db_file)
            if db_dir and not os.path.exists(db_dir):
                os.makedirs(db_dir, exist_ok=True)

    engine = create_engine(
        database_url,
        echo=echo,
        connect_args=connect_args,
        **engine_kwargs,
    )

    if database_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    """Session factory whose objects stay readable after commit."""
    return sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
    )
