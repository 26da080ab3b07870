"""Database configuration and session management."""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import DATABASE_URL, SQL_ECHO


def create_db_engine(url: str, echo: bool = False, **kwargs) -> Engine:
    """Create an engine for ``url``.

    SQLite connections get foreign keys switched on and hand BEGIN over to
    SQLAlchemy so that SAVEPOINTs (``Session.begin_nested``) work.
    """
    engine = create_engine(url, echo=echo, **kwargs)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def _sqlite_on_connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _sqlite_on_begin(conn):
            conn.exec_driver_sql("BEGIN")

    return engine


# Create SQLAlchemy engine
engine = create_db_engine(DATABASE_URL, echo=SQL_ECHO)

# Create SessionLocal class for database sessions
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create Base class for declarative models
Base = declarative_base()


def get_db():
    """Dependency function that provides a database session.

    Yields a database session and ensures it's closed after use.
    Use with FastAPI's Depends(). Routers commit once the use-case returns;
    a request that fails rolls back everything it flushed.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
