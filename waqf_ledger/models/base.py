"""
Database engine, session management, and base model.

Every model inherits from Base. Every request gets a session
from get_db(). Services never commit; the request handler
decides when the unit of work is saved or rolled back.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from waqf_ledger.config import get_settings

settings = get_settings()


def enable_sqlite_savepoints(engine: Engine) -> None:
    """
    Let the pysqlite driver honour SAVEPOINT.

    pysqlite starts transactions lazily on its own, which breaks
    Session.begin_nested(). Disabling its handling and emitting
    BEGIN ourselves restores normal transactional behaviour.
    """
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


# --- Engine ---
# pool_pre_ping=True tests connections before using them, which
# handles a restarted database or a stale pooled connection.
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
)

if engine.dialect.name == "sqlite":
    enable_sqlite_savepoints(engine)

# --- Session Factory ---
# autocommit=False: every multi-step ledger write is all-or-nothing.
# autoflush=False: SQL is only sent when a service flushes.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The try/finally guarantees the session is closed even when
    the endpoint raises, so connections never leak from the pool.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
