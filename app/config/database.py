"""Database configuration and connection setup"""
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from app.config.settings import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

# Connection execution option marking a transaction that will write bookings
WRITE_LOCK_OPTION = "booking_write_lock"


def _enable_sqlite_write_locks(engine: Engine) -> None:
    """
    Let booking transactions take the SQLite write lock up front.

    pysqlite only opens a transaction on the first DML statement, so the
    availability re-check would otherwise run unlocked. Transactions started
    through ``begin_write`` emit BEGIN IMMEDIATE, which serializes them the
    way SELECT ... FOR UPDATE on the staff row does on Postgres. WAL keeps
    plain readers from blocking writers.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        if conn.get_execution_options().get(WRITE_LOCK_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine for the given URL with the pooling each backend needs"""
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs.setdefault("poolclass", StaticPool)
        engine = create_engine(database_url, connect_args=connect_args, echo=False, **kwargs)
        _enable_sqlite_write_locks(engine)
        return engine

    # Create database engine with connection pooling
    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        echo=False,
        **kwargs,
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Database dependency for FastAPI"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def begin_write(db: Session) -> None:
    """
    Start a fresh transaction for a booking write.

    Any read-only transaction already open on the session is rolled back so
    the write re-reads current data instead of an earlier snapshot.
    """
    if db.in_transaction():
        db.rollback()
    db.connection(execution_options={WRITE_LOCK_OPTION: True})


def create_tables(bind: Engine = None):
    """Create all database tables that do not exist yet"""
    from app.models import Base

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created")


if __name__ == "__main__":
    create_tables()
