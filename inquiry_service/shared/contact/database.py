"""Database setup and the contact submission model."""

import logging
from datetime import datetime, timezone

from fastapi import Request
from sqlalchemy import Column, Date, DateTime, Index, Integer, String, Text, create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()

# PostgreSQL connection pool configuration
POOL_SIZE = 5
POOL_TIMEOUT_SECONDS = 8
POOL_RECYCLE_SECONDS = 30

# Largest value the integer primary key column can hold
MAX_SUBMISSION_ID = 2**31 - 1


class ContactSubmission(Base):
    """One contact-form inquiry."""
    __tablename__ = "contact_submissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(100), nullable=False)
    email = Column(String(254), nullable=False)
    phone = Column(String(20), nullable=True)
    event_type = Column(String(20), nullable=False)
    event_date = Column(Date, nullable=True)
    guest_count = Column(Text, nullable=True)  # stored as text, not a numeric column
    message = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_contact_submissions_created_at", "created_at"),
    )


def create_db_engine(database_url: str) -> Engine:
    """Create the engine; PostgreSQL gets a small bounded pool, SQLite a shared connection."""
    if database_url.startswith("sqlite"):
        engine_kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            engine_kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **engine_kwargs)

    engine_kwargs = {
        "pool_size": POOL_SIZE,
        "max_overflow": 0,
        "pool_timeout": POOL_TIMEOUT_SECONDS,  # wait for a free connection
        "pool_recycle": POOL_RECYCLE_SECONDS,  # drop idle connections
        "pool_pre_ping": True,  # Verify connections before using
    }
    return create_engine(database_url, **engine_kwargs)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Initialize database tables."""
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logging.info("Database tables initialized successfully")


def probe(engine: Engine) -> None:
    """Run a trivial query; raises if the store is unreachable."""
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))


def check_schema(engine: Engine) -> bool:
    """
    Warn if guest_count is not a text column (older deployments used an integer).

    Returns:
        True if the column is text or the table does not exist yet
    """
    inspector = inspect(engine)
    if not inspector.has_table(ContactSubmission.__tablename__):
        return True

    for column in inspector.get_columns(ContactSubmission.__tablename__):
        if column["name"] != "guest_count":
            continue
        python_type = None
        try:
            python_type = column["type"].python_type
        except NotImplementedError:
            pass
        if python_type is not str:
            logging.warning(
                f"[Schema Warning] guest_count column is {column['type']}. Expected text. "
                "Run migrations/migrate_guest_count_to_text.py"
            )
            return False
    return True


def get_db(request: Request):
    """Dependency to get database session."""
    db = request.app.state.session_factory()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
