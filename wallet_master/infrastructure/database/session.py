"""Database engine and session factory construction"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from wallet_master.infrastructure.database.models import Base


def build_engine(database_url: str) -> Engine:
    """
    Create an engine for the ledger database.

    In-memory SQLite shares a single connection across threads so every
    session sees the same database; other backends get a connection pool.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)

    # Connection pool: max 20 connections, recycle after 1 hour to avoid stale connections
    return create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


def build_session_factory(database_url: str, create_schema: bool = True) -> sessionmaker:
    """Session factory bound to a fresh engine, optionally creating tables"""
    engine = build_engine(database_url)
    if create_schema:
        Base.metadata.create_all(bind=engine)
    return sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)
