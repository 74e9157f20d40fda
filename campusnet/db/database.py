from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from typing import Optional
from functools import lru_cache

from campusnet.core.config import database_url, SQLITE_BUSY_TIMEOUT

Base = declarative_base()

@lru_cache()
def get_engine():
    """Get the database engine"""
    url = database_url()
    connect_args = {}
    if url.startswith("sqlite"):
        # sqlite serializes writers; wait for the lock instead of failing fast
        connect_args = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT}
    return create_engine(url, connect_args=connect_args)

def get_session_maker():
    """Get the session factory"""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())

def get_session():
    """Get a database session"""
    SessionLocal = get_session_maker()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

def create_tables(db_engine: Optional[object] = None):
    """Create all tables

    Args:
        db_engine: optional engine, the default engine is used when omitted
    """
    # register every model on Base.metadata
    from campusnet import models  # noqa: F401

    engine = db_engine or get_engine()
    Base.metadata.create_all(bind=engine)
