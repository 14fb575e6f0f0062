# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
SQLAlchemy engine, session factory, declarative base, the FastAPI
dependency that provides a DB session per request, and the relation loader
used by handlers that return joined aggregates.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, selectinload, sessionmaker

from core.config import settings

# pool_pre_ping keeps idle connections alive across MySQL's wait_timeout
engine = create_engine(settings.database_url, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    FastAPI dependency.  Yields a session for the duration of the request,
    then closes it.  Use with Depends(get_db).
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    """Create every table registered on ``Base`` that does not exist yet."""
    # Importing the package registers all models on Base.metadata
    import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def load_with_relations(db: Session, model, obj_id: int, *relations: str):
    """
    Fetch one row by primary key with the named relationships resolved.

    Relations are batch-loaded (one extra SELECT ... IN per relation) rather
    than lazily per access.  Returns None when the row does not exist.
    """
    options = [selectinload(getattr(model, name)) for name in relations]
    return db.query(model).options(*options).filter(model.id == obj_id).first()
