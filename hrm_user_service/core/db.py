from __future__ import annotations

from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from hrm_user_service.core.config import get_settings
from hrm_user_service.core.errors import InternalError
from hrm_user_service.models.base import Base
from hrm_user_service.models.user import Account, User

settings = get_settings()

engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


# PUBLIC_INTERFACE
def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a SQLAlchemy Session and closes it after use."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# PUBLIC_INTERFACE
@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Scope a unit of work: commit on normal exit, roll back on any exception.

    Database failures not already translated by the caller surface as ``InternalError``.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise InternalError("commit transaction: database error") from exc
    except BaseException:
        db.rollback()
        raise


# PUBLIC_INTERFACE
def init_db() -> None:
    """Create missing tables. Schema migrations are managed outside this service."""
    Base.metadata.create_all(bind=engine, tables=[User.__table__, Account.__table__])
