"""
Database Helper Utilities for Concurrency Control

Provides:
- Database dialect detection (PostgreSQL vs SQLite)
- Row locking helpers used before capacity checks
- Translation of driver errors into domain errors
"""

import logging
from contextlib import contextmanager
from functools import wraps
from typing import List, Optional, TypeVar, Type
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import HotelAdminError, PersistenceError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def is_postgres(db: Session) -> bool:
    """Check if the database is PostgreSQL"""
    return db.get_bind().dialect.name == 'postgresql'


def acquire_row_lock(
    db: Session,
    model: Type[T],
    filter_condition,
    nowait: bool = False
) -> Optional[T]:
    """
    Acquire a row-level lock on a database record.

    SQLite has no FOR UPDATE; it serializes writers on its own, so the
    plain query is used there.

    Example:
        booking = acquire_row_lock(db, Booking, Booking.id == booking_id)
    """
    query = db.query(model).filter(filter_condition)

    if is_postgres(db):
        query = query.with_for_update(nowait=nowait)

    return query.first()


def lock_rows(
    db: Session,
    model: Type[T],
    filter_condition,
    order_by=None
) -> List[T]:
    """
    Lock every row matching `filter_condition` (PostgreSQL) and return them.

    Lock order follows `order_by` so two writers locking the same set
    cannot deadlock.
    """
    query = db.query(model).filter(filter_condition)
    if order_by is not None:
        query = query.order_by(order_by)
    if is_postgres(db):
        query = query.with_for_update()
    return query.all()


@contextmanager
def transaction(db: Session, operation: str):
    """
    Run a multi-step write as one unit.

    Commits on success. On any failure the session is rolled back; domain
    errors are re-raised as they are, driver errors become PersistenceError.
    """
    try:
        yield db
        db.commit()
    except HotelAdminError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{operation} failed and was rolled back: {e}")
        raise PersistenceError(f"{operation} failed: {e.__class__.__name__}") from e


def read_guard(operation: str):
    """Decorator wrapping read paths so driver errors surface as PersistenceError."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except SQLAlchemyError as e:
                logger.error(f"{operation} failed: {e}")
                raise PersistenceError(f"{operation} failed: {e.__class__.__name__}") from e
        return wrapper
    return decorator
