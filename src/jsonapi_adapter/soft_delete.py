"""
Soft Delete ORM Utilities

Provides the soft delete model mixin and query filtering for soft-deleted
records using SQLAlchemy.
"""

import logging
from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlalchemy.orm import Query, Session

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Naive UTC timestamp, the format all model timestamps are stored in"""
    return datetime.utcnow()


class SoftDeletes:
    """
    Soft Deletes
    Marks records deleted with a timestamp instead of removing them.
    Mix in ahead of ModelMixin so delete() soft-deletes.
    """

    DELETED_AT = "deleted_at"

    deleted_at = Column(DateTime, nullable=True, index=True)

    @classmethod
    def get_deleted_at_column(cls) -> str:
        return cls.DELETED_AT

    def trashed(self) -> bool:
        return getattr(self, self.get_deleted_at_column()) is not None

    def delete(self, db: Session) -> bool:
        """Soft delete the record"""
        setattr(self, self.get_deleted_at_column(), utcnow())
        db.add(self)
        db.commit()
        db.refresh(self)
        logger.info("Soft deleted %s %s", type(self).__name__, self.get_key())
        return True

    def restore(self, db: Session) -> bool:
        """Clear the deletion marker, saving any other pending changes with it"""
        setattr(self, self.get_deleted_at_column(), None)
        db.add(self)
        db.commit()
        db.refresh(self)
        logger.info("Restored %s %s", type(self).__name__, self.get_key())
        return True

    def force_delete(self, db: Session) -> bool:
        """Permanently remove the record"""
        key = self.get_key()
        db.delete(self)
        db.commit()
        logger.info("Force deleted %s %s", type(self).__name__, key)
        return True


def uses_soft_deletes(model) -> bool:
    """Check a model class or instance for soft delete support"""
    cls = model if isinstance(model, type) else type(model)
    return issubclass(cls, SoftDeletes)


def without_trashed(query: Query, model) -> Query:
    """Filter out soft-deleted records from query"""
    return query.filter(getattr(model, model.get_deleted_at_column()).is_(None))


def only_trashed(query: Query, model) -> Query:
    """Filter to show only soft-deleted records"""
    return query.filter(getattr(model, model.get_deleted_at_column()).isnot(None))


def with_trashed(query: Query, model) -> Query:
    """Include soft-deleted records (no deletion filter)"""
    return query
