"""
JSON:API Resource Models

ORM base with the record hooks the resource adapters rely on (mass
assignment, dirty tracking, persistence), plus the example resources served
by the API.
"""

from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, inspect
from sqlalchemy.orm import Session, declarative_base

from jsonapi_adapter.soft_delete import SoftDeletes

Base = declarative_base()


class ModelMixin:
    """
    Record hooks shared by all resource models
    """

    # Attributes that fill() may set from client input
    __fillable__: tuple = ()

    def fill(self, attributes: Dict[str, Any]) -> "ModelMixin":
        for key, value in attributes.items():
            if key in self.__fillable__:
                setattr(self, key, value)
        return self

    def force_fill(self, attributes: Dict[str, Any]) -> "ModelMixin":
        for key, value in attributes.items():
            setattr(self, key, value)
        return self

    @property
    def exists(self) -> bool:
        """Whether the record has been persisted and is attached to a session"""
        return inspect(self).persistent

    def is_dirty(self, *keys: str) -> bool:
        state = inspect(self)
        keys = keys or tuple(attr.key for attr in state.attrs)
        return any(state.attrs[key].history.has_changes() for key in keys if key in state.attrs)

    @classmethod
    def get_key_name(cls) -> str:
        return inspect(cls).primary_key[0].key

    def get_key(self) -> Any:
        return getattr(self, self.get_key_name())

    @classmethod
    def get_dates(cls) -> List[str]:
        return [attr.key for attr in inspect(cls).column_attrs if isinstance(attr.columns[0].type, DateTime)]

    def save(self, db: Session) -> bool:
        db.add(self)
        db.commit()
        db.refresh(self)
        return True

    def delete(self, db: Session) -> bool:
        db.delete(self)
        db.commit()
        return True


class Post(SoftDeletes, ModelMixin, Base):
    """
    Posts
    Soft-deleting resource: DELETE removes permanently, while the deleted-at
    attribute trashes and restores
    """

    __tablename__ = "posts"
    __fillable__ = ("title", "slug", "content", "published_at")

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    content = Column(Text, nullable=False)
    published_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (Index("idx_posts_published", "published_at"),)


class Comment(ModelMixin, Base):
    """
    Comments
    Regular resource without soft deletes
    """

    __tablename__ = "comments"
    __fillable__ = ("content", "post_id")

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=True, index=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
