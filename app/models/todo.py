"""Todo model."""

import uuid

from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.models.user import _utcnow

TITLE_MAX_LENGTH = 100


class Todo(Base):
    """
    Todo item.

    Every row belongs to exactly one user; ``user_id`` is set on creation
    and never changes.
    """

    __tablename__ = "todos"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    completed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    user = relationship("User", backref="todos")

    def __repr__(self) -> str:
        return f"<Todo(id={self.id}, completed={self.completed})>"
