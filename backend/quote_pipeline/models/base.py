from datetime import datetime, timezone

from sqlalchemy import Column, DateTime

from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampedModel(Base):
    """Abstract base adding row creation and last-write timestamps."""

    __abstract__ = True

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    # Bumped on every UPDATE, including attachment appends
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
