"""SQLAlchemy models for persisted notifications and their read receipts."""

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from church_app.infrastructure.database import Base
from church_app.utils import now_in_app_naive_datetime


class NotificationModel(Base):
    """Database representation for audience-targeted notifications."""

    __tablename__ = "notification"

    id = Column(String(32), primary_key=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(30), nullable=False, index=True)
    priority = Column(String(10), nullable=False, default="medium")
    target_audience = Column(String(10), nullable=False, default="all", index=True)
    specific_user_ids = Column(JSON, nullable=False, default=list)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    action_url = Column(String(500), nullable=True)
    expires_at = Column(DateTime(), nullable=True)
    created_at = Column(
        DateTime(), nullable=False, default=now_in_app_naive_datetime, index=True
    )

    reads = relationship(
        "NotificationReadModel",
        back_populates="notification",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class NotificationReadModel(Base):
    """Read receipt; at most one per notification and user."""

    __tablename__ = "notification_read"
    __table_args__ = (
        UniqueConstraint("notification_id", "user_id", name="uq_notification_read_user"),
    )

    id = Column(String(32), primary_key=True)
    notification_id = Column(
        String(32),
        ForeignKey("notification.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String(64), nullable=False, index=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)

    notification = relationship("NotificationModel", back_populates="reads")


__all__ = ["NotificationModel", "NotificationReadModel"]
