"""SQLAlchemy model for per-user notification preferences."""

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.sql import expression

from church_app.infrastructure.database import Base
from church_app.utils import now_in_app_naive_datetime


class NotificationPreferencesModel(Base):
    """Database representation of a user's push preferences."""

    __tablename__ = "notification_preferences"

    user_id = Column(String(64), primary_key=True)
    push_enabled = Column(Boolean, nullable=False, default=True, server_default=expression.true())
    announcements = Column(Boolean, nullable=False, default=True, server_default=expression.true())
    events = Column(Boolean, nullable=False, default=True, server_default=expression.true())
    prayer_requests = Column(Boolean, nullable=False, default=True, server_default=expression.true())
    system_alerts = Column(Boolean, nullable=False, default=True, server_default=expression.true())
    quiet_hours_enabled = Column(
        Boolean, nullable=False, default=False, server_default=expression.false()
    )
    quiet_hours_start = Column(String(5), nullable=True)
    quiet_hours_end = Column(String(5), nullable=True)
    updated_at = Column(
        DateTime(),
        nullable=False,
        default=now_in_app_naive_datetime,
        onupdate=now_in_app_naive_datetime,
    )


__all__ = ["NotificationPreferencesModel"]
