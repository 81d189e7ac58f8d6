"""SQLAlchemy model for Web Push subscriptions."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import expression

from church_app.infrastructure.database import Base
from church_app.utils import now_in_app_naive_datetime


class PushSubscriptionModel(Base):
    """Database representation of a browser push endpoint."""

    __tablename__ = "push_subscription"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    user_role = Column(String(20), nullable=False, default="member")
    endpoint = Column(String(1000), nullable=False, unique=True)
    p256dh = Column(Text, nullable=False)
    auth = Column(Text, nullable=False)
    user_agent = Column(String(500), nullable=True)
    device_name = Column(String(120), nullable=True)
    is_active = Column(
        Boolean,
        nullable=False,
        default=True,
        server_default=expression.true(),
        index=True,
    )
    last_used = Column(DateTime(), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(DateTime(), nullable=True, onupdate=now_in_app_naive_datetime)


__all__ = ["PushSubscriptionModel"]
