"""Durable notification storage with best-effort failure semantics."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from church_app.domain.entities import Notification, NotificationDraft
from church_app.domain.targeting import allowed_audiences
from church_app.infrastructure.database import SessionLocal
from church_app.infrastructure.repositories import NotificationRepository
from church_app.utils import now_in_app_timezone

logger = logging.getLogger(__name__)

UNREAD_COUNT_CAP = 100
_MARK_ALL_PAGE_SIZE = 100


class NotificationNotFoundError(LookupError):
    """Raised when a read receipt targets a notification that does not exist."""


class NotificationStore:
    """Source of truth for notifications and read receipts.

    No method raises on a persistence failure: errors are logged and reported as
    ``None``, ``[]``, ``False`` or ``0``. Creating a notification therefore never
    breaks the business action that triggered it.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        *,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            session.close()

    def create(self, draft: NotificationDraft) -> Notification | None:
        try:
            with self._session() as session:
                notification = NotificationRepository(session).create(draft)
        except SQLAlchemyError:
            logger.exception("Failed to create notification '%s'", draft.title)
            return None
        logger.info(
            "Notification %s created (%s, audience=%s)",
            notification.id,
            notification.type,
            notification.target_audience,
        )
        return notification

    def get(self, notification_id: str) -> Notification | None:
        try:
            with self._session() as session:
                return NotificationRepository(session).get(notification_id)
        except SQLAlchemyError:
            logger.exception("Failed to load notification %s", notification_id)
            return None

    def list_for_user(
        self,
        user_id: str | None,
        role: str | None,
        *,
        limit: int | None = 50,
        include_read: bool = False,
    ) -> list[Notification]:
        """Return unexpired notifications visible to the user, newest first."""

        try:
            with self._session() as session:
                return list(
                    NotificationRepository(session).list_visible(
                        user_id=user_id,
                        audiences=allowed_audiences(role),
                        now=self._clock(),
                        limit=limit,
                        include_read=include_read,
                    )
                )
        except SQLAlchemyError:
            logger.exception("Failed to list notifications for user %s", user_id)
            return []

    def mark_read(self, notification_id: str, user_id: str) -> bool:
        """Record that ``user_id`` read the notification; repeated calls succeed.

        Returns ``False`` when the receipt could not be stored and raises
        :class:`NotificationNotFoundError` for an unknown ``notification_id``.
        """

        try:
            with self._session() as session:
                repository = NotificationRepository(session)
                if repository.get(notification_id) is None:
                    raise NotificationNotFoundError(notification_id)
                repository.add_reads([notification_id], user_id=user_id)
        except SQLAlchemyError:
            logger.exception(
                "Failed to mark notification %s as read for user %s", notification_id, user_id
            )
            return False
        return True

    def mark_all_read(self, user_id: str, role: str | None) -> bool:
        """Insert a read receipt for every notification currently unread by the user."""

        marked = 0
        audiences = allowed_audiences(role)
        try:
            while True:
                with self._session() as session:
                    repository = NotificationRepository(session)
                    unread = repository.list_visible(
                        user_id=user_id,
                        audiences=audiences,
                        now=self._clock(),
                        limit=_MARK_ALL_PAGE_SIZE,
                        include_read=False,
                    )
                    ids = [notification.id for notification in unread if notification.id]
                    inserted = repository.add_reads(ids, user_id=user_id) if ids else 0
                if inserted == 0:
                    break
                marked += inserted
        except SQLAlchemyError:
            logger.exception("Failed to mark all notifications read for user %s", user_id)
            return False
        logger.debug("Marked %d notifications read for user %s", marked, user_id)
        return True

    def count_unread(self, user_id: str, role: str | None) -> int:
        """Return the unread count, capped at ``UNREAD_COUNT_CAP``."""

        return len(
            self.list_for_user(user_id, role, limit=UNREAD_COUNT_CAP, include_read=False)
        )

    def count_reads(self, notification_id: str, user_id: str | None = None) -> int:
        try:
            with self._session() as session:
                return NotificationRepository(session).count_reads(
                    notification_id, user_id=user_id
                )
        except SQLAlchemyError:
            logger.exception("Failed to count read receipts for %s", notification_id)
            return 0

    def delete_older_than(self, days: int) -> int:
        """Delete notifications created more than ``days`` ago with their receipts."""

        if days <= 0:
            raise ValueError("Retention must be at least one day")
        cutoff = self._clock() - timedelta(days=days)
        try:
            with self._session() as session:
                deleted = NotificationRepository(session).delete_created_before(cutoff)
        except SQLAlchemyError:
            logger.exception("Failed to delete notifications older than %d days", days)
            return 0
        logger.info("Deleted %d notifications older than %d days", deleted, days)
        return deleted


__all__ = ["NotificationNotFoundError", "NotificationStore", "UNREAD_COUNT_CAP"]
