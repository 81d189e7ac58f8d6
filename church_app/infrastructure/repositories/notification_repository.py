"""Persistence helpers for notification entities."""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import datetime
from typing import Iterable
from uuid import uuid4

from sqlalchemy import String, and_, cast, delete, or_, select
from sqlalchemy.orm import Session

from church_app.domain.entities import AUDIENCE_SPECIFIC, Notification, NotificationDraft
from church_app.infrastructure.models import NotificationModel, NotificationReadModel
from church_app.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects and read receipts."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, draft: NotificationDraft) -> Notification:
        model = NotificationModel(
            id=uuid4().hex,
            title=draft.title,
            message=draft.message,
            type=draft.type,
            priority=draft.priority,
            target_audience=draft.target_audience,
            specific_user_ids=draft.recipients(),
            metadata_=dict(draft.metadata or {}),
            action_url=draft.action_url,
            expires_at=ensure_app_naive_datetime(draft.expires_at),
            created_at=ensure_app_naive_datetime(now_in_app_timezone()),
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def get(self, notification_id: str) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            return None
        return self._to_entity(model)

    def list_visible(
        self,
        *,
        user_id: str | None,
        audiences: Iterable[str],
        now: datetime,
        limit: int | None = 50,
        include_read: bool = False,
    ) -> Sequence[Notification]:
        """Return unexpired notifications visible through ``audiences`` or a direct mention.

        When ``include_read`` is false the user's read receipts are excluded by the
        query itself.
        """

        audience_conditions = [NotificationModel.target_audience.in_(sorted(audiences))]
        if user_id:
            audience_conditions.append(
                and_(
                    NotificationModel.target_audience == AUDIENCE_SPECIFIC,
                    cast(NotificationModel.specific_user_ids, String).contains(
                        json.dumps(user_id), autoescape=True
                    ),
                )
            )

        query = select(NotificationModel).where(
            or_(
                NotificationModel.expires_at.is_(None),
                NotificationModel.expires_at >= ensure_app_naive_datetime(now),
            ),
            or_(*audience_conditions),
        )
        if user_id and not include_read:
            read_ids = select(NotificationReadModel.notification_id).where(
                NotificationReadModel.user_id == user_id
            )
            query = query.where(NotificationModel.id.not_in(read_ids))

        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if limit is not None:
            query = query.limit(limit)

        models = [
            model
            for model in self.session.scalars(query).all()
            # The text match above is a prefilter; confirm the exact recipient here.
            if model.target_audience != AUDIENCE_SPECIFIC
            or user_id in (model.specific_user_ids or [])
        ]
        read_ids = self.read_ids_for(user_id, [model.id for model in models]) if user_id else set()
        notifications = []
        for model in models:
            notification = self._to_entity(model)
            notification.read = model.id in read_ids
            notifications.append(notification)
        return notifications

    def read_ids_for(self, user_id: str, notification_ids: Sequence[str]) -> set[str]:
        if not notification_ids:
            return set()
        query = select(NotificationReadModel.notification_id).where(
            NotificationReadModel.user_id == user_id,
            NotificationReadModel.notification_id.in_(list(notification_ids)),
        )
        return set(self.session.scalars(query).all())

    def has_read(self, notification_id: str, user_id: str) -> bool:
        query = select(NotificationReadModel.id).where(
            NotificationReadModel.notification_id == notification_id,
            NotificationReadModel.user_id == user_id,
        )
        return self.session.scalars(query.limit(1)).first() is not None

    def add_reads(self, notification_ids: Iterable[str], *, user_id: str) -> int:
        """Insert read receipts for ``notification_ids`` not yet read by ``user_id``."""

        ids = list(dict.fromkeys(notification_id for notification_id in notification_ids if notification_id))
        if not ids:
            return 0
        already_read = self.read_ids_for(user_id, ids)
        timestamp = ensure_app_naive_datetime(now_in_app_timezone())
        pending = [notification_id for notification_id in ids if notification_id not in already_read]
        for notification_id in pending:
            self.session.add(
                NotificationReadModel(
                    id=uuid4().hex,
                    notification_id=notification_id,
                    user_id=user_id,
                    created_at=timestamp,
                )
            )
        self.session.commit()
        return len(pending)

    def count_reads(self, notification_id: str, *, user_id: str | None = None) -> int:
        query = select(NotificationReadModel.id).where(
            NotificationReadModel.notification_id == notification_id
        )
        if user_id is not None:
            query = query.where(NotificationReadModel.user_id == user_id)
        return len(self.session.scalars(query).all())

    def delete_created_before(self, cutoff: datetime) -> int:
        """Delete notifications created before ``cutoff`` together with their receipts."""

        naive_cutoff = ensure_app_naive_datetime(cutoff)
        ids = list(
            self.session.scalars(
                select(NotificationModel.id).where(NotificationModel.created_at < naive_cutoff)
            ).all()
        )
        if not ids:
            return 0
        self.session.execute(
            delete(NotificationReadModel).where(NotificationReadModel.notification_id.in_(ids))
        )
        self.session.execute(delete(NotificationModel).where(NotificationModel.id.in_(ids)))
        self.session.commit()
        return len(ids)

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            title=model.title,
            message=model.message,
            type=model.type,
            priority=model.priority,
            target_audience=model.target_audience,
            specific_user_ids=list(model.specific_user_ids or []),
            metadata=dict(model.metadata_ or {}),
            action_url=model.action_url,
            expires_at=ensure_app_timezone(model.expires_at),
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["NotificationRepository"]
