"""Persistence helpers for Web Push subscriptions."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Iterable

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from church_app.domain.entities import PushSubscription
from church_app.infrastructure.models import PushSubscriptionModel
from church_app.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_naive_datetime,
)


class PushSubscriptionRepository:
    """Provide upsert and lookup operations for :class:`PushSubscription` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_endpoint(self, endpoint: str) -> PushSubscription | None:
        model = self._get_model_by_endpoint(endpoint)
        if model is None:
            return None
        return self._to_entity(model)

    def upsert(
        self,
        *,
        user_id: str,
        user_role: str,
        endpoint: str,
        p256dh: str,
        auth: str,
        user_agent: str | None = None,
        device_name: str | None = None,
    ) -> PushSubscription:
        """Create the subscription or rebind the existing row for ``endpoint``."""

        model = self._get_model_by_endpoint(endpoint)
        if model is None:
            model = PushSubscriptionModel(endpoint=endpoint)
            self.session.add(model)
        else:
            model.updated_at = now_in_app_naive_datetime()
        model.user_id = user_id
        model.user_role = user_role
        model.p256dh = p256dh
        model.auth = auth
        model.user_agent = user_agent
        model.device_name = device_name
        model.is_active = True
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def delete_for_user(self, *, user_id: str, endpoint: str) -> int:
        result = self.session.execute(
            delete(PushSubscriptionModel).where(
                PushSubscriptionModel.user_id == user_id,
                PushSubscriptionModel.endpoint == endpoint,
            )
        )
        self.session.commit()
        return result.rowcount or 0

    def list_active_for_user(self, user_id: str) -> Sequence[PushSubscription]:
        query = (
            select(PushSubscriptionModel)
            .where(
                PushSubscriptionModel.user_id == user_id,
                PushSubscriptionModel.is_active.is_(True),
            )
            .order_by(PushSubscriptionModel.id)
        )
        return [self._to_entity(model) for model in self.session.scalars(query).all()]

    def list_active_owner_ids(self, *, roles: Iterable[str] | None = None) -> list[str]:
        """Return distinct owners of active subscriptions, optionally narrowed by role."""

        query = select(PushSubscriptionModel.user_id).where(
            PushSubscriptionModel.is_active.is_(True)
        )
        if roles is not None:
            query = query.where(PushSubscriptionModel.user_role.in_(sorted(roles)))
        query = query.distinct().order_by(PushSubscriptionModel.user_id)
        return list(self.session.scalars(query).all())

    def mark_inactive(self, subscription_id: int) -> None:
        self.session.execute(
            update(PushSubscriptionModel)
            .where(PushSubscriptionModel.id == subscription_id)
            .values(is_active=False, updated_at=now_in_app_naive_datetime())
        )
        self.session.commit()

    def touch(self, subscription_id: int) -> None:
        """Record a successful delivery on ``subscription_id``."""

        self.session.execute(
            update(PushSubscriptionModel)
            .where(PushSubscriptionModel.id == subscription_id)
            .values(last_used=now_in_app_naive_datetime())
        )
        self.session.commit()

    def deactivate_unused_since(self, cutoff: datetime) -> int:
        """Mark subscriptions idle since ``cutoff`` as inactive and return how many."""

        naive_cutoff = ensure_app_naive_datetime(cutoff)
        last_activity = func.coalesce(
            PushSubscriptionModel.last_used, PushSubscriptionModel.created_at
        )
        result = self.session.execute(
            update(PushSubscriptionModel)
            .where(
                PushSubscriptionModel.is_active.is_(True),
                last_activity < naive_cutoff,
            )
            .values(is_active=False, updated_at=now_in_app_naive_datetime())
        )
        self.session.commit()
        return result.rowcount or 0

    def count_for_endpoint(self, endpoint: str) -> int:
        query = select(func.count(PushSubscriptionModel.id)).where(
            PushSubscriptionModel.endpoint == endpoint
        )
        return int(self.session.scalar(query) or 0)

    def _get_model_by_endpoint(self, endpoint: str) -> PushSubscriptionModel | None:
        query = select(PushSubscriptionModel).where(PushSubscriptionModel.endpoint == endpoint)
        return self.session.scalars(query.limit(1)).first()

    @staticmethod
    def _to_entity(model: PushSubscriptionModel) -> PushSubscription:
        return PushSubscription(
            id=model.id,
            user_id=model.user_id,
            user_role=model.user_role,
            endpoint=model.endpoint,
            p256dh=model.p256dh,
            auth=model.auth,
            user_agent=model.user_agent,
            device_name=model.device_name,
            is_active=bool(model.is_active),
            last_used=ensure_app_timezone(model.last_used),
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["PushSubscriptionRepository"]
