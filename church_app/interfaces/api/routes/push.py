"""Endpoints for registering Web Push devices."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from church_app.application.use_cases.notifications import (
    PushDeliveryService,
    list_push_subscriptions,
    register_push_subscription,
    unregister_push_subscription,
)
from church_app.domain.entities import PushSubscription, User
from church_app.infrastructure.database import get_db
from church_app.interfaces.api.dependencies import get_current_user, get_push_service
from church_app.interfaces.api.schemas import (
    ActionResult,
    PublicKeyResponse,
    PushSubscribeRequest,
    PushSubscriptionListResponse,
    PushSubscriptionRead,
    PushUnsubscribeRequest,
)

router = APIRouter(prefix="/notifications/push", tags=["push"])

logger = logging.getLogger(__name__)


def _not_configured() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Push notifications are not configured on this server",
    )


def _subscription_to_schema(subscription: PushSubscription) -> PushSubscriptionRead:
    return PushSubscriptionRead(
        id=subscription.id or 0,
        endpoint=subscription.endpoint,
        user_agent=subscription.user_agent,
        device_name=subscription.device_name,
        last_used=subscription.last_used,
        created_at=subscription.created_at,
    )


@router.get("/public-key", response_model=PublicKeyResponse)
def public_key(push_service: PushDeliveryService = Depends(get_push_service)) -> PublicKeyResponse:
    if not push_service.is_configured() or not push_service.public_key:
        raise _not_configured()
    return PublicKeyResponse(public_key=push_service.public_key)


@router.get("/subscriptions", response_model=PushSubscriptionListResponse)
def list_subscriptions(
    db: Session = Depends(get_db),
    push_service: PushDeliveryService = Depends(get_push_service),
    current_user: User = Depends(get_current_user),
) -> PushSubscriptionListResponse:
    subscriptions = list_push_subscriptions(db, current_user.id)
    return PushSubscriptionListResponse(
        configured=push_service.is_configured(),
        subscriptions=[_subscription_to_schema(item) for item in subscriptions],
    )


@router.post("/subscribe", response_model=PushSubscriptionRead)
def subscribe(
    payload: PushSubscribeRequest,
    request: Request,
    db: Session = Depends(get_db),
    push_service: PushDeliveryService = Depends(get_push_service),
    current_user: User = Depends(get_current_user),
) -> PushSubscriptionRead:
    """Store the browser subscription of the caller."""

    if not push_service.is_configured():
        raise _not_configured()

    try:
        subscription = register_push_subscription(
            db,
            user=current_user,
            endpoint=payload.subscription.endpoint,
            p256dh=payload.subscription.keys.p256dh,
            auth=payload.subscription.keys.auth,
            user_agent=request.headers.get("user-agent"),
            device_name=payload.device_name,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to save push subscription for user %s", current_user.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save subscription",
        ) from exc
    return _subscription_to_schema(subscription)


@router.post("/unsubscribe", response_model=ActionResult)
def unsubscribe(
    payload: PushUnsubscribeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ActionResult:
    if not unregister_push_subscription(db, user_id=current_user.id, endpoint=payload.endpoint):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Subscription not found"
        )
    return ActionResult(success=True, message="Push subscription removed")
