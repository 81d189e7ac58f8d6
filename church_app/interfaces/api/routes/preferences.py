"""Endpoints for reading and updating push preferences."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from church_app.application.use_cases.notifications import get_preferences, update_preferences
from church_app.domain.entities import User
from church_app.infrastructure.database import get_db
from church_app.interfaces.api.dependencies import get_current_user
from church_app.interfaces.api.schemas import PreferencesRead, PreferencesUpdate

router = APIRouter(prefix="/notifications/preferences", tags=["preferences"])


@router.get("", response_model=PreferencesRead)
def read_preferences(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PreferencesRead:
    preferences, is_default = get_preferences(db, current_user.id)
    return PreferencesRead.from_entity(preferences, is_default=is_default)


@router.put("", response_model=PreferencesRead)
def write_preferences(
    payload: PreferencesUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PreferencesRead:
    try:
        preferences = update_preferences(db, current_user.id, payload.changes())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return PreferencesRead.from_entity(preferences)
