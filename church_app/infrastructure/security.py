"""Security helpers for token generation and validation."""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from church_app.config import get_settings
from church_app.domain.entities import User

ALGORITHM = "HS256"


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    return jwt.encode({**data, "exp": expire}, settings.secret_key, algorithm=ALGORITHM)


def create_user_token(user: User, expires_delta: timedelta | None = None) -> str:
    """Issue a token carrying the claims read back by :func:`user_from_token`."""

    claims = {"sub": user.id, "role": user.role}
    if user.name:
        claims["name"] = user.name
    if user.email:
        claims["email"] = user.email
    return create_access_token(claims, expires_delta)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc


def user_from_token(token: str) -> User:
    """Return the :class:`User` described by ``token``.

    Raises ``ValueError`` when the token is invalid or carries no subject.
    """

    payload = decode_access_token(token)
    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        raise ValueError("Could not validate credentials")
    return User(
        id=subject,
        role=str(payload.get("role") or ""),
        name=payload.get("name"),
        email=payload.get("email"),
    )


__all__ = [
    "create_access_token",
    "create_user_token",
    "decode_access_token",
    "user_from_token",
]
