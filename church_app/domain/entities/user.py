"""Domain entity representing the caller of an operation."""

from dataclasses import dataclass

ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"
ROLE_MEMBER = "member"
ROLE_VISITOR = "visitor"
ROLES = (ROLE_ADMIN, ROLE_MEMBER, ROLE_VISITOR)


def normalize_role(role: str | None) -> str:
    """Collapse the roles issued by the auth layer onto the three targeting roles."""

    value = (role or "").strip().lower()
    if value in (ROLE_ADMIN, ROLE_SUPER_ADMIN):
        return ROLE_ADMIN
    if value == ROLE_MEMBER:
        return ROLE_MEMBER
    return ROLE_VISITOR


@dataclass(frozen=True)
class User:
    """Identity extracted from an access token.

    Users are owned by the membership system; the notification core only needs the
    identifier and the role.
    """

    id: str
    role: str
    name: str | None = None
    email: str | None = None

    def is_admin(self) -> bool:
        """Return ``True`` when the user is an administrator."""

        return normalize_role(self.role) == ROLE_ADMIN


__all__ = [
    "ROLES",
    "ROLE_ADMIN",
    "ROLE_MEMBER",
    "ROLE_SUPER_ADMIN",
    "ROLE_VISITOR",
    "User",
    "normalize_role",
]
