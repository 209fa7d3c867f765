"""
Access policy — the single place that answers "may this principal do that?".

Roles are plain strings (``admin`` | ``supervisor`` | ``user``).  ``admin`` and
``supervisor`` are both *administrative*; only the root admin account (the
seeded ``ROOT_ADMIN_USERNAME``) may hand out administrative roles or touch
the root account itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from app.core.config import settings
from app.core.exceptions import PermissionDenied

ROLE_ADMIN = "admin"
ROLE_SUPERVISOR = "supervisor"
ROLE_USER = "user"

VALID_ROLES = (ROLE_ADMIN, ROLE_SUPERVISOR, ROLE_USER)
ADMINISTRATIVE_ROLES = frozenset({ROLE_ADMIN, ROLE_SUPERVISOR})
PRIVILEGED_ROLES = ADMINISTRATIVE_ROLES


class Action(str, Enum):
    ADMINISTER = "administer"
    ASSIGN_PRIVILEGED_ROLE = "assign_privileged_role"
    MODIFY_ROOT_ACCOUNT = "modify_root_account"
    ACCESS_RECORD = "access_record"
    OVERRIDE_RECORD = "override_record"


@dataclass(frozen=True)
class Principal:
    """Authenticated identity resolved for one request."""

    account_id: int
    username: str
    role: str
    session_id: str | None = None

    @property
    def is_administrative(self) -> bool:
        return is_administrative(self.role)

    @property
    def is_root(self) -> bool:
        return is_root_username(self.username)


def is_administrative(role: str | None) -> bool:
    return role in ADMINISTRATIVE_ROLES


def is_root_username(username: str | None) -> bool:
    return bool(username) and username.lower() == settings.ROOT_ADMIN_USERNAME.lower()


def allow(
    role: str | None,
    action: Action,
    resource_owner_id: int | None = None,
    actor_id: int | None = None,
    *,
    actor_username: str | None = None,
) -> bool:
    """Pure decision function.

    ``resource_owner_id``/``actor_id`` matter only for ownership-based actions;
    ``actor_username`` only for the root-admin gated ones.
    """
    if role is None:
        return False

    if action is Action.ADMINISTER:
        return is_administrative(role)

    if action in (Action.ASSIGN_PRIVILEGED_ROLE, Action.MODIFY_ROOT_ACCOUNT):
        return role == ROLE_ADMIN and is_root_username(actor_username)

    if action is Action.ACCESS_RECORD:
        if actor_id is not None and resource_owner_id == actor_id:
            return True
        return is_administrative(role)

    if action is Action.OVERRIDE_RECORD:
        return is_administrative(role)

    return False


_DENIED_MESSAGES = {
    Action.ADMINISTER: "Administrator privileges required",
    Action.ASSIGN_PRIVILEGED_ROLE: (
        "Only the root administrator can grant administrator or supervisor roles"
    ),
    Action.MODIFY_ROOT_ACCOUNT: "Only the root administrator can modify the root account",
    Action.OVERRIDE_RECORD: "Administrator privileges required",
}


def require(principal: Principal, action: Action, resource_owner_id: int | None = None) -> None:
    """Raise :class:`PermissionDenied` unless :func:`allow` grants *action*."""
    if not allow(
        principal.role,
        action,
        resource_owner_id,
        principal.account_id,
        actor_username=principal.username,
    ):
        raise PermissionDenied(_DENIED_MESSAGES.get(action, "Access denied"))
