"""
Identity store — account lookup, creation and administrative changes.

Every path that sets a password goes through ``get_password_hash``; every
role change goes through the access policy.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (ConflictError, InvalidCredentials,
                                 NotFoundError, PermissionDenied,
                                 ValidationError)
from app.core.policy import (PRIVILEGED_ROLES, ROLE_ADMIN, VALID_ROLES, Action,
                             Principal, is_root_username, require)
from app.core.security import (generate_temporary_password, get_password_hash,
                               validate_password_strength, verify_password)
from app.models.auth_session import AuthSession
from app.models.record import Record
from app.models.user import User

logger = logging.getLogger(__name__)


def normalise_username(username: str) -> str:
    return username.strip().lower()


def normalise_email(email: str) -> str:
    return email.strip().lower()


async def get_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == normalise_username(username)))
    return result.scalar_one_or_none()


async def get_or_404(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    return list(result.scalars().all())


def _check_role_grant(actor: Principal, role: str) -> None:
    if role not in VALID_ROLES:
        raise ValidationError(f"Role must be one of: {', '.join(VALID_ROLES)}")
    if role in PRIVILEGED_ROLES:
        require(actor, Action.ASSIGN_PRIVILEGED_ROLE)


def _check_target(actor: Principal, target: User) -> None:
    if is_root_username(target.username):
        require(actor, Action.MODIFY_ROOT_ACCOUNT)


def _check_password_pair(new_password: str, confirm_password: str | None) -> None:
    if confirm_password is not None and confirm_password != new_password:
        raise ValidationError("Password confirmation does not match")
    validate_password_strength(new_password)


# ── Creation ────────────────────────────────────────────────────────
async def create_user(
    db: AsyncSession,
    actor: Principal,
    *,
    username: str,
    password: str,
    role: str,
    phone: str = "",
    email: str = "",
) -> User:
    require(actor, Action.ADMINISTER)
    _check_role_grant(actor, role)
    validate_password_strength(password)

    username = normalise_username(username)
    if await get_by_username(db, username) is not None:
        raise ConflictError("Username already exists")

    user = User(
        username=username,
        hashed_password=get_password_hash(password),
        role=role,
        phone=phone,
        email=normalise_email(email),
        must_change_password=True,
        created_by=actor.username,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("User %s (%s) created by %s", user.username, user.role, actor.username)
    return user


async def seed_root_admin(db: AsyncSession) -> User | None:
    """Create the root admin account if it does not exist yet."""
    if await get_by_username(db, settings.ROOT_ADMIN_USERNAME) is not None:
        return None

    admin = User(
        username=normalise_username(settings.ROOT_ADMIN_USERNAME),
        hashed_password=get_password_hash(settings.ROOT_ADMIN_PASSWORD),
        role=ROLE_ADMIN,
        must_change_password=settings.ROOT_ADMIN_FORCE_PASSWORD_CHANGE,
        created_by="system",
    )
    db.add(admin)
    await db.commit()
    await db.refresh(admin)
    logger.info("Root admin created: %s (password: <redacted>)", admin.username)
    return admin


# ── Administrative changes ──────────────────────────────────────────
async def update_user(
    db: AsyncSession,
    actor: Principal,
    user_id: int,
    *,
    role: str | None = None,
    password: str | None = None,
    phone: str | None = None,
    email: str | None = None,
    avatar: str | None = None,
) -> User:
    require(actor, Action.ADMINISTER)
    user = await get_or_404(db, user_id)
    _check_target(actor, user)

    if role is not None and role != user.role:
        _check_role_grant(actor, role)
        if is_root_username(user.username):
            raise ValidationError("The root administrator must keep the admin role")
        user.role = role
    if password:
        validate_password_strength(password)
        user.hashed_password = get_password_hash(password)
    if phone is not None:
        user.phone = phone
    if email is not None:
        user.email = normalise_email(email)
    if avatar is not None:
        user.avatar = avatar

    await db.commit()
    await db.refresh(user)
    logger.info("User %s updated by %s", user.username, actor.username)
    return user


async def change_role(db: AsyncSession, actor: Principal, user_id: int, role: str) -> User:
    require(actor, Action.ADMINISTER)
    # Escalation is checked before the target lookup so it never depends on the target
    _check_role_grant(actor, role)
    user = await get_or_404(db, user_id)
    _check_target(actor, user)
    if is_root_username(user.username) and role != ROLE_ADMIN:
        raise ValidationError("The root administrator must keep the admin role")

    user.role = role
    await db.commit()
    await db.refresh(user)
    logger.info("Role of %s set to %s by %s", user.username, role, actor.username)
    return user


async def revoke_sessions(db: AsyncSession, user_id: int) -> None:
    """Stage deletion of every live session of *user_id*; caller commits."""
    await db.execute(delete(AuthSession).where(AuthSession.user_id == user_id))


async def toggle_status(db: AsyncSession, actor: Principal, user_id: int) -> User:
    require(actor, Action.ADMINISTER)
    user = await get_or_404(db, user_id)
    if user.id == actor.account_id:
        raise PermissionDenied("You cannot block your own account")
    _check_target(actor, user)

    user.is_active = not user.is_active
    if not user.is_active:
        await revoke_sessions(db, user.id)
    await db.commit()
    await db.refresh(user)
    logger.info(
        "User %s %s by %s",
        user.username,
        "unblocked" if user.is_active else "blocked",
        actor.username,
    )
    return user


async def reset_password(db: AsyncSession, actor: Principal, user_id: int) -> tuple[User, str]:
    """Replace the password with a generated one that must be changed at next login."""
    require(actor, Action.ADMINISTER)
    user = await get_or_404(db, user_id)
    _check_target(actor, user)

    temporary = generate_temporary_password()
    user.hashed_password = get_password_hash(temporary)
    user.must_change_password = True
    await revoke_sessions(db, user.id)
    await db.commit()
    await db.refresh(user)
    logger.info("Password of %s reset by %s", user.username, actor.username)
    return user, temporary


async def delete_user(db: AsyncSession, actor: Principal, user_id: int) -> User:
    """Hard delete: the account, its records and its sessions."""
    require(actor, Action.ADMINISTER)
    user = await get_or_404(db, user_id)
    if user.id == actor.account_id:
        raise PermissionDenied("You cannot delete your own account")
    if is_root_username(user.username):
        raise PermissionDenied("The root administrator cannot be deleted")

    await db.execute(delete(Record).where(Record.owner_id == user.id))
    await revoke_sessions(db, user.id)
    await db.delete(user)
    await db.commit()
    logger.info("User %s deleted by %s", user.username, actor.username)
    return user


# ── Self-service ────────────────────────────────────────────────────
async def update_profile(
    db: AsyncSession,
    principal: Principal,
    *,
    phone: str | None = None,
    email: str | None = None,
    avatar: str | None = None,
) -> User:
    user = await get_or_404(db, principal.account_id)
    if phone is not None:
        user.phone = phone
    if email is not None:
        user.email = normalise_email(email)
    if avatar is not None:
        user.avatar = avatar
    await db.commit()
    await db.refresh(user)
    return user


async def change_password(
    db: AsyncSession,
    user: User,
    current_password: str,
    new_password: str,
    confirm_password: str | None = None,
) -> User:
    """Verify *current_password*, enforce the policy, store the new hash."""
    if not verify_password(current_password, user.hashed_password):
        raise InvalidCredentials("Current password is incorrect")
    _check_password_pair(new_password, confirm_password)

    user.hashed_password = get_password_hash(new_password)
    user.must_change_password = False
    await db.commit()
    await db.refresh(user)
    logger.info("Password changed for %s", user.username)
    return user
