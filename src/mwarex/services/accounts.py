"""Account signup, signin and creator/editor links."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mwarex.api.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from mwarex.auth.passwords import hash_password, verify_password
from mwarex.auth.tokens import TokenScope, issue_token
from mwarex.observability.logging import get_logger
from mwarex.storage.models import User, UserRole
from mwarex.storage.repositories import UserRepository

logger = get_logger(__name__)

__all__ = [
    "SignInResult",
    "create_account",
    "sign_in",
    "get_profile",
    "list_editors",
    "remove_editor",
    "update_settings",
    "ensure_role",
]


@dataclass(frozen=True)
class SignInResult:
    user: User
    token: str


async def create_account(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    name: str | None = None,
    role: UserRole = UserRole.CREATOR,
    creator_id: UUID | None = None,
) -> User:
    """Create a user; a duplicate email raises ConflictError."""
    repo = UserRepository(session)
    if await repo.get_by_email_async(email) is not None:
        raise ConflictError("User already exists")
    if creator_id is not None and await repo.get_async(creator_id) is None:
        raise NotFoundError("Creator not found")

    password_hash = await asyncio.to_thread(hash_password, password)
    try:
        return await repo.create_async(
            email=email,
            password_hash=password_hash,
            name=name,
            role=role,
            creator_id=creator_id,
        )
    except IntegrityError as exc:
        # Lost a race with a concurrent signup for the same email.
        await session.rollback()
        raise ConflictError("User already exists") from exc


async def sign_in(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    scope: TokenScope = TokenScope.USER,
) -> SignInResult:
    repo = UserRepository(session)
    user = await repo.get_by_email_async(email)
    if user is None:
        raise NotFoundError("User not found")
    if scope is TokenScope.ADMIN and user.role != UserRole.ADMIN.value:
        raise NotFoundError("Admin not found")

    if not await asyncio.to_thread(verify_password, password, user.password_hash):
        logger.info("signin_rejected", user_id=str(user.id))
        raise AuthenticationError("Invalid credentials")

    token = issue_token(user.id, user.role, scope=scope)
    logger.info("signin_succeeded", user_id=str(user.id), role=user.role)
    return SignInResult(user=user, token=token)


async def get_profile(session: AsyncSession, user_id: UUID) -> User:
    user = await UserRepository(session).get_async(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def list_editors(session: AsyncSession, creator: User) -> List[User]:
    return await UserRepository(session).list_editors_async(creator.id)


async def remove_editor(session: AsyncSession, creator: User, editor_id: UUID) -> None:
    """Unlink an editor; only the editor's own creator may do this."""
    repo = UserRepository(session)
    editor = await repo.get_async(editor_id)
    if editor is None or editor.creator_id != creator.id:
        raise NotFoundError("Editor not found or not associated with you.")
    await repo.unlink_editor_async(editor)


async def update_settings(session: AsyncSession, user: User, values: Dict[str, Any]) -> User:
    if not values:
        return user
    return await UserRepository(session).update_settings_async(user, values)


def ensure_role(user: User, *roles: UserRole) -> None:
    if user.role not in {r.value for r in roles}:
        raise PermissionDeniedError(
            f"This action requires role: {', '.join(r.value for r in roles)}"
        )
