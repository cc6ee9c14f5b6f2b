"""Editor invites: mint a single-use token, verify it, exchange it at signup."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from mwarex.api.errors import GoneError, NotFoundError
from mwarex.config import settings
from mwarex.notifications.mailer import get_email_notifier
from mwarex.observability.logging import get_logger
from mwarex.services.accounts import create_account
from mwarex.storage.models import EditorInvite, InviteStatus, User, UserRole
from mwarex.storage.repositories import InviteRepository

logger = get_logger(__name__)

__all__ = [
    "INVITE_TOKEN_BYTES",
    "CreatedInvite",
    "EditorSignup",
    "invite_link_for",
    "create_invite",
    "verify_invite",
    "signup_editor",
    "send_invite_email",
]

INVITE_TOKEN_BYTES = 32


@dataclass(frozen=True)
class CreatedInvite:
    invite: EditorInvite
    invite_link: str


@dataclass(frozen=True)
class EditorSignup:
    editor: User
    invite: Optional[EditorInvite]


def invite_link_for(token: str) -> str:
    return f"{settings.frontend_url}/join?token={token}"


async def create_invite(session: AsyncSession, creator: User, editor_email: str) -> CreatedInvite:
    token = secrets.token_hex(INVITE_TOKEN_BYTES)
    invite = await InviteRepository(session).create_async(creator.id, editor_email, token)
    return CreatedInvite(invite=invite, invite_link=invite_link_for(token))


async def send_invite_email(to_email: str, invite_link: str, creator_name: str | None) -> None:
    """Deliver the invite email after the response; failures are only logged."""
    result = await get_email_notifier().send_invite(to_email, invite_link, creator_name)
    if result.success:
        logger.info("invite_email_sent", to=to_email)
    else:
        logger.warning("invite_email_failed", to=to_email, error=result.error)


async def verify_invite(session: AsyncSession, token: str) -> EditorInvite:
    invite = await InviteRepository(session).get_by_token_async(token)
    if invite is None:
        raise NotFoundError("Invalid invite link")
    if invite.status != InviteStatus.INVITED.value:
        raise GoneError("This invite link has already been used")
    return invite


async def signup_editor(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    name: str | None = None,
    token: str | None = None,
) -> EditorSignup:
    """Create an editor account and exchange the matching invite.

    With a token the invite must still be open and is consumed exactly once.
    Without one, the newest open invite addressed to the email is used; with
    no invite at all the editor starts unlinked.
    """
    invites = InviteRepository(session)
    if token:
        invite = await invites.get_by_token_for_update_async(token)
        if invite is None:
            raise NotFoundError("Invalid invite link")
        if invite.status != InviteStatus.INVITED.value:
            raise GoneError("This invite link has already been used")
    else:
        invite = await invites.latest_pending_for_email_async(email)

    editor = await create_account(
        session,
        email=email,
        password=password,
        name=name,
        role=UserRole.EDITOR,
        creator_id=invite.creator_id if invite else None,
    )
    if invite is not None:
        await invites.mark_accepted_async(invite, editor.id)
    logger.info(
        "editor_signed_up",
        editor_id=str(editor.id),
        creator_id=str(invite.creator_id) if invite else None,
    )
    return EditorSignup(editor=editor, invite=invite)
