import logging
import uuid
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models import Content, ContentRead, User
from src.db.validation import validate_content_fields
from src.points.constants import PointReason
from src.points.service import award_for
from src.services.errors import ContentLockedError, ContentNotFoundError, UserNotFoundError

logger = logging.getLogger(__name__)


async def create_content(session: AsyncSession, **fields) -> Content:
    """Validates and stores an article. Caller commits."""
    fields["slug"] = (fields.get("slug") or "").strip().lower()
    if fields.get("personality_id"):
        fields["personality_id"] = fields["personality_id"].strip().upper()
    if fields.get("personality_group"):
        fields["personality_group"] = fields["personality_group"].strip().upper()
    validate_content_fields(
        slug=fields["slug"],
        content_type=fields.get("content_type"),
        category=fields.get("category"),
        personality_id=fields.get("personality_id"),
        parent_id=fields.get("parent_id"),
        order=fields.get("order"),
    )
    content = Content(**fields)
    session.add(content)
    await session.flush()
    return content


async def get_published_content(
    session: AsyncSession,
    slug: str,
    user_id: Optional[uuid.UUID] = None,
) -> Content:
    """
    Returns a published article by slug. Locked articles are only served to
    registered users.
    """
    stmt = select(Content).where(Content.slug == slug.strip().lower(), Content.published.is_(True))
    content = (await session.execute(stmt)).scalar_one_or_none()
    if content is None:
        raise ContentNotFoundError(f"Content '{slug}' not found.")

    if content.is_locked:
        if user_id is None or await session.get(User, user_id) is None:
            raise ContentLockedError(f"Content '{slug}' is only available to registered users.")
    return content


async def _has_read(session: AsyncSession, user_id: uuid.UUID, content_id: uuid.UUID) -> bool:
    stmt = select(ContentRead).where(ContentRead.user_id == user_id, ContentRead.content_id == content_id)
    return (await session.execute(stmt)).scalar_one_or_none() is not None


async def mark_content_read(session: AsyncSession, slug: str, user_id: uuid.UUID) -> Tuple[Content, int]:
    """
    Records that a registered user read an article, awarding READ_CONTENT the
    first time. Returns (content, points_awarded).
    """
    user = await session.get(User, user_id)
    if user is None:
        raise UserNotFoundError(f"User '{user_id}' not found.")
    content = await get_published_content(session, slug, user_id=user_id)

    if await _has_read(session, user.id, content.id):
        logger.debug(f"User {user.id} already credited for content {content.id}.")
        return content, 0

    # A concurrent request may insert the same read between the check and here.
    try:
        async with session.begin_nested():
            session.add(ContentRead(user_id=user.id, content_id=content.id))
    except IntegrityError:
        logger.info(f"User {user.id} was credited for content {content.id} by a concurrent request.")
        return content, 0

    awarded = await award_for(session, user, PointReason.READ_CONTENT)
    return content, awarded
