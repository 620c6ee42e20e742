import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.session import db_session
from src.schemas.content import ContentOut, ContentReadRequest, ContentReadResponse
from src.services.content import get_published_content, mark_content_read
from src.services.errors import ContentLockedError, NotFoundError

router = APIRouter(prefix="/content", tags=["Content"])


@router.get("/{slug:path}", response_model=ContentOut)
async def read_content(
    slug: str,
    user_id: Optional[uuid.UUID] = Query(None),
    session: AsyncSession = Depends(db_session),
):
    try:
        return await get_published_content(session, slug, user_id=user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ContentLockedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.post("/{slug:path}/read", response_model=ContentReadResponse)
async def record_read(slug: str, payload: ContentReadRequest, session: AsyncSession = Depends(db_session)):
    """Credits READ_CONTENT points the first time a registered user reads an article."""
    try:
        content, awarded = await mark_content_read(session, slug, payload.user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ContentLockedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return ContentReadResponse(content_id=content.id, points_awarded=awarded, already_read=awarded == 0)
