import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.session import db_session
from src.schemas.result import ResultOut
from src.services.errors import NotFoundError
from src.services.results import get_active_result, get_result, list_results

router = APIRouter(prefix="/results", tags=["Results"])


def result_owner(
    user_id: Optional[uuid.UUID] = Query(None),
    guest_id: Optional[str] = Query(None, min_length=1, max_length=64),
) -> dict:
    if (user_id is None) == (guest_id is None):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Provide exactly one of user_id or guest_id.",
        )
    return {"user_id": user_id, "guest_id": guest_id}


@router.get("/active", response_model=ResultOut)
async def read_active_result(owner: dict = Depends(result_owner), session: AsyncSession = Depends(db_session)):
    try:
        return await get_active_result(session, **owner)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/history", response_model=List[ResultOut])
async def read_result_history(owner: dict = Depends(result_owner), session: AsyncSession = Depends(db_session)):
    return await list_results(session, **owner)


@router.get("/{result_id}", response_model=ResultOut)
async def read_result(result_id: uuid.UUID, session: AsyncSession = Depends(db_session)):
    try:
        return await get_result(session, result_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
