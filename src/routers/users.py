import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.session import db_session
from src.db.validation import UserValidationError
from src.points.service import list_transactions
from src.schemas.user import (
    PointsLedger,
    UserLoginRequest,
    UserLoginResponse,
    UserOut,
    UserRegisterRequest,
    UserRegisterResponse,
)
from src.services.errors import InvalidCredentialsError, NotFoundError, UserAlreadyExistsError
from src.services.users import get_user, login_user, register_user

_log = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["Users"])


@router.post("/register", response_model=UserRegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: UserRegisterRequest, session: AsyncSession = Depends(db_session)):
    try:
        user, awarded = await register_user(session, payload.email, payload.name, payload.password)
    except UserAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except UserValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return UserRegisterResponse(user=UserOut.model_validate(user), points_awarded=awarded)


@router.post("/login", response_model=UserLoginResponse)
async def login(payload: UserLoginRequest, session: AsyncSession = Depends(db_session)):
    """Checks credentials and credits the daily login bonus. Issues no token."""
    try:
        user, awarded = await login_user(session, payload.email, payload.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    return UserLoginResponse(user=UserOut.model_validate(user), points_awarded=awarded)


@router.get("/{user_id}", response_model=UserOut)
async def read_user(user_id: uuid.UUID, session: AsyncSession = Depends(db_session)):
    try:
        return await get_user(session, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/{user_id}/points", response_model=PointsLedger)
async def read_points(user_id: uuid.UUID, session: AsyncSession = Depends(db_session)):
    try:
        user = await get_user(session, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    transactions = await list_transactions(session, user.id)
    return PointsLedger(user_id=user.id, total=user.points, transactions=transactions)
