import logging
import uuid
from datetime import date
from typing import Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.crypto import hash_password, verify_password
from src.db.models import User
from src.db.validation import validate_user_fields
from src.points.constants import PointReason
from src.points.service import award_daily_login, award_for
from src.services.errors import InvalidCredentialsError, UserAlreadyExistsError, UserNotFoundError

logger = logging.getLogger(__name__)


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise UserNotFoundError(f"User '{user_id}' not found.")
    return user


async def find_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    stmt = select(User).where(func.lower(User.email) == email.strip().lower())
    return (await session.execute(stmt)).scalar_one_or_none()


async def register_user(session: AsyncSession, email: str, name: str, password: str) -> Tuple[User, int]:
    """
    Creates a registered user and awards the registration bonus.

    Raises:
        UserValidationError: Bad email, name or password.
        UserAlreadyExistsError: Email already registered.
    """
    email = (email or "").strip().lower()
    validate_user_fields(email=email, name=name, password=password)

    if await find_user_by_email(session, email) is not None:
        raise UserAlreadyExistsError(f"Email '{email}' is already registered.")

    user = User(email=email, name=name.strip(), password_hash=hash_password(password), role="user", points=0)
    session.add(user)
    await session.flush()

    awarded = await award_for(session, user, PointReason.REGISTRATION)
    logger.info(f"Registered user {user.id}.")
    return user, awarded


async def login_user(
    session: AsyncSession,
    email: str,
    password: str,
    today: Optional[date] = None,
) -> Tuple[User, int]:
    """Checks credentials and awards the daily login bonus. No session or token is created."""
    user = await find_user_by_email(session, email or "")
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Login failed: invalid email or password.")
        raise InvalidCredentialsError("Invalid email or password.")

    awarded = await award_daily_login(session, user, today=today)
    return user, awarded
