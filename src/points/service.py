import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models import PointTransaction, User
from src.points.constants import POINTS, PointReason

logger = logging.getLogger(__name__)


def _today_utc() -> date:
    return datetime.now(timezone.utc).date()


async def award_points(session: AsyncSession, user: User, amount: int, reason: PointReason) -> PointTransaction:
    """Adds `amount` to the user's total and records the transaction. Caller commits."""
    if amount <= 0:
        raise ValueError(f"Point awards must be positive, got {amount}.")
    transaction = PointTransaction(user_id=user.id, amount=amount, reason=PointReason(reason).value)
    session.add(transaction)
    user.points = (user.points or 0) + amount
    logger.info(f"Awarded {amount} points to user {user.id} for {transaction.reason}. Total: {user.points}")
    return transaction


async def award_for(session: AsyncSession, user: User, reason: PointReason) -> int:
    """Awards the standard amount for `reason` and returns it."""
    amount = POINTS[reason]
    await award_points(session, user, amount, reason)
    return amount


async def award_daily_login(session: AsyncSession, user: User, today: Optional[date] = None) -> int:
    """Awards DAILY_LOGIN at most once per calendar day (UTC). Returns the points awarded."""
    today = today or _today_utc()
    if user.last_login_on is not None and user.last_login_on >= today:
        logger.debug(f"User {user.id} already received daily login points for {today}.")
        return 0
    user.last_login_on = today
    return await award_for(session, user, PointReason.DAILY_LOGIN)


async def award_test_completion(session: AsyncSession, user: User) -> int:
    """Start and completion bonuses for a registered user finishing an assessment."""
    awarded = await award_for(session, user, PointReason.START_TEST)
    awarded += await award_for(session, user, PointReason.COMPLETE_TEST)
    return awarded


async def list_transactions(session: AsyncSession, user_id) -> List[PointTransaction]:
    stmt = (
        select(PointTransaction)
        .where(PointTransaction.user_id == user_id)
        .order_by(PointTransaction.created_at.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
