import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from services.personality_engine.scoring import ScoringConfig, ScoringResult, compute_result
from src.db.models import Result, User
from src.db.validation import validate_result_fields
from src.points.service import award_test_completion
from src.services.assessments import get_assessment_definition
from src.services.errors import InvalidSubmissionError, ResultNotFoundError
from src.services.users import get_user

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionOutcome:
    result: Result
    scoring: ScoringResult
    points_awarded: int


def generate_guest_id() -> str:
    return f"guest_{uuid.uuid4().hex}"


def _owner_clause(user_id: Optional[uuid.UUID], guest_id: Optional[str]):
    if user_id is not None:
        return Result.user_id == user_id
    if guest_id is None:
        raise ValueError("Either user_id or guest_id is required.")
    return Result.guest_id == guest_id


async def create_new_result(
    session: AsyncSession,
    *,
    assessment_id: uuid.UUID,
    answers: Sequence[str],
    scoring: ScoringResult,
    user_id: Optional[uuid.UUID] = None,
    guest_id: Optional[str] = None,
    time_taken: Optional[int] = None,
) -> Result:
    """
    Stores a result as the owner's active one, deactivating any previous active result.

    Raises:
        ResultValidationError: If the fields break a result invariant.
    """
    scores = scoring.scores.model_dump()
    validate_result_fields(
        answers=answers,
        scores=scores,
        personality_type=scoring.personality_type,
        user_id=user_id,
        guest_id=guest_id,
        alternative_types=scoring.alternative_types,
        time_taken=time_taken,
    )

    await session.execute(
        update(Result)
        .where(_owner_clause(user_id, guest_id), Result.is_active.is_(True))
        .values(is_active=False)
    )

    result = Result(
        assessment_id=assessment_id,
        user_id=user_id,
        guest_id=guest_id,
        answers=list(answers),
        personality_type=scoring.personality_type,
        alternative_type_1=scoring.alternative_type_1,
        alternative_type_2=scoring.alternative_type_2,
        time_taken=time_taken,
        is_active=True,
        **scores,
    )
    session.add(result)
    await session.flush()
    return result


async def submit_assessment(
    session: AsyncSession,
    assessment_id: uuid.UUID,
    answers: Sequence[str],
    *,
    user_id: Optional[uuid.UUID] = None,
    guest_id: Optional[str] = None,
    time_taken: Optional[int] = None,
    config: Optional[ScoringConfig] = None,
) -> SubmissionOutcome:
    """
    Scores a submission, stores it and awards completion points to registered users.

    Raises:
        AssessmentNotFoundError, UserNotFoundError: Unknown ids.
        InvalidSubmissionError: Answer count does not match the question count.
        InvalidInput: The engine could not score the answers.
        ResultValidationError: The scored result breaks a result invariant.
    """
    if user_id is not None and guest_id is not None:
        raise InvalidSubmissionError("Provide either user_id or guest_id, not both.")

    definition = await get_assessment_definition(assessment_id, session=session)
    if len(answers) != len(definition.questions):
        raise InvalidSubmissionError(
            f"Expected {len(definition.questions)} answers, got {len(answers)}."
        )

    user: Optional[User] = None
    if user_id is not None:
        user = await get_user(session, user_id)
    elif guest_id is None:
        guest_id = generate_guest_id()

    scoring = compute_result(answers, definition.dimension_counts, config)
    logger.info(
        f"Scored assessment {assessment_id}: {scoring.personality_type} "
        f"(alternatives: {scoring.alternative_types})"
    )

    result = await create_new_result(
        session,
        assessment_id=assessment_id,
        answers=answers,
        scoring=scoring,
        user_id=user_id,
        guest_id=guest_id,
        time_taken=time_taken,
    )

    points_awarded = 0
    if user is not None:
        user.personality_type = scoring.personality_type
        points_awarded = await award_test_completion(session, user)

    return SubmissionOutcome(result=result, scoring=scoring, points_awarded=points_awarded)


async def get_result(session: AsyncSession, result_id: uuid.UUID) -> Result:
    result = await session.get(Result, result_id)
    if result is None:
        raise ResultNotFoundError(f"Result '{result_id}' not found.")
    return result


async def get_active_result(
    session: AsyncSession,
    user_id: Optional[uuid.UUID] = None,
    guest_id: Optional[str] = None,
) -> Result:
    stmt = select(Result).where(_owner_clause(user_id, guest_id), Result.is_active.is_(True))
    result = (await session.execute(stmt)).scalars().first()
    if result is None:
        raise ResultNotFoundError("No active result for this owner.")
    return result


async def list_results(
    session: AsyncSession,
    user_id: Optional[uuid.UUID] = None,
    guest_id: Optional[str] = None,
) -> List[Result]:
    """Owner's results, newest first."""
    stmt = (
        select(Result)
        .where(_owner_clause(user_id, guest_id))
        .order_by(Result.completed_at.desc())
    )
    return list((await session.execute(stmt)).scalars().all())
