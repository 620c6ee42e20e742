import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from services.personality_engine.models import AssessmentSpec
from services.personality_engine.scoring import count_questions_by_dimension
from src.cache.decorators import invalidate, redis_cache
from src.core.config import get_app_settings
from src.db.models import Assessment, Question
from src.db.validation import validate_question_options
from src.schemas.assessment import AssessmentDefinition, OptionOut, QuestionOut
from src.services.errors import AssessmentNotFoundError

logger = logging.getLogger(__name__)

ASSESSMENT_CACHE_PREFIX = "assessment:"


async def list_published_assessments(session: AsyncSession) -> List[Assessment]:
    stmt = select(Assessment).where(Assessment.published.is_(True)).order_by(Assessment.created_at)
    result = await session.execute(stmt)
    return list(result.scalars().all())


def to_definition(assessment: Assessment) -> AssessmentDefinition:
    questions = [
        QuestionOut(
            id=q.external_id,
            group=q.group,
            text=q.text,
            options=[OptionOut(**option) for option in q.options],
        )
        for q in assessment.questions
    ]
    return AssessmentDefinition(
        id=assessment.id,
        title=assessment.title,
        description=assessment.description,
        instructions=assessment.instructions,
        questions=questions,
        dimension_counts=count_questions_by_dimension(q.group for q in questions),
    )


@redis_cache(ttl=get_app_settings().assessment_cache_ttl, key_prefix=ASSESSMENT_CACHE_PREFIX, ignore=("session",))
async def get_assessment_definition(assessment_id: uuid.UUID, *, session: AsyncSession) -> AssessmentDefinition:
    """
    Loads a published assessment with its ordered questions and per-dimension counts.

    Raises:
        AssessmentNotFoundError: If no published assessment has this id.
    """
    stmt = (
        select(Assessment)
        .options(selectinload(Assessment.questions))
        .where(Assessment.id == assessment_id, Assessment.published.is_(True))
    )
    assessment = (await session.execute(stmt)).scalar_one_or_none()
    if assessment is None:
        raise AssessmentNotFoundError(f"Assessment '{assessment_id}' not found.")
    return to_definition(assessment)


async def create_assessment_from_spec(
    session: AsyncSession,
    spec: AssessmentSpec,
    created_by: Optional[uuid.UUID] = None,
) -> Assessment:
    """Builds an Assessment and its questions from a validated spec. Caller commits."""
    questions = []
    for position, q in enumerate(spec.questions):
        options = [o.model_dump() for o in q.options]
        validate_question_options(q.group, options)
        questions.append(
            Question(external_id=q.id, position=position, group=q.group, text=q.text, options=options)
        )

    assessment = Assessment(
        title=spec.title,
        description=spec.description,
        instructions=spec.instructions,
        published=spec.published,
        created_by=created_by,
        questions=questions,
    )
    session.add(assessment)
    await session.flush()
    logger.info(f"Created assessment {assessment.id} with {len(questions)} questions.")
    return assessment


async def seed_assessment(session: AsyncSession, spec: AssessmentSpec) -> tuple:
    """
    Creates the assessment unless a published one already exists.
    Returns (assessment, created).
    """
    existing = (await session.execute(
        select(Assessment).where(Assessment.published.is_(True)).limit(1)
    )).scalar_one_or_none()
    if existing is not None:
        logger.info(f"Assessment already exists ({existing.id}). Skipping seed.")
        return existing, False

    assessment = await create_assessment_from_spec(session, spec)
    await invalidate(ASSESSMENT_CACHE_PREFIX)
    return assessment, True
