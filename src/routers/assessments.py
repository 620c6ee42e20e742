import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.personality_engine.models import InvalidInput
from services.personality_engine.scoring import ScoringConfig
from src.core.config import get_scoring_settings
from src.db.session import db_session
from src.db.validation import EntityValidationError
from src.schemas.assessment import (
    AssessmentDefinition,
    AssessmentSummary,
    SubmissionRequest,
    SubmissionResponse,
)
from src.services.assessments import get_assessment_definition, list_published_assessments
from src.services.errors import InvalidSubmissionError, NotFoundError
from src.services.results import submit_assessment

router = APIRouter(prefix="/assessments", tags=["Assessments"])
logger = logging.getLogger(__name__)


def get_scoring_config() -> ScoringConfig:
    settings = get_scoring_settings()
    return ScoringConfig(
        closeness_threshold=settings.closeness_threshold,
        max_alternatives=settings.max_alternatives,
    )


@router.get("", response_model=List[AssessmentSummary])
async def list_assessments(session: AsyncSession = Depends(db_session)):
    return await list_published_assessments(session)


@router.get("/{assessment_id}", response_model=AssessmentDefinition)
async def read_assessment(assessment_id: uuid.UUID, session: AsyncSession = Depends(db_session)):
    try:
        return await get_assessment_definition(assessment_id, session=session)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/{assessment_id}/submit", response_model=SubmissionResponse)
async def submit(
    assessment_id: uuid.UUID,
    request: SubmissionRequest,
    session: AsyncSession = Depends(db_session),
    config: ScoringConfig = Depends(get_scoring_config),
):
    """
    Scores a submission for a guest or registered user, stores the result as
    the owner's active one and returns the computed type.
    """
    try:
        outcome = await submit_assessment(
            session,
            assessment_id,
            request.answers,
            user_id=request.user_id,
            guest_id=request.guest_id,
            time_taken=request.time_taken,
            config=config,
        )
    except NotFoundError as e:
        logger.warning(f"Submission rejected: {e}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (InvalidInput, InvalidSubmissionError, EntityValidationError) as e:
        logger.warning(f"Could not score submission for assessment {assessment_id}: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except Exception as e:
        logger.exception(f"Unexpected error during assessment submission: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error")

    result = outcome.result
    return SubmissionResponse(
        result_id=result.id,
        user_id=result.user_id,
        guest_id=result.guest_id,
        personality_type=outcome.scoring.personality_type,
        alternative_types=outcome.scoring.alternative_types,
        scores=outcome.scoring.scores,
        points_awarded=outcome.points_awarded,
    )
