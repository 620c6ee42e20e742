"""
Seed Script - Import the MBTI assessment questions

Creates the published assessment from the YAML definition unless one exists,
then prints a sample scoring run.
Usage: python -m scripts.seed_assessment [path/to/assessment.yml]
"""
import asyncio
import logging
import sys

from services.personality_engine.loader import load_assessment_spec_from_file
from services.personality_engine.scoring import compute_result, count_questions_by_dimension
from src.cache.connection import close_redis
from src.core.config import get_app_settings
from src.core.logging_config import setup_logging
from src.db.models import Base
from src.db.session import dispose_engine, get_engine, get_sessionmaker
from src.services.assessments import seed_assessment

logger = logging.getLogger(__name__)


def log_sample_scoring(spec) -> None:
    counts = count_questions_by_dimension(q.group for q in spec.questions)
    # First option of every question, second option of every third one.
    answers = [q.options[1 if i % 3 == 0 else 0].value for i, q in enumerate(spec.questions)]
    result = compute_result(answers, counts)
    logger.info(f"Sample scoring: type={result.personality_type} scores={result.scores.model_dump()} alternatives={result.alternative_types}")


async def main(path: str) -> None:
    spec = load_assessment_spec_from_file(path)
    engine = await get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = await get_sessionmaker()
    try:
        async with factory() as session:
            assessment, created = await seed_assessment(session, spec)
            await session.commit()
            logger.info(f"Assessment ID: {assessment.id} ({'created' if created else 'existing'})")
        log_sample_scoring(spec)
    finally:
        await close_redis()
        await dispose_engine()


if __name__ == "__main__":
    settings = get_app_settings()
    setup_logging(settings.log_level)
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else settings.assessment_file))
