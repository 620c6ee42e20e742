"""
Personality Scoring Engine

Turns an ordered list of trait-letter answers into trait percentages, a
four-letter personality type and up to two alternative types.
"""
import math
from collections import Counter
from fractions import Fraction
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from services.personality_engine.definitions import (
    DIMENSIONS,
    LETTER_TO_DIMENSION,
)
from services.personality_engine.models import InvalidInput


class ScoringConfig(BaseModel):
    closeness_threshold: float = Field(20, ge=0, description="Percentage-point gap below which a dimension counts as close.")
    max_alternatives: int = Field(2, ge=0, le=4)


class TraitScores(BaseModel):
    extrovert: int = Field(..., ge=0, le=100)
    introvert: int = Field(..., ge=0, le=100)
    sensory: int = Field(..., ge=0, le=100)
    intuitive: int = Field(..., ge=0, le=100)
    thinking: int = Field(..., ge=0, le=100)
    feeling: int = Field(..., ge=0, le=100)
    judging: int = Field(..., ge=0, le=100)
    perceiving: int = Field(..., ge=0, le=100)


class ScoringResult(BaseModel):
    scores: TraitScores
    personality_type: str
    alternative_types: List[str] = Field(default_factory=list)

    @property
    def alternative_type_1(self) -> Optional[str]:
        return self.alternative_types[0] if len(self.alternative_types) > 0 else None

    @property
    def alternative_type_2(self) -> Optional[str]:
        return self.alternative_types[1] if len(self.alternative_types) > 1 else None


DEFAULT_CONFIG = ScoringConfig()


def round_half_up(value: Fraction) -> int:
    """Rounds a non-negative rational to the nearest integer, .5 going up."""
    return math.floor(value + Fraction(1, 2))


def tally_answers(answers: Iterable[str]) -> Dict[str, int]:
    """Counts recognised trait letters. Anything else is skipped."""
    counts = Counter(a for a in answers if isinstance(a, str) and a in LETTER_TO_DIMENSION)
    return {letter: counts.get(letter, 0) for letter in LETTER_TO_DIMENSION}


def _dimension_percentages(first_count: int, second_count: int, denominator: int) -> tuple:
    first_pct = round_half_up(Fraction(first_count * 100, denominator))
    if first_count + second_count == denominator:
        # Fully answered dimension: derive the complement so the pair sums to 100.
        return first_pct, 100 - first_pct
    second_pct = round_half_up(Fraction(second_count * 100, denominator))
    return first_pct, second_pct


def compute_result(
    answers: Sequence[str],
    dimension_counts: Mapping[str, int],
    config: Optional[ScoringConfig] = None,
) -> ScoringResult:
    """
    Scores a submission.

    Args:
        answers: Ordered trait letters, one per question.
        dimension_counts: Number of questions per dimension code (EI, SN, TF, JP).
        config: Closeness threshold and alternative limit. Defaults to DEFAULT_CONFIG.

    Returns:
        ScoringResult with the eight percentages, the primary type and 0-2 alternatives.

    Raises:
        InvalidInput: If answers is empty, or a dimension with tallied answers
            has a zero or missing question count, or more answers than questions.
    """
    config = config or DEFAULT_CONFIG
    if not answers:
        raise InvalidInput("At least one answer is required.")

    counts = tally_answers(answers)

    scores: Dict[str, int] = {}
    primary_letters: List[str] = []
    diffs: Dict[str, int] = {}

    for dim in DIMENSIONS:
        first_count = counts[dim.first_letter]
        second_count = counts[dim.second_letter]
        denominator = dimension_counts.get(dim.code) or 0

        if first_count + second_count > 0 and denominator <= 0:
            raise InvalidInput(
                f"Dimension {dim.code} has {first_count + second_count} answers but a question count of {denominator}."
            )
        if first_count + second_count > denominator:
            raise InvalidInput(
                f"Dimension {dim.code} has {first_count + second_count} answers for only {denominator} questions."
            )

        if denominator > 0:
            first_pct, second_pct = _dimension_percentages(first_count, second_count, denominator)
        else:
            first_pct, second_pct = 0, 0

        scores[dim.first_trait] = first_pct
        scores[dim.second_trait] = second_pct
        primary_letters.append(dim.first_letter if first_pct >= second_pct else dim.second_letter)
        if denominator > 0:
            diffs[dim.code] = abs(first_pct - second_pct)

    personality_type = "".join(primary_letters)
    alternatives = alternative_types(personality_type, diffs, config)

    return ScoringResult(
        scores=TraitScores(**scores),
        personality_type=personality_type,
        alternative_types=alternatives,
    )


def alternative_types(personality_type: str, diffs: Mapping[str, int], config: ScoringConfig) -> List[str]:
    """
    Flips each close dimension of the primary type, one dimension per alternative.
    Dimensions missing from `diffs` were not scored and never count as close.
    Only the first `config.max_alternatives` close dimensions (in EI, SN, TF, JP order) are used.
    """
    close_positions = [
        index for index, dim in enumerate(DIMENSIONS)
        if dim.code in diffs and diffs[dim.code] < config.closeness_threshold
    ]

    alternatives = []
    for index in close_positions[: config.max_alternatives]:
        letters = list(personality_type)
        letters[index] = DIMENSIONS[index].complement(letters[index])
        alternatives.append("".join(letters))
    return alternatives


def count_questions_by_dimension(groups: Iterable[str]) -> Dict[str, int]:
    """Tallies question groups into a full EI/SN/TF/JP count mapping."""
    counts = {d.code: 0 for d in DIMENSIONS}
    for group in groups:
        if group in counts:
            counts[group] += 1
    return counts
