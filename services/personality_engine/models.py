from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from services.personality_engine.definitions import DIMENSION_CODES


DimensionCode = Literal["EI", "SN", "TF", "JP"]
TraitLetter = Literal["E", "I", "S", "N", "T", "F", "J", "P"]


class OptionSpec(BaseModel):
    text: str = Field(..., min_length=1)
    value: TraitLetter


class QuestionSpec(BaseModel):
    id: str
    group: DimensionCode
    text: str = Field(..., min_length=1)
    options: List[OptionSpec] = Field(..., min_length=2, max_length=2)


class AssessmentSpec(BaseModel):
    title: str = Field(..., max_length=100)
    description: str = Field(..., max_length=500)
    instructions: Optional[str] = Field(None, max_length=1000)
    published: bool = False
    questions: List[QuestionSpec] = Field(..., min_length=1)

    @model_validator(mode='after')
    def covers_every_dimension(self) -> 'AssessmentSpec':
        present = {q.group for q in self.questions}
        missing = [group for group in DIMENSION_CODES if group not in present]
        if missing:
            raise ValueError(f"Assessment needs at least one question per dimension; missing {', '.join(missing)}.")
        return self


# Custom Error Classes
class InvalidInput(ValueError):
    """Raised when a submission cannot be scored (no answers, missing question counts)."""
    pass
