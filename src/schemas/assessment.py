import uuid
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from services.personality_engine.scoring import TraitScores


class OptionOut(BaseModel):
    text: str
    value: str


class QuestionOut(BaseModel):
    id: str
    group: str
    text: str
    options: List[OptionOut]


class AssessmentSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str


class AssessmentDefinition(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    instructions: Optional[str] = None
    questions: List[QuestionOut]
    dimension_counts: Dict[str, int]


class SubmissionRequest(BaseModel):
    answers: List[str] = Field(..., description="Trait letters in question order, e.g. ['I', 'N', ...]")
    user_id: Optional[uuid.UUID] = None
    guest_id: Optional[str] = Field(None, min_length=1, max_length=64)
    time_taken: Optional[int] = Field(None, ge=0, description="Seconds spent on the assessment.")

    @model_validator(mode='after')
    def single_owner(self) -> 'SubmissionRequest':
        if self.user_id is not None and self.guest_id is not None:
            raise ValueError("Provide either user_id or guest_id, not both.")
        return self


class SubmissionResponse(BaseModel):
    success: bool = True
    result_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    guest_id: Optional[str] = None
    personality_type: str
    alternative_types: List[str]
    scores: TraitScores
    points_awarded: int = 0
