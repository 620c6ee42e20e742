import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from services.personality_engine.scoring import TraitScores


class ResultOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    assessment_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    guest_id: Optional[str] = None
    answers: List[str]
    scores: TraitScores
    personality_type: str
    alternative_types: List[str]
    time_taken: Optional[int] = None
    is_active: bool
    completed_at: datetime
