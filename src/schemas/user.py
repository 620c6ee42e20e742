import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRegisterRequest(BaseModel):
    email: str = Field(..., description="User's email address.", examples=["user@example.com"])
    name: str = Field(..., description="Display name (max 50 characters).")
    password: str = Field(..., description="Password (min 6 characters).")


class UserLoginRequest(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    name: str
    role: str
    personality_type: Optional[str] = None
    points: int
    created_at: datetime


class UserRegisterResponse(BaseModel):
    user: UserOut
    points_awarded: int


class UserLoginResponse(BaseModel):
    user: UserOut
    points_awarded: int


class PointTransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    amount: int
    reason: str
    created_at: datetime


class PointsLedger(BaseModel):
    user_id: uuid.UUID
    total: int
    transactions: List[PointTransactionOut]
