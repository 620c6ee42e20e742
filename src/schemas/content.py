import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ContentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    slug: str
    content_type: str
    category: str
    subtitle: Optional[str] = None
    overview: Optional[str] = None
    body: str
    excerpt: Optional[str] = None
    personality_id: Optional[str] = None
    personality_name: Optional[str] = None
    personality_group: Optional[str] = None
    order: Optional[int] = None
    is_locked: bool
    main_image: Optional[str] = None
    author: str
    minimum_read_time: Optional[int] = None
    word_count: int


class ContentReadRequest(BaseModel):
    user_id: uuid.UUID


class ContentReadResponse(BaseModel):
    content_id: uuid.UUID
    points_awarded: int
    already_read: bool
