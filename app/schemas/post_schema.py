from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime

from app.schemas.common import UserSummary, MAX_ID

class PostCreate(BaseModel):
    user_id: int = Field(..., ge=1, le=MAX_ID)
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None

class PostUpdate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None

class PostDeleteRequest(BaseModel):
    user_id: Optional[int] = Field(None, ge=1, le=MAX_ID)

class PostOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    status: str
    like_count: int = 0
    comment_count: int = 0
    favorite_count: int = 0
    created_at: datetime
    user: UserSummary
    images: List[str] = []
