from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime

from app.schemas.common import UserSummary, MAX_ID

class CommentCreate(BaseModel):
    post_id: Optional[int] = Field(None, ge=1, le=MAX_ID)
    user_id: Optional[int] = Field(None, ge=1, le=MAX_ID)
    content: Optional[str] = None
    parent_id: Optional[int] = Field(None, ge=1, le=MAX_ID)

class CommentUserRequest(BaseModel):
    """Body of the like and delete endpoints"""
    user_id: Optional[int] = Field(None, ge=1, le=MAX_ID)

class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    post_id: int
    parent_id: Optional[int] = None
    content: str
    like_count: int = 0
    created_at: datetime
    user: UserSummary

class ThreadNode(CommentOut):
    replies: List[CommentOut] = []

class CommentLikeResult(BaseModel):
    likes: int
    has_like: bool
