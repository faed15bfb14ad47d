from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum

from app.schemas.common import MAX_ID

class ReactionKind(str, Enum):
    LIKE = "like"
    DISLIKE = "dislike"

class ReactionRequest(BaseModel):
    user_id: Optional[int] = Field(None, ge=1, le=MAX_ID)
    kind: Optional[str] = None

class FavoriteRequest(BaseModel):
    user_id: Optional[int] = Field(None, ge=1, le=MAX_ID)

class ReactionResult(BaseModel):
    likes: int
    dislikes: int
    user_reaction: Optional[ReactionKind] = None

class FavoriteResult(BaseModel):
    favorites: int
    is_favorite: bool

class ReactionState(BaseModel):
    user_reaction: Optional[ReactionKind] = None
    is_favorite: bool = False
    likes: int = 0
    dislikes: int = 0
    favorites: int = 0
