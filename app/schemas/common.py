from pydantic import BaseModel, ConfigDict
from typing import Annotated, Generic, Optional, TypeVar
from fastapi import Path

T = TypeVar("T")

# Ids are stored in 32-bit INTEGER columns
MAX_ID = 2_147_483_647

PathId = Annotated[int, Path(ge=1, le=MAX_ID)]

class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every endpoint"""
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None

class UserSummary(BaseModel):
    """Public profile fields embedded in posts and comments"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    paternal_surname: str
    username: str
    avatar_url: Optional[str] = None
