from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
import re

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_MIN_LENGTH = 10
PASSWORD_RULES = "Password must be at least 10 characters long and contain an upper-case letter, a lower-case letter and a digit"

def is_valid_password(password: str) -> bool:
    if len(password) < PASSWORD_MIN_LENGTH:
        return False
    return (
        re.search(r"[A-Z]", password) is not None
        and re.search(r"[a-z]", password) is not None
        and re.search(r"[0-9]", password) is not None
    )

def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None

class UserCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    paternal_surname: str = Field(..., min_length=1, max_length=100)
    maternal_surname: Optional[str] = Field(None, max_length=100)
    username: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., max_length=100)
    password: str
    phone: Optional[str] = Field(None, max_length=20)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email format")
        return value

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if not is_valid_password(value):
            raise ValueError(PASSWORD_RULES)
        return value

    @field_validator("maternal_surname", "phone")
    @classmethod
    def blank_optional(cls, value: Optional[str]) -> Optional[str]:
        return _blank_to_none(value)

class UserProfileUpdate(BaseModel):
    """
    Recognized profile fields. first_name and paternal_surname are always
    written; maternal_surname and phone are written too, so omitting them
    clears them; password is only re-hashed when a non-blank value is sent.
    """
    first_name: str = Field(..., min_length=1, max_length=100)
    paternal_surname: str = Field(..., min_length=1, max_length=100)
    maternal_surname: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    password: Optional[str] = None

    @field_validator("maternal_surname", "phone", "password")
    @classmethod
    def blank_optional(cls, value: Optional[str]) -> Optional[str]:
        return _blank_to_none(value)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_valid_password(value):
            raise ValueError(PASSWORD_RULES)
        return value

class LoginRequest(BaseModel):
    """username may also be the email address"""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    paternal_surname: str
    maternal_surname: Optional[str] = None
    username: str
    email: str
    avatar_url: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime

class AvatarOut(BaseModel):
    avatar_url: str
