from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

class Principal(BaseModel):
    """The authenticated actor of a request, rebuilt from token claims."""
    id: str
    name: str
    email: str

class UserSummary(BaseModel):
    id: str
    name: str
    email: str
    profile_picture: Optional[str] = None

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True

class UserResponse(UserSummary):
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class UserRegister(BaseModel):
    name: str = Field(..., min_length=1, description="Name is required")
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

class UserLogin(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    profile_picture: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class AuthResponse(BaseModel):
    token: str
    user: UserSummary

class MessageResponse(BaseModel):
    message: str
