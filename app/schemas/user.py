# app/schemas/user.py
from datetime import datetime as _Datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., min_length=1, max_length=255)
    role: str = Field(..., min_length=1, max_length=64)

    @field_validator("name")
    @classmethod
    def _clean_name(cls, v: str) -> str:
        # trim + collapse internal extra spaces
        v = " ".join(v.strip().split())
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("email", "role")
    @classmethod
    def _strip(cls, v: str) -> str:
        # case is preserved: email uniqueness is case-sensitive
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class UserCreate(UserBase):
    """Incoming payload for creating a user."""
    pass


class UserOut(UserBase):
    """Response model for reading a user."""
    id: int
    created_at: _Datetime
    updated_at: _Datetime

    model_config = ConfigDict(from_attributes=True)  # allow returning ORM objects directly
