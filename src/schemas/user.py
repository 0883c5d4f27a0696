"""User schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.models.user import UserRole


class UserCreate(BaseModel):
    """Create a publisher (or another admin)."""

    username: str = Field(..., min_length=3, max_length=100)
    password: Optional[str] = Field(None, min_length=6, max_length=100)
    display_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    role: str = Field(default="publisher", pattern="^(admin|publisher)$")


class UserUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = Field(None, min_length=6, max_length=100)
    is_active: Optional[bool] = None


class UserResponse(BaseModel):
    """User as seen by admins and by the user themselves."""

    id: int
    username: str
    display_name: str
    email: Optional[str]
    role: UserRole
    is_active: bool
    created_at: datetime
    last_active_at: Optional[datetime]

    model_config = {"from_attributes": True}


class UserCreatedResponse(UserResponse):
    # Only set when the password was generated
    initial_password: Optional[str] = None
