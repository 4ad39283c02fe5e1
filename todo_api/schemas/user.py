from datetime import datetime
from typing import Optional

from pydantic import Field

from .task import CamelModel


class UserBase(CamelModel):
    email: str


class UserCreate(UserBase):
    password: str = Field(min_length=1)
    name: Optional[str] = None


class UserUpdate(CamelModel):
    first_name: str = Field(min_length=2, description="User's first name", examples=["John"])
    last_name: str = Field(min_length=2, description="User's last name", examples=["Doe"])


class User(UserBase):
    id: str
    name: str
    created_at: datetime
    updated_at: datetime


class TokenData(CamelModel):
    user_id: Optional[str] = None
    expires_at: Optional[datetime] = None


class AuthResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: User
