"""
User models for Feedline SDK
"""

from typing import Optional

from pydantic import BaseModel, Field

from .base import FeedlineModel


class User(FeedlineModel):
    """A registered user"""
    id: int = Field(..., description="Server-assigned identifier")
    email: Optional[str] = Field(None, description="Email address")


class Credentials(BaseModel):
    """Email and password pair"""
    email: str
    password: str


class SignUpRequest(BaseModel):
    """Request body for POST /users.json"""
    user: Credentials

    @classmethod
    def create(cls, email_address: str, password: str) -> "SignUpRequest":
        return cls(user=Credentials(email=email_address, password=password))
