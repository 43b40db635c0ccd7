"""
Post models for Feedline SDK
"""

from pydantic import Field

from .base import FeedlineModel


class Post(FeedlineModel):
    """A post in the feed; fields beyond ``id`` are passed through untouched"""
    id: int = Field(..., description="Server-assigned identifier")
