"""
Base model for Feedline SDK payloads
"""

from pydantic import BaseModel


class FeedlineModel(BaseModel):
    """Base model for all server entities; unknown fields are kept as-is"""

    class Config:
        extra = "allow"
        frozen = True
