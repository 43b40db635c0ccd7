"""
Models module for Feedline SDK
"""

from .base import FeedlineModel
from .posts import Post
from .users import Credentials, SignUpRequest, User

__all__ = [
    "FeedlineModel",
    "Post",
    "User",
    "Credentials",
    "SignUpRequest",
]
