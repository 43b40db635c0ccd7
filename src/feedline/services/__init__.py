"""
Services module for Feedline SDK
"""

from .posts import PostService
from .users import UserService

__all__ = [
    "PostService",
    "UserService",
]
