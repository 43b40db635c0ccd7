"""
User service for Feedline SDK
"""

from typing import TYPE_CHECKING

from ..models.users import User

if TYPE_CHECKING:
    from ..core.client import APIClient


class UserService:
    """Awaitable account operations"""

    def __init__(self, client: "APIClient"):
        self.client = client

    async def sign_up(self, email_address: str, password: str) -> User:
        """Create an account and keep the issued token"""
        return await self.client.sign_up(email_address, password)
