"""
Post service for Feedline SDK
"""

from typing import TYPE_CHECKING, AsyncIterator, List, Optional

from ..models.posts import Post
from ..models.users import User

if TYPE_CHECKING:
    from ..core.client import APIClient


class PostService:
    """Awaitable feed operations"""

    def __init__(self, client: "APIClient"):
        self.client = client

    async def feed(self, start_post_index: int = 0) -> List[Post]:
        """Get one page of the feed"""
        return await self.client.get_feed_posts(start_post_index)

    async def of_user(self, user: User) -> List[Post]:
        """Get all posts written by ``user``"""
        return await self.client.get_posts_of(user)

    async def iter_feed(self, start_post_index: int = 0, max_pages: Optional[int] = None) -> AsyncIterator[Post]:
        """
        Walk the feed page by page.

        Args:
            start_post_index: Index to start after
            max_pages: Stop after this many pages (no limit when None)

        Yields:
            Posts in feed order until an empty page is returned
        """
        index = start_post_index
        pages = 0
        while max_pages is None or pages < max_pages:
            page = await self.feed(index)
            pages += 1
            if not page:
                break
            for post in page:
                yield post
            index += len(page)
