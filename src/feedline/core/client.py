"""
Main client for the Feedline API
Composes configuration, token state, request building, decoding and the
transport behind the signup and feed operations
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List, Optional

from ..models.posts import Post
from ..models.users import SignUpRequest, User
from ..services.posts import PostService
from ..services.users import UserService
from .auth import AuthManager
from .config import TransportConfig, get_default_config, get_token_path
from .decoder import Envelope, decode_sequence, decode_single
from .dispatch import Call, CallState, Completion, SerialDispatcher
from .exceptions import FeedlineError, HTTPError
from .request import HTTPMethod, OutboundRequest, RequestBuilder
from .storage import JSONFileStore, TokenStore
from .transport import Transport, create_transport

logger = logging.getLogger(__name__)

SIGN_UP_ENDPOINT = "/users.json"
FEED_ENDPOINT = "/posts"
USER_POSTS_ENDPOINT = "/users/{user_id}/posts"


class APIClient:
    """
    Client for the Feedline backend.

    Every public operation returns immediately with an ``asyncio.Future`` and,
    if given, calls ``completion(result, error)`` exactly once on the callback
    loop. Requests are sent one at a time in the order they were issued.

    Example:
        async with APIClient() as client:
            user = await client.sign_up("a@x.com", "pw123")
            client.get_feed_posts(0, completion=render_posts)
    """

    def __init__(
        self,
        config: Optional[TransportConfig] = None,
        transport: Optional[Transport] = None,
        token_store: Optional[TokenStore] = None,
        callback_loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.config = config or get_default_config()
        self.token_store = token_store or TokenStore(JSONFileStore(get_token_path()))

        self.auth_manager = AuthManager(self.token_store)
        self.request_builder = RequestBuilder(self.config, self.auth_manager)
        self.transport = transport or create_transport(self.config)
        self.dispatcher = SerialDispatcher()
        self._callback_loop = callback_loop
        self._owns_callback_loop = callback_loop is None

        self.users = UserService(self)
        self.posts = PostService(self)

        logger.info(f"APIClient initialized ({self.config.run_mode.value}, base_url: {self.config.base_url})")

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def open(self) -> None:
        """Open the transport and start the dispatch worker"""
        if self._owns_callback_loop:
            self._callback_loop = asyncio.get_running_loop()
        await self.transport.open()
        self.dispatcher.start()

    async def close(self) -> None:
        """Finish queued calls, then release the transport"""
        await self.dispatcher.stop()
        await self.transport.close()
        if self._owns_callback_loop:
            self._callback_loop = None

    @property
    def is_connected(self) -> bool:
        return self.transport.is_connected and self.dispatcher.is_running

    @property
    def token(self) -> Optional[str]:
        return self.auth_manager.token

    @property
    def api_info(self) -> Dict[str, Any]:
        """Get client configuration summary"""
        return {
            "base_url": self.config.base_url,
            "run_mode": self.config.run_mode.value,
            "request_timeout": self.config.request_timeout,
            "resource_timeout": self.config.resource_timeout,
            "user_agent": self.config.user_agent,
            **self.auth_manager.get_token_info(),
        }

    # =========================================================================
    # Public operations
    # =========================================================================

    def sign_up(
        self,
        email_address: str,
        password: str,
        completion: Optional[Completion] = None,
    ) -> "asyncio.Future[User]":
        """Create an account; the issued token is stored on success"""
        params = SignUpRequest.create(email_address, password).model_dump()
        return self._schedule(
            "sign_up",
            lambda: self.request_builder.build(HTTPMethod.POST, SIGN_UP_ENDPOINT, authorized=False, params=params),
            lambda body: decode_single(body, User),
            completion,
            on_success=self._accept_sign_up,
        )

    def get_feed_posts(
        self,
        start_post_index: int,
        completion: Optional[Completion] = None,
    ) -> "asyncio.Future[List[Post]]":
        """
        Get one page of feed posts starting after ``start_post_index``.

        Callers page through the feed by calling again with the index of the
        last post they received.
        """
        if start_post_index < 0:
            raise ValueError(f"start_post_index must be >= 0, got {start_post_index}")
        return self._schedule(
            "get_feed_posts",
            lambda: self.request_builder.build(
                HTTPMethod.GET, FEED_ENDPOINT, authorized=False, query={"start": start_post_index}
            ),
            lambda body: decode_sequence(body, Post),
            completion,
        )

    def get_posts_of(
        self,
        user: User,
        completion: Optional[Completion] = None,
    ) -> "asyncio.Future[List[Post]]":
        """Get the posts written by ``user``"""
        return self._schedule(
            "get_posts_of",
            lambda: self.request_builder.build(
                HTTPMethod.GET, USER_POSTS_ENDPOINT.format(user_id=user.id), authorized=False
            ),
            lambda body: decode_sequence(body, Post),
            completion,
        )

    # =========================================================================
    # Request pipeline
    # =========================================================================

    def _schedule(
        self,
        name: str,
        build: Callable[[], OutboundRequest],
        decode: Callable[[bytes], Envelope],
        completion: Optional[Completion],
        on_success: Optional[Callable[[Envelope], Any]] = None,
    ) -> asyncio.Future:
        if self._callback_loop is None:
            raise RuntimeError("Client not open. Use async context manager.")

        # ConfigurationError propagates from here; it never reaches a completion.
        request = build()
        call = Call(name, self._callback_loop, completion)
        call.advance(CallState.BUILT)

        async def job() -> None:
            await self._perform(call, request, decode, on_success)

        self.dispatcher.submit(job)
        logger.debug(f"{name}: queued {request.method.value} {request.url}")
        return call.future

    async def _perform(
        self,
        call: Call,
        request: OutboundRequest,
        decode: Callable[[bytes], Envelope],
        on_success: Optional[Callable[[Envelope], Any]],
    ) -> None:
        call.advance(CallState.IN_FLIGHT)
        try:
            response = await self.transport.send(request)
            if not response.ok:
                raise HTTPError(
                    f"{request.method.value} {request.path} returned {response.status}",
                    status_code=response.status,
                    body=response.body,
                )
            envelope = decode(response.body)
            result = on_success(envelope) if on_success else envelope.data
        except FeedlineError as e:
            logger.warning(f"{call.name} failed: {e}")
            call.resolve(None, e)
            return
        except Exception as e:
            logger.exception(f"{call.name} failed unexpectedly")
            call.resolve(None, e)
            return

        logger.debug(f"{call.name} succeeded")
        call.resolve(result, None)

    def _accept_sign_up(self, envelope: Envelope) -> User:
        if envelope.metadata:
            self.auth_manager.update_token(envelope.metadata)
        else:
            logger.warning("Sign up response carried no token; keeping current token")
        return envelope.data


# Factory function for easy client creation
def create_client(
    config: Optional[TransportConfig] = None,
    transport: Optional[Transport] = None,
    token_store: Optional[TokenStore] = None,
) -> APIClient:
    """Create a client from the process configuration"""
    return APIClient(config=config, transport=transport, token_store=token_store)


@asynccontextmanager
async def client(
    config: Optional[TransportConfig] = None,
    transport: Optional[Transport] = None,
    token_store: Optional[TokenStore] = None,
):
    """Context manager for the Feedline client"""
    async with APIClient(config=config, transport=transport, token_store=token_store) as api_client:
        yield api_client
