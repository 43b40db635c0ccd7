"""
Transport boundary: executes an OutboundRequest and yields the raw response
"""

import asyncio
import json
import logging
import ssl
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple, Union

import aiohttp

from .config import RunMode, TransportConfig
from .exceptions import ConnectionError, TimeoutError, TransportError
from .request import HTTPMethod, OutboundRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    """Status, headers and raw body of a completed exchange"""
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    """Anything that can send an OutboundRequest"""

    @property
    def is_connected(self) -> bool:
        ...

    async def open(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def send(self, request: OutboundRequest) -> TransportResponse:
        ...


class AiohttpTransport:
    """Live transport over a single ephemeral aiohttp session"""

    def __init__(self, config: TransportConfig):
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @property
    def is_connected(self) -> bool:
        """Check if the session is open"""
        return self._session is not None and not self._session.closed

    def _ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        context.minimum_version = self.config.tls_min_version.ssl_version
        return context

    async def open(self) -> None:
        if self.is_connected:
            return
        connector = aiohttp.TCPConnector(
            limit=self.config.max_connections_per_host,
            limit_per_host=self.config.max_connections_per_host,
            ssl=self._ssl_context(),
            force_close=not self.config.pipelining,
        )
        cookie_jar = aiohttp.CookieJar() if self.config.cookies_enabled else aiohttp.DummyCookieJar()
        self._session = aiohttp.ClientSession(
            connector=connector,
            cookie_jar=cookie_jar,
            timeout=aiohttp.ClientTimeout(
                total=self.config.resource_timeout,
                sock_connect=self.config.request_timeout,
                sock_read=self.config.request_timeout,
            ),
            headers={
                "User-Agent": self.config.user_agent,
                "Accept": "application/json",
            },
            trust_env=self.config.trust_env_proxy,
        )
        logger.debug(f"Opened HTTP session for {self.config.base_url}")

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def send(self, request: OutboundRequest) -> TransportResponse:
        if not self.is_connected:
            raise ConnectionError("Transport not open. Use async context manager.")

        try:
            async with self._session.request(
                request.method.value,
                request.url,
                headers=dict(request.headers),
                data=request.body,
            ) as response:
                body = await response.read()
                return TransportResponse(
                    status=response.status,
                    headers=dict(response.headers),
                    body=body,
                )
        except asyncio.TimeoutError:
            raise TimeoutError(
                f"{request.method.value} {request.url} timed out",
                timeout=self.config.resource_timeout,
            )
        except aiohttp.ClientSSLError as e:
            raise ConnectionError(f"TLS failure for {request.url}: {e}")
        except aiohttp.ClientError as e:
            raise ConnectionError(f"Request to {request.url} failed: {e}")


Responder = Callable[[OutboundRequest], TransportResponse]
Route = Union[TransportResponse, TransportError, Responder]


def _as_body(payload: Any) -> bytes:
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return json.dumps(payload).encode("utf-8")


class MockTransport:
    """
    In-process transport that answers from registered routes.

    Routes are matched on method and URL path; the query string is ignored.
    Unmatched requests get a 404 with a JSON error body. Every request is
    recorded in ``requests`` in the order it was sent.
    """

    def __init__(self, latency: float = 0.0):
        self.latency = latency
        self.requests: List[OutboundRequest] = []
        self.max_in_flight = 0
        self._in_flight = 0
        self._routes: Dict[Tuple[HTTPMethod, str], Route] = {}
        self._open = False

    @property
    def is_connected(self) -> bool:
        return self._open

    async def open(self) -> None:
        self._open = True

    async def close(self) -> None:
        self._open = False

    def add_route(
        self,
        method: HTTPMethod,
        path: str,
        payload: Any = None,
        status: int = 200,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Answer ``method path`` with ``payload`` (bytes, str or JSON-serializable)"""
        self._routes[(HTTPMethod(method), path)] = TransportResponse(
            status=status,
            headers=dict(headers or {"Content-Type": "application/json"}),
            body=_as_body(payload),
        )

    def add_error(self, method: HTTPMethod, path: str, error: TransportError) -> None:
        """Fail ``method path`` with a transport-level error"""
        self._routes[(HTTPMethod(method), path)] = error

    def add_responder(self, method: HTTPMethod, path: str, responder: Responder) -> None:
        """Answer ``method path`` by calling ``responder(request)``"""
        self._routes[(HTTPMethod(method), path)] = responder

    async def send(self, request: OutboundRequest) -> TransportResponse:
        if not self._open:
            raise ConnectionError("Transport not open. Use async context manager.")

        self.requests.append(request)
        self._in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
            route = self._routes.get((request.method, request.path))
            if route is None:
                return TransportResponse(
                    status=404,
                    headers={"Content-Type": "application/json"},
                    body=b'{"error":"not found"}',
                )
            if isinstance(route, TransportError):
                raise route
            if isinstance(route, TransportResponse):
                return route
            return route(request)
        finally:
            self._in_flight -= 1


def create_transport(config: TransportConfig) -> Transport:
    """Pick the transport for the configured run mode"""
    if config.run_mode is RunMode.MOCK:
        logger.info("Using mock transport")
        return MockTransport()
    return AiohttpTransport(config)
