"""
Outbound request construction
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode, urlsplit

from .auth import AuthManager
from .config import TransportConfig
from .exceptions import ConfigurationError


class HTTPMethod(str, Enum):
    """HTTP methods, as defined in RFC 2616 section 9"""
    OPTIONS = "OPTIONS"
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    TRACE = "TRACE"
    CONNECT = "CONNECT"
    PATCH = "PATCH"


@dataclass(frozen=True)
class OutboundRequest:
    """A fully formed request; never mutated after construction"""
    method: HTTPMethod
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None

    def __post_init__(self):
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @property
    def path(self) -> str:
        return urlsplit(self.url).path

    def json(self) -> Any:
        """Decoded JSON body, or None for bodiless requests"""
        if self.body is None:
            return None
        return json.loads(self.body)


class RequestBuilder:
    """Builds requests from the transport configuration and current token state"""

    def __init__(self, config: TransportConfig, auth_manager: AuthManager):
        self.config = config
        self.auth_manager = auth_manager

    def _build_url(self, path: str, query: Optional[Mapping[str, Any]] = None) -> str:
        """Resolve an endpoint path against the base URL"""
        if not path.startswith("/"):
            path = "/" + path
        url = f"{self.config.base_url}{path}"
        if query:
            url = f"{url}?{urlencode(query)}"
        try:
            parts = urlsplit(url)
        except ValueError as e:
            raise ConfigurationError(f"Invalid endpoint: {path} ({e})")
        if not parts.scheme or not parts.netloc or any(c.isspace() for c in url):
            raise ConfigurationError(f"Invalid endpoint: {path}")
        return url

    def build(
        self,
        method: HTTPMethod,
        path: str,
        authorized: bool = False,
        params: Optional[Dict[str, Any]] = None,
        query: Optional[Mapping[str, Any]] = None,
    ) -> OutboundRequest:
        """Compose an OutboundRequest"""
        url = self._build_url(path, query)

        headers = {
            "User-Agent": self.config.user_agent,
            "Accept": "application/json",
        }

        body = None
        if params is not None:
            try:
                body = json.dumps(params, separators=(",", ":")).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Cannot serialize parameters for {path}: {e}")
            headers["Content-Type"] = "application/json"

        headers.update(self.auth_manager.get_headers(authorized))

        return OutboundRequest(method=HTTPMethod(method), url=url, headers=headers, body=body)
