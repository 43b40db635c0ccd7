"""
Feedline Python SDK
Async client for the Feedline backend: signup, feed pages and user posts
"""

__version__ = "0.1.0"

# Core client
from .core.client import APIClient, create_client, client

# Configuration
from .core.config import RunMode, TransportConfig, get_default_config
from .core.logging import setup_logging

# Pipeline building blocks
from .core.decoder import Envelope
from .core.request import HTTPMethod, OutboundRequest
from .core.storage import JSONFileStore, MemoryStore, TokenStore
from .core.transport import AiohttpTransport, MockTransport, TransportResponse

# Models
from .models import Post, User

# Exceptions
from .core.exceptions import (
    FeedlineError, ConfigurationError, TransportError, ConnectionError, TimeoutError,
    HTTPError, DecodeError
)

__all__ = [
    # Core client
    "APIClient",
    "create_client",
    "client",

    # Configuration
    "RunMode",
    "TransportConfig",
    "get_default_config",
    "setup_logging",

    # Pipeline
    "Envelope",
    "HTTPMethod",
    "OutboundRequest",
    "JSONFileStore",
    "MemoryStore",
    "TokenStore",
    "AiohttpTransport",
    "MockTransport",
    "TransportResponse",

    # Models
    "Post",
    "User",

    # Exceptions
    "FeedlineError",
    "ConfigurationError",
    "TransportError",
    "ConnectionError",
    "TimeoutError",
    "HTTPError",
    "DecodeError",
]
