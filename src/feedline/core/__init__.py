"""
Core module for Feedline SDK
"""

from .auth import AuthManager, PersistToken, TokenState, update_token
from .client import APIClient, client, create_client
from .config import (
    AppIdentity, ConfigManager, RunMode, TLSVersion, TransportConfig, get_default_config, get_run_mode
)
from .decoder import Envelope, decode_sequence, decode_single
from .dispatch import Call, CallState, SerialDispatcher
from .exceptions import (
    FeedlineError, ConfigurationError, TransportError, ConnectionError, TimeoutError,
    HTTPError, DecodeError
)
from .request import HTTPMethod, OutboundRequest, RequestBuilder
from .storage import JSONFileStore, KeyValueStore, MemoryStore, TokenStore
from .transport import AiohttpTransport, MockTransport, Transport, TransportResponse, create_transport

__all__ = [
    "APIClient",
    "client",
    "create_client",
    "AuthManager",
    "PersistToken",
    "TokenState",
    "update_token",
    "AppIdentity",
    "ConfigManager",
    "RunMode",
    "TLSVersion",
    "TransportConfig",
    "get_default_config",
    "get_run_mode",
    "Envelope",
    "decode_single",
    "decode_sequence",
    "Call",
    "CallState",
    "SerialDispatcher",
    "FeedlineError",
    "ConfigurationError",
    "TransportError",
    "ConnectionError",
    "TimeoutError",
    "HTTPError",
    "DecodeError",
    "HTTPMethod",
    "OutboundRequest",
    "RequestBuilder",
    "JSONFileStore",
    "KeyValueStore",
    "MemoryStore",
    "TokenStore",
    "AiohttpTransport",
    "MockTransport",
    "Transport",
    "TransportResponse",
    "create_transport",
]
