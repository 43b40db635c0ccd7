"""
Custom exceptions for Feedline SDK
"""


class FeedlineError(Exception):
    """Base exception for Feedline SDK"""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self):
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigurationError(FeedlineError):
    """Unrecoverable misconfiguration (bad endpoint, unserializable payload, missing identity)"""

    def __init__(self, message: str = "Configuration error", details: dict = None):
        super().__init__(message, "CONFIG_ERROR", details)


class TransportError(FeedlineError):
    """The request did not produce a usable response"""

    def __init__(self, message: str = "Transport error", code: str = "TRANSPORT_ERROR", details: dict = None):
        super().__init__(message, code, details)


class ConnectionError(TransportError):
    """Connection refused, reset, DNS or TLS negotiation failure"""

    def __init__(self, message: str = "Connection error", details: dict = None):
        super().__init__(message, "CONNECTION_ERROR", details)


class TimeoutError(TransportError):
    """Request or resource timeout expired"""

    def __init__(self, message: str = "Request timeout", timeout: float = None, details: dict = None):
        super().__init__(message, "TIMEOUT_ERROR", details)
        self.timeout = timeout

    def __str__(self):
        if self.timeout:
            return f"{self.message} (after {self.timeout}s)"
        return super().__str__()


class HTTPError(TransportError):
    """Server answered with a non-success status"""

    def __init__(self, message: str = "HTTP request failed", status_code: int = None, body: bytes = b"", details: dict = None):
        super().__init__(message, "HTTP_ERROR", details)
        self.status_code = status_code
        self.body = body

    def __str__(self):
        if self.status_code:
            return f"[HTTP {self.status_code}] {self.message}"
        return super().__str__()


class DecodeError(FeedlineError):
    """Response body does not match the expected envelope shape"""

    def __init__(self, message: str = "Could not decode response", diagnostic: str = None, details: dict = None):
        super().__init__(message, "DECODE_ERROR", details)
        self.diagnostic = diagnostic

    def __str__(self):
        if self.diagnostic:
            return f"[{self.code}] {self.message}: {self.diagnostic}"
        return super().__str__()
