"""
Configuration management for Feedline SDK
Selects the run mode (live backend or mock transport) once at startup and
loads overrides from .env files
"""

import os
import platform
import ssl
import sys
from enum import Enum
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlsplit

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, validator

from .exceptions import ConfigurationError

LIVE_BASE_URL = "http://130.193.56.58:3000"
MOCK_BASE_URL = "mock://api.example.com"
MOCK_API_ARGUMENT = "mock-api"

DEFAULT_APP_NAME = "Feedline"
DEFAULT_APP_VERSION = "0.1.0"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_RESOURCE_TIMEOUT = 300.0
DEFAULT_CONFIG_DIR = Path("~/.feedline")


class RunMode(str, Enum):
    """Which backend the process talks to"""
    LIVE = "live"
    MOCK = "mock"


class TLSVersion(str, Enum):
    """Minimum accepted TLS protocol version"""
    TLSv1_2 = "TLSv1.2"
    TLSv1_3 = "TLSv1.3"

    @property
    def ssl_version(self) -> ssl.TLSVersion:
        if self is TLSVersion.TLSv1_3:
            return ssl.TLSVersion.TLSv1_3
        return ssl.TLSVersion.TLSv1_2


class AppIdentity(BaseModel):
    """Application name and version advertised in the User-Agent header"""
    name: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)

    @property
    def user_agent(self) -> str:
        return (
            f"{self.name}/{self.version} "
            f"Python/{platform.python_version()} {platform.system()}/{platform.release()}"
        )


class TransportConfig(BaseModel):
    """Immutable connection configuration shared by the request builder and the transport"""
    base_url: str = Field(LIVE_BASE_URL, description="Endpoint paths are resolved against this URL")
    run_mode: RunMode = Field(RunMode.LIVE, description="Live backend or mock transport")
    request_timeout: float = Field(DEFAULT_REQUEST_TIMEOUT, gt=0, description="Idle timeout while waiting for data")
    resource_timeout: float = Field(DEFAULT_RESOURCE_TIMEOUT, gt=0, description="Upper bound for a whole request")
    tls_min_version: TLSVersion = Field(TLSVersion.TLSv1_2, description="Minimum TLS version")
    max_connections_per_host: int = Field(1, ge=1, le=1, description="Serializes all traffic on one connection")
    cookies_enabled: bool = Field(False, description="Cookie jar is never used")
    use_cache: bool = Field(False, description="Responses are never cached")
    pipelining: bool = Field(True, description="Reuse the connection between requests")
    trust_env_proxy: bool = Field(True, description="Honor system proxy settings")
    user_agent: str = Field(..., min_length=1, description="Client identity header")

    class Config:
        frozen = True

    @validator("base_url")
    def validate_base_url(cls, v):
        parts = urlsplit(v)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"base URL must be absolute: {v!r}")
        return v.rstrip("/")

    @classmethod
    def for_run_mode(
        cls,
        run_mode: RunMode,
        identity: AppIdentity,
        base_url: Optional[str] = None,
        **overrides
    ) -> "TransportConfig":
        """Build the configuration for a run mode; misconfiguration is fatal"""
        if base_url is None:
            base_url = MOCK_BASE_URL if run_mode is RunMode.MOCK else LIVE_BASE_URL
        try:
            return cls(
                base_url=base_url,
                run_mode=run_mode,
                user_agent=identity.user_agent,
                **overrides
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid transport configuration: {e}")


class ConfigManager:
    """Environment-driven configuration with .env auto-loading"""

    def __init__(self, env_files: Optional[List[Path]] = None):
        self._load_env_vars(env_files)

    def _load_env_vars(self, env_files: Optional[List[Path]] = None) -> None:
        """Load environment variables from the first .env file found"""
        if env_files is None:
            current_dir = Path.cwd()
            env_files = [
                current_dir / ".env",
                current_dir / ".env.local",
                DEFAULT_CONFIG_DIR.expanduser() / ".env",
            ]

        for env_file in env_files:
            if env_file.exists():
                load_dotenv(env_file)
                break

    def get_run_mode(self) -> RunMode:
        """Run mode from FEEDLINE_RUN_MODE, else the mock-api launch argument"""
        value = os.getenv("FEEDLINE_RUN_MODE")
        if value:
            try:
                return RunMode(value.strip().lower())
            except ValueError:
                raise ConfigurationError(f"Unknown run mode: {value!r}")
        if MOCK_API_ARGUMENT in sys.argv:
            return RunMode.MOCK
        return RunMode.LIVE

    def get_base_url(self) -> Optional[str]:
        """Base URL override, if any"""
        return os.getenv("FEEDLINE_BASE_URL") or None

    def _get_float(self, name: str, default: float) -> float:
        try:
            return float(os.getenv(name, str(default)))
        except ValueError:
            return default

    def get_request_timeout(self) -> float:
        return self._get_float("FEEDLINE_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)

    def get_resource_timeout(self) -> float:
        return self._get_float("FEEDLINE_RESOURCE_TIMEOUT", DEFAULT_RESOURCE_TIMEOUT)

    def get_token_path(self) -> Path:
        """Location of the durable token store"""
        path = os.getenv("FEEDLINE_TOKEN_PATH")
        if path:
            return Path(path).expanduser()
        return DEFAULT_CONFIG_DIR.expanduser() / "defaults.json"

    def get_log_level(self) -> str:
        return os.getenv("FEEDLINE_LOG_LEVEL", "INFO")

    def get_app_identity(self) -> AppIdentity:
        """Application identity; a blank name or version cannot be recovered from"""
        try:
            return AppIdentity(
                name=os.getenv("FEEDLINE_APP_NAME", DEFAULT_APP_NAME),
                version=os.getenv("FEEDLINE_APP_VERSION", DEFAULT_APP_VERSION),
            )
        except ValidationError as e:
            raise ConfigurationError(f"Missing application identity: {e}")

    def get_transport_config(self) -> TransportConfig:
        """Transport configuration with environment overrides"""
        return TransportConfig.for_run_mode(
            self.get_run_mode(),
            self.get_app_identity(),
            base_url=self.get_base_url(),
            request_timeout=self.get_request_timeout(),
            resource_timeout=self.get_resource_timeout(),
        )


# Global configuration manager instance
config_manager = ConfigManager()


def get_default_config() -> TransportConfig:
    """Get the process configuration with environment overrides"""
    return config_manager.get_transport_config()


def get_run_mode() -> RunMode:
    return config_manager.get_run_mode()


def get_token_path() -> Path:
    return config_manager.get_token_path()
