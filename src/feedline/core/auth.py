"""
Authentication token lifecycle for Feedline SDK
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .storage import TokenStore

logger = logging.getLogger(__name__)

TOKEN_HEADER = "Authentication-Token"


@dataclass(frozen=True)
class TokenState:
    """Token currently held by the client"""
    value: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class PersistToken:
    """Side effect: write ``value`` to the token store"""
    value: Optional[str]


def update_token(state: TokenState, new_value: Optional[str]) -> Tuple[TokenState, PersistToken]:
    """Every update is mirrored to durable storage, even when the value is unchanged"""
    return TokenState(new_value), PersistToken(new_value)


def mask_token(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if len(value) <= 8:
        return "***"
    return f"{value[:4]}...{value[-4:]}"


class AuthManager:
    """Owns the token state and applies its persistence effects"""

    def __init__(self, token_store: TokenStore):
        self.token_store = token_store
        self._state = TokenState(token_store.get())
        if self._state.is_authenticated:
            logger.debug(f"Loaded token {mask_token(self._state.value)}")

    @property
    def state(self) -> TokenState:
        return self._state

    @property
    def token(self) -> Optional[str]:
        return self._state.value

    def update_token(self, new_value: Optional[str]) -> TokenState:
        """Transition to ``new_value`` and persist it before returning"""
        state, effect = update_token(self._state, new_value)
        self.token_store.set(effect.value)
        self._state = state
        logger.info(f"Access token updated ({mask_token(new_value)})")
        return state

    def get_headers(self, authorized: bool) -> Dict[str, str]:
        """
        Authentication headers for a request.

        An authorized request made while no token is held goes out without
        credentials instead of failing.
        """
        if authorized and self._state.value is not None:
            return {TOKEN_HEADER: self._state.value}
        if authorized:
            logger.debug("No token held; sending authorized request without credentials")
        return {}

    def get_token_info(self) -> Dict[str, Optional[str]]:
        return {"token": mask_token(self._state.value)}
