"""
Admin credential verification.

The dashboard only needs a yes/no answer and a token to remember locally;
nothing checks the token on later requests.
"""

from __future__ import annotations

import hmac
import logging
from typing import Protocol

from .errors import UnauthorizedError
from .models import LoginResponse

logger = logging.getLogger(__name__)


class CredentialVerifier(Protocol):
    def verify(self, username: str, password: str) -> bool: ...


class StaticCredentialVerifier:
    """Accepts exactly one configured username/password pair."""

    def __init__(self, username: str, password: str) -> None:
        self._username = str(username)
        self._password = str(password)

    def verify(self, username: str, password: str) -> bool:
        user_ok = hmac.compare_digest(username.encode(), self._username.encode())
        password_ok = hmac.compare_digest(password.encode(), self._password.encode())
        return user_ok and password_ok


class AdminAuthenticator:
    def __init__(self, verifier: CredentialVerifier, token: str) -> None:
        self.verifier = verifier
        self.token = str(token)

    def login(self, username: str, password: str) -> LoginResponse:
        if not self.verifier.verify(username, password):
            logger.warning(f"Rejected admin login for user {username!r}")
            raise UnauthorizedError("Invalid credentials")
        logger.info(f"Admin {username!r} logged in")
        return LoginResponse(success=True, token=self.token)
