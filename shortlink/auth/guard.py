"""Request authentication strategies.

Both strategies answer the same question ("who is calling?") and share the
AccessGuard interface; routes pick one through a FastAPI dependency.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from starlette.requests import HTTPConnection

from .sessions import SessionStore
from .tokens import CredentialAuthority, TokenOutcome
from ..common.headers import parse_bearer_token
from ..database.base import StoreBase
from ..database.models import User
from ..errors import AuthenticationError, LoginRequiredError


@dataclass
class GuardResult:
    """Outcome of a successful authentication.

    ``replacement_token`` is set when an expired bearer token was refreshed;
    the caller is expected to hand it back to the client.
    """

    user: User
    replacement_token: Optional[str] = None


class AccessGuard(ABC):
    """Resolve the caller of a request to a User or reject it."""

    def __init__(self, store: StoreBase, logger: Optional[logging.Logger] = None):
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    @abstractmethod
    def extract_credential(self, conn: HTTPConnection) -> Optional[str]:
        """Pull the raw credential from the request, or None if absent."""

    @abstractmethod
    async def authenticate_credential(self, credential: Optional[str]) -> GuardResult:
        """Resolve a raw credential.

        Raises:
            AuthenticationError: If the caller cannot be identified
        """

    async def authenticate(self, conn: HTTPConnection) -> GuardResult:
        return await self.authenticate_credential(self.extract_credential(conn))

    async def _load_user(self, user_id: int, error: type) -> User:
        # A valid credential does not imply the account still exists.
        user = await self.store.get_user_by_id(user_id)
        if user is None:
            self.logger.info(f"Credential refers to missing user {user_id}")
            raise error("User not found")
        return user


class BearerTokenGuard(AccessGuard):
    """``Authorization: Bearer <token>`` with one transparent refresh."""

    def __init__(
        self,
        store: StoreBase,
        authority: CredentialAuthority,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(store, logger)
        self.authority = authority

    def extract_credential(self, conn: HTTPConnection) -> Optional[str]:
        return parse_bearer_token(conn.headers.get("authorization"))

    async def authenticate_credential(self, credential: Optional[str]) -> GuardResult:
        if not credential:
            raise AuthenticationError("Unauthorized", detail="Missing bearer token")

        claims, outcome = self.authority.validate(credential)

        if outcome is TokenOutcome.INVALID:
            raise AuthenticationError("Invalid token")

        replacement = None
        if outcome is TokenOutcome.EXPIRED:
            try:
                replacement = self.authority.refresh(credential)
            except AuthenticationError as e:
                raise AuthenticationError("Could not refresh token", detail=e.message) from e
            self.logger.debug(f"Refreshed expired token for user {claims.sub}")

        user = await self._load_user(claims.sub, AuthenticationError)
        return GuardResult(user=user, replacement_token=replacement)


class SessionGuard(AccessGuard):
    """Signed session cookie; failures send the browser to the login page."""

    def __init__(
        self,
        store: StoreBase,
        sessions: SessionStore,
        cookie_name: str = "session",
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(store, logger)
        self.sessions = sessions
        self.cookie_name = cookie_name

    def extract_credential(self, conn: HTTPConnection) -> Optional[str]:
        return conn.cookies.get(self.cookie_name)

    async def authenticate_credential(self, credential: Optional[str]) -> GuardResult:
        session = self.sessions.load(credential)
        user_id = self.sessions.user_id(session)
        if user_id is None:
            raise LoginRequiredError("Login required")

        return GuardResult(user=await self._load_user(user_id, LoginRequiredError))
