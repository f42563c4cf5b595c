"""Business logic service for the link shortener."""

import logging
from typing import Optional, Dict, Any, List

from .auth.passwords import PasswordHasher
from .keygen import KeyGenerator
from .database.base import StoreBase
from .database.cache import RedisCache
from .database.models import User, Link
from .errors import (
    AuthenticationError,
    AuthorizationError,
    DependencyError,
    DuplicateKeyError,
    NotFoundError,
    ValidationError,
)
from .common.validators import (
    normalize_url,
    is_valid_username,
    is_valid_email,
    is_valid_password,
    is_valid_link_password,
)
from .safety import SafeBrowsingClient, screen_url

INVALID_LOGIN_MESSAGE = "Invalid username or password"


class LinkService:
    """Service layer for accounts and link management."""

    def __init__(
        self,
        store: StoreBase,
        hasher: PasswordHasher,
        cache: Optional[RedisCache] = None,
        oracle: Optional[SafeBrowsingClient] = None,
        key_generator: Optional[KeyGenerator] = None,
        logger: Optional[logging.Logger] = None,
        max_collision_retries: int = 5,
    ):
        """Initialize link service.

        Args:
            store: User and link store
            hasher: Password hasher for account and link passwords
            cache: Optional key lookup cache
            oracle: Optional safety oracle
            key_generator: Optional key generator
            logger: Optional logger
            max_collision_retries: Extra attempts when a generated key already exists
        """
        self.store = store
        self.hasher = hasher
        self.cache = cache
        self.oracle = oracle
        self.generator = key_generator or KeyGenerator()
        self.logger = logger or logging.getLogger(__name__)
        self.max_collision_retries = max_collision_retries

    # -- accounts --

    async def register(self, username: str, email: str, password: str) -> User:
        """Create an account.

        Raises:
            ValidationError: If a field is missing or malformed
            ConflictError: If the username is taken
        """
        username = (username or "").strip()
        email = (email or "").strip()

        if not username or not email or not password:
            raise ValidationError("All fields are required")

        for is_valid, error in (
            is_valid_username(username),
            is_valid_email(email),
            is_valid_password(password),
        ):
            if not is_valid:
                raise ValidationError(error)

        password_hash = await self.hasher.hash(password)
        user = await self.store.create_user(username, email, password_hash)

        self.logger.info(f"Registered user {user.id} ({user.username})")
        return user

    async def authenticate(self, username: str, password: str) -> User:
        """Check a username/password pair.

        Raises:
            AuthenticationError: On any mismatch (the message never says which part was wrong)
        """
        if not username or not password:
            raise AuthenticationError(INVALID_LOGIN_MESSAGE)

        user = await self.store.get_user_by_username(username.strip())
        if user is None:
            raise AuthenticationError(INVALID_LOGIN_MESSAGE)

        if not await self.hasher.verify(password, user.password_hash):
            self.logger.info(f"Failed login for user {user.id}")
            raise AuthenticationError(INVALID_LOGIN_MESSAGE)

        return user

    # -- links --

    async def create_link(self, user: User, url: str, password: str = "") -> Link:
        """Shorten a URL for a user.

        Raises:
            ValidationError: If the URL or password is invalid
            UnsafeURLError: If the safety oracle flags the URL
            DependencyError: If the key space is exhausted or a dependency fails
        """
        normalized = await self._validate_target(url, password)
        password_hash = await self._hash_link_password(password)

        for attempt in range(self.max_collision_retries + 1):
            key = self.generator.generate_key(normalized)
            try:
                link = await self.store.insert_link(key, normalized, user.id, password_hash)
            except DuplicateKeyError:
                self.logger.warning(f"Key collision on attempt {attempt + 1}: {key}")
                continue

            self.logger.info(f"Created link {link.key} -> {link.url} for user {user.id}")
            return link

        raise DependencyError("Unable to generate a unique key after multiple attempts")

    async def get_link(self, user: User, link_id: int) -> Link:
        """Fetch one of the user's links.

        Raises:
            NotFoundError: If the link does not exist
            AuthorizationError: If the link belongs to someone else
        """
        link = await self.store.get_link_by_id(link_id)
        if link is None:
            raise NotFoundError(f"Link {link_id} not found")
        if link.user_id != user.id:
            raise AuthorizationError("You do not own this link")
        return link

    async def update_link(self, user: User, link_id: int, url: str, password: str = "") -> Link:
        """Replace a link's target and password (empty password removes the gate)."""
        link = await self.get_link(user, link_id)
        normalized = await self._validate_target(url, password)
        password_hash = await self._hash_link_password(password)

        if not await self.store.update_link(link_id, normalized, password_hash):
            raise NotFoundError(f"Link {link_id} not found")

        if self.cache:
            await self.cache.invalidate(link.key)

        self.logger.info(f"Updated link {link.key} -> {normalized}")
        link.url = normalized
        link.password_hash = password_hash
        return link

    async def delete_link(self, user: User, link_id: int) -> None:
        """Delete one of the user's links."""
        link = await self.get_link(user, link_id)

        if not await self.store.delete_link(link_id):
            raise NotFoundError(f"Link {link_id} not found")

        if self.cache:
            await self.cache.invalidate(link.key)

        self.logger.info(f"Deleted link {link.key}")

    async def list_links(self, user: User) -> List[Link]:
        """List the user's links, newest first."""
        return await self.store.get_links_by_user(user.id)

    # -- operations --

    async def get_statistics(self) -> Dict[str, Any]:
        """Get service statistics."""
        stats = await self.store.get_statistics()
        return {
            **stats,
            "cache_enabled": self.cache is not None and self.cache.enabled,
            "safe_browsing_enabled": self.oracle is not None and self.oracle.enabled,
        }

    async def health_check(self) -> Dict[str, bool]:
        """Perform health check."""
        db_healthy = await self.store.health_check()
        cache_healthy = await self.cache.ping() if self.cache else True

        return {
            "database": db_healthy,
            "cache": cache_healthy,
            "overall": db_healthy and cache_healthy,
        }

    async def close(self) -> None:
        """Close service connections."""
        await self.store.close()
        if self.cache:
            await self.cache.close()
        if self.oracle:
            await self.oracle.close()

    async def _validate_target(self, url: str, password: str) -> str:
        normalized, is_valid, error = normalize_url(url)
        if not is_valid:
            raise ValidationError(f"Invalid URL: {error}")

        is_valid, error = is_valid_link_password(password)
        if not is_valid:
            raise ValidationError(error)

        await screen_url(self.oracle, normalized, self.logger)
        return normalized

    async def _hash_link_password(self, password: str) -> str:
        if not password:
            return ""
        return await self.hasher.hash(password)
