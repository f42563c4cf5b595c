"""Short key resolution: lookup, password gate, safety check, click accounting."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .auth.passwords import PasswordHasher
from .database.base import StoreBase
from .database.cache import RedisCache
from .database.models import Link
from .errors import DependencyError, UnsafeURLError
from .safety import SafeBrowsingClient, screen_url


class ResolveOutcome(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    PASSWORD_REQUIRED = "password_required"
    UNAUTHORIZED = "unauthorized"
    UNSAFE = "unsafe"
    CHECK_FAILED = "check_failed"


@dataclass
class ResolveResult:
    outcome: ResolveOutcome
    url: Optional[str] = None
    clicks: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.outcome is ResolveOutcome.OK


class LinkResolver:
    """Turn a short key into a redirect target."""

    def __init__(
        self,
        store: StoreBase,
        hasher: PasswordHasher,
        oracle: Optional[SafeBrowsingClient] = None,
        cache: Optional[RedisCache] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.hasher = hasher
        self.oracle = oracle
        self.cache = cache
        self.logger = logger or logging.getLogger(__name__)

    async def resolve(self, key: str, supplied_password: Optional[str] = None) -> ResolveResult:
        """Resolve a key, counting one click on success.

        Outcomes other than OK carry no URL. Store failures propagate as
        DependencyError.
        """
        link = await self._lookup(key)
        if link is None:
            self.logger.info(f"Key not found: {key}")
            return ResolveResult(ResolveOutcome.NOT_FOUND)

        if link.is_protected:
            if not supplied_password:
                return ResolveResult(ResolveOutcome.PASSWORD_REQUIRED)
            if not await self.hasher.verify(supplied_password, link.password_hash):
                self.logger.info(f"Wrong password for key {key}")
                return ResolveResult(ResolveOutcome.UNAUTHORIZED)

        try:
            await screen_url(self.oracle, link.url, self.logger)
        except UnsafeURLError:
            return ResolveResult(ResolveOutcome.UNSAFE)
        except DependencyError:
            return ResolveResult(ResolveOutcome.CHECK_FAILED)

        clicks = await self.store.increment_clicks(link.id)
        if clicks is None:
            # Deleted between lookup and increment.
            if self.cache:
                await self.cache.invalidate(key)
            return ResolveResult(ResolveOutcome.NOT_FOUND)

        self.logger.debug(f"Resolved {key} -> {link.url} (clicks={clicks})")
        return ResolveResult(ResolveOutcome.OK, url=link.url, clicks=clicks)

    async def _lookup(self, key: str) -> Optional[Link]:
        if self.cache:
            cached = await self.cache.get_link(key)
            if cached is not None:
                self.logger.debug(f"Cache hit for {key}")
                return cached

        link = await self.store.get_link_by_key(key)
        if link is not None and self.cache:
            await self.cache.set_link(link)
        return link
