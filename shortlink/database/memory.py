"""In-process store used when no database URL is configured, and by the tests."""

import asyncio
import logging
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone

from .base import StoreBase
from .models import User, Link
from ..errors import ConflictError, DuplicateKeyError


class MemoryStore(StoreBase):
    """Dictionary-backed store.

    All mutations run under one asyncio.Lock so that concurrent increments of
    the same counter are never lost. Data does not survive a restart.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        super().__init__("memory://")
        self.logger = logger or logging.getLogger(__name__)
        self._users: Dict[int, User] = {}
        self._links: Dict[int, Link] = {}
        self._keys: Dict[str, int] = {}
        self._next_user_id = 1
        self._next_link_id = 1
        self._lock = asyncio.Lock()

    async def create_user(self, username: str, email: str, password_hash: str) -> User:
        async with self._lock:
            lower = username.lower()
            if any(u.username.lower() == lower for u in self._users.values()):
                raise ConflictError(f"Username '{username}' is already taken")

            user = User(
                id=self._next_user_id,
                username=username,
                email=email,
                password_hash=password_hash,
                created_at=datetime.now(timezone.utc),
            )
            self._users[user.id] = user
            self._next_user_id += 1

        self.logger.debug(f"Created user {user.id} ({username})")
        return user

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        lower = username.lower()
        return next((u for u in self._users.values() if u.username.lower() == lower), None)

    async def insert_link(
        self,
        key: str,
        url: str,
        user_id: int,
        password_hash: str = "",
    ) -> Link:
        async with self._lock:
            if key in self._keys:
                raise DuplicateKeyError(f"Key '{key}' already exists")

            link = Link(
                id=self._next_link_id,
                key=key,
                url=url,
                user_id=user_id,
                password_hash=password_hash,
                clicks=0,
                created_at=datetime.now(timezone.utc),
            )
            self._links[link.id] = link
            self._keys[key] = link.id
            self._next_link_id += 1

        return self._copy(link)

    async def get_link_by_key(self, key: str) -> Optional[Link]:
        link_id = self._keys.get(key)
        if link_id is None:
            return None
        return self._copy(self._links.get(link_id))

    async def get_link_by_id(self, link_id: int) -> Optional[Link]:
        return self._copy(self._links.get(link_id))

    async def get_links_by_user(self, user_id: int) -> List[Link]:
        links = [self._copy(link) for link in self._links.values() if link.user_id == user_id]
        return sorted(links, key=lambda link: (link.created_at, link.id), reverse=True)

    async def update_link(self, link_id: int, url: str, password_hash: str) -> bool:
        async with self._lock:
            link = self._links.get(link_id)
            if link is None:
                return False
            link.url = url
            link.password_hash = password_hash
        return True

    async def delete_link(self, link_id: int) -> bool:
        async with self._lock:
            link = self._links.pop(link_id, None)
            if link is None:
                return False
            self._keys.pop(link.key, None)
        return True

    async def increment_clicks(self, link_id: int) -> Optional[int]:
        async with self._lock:
            link = self._links.get(link_id)
            if link is None:
                return None
            link.clicks += 1
            return link.clicks

    async def get_statistics(self) -> Dict[str, Any]:
        return {
            "total_users": len(self._users),
            "total_links": len(self._links),
            "total_clicks": sum(link.clicks for link in self._links.values()),
            "database": "memory",
        }

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        self.logger.debug("Memory store closed")

    @staticmethod
    def _copy(link: Optional[Link]) -> Optional[Link]:
        # Callers get snapshots; mutations go through the store methods.
        if link is None:
            return None
        return Link(**vars(link))
