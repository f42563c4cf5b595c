"""Abstract base class for link store implementations."""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any

from .models import User, Link


class StoreBase(ABC):
    """Abstract base class for user and link persistence.

    Every operation is atomic at the single-row level. "Not found" is
    reported as ``None`` (lookups) or ``False`` (mutations).
    """

    def __init__(self, db_config: str):
        """Initialize store.

        Args:
            db_config: Connection string (or a label for in-process stores)
        """
        self.db_config = db_config

    @abstractmethod
    async def create_user(self, username: str, email: str, password_hash: str) -> User:
        """Create a user.

        Args:
            username: Unique username (compared case-insensitively)
            email: Email address
            password_hash: Hash produced by the password hasher

        Returns:
            The created user with its assigned id

        Raises:
            ConflictError: If the username is taken
        """
        pass

    @abstractmethod
    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Get a user by id, or None."""
        pass

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]:
        """Get a user by username (case-insensitive), or None."""
        pass

    @abstractmethod
    async def insert_link(
        self,
        key: str,
        url: str,
        user_id: int,
        password_hash: str = "",
    ) -> Link:
        """Insert a new link.

        Args:
            key: Short key (must be unique)
            url: Normalized target URL
            user_id: Owning user id
            password_hash: Optional password hash, empty for no gate

        Returns:
            The created link with its assigned id

        Raises:
            DuplicateKeyError: If the key already exists
        """
        pass

    @abstractmethod
    async def get_link_by_key(self, key: str) -> Optional[Link]:
        """Get a link by short key, or None."""
        pass

    @abstractmethod
    async def get_link_by_id(self, link_id: int) -> Optional[Link]:
        """Get a link by id, or None."""
        pass

    @abstractmethod
    async def get_links_by_user(self, user_id: int) -> List[Link]:
        """List a user's links, newest first."""
        pass

    @abstractmethod
    async def update_link(self, link_id: int, url: str, password_hash: str) -> bool:
        """Replace a link's target URL and password hash.

        Returns:
            True if updated, False if not found
        """
        pass

    @abstractmethod
    async def delete_link(self, link_id: int) -> bool:
        """Delete a link.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def increment_clicks(self, link_id: int) -> Optional[int]:
        """Atomically add one click.

        Returns:
            The new click count, or None if the link does not exist
        """
        pass

    @abstractmethod
    async def get_statistics(self) -> Dict[str, Any]:
        """Get store statistics (total_users, total_links, total_clicks)."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release connections."""
        pass
