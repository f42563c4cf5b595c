"""Data models for the link store."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class User:
    """A registered account."""

    id: int
    username: str
    email: str
    password_hash: str
    created_at: datetime = field(default_factory=_utcnow)

    def to_public_dict(self) -> dict:
        """Convert to dictionary without the password hash."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        """Create from dictionary (database row or cache payload)."""
        return cls(
            id=data["id"],
            username=data["username"],
            email=data["email"],
            password_hash=data["password_hash"],
            created_at=_parse_datetime(data.get("created_at")) or _utcnow(),
        )


@dataclass
class Link:
    """A short key mapped to a target URL."""

    id: int
    key: str
    url: str
    user_id: int
    password_hash: str = ""
    clicks: int = 0
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def is_protected(self) -> bool:
        """True when the link is gated by a password."""
        return bool(self.password_hash)

    def to_dict(self) -> dict:
        """Convert to dictionary (includes the password hash, for storage and cache only)."""
        return {
            "id": self.id,
            "key": self.key,
            "url": self.url,
            "user_id": self.user_id,
            "password_hash": self.password_hash,
            "clicks": self.clicks,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def to_public_dict(self) -> dict:
        """Convert to dictionary safe to return to the owner."""
        return {
            "id": self.id,
            "key": self.key,
            "url": self.url,
            "user_id": self.user_id,
            "protected": self.is_protected,
            "clicks": self.clicks,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Link":
        """Create from dictionary (database row or cache payload)."""
        return cls(
            id=data["id"],
            key=data["key"],
            url=data["url"],
            user_id=data["user_id"],
            password_hash=data.get("password_hash") or "",
            clicks=data.get("clicks", 0),
            created_at=_parse_datetime(data.get("created_at")) or _utcnow(),
        )
