"""Pydantic schemas for API responses.

Requests are form-encoded (username/email/password, url/password) and are
declared with ``Form`` parameters on the routes.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from shortlink.database.models import Link, User


class UserResponse(BaseModel):
    """A registered account (never includes the password hash)."""

    id: int
    username: str
    email: str
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, username=user.username, email=user.email, created_at=user.created_at)


class LinkResponse(BaseModel):
    """A link as shown to its owner."""

    id: int
    key: str
    url: str
    short_url: str
    protected: bool = Field(..., description="True when the link requires a password")
    clicks: int
    created_at: datetime

    @classmethod
    def from_link(cls, link: Link, short_url: str) -> "LinkResponse":
        return cls(
            id=link.id,
            key=link.key,
            url=link.url,
            short_url=short_url,
            protected=link.is_protected,
            clicks=link.clicks,
            created_at=link.created_at,
        )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": 1,
                    "key": "Ab3dE9fGh0",
                    "url": "https://example.com",
                    "short_url": "https://short.link/Ab3dE9fGh0",
                    "protected": False,
                    "clicks": 0,
                    "created_at": "2024-01-01T12:00:00Z",
                }
            ]
        }
    }


class DashboardResponse(BaseModel):
    """All links owned by the caller."""

    urls: List[LinkResponse]


class CreateLinkResponse(BaseModel):
    """Response after shortening a URL."""

    key: str = Field(..., description="The generated short key")
    short_url: str = Field(..., description="The complete short URL")
    url: str = Field(..., description="The normalized target URL")


class ResolveResponse(BaseModel):
    """Redirect target for a resolved key."""

    url: str


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    database: str = Field(..., description="Database status")
    cache: str = Field(..., description="Cache status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""

    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Detailed error information")


class StatisticsResponse(BaseModel):
    """Statistics response."""

    total_users: int
    total_links: int
    total_clicks: int
    database: str
    cache_enabled: bool
    safe_browsing_enabled: bool
