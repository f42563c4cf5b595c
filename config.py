"""Configuration management for the link shortener."""

import os
import secrets
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field, PrivateAttr


class Config(BaseSettings):
    """Application configuration.

    Secrets are resolved here, once, and handed to the components that need
    them; nothing reads them from the environment later.
    """

    # Storage settings
    database_url: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection URL; in-memory storage when unset"
    )

    database_create_tables: str = Field(
        default="0",
        description="Set to '1' to enable automatic table creation"
    )

    # Redis settings (optional)
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL for caching key lookups"
    )

    cache_ttl_seconds: int = Field(
        default=3600,
        description="Cache TTL in seconds"
    )

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind to"
    )

    port: int = Field(
        default=8080,
        description="Port to listen on"
    )

    workers: int = Field(
        default=1,
        ge=1,
        description="Number of uvicorn worker processes. Sessions are per process, so keep 1 when using the web UI."
    )

    tls_certfile: Optional[str] = Field(
        default=None,
        description="TLS certificate file for direct TLS termination"
    )

    tls_keyfile: Optional[str] = Field(
        default=None,
        description="TLS private key file for direct TLS termination"
    )

    # Link settings
    base_url: str = Field(
        default="http://localhost:8080",
        description="Base URL for generating short URLs"
    )

    path_prefix: str = Field(
        default="",
        description="Path prefix for short URLs (e.g., '/s' for /s/abc123)"
    )

    max_collision_retries: int = Field(
        default=5,
        description="Extra attempts when a generated key already exists"
    )

    # Bearer tokens
    jwt_secret_key: str = Field(
        min_length=1,
        description="Signing key for bearer tokens (required)"
    )

    token_ttl_seconds: int = Field(
        default=86400,
        description="Bearer token lifetime"
    )

    token_grace_seconds: int = Field(
        default=86400,
        description="How long after expiry a token may still be refreshed"
    )

    # Cookie sessions
    session_secret_key: Optional[str] = Field(
        default=None,
        description="Session cookie signing secret; random per process when unset"
    )

    session_cookie_name: str = Field(
        default="session",
        description="Name of the session cookie"
    )

    session_ttl_seconds: int = Field(
        default=86400,
        description="Session lifetime"
    )

    cookie_secure: bool = Field(
        default=False,
        description="Set the Secure flag on the session cookie"
    )

    _session_secret_generated: bool = PrivateAttr(default=False)

    # Safe Browsing
    safe_browsing_api_key: Optional[str] = Field(
        default=None,
        description="Google Safe Browsing API key"
    )

    safe_browsing_db_path: Optional[str] = Field(
        default=None,
        description="Local threat database path"
    )

    safe_browsing_required: bool = Field(
        default=False,
        description="Fail startup when Safe Browsing cannot be initialized (strict policy)"
    )

    safe_browsing_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Timeout for each Safe Browsing lookup"
    )

    password_hasher: str = Field(
        default="bcrypt",
        description="Password hasher ('bcrypt' or 'simple' for tests)"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Log file path (logs to stdout if not specified)"
    )

    log_json: bool = Field(
        default=False,
        description="Use JSON format for logs"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore extra environment variables
    }

    def __init__(self, **kwargs):
        """Initialize config, filling in the session secret when unset."""
        super().__init__(**kwargs)

        if not self.session_secret_key:
            self.session_secret_key = secrets.token_urlsafe(32)
            self._session_secret_generated = True

        # Read by the storage layer
        os.environ["DATABASE_CREATE_TABLES"] = self.database_create_tables

    @property
    def session_secret_generated(self) -> bool:
        """True when no session secret was configured and a random one is in use."""
        return self._session_secret_generated

    def redacted_dump(self) -> dict:
        """Configuration for logging, with secrets masked."""
        data = self.model_dump()
        for name in ("jwt_secret_key", "session_secret_key", "safe_browsing_api_key"):
            if data.get(name):
                data[name] = "***"
        if data.get("database_url"):
            data["database_url"] = "***"
        return data


def load_config() -> Config:
    """Load configuration from environment."""
    return Config()


class SafeBrowsingSettings(BaseSettings):
    """Safe Browsing settings on their own, for tools that need no server secrets."""

    api_key: Optional[str] = None
    db_path: Optional[str] = None
    required: bool = False
    timeout_seconds: float = Field(default=5.0, gt=0)

    model_config = {
        "env_prefix": "SAFE_BROWSING_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }
