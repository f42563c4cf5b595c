"""Common utilities for the link service."""

from .validators import normalize_url, is_valid_username, is_valid_email, is_valid_password
from .headers import build_base_url, get_forwarded_path_prefix, parse_bearer_token
from .url_builder import build_short_url, normalize_path_prefix
from .logging_config import setup_logging, get_logger

__all__ = [
    "normalize_url",
    "is_valid_username",
    "is_valid_email",
    "is_valid_password",
    "build_base_url",
    "get_forwarded_path_prefix",
    "parse_bearer_token",
    "build_short_url",
    "normalize_path_prefix",
    "setup_logging",
    "get_logger",
]
