"""Validation utilities for the link service."""

import re
from urllib.parse import urlparse
from typing import Tuple

MAX_URL_LENGTH = 2048

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 72  # bcrypt truncates at 72 bytes

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+$")


def normalize_url(url: str) -> Tuple[str, bool, str]:
    """Normalize and validate a URL.

    A URL without a scheme gets ``https://`` prepended.

    Args:
        url: The URL as submitted

    Returns:
        Tuple of (normalized_url, is_valid, error_message)
    """
    if not url or not isinstance(url, str) or not url.strip():
        return url, False, "URL is required"

    url = url.strip()

    if "://" not in url:
        url = f"https://{url}"

    if len(url) > MAX_URL_LENGTH:
        return url, False, f"URL is too long (max {MAX_URL_LENGTH} characters)"

    try:
        result = urlparse(url)
    except ValueError as e:
        return url, False, f"Invalid URL format: {e}"

    if result.scheme not in ("http", "https"):
        return url, False, "URL must use http or https protocol"

    if not result.hostname:
        return url, False, "URL must have a valid domain"

    return url, True, ""


def is_valid_username(username: str) -> Tuple[bool, str]:
    """Validate a username: 3-30 chars, letters, numbers and underscores."""
    if not username:
        return False, "Username is required"
    if len(username) < USERNAME_MIN_LENGTH or len(username) > USERNAME_MAX_LENGTH:
        return False, (
            f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
        )
    if not USERNAME_PATTERN.match(username):
        return False, "Username must contain only letters, numbers, and underscores"
    return True, ""


def is_valid_email(email: str) -> Tuple[bool, str]:
    """Shallow email check; delivery is never attempted."""
    if not email:
        return False, "Email is required"
    if not EMAIL_PATTERN.match(email):
        return False, "Email address is not valid"
    return True, ""


def is_valid_password(password: str) -> Tuple[bool, str]:
    """Validate an account password: 8-72 chars, max 72 UTF-8 bytes."""
    if not password:
        return False, "Password is required"
    if len(password) < PASSWORD_MIN_LENGTH or len(password) > PASSWORD_MAX_LENGTH:
        return False, (
            f"Password must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters"
        )
    if len(password.encode("utf-8")) > PASSWORD_MAX_LENGTH:
        return False, f"Password must not exceed {PASSWORD_MAX_LENGTH} bytes when encoded"
    return True, ""


def is_valid_link_password(password: str) -> Tuple[bool, str]:
    """Validate an optional link password (empty means no gate)."""
    if password and len(password.encode("utf-8")) > PASSWORD_MAX_LENGTH:
        return False, f"Link password must not exceed {PASSWORD_MAX_LENGTH} bytes when encoded"
    return True, ""
