"""Credential issuing, password hashing and request authentication."""

from .guard import AccessGuard, BearerTokenGuard, GuardResult, SessionGuard
from .passwords import BcryptHasher, PasswordHasher, SimpleHasher, get_hasher
from .sessions import Session, SessionStore
from .tokens import CredentialAuthority, TokenClaims, TokenOutcome

__all__ = [
    "AccessGuard",
    "BcryptHasher",
    "BearerTokenGuard",
    "CredentialAuthority",
    "GuardResult",
    "PasswordHasher",
    "Session",
    "SessionGuard",
    "SessionStore",
    "SimpleHasher",
    "TokenClaims",
    "TokenOutcome",
    "get_hasher",
]
