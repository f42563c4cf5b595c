"""HMAC-SHA256 signed bearer tokens.

Tokens are stateless: nothing is stored server-side, so a token stays usable
until it expires (logout cannot revoke it). An expired token can be exchanged
for a fresh one while it is within the grace window after its expiry.

Token format: base64url(json_claims).base64url(hmac_sha256_signature), with
the base64 padding stripped so the token is safe in headers.
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from ..errors import AuthenticationError

_TOKEN_PARTS = 2

DEFAULT_TOKEN_TTL_SECONDS = 86400  # 24 hours
DEFAULT_GRACE_SECONDS = 86400  # 24 hours past expiry
CLOCK_SKEW_SECONDS = 60


class TokenOutcome(str, Enum):
    VALID = "valid"
    EXPIRED = "expired"
    INVALID = "invalid"


@dataclass(frozen=True)
class TokenClaims:
    """Claims carried inside a signed token."""

    sub: int
    iat: int
    exp: int


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64decode(data: str) -> bytes:
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class CredentialAuthority:
    """Issue, validate and refresh bearer tokens.

    The signing key is resolved once at startup and never rotated while the
    process runs, so instances are safe to share between requests.
    """

    def __init__(
        self,
        secret_key: str,
        ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
        grace_seconds: int = DEFAULT_GRACE_SECONDS,
        clock: Callable[[], float] = time.time,
        logger: Optional[logging.Logger] = None,
    ):
        if not secret_key:
            raise ValueError("A signing key is required to issue bearer tokens")
        self._key = secret_key.encode("utf-8")
        self.ttl_seconds = ttl_seconds
        self.grace_seconds = grace_seconds
        self._clock = clock
        self.logger = logger or logging.getLogger(__name__)

    def issue(self, user_id: int) -> str:
        """Mint a token for a user, valid for ``ttl_seconds``."""
        now = int(self._clock())
        claims = TokenClaims(sub=user_id, iat=now, exp=now + self.ttl_seconds)
        return self._sign(claims)

    def validate(self, token: str) -> Tuple[Optional[TokenClaims], TokenOutcome]:
        """Verify signature and expiry.

        Returns:
            ``(claims, VALID)``, ``(claims, EXPIRED)`` for a well-signed token
            past its expiry, or ``(None, INVALID)`` for anything else.
        """
        claims = self._decode(token)
        if claims is None:
            return None, TokenOutcome.INVALID

        if self._clock() > claims.exp:
            return claims, TokenOutcome.EXPIRED

        return claims, TokenOutcome.VALID

    def refresh(self, token: str) -> str:
        """Exchange a valid or recently expired token for a fresh one.

        A token expired by exactly ``grace_seconds`` is still accepted.

        Raises:
            AuthenticationError: If the token is invalid or expired beyond the grace window
        """
        claims, outcome = self.validate(token)

        if outcome is TokenOutcome.INVALID:
            raise AuthenticationError("Invalid token")

        if outcome is TokenOutcome.EXPIRED:
            expired_for = self._clock() - claims.exp
            if expired_for > self.grace_seconds:
                self.logger.debug(f"Refusing refresh for user {claims.sub}: expired {expired_for:.0f}s ago")
                raise AuthenticationError("Token has been expired for too long")

        return self.issue(claims.sub)

    def _sign(self, claims: TokenClaims) -> str:
        payload = json.dumps(asdict(claims), sort_keys=True, separators=(",", ":")).encode("utf-8")
        sig = hmac.new(self._key, payload, hashlib.sha256).digest()
        return f"{_b64encode(payload)}.{_b64encode(sig)}"

    def _decode(self, token: str) -> Optional[TokenClaims]:
        """Return the claims of a well-signed, well-formed token, else None."""
        if not token or not isinstance(token, str):
            return None

        parts = token.split(".")
        if len(parts) != _TOKEN_PARTS:
            return None

        try:
            payload = _b64decode(parts[0])
            provided_sig = _b64decode(parts[1])
        except (ValueError, binascii.Error):
            return None

        expected_sig = hmac.new(self._key, payload, hashlib.sha256).digest()
        if not hmac.compare_digest(provided_sig, expected_sig):
            self.logger.debug("token signature mismatch")
            return None

        try:
            data = json.loads(payload)
            claims = TokenClaims(sub=data["sub"], iat=data["iat"], exp=data["exp"])
        except (ValueError, TypeError, KeyError):
            self.logger.debug("token payload malformed")
            return None

        if not self._claims_well_formed(claims):
            return None

        return claims

    def _claims_well_formed(self, claims: TokenClaims) -> bool:
        if not all(_is_int(v) for v in (claims.sub, claims.iat, claims.exp)):
            self.logger.debug("token claims are not integers")
            return False

        if claims.exp <= claims.iat:
            self.logger.debug("token exp <= iat")
            return False

        if claims.iat > self._clock() + CLOCK_SKEW_SECONDS:
            self.logger.debug("token issued in the future")
            return False

        return True
