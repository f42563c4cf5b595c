"""Tests for bearer token issue, validation and refresh."""

import hashlib
import hmac
import json

import pytest

from shortlink.auth.tokens import CredentialAuthority, TokenOutcome, _b64encode
from shortlink.errors import AuthenticationError

DAY = 86400


def _signed(claims: dict, key: bytes = b"test-signing-key") -> str:
    payload = json.dumps(claims).encode("utf-8")
    sig = hmac.new(key, payload, hashlib.sha256).digest()
    return f"{_b64encode(payload)}.{_b64encode(sig)}"


class TestCredentialAuthority:

    def test_issue_and_validate(self, authority, clock):
        token = authority.issue(7)

        claims, outcome = authority.validate(token)
        assert outcome is TokenOutcome.VALID
        assert claims.sub == 7
        assert claims.iat == int(clock.now)
        assert claims.exp == int(clock.now) + DAY

    def test_valid_until_exp_inclusive(self, authority, clock):
        token = authority.issue(7)

        clock.advance(DAY)
        assert authority.validate(token)[1] is TokenOutcome.VALID

        clock.advance(1)
        claims, outcome = authority.validate(token)
        assert outcome is TokenOutcome.EXPIRED
        assert claims.sub == 7

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "!!!.???"])
    def test_malformed_is_invalid(self, authority, token):
        assert authority.validate(token) == (None, TokenOutcome.INVALID)

    def test_foreign_signature_is_invalid(self, authority, clock):
        other = CredentialAuthority(secret_key="someone-else", clock=clock)
        assert authority.validate(other.issue(7)) == (None, TokenOutcome.INVALID)

    def test_tampered_payload_is_invalid(self, authority):
        token = authority.issue(7)
        _, signature = token.split(".")
        forged_payload = _b64encode(b'{"exp":9999999999,"iat":1,"sub":1}')

        assert authority.validate(f"{forged_payload}.{signature}")[1] is TokenOutcome.INVALID

    @pytest.mark.parametrize(
        "claims",
        [
            {"sub": True, "iat": 0, "exp": 10},
            {"sub": "7", "iat": 0, "exp": 10},
            {"sub": 7, "iat": 10, "exp": 10},
            {"sub": 7, "iat": 0},
        ],
    )
    def test_malformed_claims_are_invalid(self, authority, clock, claims):
        """Correctly signed tokens with bad claims are still rejected."""
        now = int(clock.now)
        claims = {k: v + now if k in ("iat", "exp") else v for k, v in claims.items()}
        assert authority.validate(_signed(claims))[1] is TokenOutcome.INVALID

    def test_issued_in_future_is_invalid(self, authority, clock):
        now = int(clock.now)
        token = _signed({"sub": 7, "iat": now + 3600, "exp": now + 7200})
        assert authority.validate(token)[1] is TokenOutcome.INVALID

    def test_refresh_valid_token(self, authority, clock):
        token = authority.issue(7)
        clock.advance(60)

        new_token = authority.refresh(token)
        claims, outcome = authority.validate(new_token)
        assert outcome is TokenOutcome.VALID
        assert claims.sub == 7
        assert claims.exp == int(clock.now) + DAY

    def test_refresh_within_grace(self, authority, clock):
        token = authority.issue(7)
        clock.advance(DAY + 3600)

        new_token = authority.refresh(token)
        assert authority.validate(new_token)[1] is TokenOutcome.VALID

    def test_refresh_at_grace_boundary(self, authority, clock):
        """Expired by exactly the grace window still refreshes."""
        token = authority.issue(7)
        clock.advance(DAY + DAY)

        assert authority.validate(authority.refresh(token))[1] is TokenOutcome.VALID

    def test_refresh_past_grace(self, authority, clock):
        token = authority.issue(7)
        clock.advance(DAY + DAY + 1)

        with pytest.raises(AuthenticationError, match="expired for too long"):
            authority.refresh(token)

    def test_refresh_invalid(self, authority):
        with pytest.raises(AuthenticationError, match="Invalid token"):
            authority.refresh("garbage")

    def test_requires_secret(self):
        with pytest.raises(ValueError):
            CredentialAuthority(secret_key="")
