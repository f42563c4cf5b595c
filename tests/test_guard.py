"""Tests for the bearer-token and session access guards."""

import pytest
from starlette.requests import Request

from shortlink.auth.guard import BearerTokenGuard, SessionGuard
from shortlink.errors import AuthenticationError, LoginRequiredError

DAY = 86400


def _request(headers=None) -> Request:
    raw = [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


@pytest.fixture
def token_guard(store, authority, logger):
    return BearerTokenGuard(store, authority, logger=logger)


@pytest.fixture
def session_guard(store, sessions, logger):
    return SessionGuard(store, sessions, cookie_name="session", logger=logger)


class TestBearerTokenGuard:

    async def test_valid_token(self, token_guard, authority, alice):
        result = await token_guard.authenticate(_request({"Authorization": f"Bearer {authority.issue(alice.id)}"}))

        assert result.user.id == alice.id
        assert result.replacement_token is None

    async def test_missing_token(self, token_guard):
        with pytest.raises(AuthenticationError, match="Unauthorized"):
            await token_guard.authenticate(_request())

    async def test_wrong_scheme(self, token_guard):
        with pytest.raises(AuthenticationError):
            await token_guard.authenticate(_request({"Authorization": "Basic YWxpY2U6cHc="}))

    async def test_malformed_token(self, token_guard):
        with pytest.raises(AuthenticationError, match="Invalid token"):
            await token_guard.authenticate_credential("not-a-token")

    async def test_expired_token_is_refreshed(self, token_guard, authority, clock, alice):
        token = authority.issue(alice.id)
        clock.advance(DAY + 60)

        result = await token_guard.authenticate_credential(token)
        assert result.user.id == alice.id
        assert result.replacement_token
        assert result.replacement_token != token
        assert authority.validate(result.replacement_token)[0].sub == alice.id

    async def test_expired_beyond_grace(self, token_guard, authority, clock, alice):
        token = authority.issue(alice.id)
        clock.advance(DAY + DAY + 1)

        with pytest.raises(AuthenticationError, match="Could not refresh token"):
            await token_guard.authenticate_credential(token)

    async def test_token_for_missing_user(self, token_guard, authority):
        with pytest.raises(AuthenticationError, match="User not found"):
            await token_guard.authenticate_credential(authority.issue(999))


class TestSessionGuard:

    async def test_signed_in_session(self, session_guard, sessions, alice):
        session = sessions.create()
        sessions.set_user(session, alice.id)

        result = await session_guard.authenticate(
            _request({"Cookie": f"session={sessions.encode_cookie(session)}"})
        )
        assert result.user.username == "alice"

    async def test_no_cookie(self, session_guard):
        with pytest.raises(LoginRequiredError):
            await session_guard.authenticate(_request())

    async def test_anonymous_session(self, session_guard, sessions):
        session = sessions.create()

        with pytest.raises(LoginRequiredError):
            await session_guard.authenticate_credential(sessions.encode_cookie(session))

    async def test_session_for_missing_user(self, session_guard, sessions):
        session = sessions.create()
        sessions.set_user(session, 999)

        with pytest.raises(LoginRequiredError):
            await session_guard.authenticate_credential(sessions.encode_cookie(session))
