"""Tests for cookie sessions."""

import pytest

from shortlink.auth.sessions import SessionStore, USER_ID_KEY


class TestSessionStore:

    def test_cookie_round_trip(self, sessions):
        session = sessions.create()
        sessions.set_user(session, 3)

        loaded = sessions.load(sessions.encode_cookie(session))
        assert loaded is session
        assert sessions.user_id(loaded) == 3

    @pytest.mark.parametrize("cookie", [None, "", "no-signature", "abc.def"])
    def test_unusable_cookies(self, sessions, cookie):
        assert sessions.load(cookie) is None

    def test_tampered_cookie(self, sessions):
        session = sessions.create()
        cookie = sessions.encode_cookie(session)
        session_id, signature = cookie.rsplit(".", 1)

        assert sessions.load(f"{session_id}x.{signature}") is None
        assert sessions.load(f"{session_id}.{'0' * len(signature)}") is None

    def test_cookie_from_other_secret(self, sessions, clock):
        other = SessionStore(secret_key="another-key", clock=clock)
        session = other.create()

        assert sessions.load(other.encode_cookie(session)) is None

    def test_expiry(self, sessions, clock):
        session = sessions.create()
        cookie = sessions.encode_cookie(session)

        clock.advance(sessions.ttl_seconds + 1)
        assert sessions.load(cookie) is None

    def test_load_or_create(self, sessions):
        fresh = sessions.load_or_create("bogus")
        assert sessions.user_id(fresh) is None
        assert sessions.load_or_create(sessions.encode_cookie(fresh)) is fresh

    def test_user_id_rejects_wrong_shape(self, sessions):
        session = sessions.create()
        session.values[USER_ID_KEY] = True
        assert sessions.user_id(session) is None

        session.values[USER_ID_KEY] = "3"
        assert sessions.user_id(session) is None

    def test_clear(self, sessions):
        session = sessions.create()
        sessions.set_user(session, 3)
        sessions.clear(session)
        assert sessions.user_id(session) is None

    def test_flashes_are_one_shot(self, sessions):
        session = sessions.create()
        sessions.flash(session, "Bad password")
        sessions.flash(session, "Saved", category="success")

        assert sessions.pop_flashes(session) == [
            {"category": "error", "message": "Bad password"},
            {"category": "success", "message": "Saved"},
        ]
        assert sessions.pop_flashes(session) == []

    def test_cleanup_expired(self, sessions, clock):
        sessions.create()
        clock.advance(100)
        sessions.create()

        clock.advance(sessions.ttl_seconds - 50)
        assert sessions.cleanup_expired() == 1

    def test_requires_secret(self):
        with pytest.raises(ValueError):
            SessionStore(secret_key="")
