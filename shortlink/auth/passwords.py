"""Hashing for account passwords and link passwords.

Both kinds of secret are stored only as one-way hashes and are checked
through ``verify``; the plaintext never reaches the store or the logs.
"""

import hashlib
import hmac
import secrets
from typing import Protocol, runtime_checkable

import bcrypt
from anyio import to_thread

DEFAULT_BCRYPT_ROUNDS = 12


@runtime_checkable
class PasswordHasher(Protocol):
    """What LinkService and LinkResolver need from a hasher."""

    async def hash(self, plain: str) -> str: ...

    async def verify(self, plain: str, hashed: str) -> bool: ...


class BcryptHasher:
    """bcrypt hashes, computed in anyio's worker threads.

    A cost of 12 takes on the order of 100ms, which would stall every other
    request if it ran on the event loop. Inputs longer than 72 bytes are
    rejected by the validators before they get here.
    """

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        self.rounds = rounds

    async def hash(self, plain: str) -> str:
        secret = plain.encode("utf-8")
        salt = bcrypt.gensalt(rounds=self.rounds)
        digest = await to_thread.run_sync(bcrypt.hashpw, secret, salt)
        return digest.decode("utf-8")

    async def verify(self, plain: str, hashed: str) -> bool:
        """False for a mismatch, an empty hash (unprotected link) or a stored value bcrypt cannot parse."""
        if not hashed:
            return False
        try:
            return await to_thread.run_sync(bcrypt.checkpw, plain.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False


_SIMPLE_PREFIX = "simple$"


class SimpleHasher:
    """Salted SHA-256, ``simple$<salt>$<hex digest>``.

    Instant, so the test suite can register users and protect links without
    paying bcrypt's cost. Selected with ``PASSWORD_HASHER=simple``; never use
    it in a deployment.
    """

    async def hash(self, plain: str) -> str:
        salt = secrets.token_hex(8)
        return f"{_SIMPLE_PREFIX}{salt}${self._digest(salt, plain)}"

    async def verify(self, plain: str, hashed: str) -> bool:
        if not hashed or not hashed.startswith(_SIMPLE_PREFIX):
            return False
        salt, sep, digest = hashed[len(_SIMPLE_PREFIX):].partition("$")
        if not sep:
            return False
        return hmac.compare_digest(digest, self._digest(salt, plain))

    @staticmethod
    def _digest(salt: str, plain: str) -> str:
        return hashlib.sha256((salt + plain).encode("utf-8")).hexdigest()


def get_hasher(name: str = "bcrypt") -> PasswordHasher:
    """Hasher for the ``password_hasher`` setting."""
    hashers = {"bcrypt": BcryptHasher, "simple": SimpleHasher}
    if name not in hashers:
        raise ValueError(f"Unknown password hasher: {name!r}")
    return hashers[name]()
