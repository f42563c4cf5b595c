"""Short key generation."""

import hashlib
import struct
import time
from typing import Callable


class KeyGenerator:
    """Derive short keys from URLs.

    The key is the first ``length`` bytes of SHA-256(url || timestamp), each
    mapped onto the base62 alphabet with ``byte % 62``. Because 256 is not a
    multiple of 62, the first eight symbols of the alphabet are slightly more
    likely than the rest. Collision estimates assume this distribution.

    The nanosecond timestamp salt means the same URL submitted twice gets two
    different keys; uniqueness against the store is checked by the caller.
    """

    BASE62_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
    KEY_LENGTH = 10

    def __init__(
        self,
        length: int = KEY_LENGTH,
        clock_ns: Callable[[], int] = time.time_ns,
    ):
        """Initialize key generator.

        Args:
            length: Key length (at most 32, the digest size)
            clock_ns: Nanosecond clock used as the salt
        """
        if not 1 <= length <= hashlib.sha256().digest_size:
            raise ValueError(f"Key length must be between 1 and 32, got {length}")
        self.length = length
        self._clock_ns = clock_ns

    def generate_key(self, url: str) -> str:
        """Generate a key for a normalized URL."""
        timestamp = struct.pack("<Q", self._clock_ns() & 0xFFFFFFFFFFFFFFFF)
        digest = hashlib.sha256(url.encode("utf-8") + timestamp).digest()
        return self.encode_base62(digest[: self.length])

    @classmethod
    def encode_base62(cls, data: bytes) -> str:
        """Map each byte onto the alphabet (one symbol per byte)."""
        return "".join(cls.BASE62_CHARS[b % 62] for b in data)

    @classmethod
    def is_valid_format(cls, key: str, length: int = KEY_LENGTH) -> bool:
        """Check that a key has the generated shape."""
        return len(key) == length and all(c in cls.BASE62_CHARS for c in key)
