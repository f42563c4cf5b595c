"""Storage layer for the link service."""

from .base import StoreBase
from .memory import MemoryStore
from .postgres import PostgresStore
from .cache import RedisCache
from .models import User, Link

__all__ = ["StoreBase", "MemoryStore", "PostgresStore", "RedisCache", "User", "Link"]
