"""Core business logic for the link shortener."""

from .keygen import KeyGenerator
from .resolver import LinkResolver, ResolveOutcome, ResolveResult
from .service import LinkService

__all__ = ["KeyGenerator", "LinkResolver", "LinkService", "ResolveOutcome", "ResolveResult"]
