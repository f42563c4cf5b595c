"""FastAPI web application for the ShortLink service."""

from .app_factory import attach_components, create_app

__all__ = ["attach_components", "create_app"]
