"""Forwarded headers middleware."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from typing import Callable

from shortlink.common.headers import build_base_url, get_forwarded_path_prefix
from shortlink.common.url_builder import normalize_path_prefix


class ForwardedHeadersMiddleware(BaseHTTPMiddleware):
    """Resolve the public base URL and path prefix of each request.

    Sets ``request.state.base_url`` (X-Forwarded-Proto/Host, else the request
    host, else the configured base URL), ``request.state.path_prefix`` (the
    prefix a proxy stripped, from X-Forwarded-Prefix) and
    ``request.state.short_prefix`` (the prefix short URLs are published
    under).
    """

    async def dispatch(self, request: Request, call_next: Callable):
        config = request.app.state.config
        headers = dict(request.headers)

        request.state.base_url = build_base_url(
            headers=headers,
            fallback_base_url=config.base_url,
            request_scheme=request.url.scheme,
            request_host=request.headers.get("host"),
        )
        request.state.path_prefix = get_forwarded_path_prefix(headers)
        request.state.short_prefix = request.state.path_prefix or normalize_path_prefix(config.path_prefix)
        request.state.forwarded_for = request.headers.get("x-forwarded-for")

        return await call_next(request)
