"""FastAPI application factory."""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from shortlink.auth.guard import BearerTokenGuard, SessionGuard
from shortlink.auth.sessions import SessionStore
from shortlink.auth.tokens import CredentialAuthority
from shortlink.errors import LoginRequiredError, ShortLinkError
from shortlink.resolver import LinkResolver
from shortlink.service import LinkService

from .api import api_router
from .dependencies import AUTH_TOKEN_HEADER
from .web import web_router
from .middleware.headers import ForwardedHeadersMiddleware
from .middleware.logging import LoggingMiddleware


def attach_components(
    app: FastAPI,
    service: Optional[LinkService],
    resolver: Optional[LinkResolver],
    authority: Optional[CredentialAuthority],
    sessions: Optional[SessionStore],
) -> None:
    """Store components in app state and build both access guards."""
    app.state.service = service
    app.state.resolver = resolver
    app.state.authority = authority
    app.state.sessions = sessions

    if service is not None and authority is not None:
        app.state.token_guard = BearerTokenGuard(service.store, authority, logger=service.logger)
    else:
        app.state.token_guard = None

    if service is not None and sessions is not None:
        app.state.session_guard = SessionGuard(
            service.store,
            sessions,
            cookie_name=app.state.config.session_cookie_name,
            logger=service.logger,
        )
    else:
        app.state.session_guard = None


def create_app(
    service: Optional[LinkService],
    resolver: Optional[LinkResolver],
    authority: Optional[CredentialAuthority],
    sessions: Optional[SessionStore],
    config,
) -> FastAPI:
    """Create and configure FastAPI application.

    Components may be None when they are created later in the lifespan;
    call attach_components() once they exist.

    Args:
        service: Link service instance
        resolver: Link resolver instance
        authority: Bearer token authority
        sessions: Cookie session store
        config: Configuration instance

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="ShortLink",
        description="URL shortening service with password-protected links",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.state.config = config
    attach_components(app, service, resolver, authority, sessions)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[AUTH_TOKEN_HEADER],
    )
    app.add_middleware(ForwardedHeadersMiddleware)
    app.add_middleware(LoggingMiddleware)

    @app.exception_handler(LoginRequiredError)
    async def login_required_handler(request: Request, exc: LoginRequiredError):
        prefix = getattr(request.state, "path_prefix", "")
        return RedirectResponse(url=f"{prefix}/login", status_code=303)

    @app.exception_handler(ShortLinkError)
    async def service_error_handler(request: Request, exc: ShortLinkError):
        response = JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "detail": exc.detail},
        )
        replacement_token = getattr(request.state, "replacement_token", None)
        if replacement_token:
            response.headers[AUTH_TOKEN_HEADER] = replacement_token
        return response

    app.include_router(api_router, prefix="/api", tags=["API"])
    app.include_router(web_router, tags=["Web"])

    return app
