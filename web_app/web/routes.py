"""Web interface routes implementation (cookie sessions)."""

import os
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from ..dependencies import require_web_user
from shortlink.auth.sessions import Session
from shortlink.common.url_builder import build_short_url
from shortlink.database.models import User
from shortlink.errors import ShortLinkError
from shortlink.resolver import ResolveOutcome

router = APIRouter()

# Setup Jinja2 templates
template_dir = os.path.join(os.path.dirname(__file__), "..", "templates")
templates = Jinja2Templates(directory=template_dir)

RESOLVE_FAILURES = {
    ResolveOutcome.NOT_FOUND: (status.HTTP_404_NOT_FOUND, "This short link does not exist."),
    ResolveOutcome.UNSAFE: (status.HTTP_403_FORBIDDEN, "The destination of this link was flagged as unsafe."),
    ResolveOutcome.CHECK_FAILED: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "The destination could not be checked for safety. Try again later.",
    ),
}


def _session_cookie(request: Request) -> Optional[str]:
    return request.cookies.get(request.app.state.config.session_cookie_name)


def _load_session(request: Request) -> Optional[Session]:
    """The request's live session, or None. Never creates one."""
    return request.app.state.sessions.load(_session_cookie(request))


def _writable_session(request: Request) -> Session:
    """The request's session, started now if there is none (a flash needs somewhere to live)."""
    return request.app.state.sessions.load_or_create(_session_cookie(request))


def _set_session_cookie(request: Request, response, session: Session) -> None:
    config = request.app.state.config
    response.set_cookie(
        key=config.session_cookie_name,
        value=request.app.state.sessions.encode_cookie(session),
        max_age=config.session_ttl_seconds,
        httponly=True,
        secure=config.cookie_secure,
        samesite="lax",
        path=request.state.path_prefix or "/",
    )


def _render(request: Request, name: str, session: Optional[Session], status_code: int = 200, **context):
    """Render a template with the session's pending flash messages.

    Anonymous visitors without a session get no cookie.
    """
    context.setdefault("user", None)
    context.update(
        prefix=request.state.path_prefix,
        flashes=request.app.state.sessions.pop_flashes(session),
    )
    response = templates.TemplateResponse(request, name, context, status_code=status_code)
    if session is not None:
        _set_session_cookie(request, response, session)
    return response


def _redirect(request: Request, path: str, session: Optional[Session]) -> RedirectResponse:
    """303 to a path under the forwarded prefix, persisting the session cookie if there is one."""
    response = RedirectResponse(url=f"{request.state.path_prefix}{path}", status_code=status.HTTP_303_SEE_OTHER)
    if session is not None:
        _set_session_cookie(request, response, session)
    return response


@router.get("/login", response_class=HTMLResponse, include_in_schema=False)
async def login_page(request: Request):
    session = _load_session(request)
    if request.app.state.sessions.user_id(session) is not None:
        return _redirect(request, "/", session)
    return _render(request, "login.html", session)


@router.post("/login", include_in_schema=False)
async def login_submit(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
):
    service = request.app.state.service
    sessions = request.app.state.sessions

    try:
        user = await service.authenticate(username, password)
    except ShortLinkError as e:
        session = _writable_session(request)
        sessions.flash(session, e.message)
        return _redirect(request, "/login", session)

    # Fresh session id on login
    previous = _load_session(request)
    if previous is not None:
        sessions.delete(previous.session_id)
    session = sessions.create()
    sessions.set_user(session, user.id)
    return _redirect(request, "/", session)


@router.get("/register", response_class=HTMLResponse, include_in_schema=False)
async def register_page(request: Request):
    session = _load_session(request)
    return _render(request, "register.html", session)


@router.post("/register", include_in_schema=False)
async def register_submit(
    request: Request,
    username: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
):
    service = request.app.state.service
    sessions = request.app.state.sessions
    session = _writable_session(request)

    try:
        await service.register(username, email, password)
    except ShortLinkError as e:
        sessions.flash(session, e.message)
        return _redirect(request, "/register", session)

    sessions.flash(session, "Account created. Please log in.", category="success")
    return _redirect(request, "/login", session)


@router.post("/logout", include_in_schema=False)
async def logout(request: Request):
    sessions = request.app.state.sessions
    session = _load_session(request)
    if session is None:
        return _redirect(request, "/login", None)
    sessions.clear(session)
    sessions.flash(session, "You have been logged out.", category="success")
    return _redirect(request, "/login", session)


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def dashboard(request: Request, user: User = Depends(require_web_user)):
    """List the signed-in user's links."""
    service = request.app.state.service
    session = _load_session(request)

    links = await service.list_links(user)
    rows = [
        {
            "link": link,
            "short_url": build_short_url(
                key=link.key,
                base_url=request.state.base_url,
                path_prefix=request.state.short_prefix,
            ),
        }
        for link in links
    ]
    return _render(request, "dashboard.html", session, user=user, rows=rows)


@router.post("/links", include_in_schema=False)
async def create_link(
    request: Request,
    url: str = Form(""),
    password: str = Form(""),
    user: User = Depends(require_web_user),
):
    service = request.app.state.service
    sessions = request.app.state.sessions
    session = _writable_session(request)

    try:
        link = await service.create_link(user, url, password)
    except ShortLinkError as e:
        sessions.flash(session, e.message)
    else:
        sessions.flash(session, f"Created short link {link.key}", category="success")
    return _redirect(request, "/", session)


@router.post("/links/{link_id}/edit", include_in_schema=False)
async def edit_link(
    request: Request,
    link_id: int,
    url: str = Form(""),
    password: str = Form(""),
    user: User = Depends(require_web_user),
):
    service = request.app.state.service
    sessions = request.app.state.sessions
    session = _writable_session(request)

    try:
        link = await service.update_link(user, link_id, url, password)
    except ShortLinkError as e:
        sessions.flash(session, e.message)
    else:
        sessions.flash(session, f"Updated {link.key}", category="success")
    return _redirect(request, "/", session)


@router.post("/links/{link_id}/delete", include_in_schema=False)
async def delete_link(request: Request, link_id: int, user: User = Depends(require_web_user)):
    service = request.app.state.service
    sessions = request.app.state.sessions
    session = _writable_session(request)

    try:
        await service.delete_link(user, link_id)
    except ShortLinkError as e:
        sessions.flash(session, e.message)
    else:
        sessions.flash(session, "Link deleted", category="success")
    return _redirect(request, "/", session)


@router.get("/health", include_in_schema=False)
async def health_check_web(request: Request):
    """Health check endpoint (simple version for load balancers)."""
    service = request.app.state.service

    health = await service.health_check()

    if health["overall"]:
        return {"status": "healthy"}
    else:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service unhealthy",
        )


async def _follow(request: Request, key: str, password: str = None):
    resolver = request.app.state.resolver
    session = _load_session(request)

    result = await resolver.resolve(key, password)

    if result.ok:
        # 302 so every visit reaches us and is counted
        return RedirectResponse(url=result.url, status_code=status.HTTP_302_FOUND)

    if result.outcome == ResolveOutcome.PASSWORD_REQUIRED:
        return _render(request, "password.html", session, key=key, error=None)

    if result.outcome == ResolveOutcome.UNAUTHORIZED:
        return _render(
            request,
            "password.html",
            session,
            status_code=status.HTTP_401_UNAUTHORIZED,
            key=key,
            error="Incorrect password",
        )

    status_code, message = RESOLVE_FAILURES[result.outcome]
    return _render(request, "error.html", session, status_code=status_code, error_message=message)


@router.get("/{key}", include_in_schema=False)
async def redirect_to_url(request: Request, key: str):
    """Redirect to the target URL, or ask for the link password."""
    return await _follow(request, key)


@router.post("/{key}", include_in_schema=False)
async def submit_link_password(request: Request, key: str, password: str = Form("")):
    """Password form submission for a protected link."""
    return await _follow(request, key, password or None)
