"""API routes implementation (bearer-token authentication)."""

from fastapi import APIRouter, Depends, Form, Request, Response, status
from fastapi.responses import JSONResponse
from datetime import datetime, timezone

from .schemas import (
    CreateLinkResponse,
    DashboardResponse,
    ErrorResponse,
    HealthResponse,
    LinkResponse,
    MessageResponse,
    ResolveResponse,
    StatisticsResponse,
    UserResponse,
)
from ..dependencies import AUTH_TOKEN_HEADER, require_api_user
from shortlink.common.headers import parse_bearer_token
from shortlink.common.url_builder import build_short_url
from shortlink.database.models import Link, User
from shortlink.errors import AuthenticationError
from shortlink.resolver import ResolveOutcome

router = APIRouter()

AUTH_RESPONSES = {401: {"model": ErrorResponse, "description": "Missing, invalid or expired token"}}

RESOLVE_FAILURES = {
    ResolveOutcome.NOT_FOUND: (status.HTTP_404_NOT_FOUND, "Key not found"),
    ResolveOutcome.PASSWORD_REQUIRED: (status.HTTP_400_BAD_REQUEST, "Password is required"),
    ResolveOutcome.UNAUTHORIZED: (status.HTTP_401_UNAUTHORIZED, "Invalid password"),
    ResolveOutcome.UNSAFE: (status.HTTP_403_FORBIDDEN, "The requested URL is not safe"),
    ResolveOutcome.CHECK_FAILED: (status.HTTP_503_SERVICE_UNAVAILABLE, "Error checking URL safety"),
}


def _short_url(request: Request, link: Link) -> str:
    return build_short_url(
        key=link.key,
        base_url=request.state.base_url,
        path_prefix=request.state.short_prefix,
    )


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid field"},
        409: {"model": ErrorResponse, "description": "Username already taken"},
    },
    summary="Register",
    description="Create an account. The bearer token is returned in the X-Auth-Token header.",
)
async def register(
    request: Request,
    response: Response,
    username: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
):
    """Create an account and issue a token."""
    service = request.app.state.service
    authority = request.app.state.authority

    user = await service.register(username, email, password)
    response.headers[AUTH_TOKEN_HEADER] = authority.issue(user.id)
    return UserResponse.from_user(user)


@router.post(
    "/login",
    response_model=UserResponse,
    responses=AUTH_RESPONSES,
    summary="Log in",
    description="Check credentials. The bearer token is returned in the X-Auth-Token header.",
)
async def login(
    request: Request,
    response: Response,
    username: str = Form(""),
    password: str = Form(""),
):
    """Authenticate and issue a token."""
    service = request.app.state.service
    authority = request.app.state.authority

    user = await service.authenticate(username, password)
    response.headers[AUTH_TOKEN_HEADER] = authority.issue(user.id)
    return UserResponse.from_user(user)


@router.post(
    "/refresh",
    response_model=MessageResponse,
    responses=AUTH_RESPONSES,
    summary="Refresh token",
    description="Exchange a valid or recently expired token for a new one (X-Auth-Token header).",
)
async def refresh(request: Request, response: Response):
    """Re-mint the caller's token."""
    authority = request.app.state.authority
    store = request.app.state.service.store

    token = parse_bearer_token(request.headers.get("authorization"))
    if not token:
        raise AuthenticationError("Unauthorized", detail="Missing bearer token")

    new_token = authority.refresh(token)
    claims, _ = authority.validate(new_token)
    if await store.get_user_by_id(claims.sub) is None:
        raise AuthenticationError("User not found")

    response.headers[AUTH_TOKEN_HEADER] = new_token
    return MessageResponse(message="Token refreshed")


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    responses=AUTH_RESPONSES,
    summary="List links",
    description="List the caller's links with click counts.",
)
async def dashboard(request: Request, user: User = Depends(require_api_user)):
    service = request.app.state.service
    links = await service.list_links(user)
    return DashboardResponse(urls=[LinkResponse.from_link(link, _short_url(request, link)) for link in links])


@router.post(
    "/new",
    response_model=CreateLinkResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        **AUTH_RESPONSES,
        400: {"model": ErrorResponse, "description": "Invalid or unsafe URL"},
        503: {"model": ErrorResponse, "description": "Safety check unavailable"},
    },
    summary="Create short link",
    description="Shorten a URL. A URL without a scheme gets https://. Optionally password-protect it.",
)
async def create_link(
    request: Request,
    url: str = Form(""),
    password: str = Form(""),
    user: User = Depends(require_api_user),
):
    service = request.app.state.service
    link = await service.create_link(user, url, password)
    return CreateLinkResponse(key=link.key, short_url=_short_url(request, link), url=link.url)


@router.get(
    "/links/{link_id}",
    response_model=LinkResponse,
    responses={
        **AUTH_RESPONSES,
        403: {"model": ErrorResponse, "description": "Not the owner"},
        404: {"model": ErrorResponse, "description": "Link not found"},
    },
    summary="Get link",
)
async def get_link(request: Request, link_id: int, user: User = Depends(require_api_user)):
    service = request.app.state.service
    link = await service.get_link(user, link_id)
    return LinkResponse.from_link(link, _short_url(request, link))


@router.put(
    "/edit/{link_id}",
    response_model=LinkResponse,
    responses={
        **AUTH_RESPONSES,
        400: {"model": ErrorResponse, "description": "Invalid or unsafe URL"},
        403: {"model": ErrorResponse, "description": "Not the owner"},
        404: {"model": ErrorResponse, "description": "Link not found"},
    },
    summary="Edit link",
    description="Replace the target URL and password. An empty password removes protection.",
)
async def edit_link(
    request: Request,
    link_id: int,
    url: str = Form(""),
    password: str = Form(""),
    user: User = Depends(require_api_user),
):
    service = request.app.state.service
    link = await service.update_link(user, link_id, url, password)
    return LinkResponse.from_link(link, _short_url(request, link))


@router.delete(
    "/delete/{link_id}",
    response_model=MessageResponse,
    responses={
        **AUTH_RESPONSES,
        403: {"model": ErrorResponse, "description": "Not the owner"},
        404: {"model": ErrorResponse, "description": "Link not found"},
    },
    summary="Delete link",
)
async def delete_link(request: Request, link_id: int, user: User = Depends(require_api_user)):
    service = request.app.state.service
    await service.delete_link(user, link_id)
    return MessageResponse(message="Link deleted")


@router.post(
    "/r/{key}",
    response_model=ResolveResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Password required"},
        401: {"model": ErrorResponse, "description": "Wrong password"},
        403: {"model": ErrorResponse, "description": "Target flagged as unsafe"},
        404: {"model": ErrorResponse, "description": "Key not found"},
        503: {"model": ErrorResponse, "description": "Safety check unavailable"},
    },
    summary="Resolve key",
    description="Resolve a short key to its target URL and count the click.",
)
async def resolve_key(request: Request, key: str, password: str = Form("")):
    resolver = request.app.state.resolver
    result = await resolver.resolve(key, password or None)

    if result.ok:
        return ResolveResponse(url=result.url)

    status_code, message = RESOLVE_FAILURES[result.outcome]
    return JSONResponse(status_code=status_code, content={"error": message, "detail": None})


@router.get(
    "/stats",
    response_model=StatisticsResponse,
    summary="Get statistics",
    description="Get service-wide statistics.",
)
async def get_statistics(request: Request):
    service = request.app.state.service
    stats = await service.get_statistics()
    return StatisticsResponse(**stats)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service is healthy.",
)
async def health_check(request: Request):
    """Health check endpoint for load balancers and monitoring."""
    service = request.app.state.service
    health = await service.health_check()

    return HealthResponse(
        status="healthy" if health["overall"] else "unhealthy",
        database="healthy" if health["database"] else "unhealthy",
        cache="healthy" if health["cache"] else "unhealthy",
        timestamp=datetime.now(timezone.utc),
    )
