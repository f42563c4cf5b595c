"""FastAPI dependencies wiring the access guards into routes."""

from fastapi import Request, Response

from shortlink.database.models import User
from shortlink.errors import AuthenticationError, LoginRequiredError

AUTH_TOKEN_HEADER = "X-Auth-Token"


async def require_api_user(request: Request, response: Response) -> User:
    """Authenticate a bearer-token request.

    When the token had expired and was refreshed, the replacement token is
    returned to the client in the X-Auth-Token response header.
    """
    guard = request.app.state.token_guard
    if guard is None:
        raise AuthenticationError("Bearer authentication is not configured")

    result = await guard.authenticate(request)
    if result.replacement_token:
        response.headers[AUTH_TOKEN_HEADER] = result.replacement_token
        # Error responses are built without this Response; the handler re-applies it
        request.state.replacement_token = result.replacement_token

    request.state.user = result.user
    return result.user


async def require_web_user(request: Request) -> User:
    """Authenticate a browser request by its session cookie (redirects to /login on failure)."""
    guard = request.app.state.session_guard
    if guard is None:
        raise LoginRequiredError("Session authentication is not configured")

    result = await guard.authenticate(request)
    request.state.user = result.user
    return result.user
