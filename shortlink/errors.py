"""Exception taxonomy for the link service.

The app factory maps each class to one HTTP status; see ``web_app.app_factory``.
"""


class ShortLinkError(Exception):
    """Base class for all service errors."""

    status_code = 500

    def __init__(self, message: str, detail: str = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(ShortLinkError):
    """Malformed input (bad URL, missing field)."""

    status_code = 400


class UnsafeURLError(ValidationError):
    """The safety oracle flagged the URL as malicious."""


class AuthenticationError(ShortLinkError):
    """Missing, invalid or unrecoverably expired credential."""

    status_code = 401


class LoginRequiredError(AuthenticationError):
    """No usable session on an HTML route; the caller is sent to the login page."""


class AuthorizationError(ShortLinkError):
    """Authenticated, but not allowed to touch the resource."""

    status_code = 403


class NotFoundError(ShortLinkError):
    """Unknown key or id."""

    status_code = 404


class ConflictError(ShortLinkError):
    """Unique constraint violated (e.g. username taken)."""

    status_code = 409


class DuplicateKeyError(ConflictError):
    """A short key already exists in the store."""


class DependencyError(ShortLinkError):
    """Store or safety-oracle failure."""

    status_code = 500

    def __init__(self, message: str, detail: str = None, status_code: int = 500):
        super().__init__(message, detail)
        self.status_code = status_code
