class RedirectError(Exception):
    """Base error for the redirect pipeline.

    ``message`` is what the caller sees; ``str(exc)`` is the server-side detail.
    """
    status_code = 500
    message = "Internal error"


class TokenValidationError(RedirectError):
    """Request arrived without a token"""
    status_code = 400
    message = "Missing token"


class NotFoundError(RedirectError):
    """Token has no redirect entry"""
    status_code = 404
    message = "Invalid token"


class ConfigurationError(RedirectError):
    """No usable database connection string"""


class DataAccessError(RedirectError):
    """Pool, query or insert fault"""
