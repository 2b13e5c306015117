"""
Exception hierarchy for the revoke access action.

Every error the action raises derives from ActionError. Errors that come from
the identity-governance API carry the HTTP status code so the error handler
can decide whether a retry makes sense.
"""

from typing import Any, Optional

RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})


class ActionError(Exception):
    """Base exception for all action errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(ActionError, ValueError):
    """A required parameter is missing or invalid."""
    pass


class AuthConfigurationError(ActionError):
    """No usable credentials, or the OAuth2 token exchange failed."""
    pass


class UpstreamAPIError(ActionError):
    """The identity-governance API rejected the request or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 response_body: Optional[Any] = None):
        super().__init__(message, status_code)
        self.response_body = response_body

    @property
    def retryable(self) -> bool:
        return self.status_code in RETRYABLE_STATUS_CODES


class UnrecoverableActionError(ActionError):
    """Raised by the retrying error handler when an error cannot be recovered."""
    pass
