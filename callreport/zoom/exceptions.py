"""
Custom exceptions for Zoom Phone API integration
"""


class ZoomAPIError(Exception):
    """
    Base exception for Zoom API errors
    """
    def __init__(self, message: str, status_code: int = None, response_data: dict = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class AuthenticationError(ZoomAPIError):
    """
    Raised when authentication fails
    """
    pass


class ScopeError(AuthenticationError):
    """
    Raised when the access token lacks the scopes needed to read call logs
    """
    pass


class TokenExpiredError(AuthenticationError):
    """
    Raised when the access token has expired
    """
    pass


class RateLimitError(ZoomAPIError):
    """
    Raised when API rate limit is exceeded
    """
    def __init__(self, message: str, retry_after: float = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class CallLogNotFoundError(ZoomAPIError):
    """
    Raised when a call log cannot be found
    """
    pass
