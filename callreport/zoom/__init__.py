"""
Zoom Phone API integration package

Provides OAuth and call history access for the report engine.
"""

from .auth import ZoomAuth
from .client import ZoomPhoneClient
from .rate_limiter import RateLimiter
from .exceptions import (
    ZoomAPIError,
    AuthenticationError,
    ScopeError,
    TokenExpiredError,
    RateLimitError,
    CallLogNotFoundError
)

__all__ = [
    'ZoomAuth',
    'ZoomPhoneClient',
    'RateLimiter',
    'ZoomAPIError',
    'AuthenticationError',
    'ScopeError',
    'TokenExpiredError',
    'RateLimitError',
    'CallLogNotFoundError'
]
