"""
Error monitoring package
"""

from .error_handler import (
    ErrorHandler,
    ErrorClassifier,
    ErrorContext,
    ErrorCategory,
    ErrorSeverity
)

__all__ = [
    'ErrorHandler',
    'ErrorClassifier',
    'ErrorContext',
    'ErrorCategory',
    'ErrorSeverity'
]
