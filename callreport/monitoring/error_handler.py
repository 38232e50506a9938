"""
Error handling and classification system
"""

import logging
import traceback
from enum import Enum
from typing import Optional, Dict, Any, Callable, List
from datetime import datetime, timezone
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Error severity levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories"""
    TRANSIENT = "transient"  # Temporary errors that may resolve
    PERMANENT = "permanent"  # Errors that won't resolve without intervention
    CRITICAL = "critical"    # Errors that stop the run


@dataclass
class ErrorContext:
    """Context information for an error"""
    error_type: str
    error_message: str
    category: ErrorCategory
    severity: ErrorSeverity
    component: str
    operation: str
    metadata: Optional[Dict[str, Any]] = None
    timestamp: datetime = None
    traceback: Optional[str] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now(timezone.utc)
        if self.metadata is None:
            self.metadata = {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error_type': self.error_type,
            'error_message': self.error_message,
            'category': self.category.value,
            'severity': self.severity.value,
            'component': self.component,
            'operation': self.operation,
            'metadata': self.metadata,
            'timestamp': self.timestamp.isoformat(),
            'traceback': self.traceback
        }


class ErrorClassifier:
    """
    Classifies errors into categories and severities
    """

    ERROR_RULES = {
        # Network errors
        'ConnectionError': {
            'category': ErrorCategory.TRANSIENT,
            'severity': ErrorSeverity.MEDIUM
        },
        'Timeout': {
            'category': ErrorCategory.TRANSIENT,
            'severity': ErrorSeverity.MEDIUM
        },

        # Zoom API errors
        'AuthenticationError': {
            'category': ErrorCategory.CRITICAL,
            'severity': ErrorSeverity.CRITICAL
        },
        'ScopeError': {
            'category': ErrorCategory.CRITICAL,
            'severity': ErrorSeverity.CRITICAL
        },
        'TokenExpiredError': {
            'category': ErrorCategory.TRANSIENT,
            'severity': ErrorSeverity.LOW
        },
        'RateLimitError': {
            'category': ErrorCategory.TRANSIENT,
            'severity': ErrorSeverity.LOW
        },
        'CallLogNotFoundError': {
            'category': ErrorCategory.PERMANENT,
            'severity': ErrorSeverity.MEDIUM
        },
        'ZoomAPIError': {
            'category': ErrorCategory.PERMANENT,
            'severity': ErrorSeverity.MEDIUM
        },

        # Processing errors
        'ResolutionError': {
            'category': ErrorCategory.PERMANENT,
            'severity': ErrorSeverity.MEDIUM
        },
        'DataShapeError': {
            'category': ErrorCategory.PERMANENT,
            'severity': ErrorSeverity.LOW
        },
        'InputError': {
            'category': ErrorCategory.CRITICAL,
            'severity': ErrorSeverity.CRITICAL
        },
    }

    DEFAULT_RULE = {
        'category': ErrorCategory.PERMANENT,
        'severity': ErrorSeverity.MEDIUM
    }

    @classmethod
    def classify(
        cls,
        error: Exception,
        component: str = "unknown",
        operation: str = "unknown",
        metadata: Optional[Dict[str, Any]] = None
    ) -> ErrorContext:
        """
        Classify an error

        A wrapped error is classified by its cause when the wrapper itself
        has no rule, so a ResolutionError caused by a rate limit keeps the
        ResolutionError rule while an unknown wrapper falls through.

        Args:
            error: Exception to classify
            component: Component where error occurred
            operation: Operation being performed
            metadata: Additional metadata

        Returns:
            ErrorContext object
        """
        error_type = type(error).__name__
        rules = cls.ERROR_RULES.get(error_type)

        if rules is None and error.__cause__ is not None:
            rules = cls.ERROR_RULES.get(type(error.__cause__).__name__)

        rules = dict(rules or cls.DEFAULT_RULE)

        status_code = getattr(error, 'status_code', None)
        if status_code is not None:
            if status_code >= 500:
                rules['category'] = ErrorCategory.TRANSIENT
                rules['severity'] = ErrorSeverity.HIGH
            elif status_code == 429:
                rules['category'] = ErrorCategory.TRANSIENT
                rules['severity'] = ErrorSeverity.LOW

        tb = None
        if error.__traceback__ is not None:
            tb = ''.join(traceback.format_exception(type(error), error, error.__traceback__))

        return ErrorContext(
            error_type=error_type,
            error_message=str(error),
            category=rules['category'],
            severity=rules['severity'],
            component=component,
            operation=operation,
            metadata=metadata,
            traceback=tb
        )


class ErrorHandler:
    """
    Records, logs and summarizes errors that a run recovers from
    """

    def __init__(self, max_history_size: int = 1000):
        self.classifier = ErrorClassifier()
        self.error_history: List[ErrorContext] = []
        self.error_callbacks: List[Callable[[ErrorContext], None]] = []
        self.max_history_size = max_history_size

    def add_error_callback(self, callback: Callable[[ErrorContext], None]):
        """
        Add error callback

        Args:
            callback: Function called when error occurs
        """
        self.error_callbacks.append(callback)

    def handle_error(
        self,
        error: Exception,
        component: str = "unknown",
        operation: str = "unknown",
        metadata: Optional[Dict[str, Any]] = None
    ) -> ErrorContext:
        """
        Classify, log and record an error

        Args:
            error: Exception to handle
            component: Component where error occurred
            operation: Operation being performed
            metadata: Additional metadata

        Returns:
            The ErrorContext that was recorded
        """
        context = self.classifier.classify(error, component, operation, metadata)

        self._log_error(context)
        self._add_to_history(context)

        for callback in self.error_callbacks:
            try:
                callback(context)
            except Exception as e:
                logger.error(f"Error callback failed: {e}")

        return context

    def _log_error(self, context: ErrorContext):
        log_message = (
            f"Error in {context.component}.{context.operation}: "
            f"{context.error_type} - {context.error_message}"
        )

        if context.severity == ErrorSeverity.CRITICAL:
            logger.critical(log_message)
        elif context.severity == ErrorSeverity.HIGH:
            logger.error(log_message)
        elif context.severity == ErrorSeverity.MEDIUM:
            logger.warning(log_message)
        else:
            logger.info(log_message)

    def _add_to_history(self, context: ErrorContext):
        self.error_history.append(context)

        if len(self.error_history) > self.max_history_size:
            self.error_history = self.error_history[-self.max_history_size:]

    def get_error_statistics(self) -> Dict[str, Any]:
        """
        Get error statistics

        Returns:
            Dictionary with error statistics
        """
        stats = {
            'total_errors': len(self.error_history),
            'by_category': {},
            'by_severity': {},
            'by_component': {},
            'recent_errors': []
        }

        for context in self.error_history:
            category = context.category.value
            stats['by_category'][category] = stats['by_category'].get(category, 0) + 1

            severity = context.severity.value
            stats['by_severity'][severity] = stats['by_severity'].get(severity, 0) + 1

            component = context.component
            stats['by_component'][component] = stats['by_component'].get(component, 0) + 1

        stats['recent_errors'] = [
            ctx.to_dict() for ctx in self.error_history[-10:]
        ]

        return stats

    def clear_history(self):
        self.error_history.clear()
