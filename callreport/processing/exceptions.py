"""
Exceptions raised by the call log processing engine
"""


class CallProcessingError(Exception):
    """
    Base exception for call log processing errors
    """
    pass


class ResolutionError(CallProcessingError):
    """
    Raised when the call path of an outbound call cannot be resolved
    """
    def __init__(self, message: str, call_log_id: str = None):
        super().__init__(message)
        self.call_log_id = call_log_id


class DataShapeError(CallProcessingError):
    """
    Raised when a record lacks a field a matching rule needs
    """
    def __init__(self, message: str, record_id: str = None, field: str = None):
        super().__init__(message)
        self.record_id = record_id
        self.field = field


class InputError(CallProcessingError):
    """
    Raised when the call log input as a whole is unusable
    """
    pass
