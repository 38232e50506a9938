"""
Call leg correlation and report synthesis
"""

from .models import (
    CallRecord,
    CallPathDetail,
    CallPathHop,
    ReportRow,
    ClassifiedCallLogs,
    ProcessedCallLogs,
    Direction,
    ConnectType,
    CallResult
)
from .exceptions import (
    CallProcessingError,
    ResolutionError,
    DataShapeError,
    InputError
)
from .classifier import classify_call_logs
from .resolver import CallerIdentityResolver
from .grouper import group_legs_by_call_id
from .correlator import correlate_call_logs
from .report import generate_report, report_to_dict
from .pipeline import CallLogProcessor, process_call_logs

__all__ = [
    'CallRecord',
    'CallPathDetail',
    'CallPathHop',
    'ReportRow',
    'ClassifiedCallLogs',
    'ProcessedCallLogs',
    'Direction',
    'ConnectType',
    'CallResult',
    'CallProcessingError',
    'ResolutionError',
    'DataShapeError',
    'InputError',
    'classify_call_logs',
    'CallerIdentityResolver',
    'group_legs_by_call_id',
    'correlate_call_logs',
    'generate_report',
    'report_to_dict',
    'CallLogProcessor',
    'process_call_logs'
]
