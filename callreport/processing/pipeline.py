"""
Call log processing pipeline

classify -> resolve outbound caller identities -> group internal legs
-> correlate external calls with chains
"""

import logging
from typing import Any, Mapping, Optional, Sequence, Union

from callreport.monitoring.error_handler import ErrorHandler

from .classifier import classify_call_logs
from .correlator import correlate_call_logs
from .exceptions import InputError
from .grouper import group_legs_by_call_id
from .models import CallRecord, ProcessedCallLogs
from .report import generate_report
from .resolver import CallPathFetcher, CallerIdentityResolver

logger = logging.getLogger(__name__)

RawCallLog = Union[Mapping[str, Any], CallRecord]


def load_call_records(call_logs: Sequence[RawCallLog]):
    """
    Convert raw call history items to CallRecords

    Raises:
        InputError: If the input is not a non-empty list of call logs, or
            a call log cannot be read
    """
    if not isinstance(call_logs, (list, tuple)):
        raise InputError(f"Expected a list of call logs, got {type(call_logs).__name__}")

    if not call_logs:
        raise InputError("No call logs to process")

    records = []
    for position, item in enumerate(call_logs):
        if isinstance(item, CallRecord):
            records.append(item)
        elif isinstance(item, Mapping):
            try:
                records.append(CallRecord.from_dict(item))
            except (TypeError, ValueError) as e:
                raise InputError(
                    f"Call log {item.get('id')} at position {position} is malformed: {e}"
                ) from e
        else:
            raise InputError(
                f"Call log at position {position} is a {type(item).__name__}, expected an object"
            )

    return records


class CallLogProcessor:
    """
    Turns a materialized call history into correlated call logs
    """

    def __init__(
        self,
        fetch_call_path: CallPathFetcher,
        max_workers: int = 4,
        error_handler: Optional[ErrorHandler] = None
    ):
        """
        Args:
            fetch_call_path: Callable returning the call path of a call log id
            max_workers: Maximum concurrent call path fetches
            error_handler: Records recovered errors
        """
        self.error_handler = error_handler or ErrorHandler()
        self.resolver = CallerIdentityResolver(
            fetch_call_path,
            max_workers=max_workers,
            error_handler=self.error_handler
        )

    def process(self, call_logs: Sequence[RawCallLog]) -> ProcessedCallLogs:
        """
        Process a call history

        Args:
            call_logs: All call logs of the range, raw or as CallRecords

        Returns:
            ProcessedCallLogs with standalone calls and chains
        """
        records = load_call_records(call_logs)
        logger.info(f"Processing {len(records)} call logs")

        classified = classify_call_logs(records)

        outbounds, resolution_errors = self.resolver.resolve(classified.outbounds)

        internal_legs = classified.internal_legs
        chains = group_legs_by_call_id(internal_legs)

        inbounds, outbounds = correlate_call_logs(
            classified.inbounds,
            outbounds,
            internal_legs,
            chains
        )

        return ProcessedCallLogs(
            inbounds=inbounds,
            outbounds=outbounds,
            internal_legs=internal_legs,
            chains=chains,
            resolution_errors=resolution_errors,
        )


def process_call_logs(
    call_logs: Sequence[RawCallLog],
    fetch_call_path: CallPathFetcher,
    max_workers: int = 4,
    error_handler: Optional[ErrorHandler] = None
) -> ProcessedCallLogs:
    processor = CallLogProcessor(
        fetch_call_path,
        max_workers=max_workers,
        error_handler=error_handler
    )
    return processor.process(call_logs)


__all__ = [
    'CallLogProcessor',
    'load_call_records',
    'process_call_logs',
    'generate_report',
]
