"""
Caller identity resolution for outbound calls

An outbound call placed through an auto attendant or call queue reports
the proxy as its caller. The call path of the call log names the
representative who actually placed it: hop 0 carries the operator's
extension, hop 1 the original caller's email.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple, Union

from callreport.monitoring.error_handler import ErrorHandler

from .exceptions import ResolutionError
from .models import CallPathDetail, CallRecord

logger = logging.getLogger(__name__)

CallPathFetcher = Callable[[str], Union[Mapping[str, Any], CallPathDetail]]


def apply_call_path(record: CallRecord, path: CallPathDetail) -> CallRecord:
    """
    Apply a call path to an outbound record

    Args:
        record: External outbound call record
        path: Call path of that record

    Returns:
        The record itself when hop 0 has no extension number, otherwise
        an enriched copy

    Raises:
        ResolutionError: If the path is too short to resolve
    """
    operator = path.operator

    if not operator.operator_ext_number:
        return record

    original_caller = path.original_caller

    return record.with_caller_identity(
        caller_name=operator.operator_name,
        caller_ext_id=operator.operator_ext_id,
        caller_ext_number=operator.operator_ext_number,
        caller_email=original_caller.caller_email,
    )


class CallerIdentityResolver:
    """
    Resolves masked caller identities of external outbound calls

    Call paths are fetched concurrently; results are written back by
    position so the output keeps the input order.
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
            error_handler: Records resolution failures
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")

        self.fetch_call_path = fetch_call_path
        self.max_workers = max_workers
        self.error_handler = error_handler or ErrorHandler()

    def resolve_record(self, record: CallRecord) -> CallRecord:
        """
        Resolve one outbound record

        Raises:
            ResolutionError: If the call path cannot be fetched or applied
        """
        try:
            payload = self.fetch_call_path(record.id)
        except Exception as e:
            raise ResolutionError(
                f"Failed to fetch call path for {record.id}: {e}",
                call_log_id=record.id
            ) from e

        if isinstance(payload, CallPathDetail):
            path = payload
        else:
            path = CallPathDetail.from_dict(payload, call_log_id=record.id)

        return apply_call_path(record, path)

    def resolve(
        self,
        records: Sequence[CallRecord]
    ) -> Tuple[List[CallRecord], List[ResolutionError]]:
        """
        Resolve caller identities for a list of outbound records

        A record whose call path cannot be resolved is kept with its
        original fields and its error is returned alongside.

        Args:
            records: External outbound call records

        Returns:
            Tuple of (records in input order, resolution errors in input order)
        """
        resolved = list(records)
        failures = {}

        if not resolved:
            return resolved, []

        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            futures = {
                executor.submit(self.resolve_record, record): index
                for index, record in enumerate(resolved)
            }

            for future in as_completed(futures):
                index = futures[future]
                try:
                    resolved[index] = future.result()
                except ResolutionError as e:
                    failures[index] = e
                    self.error_handler.handle_error(
                        e,
                        component='caller_identity_resolver',
                        operation='resolve_record',
                        metadata={'call_log_id': resolved[index].id}
                    )
        finally:
            # Abandons pending fetches if the loop is interrupted
            executor.shutdown(wait=False, cancel_futures=True)

        errors = [failures[index] for index in sorted(failures)]
        enriched = sum(1 for before, after in zip(records, resolved) if before is not after)

        logger.info(
            f"Resolved {len(resolved)} outbound calls: {enriched} enriched, "
            f"{len(errors)} failed"
        )

        return resolved, errors
