"""
Call classification

Partitions the raw call history into external inbound calls, external
outbound calls and internal (rep to rep) legs.
"""

import logging
from typing import Sequence

from .exceptions import InputError
from .models import CallRecord, CallResult, ClassifiedCallLogs, ConnectType, Direction

logger = logging.getLogger(__name__)


def is_external_inbound(record: CallRecord) -> bool:
    return (
        record.direction == Direction.INBOUND and
        record.call_result == CallResult.ANSWERED and
        record.connect_type == ConnectType.EXTERNAL
    )


def is_external_outbound(record: CallRecord) -> bool:
    return (
        record.direction == Direction.OUTBOUND and
        record.call_result == CallResult.CONNECTED and
        record.connect_type == ConnectType.EXTERNAL
    )


def is_internal_outbound(record: CallRecord) -> bool:
    return (
        record.direction == Direction.OUTBOUND and
        record.call_result == CallResult.CONNECTED and
        record.connect_type == ConnectType.INTERNAL
    )


def is_internal_inbound(record: CallRecord) -> bool:
    return (
        record.direction == Direction.INBOUND and
        record.call_result == CallResult.ANSWERED and
        record.connect_type == ConnectType.INTERNAL
    )


def classify_call_logs(records: Sequence[CallRecord]) -> ClassifiedCallLogs:
    """
    Partition call records into classification buckets

    Records matching no bucket (missed calls, voicemail, ...) are dropped.
    The input records are not modified.

    Args:
        records: Call records in call history order

    Returns:
        ClassifiedCallLogs with the buckets in input order
    """
    if not isinstance(records, (list, tuple)):
        raise InputError(f"Expected a list of call records, got {type(records).__name__}")

    classified = ClassifiedCallLogs()
    dropped = 0

    for record in records:
        if is_external_inbound(record):
            classified.inbounds.append(record)
        elif is_external_outbound(record):
            classified.outbounds.append(record)
        elif is_internal_outbound(record):
            classified.internal_outbounds.append(record)
        elif is_internal_inbound(record):
            classified.internal_inbounds.append(record)
        else:
            dropped += 1

    logger.debug(
        f"Classified {len(records)} records: {len(classified.inbounds)} inbound, "
        f"{len(classified.outbounds)} outbound, {len(classified.internal_legs)} internal, "
        f"{dropped} dropped"
    )

    return classified
