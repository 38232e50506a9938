"""
Report synthesis

Flattens processed call logs into report rows of
{rep_ext, rep_email, customer_did, duration}, batched per source call.
"""

import logging
from typing import Any, Dict, List, Sequence, Union

from .exceptions import InputError
from .models import CallRecord, ChainGroup, Direction, ProcessedCallLogs, ReportRow

logger = logging.getLogger(__name__)

# A standalone batch holds one row; a chain batch holds the list of its rows
ReportBatch = List[Union[ReportRow, List[ReportRow]]]


def inbound_row(call: CallRecord) -> ReportRow:
    return ReportRow(
        rep_ext=call.callee_ext_number,
        rep_email=call.callee_email,
        customer_did=call.caller_did_number,
        duration=call.duration,
    )


def outbound_row(call: CallRecord) -> ReportRow:
    return ReportRow(
        rep_ext=call.caller_ext_number,
        rep_email=call.caller_email,
        customer_did=call.callee_did_number,
        duration=call.duration,
    )


def standalone_rows(
    inbounds: Sequence[CallRecord],
    outbounds: Sequence[CallRecord]
) -> List[ReportBatch]:
    """One single-row batch per unmatched call, inbound calls first."""
    batches = [[inbound_row(call)] for call in inbounds]
    batches.extend([outbound_row(call)] for call in outbounds)
    return batches


def chain_row(external: CallRecord, internal: CallRecord) -> ReportRow:
    """
    Row for one representative leg of a chain that reached a customer

    The representative is the caller of an outbound internal leg and the
    callee of an inbound one. The customer number is the far end of the
    external call. Duration is the external call's, except for an inbound
    customer call reaching an inbound internal leg, which reports the
    internal leg's own duration.
    """
    if internal.direction == Direction.OUTBOUND:
        rep_ext, rep_email = internal.caller_ext_number, internal.caller_email
    else:
        rep_ext, rep_email = internal.callee_ext_number, internal.callee_email

    if external.direction == Direction.OUTBOUND:
        customer_did = external.callee_did_number
        duration = external.duration
    else:
        customer_did = external.caller_did_number
        if internal.direction == Direction.OUTBOUND:
            duration = external.duration
        else:
            duration = internal.duration

    return ReportRow(
        rep_ext=rep_ext,
        rep_email=rep_email,
        customer_did=customer_did,
        duration=duration,
    )


def chain_rows(chain: Sequence[CallRecord]) -> List[ReportRow]:
    """
    Rows for one chain: every matched external call crossed with every
    internal leg. A chain no external call matched yields no rows.
    """
    internals = [call for call in chain if call.is_internal]
    externals = [call for call in chain if call.is_external]

    rows = []
    for external in externals:
        if external.direction not in (Direction.INBOUND, Direction.OUTBOUND):
            continue
        for internal in internals:
            rows.append(chain_row(external, internal))

    return rows


def generate_report(processed: ProcessedCallLogs) -> List[ReportBatch]:
    """
    Build the report batches

    Standalone inbound calls come first, then standalone outbound calls,
    then one batch per chain that produced rows, in chain order. A chain
    batch wraps the chain's rows in a single element.

    Args:
        processed: Output of call log processing

    Returns:
        List of batches
    """
    if not isinstance(processed, ProcessedCallLogs):
        raise InputError(f"Expected ProcessedCallLogs, got {type(processed).__name__}")

    report = standalone_rows(processed.inbounds, processed.outbounds)

    chains: ChainGroup = processed.chains
    chain_batches = 0
    for chain in chains.values():
        rows = chain_rows(chain)
        if rows:
            report.append([rows])
            chain_batches += 1

    logger.info(
        f"Generated report with {len(report)} batches "
        f"({len(report) - chain_batches} standalone, {chain_batches} chains)"
    )

    return report


def _entry_to_dict(entry: Union[ReportRow, List[ReportRow]]) -> Any:
    if isinstance(entry, ReportRow):
        return entry.to_dict()
    return [row.to_dict() for row in entry]


def report_to_dict(report: Sequence[ReportBatch]) -> Dict[str, Any]:
    """JSON-serializable form of a report."""
    return {
        'report': [[_entry_to_dict(entry) for entry in batch] for batch in report]
    }
