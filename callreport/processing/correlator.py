"""
Temporal correlation of external calls with internal transfer chains

An external inbound call belongs to the chain of the internal leg that the
called representative answered while the customer was on the line. An
external outbound call belongs to the chain of the internal leg the
calling representative was already on for the whole external call.

Both rules use strict inequalities. The inbound rule checks one instant
against the external window while the outbound rule requires the internal
window to contain the external one; the two rules are not symmetric.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from .exceptions import DataShapeError
from .models import CallRecord, ChainGroup

logger = logging.getLogger(__name__)

LegPredicate = Callable[[CallRecord, CallRecord], bool]


def _required(record: CallRecord, field: str):
    value = getattr(record, field)
    if value is None or value == '':
        raise DataShapeError(
            f"Record {record.id} has no {field}",
            record_id=record.id,
            field=field
        )
    return value


def _instant(record: CallRecord, field: str) -> float:
    value: datetime = _required(record, field)
    return value.timestamp()


def inbound_leg_matches(external: CallRecord, leg: CallRecord) -> bool:
    """
    True when the leg was answered strictly inside the external call
    window by the representative the customer called.

    Raises:
        DataShapeError: If a field the rule reads is missing
    """
    _required(leg, 'call_id')
    answer_time = _instant(leg, 'answer_time')

    return (
        answer_time > _instant(external, 'start_time') and
        answer_time < _instant(external, 'end_time') and
        _required(external, 'callee_ext_number') == _required(leg, 'caller_ext_number')
    )


def outbound_leg_matches(external: CallRecord, leg: CallRecord) -> bool:
    """
    True when the leg strictly contains the external call window and was
    placed by the representative who made the external call.

    Raises:
        DataShapeError: If a field the rule reads is missing
    """
    _required(leg, 'call_id')

    return (
        _instant(leg, 'start_time') < _instant(external, 'start_time') and
        _instant(leg, 'end_time') > _instant(external, 'end_time') and
        _required(external, 'caller_ext_number') == _required(leg, 'caller_ext_number')
    )


def find_matching_leg(
    external: CallRecord,
    legs: Sequence[CallRecord],
    predicate: LegPredicate
) -> Optional[CallRecord]:
    """
    Find the first leg matching an external call

    Legs are scanned in pool order and the first match wins; there is no
    secondary ranking. A pair the predicate cannot evaluate never matches.

    Args:
        external: External call record
        legs: Internal leg pool in canonical (call history) order
        predicate: Matching rule for the external call's direction

    Returns:
        The matching leg, or None
    """
    for leg in legs:
        try:
            if predicate(external, leg):
                return leg
        except DataShapeError as e:
            logger.debug(f"Skipping pair {external.id}/{leg.id}: {e}")

    return None


def correlate(
    externals: Sequence[CallRecord],
    legs: Sequence[CallRecord],
    chains: ChainGroup,
    predicate: LegPredicate
) -> List[CallRecord]:
    """
    Attach external calls to the chains of their matching legs

    A matched call is appended to its chain and marked matched. Unmatched
    calls are marked unmatched and returned as standalone events.

    Args:
        externals: External calls of one direction
        legs: Internal leg pool
        chains: Chains by call id, extended in place
        predicate: Matching rule for the direction

    Returns:
        The unmatched external calls in input order
    """
    unmatched = []

    for external in externals:
        leg = find_matching_leg(external, legs, predicate)

        if leg is not None:
            chains[leg.call_id].append(external)
            external.matched = True
            logger.debug(f"Matched {external.direction} call {external.id} to chain {leg.call_id}")
            continue

        external.matched = False
        unmatched.append(external)

    return unmatched


def correlate_call_logs(
    inbounds: Sequence[CallRecord],
    outbounds: Sequence[CallRecord],
    legs: Sequence[CallRecord],
    chains: ChainGroup
):
    """
    Run the inbound pass then the outbound pass against the same leg pool

    Returns:
        Tuple of (unmatched inbounds, unmatched outbounds)
    """
    standalone_inbounds = correlate(inbounds, legs, chains, inbound_leg_matches)
    standalone_outbounds = correlate(outbounds, legs, chains, outbound_leg_matches)

    logger.info(
        f"Correlated {len(inbounds) - len(standalone_inbounds)} of {len(inbounds)} inbound "
        f"and {len(outbounds) - len(standalone_outbounds)} of {len(outbounds)} outbound calls"
    )

    return standalone_inbounds, standalone_outbounds
