"""
Groups internal call legs into transfer chains
"""

import logging
from typing import Sequence

from .models import CallRecord, ChainGroup

logger = logging.getLogger(__name__)


def group_legs_by_call_id(legs: Sequence[CallRecord]) -> ChainGroup:
    """
    Group internal legs by their shared call id

    Legs keep their input order inside each chain, and chains are keyed
    in order of first appearance. A leg without a call id cannot belong
    to a chain and is skipped.

    Args:
        legs: Internal call legs

    Returns:
        Mapping of call id to the legs of that chain
    """
    chains: ChainGroup = {}

    for leg in legs:
        if not leg.call_id:
            logger.warning(f"Internal leg {leg.id} has no call_id, not grouped")
            continue
        chains.setdefault(leg.call_id, []).append(leg)

    logger.debug(f"Grouped {len(legs)} internal legs into {len(chains)} chains")
    return chains
