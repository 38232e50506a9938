"""
Data models for call log processing

CallRecord mirrors one item of the Zoom ``call_logs`` list; everything
downstream of the API client works on these.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .exceptions import ResolutionError

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class ConnectType(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"


class CallResult(str, Enum):
    ANSWERED = "answered"
    CONNECTED = "connected"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a Zoom ISO-8601 timestamp

    Returns None for missing or unparseable values.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        logger.warning(f"Unparseable timestamp: {value!r}")
        return None


@dataclass
class CallRecord:
    """One leg of a call as listed in the call history."""
    id: str
    direction: Optional[str] = None
    call_result: Optional[str] = None
    connect_type: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    answer_time: Optional[datetime] = None
    caller_ext_number: Optional[str] = None
    callee_ext_number: Optional[str] = None
    caller_did_number: Optional[str] = None
    callee_did_number: Optional[str] = None
    caller_email: Optional[str] = None
    callee_email: Optional[str] = None
    caller_name: Optional[str] = None
    callee_name: Optional[str] = None
    caller_ext_id: Optional[str] = None
    call_id: Optional[str] = None
    duration: int = 0
    matched: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'CallRecord':
        """Build a record from a raw call history item."""
        return cls(
            id=data.get('id'),
            direction=data.get('direction'),
            call_result=data.get('call_result'),
            connect_type=data.get('connect_type'),
            start_time=parse_timestamp(data.get('start_time')),
            end_time=parse_timestamp(data.get('end_time')),
            answer_time=parse_timestamp(data.get('answer_time')),
            caller_ext_number=data.get('caller_ext_number'),
            callee_ext_number=data.get('callee_ext_number'),
            caller_did_number=data.get('caller_did_number'),
            callee_did_number=data.get('callee_did_number'),
            caller_email=data.get('caller_email'),
            callee_email=data.get('callee_email'),
            caller_name=data.get('caller_name'),
            callee_name=data.get('callee_name'),
            caller_ext_id=data.get('caller_ext_id'),
            call_id=data.get('call_id'),
            duration=int(data.get('duration') or 0),
        )

    def with_caller_identity(
        self,
        caller_name: Optional[str],
        caller_ext_id: Optional[str],
        caller_ext_number: Optional[str],
        caller_email: Optional[str]
    ) -> 'CallRecord':
        """Return a copy whose caller fields point at the resolved representative."""
        return replace(
            self,
            caller_name=caller_name,
            caller_ext_id=caller_ext_id,
            caller_ext_number=caller_ext_number,
            caller_email=caller_email,
        )

    @property
    def is_internal(self) -> bool:
        return self.connect_type == ConnectType.INTERNAL

    @property
    def is_external(self) -> bool:
        return self.connect_type == ConnectType.EXTERNAL


@dataclass(frozen=True)
class CallPathHop:
    operator_name: Optional[str] = None
    operator_ext_id: Optional[str] = None
    operator_ext_number: Optional[str] = None
    caller_email: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'CallPathHop':
        return cls(
            operator_name=data.get('operator_name'),
            operator_ext_id=data.get('operator_ext_id'),
            operator_ext_number=data.get('operator_ext_number'),
            caller_email=data.get('caller_email'),
        )


@dataclass(frozen=True)
class CallPathDetail:
    """
    Ordered hops of one call log.

    Hop 0 describes the answering operator, hop 1 the original caller.
    """
    call_log_id: Optional[str]
    hops: List[CallPathHop] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any, call_log_id: Optional[str] = None) -> 'CallPathDetail':
        if not isinstance(data, Mapping):
            raise ResolutionError(
                f"Call path response for {call_log_id} is not an object",
                call_log_id=call_log_id
            )

        hops = data.get('call_path')
        if not isinstance(hops, list) or not all(isinstance(hop, Mapping) for hop in hops):
            raise ResolutionError(
                f"Call path response for {call_log_id} has no call_path list",
                call_log_id=call_log_id
            )

        return cls(
            call_log_id=call_log_id or data.get('id'),
            hops=[CallPathHop.from_dict(hop) for hop in hops],
        )

    def __len__(self) -> int:
        return len(self.hops)

    @property
    def operator(self) -> CallPathHop:
        """Hop 0."""
        if not self.hops:
            raise ResolutionError(
                f"Call path for {self.call_log_id} is empty",
                call_log_id=self.call_log_id
            )
        return self.hops[0]

    @property
    def original_caller(self) -> CallPathHop:
        """Hop 1."""
        if len(self.hops) < 2:
            raise ResolutionError(
                f"Call path for {self.call_log_id} has {len(self.hops)} hop(s), expected at least 2",
                call_log_id=self.call_log_id
            )
        return self.hops[1]


# call_id -> internal legs of the chain, then any matched external legs
ChainGroup = Dict[str, List[CallRecord]]


@dataclass(frozen=True)
class ReportRow:
    rep_ext: Optional[str]
    rep_email: Optional[str]
    customer_did: Optional[str]
    duration: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rep_ext': self.rep_ext,
            'rep_email': self.rep_email,
            'customer_did': self.customer_did,
            'duration': self.duration,
        }


@dataclass
class ClassifiedCallLogs:
    """Call records partitioned by direction and connect type."""
    inbounds: List[CallRecord] = field(default_factory=list)
    outbounds: List[CallRecord] = field(default_factory=list)
    internal_outbounds: List[CallRecord] = field(default_factory=list)
    internal_inbounds: List[CallRecord] = field(default_factory=list)

    @property
    def internal_legs(self) -> List[CallRecord]:
        return self.internal_outbounds + self.internal_inbounds


@dataclass
class ProcessedCallLogs:
    """
    Result of correlation.

    ``inbounds`` and ``outbounds`` hold only the standalone (unmatched)
    external calls; matched ones live in ``chains``.
    """
    inbounds: List[CallRecord] = field(default_factory=list)
    outbounds: List[CallRecord] = field(default_factory=list)
    internal_legs: List[CallRecord] = field(default_factory=list)
    chains: ChainGroup = field(default_factory=dict)
    resolution_errors: List[ResolutionError] = field(default_factory=list)
