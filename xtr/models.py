"""
Data models for xtr
"""

import ipaddress
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class Family(Enum):
    """IP address family of a route"""
    V4 = "v4"
    V6 = "v6"

    @classmethod
    def of(cls, address: str) -> 'Family':
        """Family of an IP address literal"""
        if ipaddress.ip_address(address).version == 4:
            return cls.V4
        return cls.V6


class ReplyKind(Enum):
    """ICMP replies that count as an answer to a probe"""
    ECHO_REPLY = "echo_reply"
    TIME_EXCEEDED = "time_exceeded"


class RouteStatus(Enum):
    """How a route walk ended"""
    REACHED_DESTINATION = "reached_destination"
    EXCEEDED_HOP_BUDGET = "exceeded_hop_budget"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class Destination:
    """A resolved target address"""
    address: str
    family: Family

    @classmethod
    def from_address(cls, address: str) -> 'Destination':
        return cls(address=address, family=Family.of(address))

    def matches(self, address: Optional[str]) -> bool:
        """True if address is this destination, compared as IP addresses"""
        if not address:
            return False
        try:
            return ipaddress.ip_address(address) == ipaddress.ip_address(self.address)
        except ValueError:
            return False


@dataclass(frozen=True)
class Probe:
    """A single outbound Echo Request"""
    family: Family
    hop_limit: int
    identifier: int
    sequence: int
    payload: bytes


@dataclass(frozen=True)
class Responded:
    """A router or the destination answered the probe"""
    address: str
    kind: ReplyKind


@dataclass(frozen=True)
class TimedOut:
    """Nothing relevant arrived before the deadline"""


ProbeOutcome = Union[Responded, TimedOut]


@dataclass(frozen=True)
class HopRecord:
    """Outcome of probing one hop"""
    hop: int
    outcome: ProbeOutcome

    @property
    def address(self) -> Optional[str]:
        if isinstance(self.outcome, Responded):
            return self.outcome.address
        return None

    @property
    def unknown(self) -> bool:
        return isinstance(self.outcome, TimedOut)


@dataclass(frozen=True)
class RouteEnd:
    """Terminal marker, always the last item of a route stream"""
    status: RouteStatus
    error: Optional[str] = None


@dataclass
class RouteResult:
    """Complete walk for one family"""
    destination: Destination
    hops: list[HopRecord] = field(default_factory=list)
    status: Optional[RouteStatus] = None
    error: Optional[str] = None

    @property
    def reached(self) -> bool:
        return self.status is RouteStatus.REACHED_DESTINATION


@dataclass
class ResolvedHop:
    """Hop as presented to the user, with its reverse lookup applied"""
    hop: int
    address: Optional[str] = None
    hostname: Optional[str] = None
    kind: Optional[ReplyKind] = None


@dataclass
class CorrelationEntry:
    """Responder addresses seen for one hostname on each path"""
    hostname: str
    ipv4: Optional[str] = None
    ipv6: Optional[str] = None

    @property
    def complete(self) -> bool:
        return bool(self.ipv4) and bool(self.ipv6)


@dataclass
class FamilyReport:
    """Everything reported for one family"""
    family: Family
    destination: Optional[Destination] = None
    hops: list[ResolvedHop] = field(default_factory=list)
    status: Optional[RouteStatus] = None
    error: Optional[str] = None


@dataclass
class DualStackReport:
    """Complete run result"""
    target: str
    timestamp: datetime = field(default_factory=datetime.now)
    routes: dict[Family, FamilyReport] = field(default_factory=dict)
    entries: list[CorrelationEntry] = field(default_factory=list)
    shared: int = 0
