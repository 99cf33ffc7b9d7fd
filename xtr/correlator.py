"""
Dual-stack correlation of IPv4 and IPv6 routes
"""

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from .config import TraceSettings
from .exceptions import TransportError
from .models import (
    CorrelationEntry, Destination, DualStackReport, Family, FamilyReport,
    HopRecord, ResolvedHop, Responded, RouteEnd, RouteResult, RouteStatus,
)
from .probe import EchoTransport, HopProber, RouteWalker, open_transport
from .resolver import Resolver


logger = logging.getLogger(__name__)

TransportFactory = Callable[[Family, int, bytes], EchoTransport]


class CorrelationTable:
    """
    Hostname -> responder addresses on each path.

    Only the IPv4 path creates entries. The IPv6 path fills in entries
    that already exist and ignores hostnames it sees first.
    """

    def __init__(self):
        self._entries: dict[str, CorrelationEntry] = {}
        self.shared = 0

    def record_v4(self, hostname: str, address: str):
        self._entries[hostname] = CorrelationEntry(hostname=hostname, ipv4=address)

    def record_v6(self, hostname: str, address: str) -> bool:
        """Attach an IPv6 responder, True if hostname was already on the IPv4 path"""
        entry = self._entries.get(hostname)
        if entry is None:
            return False
        if entry.ipv6 is None:
            self.shared += 1
        entry.ipv6 = address
        return True

    def record(self, family: Family, hostname: str, address: str):
        if family is Family.V4:
            self.record_v4(hostname, address)
        else:
            self.record_v6(hostname, address)

    def complete_entries(self) -> list[CorrelationEntry]:
        return sorted(
            (e for e in self._entries.values() if e.complete),
            key=lambda e: e.hostname
        )


class DualStackCorrelator:
    """
    Runs one route walk per family in parallel and reports them in order.

    Each walker thread owns its transport and pushes HopRecords onto its
    own queue, ending with a RouteEnd. The IPv4 queue is drained and
    reported in full before the IPv6 one.
    """

    def __init__(
        self,
        resolver: Resolver,
        settings: Optional[TraceSettings] = None,
        transport_factory: TransportFactory = open_transport,
        output=None
    ):
        self.resolver = resolver
        self.settings = settings or TraceSettings()
        self.transport_factory = transport_factory
        self.output = output

    def _run_walk(self, destination: Destination, channel: queue.Queue,
                  stop: threading.Event) -> RouteResult:
        """Worker body: open the transport and walk the route"""
        try:
            transport = self.transport_factory(
                destination.family, self.settings.identifier, self.settings.payload
            )
        except TransportError as e:
            logger.warning("%s: %s", destination.family.value, e)
            channel.put(RouteEnd(status=RouteStatus.TRANSPORT_ERROR, error=str(e)))
            return RouteResult(destination=destination,
                               status=RouteStatus.TRANSPORT_ERROR, error=str(e))

        try:
            with transport:
                prober = HopProber(transport,
                                   attempts=self.settings.attempts,
                                   timeout=self.settings.timeout)
                walker = RouteWalker(prober, destination,
                                     max_hops=self.settings.max_hops, stop=stop)
                return walker.walk(emit=channel.put)
        except Exception as e:
            # Unblock the consumer before the error surfaces through the future
            logger.exception("%s: walk failed", destination.family.value)
            channel.put(RouteEnd(status=RouteStatus.TRANSPORT_ERROR, error=str(e)))
            raise

    def _resolve_hop(self, record: HopRecord) -> ResolvedHop:
        outcome = record.outcome
        if not isinstance(outcome, Responded):
            return ResolvedHop(hop=record.hop)

        hostnames = []
        if self.settings.reverse_dns:
            hostnames = self.resolver.resolve_reverse(outcome.address)

        return ResolvedHop(
            hop=record.hop,
            address=outcome.address,
            hostname=hostnames[0] if hostnames else None,
            kind=outcome.kind
        )

    def _drain(self, family: Family, destination: Optional[Destination],
               channel: Optional[queue.Queue], table: CorrelationTable) -> FamilyReport:
        section = FamilyReport(family=family, destination=destination)
        if self.output:
            self.output.print_family_header(family, destination)

        if destination is None or channel is None:
            if self.output:
                self.output.print_route_end(section)
            return section

        while True:
            item = channel.get()
            if isinstance(item, RouteEnd):
                section.status = item.status
                section.error = item.error
                break

            hop = self._resolve_hop(item)
            section.hops.append(hop)
            if hop.hostname:
                table.record(family, hop.hostname, hop.address)

            if self.output:
                self.output.print_hop(hop)

        if self.output:
            self.output.print_route_end(section)
        return section

    def run(self, target: str, destinations: dict[Family, Destination]) -> DualStackReport:
        """
        Trace every destination and correlate the routes.

        Args:
            target: Host name as given by the user
            destinations: At most one destination per family

        Returns:
            DualStackReport with both family sections and the shared hops
        """
        report = DualStackReport(target=target)
        table = CorrelationTable()
        channels = {family: queue.Queue() for family in destinations}

        stop = threading.Event()

        executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="xtr-walk")
        futures = [
            executor.submit(self._run_walk, destination, channels[family], stop)
            for family, destination in destinations.items()
        ]

        try:
            for family in (Family.V4, Family.V6):
                report.routes[family] = self._drain(
                    family, destinations.get(family), channels.get(family), table
                )
        except KeyboardInterrupt:
            # Walkers finish their current hop and exit; do not wait for them
            stop.set()
            executor.shutdown(wait=False, cancel_futures=True)
            raise

        executor.shutdown(wait=True)
        for future in futures:
            future.result()

        report.entries = table.complete_entries()
        report.shared = table.shared
        return report
