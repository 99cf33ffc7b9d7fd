"""
Route walker: escalates the hop limit until the destination answers
"""

import logging
import threading
from typing import Callable, Optional, Union

from ..exceptions import TransportError
from ..models import (
    Destination, HopRecord, Responded, RouteEnd, RouteResult, RouteStatus,
)
from .prober import HopProber


logger = logging.getLogger(__name__)

RouteItem = Union[HopRecord, RouteEnd]


class RouteWalker:
    """
    Discovers the path to one destination.

    Hops are probed strictly in order starting at 1. Every probed hop is
    emitted as a HopRecord, followed by exactly one RouteEnd. Setting
    `stop` ends the walk before the next hop is probed.
    """

    def __init__(self, prober: HopProber, destination: Destination,
                 max_hops: int = 64, stop: Optional[threading.Event] = None):
        self.prober = prober
        self.destination = destination
        self.max_hops = max_hops
        self.stop = stop

    def walk(self, emit: Optional[Callable[[RouteItem], None]] = None) -> RouteResult:
        """
        Execute the walk.

        Args:
            emit: Optional callback receiving each HopRecord as it is
                  produced and the RouteEnd marker last

        Returns:
            RouteResult with every hop probed and the terminal status
        """
        result = RouteResult(destination=self.destination)
        family = self.destination.family.value

        def finish(status: RouteStatus, error: Optional[str] = None) -> RouteResult:
            result.status = status
            result.error = error
            if emit:
                emit(RouteEnd(status=status, error=error))
            return result

        for hop in range(1, self.max_hops + 1):
            if self.stop is not None and self.stop.is_set():
                logger.debug("%s: stopped before hop %d", family, hop)
                return finish(RouteStatus.TRANSPORT_ERROR, "walk interrupted")

            try:
                outcome = self.prober.probe(self.destination, hop)
            except TransportError as e:
                logger.warning("%s: transport error at hop %d: %s", family, hop, e)
                return finish(RouteStatus.TRANSPORT_ERROR, str(e))

            record = HopRecord(hop=hop, outcome=outcome)
            result.hops.append(record)
            if emit:
                emit(record)

            if isinstance(outcome, Responded) and self.destination.matches(outcome.address):
                logger.debug("%s: reached %s at hop %d", family, self.destination.address, hop)
                return finish(RouteStatus.REACHED_DESTINATION)

        logger.warning("%s: exceeded max hops: %d", family, self.max_hops)
        return finish(RouteStatus.EXCEEDED_HOP_BUDGET, f"exceeded max hops: {self.max_hops}")
