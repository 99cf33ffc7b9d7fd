"""
Single-hop prober
"""

import logging
import time
from typing import Callable

from ..models import Destination, ProbeOutcome, TimedOut
from .base import EchoTransport


logger = logging.getLogger(__name__)


class HopProber:
    """
    Produces one outcome per hop limit.

    Sends one Echo Request and waits up to `timeout` seconds for a
    matching reply. `attempts` is accepted, but a timed-out attempt is
    final: no second probe is sent for the same hop.
    """

    def __init__(self, transport: EchoTransport, attempts: int = 3,
                 timeout: float = 1.0,
                 clock: Callable[[], float] = time.perf_counter):
        self.transport = transport
        self.attempts = attempts
        self.timeout = timeout
        self.clock = clock

    def probe(self, destination: Destination, hop_limit: int) -> ProbeOutcome:
        """
        Probe one hop.

        Raises:
            TransportError: from the transport, unchanged
        """
        for attempt in range(self.attempts):
            self.transport.send(destination, hop_limit)
            deadline = self.clock() + self.timeout

            reply = self.transport.receive(deadline)
            if reply is not None:
                logger.debug("hop %d: %s from %s (attempt %d)",
                             hop_limit, reply.kind.value, reply.address, attempt + 1)
                return reply

            logger.debug("hop %d: timed out (attempt %d)", hop_limit, attempt + 1)
            return TimedOut()

        return TimedOut()
