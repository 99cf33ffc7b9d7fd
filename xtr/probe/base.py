"""
Abstract base class for Echo transports
"""

from abc import ABC, abstractmethod
from typing import Optional
from ..models import Destination, Responded


class EchoTransport(ABC):
    """One ICMP socket for one address family"""

    def __init__(self, identifier: int, payload: bytes = b""):
        self.identifier = identifier
        self.payload = payload
        self.sequence = 0

    @abstractmethod
    def send(self, destination: Destination, hop_limit: int) -> None:
        """
        Send an Echo Request with the given hop limit.

        Raises:
            TransportError: the hop limit could not be set or the send failed
        """
        pass

    @abstractmethod
    def receive(self, deadline: float) -> Optional[Responded]:
        """
        Wait for the next Echo Reply or Time Exceeded addressed to this run.

        Unrelated ICMP traffic is discarded. Returns None once the
        deadline (a time.perf_counter() value) has passed.

        Raises:
            TransportError: reading the socket failed
        """
        pass

    @abstractmethod
    def close(self):
        """Clean up resources"""
        pass

    def next_sequence(self) -> int:
        self.sequence = (self.sequence + 1) & 0xFFFF
        return self.sequence

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
