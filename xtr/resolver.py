"""
Forward and reverse name resolution
"""

import logging
import socket
from abc import ABC, abstractmethod
from typing import Optional

import dns.exception
import dns.resolver

from .exceptions import ResolutionError
from .models import Destination, Family


logger = logging.getLogger(__name__)


class Resolver(ABC):
    """Name lookups used by a trace run"""

    @abstractmethod
    def resolve_forward(self, name: str) -> list[str]:
        """
        Resolve a host name to its addresses.

        Raises:
            ResolutionError: the name does not resolve
        """
        pass

    @abstractmethod
    def resolve_reverse(self, address: str) -> list[str]:
        """Hostnames for an address, empty if there are none"""
        pass


class DNSResolver(Resolver):
    """
    System resolver for forward lookups, PTR queries for reverse ones.
    """

    def __init__(self, timeout: float = 2.0,
                 resolver: Optional[dns.resolver.Resolver] = None):
        self.timeout = timeout
        if resolver is None:
            resolver = dns.resolver.Resolver()
            resolver.timeout = timeout
            resolver.lifetime = timeout
        self._resolver = resolver

    def resolve_forward(self, name: str) -> list[str]:
        try:
            infos = socket.getaddrinfo(name, None, proto=socket.IPPROTO_TCP)
        except (socket.gaierror, UnicodeError) as e:
            raise ResolutionError(f"cannot resolve host '{name}': {e}") from e

        addresses: list[str] = []
        for family, _, _, _, sockaddr in infos:
            if family not in (socket.AF_INET, socket.AF_INET6):
                continue
            address = sockaddr[0].split('%', 1)[0]
            if address not in addresses:
                addresses.append(address)
        return addresses

    def resolve_reverse(self, address: str) -> list[str]:
        try:
            answers = self._resolver.resolve_address(address)
        except dns.exception.DNSException as e:
            logger.debug("no PTR for %s: %s", address, e)
            return []
        return [rdata.target.to_text(omit_final_dot=True) for rdata in answers]


def resolve_destinations(resolver: Resolver, host: str) -> dict[Family, Destination]:
    """
    Resolve host and pick the first address of each family.

    Raises:
        ResolutionError: host is empty or has no addresses
    """
    if not host:
        raise ResolutionError("missing host")

    destinations: dict[Family, Destination] = {}
    for address in resolver.resolve_forward(host):
        destination = Destination.from_address(address)
        destinations.setdefault(destination.family, destination)

    if not destinations:
        raise ResolutionError(f"no addresses found for host '{host}'")

    logger.debug("resolved %s: %s", host,
                 ", ".join(d.address for d in destinations.values()))
    return destinations
