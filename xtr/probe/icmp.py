"""
ICMP Echo transports over raw sockets (Linux/macOS)

- IPv4: raw IPPROTO_ICMP socket, received packets include the IP header
- IPv6: raw IPPROTO_ICMPV6 socket, received packets start at the ICMPv6 header
"""

import logging
import socket
import struct
import time
from typing import Optional

from ..exceptions import TransportError
from ..models import Destination, Family, Probe, ReplyKind, Responded
from .base import EchoTransport


logger = logging.getLogger(__name__)

ICMP_ECHO_REPLY = 0
ICMP_ECHO_REQUEST = 8
ICMP_TIME_EXCEEDED = 11

ICMPV6_TIME_EXCEEDED = 3
ICMPV6_ECHO_REQUEST = 128
ICMPV6_ECHO_REPLY = 129

IPV4_MIN_HEADER_LEN = 20
IPV6_HEADER_LEN = 40
ICMP_HEADER_LEN = 8

# (echo request, echo reply, time exceeded)
ICMP_TYPES = {
    Family.V4: (ICMP_ECHO_REQUEST, ICMP_ECHO_REPLY, ICMP_TIME_EXCEEDED),
    Family.V6: (ICMPV6_ECHO_REQUEST, ICMPV6_ECHO_REPLY, ICMPV6_TIME_EXCEEDED),
}


def checksum(data: bytes) -> int:
    """Calculate ICMP checksum (RFC 1071)"""
    if len(data) % 2:
        data += b'\x00'

    s = 0
    for i in range(0, len(data), 2):
        w = (data[i] << 8) + data[i + 1]
        s += w

    s = (s >> 16) + (s & 0xFFFF)
    s += s >> 16
    return ~s & 0xFFFF


def build_echo_request(probe: Probe) -> bytes:
    """
    Build an Echo Request message for the probe's family.

    The ICMPv6 checksum covers a pseudo-header only the kernel knows,
    so it is left zero and filled in on send.
    """
    echo_type = ICMP_TYPES[probe.family][0]
    header = struct.pack('!BBHHH', echo_type, 0, 0,
                         probe.identifier, probe.sequence)
    if probe.family is Family.V6:
        return header + probe.payload

    cs = checksum(header + probe.payload)
    header = struct.pack('!BBHHH', echo_type, 0, cs,
                         probe.identifier, probe.sequence)
    return header + probe.payload


def _strip_ipv4_header(data: bytes) -> Optional[bytes]:
    if len(data) < IPV4_MIN_HEADER_LEN:
        return None
    header_len = (data[0] & 0x0F) * 4
    if header_len < IPV4_MIN_HEADER_LEN or len(data) < header_len:
        return None
    return data[header_len:]


def _echo_identifier(icmp_data: Optional[bytes], echo_type: int) -> Optional[int]:
    if not icmp_data or len(icmp_data) < ICMP_HEADER_LEN:
        return None
    if icmp_data[0] != echo_type:
        return None
    return struct.unpack('!H', icmp_data[4:6])[0]


def parse_reply(family: Family, data: bytes, identifier: int) -> Optional[ReplyKind]:
    """
    Classify a received packet.

    Returns the reply kind if the packet is an Echo Reply carrying our
    identifier, or a Time Exceeded quoting one of our Echo Requests.
    Anything else, including truncated packets, returns None.
    """
    request_type, reply_type, exceeded_type = ICMP_TYPES[family]

    icmp_data = _strip_ipv4_header(data) if family is Family.V4 else data
    if not icmp_data or len(icmp_data) < ICMP_HEADER_LEN:
        return None

    icmp_type = icmp_data[0]

    if icmp_type == reply_type:
        if _echo_identifier(icmp_data, reply_type) == identifier:
            return ReplyKind.ECHO_REPLY
        return None

    if icmp_type == exceeded_type:
        quoted = icmp_data[ICMP_HEADER_LEN:]
        if family is Family.V4:
            quoted = _strip_ipv4_header(quoted)
        else:
            quoted = quoted[IPV6_HEADER_LEN:]
        if _echo_identifier(quoted, request_type) == identifier:
            return ReplyKind.TIME_EXCEEDED
        return None

    return None


def normalize_address(address: str) -> str:
    """Drop the IPv6 zone suffix from a socket address"""
    return address.split('%', 1)[0]


class ICMPTransport(EchoTransport):
    """
    Raw ICMP socket kept open for a whole route walk.

    Subclasses pick the address family, protocol and hop limit option.
    """

    FAMILY: Family
    ADDRESS_FAMILY: int
    PROTOCOL: int
    HOP_LIMIT_OPTION: tuple[int, int]
    BUFFER_SIZE = 1500

    def __init__(self, identifier: int, payload: bytes = b"",
                 sock: Optional[socket.socket] = None):
        super().__init__(identifier, payload)
        self._sock = sock if sock is not None else self._open()

    def _open(self) -> socket.socket:
        try:
            return socket.socket(self.ADDRESS_FAMILY, socket.SOCK_RAW, self.PROTOCOL)
        except PermissionError as e:
            raise TransportError(
                f"{self.FAMILY.value}: root privileges required to open ICMP socket"
            ) from e
        except OSError as e:
            raise TransportError(f"{self.FAMILY.value}: cannot open ICMP socket: {e}") from e

    def _sockaddr(self, address: str) -> tuple:
        return (address, 0)

    def send(self, destination: Destination, hop_limit: int) -> None:
        probe = Probe(
            family=self.FAMILY,
            hop_limit=hop_limit,
            identifier=self.identifier,
            sequence=self.next_sequence(),
            payload=self.payload,
        )

        try:
            self._sock.setsockopt(*self.HOP_LIMIT_OPTION, hop_limit)
        except OSError as e:
            raise TransportError(f"cannot set hop limit {hop_limit}: {e}") from e

        try:
            self._sock.sendto(build_echo_request(probe), self._sockaddr(destination.address))
        except OSError as e:
            raise TransportError(f"send to {destination.address} failed: {e}") from e

        logger.debug("%s: sent echo to %s hop_limit=%d seq=%d",
                     self.FAMILY.value, destination.address, hop_limit, probe.sequence)

    def receive(self, deadline: float) -> Optional[Responded]:
        while True:
            remaining = deadline - time.perf_counter()
            if remaining <= 0:
                return None

            self._sock.settimeout(remaining)

            try:
                data, addr = self._sock.recvfrom(self.BUFFER_SIZE)
            except socket.timeout:
                return None
            except OSError as e:
                raise TransportError(f"{self.FAMILY.value}: read failed: {e}") from e

            kind = parse_reply(self.FAMILY, data, self.identifier)
            if kind is None:
                logger.debug("%s: discarded %d bytes from %s",
                             self.FAMILY.value, len(data), addr[0])
                continue

            return Responded(address=normalize_address(addr[0]), kind=kind)

    def close(self):
        self._sock.close()


class ICMPv4Transport(ICMPTransport):
    FAMILY = Family.V4
    ADDRESS_FAMILY = socket.AF_INET
    PROTOCOL = socket.IPPROTO_ICMP
    HOP_LIMIT_OPTION = (socket.IPPROTO_IP, socket.IP_TTL)


class ICMPv6Transport(ICMPTransport):
    FAMILY = Family.V6
    ADDRESS_FAMILY = socket.AF_INET6
    PROTOCOL = socket.IPPROTO_ICMPV6
    HOP_LIMIT_OPTION = (socket.IPPROTO_IPV6, socket.IPV6_UNICAST_HOPS)

    def _sockaddr(self, address: str) -> tuple:
        return (address, 0, 0, 0)


TRANSPORTS = {
    Family.V4: ICMPv4Transport,
    Family.V6: ICMPv6Transport,
}


def open_transport(family: Family, identifier: int, payload: bytes = b"") -> EchoTransport:
    """Factory function to create the transport for an address family"""
    return TRANSPORTS[family](identifier, payload)
