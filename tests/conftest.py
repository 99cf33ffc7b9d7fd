import io
from typing import Optional

import pytest
from rich.console import Console

from xtr.config import TraceSettings
from xtr.models import Destination, Family, ReplyKind, Responded
from xtr.probe.base import EchoTransport
from xtr.resolver import Resolver


class FakeTransport(EchoTransport):
    """
    script: dict[hop_limit] -> Responded, None (timeout) or an exception to raise.
    Hops missing from the script time out.
    """

    def __init__(self, script=None, identifier: int = 0x1234, payload: bytes = b"xtr-echo",
                 send_errors=None):
        super().__init__(identifier, payload)
        self.script = dict(script or {})
        self.send_errors = dict(send_errors or {})
        self.sent: list[tuple[str, int]] = []
        self.closed = False
        self._last_hop: Optional[int] = None

    def send(self, destination: Destination, hop_limit: int) -> None:
        if hop_limit in self.send_errors:
            raise self.send_errors[hop_limit]
        self.next_sequence()
        self.sent.append((destination.address, hop_limit))
        self._last_hop = hop_limit

    def receive(self, deadline: float) -> Optional[Responded]:
        reply = self.script.get(self._last_hop)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def close(self):
        self.closed = True


class StubResolver(Resolver):
    def __init__(self, forward=None, reverse=None):
        self.forward = forward or {}
        self.reverse = reverse or {}
        self.reverse_calls: list[str] = []

    def resolve_forward(self, name: str) -> list[str]:
        return list(self.forward.get(name, []))

    def resolve_reverse(self, address: str) -> list[str]:
        self.reverse_calls.append(address)
        return list(self.reverse.get(address, []))


def exceeded(address: str) -> Responded:
    return Responded(address=address, kind=ReplyKind.TIME_EXCEEDED)


def echo(address: str) -> Responded:
    return Responded(address=address, kind=ReplyKind.ECHO_REPLY)


def make_factory(transports: dict):
    """Transport factory handing out prepared fakes by family"""
    def factory(family: Family, identifier: int, payload: bytes) -> EchoTransport:
        transport = transports[family]
        if isinstance(transport, Exception):
            raise transport
        return transport
    return factory


@pytest.fixture
def settings():
    return TraceSettings(max_hops=8, attempts=3, timeout=0.01, identifier=0x1234)


@pytest.fixture
def console_buffer():
    buffer = io.StringIO()
    console = Console(file=buffer, width=200, highlight=False, color_system=None)
    return console, buffer


V4_DEST = Destination(address="192.0.2.10", family=Family.V4)
V6_DEST = Destination(address="2001:db8::10", family=Family.V6)
