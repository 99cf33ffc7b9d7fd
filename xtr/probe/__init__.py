"""
Probe engine for xtr
"""

from .base import EchoTransport
from .icmp import ICMPv4Transport, ICMPv6Transport, open_transport
from .prober import HopProber
from .walker import RouteWalker

__all__ = ['EchoTransport', 'ICMPv4Transport', 'ICMPv6Transport',
           'open_transport', 'HopProber', 'RouteWalker']
