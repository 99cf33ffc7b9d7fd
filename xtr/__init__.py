"""
xtr - Dual-stack traceroute

ICMP Echo traceroute over IPv4 and IPv6 at the same time, with a report
of the routers both paths share.
"""

__version__ = "1.0.0"
__author__ = "xtr"
