"""
Exceptions raised by xtr
"""


class XtrError(Exception):
    """Base class for xtr errors"""


class ResolutionError(XtrError):
    """The target host could not be resolved to any address"""


class TransportError(XtrError):
    """A probe socket could not be opened, configured, written or read"""
