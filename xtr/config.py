"""
Run settings for xtr
"""

import os
from dataclasses import dataclass, field


DEFAULT_MAX_HOPS = 64
DEFAULT_ATTEMPTS = 3
DEFAULT_TIMEOUT = 1.0  # seconds, per attempt
DEFAULT_PAYLOAD = b"xtr-echo"


def process_identifier() -> int:
    """Echo identifier for this run, derived from the process id"""
    return os.getpid() & 0xFFFF


@dataclass
class TraceSettings:
    max_hops: int = DEFAULT_MAX_HOPS
    attempts: int = DEFAULT_ATTEMPTS
    timeout: float = DEFAULT_TIMEOUT
    reverse_dns: bool = True
    identifier: int = field(default_factory=process_identifier)
    payload: bytes = DEFAULT_PAYLOAD
