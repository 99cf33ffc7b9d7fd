"""
xtr - Dual-stack traceroute

Entry point for running as a module:
    python -m xtr <host>
"""

from .cli import main

if __name__ == '__main__':
    main()
