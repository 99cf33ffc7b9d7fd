import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from . import __version__
from .config import TraceSettings, DEFAULT_MAX_HOPS, DEFAULT_ATTEMPTS, DEFAULT_TIMEOUT
from .correlator import DualStackCorrelator
from .exceptions import ResolutionError
from .log import setup_logging
from .output import ConsoleOutput, JsonExporter
from .probe import open_transport
from .resolver import DNSResolver, resolve_destinations


console = Console()
logger = logging.getLogger(__name__)


def is_admin() -> bool:
    """Check if running as root (raw ICMP sockets need it)"""
    return os.geteuid() == 0


@click.command()
@click.argument('host')
@click.option('-m', '--max-hops', default=DEFAULT_MAX_HOPS, type=click.IntRange(min=1),
              help=f'Maximum hops per family (default: {DEFAULT_MAX_HOPS})')
@click.option('-q', '--attempts', default=DEFAULT_ATTEMPTS, type=click.IntRange(min=1),
              help=f'Attempt budget per hop (default: {DEFAULT_ATTEMPTS})')
@click.option('-w', '--timeout', default=DEFAULT_TIMEOUT, type=click.FloatRange(min=0, min_open=True),
              help='Wait per attempt in seconds (default: 1)')
@click.option('--dns/--no-dns', default=True,
              help='Enable/disable reverse lookups (default: enabled)')
@click.option('--json', 'json_path', type=click.Path(),
              help='Export results to JSON file')
@click.option('-v', '--verbose', is_flag=True,
              help='Log probe activity to stderr')
@click.version_option(version=__version__)
def main(host: str, max_hops: int, attempts: int, timeout: float,
         dns: bool, json_path: Optional[str], verbose: bool):
    """
    xtr - Dual-stack traceroute.

    Trace the IPv4 and IPv6 routes to HOST in parallel with ICMP Echo,
    then list the routers whose reverse DNS name appears on both paths.

    Examples:

        xtr example.com

        xtr example.com -m 30 -w 2 --json routes.json
    """
    setup_logging(verbose)
    output = ConsoleOutput()

    if not is_admin():
        console.print(
            "[bold red]Error:[/] Root privileges required.\n"
            "[dim]Please run with sudo.[/]"
        )
        sys.exit(1)

    settings = TraceSettings(
        max_hops=max_hops,
        attempts=attempts,
        timeout=timeout,
        reverse_dns=dns
    )
    resolver = DNSResolver()

    try:
        try:
            destinations = resolve_destinations(resolver, host)
        except ResolutionError as e:
            output.print_error(str(e))
            sys.exit(1)

        correlator = DualStackCorrelator(
            resolver,
            settings,
            transport_factory=open_transport,
            output=output
        )
        report = correlator.run(host, destinations)

        output.print_summary(report)

        if json_path:
            json_file = Path(json_path)
            JsonExporter().export(report, json_file)
            console.print(f"\n[dim]Results exported to:[/] {json_file.absolute()}", soft_wrap=True)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/]")
        sys.exit(130)
    except Exception as e:
        logger.debug("unexpected error", exc_info=True)
        output.print_error(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
