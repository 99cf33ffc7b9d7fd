"""
Rich console output for xtr - line-per-hop trace and shared hop summary
"""

from typing import Optional
from rich.console import Console
from rich.text import Text

from ..models import (
    Destination, DualStackReport, Family, FamilyReport, ReplyKind, ResolvedHop,
    RouteStatus,
)


class ConsoleOutput:
    """
    Plain line output, styled when writing to a terminal.

    Hop lines:
        " 1: router.example (192.0.2.1)"
        " 2: 192.0.2.9"
        " 3: *"
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False)

    def print_family_header(self, family: Family, destination: Optional[Destination]):
        """Print the destination line that opens a family section"""
        line = Text()
        line.append(f"{family.value}: ", style="bold cyan")
        if destination is None:
            line.append("none", style="dim")
        else:
            line.append(destination.address, style="bold")
        self.console.print(line, soft_wrap=True)

    def print_hop(self, hop: ResolvedHop):
        """Print a single hop in real-time"""
        line = Text()
        line.append(f"{hop.hop:2d}: ", style="dim")

        if hop.address is None:
            line.append("*", style="yellow")
        else:
            style = "green" if hop.kind is ReplyKind.ECHO_REPLY else ""
            if hop.hostname:
                line.append(hop.hostname, style=style or "bold")
                line.append(f" ({hop.address})", style="dim")
            else:
                line.append(hop.address, style=style)

        self.console.print(line, soft_wrap=True)

    def print_route_end(self, section: FamilyReport):
        """Close a family section, reporting why the walk stopped early"""
        if section.status in (RouteStatus.EXCEEDED_HOP_BUDGET, RouteStatus.TRANSPORT_ERROR):
            self.print_error(f"{section.family.value}: {section.error}")
        self.console.print()

    def print_summary(self, report: DualStackReport):
        """Print shared hop count and every host seen on both paths"""
        line = Text()
        line.append("xtr: ", style="bold magenta")
        line.append(str(report.shared))
        self.console.print(line, soft_wrap=True)

        for entry in report.entries:
            line = Text()
            line.append(entry.hostname, style="bold")
            line.append(f" ({entry.ipv4}) ({entry.ipv6})")
            self.console.print(line, soft_wrap=True)

    def print_error(self, message: str):
        """Print error message"""
        line = Text()
        line.append("Error:", style="bold red")
        line.append(f" {message}")
        self.console.print(line, soft_wrap=True)
