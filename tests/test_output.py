import io
import json

from rich.console import Console

from xtr.models import (
    CorrelationEntry, DualStackReport, Family, FamilyReport, ReplyKind,
    ResolvedHop, RouteStatus,
)
from xtr.output import ConsoleOutput, JsonExporter

from conftest import V4_DEST, V6_DEST


def lines(buffer):
    return buffer.getvalue().splitlines()


def test_hop_line_formats(console_buffer):
    console, buffer = console_buffer
    output = ConsoleOutput(console)

    output.print_hop(ResolvedHop(hop=1, address="192.0.2.1", hostname="gw.example",
                                 kind=ReplyKind.TIME_EXCEEDED))
    output.print_hop(ResolvedHop(hop=5, address="203.0.113.5", kind=ReplyKind.TIME_EXCEEDED))
    output.print_hop(ResolvedHop(hop=12))

    assert lines(buffer) == [
        " 1: gw.example (192.0.2.1)",
        " 5: 203.0.113.5",
        "12: *",
    ]


def test_family_headers(console_buffer):
    console, buffer = console_buffer
    output = ConsoleOutput(console)

    output.print_family_header(Family.V4, V4_DEST)
    output.print_family_header(Family.V6, None)

    assert lines(buffer) == ["v4: 192.0.2.10", "v6: none"]


def test_exceeded_budget_reported_after_trace(console_buffer):
    console, buffer = console_buffer
    output = ConsoleOutput(console)

    output.print_route_end(FamilyReport(
        family=Family.V6, destination=V6_DEST,
        status=RouteStatus.EXCEEDED_HOP_BUDGET, error="exceeded max hops: 64"
    ))
    output.print_route_end(FamilyReport(
        family=Family.V4, destination=V4_DEST, status=RouteStatus.REACHED_DESTINATION
    ))

    assert lines(buffer) == ["Error: v6: exceeded max hops: 64", "", ""]


def test_summary_without_shared_hops(console_buffer):
    console, buffer = console_buffer
    ConsoleOutput(console).print_summary(DualStackReport(target="example.com"))

    assert lines(buffer) == ["xtr: 0"]


def test_json_export(tmp_path):
    report = DualStackReport(target="example.com", shared=1)
    report.routes[Family.V4] = FamilyReport(
        family=Family.V4, destination=V4_DEST, status=RouteStatus.REACHED_DESTINATION,
        hops=[
            ResolvedHop(hop=1),
            ResolvedHop(hop=2, address="198.51.100.2", hostname="core-router.example",
                        kind=ReplyKind.TIME_EXCEEDED),
        ]
    )
    report.routes[Family.V6] = FamilyReport(family=Family.V6)
    report.entries = [CorrelationEntry("core-router.example", "198.51.100.2", "2001:db8:100::2")]

    path = tmp_path / "out" / "routes.json"
    data = JsonExporter().export(report, path)

    assert json.loads(path.read_text(encoding="utf-8")) == data
    assert data["meta"]["generator"] == "xtr"
    assert data["routes"]["v4"]["status"] == "reached_destination"
    assert data["routes"]["v4"]["hops"][0] == {
        "hop": 1, "address": None, "hostname": None, "kind": None
    }
    assert data["routes"]["v4"]["hops"][1]["kind"] == "time_exceeded"
    assert data["routes"]["v6"] == {"destination": None, "status": None, "error": None, "hops": []}
    assert data["shared"] == 1
    assert data["entries"] == [{
        "hostname": "core-router.example",
        "ipv4": "198.51.100.2",
        "ipv6": "2001:db8:100::2",
    }]


def test_lines_wider_than_console_stay_whole():
    buffer = io.StringIO()
    output = ConsoleOutput(Console(file=buffer, width=80, highlight=False, color_system=None))
    hostname = "ae-12-12.ebr2.washington12.level3.example.net"
    address = "2001:db8:1900:2100:0:ffff:1b2d:abcd"

    output.print_hop(ResolvedHop(hop=7, address=address, hostname=hostname,
                                 kind=ReplyKind.TIME_EXCEEDED))
    report = DualStackReport(target="example.com", shared=1)
    report.entries = [CorrelationEntry(hostname, "198.51.100.200", address)]
    output.print_summary(report)

    assert lines(buffer) == [
        f" 7: {hostname} ({address})",
        "xtr: 1",
        f"{hostname} (198.51.100.200) ({address})",
    ]
