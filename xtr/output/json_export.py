"""
JSON export for xtr
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..models import DualStackReport, FamilyReport, ResolvedHop
from .. import __version__


class JsonExporter:
    """
    Export a dual-stack report to JSON.

    Routes are keyed by family ("v4", "v6"); a family the target has no
    address for is exported with a null destination and no hops.
    """

    def export(self, report: DualStackReport,
               output_path: Optional[Path] = None) -> dict:
        """
        Export report to JSON.

        Args:
            report: Completed dual-stack report
            output_path: Optional file path to write

        Returns:
            JSON-serializable dict
        """
        data = {
            "meta": {
                "version": __version__,
                "generator": "xtr",
                "generated_at": datetime.now().isoformat()
            },
            "target": report.target,
            "timestamp": report.timestamp.isoformat(),
            "routes": {
                family.value: self._serialize_route(section)
                for family, section in report.routes.items()
            },
            "shared": report.shared,
            "entries": [
                {"hostname": e.hostname, "ipv4": e.ipv4, "ipv6": e.ipv6}
                for e in report.entries
            ]
        }

        if output_path:
            self._write_file(data, output_path)

        return data

    def _serialize_route(self, section: FamilyReport) -> dict:
        return {
            "destination": section.destination.address if section.destination else None,
            "status": section.status.value if section.status else None,
            "error": section.error,
            "hops": [self._serialize_hop(hop) for hop in section.hops]
        }

    def _serialize_hop(self, hop: ResolvedHop) -> dict:
        """Serialize a single hop"""
        return {
            "hop": hop.hop,
            "address": hop.address,
            "hostname": hop.hostname,
            "kind": hop.kind.value if hop.kind else None
        }

    def _write_file(self, data: dict, path: Path):
        """Write JSON to file"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
