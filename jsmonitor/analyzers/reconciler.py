"""
Merges header names found in the script with those seen on live API traffic.

Static findings come from code and take precedence; live traffic only contributes
names the static scan missed. CORS preflight requests are mined too, since their
access-control-request-headers value announces the custom headers of the real request.
"""

from typing import Dict, Iterable, List, Sequence, Set

from jsmonitor.analyzers.headers import VENDOR_PREFIX
from jsmonitor.models import CapturedRequest, HeaderFinding

PREFLIGHT_METHOD = "OPTIONS"
PREFLIGHT_HEADER = "access-control-request-headers"


class HeaderReconciler:

    def __init__(self, vendor_prefix: str = VENDOR_PREFIX):
        self.vendor_prefix = vendor_prefix.lower()

    def _is_vendor_header(self, name: str) -> bool:
        return name.lower().startswith(self.vendor_prefix)

    def extract_dynamic(self, requests: Iterable[CapturedRequest]) -> List[HeaderFinding]:
        findings: List[HeaderFinding] = []
        seen: Set[str] = set()

        def add(name: str, description: str):
            lowered = name.lower()
            if not self._is_vendor_header(name) or lowered in seen:
                return
            seen.add(lowered)
            findings.append(HeaderFinding(name=name, description=description))

        for request in requests:
            for header_name in request.headers:
                add(header_name, f"Captured from {request.method} request to {request.path}")

            if request.method.upper() != PREFLIGHT_METHOD:
                continue

            requested = request.get_header(PREFLIGHT_HEADER)
            if not requested:
                continue

            for segment in requested.split(','):
                segment = segment.strip()
                if segment:
                    add(
                        segment,
                        f"Listed in {PREFLIGHT_HEADER} of preflight request to {request.path}"
                    )

        return findings

    def merge(
        self,
        static_findings: Sequence[HeaderFinding],
        dynamic_findings: Sequence[HeaderFinding]
    ) -> List[HeaderFinding]:
        inventory: Dict[str, HeaderFinding] = {}

        for finding in static_findings:
            inventory.setdefault(finding.key, finding)

        for finding in dynamic_findings:
            if finding.key not in inventory:
                inventory[finding.key] = finding

        return list(inventory.values())

    def reconcile(
        self,
        static_findings: Sequence[HeaderFinding],
        requests: Iterable[CapturedRequest]
    ) -> List[HeaderFinding]:
        return self.merge(static_findings, self.extract_dynamic(requests))
