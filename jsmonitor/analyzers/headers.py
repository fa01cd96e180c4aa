"""
Static discovery of custom request header names in the served script.
Known headers are matched by literal name; anything else declared as an object key
with the vendor prefix is reported as unknown.
"""

import re
from typing import List, Optional, Sequence, Set, Tuple

from jsmonitor.models import HeaderFinding

VENDOR_PREFIX = "fansly-"

REFERENCE_HEADERS: List[Tuple[str, str]] = [
    ("fansly-client-check", "Client check hash value"),
    ("fansly-client-id", "Client device ID"),
    ("fansly-client-ts", "Client timestamp"),
    ("fansly-session-id", "Session ID"),
]

KEY_DECLARATION_PATTERN = r'key:\s*["\']([^"\']+)["\']'

UNKNOWN_HEADER_DESCRIPTION = "Unknown Fansly header"


class StaticHeaderScanner:

    def __init__(
        self,
        vendor_prefix: str = VENDOR_PREFIX,
        reference_headers: Optional[Sequence[Tuple[str, str]]] = None,
        unknown_description: str = UNKNOWN_HEADER_DESCRIPTION
    ):
        self.vendor_prefix = vendor_prefix.lower()
        self.reference_headers = list(reference_headers if reference_headers is not None else REFERENCE_HEADERS)
        self.unknown_description = unknown_description
        self._compile_patterns()

    def _compile_patterns(self):
        self.reference_patterns = [
            (re.compile(r'["\']' + re.escape(name) + r'["\']'), name, description)
            for name, description in self.reference_headers
        ]
        self.key_declaration_re = re.compile(KEY_DECLARATION_PATTERN)

    def scan(self, content: str) -> List[HeaderFinding]:
        findings: List[HeaderFinding] = []
        seen: Set[str] = set()

        for compiled, name, description in self.reference_patterns:
            if compiled.search(content) and name.lower() not in seen:
                seen.add(name.lower())
                findings.append(HeaderFinding(name=name, description=description))

        for match in self.key_declaration_re.finditer(content):
            header_name = match.group(1).strip()
            lowered = header_name.lower()
            if not lowered.startswith(self.vendor_prefix) or lowered in seen:
                continue
            seen.add(lowered)
            findings.append(HeaderFinding(name=header_name, description=self.unknown_description))

        return findings


def scan_headers(content: str) -> List[HeaderFinding]:
    return StaticHeaderScanner().scan(content)
