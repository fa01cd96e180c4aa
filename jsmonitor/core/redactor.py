"""
Header redaction applied before any captured request is persisted.
"""

from typing import Dict, Iterable, Mapping

REDACTED = "[REDACTED]"

SENSITIVE_HEADERS = (
    "authorization",
    "cookie",
    "fansly-session-id",
    "fansly-client-check",
)

SENSITIVE_FRAGMENTS = ("token", "auth", "key", "secret")


class Redactor:

    def __init__(
        self,
        sensitive_headers: Iterable[str] = SENSITIVE_HEADERS,
        sensitive_fragments: Iterable[str] = SENSITIVE_FRAGMENTS,
        marker: str = REDACTED
    ):
        self.sensitive_headers = frozenset(sensitive_headers)
        self.sensitive_fragments = tuple(f.lower() for f in sensitive_fragments)
        self.marker = marker

    def is_sensitive(self, name: str) -> bool:
        if name in self.sensitive_headers:
            return True
        lowered = name.lower()
        return any(fragment in lowered for fragment in self.sensitive_fragments)

    def redact(self, headers: Mapping[str, str]) -> Dict[str, str]:
        return {
            name: self.marker if self.is_sensitive(name) else value
            for name, value in headers.items()
        }


def redact_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    return Redactor().redact(headers)
