"""
Check-key recipe extraction.
Recognizes the known obfuscation shapes of the checkKey_ assignment and falls back to
reporting any other assignment verbatim, so a changed shape is never silently dropped.
"""

import re
from typing import Callable, List, Optional, Tuple

from jsmonitor.models import CheckKeyFinding, CheckKeyPattern

ARRAY_REVERSE_PATTERN = (
    r'this\.checkKey_\s*=\s*'
    r'\[\s*["\'](?P<p1>[^"\']+)["\']\s*,\s*["\'](?P<p2>[^"\']+)["\']\s*\]'
    r'\s*\.reverse\(\s*\)\s*\.join\(\s*["\']-["\']\s*\)'
    r'\s*\+\s*["\']-?(?P<p3>[^"\']+)["\']'
)

PUSH_PATTERN = (
    r'(?:let|var|const)\s+(?P<var>[A-Za-z_$][\w$]*)\s*=\s*\[\s*\]\s*;'
    r'\s*(?P=var)\.push\s*\(\s*["\'](?P<p1>[^"\']+)["\']\s*\)\s*,'
    r'\s*(?P=var)\.push\s*\(\s*["\'](?P<p2>[^"\']+)["\']\s*\)\s*,'
    r'\s*(?P=var)\.push\s*\(\s*["\'](?P<p3>[^"\']+)["\']\s*\)\s*,'
    r'\s*this\.checkKey_\s*=\s*(?P=var)\.join\s*\(\s*["\']-["\']\s*\)'
)

ASSIGNMENT_PATTERN = r'this\.checkKey_\s*=(?!=)\s*([^;]+)'

# right-hand sides already covered by the known shapes
HANDLED_PREFIXES = (
    re.compile(r'\[\s*["\']'),
    re.compile(r'[A-Za-z_$][\w$]*\s*\.\s*join\s*\('),
)


def _rebuild_array_reverse(match: re.Match) -> str:
    return f"{match.group('p2')}-{match.group('p1')}{match.group('p3')}"


def _rebuild_push(match: re.Match) -> str:
    return "-".join(match.group('p1', 'p2', 'p3'))


class CheckKeyExtractor:

    KNOWN_SHAPES: List[Tuple[CheckKeyPattern, str, Callable[[re.Match], str]]] = [
        (CheckKeyPattern.ARRAY_REVERSE, ARRAY_REVERSE_PATTERN, _rebuild_array_reverse),
        (CheckKeyPattern.PUSH, PUSH_PATTERN, _rebuild_push),
    ]

    def __init__(self):
        self._compile_patterns()

    def _compile_patterns(self):
        self.compiled_shapes: List[Tuple[CheckKeyPattern, re.Pattern, Callable[[re.Match], str]]] = [
            (kind, re.compile(pattern), rebuild)
            for kind, pattern, rebuild in self.KNOWN_SHAPES
        ]
        self.assignment_re = re.compile(ASSIGNMENT_PATTERN)

    def extract(self, content: str) -> List[CheckKeyFinding]:
        findings: List[CheckKeyFinding] = []

        for kind, compiled, rebuild in self.compiled_shapes:
            finding = self._match_shape(content, kind, compiled, rebuild)
            if finding:
                findings.append(finding)

        findings.extend(self._extract_other(content))
        return findings

    def _match_shape(
        self,
        content: str,
        kind: CheckKeyPattern,
        compiled: re.Pattern,
        rebuild: Callable[[re.Match], str]
    ) -> Optional[CheckKeyFinding]:
        match = compiled.search(content)
        if not match:
            return None
        return CheckKeyFinding(pattern=kind, value=rebuild(match))

    def _extract_other(self, content: str) -> List[CheckKeyFinding]:
        findings = []
        for match in self.assignment_re.finditer(content):
            expression = match.group(1).strip()
            if not expression or self._is_handled(expression):
                continue
            findings.append(CheckKeyFinding(pattern=CheckKeyPattern.OTHER, value=expression))
        return findings

    def _is_handled(self, expression: str) -> bool:
        return any(prefix.match(expression) for prefix in HANDLED_PREFIXES)


def extract_check_keys(content: str) -> List[CheckKeyFinding]:
    return CheckKeyExtractor().extract(content)
