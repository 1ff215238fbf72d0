from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


DECLARATION_KINDS = (
    "class",
    "struct",
    "interface",
    "enum",
    "enum-member",
    "delegate",
    "method",
    "property",
    "event",
    "field",
    "constant",
)

CONSTRUCT_KINDS = (
    "brace",
    "number",
    "null-check",
    "frame-call",
)

IDENTIFIER_KINDS = DECLARATION_KINDS + CONSTRUCT_KINDS

SEVERITIES = ("info", "warning", "error")


@dataclass(frozen=True)
class Rule:
    id: str
    applies_to: str
    pattern: str
    expected: str
    severity: str = "warning"
    description: str = ""
    modifiers: tuple[str, ...] = ()
    excluded_modifiers: tuple[str, ...] = ()
    compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Frozen dataclass: the compiled pattern is cached once at construction.
        object.__setattr__(self, "compiled", re.compile(self.pattern))

    def matches(self, text: str) -> bool:
        return self.compiled.fullmatch(text) is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "applies_to": self.applies_to,
            "pattern": self.pattern,
            "expected": self.expected,
            "severity": self.severity,
            "description": self.description,
            "modifiers": list(self.modifiers),
            "excluded_modifiers": list(self.excluded_modifiers),
        }


@dataclass(frozen=True)
class Identifier:
    name: str
    kind: str
    line: int
    modifiers: frozenset[str] = frozenset()


@dataclass(frozen=True)
class Violation:
    rule_id: str
    file_path: str
    line: int
    actual_text: str
    expected: str
    severity: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ScanDiagnostic:
    file_path: str
    line: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ScanSettings:
    include_exts: frozenset[str] = frozenset({".cs"})
    exclude_dirs: frozenset[str] = frozenset(
        {".git", "Library", "Temp", "obj", "bin", "Packages", "Logs"}
    )
    max_file_size_bytes: int = 2_000_000


@dataclass(frozen=True)
class FileResult:
    file_path: Path
    violations: tuple[Violation, ...] = ()
    diagnostics: tuple[ScanDiagnostic, ...] = ()


@dataclass(frozen=True)
class CheckResult:
    files_scanned: int
    violations: tuple[Violation, ...]
    diagnostics: tuple[ScanDiagnostic, ...]
    rules: tuple[Rule, ...]

    @property
    def has_violations(self) -> bool:
        return bool(self.violations)

    def counts_by_rule(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for item in self.violations:
            counts[item.rule_id] = counts.get(item.rule_id, 0) + 1
        return counts
