from __future__ import annotations

from typing import Iterable, Sequence

from style_scanner.models import Identifier, Rule, Violation


def applicable_rules(identifier: Identifier, rules: Sequence[Rule]) -> list[Rule]:
    return [
        rule
        for rule in rules
        if rule.applies_to == identifier.kind
        and all(modifier in identifier.modifiers for modifier in rule.modifiers)
        and not any(modifier in identifier.modifiers for modifier in rule.excluded_modifiers)
    ]


def check(
    identifiers: Iterable[Identifier],
    rules: Sequence[Rule],
    *,
    file_path: str = "",
) -> list[Violation]:
    """Emit one violation per (identifier, rule) pair whose pattern does not match.

    Violations follow identifier order, then rule order.
    """
    by_kind: dict[str, list[Rule]] = {}
    for rule in rules:
        by_kind.setdefault(rule.applies_to, []).append(rule)

    violations: list[Violation] = []
    for identifier in identifiers:
        candidates = by_kind.get(identifier.kind)
        if not candidates:
            continue
        for rule in applicable_rules(identifier, candidates):
            if rule.matches(identifier.name):
                continue
            violations.append(
                Violation(
                    rule_id=rule.id,
                    file_path=file_path,
                    line=identifier.line,
                    actual_text=identifier.name,
                    expected=rule.expected,
                    severity=rule.severity,
                )
            )

    return violations
