from __future__ import annotations

import csv
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from style_scanner.models import CheckResult, ScanDiagnostic, Violation


def format_violation(violation: Violation) -> str:
    return (
        f"{violation.file_path}:{violation.line}: {violation.rule_id} "
        f"expected {violation.expected}, found {violation.actual_text}"
    )


def format_violations(violations: Iterable[Violation]) -> str:
    return "\n".join(format_violation(item) for item in violations)


def format_diagnostic(diagnostic: ScanDiagnostic) -> str:
    return f"{diagnostic.file_path}:{diagnostic.line}: scan-error {diagnostic.message}"


def format_summary(result: CheckResult) -> str:
    lines = []
    for rule_id, count in sorted(result.counts_by_rule().items(), key=lambda item: (-item[1], item[0])):
        lines.append(f"  {rule_id}: {count}")
    lines.append(
        f"{result.files_scanned} file(s) checked, {len(result.violations)} violation(s), "
        f"{len(result.diagnostics)} scan error(s)"
    )
    return "\n".join(lines)


def build_summary(result: CheckResult) -> dict:
    severity_counts: dict[str, int] = {}
    for item in result.violations:
        severity_counts[item.severity] = severity_counts.get(item.severity, 0) + 1

    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "counts": {
            "files_scanned": result.files_scanned,
            "violations_total": len(result.violations),
            "rules_triggered": len(result.counts_by_rule()),
            "files_with_violations": len({item.file_path for item in result.violations}),
            "diagnostics_total": len(result.diagnostics),
            "by_severity": severity_counts,
        },
        "rules": [rule.to_dict() for rule in result.rules],
        "files": {},
    }


def write_reports(result: CheckResult, output_dir: str | Path) -> dict:
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    summary = build_summary(result)

    by_rule = [
        {"rule_id": rule_id, "violation_count": count}
        for rule_id, count in sorted(result.counts_by_rule().items(), key=lambda item: (-item[1], item[0]))
    ]

    summary_json = out_dir / "summary.json"
    violations_csv = out_dir / "violations.csv"
    by_rule_csv = out_dir / "violations_by_rule.csv"
    diagnostics_csv = out_dir / "diagnostics.csv"

    _write_csv(violations_csv, [item.to_dict() for item in result.violations])
    _write_csv(by_rule_csv, by_rule)
    _write_csv(diagnostics_csv, [item.to_dict() for item in result.diagnostics])

    summary["files"] = {
        "summary": str(summary_json.resolve()),
        "violations": str(violations_csv.resolve()),
        "violations_by_rule": str(by_rule_csv.resolve()),
        "diagnostics": str(diagnostics_csv.resolve()),
    }
    _write_json(summary_json, summary)
    return summary


def _write_json(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, ensure_ascii=True)


def _write_csv(path: Path, rows: list[dict]) -> None:
    with path.open("w", encoding="utf-8", newline="") as handle:
        if not rows:
            handle.write("")
            return

        fieldnames: list[str] = []
        seen = set()
        for row in rows:
            for key in row:
                if key not in seen:
                    seen.add(key)
                    fieldnames.append(key)

        writer = csv.DictWriter(handle, fieldnames=fieldnames)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
