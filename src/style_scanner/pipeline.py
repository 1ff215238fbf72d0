from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from style_scanner.models import SEVERITIES, CheckResult, Rule, ScanDiagnostic, ScanSettings, Violation
from style_scanner.scanners.engine import check_file, iter_source_files


logger = logging.getLogger(__name__)


def run_check(
    paths: Sequence[str | Path],
    rules: Sequence[Rule],
    settings: ScanSettings | None = None,
    *,
    min_severity: str | None = None,
) -> CheckResult:
    if min_severity is not None and min_severity not in SEVERITIES:
        raise ValueError(f"min_severity must be one of: {', '.join(SEVERITIES)}")

    scan_settings = settings or ScanSettings()
    threshold = SEVERITIES.index(min_severity) if min_severity else 0

    violations: list[Violation] = []
    diagnostics: list[ScanDiagnostic] = []
    files_scanned = 0

    for path in iter_source_files(paths, scan_settings, diagnostics):
        result = check_file(path, rules)
        files_scanned += 1
        violations.extend(
            item for item in result.violations if SEVERITIES.index(item.severity) >= threshold
        )
        diagnostics.extend(result.diagnostics)

    logger.info(
        "Checked %d file(s): %d violation(s), %d diagnostic(s)",
        files_scanned,
        len(violations),
        len(diagnostics),
    )

    return CheckResult(
        files_scanned=files_scanned,
        violations=tuple(violations),
        diagnostics=tuple(diagnostics),
        rules=tuple(rules),
    )
