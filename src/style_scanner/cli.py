from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace

from style_scanner.config import ConfigError, load_rules
from style_scanner.models import SEVERITIES, ScanSettings
from style_scanner.pipeline import run_check
from style_scanner.reporting import (
    format_diagnostic,
    format_summary,
    format_violation,
    write_reports,
)


DEFAULT_SETTINGS = ScanSettings()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="checkstyle",
        description="Check game-engine C# scripts against naming, brace and performance conventions",
    )
    parser.add_argument("paths", nargs="*", help="Files or directories to check")
    parser.add_argument("--rules", default=None, help="Rule configuration JSON (default: bundled rules)")
    parser.add_argument(
        "--min-severity",
        choices=list(SEVERITIES),
        default=None,
        help="Hide violations below this severity",
    )
    parser.add_argument(
        "--include-exts",
        default=",".join(sorted(DEFAULT_SETTINGS.include_exts)),
        help="Comma-separated extensions to include when walking directories",
    )
    parser.add_argument(
        "--exclude-dirs",
        default=",".join(sorted(DEFAULT_SETTINGS.exclude_dirs)),
        help="Comma-separated directory names to skip",
    )
    parser.add_argument(
        "--max-file-size-bytes",
        type=int,
        default=DEFAULT_SETTINGS.max_file_size_bytes,
    )
    parser.add_argument("--output-dir", default=None, help="Also write JSON/CSV reports here")
    parser.add_argument("--summary", action="store_true", help="Print per-rule counts")
    parser.add_argument("--list-rules", action="store_true", help="Print the active rules and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        rules = load_rules(args.rules)
    except ConfigError as exc:
        parser.error(str(exc))

    if args.list_rules:
        for rule in rules:
            print(f"{rule.id} [{rule.severity}] {rule.applies_to}: expected {rule.expected}")
        return 0

    if not args.paths:
        parser.error("at least one path is required")

    settings = replace(
        DEFAULT_SETTINGS,
        include_exts=frozenset(
            _normalize_ext(item) for item in args.include_exts.split(",") if item.strip()
        ),
        exclude_dirs=frozenset(item.strip() for item in args.exclude_dirs.split(",") if item.strip()),
        max_file_size_bytes=int(args.max_file_size_bytes),
    )

    result = run_check(args.paths, rules, settings, min_severity=args.min_severity)

    for violation in result.violations:
        print(format_violation(violation))
    for diagnostic in result.diagnostics:
        print(format_diagnostic(diagnostic), file=sys.stderr)

    if args.summary:
        print(format_summary(result))

    if args.output_dir:
        summary = write_reports(result, args.output_dir)
        print(json.dumps(summary["files"], indent=2, ensure_ascii=True), file=sys.stderr)

    return 1 if result.has_violations else 0


def _normalize_ext(value: str) -> str:
    ext = value.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


if __name__ == "__main__":
    raise SystemExit(main())
