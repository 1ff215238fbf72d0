from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Sequence

from style_scanner.checker import check
from style_scanner.models import FileResult, Rule, ScanDiagnostic, ScanSettings
from style_scanner.scanners.csharp import scan
from style_scanner.scanners.lexer import ScanError


logger = logging.getLogger(__name__)


def iter_source_files(
    paths: Sequence[str | Path],
    settings: ScanSettings,
    diagnostics: list[ScanDiagnostic] | None = None,
) -> Iterator[Path]:
    """Yield files to check, in a stable order.

    Files named explicitly are always yielded. Directories are walked for
    ``settings.include_exts``, skipping ``settings.exclude_dirs``. Missing
    paths and files that cannot be stat-ed are reported through ``diagnostics``.
    """
    seen: set[Path] = set()
    for raw in paths:
        path = Path(raw)
        if path.is_file():
            candidates = [path]
        elif path.is_dir():
            candidates = sorted(_iter_dir(path, settings, diagnostics))
        else:
            logger.warning("Path does not exist: %s", path)
            if diagnostics is not None:
                diagnostics.append(ScanDiagnostic(file_path=str(path), line=0, message="path does not exist"))
            continue

        for candidate in candidates:
            resolved = candidate.resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            yield candidate


def _iter_dir(
    root: Path,
    settings: ScanSettings,
    diagnostics: list[ScanDiagnostic] | None,
) -> Iterator[Path]:
    include = {ext.lower() for ext in settings.include_exts}
    for path in root.rglob("*"):
        if not path.is_file():
            continue
        if any(part in settings.exclude_dirs for part in path.relative_to(root).parts[:-1]):
            continue
        if path.suffix.lower() not in include:
            continue
        try:
            size = _file_size(path)
        except OSError as exc:
            logger.warning("Cannot stat %s: %s", path, exc)
            if diagnostics is not None:
                diagnostics.append(ScanDiagnostic(file_path=str(path), line=0, message=f"cannot stat file: {exc}"))
            continue
        if size > settings.max_file_size_bytes:
            logger.info("Skipping %s: larger than %d bytes", path, settings.max_file_size_bytes)
            continue
        yield path


def _file_size(path: Path) -> int:
    return path.stat().st_size


def check_source(text: str, rules: Sequence[Rule], *, file_path: str = "") -> FileResult:
    errors: list[ScanError] = []
    violations = check(scan(text, diagnostics=errors), rules, file_path=file_path)
    diagnostics = tuple(
        ScanDiagnostic(file_path=file_path, line=error.line, message=error.message) for error in errors
    )
    for item in diagnostics:
        logger.debug("%s:%d: %s", item.file_path, item.line, item.message)
    return FileResult(file_path=Path(file_path), violations=tuple(violations), diagnostics=diagnostics)


def check_file(path: Path, rules: Sequence[Rule]) -> FileResult:
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (UnicodeDecodeError, OSError) as exc:
        logger.warning("Cannot read %s: %s", path, exc)
        return FileResult(
            file_path=path,
            diagnostics=(ScanDiagnostic(file_path=str(path), line=0, message=f"cannot read file: {exc}"),),
        )

    return check_source(text, rules, file_path=str(path))
