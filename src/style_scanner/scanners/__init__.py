from __future__ import annotations

from style_scanner.scanners.csharp import scan
from style_scanner.scanners.engine import check_file, check_source, iter_source_files
from style_scanner.scanners.lexer import ScanError

__all__ = ["ScanError", "check_file", "check_source", "iter_source_files", "scan"]
