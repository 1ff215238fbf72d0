"""Naming, brace and performance convention checks for game-engine C# scripts."""

from style_scanner.checker import check
from style_scanner.config import ConfigError, load_rules
from style_scanner.reporting import format_violations
from style_scanner.scanners import scan

__all__ = ["ConfigError", "check", "format_violations", "load_rules", "scan"]
