from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator


class ScanError(ValueError):
    def __init__(self, message: str, line: int):
        super().__init__(message)
        self.message = message
        self.line = line


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    line: int


IDENT_RE = re.compile(r"@?[^\W\d]\w*")
NUMBER_RE = re.compile(
    r"0[xX][0-9a-fA-F_]+[uUlL]*"
    r"|0[bB][01_]+[uUlL]*"
    r"|\d[\d_]*(?:\.\d[\d_]*)?(?:[eE][+-]?\d+)?[fFdDmMuUlL]*"
    r"|\.\d[\d_]*(?:[eE][+-]?\d+)?[fFdDmMuUlL]*"
)

# Longest first. '>' stays single so nested generics close one level at a time.
OPERATORS = (
    "??=",
    "<<=",
    "?.",
    "??",
    "=>",
    "==",
    "!=",
    "<=",
    ">=",
    "&&",
    "||",
    "++",
    "--",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "&=",
    "|=",
    "^=",
    "<<",
    "::",
    "->",
)

ASSIGNMENT_OPERATORS = frozenset(
    {"=", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "<<=", "??="}
)


def tokenize(source: str, errors: list[ScanError] | None = None) -> Iterator[Token]:
    """Yield C# tokens, skipping whitespace, comments and preprocessor lines.

    String and char literals are yielded with their contents dropped.
    Unterminated fragments are reported through ``errors`` and skipped.
    """
    pos = 0
    line = 1
    length = len(source)
    at_line_start = True

    def report(message: str, at_line: int) -> None:
        if errors is not None:
            errors.append(ScanError(message, at_line))

    while pos < length:
        char = source[pos]

        if char == "\n":
            line += 1
            pos += 1
            at_line_start = True
            continue
        if char in " \t\r\f\v\ufeff":
            pos += 1
            continue

        if char == "#" and at_line_start:
            end = source.find("\n", pos)
            pos = length if end == -1 else end
            continue

        at_line_start = False

        if source.startswith("//", pos):
            end = source.find("\n", pos)
            pos = length if end == -1 else end
            continue

        if source.startswith("/*", pos):
            end = source.find("*/", pos + 2)
            if end == -1:
                report("unterminated block comment", line)
                return
            line += source.count("\n", pos, end)
            pos = end + 2
            continue

        string_match = _string_prefix(source, pos)
        if string_match is not None:
            start_line = line
            end, newlines, ok = _skip_string(source, pos, string_match)
            line += newlines
            if not ok:
                report("unterminated string literal", start_line)
                if "@" in string_match or string_match.endswith('"""'):
                    return
                pos = end
                continue
            yield Token("string", '""', start_line)
            pos = end
            continue

        if char == "'":
            end = _skip_char(source, pos)
            if end is None:
                report("unterminated character literal", line)
                newline = source.find("\n", pos)
                pos = length if newline == -1 else newline
                continue
            yield Token("char", "''", line)
            pos = end
            continue

        if char.isdigit() or (char == "." and pos + 1 < length and source[pos + 1].isdigit()):
            match = NUMBER_RE.match(source, pos)
            if match is not None and match.end() > pos:
                yield Token("number", match.group(0), line)
                pos = match.end()
                continue

        ident = IDENT_RE.match(source, pos)
        if ident is not None:
            yield Token("ident", ident.group(0).lstrip("@"), line)
            pos = ident.end()
            continue

        for op in OPERATORS:
            if source.startswith(op, pos):
                if op == "?." and pos + 2 < length and source[pos + 2].isdigit():
                    continue
                yield Token("punct", op, line)
                pos += len(op)
                break
        else:
            yield Token("punct", char, line)
            pos += 1


def _string_prefix(source: str, pos: int) -> str | None:
    for prefix in ('$@"', '@$"', '$"""', '"""', '@"', '$"', '"'):
        if source.startswith(prefix, pos):
            return prefix
    return None


def _skip_string(source: str, pos: int, prefix: str) -> tuple[int, int, bool]:
    """Return (end position, newlines consumed, terminated)."""
    length = len(source)
    verbatim = "@" in prefix
    interpolated = "$" in prefix
    i = pos + len(prefix)

    if prefix.endswith('"""'):
        end = source.find('"""', i)
        if end == -1:
            return length, source.count("\n", pos), False
        return end + 3, source.count("\n", pos, end), True

    newlines = 0
    depth = 0
    while i < length:
        char = source[i]
        if char == "\n":
            if not verbatim and depth == 0:
                return i, newlines, False
            newlines += 1
            i += 1
            continue
        if interpolated and char == "{":
            if depth == 0 and source.startswith("{{", i):
                i += 2
                continue
            depth += 1
            i += 1
            continue
        if interpolated and char == "}":
            if depth == 0 and source.startswith("}}", i):
                i += 2
                continue
            depth = max(0, depth - 1)
            i += 1
            continue
        if char == '"' and depth > 0:
            end, inner_newlines, ok = _skip_string(source, i, '"')
            newlines += inner_newlines
            if not ok:
                return end, newlines, False
            i = end
            continue
        if char == "\\" and not verbatim:
            # a regular string cannot continue past a line break, escaped or not
            i += 1 if source.startswith("\n", i + 1) else 2
            continue
        if char == '"':
            if verbatim and source.startswith('""', i):
                i += 2
                continue
            return i + 1, newlines, True
        i += 1

    return length, newlines, False


def _skip_char(source: str, pos: int) -> int | None:
    i = pos + 1
    length = len(source)
    while i < length and source[i] != "\n":
        if source[i] == "\\":
            i += 1 if source.startswith("\n", i + 1) else 2
            continue
        if source[i] == "'":
            return i + 1 if i > pos + 1 else None
        i += 1
    return None
