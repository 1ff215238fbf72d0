"""Declaration and construct scanner for game-engine C# scripts.

This is not a C# parser. It tracks block nesting over the token stream,
classifies each statement or block header by the context it appears in
(namespace, type body, enum body, property accessors, method body) and
reports:

- declared names (types, members, enum members, constants)
- block-opening braces, with the source line they sit on
- numeric literals and null tests inside method bodies
- calls made from per-frame engine callbacks such as ``Update``

Anything it cannot make sense of is skipped; malformed fragments are
recorded as ``ScanError`` diagnostics and scanning continues.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from style_scanner.models import Identifier
from style_scanner.scanners.lexer import ASSIGNMENT_OPERATORS, ScanError, Token, tokenize


ACCESS_MODIFIERS = frozenset({"public", "private", "protected", "internal"})

MODIFIERS = ACCESS_MODIFIERS | frozenset(
    {
        "static",
        "readonly",
        "const",
        "volatile",
        "virtual",
        "override",
        "abstract",
        "sealed",
        "extern",
        "unsafe",
        "new",
        "partial",
        "async",
        "required",
        "file",
        "ref",
    }
)

TYPE_KEYWORDS = frozenset({"class", "struct", "interface", "enum", "record"})

PER_FRAME_METHODS = frozenset({"Update", "FixedUpdate", "LateUpdate", "OnGUI"})

# Words followed by "(" that are not calls.
CALL_KEYWORDS = frozenset(
    {
        "if",
        "while",
        "for",
        "foreach",
        "switch",
        "using",
        "lock",
        "catch",
        "when",
        "fixed",
        "checked",
        "unchecked",
        "nameof",
        "typeof",
        "sizeof",
        "default",
        "return",
        "await",
        "this",
        "base",
        "stackalloc",
    }
)

OPERAND_STOP_WORDS = frozenset(
    {"return", "is", "not", "new", "await", "throw", "yield", "in", "out", "var", "case", "when"}
)

BODY_EXPRESSION_WORDS = frozenset({"=>", "return", "new", "yield", "throw", "await"})


@dataclass
class _Frame:
    kind: str
    name: str = ""
    type_kind: str = ""
    per_frame: bool = False
    open_line: int = 0


def scan(source_text: str, *, diagnostics: list[ScanError] | None = None) -> Iterator[Identifier]:
    """Lazily yield identifiers and style constructs found in ``source_text``.

    The result is a pure function of the text: scanning the same text again
    yields an identical sequence. Recovered problems are appended to
    ``diagnostics`` when a list is supplied.
    """
    errors: list[ScanError] = diagnostics if diagnostics is not None else []
    return _CSharpScanner(source_text, errors).identifiers()


class _CSharpScanner:
    def __init__(self, source: str, errors: list[ScanError]):
        self.source = source
        self.lines = [line.rstrip("\r") for line in source.split("\n")]
        self.errors = errors
        self.stack: list[_Frame] = [_Frame("root")]
        self.pending: list[Token] = []
        self.depth = 0
        self.brace_nest = 0
        self.prev_line = 0

    def identifiers(self) -> Iterator[Identifier]:
        reported = len(self.errors)
        for token in tokenize(self.source, self.errors):
            if len(self.errors) != reported:
                # the lexer cut the statement in progress short; drop it
                self._take_pending()
            yield from self._feed(token)
            self.prev_line = token.line
            reported = len(self.errors)

        yield from self._end_statement(self.stack[-1])
        unclosed = len(self.stack) - 1
        if unclosed:
            self.errors.append(
                ScanError(f"unexpected end of input with {unclosed} unclosed block(s)", self.prev_line)
            )

    def _feed(self, token: Token) -> Iterator[Identifier]:
        frame = self.stack[-1]
        text = token.text

        if token.kind != "punct":
            self.pending.append(token)
            return

        if frame.kind == "enum" and not self.depth and not self.brace_nest and text in (",", "}"):
            yield from self._enum_member()
            if text == "}":
                self._pop(token)
            return

        if text in ("(", "["):
            self.depth += 1
            self.pending.append(token)
        elif text in (")", "]"):
            self.depth = max(0, self.depth - 1)
            self.pending.append(token)
        elif text == "{":
            if self.depth or self.brace_nest or self._is_expression_brace(frame):
                self.brace_nest += 1
                self.pending.append(token)
            else:
                yield from self._open_block(token, frame)
        elif text == "}":
            if self.brace_nest:
                self.brace_nest -= 1
                self.pending.append(token)
                return
            if self.depth:
                self.errors.append(ScanError("unbalanced parentheses before closing brace", token.line))
                self.depth = 0
            yield from self._end_statement(frame)
            self._pop(token)
        elif text == ";" and not self.depth and not self.brace_nest:
            yield from self._end_statement(frame)
        else:
            self.pending.append(token)

    def _pop(self, token: Token) -> None:
        self.pending = []
        if len(self.stack) == 1:
            self.errors.append(ScanError("unbalanced closing brace", token.line))
            return
        self.stack.pop()

    def _take_pending(self) -> list[Token]:
        tokens = self.pending
        self.pending = []
        self.depth = 0
        self.brace_nest = 0
        return tokens

    def _is_expression_brace(self, frame: _Frame) -> bool:
        top = {token.text for token in _top_level(self.pending)}
        if frame.kind == "body":
            return bool(top & ASSIGNMENT_OPERATORS or top & BODY_EXPRESSION_WORDS)
        if frame.kind == "enum":
            return True
        return "=" in top or "=>" in top

    def _brace(self, token: Token) -> Identifier:
        if token.line != self.prev_line:
            text = "{"
        else:
            text = self.lines[token.line - 1].strip()
        return Identifier(text, "brace", token.line)

    # Block headers

    def _open_block(self, token: Token, frame: _Frame) -> Iterator[Identifier]:
        tokens = self._take_pending()

        if frame.kind == "accessors":
            # { get { return _x; } } on one line is left alone
            if token.line != frame.open_line:
                yield self._brace(token)
            self.stack.append(_Frame("body", frame.name))
            return

        if frame.kind == "body":
            yield from _constructs(tokens, frame.per_frame)
            yield self._brace(token)
            self.stack.append(_Frame("body", frame.name, per_frame=frame.per_frame))
            return

        decl = _strip_attributes(tokens)
        type_decl = _type_declaration(decl)
        if type_decl is not None:
            kind, name_token = type_decl
            yield Identifier(name_token.text, kind, name_token.line, _modifiers(decl, frame))
            yield self._brace(token)
            if kind == "enum":
                self.stack.append(_Frame("enum", name_token.text, type_kind=kind))
            else:
                self.stack.append(_Frame("type", name_token.text, type_kind=kind))
            return

        if frame.kind != "type":
            yield self._brace(token)
            self.stack.append(_Frame("namespace"))
            return

        if not decl:
            yield self._brace(token)
            self.stack.append(_Frame("body", frame.name))
            return

        method_index = _method_name_index(decl)
        if method_index is not None:
            name_token = decl[method_index]
            if _is_method(decl, method_index, frame):
                yield Identifier(name_token.text, "method", name_token.line, _modifiers(decl, frame))
            yield self._brace(token)
            self.stack.append(
                _Frame("body", name_token.text, per_frame=name_token.text in PER_FRAME_METHODS)
            )
            return

        name_token = _last_top_level_ident(decl)
        if name_token is not None and name_token.text != "this":
            kind = "event" if _has_top_level(decl, "event") else "property"
            yield Identifier(name_token.text, kind, name_token.line, _modifiers(decl, frame))
        self.stack.append(
            _Frame("accessors", name_token.text if name_token else "", open_line=token.line)
        )

    # Statements

    def _end_statement(self, frame: _Frame) -> Iterator[Identifier]:
        tokens = self._take_pending()
        if not tokens:
            return

        if frame.kind == "body":
            yield from _body_statement(tokens, frame)
        elif frame.kind == "accessors":
            yield from _constructs(_after_arrow(tokens), False)
        elif frame.kind == "type":
            yield from _member_statement(_strip_attributes(tokens), frame)
        elif frame.kind in ("root", "namespace"):
            decl = _strip_attributes(tokens)
            if _has_top_level(decl, "delegate"):
                yield from _delegate(decl, frame)

    def _enum_member(self) -> Iterator[Identifier]:
        tokens = _strip_attributes(self._take_pending())
        if tokens and tokens[0].kind == "ident":
            yield Identifier(tokens[0].text, "enum-member", tokens[0].line, frozenset({"public"}))


def _body_statement(tokens: list[Token], frame: _Frame) -> Iterator[Identifier]:
    if _has_top_level(tokens, "const"):
        for name_token in _declarator_names(tokens):
            yield Identifier(name_token.text, "constant", name_token.line, frozenset({"const", "local"}))
        return
    yield from _constructs(tokens, frame.per_frame)


def _member_statement(decl: list[Token], frame: _Frame) -> Iterator[Identifier]:
    if not decl:
        return
    if _has_top_level(decl, "delegate"):
        yield from _delegate(decl, frame)
        return
    if _has_top_level(decl, "operator"):
        return

    method_index = _method_name_index(decl)
    if method_index is not None:
        name_token = decl[method_index]
        if _is_method(decl, method_index, frame):
            yield Identifier(name_token.text, "method", name_token.line, _modifiers(decl, frame))
        yield from _constructs(_after_arrow(decl), name_token.text in PER_FRAME_METHODS)
        return

    arrow = _top_level_index(decl, "=>")
    if arrow < _top_level_index(decl, "="):
        head = decl[:arrow]
        name_token = _last_top_level_ident(head)
        if name_token is not None and name_token.text != "this":
            yield Identifier(name_token.text, "property", name_token.line, _modifiers(decl, frame))
        yield from _constructs(_after_arrow(decl), False)
        return

    if _has_top_level(decl, "const"):
        kind = "constant"
    elif _has_top_level(decl, "event"):
        kind = "event"
    else:
        kind = "field"

    modifiers = _modifiers(decl, frame)
    for name_token in _declarator_names(decl):
        yield Identifier(name_token.text, kind, name_token.line, modifiers)


def _delegate(decl: list[Token], frame: _Frame) -> Iterator[Identifier]:
    index = _method_name_index(decl)
    if index is not None:
        name_token = decl[index]
        yield Identifier(name_token.text, "delegate", name_token.line, _modifiers(decl, frame))


def _is_method(decl: list[Token], index: int, frame: _Frame) -> bool:
    name = decl[index].text
    if name == frame.name:
        return False
    if index > 0 and decl[index - 1].text == "~":
        return False
    return not _has_top_level(decl, "operator")


# Construct extraction


def _constructs(tokens: list[Token], per_frame: bool) -> Iterator[Identifier]:
    count = len(tokens)
    patterns = _pattern_indexes(tokens)
    for i, token in enumerate(tokens):
        text = token.text
        next_text = tokens[i + 1].text if i + 1 < count else ""

        if token.kind == "number":
            if i not in patterns:
                yield Identifier(text, "number", token.line)
            continue

        if text in ("==", "!="):
            if next_text == "null":
                yield Identifier(f"{_operand_before(tokens, i)} {text} null", "null-check", token.line)
            elif i > 0 and tokens[i - 1].text == "null":
                yield Identifier(f"null {text} {_operand_after(tokens, i)}", "null-check", token.line)
        elif text == "is" and next_text == "null":
            yield Identifier(f"{_operand_before(tokens, i)} is null", "null-check", token.line)
        elif text == "is" and next_text == "not" and i + 2 < count and tokens[i + 2].text == "null":
            yield Identifier(f"{_operand_before(tokens, i)} is not null", "null-check", token.line)
        elif text == "?.":
            member = next_text if i + 1 < count and tokens[i + 1].kind == "ident" else ""
            yield Identifier(f"{_operand_before(tokens, i)}?.{member}", "null-check", token.line)
        elif text in ("??", "??="):
            yield Identifier(
                f"{_operand_before(tokens, i)} {text} {_operand_after(tokens, i)}",
                "null-check",
                token.line,
            )

        if per_frame and token.kind == "ident":
            call = _frame_call(tokens, i)
            if call is not None:
                yield Identifier(call, "frame-call", token.line)


def _pattern_indexes(tokens: list[Token]) -> set[int]:
    """Indexes of tokens inside ``case`` labels and switch expression arm patterns.

    A ``when`` guard ends the pattern; its operands are ordinary code.
    """
    found: set[int] = set()
    arm_depths: list[int] = []
    depth = 0
    mode = ""
    for index, token in enumerate(tokens):
        text = token.text
        if text in ("(", "[", "{"):
            depth += 1
            if text == "{" and index and tokens[index - 1].text == "switch":
                arm_depths.append(depth)
                mode = "arm"
                continue
        elif text in (")", "]", "}"):
            if text == "}" and arm_depths and arm_depths[-1] == depth:
                arm_depths.pop()
                mode = ""
            depth = max(0, depth - 1)
        elif text == "case":
            mode = "case"
        elif mode == "case" and text in (":", "when"):
            mode = ""
        elif arm_depths and depth == arm_depths[-1]:
            if text in ("=>", "when"):
                mode = ""
            elif text == ",":
                mode = "arm"
        if mode:
            found.add(index)
    return found


def _frame_call(tokens: list[Token], i: int) -> str | None:
    token = tokens[i]
    if token.text in CALL_KEYWORDS:
        return None

    j: int | None = i + 1
    if j < len(tokens) and tokens[j].text == "<":
        j = _skip_generic(tokens, j)
    if j is not None and j < len(tokens) and tokens[j].text == "(":
        if i > 0 and tokens[i - 1].text == "new":
            return None
        return _dotted_chain(tokens, i)

    if (
        token.text == "main"
        and i >= 2
        and tokens[i - 1].text == "."
        and tokens[i - 2].text == "Camera"
        and (i + 1 >= len(tokens) or tokens[i + 1].text != "(")
    ):
        return "Camera.main"
    return None


def _dotted_chain(tokens: list[Token], i: int) -> str:
    parts = [tokens[i].text]
    j = i - 1
    while j >= 1 and tokens[j].text == "." and tokens[j - 1].kind == "ident":
        parts.append(tokens[j - 1].text)
        j -= 2
    return ".".join(reversed(parts))


def _operand_before(tokens: list[Token], i: int) -> str:
    parts: list[str] = []
    last = ""
    j = i - 1
    while j >= 0:
        token = tokens[j]
        text = token.text
        if text in (")", "]") and last != "ident":
            opener = _matching_backward(tokens, j, "(" if text == ")" else "[", text)
            if opener is None:
                break
            parts.append("()" if text == ")" else "[]")
            last = "group"
            j = opener - 1
            continue
        if text == ">" and last != "ident":
            opener = _matching_backward(tokens, j, "<", ">")
            if opener is None or opener == 0 or tokens[opener - 1].kind != "ident":
                break
            parts.append("<" + "".join(t.text for t in tokens[opener + 1 : j]) + ">")
            last = "group"
            j = opener - 1
            continue
        if token.kind == "ident" and last != "ident" and text not in OPERAND_STOP_WORDS:
            parts.append(text)
            last = "ident"
            j -= 1
            continue
        if text in (".", "?.") and last in ("ident", "group"):
            parts.append(text)
            last = "dot"
            j -= 1
            continue
        break

    if last == "dot":
        parts.pop()
    if not parts:
        return tokens[i - 1].text if i > 0 else ""
    return "".join(reversed(parts))


def _operand_after(tokens: list[Token], i: int) -> str:
    parts: list[str] = []
    j = i + 1
    while j < len(tokens):
        token = tokens[j]
        if token.kind == "ident" and (not parts or parts[-1] in (".", "?.")):
            parts.append(token.text)
        elif token.text in (".", "?.") and parts and parts[-1] not in (".", "?."):
            parts.append(token.text)
        elif token.text == "(" and parts:
            parts.append("()")
            break
        else:
            break
        j += 1

    if parts and parts[-1] in (".", "?."):
        parts.pop()
    if not parts:
        return tokens[i + 1].text if i + 1 < len(tokens) else ""
    return "".join(parts)


# Token-list helpers


def _top_level(tokens: list[Token]) -> Iterator[Token]:
    depth = 0
    for token in tokens:
        if token.text in ("(", "[", "{"):
            depth += 1
            continue
        if token.text in (")", "]", "}"):
            depth = max(0, depth - 1)
            continue
        if depth == 0:
            yield token


def _has_top_level(tokens: list[Token], text: str) -> bool:
    return any(token.text == text for token in _top_level(tokens))


def _top_level_index(tokens: list[Token], text: str) -> int:
    depth = 0
    for index, token in enumerate(tokens):
        if token.text in ("(", "[", "{"):
            depth += 1
        elif token.text in (")", "]", "}"):
            depth = max(0, depth - 1)
        elif depth == 0 and token.text == text:
            return index
    return len(tokens)


def _after_arrow(tokens: list[Token]) -> list[Token]:
    index = _top_level_index(tokens, "=>")
    return tokens[index + 1 :]


def _strip_attributes(tokens: list[Token]) -> list[Token]:
    start = 0
    while start < len(tokens) and tokens[start].text == "[":
        depth = 0
        for index in range(start, len(tokens)):
            if tokens[index].text == "[":
                depth += 1
            elif tokens[index].text == "]":
                depth -= 1
                if depth == 0:
                    start = index + 1
                    break
        else:
            return []
    return tokens[start:]


def _modifiers(decl: list[Token], frame: _Frame) -> frozenset[str]:
    found: set[str] = set()
    for token in decl:
        if token.text not in MODIFIERS:
            break
        found.add(token.text)

    if not found & ACCESS_MODIFIERS:
        if frame.kind in ("root", "namespace"):
            found.add("internal")
        elif frame.type_kind == "interface":
            found.add("public")
        else:
            found.add("private")
    return frozenset(found)


def _type_declaration(decl: list[Token]) -> tuple[str, Token] | None:
    for index, token in enumerate(decl):
        if token.text in ("(", "=", "=>"):
            return None
        if token.text not in TYPE_KEYWORDS:
            continue

        kind = token.text
        name_index = index + 1
        if kind == "record":
            kind = "class"
            if name_index < len(decl) and decl[name_index].text in ("class", "struct"):
                kind = decl[name_index].text
                name_index += 1
        if name_index < len(decl) and decl[name_index].kind == "ident":
            return kind, decl[name_index]
        return None
    return None


def _method_name_index(decl: list[Token]) -> int | None:
    depth = 0
    for index, token in enumerate(decl):
        text = token.text
        if depth == 0 and text in ("=", "=>"):
            return None
        if text == "(":
            if depth == 0:
                j = index - 1
                if j >= 0 and decl[j].text == ">":
                    opener = _matching_backward(decl, j, "<", ">")
                    j = opener - 1 if opener is not None else -1
                if (
                    j >= 0
                    and decl[j].kind == "ident"
                    and decl[j].text not in MODIFIERS
                    and decl[j].text not in ("this", "operator", "delegate")
                ):
                    return j
            depth += 1
        elif text == "[":
            depth += 1
        elif text in (")", "]"):
            depth = max(0, depth - 1)
    return None


def _last_top_level_ident(tokens: list[Token]) -> Token | None:
    found: Token | None = None
    angle = 0
    for token in _top_level(tokens):
        if token.text == "<":
            angle += 1
        elif token.text == ">":
            angle = max(0, angle - 1)
        elif token.kind == "ident" and not angle:
            found = token
    return found


def _declarator_names(decl: list[Token]) -> list[Token]:
    """Names declared by a field, event or constant statement.

    ``int a, b = 2, c;`` declares three names; generic arguments and
    initializer expressions are skipped.
    """
    names: list[Token] = []
    candidate: Token | None = None
    in_initializer = False
    idents_seen = 0
    depth = 0

    for token in decl:
        text = token.text
        if text in ("(", "[", "{"):
            depth += 1
            continue
        if text in (")", "]", "}"):
            depth = max(0, depth - 1)
            if not depth and not in_initializer and text == ")":
                # tuple type such as (int, int)
                idents_seen += 1
            continue
        if not in_initializer and text == "<":
            depth += 1
            continue
        if not in_initializer and text == ">":
            depth = max(0, depth - 1)
            continue
        if depth:
            continue

        if text == "=":
            if candidate is not None and idents_seen >= 2:
                names.append(candidate)
            candidate = None
            in_initializer = True
        elif text == ",":
            if not in_initializer and candidate is not None and (idents_seen >= 2 or names):
                names.append(candidate)
            candidate = None
            in_initializer = False
        elif (
            not in_initializer
            and token.kind == "ident"
            and text not in MODIFIERS
            and text not in ("event", "fixed")
        ):
            candidate = token
            idents_seen += 1

    if candidate is not None and not in_initializer and (idents_seen >= 2 or names):
        names.append(candidate)
    return names


def _matching_backward(tokens: list[Token], index: int, opener: str, closer: str) -> int | None:
    depth = 0
    for j in range(index, -1, -1):
        text = tokens[j].text
        if text == closer:
            depth += 1
        elif text == opener:
            depth -= 1
            if depth == 0:
                return j
    return None


def _skip_generic(tokens: list[Token], index: int) -> int | None:
    depth = 0
    for j in range(index, len(tokens)):
        token = tokens[j]
        if token.text == "<":
            depth += 1
        elif token.text == ">":
            depth -= 1
            if depth == 0:
                return j + 1
        elif token.kind != "ident" and token.text not in (".", ",", "[", "]", "?"):
            return None
    return None
