"""
  dpm Reader: lexer and parser

- Streaming tokenizer, recursive-descent parser
- Emits interpreter values directly (no separate AST):

    - nil            -> Nil
    - #t / #f        -> True / False
    - integers       -> int (whole decimal, optional sign, 64-bit)
    - strings        -> str
    - other atoms    -> Symbol
    - ( ... )        -> tuple
    - 'expr          -> (quote expr)

Every syntax error is raised as DpmParseError carrying the offset, line and
column of the offending character.
"""

from __future__ import annotations

import re
from typing import Iterator, Optional

from dpm import SExpression
from dpm.errors import DpmParseError
from dpm.types.nil import Nil
from dpm.types.symbol import Symbol
from dpm.types.values import in_int64_range

QUOTE = Symbol("quote")

TOKEN_RE = re.compile(
    r"(?P<comment>;[^\n]*)"  # single-line comment
    r"|(?P<quote>')"  # 'expr shorthand
    r"|(?P<lparen>\()"  # (
    r"|(?P<rparen>\))"  # )
    r'|(?P<string>"(?:\\.|[^\\"])*")'  # double-quoted strings
    r'|(?P<open_string>")'  # string with no closing quote
    r"|(?P<atom>[^\s()'\";]+)",  # integers, nil, booleans, symbols
    re.DOTALL,
)

INT_RE = re.compile(r"[+-]?[0-9]+")

# Deepest list or quote nesting the reader accepts; evaluation recurses per level.
MAX_NESTING = 256

STRING_ESCAPES: dict[str, str] = {
    '"': '"',
    "\\": "\\",
    "n": "\n",
    "t": "\t",
    "r": "\r",
}

Token = tuple[str, str, int]


def line_col(source: str, pos: int) -> tuple[int, int]:
    """1-based (line, column) of offset `pos` in `source`."""
    line = source.count("\n", 0, pos) + 1
    col = pos - (source.rfind("\n", 0, pos) + 1) + 1
    return line, col


def parse_error(source: str, message: str, pos: int) -> DpmParseError:
    line, col = line_col(source, pos)
    return DpmParseError(message, pos, line, col)


def lex(source: str) -> Iterator[Token]:
    """Token generator: yields (token_type, token_value, offset) tuples."""
    pos = 0
    n = len(source)
    while pos < n:
        if source[pos].isspace():
            pos += 1
            continue
        m = TOKEN_RE.match(source, pos)
        if m is None:
            raise parse_error(source, f"Unexpected character {source[pos]!r}", pos)
        kind = m.lastgroup
        if kind == "open_string":
            raise parse_error(source, "Unterminated string", pos)
        if kind != "comment":
            yield kind, m.group(kind), pos
        pos = m.end()


def decode_string(source: str, token: str, pos: int) -> str:
    """Strip the quotes from a string token and resolve its escapes."""
    body = token[1:-1]
    out: list[str] = []
    i = 0
    while i < len(body):
        c = body[i]
        if c == "\\":
            esc = body[i + 1]
            if esc not in STRING_ESCAPES:
                raise parse_error(source, f"Unknown escape sequence '\\{esc}'", pos + 1 + i)
            out.append(STRING_ESCAPES[esc])
            i += 2
            continue
        out.append(c)
        i += 1
    return "".join(out)


class _EndOfInput:
    def __repr__(self):
        return "<end of input>"


EOF = _EndOfInput()


class TokenStream:
    def __init__(self, source: str):
        self.source = source
        self.tokens = lex(source)
        self.buffer: list[Token] = []
        self.depth = 0

    def peek(self) -> Optional[Token]:
        if not self.buffer:
            try:
                self.buffer.append(next(self.tokens))
            except StopIteration:
                return None
        return self.buffer[0]

    def advance(self) -> Optional[Token]:
        if self.buffer:
            return self.buffer.pop(0)
        return next(self.tokens, None)

    def error(self, message: str, pos: int) -> DpmParseError:
        return parse_error(self.source, message, pos)

    def parse_atom(self, text: str, pos: int) -> SExpression:
        if INT_RE.fullmatch(text):
            n = int(text)
            if not in_int64_range(n):
                raise self.error(f"Integer literal out of range: {text}", pos)
            return n
        if text == "nil":
            return Nil
        if text == "#t":
            return True
        if text == "#f":
            return False
        return Symbol(text)

    def parse_expr(self) -> SExpression:
        """Parse the next expression, or return EOF when input is exhausted."""
        tok = self.advance()
        if tok is None:
            return EOF
        kind, text, pos = tok

        if kind in ("quote", "lparen"):
            if self.depth >= MAX_NESTING:
                raise self.error(f"Expression nested too deeply (limit {MAX_NESTING})", pos)
            self.depth += 1
            try:
                return self.parse_nested(kind, pos)
            finally:
                self.depth -= 1

        if kind == "atom":
            return self.parse_atom(text, pos)

        if kind == "string":
            return decode_string(self.source, text, pos)

        if kind == "rparen":
            raise self.error("Unexpected ')'", pos)

        raise self.error(f"Unknown token: {kind} {text}", pos)

    def parse_nested(self, kind: str, pos: int) -> SExpression:
        if kind == "quote":
            expr = self.parse_expr()
            if expr is EOF:
                raise self.error("Expected an expression after quote", pos)
            return QUOTE, expr

        items = []
        while True:
            nxt = self.peek()
            if nxt is None:
                raise self.error("Unbalanced parentheses: missing ')'", pos)
            if nxt[0] == "rparen":
                self.advance()
                return tuple(items)
            items.append(self.parse_expr())

    def parse_all(self) -> Iterator[SExpression]:
        while (expr := self.parse_expr()) is not EOF:
            yield expr


def read_all(source: str) -> list[SExpression]:
    """Read every top-level form in `source`; an empty source yields []."""
    return list(TokenStream(source).parse_all())


def read(source: str) -> SExpression:
    """Read exactly one expression from `source`."""
    stream = TokenStream(source)
    expr = stream.parse_expr()
    if expr is EOF:
        raise stream.error("No expression found", len(source))
    extra = stream.peek()
    if extra is not None:
        raise stream.error("Unexpected input after expression", extra[2])
    return expr
