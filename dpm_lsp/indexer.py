from __future__ import annotations

"""
Lightweight indexer for dpm scripts that never evaluates code.

The scan is tolerant of partial buffers: it records every call site (the
symbol right after an opening paren) outside quoted data, and separately asks
the real reader for the first syntax error, if any.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import re

from dpm.commands import CommandRegistry
from dpm.errors import DpmParseError
from dpm.reader import read_all
from dpm.reader.parser import INT_RE

# Simple token patterns for scanning
TOKEN_REGEX = re.compile(
    r"\s+|;.*$|\(|\)|'|\"(?:\\.|[^\\\"])*\"?|[^\s()'\";]+",
    re.MULTILINE,
)

SPECIAL_FORM_SIGNATURES: Dict[str, str] = {
    "quote": "(quote expr)",
    "let": "(let name value)",
    "progn": "(progn expr ...)",
    "begin": "(begin expr ...)",
    "if": "(if condition then [else])",
    "pipe": "(pipe first (command args ...) ...)",
}


NON_SYMBOL_ATOMS = ("nil", "#t", "#f")


@dataclass
class CallSite:
    name: str
    line: int  # 0-based
    col: int  # 0-based


@dataclass
class DocumentIndex:
    calls: List[CallSite] = field(default_factory=list)
    parse_error: Optional[DpmParseError] = None


def _iter_tokens(text: str):
    for m in TOKEN_REGEX.finditer(text):
        tok = m.group(0)
        if not tok or tok.isspace() or tok.startswith(';'):
            continue
        yield tok, m.start()


def _position_from_offset(text: str, offset: int) -> Tuple[int, int]:
    # Return (line, col), 0-based
    line = text.count("\n", 0, offset)
    last_nl = text.rfind("\n", 0, offset)
    col = offset if last_nl == -1 else offset - last_nl - 1
    return line, col


def _is_symbol_token(tok: Optional[str]) -> bool:
    if tok is None or tok in ("(", ")", "'") or tok.startswith('"'):
        return False
    return tok not in NON_SYMBOL_ATOMS and not INT_RE.fullmatch(tok)


def build_index(text: str) -> DocumentIndex:
    idx = DocumentIndex()
    try:
        read_all(text)
    except DpmParseError as ex:
        idx.parse_error = ex

    tokens = list(_iter_tokens(text))
    # One entry per open list: True when its contents are data, not code.
    quoted: List[bool] = []
    pending_quote = False
    for i, (tok, start) in enumerate(tokens):
        if tok == "'":
            pending_quote = True
            continue
        if tok == '(':
            inside_data = pending_quote or (bool(quoted) and quoted[-1])
            head = tokens[i + 1][0] if i + 1 < len(tokens) else None
            if not inside_data and _is_symbol_token(head):
                line, col = _position_from_offset(text, tokens[i + 1][1])
                idx.calls.append(CallSite(name=head, line=line, col=col))
            quoted.append(inside_data or head == "quote")
        elif tok == ')':
            if quoted:
                quoted.pop()
        pending_quote = False
    return idx


def signature_table(registry: CommandRegistry) -> Dict[str, str]:
    """Signatures for hover/signature help: special forms plus every registered command."""
    table = dict(SPECIAL_FORM_SIGNATURES)
    for cmd in registry:
        table.setdefault(cmd.name, cmd.syntax)
    return table


def unknown_calls(idx: DocumentIndex, registry: CommandRegistry) -> List[CallSite]:
    return [
        c for c in idx.calls
        if c.name not in SPECIAL_FORM_SIGNATURES and c.name not in registry
    ]
