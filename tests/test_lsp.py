import pytest
from lsprotocol.types import CompletionItemKind, DiagnosticSeverity

from dpm_lsp.indexer import SPECIAL_FORM_SIGNATURES, build_index, signature_table, unknown_calls
from dpm_lsp.server import (
    completion_items,
    compute_diagnostics,
    extract_callee_name,
    extract_word_at,
    get_line_prefix,
    hover_text,
    signature_for,
)

SOURCE = (
    "; build script\n"
    "(print (sum 1 2))\n"
    "'(bogus 1)\n"
    "(quote (also-bogus (nested)))\n"
    "  (undefined-cmd \"(not-a-call)\")\n"
    "(if #t (nil-cmd) (42))\n"
)


def test_index_records_call_sites_outside_quoted_data():
    idx = build_index(SOURCE)
    assert idx.parse_error is None
    assert [(c.name, c.line, c.col) for c in idx.calls] == [
        ("print", 1, 1),
        ("sum", 1, 8),
        ("quote", 3, 1),
        ("undefined-cmd", 4, 3),
        ("if", 5, 1),
        ("nil-cmd", 5, 8),
    ]


def test_unknown_calls(registry):
    idx = build_index(SOURCE)
    assert [c.name for c in unknown_calls(idx, registry)] == ["undefined-cmd", "nil-cmd"]


def test_index_keeps_parse_error_and_partial_calls():
    idx = build_index("(print 1)\n(docker \"x\"")
    assert idx.parse_error is not None
    assert idx.parse_error.line == 2
    assert [c.name for c in idx.calls] == ["print", "docker"]


def test_diagnostics(registry):
    idx = build_index('(print 1)\n(bogus "x")\n(sum 1')
    diags = compute_diagnostics(idx, registry)
    assert len(diags) == 2

    parse_diag, unknown_diag = diags
    assert parse_diag.severity == DiagnosticSeverity.Error
    assert parse_diag.message == "Unbalanced parentheses: missing ')'"
    assert (parse_diag.range.start.line, parse_diag.range.start.character) == (2, 0)

    assert unknown_diag.severity == DiagnosticSeverity.Warning
    assert unknown_diag.message == "Unknown command: bogus"
    assert (unknown_diag.range.start.line, unknown_diag.range.start.character) == (1, 1)
    assert unknown_diag.range.end.character == 6


def test_clean_document_has_no_diagnostics(registry):
    assert compute_diagnostics(build_index('(set-var "A" "b")\n(docker "build")\n'), registry) == []


def test_hover_text(registry):
    assert hover_text("if", registry) == "(if condition then [else])\n\nspecial form"
    assert hover_text("set-var", registry) == (
        "(set-var key value)\n\nSet a variable in the context with the given key and value [Command Management]"
    )
    assert hover_text("nothing-here", registry) is None


def test_completion_lists_forms_and_commands(registry):
    items = completion_items(registry)
    labels = [i.label for i in items]
    assert labels[:len(SPECIAL_FORM_SIGNATURES)] == list(SPECIAL_FORM_SIGNATURES)
    assert set(registry.names()) <= set(labels)
    kinds = {i.label: i.kind for i in items}
    assert kinds["let"] == CompletionItemKind.Keyword
    assert kinds["docker"] == CompletionItemKind.Function


def test_signature_table_prefers_special_forms(registry):
    table = signature_table(registry)
    assert table["pipe"] == "(pipe first (command args ...) ...)"
    assert table["read-env"] == "(read-env path)"


def test_signature_for(registry):
    help_ = signature_for("set-var", registry)
    (sig,) = help_.signatures
    assert sig.label == "(set-var key value)"
    assert [p.label for p in sig.parameters] == ["key", "value"]
    assert signature_for("nothing-here", registry) is None


@pytest.mark.parametrize(
    "text,line,character,expected",
    [
        ('(help "x")', 0, 3, "help"),
        ('(help "x")', 0, 1, "help"),
        ("(a)\n  (docker-pre x)", 1, 8, "docker-pre"),
        ("(a)", 5, 0, None),
        ("( )", 0, 1, None),
    ]
)
def test_extract_word_at(text, line, character, expected):
    assert extract_word_at(text, line, character) == expected


@pytest.mark.parametrize(
    "prefix,expected",
    [
        ('(docker-pre "a" ', "docker-pre"),
        ("(print (sum 1 ", "sum"),
        ("(", None),
        ("no paren", None),
    ]
)
def test_extract_callee_name(prefix, expected):
    assert extract_callee_name(prefix) == expected


def test_get_line_prefix():
    assert get_line_prefix("(a b)\n(cd ef)", 1, 3) == "(cd"
    assert get_line_prefix("(a b)", 3, 0) == ""
