from __future__ import annotations

"""
A minimal pygls-based Language Server for dpm scripts.

Features:
- Full-text synchronization, one DocumentState per open URI
- Diagnostics: reader errors, calls to commands that are not registered
- Hover: command description and syntax from the registry
- Completion: registered commands and special forms
- Signature Help: for special forms and registered commands

Buffers are never evaluated: each document gets a static index built from
the reader and a token scan (see dpm_lsp.indexer).
"""

from typing import Dict, Optional, List
from dataclasses import dataclass

from pygls.server import LanguageServer
from lsprotocol.types import (
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_HOVER,
    TEXT_DOCUMENT_SIGNATURE_HELP,
    CompletionItem,
    CompletionItemKind,
    CompletionList,
    CompletionOptions,
    CompletionParams,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    Hover,
    HoverParams,
    MarkupContent,
    MarkupKind,
    ParameterInformation,
    Position,
    Range,
    SignatureHelp,
    SignatureHelpOptions,
    SignatureHelpParams,
    SignatureInformation,
)

from dpm import __version__
from dpm.builtin import register_all
from dpm.commands import CommandRegistry
from dpm_lsp.indexer import (
    SPECIAL_FORM_SIGNATURES,
    DocumentIndex,
    build_index,
    signature_table,
    unknown_calls,
)

SOURCE = "dpm-ls"


@dataclass
class DocumentState:
    text: str
    index: DocumentIndex


class DpmLanguageServer(LanguageServer):
    CMD_NAME = "dpm-ls"

    def __init__(self, registry: CommandRegistry | None = None):
        super().__init__(self.CMD_NAME, __version__)
        self.registry = registry if registry is not None else register_all(CommandRegistry())
        self.documents: Dict[str, DocumentState] = {}


ls = DpmLanguageServer()


# --- Text sync ---
@ls.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(params: DidOpenTextDocumentParams):
    uri = params.text_document.uri
    _update_document(uri, params.text_document.text or "")


@ls.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: DidChangeTextDocumentParams):
    uri = params.text_document.uri
    if params.content_changes:
        text = params.content_changes[-1].text
    else:
        text = ls.documents[uri].text if uri in ls.documents else ""
    _update_document(uri, text)


@ls.feature(TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: DidCloseTextDocumentParams):
    uri = params.text_document.uri
    ls.documents.pop(uri, None)
    ls.publish_diagnostics(uri, [])


def _update_document(uri: str, text: str) -> None:
    idx = build_index(text)
    ls.documents[uri] = DocumentState(text=text, index=idx)
    ls.publish_diagnostics(uri, compute_diagnostics(idx, ls.registry))


# --- Diagnostics ---
def _mk_range(line: int, col: int, length: int = 1) -> Range:
    return Range(start=Position(line=line, character=col), end=Position(line=line, character=col + length))


def compute_diagnostics(idx: DocumentIndex, registry: CommandRegistry) -> List[Diagnostic]:
    diags: List[Diagnostic] = []

    if idx.parse_error is not None:
        err = idx.parse_error
        diags.append(
            Diagnostic(
                range=_mk_range(err.line - 1, err.column - 1),
                message=err.reason,
                severity=DiagnosticSeverity.Error,
                source=SOURCE,
            )
        )

    for call in unknown_calls(idx, registry):
        diags.append(
            Diagnostic(
                range=_mk_range(call.line, call.col, len(call.name)),
                message=f"Unknown command: {call.name}",
                severity=DiagnosticSeverity.Warning,
                source=SOURCE,
            )
        )
    return diags


# --- Hover ---
def hover_text(word: str, registry: CommandRegistry) -> Optional[str]:
    if word in SPECIAL_FORM_SIGNATURES:
        return f"{SPECIAL_FORM_SIGNATURES[word]}\n\nspecial form"
    cmd = registry.lookup(word)
    if cmd is None:
        return None
    return f"{cmd.syntax}\n\n{cmd.description} [{cmd.tag.text}]"


@ls.feature(TEXT_DOCUMENT_HOVER)
def on_hover(params: HoverParams) -> Optional[Hover]:
    state = ls.documents.get(params.text_document.uri)
    if not state:
        return None

    word = extract_word_at(state.text, params.position.line, params.position.character)
    if not word:
        return None
    contents = hover_text(word, ls.registry)
    if contents is None:
        return None
    return Hover(contents=MarkupContent(kind=MarkupKind.PlainText, value=contents))


# --- Completion ---
def completion_items(registry: CommandRegistry) -> List[CompletionItem]:
    items = [
        CompletionItem(label=name, kind=CompletionItemKind.Keyword, detail=sig)
        for name, sig in SPECIAL_FORM_SIGNATURES.items()
    ]
    for cmd in registry:
        items.append(
            CompletionItem(label=cmd.name, kind=CompletionItemKind.Function, detail=cmd.syntax,
                           documentation=cmd.description)
        )
    return items


@ls.feature(TEXT_DOCUMENT_COMPLETION, CompletionOptions(trigger_characters=["("]))
def on_completion(params: CompletionParams) -> CompletionList:
    return CompletionList(is_incomplete=False, items=completion_items(ls.registry))


# --- Signature Help ---
def signature_for(callee: str, registry: CommandRegistry) -> Optional[SignatureHelp]:
    label = signature_table(registry).get(callee)
    if not label:
        return None

    # Split rendering into name and params between the outer parentheses
    open_paren = label.find('(')
    close_paren = label.rfind(')')
    params_list = label[open_paren + 1:close_paren].split()[1:]
    parameters = [ParameterInformation(label=p) for p in params_list]
    return SignatureHelp(
        signatures=[SignatureInformation(label=label, parameters=parameters)],
        active_signature=0,
        active_parameter=0,
    )


@ls.feature(TEXT_DOCUMENT_SIGNATURE_HELP, SignatureHelpOptions(trigger_characters=["(", " "]))
def on_signature_help(params: SignatureHelpParams) -> Optional[SignatureHelp]:
    state = ls.documents.get(params.text_document.uri)
    if not state:
        return None
    line_text = get_line_prefix(state.text, params.position.line, params.position.character)
    callee = extract_callee_name(line_text)
    if not callee:
        return None
    return signature_for(callee, ls.registry)


# --- Helpers ---

def get_line_prefix(text: str, line: int, character: int) -> str:
    # Return the text from start of line up to the cursor
    lines = text.splitlines(True)
    if line >= len(lines):
        return ""
    return lines[line][:character]


def extract_word_at(text: str, line: int, character: int) -> Optional[str]:
    lines = text.splitlines(True)
    if line >= len(lines):
        return None
    line_text = lines[line]
    start = character
    while start > 0 and line_text[start - 1] not in " \t()'\"\n\r":
        start -= 1
    end = character
    while end < len(line_text) and line_text[end] not in " \t()'\"\n\r":
        end += 1
    return line_text[start:end] or None


def extract_callee_name(prefix: str) -> Optional[str]:
    # find last '(' and take following token
    lp = prefix.rfind('(')
    if lp == -1:
        return None
    tail = prefix[lp + 1:].split()
    if not tail:
        return None
    return tail[0].rstrip(')') or None


def main() -> None:
    # Run the language server over stdio
    ls.start_io()


if __name__ == "__main__":
    main()
