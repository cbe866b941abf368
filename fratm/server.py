"""
Language server for FratmScript editors: live diagnostics from the parser,
keyword completion with snippets and hover documentation.
"""

import logging
from typing import List, Optional

from lsprotocol.types import (
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_HOVER,
    CompletionItem,
    CompletionItemKind,
    CompletionList,
    Diagnostic,
    DiagnosticSeverity,
    Hover,
    InsertTextFormat,
    MarkupContent,
    MarkupKind,
    Position,
    Range,
)
from pygls.server import LanguageServer

from fratm import __version__
from fratm.config.config import KEYWORD_DOCS
from fratm.exceptions import CompileError
from fratm.lexer.lexer import tokenize
from fratm.parser.parser import Parser

logger = logging.getLogger(__name__)

server = LanguageServer("fratmscript-server", __version__)


def _get_word_at_position(line: str, character: int) -> str:
    start, end = character, character
    while start > 0 and (line[start - 1].isalnum() or line[start - 1] == "_"):
        start -= 1
    while end < len(line) and (line[end].isalnum() or line[end] == "_"):
        end += 1
    return line[start:end]


def _error_width(source: str, error: CompileError) -> int:
    """Width in characters of the source text the error points at."""
    if error.span is None:
        return 1
    text = source.encode("utf-8")[error.span.start : error.span.end].decode("utf-8", errors="ignore")
    return max(len(text.split("\n")[0]), 1)


def collect_diagnostics(source: str) -> List[Diagnostic]:
    """Parses the source and turns every collected error into an LSP diagnostic."""
    _, errors = Parser(tokenize(source)).parse_collecting_errors()
    diagnostics = []
    for error in errors:
        line = max(error.line - 1, 0)
        column = max(error.column - 1, 0)
        diagnostics.append(
            Diagnostic(
                range=Range(
                    start=Position(line=line, character=column),
                    end=Position(line=line, character=column + _error_width(source, error)),
                ),
                message=error.message,
                severity=DiagnosticSeverity.Error,
                source="fratm",
            )
        )
    return diagnostics


def hover_for_word(word: str) -> Optional[Hover]:
    doc = KEYWORD_DOCS.get(word)
    if doc is None:
        return None
    contents = [f"```fratm\n{word}\n```", "---"]
    if doc["javascript"]:
        contents.append(f"**JavaScript:** `{doc['javascript']}`")
    contents.append(doc["description"])
    return Hover(contents=MarkupContent(kind=MarkupKind.Markdown, value="\n\n".join(contents)))


def completion_items() -> List[CompletionItem]:
    items = []
    for word, doc in KEYWORD_DOCS.items():
        snippet = doc.get("snippet")
        items.append(
            CompletionItem(
                label=word,
                kind=CompletionItemKind.Keyword,
                detail=f"{doc['category']} → {doc['javascript']}" if doc["javascript"] else doc["category"],
                documentation=doc["description"],
                insert_text=snippet or word,
                insert_text_format=InsertTextFormat.Snippet if snippet else InsertTextFormat.PlainText,
            )
        )
    return items


def _validate(ls, params):
    text_doc = ls.workspace.get_document(params.text_document.uri)
    try:
        diagnostics = collect_diagnostics(text_doc.source)
    except Exception:
        logger.exception("Validation of %s failed", params.text_document.uri)
        diagnostics = []
    logger.debug("Publishing %d diagnostics for %s", len(diagnostics), params.text_document.uri)
    ls.publish_diagnostics(params.text_document.uri, diagnostics)


@server.feature(TEXT_DOCUMENT_DID_OPEN)
async def did_open(ls, params):
    _validate(ls, params)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls, params):
    _validate(ls, params)


@server.feature(TEXT_DOCUMENT_HOVER)
def hover(params):
    document = server.workspace.get_document(params.text_document.uri)
    if params.position.line >= len(document.lines):
        return None
    word = _get_word_at_position(document.lines[params.position.line], params.position.character)
    return hover_for_word(word)


@server.feature(TEXT_DOCUMENT_COMPLETION)
def completions(params):
    return CompletionList(items=completion_items(), is_incomplete=False)


def start_server():
    logger.info("Starting FratmScript language server %s", __version__)
    server.start_io()
