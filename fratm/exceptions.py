"""
Custom exception types for the FratmScript compiler.
"""

from enum import Enum
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from fratm.lexer.tokens import Span


class ErrorCode(Enum):

    # --- Lexical Errors (reported by the parser when it meets an invalid token) ---
    LEXICAL_ERROR = "{reason}"
    UNTERMINATED_STRING = "Unterminated string"
    UNTERMINATED_COMMENT = "Unterminated block comment"
    UNEXPECTED_CHARACTER = "Unexpected character '{char}'"

    # --- Syntax Errors ---
    EXPECTED_TOKEN = "Expected {expected}, got {found}"
    EXPECTED_PARTICLE = "Expected {particle} after {prior}"
    EXPECTED_EXPRESSION = "Expected an expression, got {found}"
    EXPECTED_IDENTIFIER = "Expected an identifier, got {found}"
    EXPECTED_STRING = "Expected a string, got {found}"

    # --- Code Generation Errors ---
    MALFORMED_AST = "Cannot generate code for {node}: {details}"


class CompileError(Exception):
    """
    Base class of the three error kinds. When a source fails to parse, the
    first error is raised and every error collected during recovery is
    available on its `errors` list.
    """

    def __init__(self, code: ErrorCode, span: Optional["Span"] = None, **kwargs):
        self.code = code
        self.span = span
        self.details = kwargs
        self.errors: List["CompileError"] = [self]

        # The format string (e.g., "Expected {expected}, got {found}") is
        # populated with the extra data it needs from kwargs.
        self.message = code.value.format(**kwargs)

        location_prefix = ""
        if span is not None:
            location_prefix = f"Line {span.line}, column {span.column}: "

        super().__init__(location_prefix + self.message)

    @property
    def line(self) -> Optional[int]:
        return self.span.line if self.span is not None else None

    @property
    def column(self) -> Optional[int]:
        return self.span.column if self.span is not None else None


class ParseError(CompileError):
    """An unexpected token, a missing keyword particle or an unexpected end of file."""


class LexerError(ParseError):
    """A malformed literal or stray character, surfaced by the parser from an invalid token."""


class CodeGenError(CompileError):
    """An internal invariant of the code generator was violated. Carries no position."""

    def __init__(self, code: ErrorCode, **kwargs):
        super().__init__(code, None, **kwargs)


class InternalCompilerError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
