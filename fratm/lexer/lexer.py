"""
Lexical scanner for FratmScript source text.

The scanner never fails: anything it cannot make sense of becomes an INVALID
token carrying the reason, and the parser reports it with the token's position.
"""

from typing import List

from fratm.config.config import KEYWORDS, PUNCTUATION
from fratm.exceptions import ErrorCode
from fratm.lexer.tokens import Span, Token, TokenKind

STRING_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", '"': '"', "'": "'"}

# Operators that may grow by one or two characters, longest spelling first.
COMPOUND_OPERATORS = {
    "=": [("==", TokenKind.EQUAL_EQUAL_EQUAL), ("=", TokenKind.EQUAL_EQUAL), (">", TokenKind.ARROW)],
    "!": [("==", TokenKind.BANG_EQUAL_EQUAL), ("=", TokenKind.BANG_EQUAL)],
    "*": [("*", TokenKind.STAR_STAR), ("=", TokenKind.STAR_EQUAL)],
    "+": [("=", TokenKind.PLUS_EQUAL)],
    "-": [("=", TokenKind.MINUS_EQUAL)],
    "/": [("=", TokenKind.SLASH_EQUAL)],
    "<": [("=", TokenKind.LESS_EQUAL)],
    ">": [("=", TokenKind.GREATER_EQUAL)],
}

SINGLE_OPERATORS = {
    "=": TokenKind.EQUAL,
    # The ASCII bang is the same logical-not as the dialect word 'no'.
    "!": TokenKind.NOT,
    "*": TokenKind.STAR,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "/": TokenKind.SLASH,
    "<": TokenKind.LESS,
    ">": TokenKind.GREATER,
}


def tokenize(source: str) -> List[Token]:
    """
    Tokenizes FratmScript source text.

    The returned list always ends with exactly one EOF token. Whitespace and
    comments produce no tokens; newlines do.
    """
    return Lexer(source).tokenize()


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def _is_identifier_start(char: str) -> bool:
    return char.isalpha() or char == "_"


def _is_identifier_part(char: str) -> bool:
    return char.isalnum() or char == "_"


class Lexer:
    """
    Single forward pass over the source. Positions are tracked three ways:
    the character index into the string, the UTF-8 byte offset used by spans,
    and the human-facing line and column.
    """

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.offset = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Token] = []

        # Where the token currently being scanned began.
        self.start_pos = 0
        self.start_offset = 0
        self.start_line = 1
        self.start_column = 1

    def tokenize(self) -> List[Token]:
        while True:
            self._skip_trivia()
            if self._at_end():
                break
            self._mark_start()
            self._scan_token()

        self._mark_start()
        self.tokens.append(Token(kind=TokenKind.EOF, span=self._span(), literal=""))
        return self.tokens

    # --- Character access ---

    def _at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _current(self) -> str:
        if self.pos < len(self.source):
            return self.source[self.pos]
        return ""

    def _peek(self, distance: int = 1) -> str:
        index = self.pos + distance
        if index < len(self.source):
            return self.source[index]
        return ""

    def _advance(self) -> str:
        char = self.source[self.pos]
        self.pos += 1
        self.offset += len(char.encode("utf-8"))
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return char

    def _match(self, text: str) -> bool:
        if self.source.startswith(text, self.pos):
            for _ in text:
                self._advance()
            return True
        return False

    # --- Token construction ---

    def _mark_start(self):
        self.start_pos = self.pos
        self.start_offset = self.offset
        self.start_line = self.line
        self.start_column = self.column

    def _span(self) -> Span:
        return Span(start=self.start_offset, end=self.offset, line=self.start_line, column=self.start_column)

    def _add_token(self, kind: TokenKind, value=None):
        literal = self.source[self.start_pos : self.pos]
        self.tokens.append(Token(kind=kind, span=self._span(), literal=literal, value=value))

    def _add_invalid(self, code: ErrorCode, **kwargs):
        self._add_token(TokenKind.INVALID, code.value.format(**kwargs))

    # --- Scanning ---

    def _skip_trivia(self):
        while not self._at_end():
            char = self._current()
            if char in " \t\r":
                self._advance()
            elif char == "/" and self._peek() == "/":
                while not self._at_end() and self._current() != "\n":
                    self._advance()
            elif char == "/" and self._peek() == "*":
                if not self._skip_block_comment():
                    return
            else:
                return

    def _skip_block_comment(self) -> bool:
        """
        Consumes a `/* ... */` comment. An unterminated comment runs to the end
        of input and is reported as an INVALID token covering all of it.
        """
        self._mark_start()
        self._advance()
        self._advance()
        while not self._at_end():
            if self._match("*/"):
                return True
            self._advance()
        self._add_invalid(ErrorCode.UNTERMINATED_COMMENT)
        return False

    def _scan_token(self):
        char = self._advance()

        if char == "\n":
            self._add_token(TokenKind.NEWLINE)
        elif char in PUNCTUATION:
            self._add_token(PUNCTUATION[char])
        elif char in SINGLE_OPERATORS:
            self._scan_operator(char)
        elif char in "\"'":
            self._scan_string(char)
        elif _is_digit(char):
            self._scan_number()
        elif _is_identifier_start(char):
            self._scan_identifier()
        else:
            self._add_invalid(ErrorCode.UNEXPECTED_CHARACTER, char=char)

    def _scan_operator(self, first: str):
        # Maximal munch: the longest spelling that matches wins.
        for rest, kind in COMPOUND_OPERATORS[first]:
            if self._match(rest):
                self._add_token(kind)
                return
        self._add_token(SINGLE_OPERATORS[first])

    def _scan_string(self, quote: str):
        chars = []
        while not self._at_end():
            char = self._advance()
            if char == quote:
                self._add_token(TokenKind.STRING, "".join(chars))
                return
            if char == "\\":
                if self._at_end():
                    break
                escaped = self._advance()
                chars.append(STRING_ESCAPES.get(escaped, escaped))
            else:
                chars.append(char)
        self._add_invalid(ErrorCode.UNTERMINATED_STRING)

    def _scan_number(self):
        while _is_digit(self._current()):
            self._advance()
        # A fractional part needs at least one digit after the dot.
        if self._current() == "." and _is_digit(self._peek()):
            self._advance()
            while _is_digit(self._current()):
                self._advance()
        self._add_token(TokenKind.NUMBER, float(self.source[self.start_pos : self.pos]))

    def _scan_identifier(self):
        while not self._at_end() and _is_identifier_part(self._current()):
            self._advance()
        text = self.source[self.start_pos : self.pos]
        kind = KEYWORDS.get(text)
        if kind is not None:
            self._add_token(kind)
        else:
            self._add_token(TokenKind.IDENTIFIER, text)
