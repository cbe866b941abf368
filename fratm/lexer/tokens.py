"""
Token definitions for the FratmScript lexer.

A token is a kind tag, the span it covers in the source and the literal text
exactly as it appeared there. Literal-carrying kinds (identifiers, strings,
numbers and invalid sequences) also keep their decoded payload in `value`.
"""

from enum import Enum
from typing import Union

from pydantic import BaseModel


class Span(BaseModel):
    """
    A half-open byte interval of the source plus the 1-indexed line and
    column where it starts.
    """

    start: int = 0
    end: int = 0
    line: int = 1
    column: int = 1

    def merge(self, other: "Span") -> "Span":
        """Returns the smallest span covering both `self` and `other`."""
        first = self if self.start <= other.start else other
        return Span(start=first.start, end=max(self.end, other.end), line=first.line, column=first.column)


class TokenKind(Enum):
    # --- Dialect keywords ---
    # Multi-word constructs are spelled with one tag per particle.
    CHIST = "chist"  # const (1/2)
    E = "è"  # const (2/2)
    TIEN = "tien"  # let
    FACC = "facc"  # function
    PIGLIE = "piglie"  # return
    SI = "si"  # if
    SINNO = "sinnò"  # else
    PE = "pe"  # for (1/2)
    OGNI = "ogni"  # for (2/2)
    MENTRE = "mentre"  # while (1/2)
    CHE = "che"  # while (2/2)
    OVERO = "overo"  # true
    SFOLS = "sfòls"  # false
    NISCIUN = "nisciun"  # null
    BOH = "boh"  # undefined
    STAMM = "stamm"  # console.log (1/3)
    A = "a"  # console.* (2/3)
    DI = "dì"  # console.* (3/3)
    MO = "mo"  # async (1/2)
    VIR = "vir"  # async (2/2)
    ASPETT = "aspett"  # await
    PRUVAMM = "pruvamm"  # try
    SCHIATTA = "schiatta"  # catch, as in "e si schiatta"
    IETT = "iett"  # throw
    NU = "nu"  # new (1/2)
    BELL = "bell"  # new (2/2)
    NA = "na"  # class (1/2)
    FAMIGLIE = "famiglie"  # class (2/2)
    STU = "stu"  # this (1/2)
    COS = "cos"  # this (2/2)
    CHIAMM = "chiamm"  # import
    DA = "da"  # from
    MANN = "mann"  # export (1/2)
    FOR = "for"  # export (2/2)
    PREDEFINIT = "predefinit"  # default
    ROMPE = "rompe"  # break
    SALTA = "salta"  # continue
    CASO = "caso"  # case (reserved)
    FISSO = "fisso"  # static (reserved)
    FIGLIO = "figlio"  # extends (reserved)
    LEVA = "leva"  # delete
    CACCIA = "caccia"  # yield (reserved)
    FERMETE = "fermete"  # debugger
    SCRIVE = "scrive"  # console.error (1/3)
    AVVIS = "avvis"  # console.warn (1/3)

    # --- Logical words ---
    AND = "e"
    OR = "o"
    NOT = "no"  # also produced by the ASCII '!'
    MANCO = "manco"  # not (alias)
    PURE = "pure"  # and (alias)

    # --- Arithmetic ---
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    PERCENT = "%"
    STAR_STAR = "**"

    # --- Comparison ---
    EQUAL_EQUAL = "=="
    EQUAL_EQUAL_EQUAL = "==="
    BANG_EQUAL = "!="
    BANG_EQUAL_EQUAL = "!=="
    LESS = "<"
    GREATER = ">"
    LESS_EQUAL = "<="
    GREATER_EQUAL = ">="

    # --- Assignment ---
    EQUAL = "="
    PLUS_EQUAL = "+="
    MINUS_EQUAL = "-="
    STAR_EQUAL = "*="
    SLASH_EQUAL = "/="

    # --- Punctuation ---
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    LEFT_BRACE = "{"
    RIGHT_BRACE = "}"
    LEFT_BRACKET = "["
    RIGHT_BRACKET = "]"
    COMMA = ","
    DOT = "."
    COLON = ":"
    SEMICOLON = ";"
    QUESTION = "?"
    ARROW = "=>"

    # --- Literals ---
    IDENTIFIER = "identifier"
    STRING = "string"
    NUMBER = "number"

    # --- Control ---
    NEWLINE = "newline"
    EOF = "end of file"
    INVALID = "invalid token"

    def describe(self) -> str:
        """Human-readable name of the kind, as used in 'Expected ...' messages."""
        if self is TokenKind.IDENTIFIER:
            return "an identifier"
        if self is TokenKind.STRING:
            return "a string"
        if self is TokenKind.NUMBER:
            return "a number"
        if self is TokenKind.NEWLINE:
            return "a newline"
        if self is TokenKind.EOF:
            return "end of file"
        return f"'{self.value}'"


class Token(BaseModel):
    kind: TokenKind
    span: Span
    literal: str
    # Decoded payload: the name, the unescaped string, the float, or the
    # reason an INVALID token was produced.
    value: Union[float, str, None] = None

    def describe(self) -> str:
        """Describes the token as it was found, for 'got ...' messages."""
        if self.kind in (TokenKind.NEWLINE, TokenKind.EOF):
            return self.kind.describe()
        if self.kind is TokenKind.STRING:
            return self.literal
        return f"'{self.literal}'"

    def __str__(self) -> str:
        return f"{self.kind.name} {self.literal!r} @ {self.span.line}:{self.span.column}"
