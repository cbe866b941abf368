"""
Friendly diagnostics built on top of compiler errors: hints keyed on the
error message, Neapolitan rewordings, phrase banks for the CLI and the JSON
response shape used by web front ends.
"""

import random
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .compiler import CompileOptions, compile_fratm
from .config.config import DEFAULT_SOURCE_NAME
from .exceptions import CompileError, LexerError

# Checked in order; the first fragment found in the message wins.
PARSE_SUGGESTIONS: List[Tuple[str, str]] = [
    ("'}'", "💡 Conta 'e parentesi graffe: ogni '{' adda avè 'o suo '}'"),
    ("')'", "💡 Conta 'e parentesi tonne: ogni '(' adda avè 'o suo ')'"),
    ("']'", "💡 Conta 'e parentesi quadre: ogni '[' adda avè 'o suo ']'"),
    ("chist", '💡 Esempio: chist è nome = "Gennaro"'),
    ("facc", '💡 Esempio: facc saluta(nome) { piglie "Ciao " + nome }'),
    ("stamm", '💡 Esempio: stamm a dì("Uè!")'),
    ("mentre", "💡 Esempio: mentre che (i < 10) { i = i + 1 }"),
]

LEXER_SUGGESTIONS: List[Tuple[str, str]] = [
    ("string", "💡 'E stringhe s'aprono e se chiudono cu \" o '"),
    ("comment", "💡 Nu commento /* adda essere chiuso cu */"),
]

NAPOLETAN_MESSAGES: List[Tuple[str, str]] = [
    ("Expected '}'", "Uè, hai aperto 'na parentesi graffa ma nun l'hai chiusa! Mettece '}'!"),
    ("Expected ')'", "Manca 'a parentesi chiusa! Ce vo' ')'!"),
    ("Expected ']'", "E 'a parentesi quadra? Chiudela cu ']'!"),
    ("Expected '='", "E addò sta l'uguale? Ce vo' '=' pe assegnà 'o valore!"),
    ("Expected ';'", "Manca 'o punto e virgola! Ma va bene, nun te preoccupà."),
    ("Expected an identifier", "Ccà ce vo' nu nome! Che cosa vuò chiamà sta variabile?"),
    ("Expected a string", "Ccà ce vo' 'na stringa! Mettece 'e virgolette!"),
    ("Expected 'è'", "Doppo 'chist' ce vo' 'è'! Scrivi 'chist è' pe fà 'na costante."),
    ("Expected 'che'", "Doppo 'mentre' ce vo' 'che'! Scrivi 'mentre che'."),
    ("Expected 'vir'", "Doppo 'mo' ce vo' 'vir'! Scrivi 'mo vir facc' pe 'na funzione asincrona."),
    ("Expected 'bell'", "Doppo 'nu' ce vo' 'bell'! Scrivi 'nu bell' pe creà n'oggetto nuovo."),
    ("Expected 'famiglie'", "Doppo 'na' ce vo' 'famiglie'! Scrivi 'na famiglie' pe fà 'na classe."),
    ("Expected 'cos'", "Doppo 'stu' ce vo' 'cos'! Scrivi 'stu cos' pe riferisce a this."),
    ("Expected 'for'", "Doppo 'mann' ce vo' 'for'! Scrivi 'mann for' pe esportà."),
    ("Expected 'dì'", "Doppo 'stamm a' ce vo' 'dì'! Scrivi 'stamm a dì' pe stampà."),
    ("Expected an expression", "Ma che staje scrivenn?! Ccà ce vo' 'na espressione!"),
    ("Unterminated string", "'Sta stringa nun finisce maje! Chiudela cu 'e virgolette."),
    ("Unterminated block comment", "'Stu commento nun finisce maje! Chiudelo cu */."),
]

ENCOURAGEMENTS = [
    "Nun te preoccupà, capita a tutt'!",
    "Vire buono 'o codice e riprova!",
    "Cu 'a calma se fa tutto!",
    "Nisciuno nasce imparato!",
    "Piano piano se va luntano!",
    "'A pazienza è 'a virtù d''e forte!",
]

SUCCESS_MESSAGES = [
    "Tutto appost! 🤌",
    "Uè, funziona! Bravo!",
    "Perfetto! Comme 'na pizza margherita!",
    "Eh, vedi che ce l'hai fatta!",
    "Bellillo! 'O codice è pronto!",
]


def get_suggestion(error: CompileError) -> Optional[str]:
    """Returns a hint for the error, or None when nothing specific applies."""
    table = LEXER_SUGGESTIONS if isinstance(error, LexerError) else PARSE_SUGGESTIONS
    if error.span is None:
        return None
    for fragment, suggestion in table:
        if fragment in error.message:
            return suggestion
    return None


def napoletanize(message: str) -> str:
    for fragment, reworded in NAPOLETAN_MESSAGES:
        if fragment in message:
            return reworded
    return f"Uè, c'è nu problema: {message}"


def random_encouragement() -> str:
    return random.choice(ENCOURAGEMENTS)


def success_message() -> str:
    return random.choice(SUCCESS_MESSAGES)


class CompileResponse(BaseModel):
    """The JSON shape handed to web front ends; unset members are left out."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    code: Optional[str] = None
    source_map: Optional[str] = Field(default=None, alias="sourceMap")
    error: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    suggestion: Optional[str] = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


def compile_to_response(source: str, source_map: bool = False) -> CompileResponse:
    options = CompileOptions(source_map=source_map, filename=DEFAULT_SOURCE_NAME)
    try:
        result = compile_fratm(source, options)
    except CompileError as e:
        return CompileResponse(
            success=False,
            error=str(e),
            line=e.line,
            column=e.column,
            suggestion=get_suggestion(e),
        )
    return CompileResponse(
        success=True,
        code=result.code,
        source_map=result.source_map.to_json() if result.source_map is not None else None,
    )


def render_error(source: str, error: CompileError) -> str:
    """
    Renders the error with the offending source line and a caret under the
    reported column, e.g.

        ✗ Error: Line 1, column 7: Expected 'è' after 'chist'
          1 │ chist x = 1
            │       ^
    """
    lines = [f"✗ Error: {error}"]
    source_lines = source.splitlines()
    if error.line is not None and 0 < error.line <= len(source_lines):
        gutter = str(error.line)
        lines.append(f"  {gutter} │ {source_lines[error.line - 1]}")
        if error.column is not None:
            lines.append(f"  {' ' * len(gutter)} │ {' ' * max(error.column - 1, 0)}^")
    return "\n".join(lines)
