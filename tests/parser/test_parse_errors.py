import pytest

from fratm.exceptions import CompileError, ErrorCode, InternalCompilerError, LexerError, ParseError
from fratm.lexer.lexer import tokenize
from fratm.lexer.tokens import Span, Token, TokenKind
from fratm.parser.parser import Parser, parse_fratm


def parse_errors(code):
    _, errors = Parser(tokenize(code)).parse_collecting_errors()
    return errors


# --- 1. Missing Keyword Particles ---


@pytest.mark.parametrize(
    "code, message",
    [
        pytest.param("chist x = 1", "Expected 'è' after 'chist'", id="const"),
        pytest.param("mentre (x) {}", "Expected 'che' after 'mentre'", id="while"),
        pytest.param("mo vir f() {}", "Expected 'facc' after 'vir'", id="async_facc"),
        pytest.param("tien x = nu Punto()", "Expected 'bell' after 'nu'", id="new"),
        pytest.param("na Punto {}", "Expected 'famiglie' after 'na'", id="class"),
        pytest.param("tien x = stu nome", "Expected 'cos' after 'stu'", id="this"),
        pytest.param("mann facc f() {}", "Expected 'for' after 'mann'", id="export"),
        pytest.param('stamm dì("x")', "Expected 'a' after 'stamm'", id="console_a"),
        pytest.param('avvis a ("x")', "Expected 'dì' after 'a'", id="console_di"),
        pytest.param("pruvamm {} e schiatta {}", "Expected 'si' after 'e'", id="catch_si"),
        pytest.param("pruvamm {} e si {}", "Expected 'schiatta' after 'si'", id="catch_schiatta"),
    ],
)
def test_missing_particle(code, message):
    with pytest.raises(ParseError) as exc_info:
        parse_fratm(code)
    assert exc_info.value.message == message
    assert exc_info.value.code is ErrorCode.EXPECTED_PARTICLE


def test_missing_particle_position():
    with pytest.raises(ParseError) as exc_info:
        parse_fratm("tien y = 2\nchist x = 1")
    error = exc_info.value
    assert (error.line, error.column) == (2, 7)
    assert str(error) == "Line 2, column 7: Expected 'è' after 'chist'"


# --- 2. Unexpected Tokens ---


@pytest.mark.parametrize(
    "code, message, line",
    [
        pytest.param("tien x = (1 + 2", "Expected ')', got end of file", 1, id="unmatched_paren"),
        pytest.param("facc f() {\n  piglie 1", "Expected '}', got end of file", 2, id="unmatched_brace"),
        pytest.param("tien y = 0\ntien xs = [1, 2", "Expected ']', got end of file", 2, id="unmatched_bracket"),
        pytest.param("tien x = 1)", "Expected an expression, got ')'", 1, id="stray_paren"),
        pytest.param("tien x = ", "Expected an expression, got end of file", 1, id="missing_initializer"),
        pytest.param("chist è x 1", "Expected '=', got '1'", 1, id="const_without_equal"),
        pytest.param("facc (x) {}", "Expected an identifier, got '('", 1, id="function_without_name"),
        pytest.param('chiamm { x } "mod"', "Expected 'da', got \"mod\"", 1, id="import_without_da"),
        pytest.param("chiamm { x } da modulo", "Expected a string, got 'modulo'", 1, id="import_source_not_string"),
        pytest.param("si x { }", "Expected '(', got 'x'", 1, id="if_without_paren"),
        pytest.param("si (x)\n{ }", "Expected '{', got a newline", 1, id="brace_on_next_line"),
        pytest.param("tien x = {\n  1: 2\n}", "Expected an identifier, got '1'", 2, id="object_key_not_identifier"),
    ],
)
def test_unexpected_token(code, message, line):
    with pytest.raises(ParseError) as exc_info:
        parse_fratm(code)
    assert exc_info.value.message == message
    assert exc_info.value.line == line


@pytest.mark.parametrize("word", ["e", "o", "a", "no", "caso", "fisso", "figlio", "caccia", "si"])
def test_reserved_words_are_never_identifiers(word):
    with pytest.raises(ParseError) as exc_info:
        parse_fratm(f"tien {word} = 1")
    assert exc_info.value.message.startswith("Expected an identifier, got ")


def test_compound_assignment_is_not_an_expression():
    with pytest.raises(ParseError) as exc_info:
        parse_fratm("x += 1")
    assert exc_info.value.message == "Expected an expression, got '+='"


# --- 3. Lexical Errors Surface Through the Parser ---


@pytest.mark.parametrize(
    "code, message, line",
    [
        pytest.param('tien x = 1\nstamm a dì("ciao)', "Unterminated string", 2, id="unterminated_string"),
        pytest.param("tien x = 1\n/* nun finisce", "Unterminated block comment", 2, id="unterminated_comment"),
        pytest.param("tien x = 1 @ 2", "Unexpected character '@'", 1, id="unexpected_character"),
        pytest.param("facc @() {}", "Unexpected character '@'", 1, id="invalid_in_identifier_position"),
    ],
)
def test_lexer_errors(code, message, line):
    with pytest.raises(LexerError) as exc_info:
        parse_fratm(code)
    assert exc_info.value.message == message
    assert exc_info.value.line == line


def test_error_hierarchy():
    with pytest.raises(CompileError):
        parse_fratm('"aperta')
    assert issubclass(LexerError, ParseError)
    assert issubclass(ParseError, CompileError)


# --- 4. Panic-Mode Recovery ---


def test_recovery_collects_independent_errors():
    code = "chist x = 1\ntien y = 2\nchist z = 3\nchist è w = )"
    program, errors = Parser(tokenize(code)).parse_collecting_errors()
    assert [e.message for e in errors] == [
        "Expected 'è' after 'chist'",
        "Expected 'è' after 'chist'",
        "Expected an expression, got ')'",
    ]
    assert [e.line for e in errors] == [1, 3, 4]
    # Statements between the errors are still parsed.
    assert len(program.statements) == 1
    assert program.statements[0].name == "y"


def test_parse_raises_first_error_carrying_all_of_them():
    with pytest.raises(ParseError) as exc_info:
        parse_fratm("chist x = 1\nsi x {}\ntien ok = 1")
    error = exc_info.value
    assert error.line == 1
    assert len(error.errors) == 2
    assert error.errors[0] is error
    assert error.errors[1].message == "Expected '(', got 'x'"


def test_recovery_skips_to_next_statement_starter():
    # Everything up to 'tien' is dropped after the first error.
    errors = parse_errors("tien = 1 2 3 ) ] } tien x = 1")
    assert len(errors) == 1


def test_valid_source_has_no_errors():
    assert parse_errors("tien x = 1\nstamm a dì(x)") == []


# --- 5. Token Stream Contract ---


def test_token_stream_must_end_with_eof():
    tokens = [Token(kind=TokenKind.IDENTIFIER, span=Span(start=0, end=1), literal="x", value="x")]
    with pytest.raises(InternalCompilerError):
        Parser(tokens)
    with pytest.raises(InternalCompilerError):
        Parser([])
