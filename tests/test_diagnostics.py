import json

import pytest

from fratm.diagnostics import (
    ENCOURAGEMENTS,
    SUCCESS_MESSAGES,
    CompileResponse,
    compile_to_response,
    get_suggestion,
    napoletanize,
    random_encouragement,
    render_error,
    success_message,
)
from fratm.exceptions import CodeGenError, CompileError, ErrorCode
from fratm.parser.parser import parse_fratm


def first_error(code):
    with pytest.raises(CompileError) as exc_info:
        parse_fratm(code)
    return exc_info.value


# --- 1. Suggestions ---


@pytest.mark.parametrize(
    "code, fragment",
    [
        pytest.param("facc f() {\n  piglie 1", "parentesi graffe", id="missing_brace"),
        pytest.param("tien x = (1", "parentesi tonne", id="missing_paren"),
        pytest.param("tien x = [1", "parentesi quadre", id="missing_bracket"),
        pytest.param("chist x = 1", "chist è nome", id="const_particle"),
        pytest.param("mentre (x) {}", "mentre che", id="while_particle"),
        pytest.param('stamm dì("x")', "stamm a dì", id="console_particle"),
        pytest.param('tien s = "aperta', "stringhe", id="unterminated_string"),
        pytest.param("/* aperto", "commento", id="unterminated_comment"),
    ],
)
def test_suggestion_matches_the_error(code, fragment):
    suggestion = get_suggestion(first_error(code))
    assert suggestion is not None
    assert fragment in suggestion


def test_no_suggestion_for_unrelated_errors():
    assert get_suggestion(first_error("tien x = 1 @ 2")) is None


def test_no_suggestion_without_position():
    error = CodeGenError(ErrorCode.MALFORMED_AST, node="Export", details="empty")
    assert get_suggestion(error) is None


# --- 2. Neapolitan Messages ---


@pytest.mark.parametrize(
    "message, fragment",
    [
        pytest.param("Expected '}', got end of file", "parentesi graffa"),
        pytest.param("Expected 'è' after 'chist'", "chist è"),
        pytest.param("Expected an expression, got ')'", "espressione"),
        pytest.param("Unterminated string", "stringa"),
    ],
)
def test_napoletanize_known_messages(message, fragment):
    assert fragment in napoletanize(message)


def test_napoletanize_falls_back_to_the_original_message():
    assert napoletanize("Unexpected character '@'") == "Uè, c'è nu problema: Unexpected character '@'"


def test_phrase_banks():
    assert random_encouragement() in ENCOURAGEMENTS
    assert success_message() in SUCCESS_MESSAGES


# --- 3. Rendering ---


def test_render_error_points_at_the_column():
    error = first_error("tien y = 2\nchist x = 1")
    assert render_error("tien y = 2\nchist x = 1", error) == (
        "✗ Error: Line 2, column 7: Expected 'è' after 'chist'\n"
        "  2 │ chist x = 1\n"
        "    │       ^"
    )


def test_render_error_without_position():
    error = CodeGenError(ErrorCode.MALFORMED_AST, node="Export", details="empty")
    assert render_error("tien x", error) == "✗ Error: Cannot generate code for Export: empty"


def test_render_error_at_end_of_file_past_last_line():
    source = "facc f() {\n"
    error = first_error(source)
    # EOF sits on a line with no text; only the header is shown.
    assert error.line == 2
    assert render_error(source, error).splitlines() == ["✗ Error: Line 2, column 1: Expected '}', got end of file"]


# --- 4. JSON Responses ---


def test_successful_response():
    response = compile_to_response("chist è x = 42")
    assert response.success
    assert json.loads(response.to_json()) == {"success": True, "code": "const x = 42;\n"}


def test_successful_response_with_source_map():
    document = json.loads(compile_to_response("chist è x = 42", source_map=True).to_json())
    source_map = json.loads(document["sourceMap"])
    assert source_map["version"] == 3
    assert source_map["sources"] == ["input.fratm"]


def test_failed_response():
    document = json.loads(compile_to_response("chist x = 1").to_json())
    assert document["success"] is False
    assert document["error"] == "Line 1, column 7: Expected 'è' after 'chist'"
    assert (document["line"], document["column"]) == (1, 7)
    assert "chist è" in document["suggestion"]
    assert "code" not in document


def test_response_accepts_field_names_and_aliases():
    assert CompileResponse(success=True, source_map="{}").source_map == "{}"
    assert CompileResponse(success=True, sourceMap="{}").source_map == "{}"
