import base64
import json
import os
import re

import pytest

import fratm
from fratm import CompilationPipeline, CompileOptions, CompileResult, compile_fratm, tokenize, version
from fratm.codegen.sourcemap import DATA_URL_PREFIX
from fratm.exceptions import CompileError, InternalCompilerError, LexerError, ParseError
from fratm.lexer.tokens import TokenKind
from fratm.parser.core.classes import Program
from fratm.parser.parser import parse_fratm

from .utils.assertion_helper import assert_asts_equal


@pytest.fixture
def base_script():
    return 'facc saluta(nome) {\n  piglie "Ciao " + nome\n}\nstamm a dì(saluta("Gennaro"))\n'


# --- 1. Facade ---


def test_compile_returns_code_without_map_by_default(base_script):
    result = compile_fratm(base_script)
    assert isinstance(result, CompileResult)
    assert result.code == 'function saluta(nome) {\n  return ("Ciao " + nome);\n}\nconsole.log(saluta("Gennaro"));\n'
    assert result.source_map is None


def test_compile_alias_and_keyword_options(base_script):
    result = fratm.compile(base_script, source_map=True, filename="saluta.fratm")
    assert result.source_map is not None
    assert result.source_map.sources == ["saluta.fratm"]
    assert result.source_map.version == 3


def test_compile_with_options_object(base_script):
    result = compile_fratm(base_script, CompileOptions(source_map=True))
    assert result.source_map.sources == ["input.fratm"]
    assert result.source_map.mappings.count(";") == result.code.count("\n")


def test_minify_is_accepted_and_ignored(base_script):
    assert compile_fratm(base_script, minify=True).code == compile_fratm(base_script).code


def test_inline_source_map_is_appended_as_data_url(base_script):
    result = compile_fratm(base_script, CompileOptions(inline_source_map=True, filename="saluta.fratm"))
    *code_lines, trailer = result.code.split("\n")
    assert trailer.startswith(DATA_URL_PREFIX)
    document = json.loads(base64.b64decode(trailer[len(DATA_URL_PREFIX) :]))
    assert document["sources"] == ["saluta.fratm"]
    assert "\n".join(code_lines) + "\n" == compile_fratm(base_script).code
    # The map travels inline only.
    assert result.source_map is None


def test_empty_source_compiles_to_empty_code():
    assert compile_fratm("").code == ""


def test_tokenize_and_version_are_exported():
    assert tokenize("tien x")[-1].kind is TokenKind.EOF
    assert version() == fratm.__version__


# --- 2. Errors ---


@pytest.mark.parametrize(
    "malformed_snippet, error_type",
    [
        pytest.param("chist x = 1", ParseError, id="missing_particle"),
        pytest.param("tien x = (1", ParseError, id="unclosed_paren"),
        pytest.param('tien x = "aperta', LexerError, id="unterminated_string"),
        pytest.param("/* aperto", LexerError, id="unterminated_comment"),
    ],
)
def test_compile_surfaces_the_first_error(malformed_snippet, error_type):
    with pytest.raises(error_type) as exc_info:
        compile_fratm(malformed_snippet)
    assert isinstance(exc_info.value, CompileError)
    assert exc_info.value.line == 1


def test_unexpected_failures_become_internal_errors(monkeypatch):
    def explode(self):
        raise RuntimeError("boom")

    monkeypatch.setattr("fratm.codegen.code_emitter.CodeEmitter.emit", explode)
    with pytest.raises(InternalCompilerError, match="boom"):
        compile_fratm("tien x")


# --- 3. Pipeline Stages ---


def test_pipeline_can_stop_after_tokens(base_script):
    tokens = CompilationPipeline(base_script, stop_after_stage="tokens").run()
    assert tokens[0].kind is TokenKind.FACC


def test_pipeline_can_stop_after_ast(base_script):
    program = CompilationPipeline(base_script, stop_after_stage="ast").run()
    assert isinstance(program, Program)
    assert len(program.statements) == 2


def test_pipeline_keeps_every_artifact(base_script):
    pipeline = CompilationPipeline(base_script)
    result = pipeline.run()
    assert set(pipeline.artifacts) == {"tokens", "ast", "code"}
    assert pipeline.artifacts["code"] == result.code


def test_pipeline_dumps_requested_stages(tmp_path, base_script):
    source_path = tmp_path / "saluta.fratm"
    source_path.write_text(base_script, encoding="utf-8")

    pipeline = CompilationPipeline(base_script, str(source_path), dump_stages=["tokens", "ast"])
    pipeline.run()

    tokens = json.loads((tmp_path / "saluta.tokens.json").read_text(encoding="utf-8"))
    assert tokens[0]["kind"] == "facc"
    assert tokens[-1]["kind"] == "end of file"
    ast = json.loads((tmp_path / "saluta.ast.json").read_text(encoding="utf-8"))
    assert ast["statements"][0]["kind"] == "function_decl"
    assert ast["statements"][0]["name"] == "saluta"
    assert not os.path.exists(tmp_path / "saluta.code.json")


# --- 4. Round Trips ---

# Rewrites emitted JavaScript back into dialect spelling, token for token.
# Class methods get their 'facc' back first, while the JavaScript keywords
# are still there to tell them apart from statement headers.
METHOD_PATTERNS = [
    (r"^( +)async (?!function\b)(\w+)\(", r"\1mo vir facc \2("),
    (r"^( +)(?!(?:if|for|while|catch|function|return|async|mo)\b)(\w+)\(([\w, ]*)\) \{$", r"\1facc \2(\3) {"),
]

KEYWORD_PATTERNS = [
    (r"\bfor\b", "pe ogni"),
    (r"\bif\b", "si"),
    (r"\belse\b", "sinnò"),
    (r"\bwhile\b", "mentre che"),
    (r"\basync function\b", "mo vir facc"),
    (r"\bfunction\b", "facc"),
    (r"\bconst\b", "chist è"),
    (r"\blet\b", "tien"),
    (r"\breturn\b", "piglie"),
    (r"\btry\b", "pruvamm"),
    (r"\bcatch\b", "e si schiatta"),
    (r"\bthrow\b", "iett"),
    (r"\bclass\b", "na famiglie"),
    (r"\bthis\b", "stu cos"),
    (r"\bnew\b", "nu bell"),
    (r"\bawait\b", "aspett"),
    (r"\bdelete\b", "leva"),
    (r"\bimport\b", "chiamm"),
    (r"\bfrom\b", "da"),
    (r"\bexport default\b", "mann for predefinit"),
    (r"\bexport\b", "mann for"),
    (r"\bconsole\.log\b", "stamm a dì"),
    (r"\bconsole\.warn\b", "avvis a dì"),
    (r"\bconsole\.error\b", "scrive a dì"),
    (r"\btrue\b", "overo"),
    (r"\bfalse\b", "sfòls"),
    (r"\bnull\b", "nisciun"),
    (r"\bundefined\b", "boh"),
    (r"\bbreak\b", "rompe"),
    (r"\bcontinue\b", "salta"),
    (r"\bdebugger\b", "fermete"),
    (r"&&", "e"),
    (r"\|\|", "o"),
]


def to_dialect(javascript):
    for pattern, replacement in METHOD_PATTERNS:
        javascript = re.sub(pattern, replacement, javascript, flags=re.M)
    for pattern, replacement in KEYWORD_PATTERNS:
        javascript = re.sub(pattern, replacement, javascript)
    return javascript


ROUND_TRIP_SAMPLES = [
    "chist è x = 42",
    "tien y",
    "facc add(x, y) { piglie x + y }",
    'si (x > 0) { stamm a dì("pos") } sinnò si (x < 0) { avvis a dì("neg") } sinnò { scrive a dì(0) }',
    "mo vir facc f() { piglie aspett g() }",
    "pe ogni (tien i = 0; i < 3; i = i + 1) { stamm a dì(i) }",
    "pe (;;) { si (overo e sfòls) { rompe } sinnò { salta } }",
    "mentre che (no fatto) { fatto = prova() o fatto }",
    "na famiglie Punto {\n  facc muovi(dx) { piglie stu cos }\n  mo vir facc carica(url) { }\n}",
    'chiamm { leggi, scrivi } da "./file"',
    "mann for predefinit nu bell Punto(1, 2)",
    "mann for facc f() { fermete }",
    "tien r = 2 ** 3 ** 2 - -1 * (4 % 3)",
    "tien n = x == nisciun o x === boh",
    "tien t = x ? y : z ? 1 : 2",
    "tien p = { x: [1, 2.5, 'tre'], y: (v) => v * 2 }",
    "lista.map((x) => x + 1)[0].valore = leva obj.campo",
    "pruvamm { iett err } e si schiatta (e2) { stamm a dì(e2) }",
    "pruvamm { } e si schiatta { }",
]


@pytest.mark.parametrize("source", ROUND_TRIP_SAMPLES)
def test_emitted_code_reparses_to_the_same_tree(source):
    """
    Full parenthesisation means the emitted code carries the original tree
    shape. Spelling it back in the dialect and parsing again must give a tree
    equal to the first one, spans aside.
    """
    original = parse_fratm(source)
    reparsed = parse_fratm(to_dialect(compile_fratm(source).code))
    assert_asts_equal(reparsed, original)


@pytest.mark.parametrize("source", ROUND_TRIP_SAMPLES)
def test_emitted_numbers_relex_to_the_same_value(source):
    program_numbers = [t.value for t in tokenize(source) if t.kind is TokenKind.NUMBER]
    emitted_numbers = [t.value for t in tokenize(compile_fratm(source).code) if t.kind is TokenKind.NUMBER]
    assert emitted_numbers == program_numbers
