import json
import os
import subprocess

import pytest

from fratm import __version__
from fratm import cli
from fratm.cli import main


@pytest.fixture
def create_script(tmp_path):
    """A factory fixture writing a .fratm script into a temporary directory."""

    def _create(content, name="prog.fratm"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _create


def run_cli(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


# --- 1. build ---


def test_build_writes_javascript_next_to_the_source(create_script, capsys):
    script = create_script("chist è x = 42\nstamm a dì(x)")
    assert run_cli(["build", str(script)]) == 0

    output = script.with_suffix(".js")
    assert output.read_text(encoding="utf-8") == "const x = 42;\nconsole.log(x);\n"
    assert not os.path.exists(str(output) + ".map")
    assert "Total Execution Time" in capsys.readouterr().out


def test_build_with_explicit_output_path(create_script, tmp_path):
    script = create_script("tien y")
    target = tmp_path / "dist" / "out.js"
    assert run_cli(["build", str(script), "-o", str(target)]) == 0
    assert target.read_text(encoding="utf-8") == "let y;\n"


def test_build_with_source_map_links_the_map_file(create_script):
    script = create_script("chist è x = 42")
    assert run_cli(["build", str(script), "--sourcemap"]) == 0

    code = script.with_suffix(".js").read_text(encoding="utf-8")
    assert code == "const x = 42;\n//# sourceMappingURL=prog.js.map"
    source_map = json.loads((script.parent / "prog.js.map").read_text(encoding="utf-8"))
    assert source_map["version"] == 3
    assert source_map["sources"] == ["prog.fratm"]
    assert source_map["mappings"] == "AAAA,UAAY;"


def test_build_with_inline_source_map(create_script):
    script = create_script("chist è x = 42")
    assert run_cli(["build", str(script), "--inline-sourcemap"]) == 0
    code = script.with_suffix(".js").read_text(encoding="utf-8")
    assert code.splitlines()[-1].startswith("//# sourceMappingURL=data:application/json;base64,")


def test_build_reports_compile_errors(create_script, capsys):
    script = create_script("tien y = 2\nchist x = 1")
    assert run_cli(["build", str(script)]) == 1

    err = capsys.readouterr().err
    assert "Line 2, column 7: Expected 'è' after 'chist'" in err
    assert "2 │ chist x = 1" in err
    assert "chist è nome" in err
    assert not script.with_suffix(".js").exists()


def test_build_can_stop_after_a_stage(create_script):
    script = create_script("tien y")
    assert run_cli(["build", str(script), "-c", "2"]) == 0

    ast = json.loads((script.parent / "prog.ast.json").read_text(encoding="utf-8"))
    assert ast["statements"][0]["kind"] == "variable_decl"
    assert not script.with_suffix(".js").exists()


def test_missing_input_file(tmp_path, capsys):
    assert run_cli(["build", str(tmp_path / "manca.fratm")]) == 1
    assert "not found" in capsys.readouterr().err


# --- 2. run ---


def test_run_executes_compiled_script_with_node(create_script, monkeypatch):
    calls = []

    def fake_run(command):
        calls.append(command)
        with open(command[-1], encoding="utf-8") as f:
            calls.append(f.read())
        return subprocess.CompletedProcess(command, 3)

    monkeypatch.setattr("fratm.cli.subprocess.run", fake_run)
    script = create_script('stamm a dì("uè")')

    assert run_cli(["run", str(script)]) == 3
    command, code = calls
    assert command[0] == "node"
    assert command[-1].endswith(".js")
    assert code == 'console.log("uè");\n'
    # The temporary script is cleaned up afterwards.
    assert not os.path.exists(command[-1])


def test_run_without_node(create_script, monkeypatch, capsys):
    def missing_node(command):
        raise FileNotFoundError(command[0])

    monkeypatch.setattr("fratm.cli.subprocess.run", missing_node)
    script = create_script("tien y")

    assert run_cli(["run", str(script)]) == 1
    assert "Node.js" in capsys.readouterr().err


def test_run_does_not_start_node_on_compile_errors(create_script, monkeypatch):
    def unexpected(command):
        raise AssertionError("node must not run")

    monkeypatch.setattr("fratm.cli.subprocess.run", unexpected)
    script = create_script("chist x = 1")
    assert run_cli(["run", str(script)]) == 1


# --- 3. Inspection commands ---


def test_tokens_command(create_script, capsys):
    script = create_script("chist è x")
    assert run_cli(["tokens", str(script)]) == 0

    out = capsys.readouterr().out
    assert "CHIST" in out
    assert "IDENTIFIER" in out
    assert "@ 1:9" in out
    assert "EOF" in out


def test_ast_command(create_script, capsys):
    script = create_script("facc f(n) { piglie n }")
    assert run_cli(["ast", str(script)]) == 0

    out = capsys.readouterr().out
    document = json.loads(out[out.index("{") :])
    assert document["statements"][0]["kind"] == "function_decl"
    assert document["statements"][0]["params"] == ["n"]


def test_ast_command_lists_every_error(create_script, capsys):
    script = create_script("chist x = 1\nsi x {}")
    assert run_cli(["ast", str(script)]) == 1

    err = capsys.readouterr().err
    assert "Expected 'è' after 'chist'" in err
    assert "Expected '(', got 'x'" in err


# --- 4. Top-level behaviour ---


def test_no_command_prints_help(capsys):
    assert run_cli([]) == 2
    assert "usage: fratm" in capsys.readouterr().out


def test_version_flag(capsys):
    assert run_cli(["--version"]) == 0
    assert __version__ in capsys.readouterr().out


def test_unexpected_errors_are_reported(create_script, monkeypatch, capsys):
    def explode(args):
        raise RuntimeError("boom")

    monkeypatch.setitem(cli.COMMANDS, "tokens", explode)
    script = create_script("tien y")

    assert run_cli(["tokens", str(script)]) == 1
    err = capsys.readouterr().err
    assert "UNEXPECTED COMPILER ERROR" in err
    assert "RuntimeError: boom" in err
