import argparse
import json
import os
import subprocess
import sys
import tempfile
import time
from typing import List, Optional

from . import __version__
from .compiler import CompilationPipeline, CompileOptions, append_source_map_comment
from .config.config import INTERPRETER_COMMAND, SOURCE_MAP_EXTENSION, TARGET_EXTENSION
from .diagnostics import get_suggestion, random_encouragement, render_error, success_message
from .exceptions import CompileError
from .lexer.lexer import tokenize
from .parser.parser import Parser
from .utils import CompilerArtifactEncoder, TerminalColors

# Stages `build --compile` can stop after, in pipeline order.
STAGE_MAP = {
    "1": ("tokens", "Token Stream"),
    "2": ("ast", "Abstract Syntax Tree"),
}


def _build_arg_parser() -> argparse.ArgumentParser:
    stage_help_text = "Stop after a stage and save its artifact as JSON next to the source. "
    for key, (name, desc) in STAGE_MAP.items():
        stage_help_text += f"'{key}' for {desc}. "

    parser = argparse.ArgumentParser(prog="fratm", description="🤌 FratmScript: JavaScript, but the way it should be.")
    parser.add_argument("--version", action="version", version=f"fratm {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    build = subparsers.add_parser("build", help="Compile a .fratm file to JavaScript.")
    build.add_argument("input_file", help="The path to the input .fratm file.")
    build.add_argument("-o", "--output", dest="output_file", help="The output .js path. Defaults to the input path with a .js extension.")
    build.add_argument("--sourcemap", action="store_true", help="Write a .js.map file next to the output and link it.")
    build.add_argument("--inline-sourcemap", action="store_true", help="Embed the source map in the output as a data URL.")
    build.add_argument("-c", "--compile", type=str, choices=STAGE_MAP.keys(), help=stage_help_text)

    run = subparsers.add_parser("run", help="Compile a .fratm file and run it with Node.js.")
    run.add_argument("input_file", help="The path to the input .fratm file.")
    run.add_argument("--sourcemap", action="store_true", help="Embed an inline source map in the generated script.")

    tokens = subparsers.add_parser("tokens", help="Print the token stream of a .fratm file.")
    tokens.add_argument("input_file")

    ast = subparsers.add_parser("ast", help="Print the AST of a .fratm file as JSON.")
    ast.add_argument("input_file")

    subparsers.add_parser("lsp", help="Start the language server on stdio.")
    return parser


def _read_source(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        print(f"{TerminalColors.RED}ERROR: Script file '{path}' not found.{TerminalColors.RESET}", file=sys.stderr)
        sys.exit(1)


def _report_compile_error(source: str, error: CompileError):
    print(f"\n{TerminalColors.RED}{render_error(source, error)}{TerminalColors.RESET}", file=sys.stderr)
    suggestion = get_suggestion(error)
    if suggestion:
        print(f"\n{TerminalColors.YELLOW}{suggestion}{TerminalColors.RESET}", file=sys.stderr)
    print(f"\n{TerminalColors.DIM}{random_encouragement()}{TerminalColors.RESET}", file=sys.stderr)


def _build(args) -> int:
    source = _read_source(args.input_file)
    options = CompileOptions(
        source_map=args.sourcemap,
        filename=os.path.basename(args.input_file),
        inline_source_map=args.inline_sourcemap,
    )

    stop_after_stage = None
    if args.compile:
        stop_after_stage, stage_desc = STAGE_MAP[args.compile]
    dump_stages = [stop_after_stage] if stop_after_stage else []

    print(f"--- Compiling {args.input_file} ---")
    pipeline = CompilationPipeline(source, args.input_file, options, dump_stages=dump_stages, stop_after_stage=stop_after_stage)
    try:
        result = pipeline.run()
    except CompileError as e:
        _report_compile_error(source, e)
        return 1

    if stop_after_stage:
        print(f"\n{TerminalColors.GREEN}--- Compilation to stage '{args.compile} ({stage_desc})' successful ---{TerminalColors.RESET}")
        return 0

    output_path = os.path.abspath(args.output_file or os.path.splitext(args.input_file)[0] + TARGET_EXTENSION)
    os.makedirs(os.path.dirname(output_path), exist_ok=True)

    code = result.code
    if result.source_map is not None:
        map_path = output_path + SOURCE_MAP_EXTENSION
        with open(map_path, "w", encoding="utf-8") as f:
            f.write(result.source_map.to_json_pretty())
        code = append_source_map_comment(code, f"//# sourceMappingURL={os.path.basename(map_path)}")
        print(f"Source map written to {map_path}")

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(code)

    print(f"\n{TerminalColors.GREEN}{success_message()} {args.input_file} → {output_path}{TerminalColors.RESET}")
    return 0


def _run(args) -> int:
    source = _read_source(args.input_file)
    options = CompileOptions(filename=os.path.basename(args.input_file), inline_source_map=args.sourcemap)
    try:
        result = CompilationPipeline(source, args.input_file, options).run()
    except CompileError as e:
        _report_compile_error(source, e)
        return 1

    with tempfile.NamedTemporaryFile("w", suffix=TARGET_EXTENSION, encoding="utf-8", delete=False) as f:
        f.write(result.code)
        script_path = f.name
    try:
        completed = subprocess.run(INTERPRETER_COMMAND + [script_path])
    except FileNotFoundError:
        print(
            f"{TerminalColors.RED}ERROR: '{INTERPRETER_COMMAND[0]}' was not found. Install Node.js to run FratmScript.{TerminalColors.RESET}",
            file=sys.stderr,
        )
        return 1
    finally:
        os.remove(script_path)
    return completed.returncode


def _tokens(args) -> int:
    source = _read_source(args.input_file)
    print(f"{TerminalColors.CYAN}Tokens:{TerminalColors.RESET}")
    for token in tokenize(source):
        print(f"  {token.kind.name:20} @ {token.span.line}:{token.span.column}")
    return 0


def _ast(args) -> int:
    source = _read_source(args.input_file)
    program, errors = Parser(tokenize(source)).parse_collecting_errors()
    if errors:
        for error in errors:
            print(f"{TerminalColors.RED}✗ {error}{TerminalColors.RESET}", file=sys.stderr)
        return 1
    print(f"{TerminalColors.CYAN}AST:{TerminalColors.RESET}")
    print(json.dumps(program, indent=2, ensure_ascii=False, cls=CompilerArtifactEncoder))
    return 0


def _lsp(args) -> int:
    from .server import start_server

    start_server()
    return 0


COMMANDS = {"build": _build, "run": _run, "tokens": _tokens, "ast": _ast, "lsp": _lsp}


def main(argv: Optional[List[str]] = None):
    start_time = time.perf_counter()
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(2)

    try:
        exit_code = COMMANDS[args.command](args)
    except Exception as e:
        print(f"\n{TerminalColors.RED}--- UNEXPECTED COMPILER ERROR ---{TerminalColors.RESET}", file=sys.stderr)
        print("This may be a bug in the compiler. Please report it.", file=sys.stderr)
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "build":
        duration = time.perf_counter() - start_time
        print(f"\n{TerminalColors.CYAN}--- Total Execution Time: {duration:.4f} seconds ---{TerminalColors.RESET}")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
