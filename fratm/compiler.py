import json
import os
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from fratm.codegen.code_emitter import CodeEmitter
from fratm.codegen.sourcemap import SourceMap
from fratm.config.config import DEFAULT_SOURCE_NAME
from fratm.lexer.lexer import tokenize
from fratm.parser.parser import Parser

from . import __version__
from .exceptions import CompileError, InternalCompilerError
from .utils import CompilerArtifactEncoder

STAGES = ("tokens", "ast", "code")


class CompileOptions(BaseModel):
    source_map: bool = False
    # Recorded in the source map's `sources`; defaults to input.fratm.
    filename: Optional[str] = None
    # Accepted for compatibility; output is never minified.
    minify: bool = False
    # Append the map to the code as a base64 data-URL comment.
    inline_source_map: bool = False


class CompileResult(BaseModel):
    code: str
    source_map: Optional[SourceMap] = None


class CompilationPipeline:
    """
    Orchestrates the compilation process from source text to JavaScript.
    Each stage's artifact is kept, and can be dumped to JSON next to the
    source file for debugging.
    """

    def __init__(
        self,
        source_content: str,
        file_path: Optional[str] = None,
        options: Optional[CompileOptions] = None,
        dump_stages: List[str] = [],
        stop_after_stage: Optional[str] = None,
    ):
        self.source_content = source_content
        self.file_path = os.path.abspath(file_path) if file_path else "<stdin>"
        self.options = options or CompileOptions()
        self.dump_stages = dump_stages
        self.stop_after_stage = stop_after_stage
        self.artifacts: Dict[str, Any] = {}

    def run(self) -> Any:
        """
        Executes the pipeline stage by stage. Returns a CompileResult, or the
        artifact of `stop_after_stage` when the run is cut short.
        """
        try:
            # --- Stage 1: Lexing ---
            tokens = self._run_stage("tokens", tokenize, self.source_content)
            if self.stop_after_stage == "tokens":
                return tokens

            # --- Stage 2: Parsing ---
            program = self._run_stage("ast", Parser(tokens).parse)
            if self.stop_after_stage == "ast":
                return program

            # --- Stage 3: Code generation ---
            emitter = CodeEmitter(program, source_map=self.options.source_map or self.options.inline_source_map)
            code = self._run_stage("code", emitter.emit)

            source_map = None
            if self.options.source_map or self.options.inline_source_map:
                source_map = emitter.get_source_map(self.options.filename or DEFAULT_SOURCE_NAME)
                if self.options.inline_source_map:
                    code = append_source_map_comment(code, source_map.to_data_url())

            return CompileResult(code=code, source_map=source_map if self.options.source_map else None)

        except CompileError:
            raise
        except Exception as e:
            raise InternalCompilerError(f"An unexpected internal error occurred: {e}") from e

    def _run_stage(self, name: str, func, *args) -> Any:
        """Runs a single function as a stage, storing and returning its result."""
        result = func(*args)
        self.artifacts[name] = result
        if name in self.dump_stages:
            self.save_artifact(name, result)
        return result

    def save_artifact(self, name: str, data: Any):
        """Saves an intermediate artifact to a JSON file next to the source."""
        if self.file_path == "<stdin>":
            base_name = "stdin_output"
        else:
            base_name = os.path.splitext(self.file_path)[0]

        output_path = f"{base_name}.{name}.json"
        print(f"--- Saving artifact '{name}' to {output_path} ---")

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, cls=CompilerArtifactEncoder)


def append_source_map_comment(code: str, comment: str) -> str:
    """Puts a `//# sourceMappingURL=` comment on its own final line."""
    if code and not code.endswith("\n"):
        code += "\n"
    return code + comment


def compile_fratm(source: str, options: Optional[CompileOptions] = None, **kwargs) -> CompileResult:
    """
    High-level entry point: compiles FratmScript source to JavaScript.

    Options may be passed as a CompileOptions or as keyword arguments
    (`compile_fratm(src, source_map=True)`). Raises the first CompileError
    found in the source.
    """
    if options is None:
        options = CompileOptions(**kwargs)
    return CompilationPipeline(source, options=options).run()


def version() -> str:
    return __version__
