"""
FratmScript: JavaScript written in Neapolitan dialect.

The compiler turns FratmScript source into plain JavaScript, optionally with a
Source Map v3 document pointing back at the original lines.
"""

__version__ = "0.1.0"

from .compiler import CompilationPipeline, CompileOptions, CompileResult, compile_fratm, tokenize, version
from .exceptions import CodeGenError, CompileError, LexerError, ParseError

compile = compile_fratm
