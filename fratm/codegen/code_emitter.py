import math
from decimal import Decimal
from typing import List, Optional

from fratm.config.config import BINARY_OPERATOR_TEXT, CONSOLE_BUILTINS, UNARY_OPERATOR_TEXT
from fratm.exceptions import CodeGenError, ErrorCode
from fratm.lexer.tokens import Span
from fratm.parser.core.classes import *

from .sourcemap import SourceMap, SourceMapBuilder

INDENT = "  "

STRING_ESCAPES = {'"': '\\"', "\\": "\\\\", "\n": "\\n", "\r": "\\r", "\t": "\\t"}

CONSOLE_CALLEES = {kind: callee for kind, callee in CONSOLE_BUILTINS.values()}

# Prefix and low-precedence forms that must be wrapped before a postfix
# operator (call, member access, `new`) can apply to them.
LOW_PRECEDENCE_NODES = (ArrowFunction, Assignment, Unary, Await, TypeOf, Delete)


def format_number(value: float) -> str:
    """
    Renders a number the way it reads back: integral values without a
    fractional part, everything else in positional (never exponent) notation.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer():
        return str(int(value))
    text = repr(value)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    return text


def quote_string(value: str) -> str:
    return '"' + "".join(STRING_ESCAPES.get(char, char) for char in value) + '"'


def _contains_call(node: Expression) -> bool:
    """True when a call appears along the member chain of `node`."""
    while isinstance(node, Member):
        node = node.object
    return isinstance(node, Call)


def _starts_with_object_literal(node: Expression) -> bool:
    while isinstance(node, Assignment):
        node = node.target
    return isinstance(node, ObjectLiteral)


class CodeEmitter:
    """
    Walks a Program depth-first and writes JavaScript into a buffer.

    The emitter tracks the current generated line and column so that, when
    source maps are enabled, every statement, identifier and number can be
    mapped back to where it started in the FratmScript source.
    """

    def __init__(self, program: Program, source_map: bool = False):
        self.program = program
        self.source_map_enabled = source_map
        self.builder = SourceMapBuilder()
        self.output: List[str] = []
        self.indent = 0
        self.line = 0
        self.column = 0

    def emit(self) -> str:
        for statement in self.program.statements:
            self._emit_statement(statement)
            self._write("\n")
        return "".join(self.output)

    def get_source_map(self, source_file: Optional[str] = None) -> SourceMap:
        return self.builder.build(source_file)

    # --- Output helpers ---

    def _write(self, text: str):
        for char in text:
            if char == "\n":
                self.line += 1
                self.column = 0
                if self.source_map_enabled:
                    self.builder.new_line()
            else:
                self.column += 1
        self.output.append(text)

    def _write_indent(self):
        self._write(INDENT * self.indent)

    def _add_mapping(self, span: Span):
        # Spans are 1-indexed; the map stores 0-indexed positions.
        if self.source_map_enabled:
            self.builder.add_mapping(self.line, self.column, max(span.line - 1, 0), max(span.column - 1, 0))

    def _write_body(self, statements: List[Statement]):
        """Writes `{`, the indented statements one per line, then the closing `}`."""
        self._write("{\n")
        self.indent += 1
        for statement in statements:
            self._emit_statement(statement)
            self._write("\n")
        self.indent -= 1
        self._write_indent()
        self._write("}")

    def _write_list(self, expressions: List[Expression]):
        for i, expression in enumerate(expressions):
            if i > 0:
                self._write(", ")
            self._emit_expression(expression)

    def _write_wrapped(self, expression: Expression, wrap: bool):
        if wrap:
            self._write("(")
            self._emit_expression(expression)
            self._write(")")
        else:
            self._emit_expression(expression)

    # --- Statements ---

    def _emit_statement(self, statement: Statement):
        handler = getattr(self, f"_emit_{getattr(statement, 'kind', '')}_statement", None)
        if handler is None:
            raise CodeGenError(ErrorCode.MALFORMED_AST, node=type(statement).__name__, details="not a statement")
        self._write_indent()
        self._add_mapping(statement.span)
        handler(statement)

    def _emit_variable_decl_statement(self, node: VariableDecl):
        self._write_declaration(node)
        self._write(";")

    def _write_declaration(self, node: VariableDecl):
        self._write("const " if node.is_const else "let ")
        self._write(node.name)
        if node.initializer is not None:
            self._write(" = ")
            self._emit_expression(node.initializer)

    def _emit_function_decl_statement(self, node: FunctionDecl):
        if node.is_async:
            self._write("async ")
        self._write(f"function {node.name}({', '.join(node.params)}) ")
        self._write_body(node.body)

    def _emit_return_statement(self, node: Return):
        self._write("return")
        if node.value is not None:
            self._write(" ")
            self._emit_expression(node.value)
        self._write(";")

    def _emit_if_statement(self, node: If):
        self._write("if (")
        self._emit_expression(node.condition)
        self._write(") ")
        self._write_body(node.then_body)
        if node.else_body is None:
            return

        self._write(" else ")
        if len(node.else_body) == 1 and isinstance(node.else_body[0], If):
            nested = node.else_body[0]
            self._add_mapping(nested.span)
            self._emit_if_statement(nested)
        else:
            self._write_body(node.else_body)

    def _emit_while_statement(self, node: While):
        self._write("while (")
        self._emit_expression(node.condition)
        self._write(") ")
        self._write_body(node.body)

    def _emit_for_statement(self, node: For):
        self._write("for (")
        if isinstance(node.init, VariableDecl):
            self._write_declaration(node.init)
        elif isinstance(node.init, ExpressionStatement):
            self._emit_expression(node.init.expression)
        elif node.init is not None:
            raise CodeGenError(ErrorCode.MALFORMED_AST, node="For", details=f"unsupported initializer '{node.init.kind}'")
        self._write("; ")
        if node.condition is not None:
            self._emit_expression(node.condition)
        self._write("; ")
        if node.update is not None:
            self._emit_expression(node.update)
        self._write(") ")
        self._write_body(node.body)

    def _emit_break_statement(self, node: Break):
        self._write("break;")

    def _emit_continue_statement(self, node: Continue):
        self._write("continue;")

    def _emit_debugger_statement(self, node: Debugger):
        self._write("debugger;")

    def _emit_try_catch_statement(self, node: TryCatch):
        self._write("try ")
        self._write_body(node.try_body)
        self._write(" catch")
        if node.catch_param is not None:
            self._write(f" ({node.catch_param})")
        self._write(" ")
        self._write_body(node.catch_body)

    def _emit_throw_statement(self, node: Throw):
        self._write("throw ")
        self._emit_expression(node.value)
        self._write(";")

    def _emit_class_decl_statement(self, node: ClassDecl):
        self._write(f"class {node.name} {{\n")
        self.indent += 1
        for method in node.methods:
            self._write_indent()
            self._add_mapping(method.span)
            if method.is_async:
                self._write("async ")
            self._write(f"{method.name}({', '.join(method.params)}) ")
            self._write_body(method.body)
            self._write("\n")
        self.indent -= 1
        self._write_indent()
        self._write("}")

    def _emit_import_statement(self, node: Import):
        names = ", ".join(specifier.local for specifier in node.specifiers)
        self._write(f"import {{ {names} }} from {quote_string(node.source)};")

    def _emit_export_statement(self, node: Export):
        if node.default_value is not None:
            self._write("export default ")
            self._emit_expression(node.default_value)
            self._write(";")
        elif node.declaration is not None:
            self._write("export ")
            # The declaration is rendered at indentation zero wherever the export sits.
            saved_indent = self.indent
            self.indent = 0
            self._emit_statement(node.declaration)
            self.indent = saved_indent
        else:
            raise CodeGenError(ErrorCode.MALFORMED_AST, node="Export", details="neither a declaration nor a default value")

    def _emit_expression_statement_statement(self, node: ExpressionStatement):
        self._write_wrapped(node.expression, _starts_with_object_literal(node.expression))
        self._write(";")

    def _emit_block_statement(self, node: Block):
        self._write_body(node.statements)

    # --- Expressions ---

    def _emit_expression(self, expression: Expression):
        handler = getattr(self, f"_emit_{getattr(expression, 'kind', '')}", None)
        if handler is None:
            raise CodeGenError(ErrorCode.MALFORMED_AST, node=type(expression).__name__, details="not an expression")
        handler(expression)

    def _emit_identifier(self, node: Identifier):
        self._add_mapping(node.span)
        self._write(node.name)

    def _emit_number(self, node: NumberLiteral):
        self._add_mapping(node.span)
        self._write(format_number(node.value))

    def _emit_string(self, node: StringLiteral):
        self._write(quote_string(node.value))

    def _emit_boolean(self, node: BooleanLiteral):
        self._write("true" if node.value else "false")

    def _emit_null(self, node: NullLiteral):
        self._write("null")

    def _emit_undefined(self, node: UndefinedLiteral):
        self._write("undefined")

    def _emit_this(self, node: This):
        self._write("this")

    def _emit_array(self, node: ArrayLiteral):
        self._write("[")
        self._write_list(node.elements)
        self._write("]")

    def _emit_object(self, node: ObjectLiteral):
        if not node.properties:
            self._write("{}")
            return
        self._write("{ ")
        for i, prop in enumerate(node.properties):
            if i > 0:
                self._write(", ")
            self._write(f"{prop.key}: ")
            self._emit_expression(prop.value)
        self._write(" }")

    def _emit_binary(self, node: Binary):
        # Always fully parenthesised, whatever the target's precedence rules.
        self._write("(")
        wrap_left = isinstance(node.left, (ArrowFunction, Assignment))
        if node.operator is BinaryOperator.POWER:
            # A prefix operator may not sit directly on the left of '**'.
            wrap_left = isinstance(node.left, LOW_PRECEDENCE_NODES)
        self._write_wrapped(node.left, wrap_left)
        self._write(f" {BINARY_OPERATOR_TEXT[node.operator.value]} ")
        self._write_wrapped(node.right, isinstance(node.right, (ArrowFunction, Assignment)))
        self._write(")")

    def _emit_unary(self, node: Unary):
        text = UNARY_OPERATOR_TEXT[node.operator.value]
        self._write(text)
        operand = node.operand
        # '- -x' must not collapse into the decrement operator.
        if text == "-" and (
            (isinstance(operand, Unary) and operand.operator is UnaryOperator.NEGATE)
            or (isinstance(operand, NumberLiteral) and operand.value < 0)
        ):
            self._write(" ")
        self._write_wrapped(operand, isinstance(operand, (ArrowFunction, Assignment)))

    def _emit_assignment(self, node: Assignment):
        self._write_wrapped(node.target, isinstance(node.target, (ArrowFunction, Assignment)))
        self._write(" = ")
        self._emit_expression(node.value)

    def _emit_ternary(self, node: Ternary):
        self._write("(")
        self._write_wrapped(node.condition, isinstance(node.condition, (ArrowFunction, Assignment)))
        self._write(" ? ")
        self._emit_expression(node.consequent)
        self._write(" : ")
        self._emit_expression(node.alternate)
        self._write(")")

    def _write_postfix_target(self, node: Expression, member_access: bool = False):
        wrap = isinstance(node, LOW_PRECEDENCE_NODES + (ObjectLiteral,))
        # '5.x' would read as a malformed number.
        if member_access and isinstance(node, NumberLiteral):
            wrap = True
        self._write_wrapped(node, wrap)

    def _emit_call(self, node: Call):
        self._write_postfix_target(node.callee)
        self._write("(")
        self._write_list(node.arguments)
        self._write(")")

    def _emit_member(self, node: Member):
        if node.computed:
            self._write_postfix_target(node.object)
            self._write("[")
            self._emit_expression(node.property)
            self._write("]")
        else:
            self._write_postfix_target(node.object, member_access=True)
            self._write(".")
            self._emit_expression(node.property)

    def _emit_new(self, node: New):
        self._write("new ")
        callee = node.callee
        # A call inside the callee would bind the arguments to 'new' itself.
        wrap = _contains_call(callee) or isinstance(callee, LOW_PRECEDENCE_NODES + (ObjectLiteral, New))
        self._write_wrapped(callee, wrap)
        self._write("(")
        self._write_list(node.arguments)
        self._write(")")

    def _emit_arrow_function(self, node: ArrowFunction):
        self._write(f"({', '.join(node.params)}) => ")
        if isinstance(node.body, list):
            self._write_body(node.body)
        else:
            self._write_wrapped(node.body, isinstance(node.body, ObjectLiteral))

    def _emit_await(self, node: Await):
        self._write("await ")
        self._write_wrapped(node.argument, isinstance(node.argument, (ArrowFunction, Assignment)))

    def _emit_typeof(self, node: TypeOf):
        self._write("typeof ")
        self._write_wrapped(node.operand, isinstance(node.operand, (ArrowFunction, Assignment)))

    def _emit_delete(self, node: Delete):
        self._write("delete ")
        self._write_wrapped(node.operand, isinstance(node.operand, (ArrowFunction, Assignment)))

    def _write_console(self, node):
        self._write(f"{CONSOLE_CALLEES[node.kind]}(")
        self._write_list(node.arguments)
        self._write(")")

    _emit_console_log = _write_console
    _emit_console_warn = _write_console
    _emit_console_error = _write_console
