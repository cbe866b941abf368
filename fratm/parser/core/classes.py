"""
Defines the formal data structures (contracts) for the Abstract Syntax Tree (AST)
produced by the parser stage.

Each node is a pydantic model carrying a `Span` that locates it in the source,
used for error reporting and for source-map emission. Every node also has a
literal `kind` tag so a whole program survives a JSON dump and reload.
"""

from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

from fratm.lexer.tokens import Span


class BinaryOperator(Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    MODULO = "modulo"
    POWER = "power"
    EQUAL = "equal"
    STRICT_EQUAL = "strict_equal"
    NOT_EQUAL = "not_equal"
    STRICT_NOT_EQUAL = "strict_not_equal"
    LESS_THAN = "less_than"
    GREATER_THAN = "greater_than"
    LESS_EQUAL = "less_equal"
    GREATER_EQUAL = "greater_equal"
    AND = "and"
    OR = "or"


class UnaryOperator(Enum):
    NEGATE = "negate"
    NOT = "not"


class ASTNode(BaseModel):
    """A base class for all AST nodes, ensuring they have a span."""

    span: Span = Field(default_factory=Span)


# --- Literals and Identifiers ---


class Identifier(ASTNode):
    kind: Literal["identifier"] = "identifier"
    name: str


class NumberLiteral(ASTNode):
    kind: Literal["number"] = "number"
    value: float


class StringLiteral(ASTNode):
    kind: Literal["string"] = "string"
    value: str


class BooleanLiteral(ASTNode):
    kind: Literal["boolean"] = "boolean"
    value: bool


class NullLiteral(ASTNode):
    kind: Literal["null"] = "null"


class UndefinedLiteral(ASTNode):
    kind: Literal["undefined"] = "undefined"


class This(ASTNode):
    kind: Literal["this"] = "this"


class ArrayLiteral(ASTNode):
    kind: Literal["array"] = "array"
    elements: List["Expression"] = []


class Property(BaseModel):
    key: str
    value: "Expression"


class ObjectLiteral(ASTNode):
    """Properties keep the order they were written in."""

    kind: Literal["object"] = "object"
    properties: List[Property] = []


# --- Operators ---


class Binary(ASTNode):
    kind: Literal["binary"] = "binary"
    left: "Expression"
    operator: BinaryOperator
    right: "Expression"


class Unary(ASTNode):
    kind: Literal["unary"] = "unary"
    operator: UnaryOperator
    operand: "Expression"


class Assignment(ASTNode):
    # The target is not validated: any expression may sit on the left.
    kind: Literal["assignment"] = "assignment"
    target: "Expression"
    value: "Expression"


class Ternary(ASTNode):
    kind: Literal["ternary"] = "ternary"
    condition: "Expression"
    consequent: "Expression"
    alternate: "Expression"


# --- Calls and Access ---


class Call(ASTNode):
    kind: Literal["call"] = "call"
    callee: "Expression"
    arguments: List["Expression"] = []


class Member(ASTNode):
    """`object.property` when not computed (property is an Identifier), `object[property]` otherwise."""

    kind: Literal["member"] = "member"
    object: "Expression"
    property: "Expression"
    computed: bool = False


class New(ASTNode):
    kind: Literal["new"] = "new"
    callee: "Expression"
    arguments: List["Expression"] = []


class ArrowFunction(ASTNode):
    """The body is either a single expression or a list of statements."""

    kind: Literal["arrow_function"] = "arrow_function"
    params: List[str] = []
    body: Union[List["Statement"], "Expression"]


class Await(ASTNode):
    kind: Literal["await"] = "await"
    argument: "Expression"


class TypeOf(ASTNode):
    kind: Literal["typeof"] = "typeof"
    operand: "Expression"


class Delete(ASTNode):
    kind: Literal["delete"] = "delete"
    operand: "Expression"


# --- Console builtins ---


class ConsoleLog(ASTNode):
    kind: Literal["console_log"] = "console_log"
    arguments: List["Expression"] = []


class ConsoleWarn(ASTNode):
    kind: Literal["console_warn"] = "console_warn"
    arguments: List["Expression"] = []


class ConsoleError(ASTNode):
    kind: Literal["console_error"] = "console_error"
    arguments: List["Expression"] = []


Expression = Union[
    Identifier,
    NumberLiteral,
    StringLiteral,
    BooleanLiteral,
    NullLiteral,
    UndefinedLiteral,
    This,
    ArrayLiteral,
    ObjectLiteral,
    Binary,
    Unary,
    Assignment,
    Ternary,
    Call,
    Member,
    New,
    ArrowFunction,
    Await,
    TypeOf,
    Delete,
    ConsoleLog,
    ConsoleWarn,
    ConsoleError,
]


# --- Statements ---


class VariableDecl(ASTNode):
    kind: Literal["variable_decl"] = "variable_decl"
    name: str
    initializer: Optional["Expression"] = None
    is_const: bool = False


class FunctionDecl(ASTNode):
    kind: Literal["function_decl"] = "function_decl"
    name: str
    params: List[str] = []
    body: List["Statement"] = []
    is_async: bool = False


class Return(ASTNode):
    kind: Literal["return"] = "return"
    value: Optional["Expression"] = None


class If(ASTNode):
    """An `else if` chain is an else body holding exactly one nested If."""

    kind: Literal["if"] = "if"
    condition: "Expression"
    then_body: List["Statement"] = []
    else_body: Optional[List["Statement"]] = None


class While(ASTNode):
    kind: Literal["while"] = "while"
    condition: "Expression"
    body: List["Statement"] = []


class For(ASTNode):
    kind: Literal["for"] = "for"
    init: Optional["Statement"] = None
    condition: Optional["Expression"] = None
    update: Optional["Expression"] = None
    body: List["Statement"] = []


class Break(ASTNode):
    kind: Literal["break"] = "break"


class Continue(ASTNode):
    kind: Literal["continue"] = "continue"


class Debugger(ASTNode):
    kind: Literal["debugger"] = "debugger"


class TryCatch(ASTNode):
    kind: Literal["try_catch"] = "try_catch"
    try_body: List["Statement"] = []
    catch_param: Optional[str] = None
    catch_body: List["Statement"] = []


class Throw(ASTNode):
    kind: Literal["throw"] = "throw"
    value: "Expression"


class ClassDecl(ASTNode):
    kind: Literal["class_decl"] = "class_decl"
    name: str
    methods: List[FunctionDecl] = []


class ImportSpecifier(BaseModel):
    imported: str
    local: str


class Import(ASTNode):
    kind: Literal["import"] = "import"
    specifiers: List[ImportSpecifier] = []
    source: str


class Export(ASTNode):
    """Exactly one of `declaration` and `default_value` is set."""

    kind: Literal["export"] = "export"
    declaration: Optional["Statement"] = None
    default_value: Optional["Expression"] = None


class ExpressionStatement(ASTNode):
    kind: Literal["expression_statement"] = "expression_statement"
    expression: "Expression"


class Block(ASTNode):
    kind: Literal["block"] = "block"
    statements: List["Statement"] = []


Statement = Union[
    VariableDecl,
    FunctionDecl,
    Return,
    If,
    While,
    For,
    Break,
    Continue,
    Debugger,
    TryCatch,
    Throw,
    ClassDecl,
    Import,
    Export,
    ExpressionStatement,
    Block,
]


class Program(BaseModel):
    statements: List[Statement] = []


# Resolve the forward references now that both unions exist.
for _model in (
    ArrayLiteral,
    Property,
    ObjectLiteral,
    Binary,
    Unary,
    Assignment,
    Ternary,
    Call,
    Member,
    New,
    ArrowFunction,
    Await,
    TypeOf,
    Delete,
    ConsoleLog,
    ConsoleWarn,
    ConsoleError,
    VariableDecl,
    FunctionDecl,
    Return,
    If,
    While,
    For,
    TryCatch,
    Throw,
    ClassDecl,
    Import,
    Export,
    ExpressionStatement,
    Block,
    Program,
):
    _model.model_rebuild()
