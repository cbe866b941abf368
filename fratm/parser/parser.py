"""
Recursive-descent parser turning a FratmScript token stream into an AST.

Statements are selected by their leading keyword particle; expressions are
parsed one precedence level per method, lowest first. On a syntax error the
parser records it, skips ahead to the next statement-starting keyword and
carries on, so a single run reports every independent mistake.
"""

from typing import Callable, Dict, List, Optional

from fratm.config.config import (
    ADDITIVE_OPERATOR_MAP,
    COMPARISON_OPERATOR_MAP,
    CONSOLE_BUILTINS,
    EQUALITY_OPERATOR_MAP,
    LOGICAL_AND_OPERATOR_MAP,
    LOGICAL_OR_OPERATOR_MAP,
    MULTIPLICATIVE_OPERATOR_MAP,
    STATEMENT_STARTERS,
    UNARY_OPERATOR_MAP,
)
from fratm.exceptions import ErrorCode, InternalCompilerError, LexerError, ParseError
from fratm.lexer.lexer import tokenize
from fratm.lexer.tokens import Span, Token, TokenKind

from .core.classes import *

CONSOLE_NODES = {"console_log": ConsoleLog, "console_warn": ConsoleWarn, "console_error": ConsoleError}

# Tokens after which a bare 'piglie' has no value.
RETURN_TERMINATORS = (TokenKind.NEWLINE, TokenKind.RIGHT_BRACE, TokenKind.SEMICOLON, TokenKind.EOF)


def parse_fratm(source: str) -> Program:
    """
    Parses FratmScript source text into a Program.

    Raises the first error found; the others collected by recovery are
    available on its `errors` list.
    """
    return Parser(tokenize(source)).parse()


class Parser:
    def __init__(self, tokens: List[Token]):
        if not tokens or tokens[-1].kind is not TokenKind.EOF:
            raise InternalCompilerError("The token stream must end with an EOF token.")
        self.tokens = tokens
        self.current = 0

    def parse(self) -> Program:
        program, errors = self.parse_collecting_errors()
        if errors:
            first = errors[0]
            first.errors = errors
            raise first
        return program

    def parse_collecting_errors(self):
        """Parses the whole stream, returning the program built so far and every error met."""
        statements: List[Statement] = []
        errors: List[ParseError] = []

        while not self._is_at_end():
            self._skip_newlines()
            if self._is_at_end():
                break
            try:
                statements.append(self._parse_statement())
            except ParseError as e:
                errors.append(e)
                self._synchronize()

        return Program(statements=statements), errors

    # --- Token helpers ---

    def _peek(self) -> Token:
        return self.tokens[self.current]

    def _peek_next(self) -> Token:
        return self.tokens[min(self.current + 1, len(self.tokens) - 1)]

    def _previous(self) -> Token:
        return self.tokens[self.current - 1]

    def _is_at_end(self) -> bool:
        return self._peek().kind is TokenKind.EOF

    def _advance(self) -> Token:
        if not self._is_at_end():
            self.current += 1
        return self._previous()

    def _check(self, kind: TokenKind) -> bool:
        return self._peek().kind is kind

    def _match(self, *kinds: TokenKind) -> Optional[Token]:
        if self._peek().kind in kinds:
            return self._advance()
        return None

    def _skip_newlines(self):
        while self._check(TokenKind.NEWLINE):
            self._advance()

    def _span_from(self, start: Span) -> Span:
        """A span running from `start` to the end of the last consumed token."""
        return start.merge(self._previous().span)

    def _invalid_token_error(self, token: Token) -> LexerError:
        return LexerError(ErrorCode.LEXICAL_ERROR, token.span, reason=token.value)

    def _expect(self, kind: TokenKind) -> Token:
        token = self._peek()
        if token.kind is kind:
            return self._advance()
        if token.kind is TokenKind.INVALID:
            raise self._invalid_token_error(token)
        raise ParseError(ErrorCode.EXPECTED_TOKEN, token.span, expected=kind.describe(), found=token.describe())

    def _expect_particle(self, kind: TokenKind, prior: TokenKind) -> Token:
        """Expects the next particle of a multi-word keyword phrase."""
        token = self._peek()
        if token.kind is kind:
            return self._advance()
        if token.kind is TokenKind.INVALID:
            raise self._invalid_token_error(token)
        raise ParseError(ErrorCode.EXPECTED_PARTICLE, token.span, particle=kind.describe(), prior=prior.describe())

    def _expect_identifier(self) -> str:
        token = self._peek()
        if token.kind is TokenKind.IDENTIFIER:
            self._advance()
            return token.value
        if token.kind is TokenKind.INVALID:
            raise self._invalid_token_error(token)
        raise ParseError(ErrorCode.EXPECTED_IDENTIFIER, token.span, found=token.describe())

    def _expect_string(self) -> str:
        token = self._peek()
        if token.kind is TokenKind.STRING:
            self._advance()
            return token.value
        if token.kind is TokenKind.INVALID:
            raise self._invalid_token_error(token)
        raise ParseError(ErrorCode.EXPECTED_STRING, token.span, found=token.describe())

    def _synchronize(self):
        """Panic-mode recovery: drop the offending token, then everything up to the next statement starter."""
        self._advance()
        while not self._is_at_end():
            if self._peek().kind in STATEMENT_STARTERS:
                return
            self._advance()

    # --- Statements ---

    def _parse_statement(self) -> Statement:
        self._skip_newlines()
        kind = self._peek().kind

        if kind is TokenKind.MO and self._peek_next().kind is TokenKind.VIR:
            statement = self._parse_async_function()
        elif kind in self._statement_parsers:
            statement = self._statement_parsers[kind](self)
        else:
            statement = self._parse_expression_statement()

        # A trailing semicolon is allowed after any statement.
        self._match(TokenKind.SEMICOLON)
        return statement

    def _parse_const_declaration(self) -> VariableDecl:
        start = self._expect(TokenKind.CHIST).span
        self._expect_particle(TokenKind.E, TokenKind.CHIST)
        name = self._expect_identifier()
        self._expect(TokenKind.EQUAL)
        initializer = self._parse_expression()
        return VariableDecl(name=name, initializer=initializer, is_const=True, span=self._span_from(start))

    def _parse_let_declaration(self) -> VariableDecl:
        start = self._expect(TokenKind.TIEN).span
        name = self._expect_identifier()
        initializer = None
        if self._match(TokenKind.EQUAL):
            initializer = self._parse_expression()
        return VariableDecl(name=name, initializer=initializer, is_const=False, span=self._span_from(start))

    def _parse_function(self) -> FunctionDecl:
        start = self._expect(TokenKind.FACC).span
        name = self._expect_identifier()
        params = self._parse_parameters()
        body = self._parse_block_body()
        return FunctionDecl(name=name, params=params, body=body, is_async=False, span=self._span_from(start))

    def _parse_async_function(self) -> FunctionDecl:
        start = self._expect(TokenKind.MO).span
        self._expect_particle(TokenKind.VIR, TokenKind.MO)
        self._expect_particle(TokenKind.FACC, TokenKind.VIR)
        name = self._expect_identifier()
        params = self._parse_parameters()
        body = self._parse_block_body()
        return FunctionDecl(name=name, params=params, body=body, is_async=True, span=self._span_from(start))

    def _parse_parameters(self) -> List[str]:
        self._expect(TokenKind.LEFT_PAREN)
        params = []
        if not self._check(TokenKind.RIGHT_PAREN):
            params.append(self._expect_identifier())
            while self._match(TokenKind.COMMA):
                params.append(self._expect_identifier())
        self._expect(TokenKind.RIGHT_PAREN)
        return params

    def _parse_return(self) -> Return:
        start = self._expect(TokenKind.PIGLIE).span
        value = None
        if self._peek().kind not in RETURN_TERMINATORS:
            value = self._parse_expression()
        return Return(value=value, span=self._span_from(start))

    def _parse_if(self) -> If:
        start = self._expect(TokenKind.SI).span
        self._expect(TokenKind.LEFT_PAREN)
        condition = self._parse_expression()
        self._expect(TokenKind.RIGHT_PAREN)
        then_body = self._parse_block_body()

        else_body = None
        if self._match(TokenKind.SINNO):
            if self._check(TokenKind.SI):
                else_body = [self._parse_if()]
            else:
                else_body = self._parse_block_body()
        return If(condition=condition, then_body=then_body, else_body=else_body, span=self._span_from(start))

    def _parse_while(self) -> While:
        start = self._expect(TokenKind.MENTRE).span
        self._expect_particle(TokenKind.CHE, TokenKind.MENTRE)
        self._expect(TokenKind.LEFT_PAREN)
        condition = self._parse_expression()
        self._expect(TokenKind.RIGHT_PAREN)
        body = self._parse_block_body()
        return While(condition=condition, body=body, span=self._span_from(start))

    def _parse_for(self) -> For:
        start = self._expect(TokenKind.PE).span
        # 'ogni' is optional; older sources write a bare 'pe'.
        self._match(TokenKind.OGNI)
        self._expect(TokenKind.LEFT_PAREN)

        init = None
        if self._check(TokenKind.TIEN):
            init = self._parse_let_declaration()
        elif not self._check(TokenKind.SEMICOLON):
            init_start = self._peek().span
            expression = self._parse_expression()
            init = ExpressionStatement(expression=expression, span=self._span_from(init_start))
        self._expect(TokenKind.SEMICOLON)

        condition = None
        if not self._check(TokenKind.SEMICOLON):
            condition = self._parse_expression()
        self._expect(TokenKind.SEMICOLON)

        update = None
        if not self._check(TokenKind.RIGHT_PAREN):
            update = self._parse_expression()
        self._expect(TokenKind.RIGHT_PAREN)

        body = self._parse_block_body()
        return For(init=init, condition=condition, update=update, body=body, span=self._span_from(start))

    def _parse_break(self) -> Break:
        return Break(span=self._expect(TokenKind.ROMPE).span)

    def _parse_continue(self) -> Continue:
        return Continue(span=self._expect(TokenKind.SALTA).span)

    def _parse_debugger(self) -> Debugger:
        return Debugger(span=self._expect(TokenKind.FERMETE).span)

    def _parse_try_catch(self) -> TryCatch:
        start = self._expect(TokenKind.PRUVAMM).span
        try_body = self._parse_block_body()

        # The catch clause is the three-word phrase 'e si schiatta'.
        self._expect(TokenKind.AND)
        self._expect_particle(TokenKind.SI, TokenKind.AND)
        self._expect_particle(TokenKind.SCHIATTA, TokenKind.SI)

        catch_param = None
        if self._match(TokenKind.LEFT_PAREN):
            catch_param = self._expect_identifier()
            self._expect(TokenKind.RIGHT_PAREN)
        catch_body = self._parse_block_body()
        return TryCatch(try_body=try_body, catch_param=catch_param, catch_body=catch_body, span=self._span_from(start))

    def _parse_throw(self) -> Throw:
        start = self._expect(TokenKind.IETT).span
        value = self._parse_expression()
        return Throw(value=value, span=self._span_from(start))

    def _parse_class(self) -> ClassDecl:
        start = self._expect(TokenKind.NA).span
        self._expect_particle(TokenKind.FAMIGLIE, TokenKind.NA)
        name = self._expect_identifier()
        self._expect(TokenKind.LEFT_BRACE)

        methods = []
        while not self._check(TokenKind.RIGHT_BRACE) and not self._is_at_end():
            self._skip_newlines()
            if self._check(TokenKind.RIGHT_BRACE) or self._is_at_end():
                break
            if self._check(TokenKind.MO):
                methods.append(self._parse_async_function())
            else:
                methods.append(self._parse_function())
        self._expect(TokenKind.RIGHT_BRACE)
        return ClassDecl(name=name, methods=methods, span=self._span_from(start))

    def _parse_import(self) -> Import:
        start = self._expect(TokenKind.CHIAMM).span
        self._expect(TokenKind.LEFT_BRACE)
        specifiers = []
        if not self._check(TokenKind.RIGHT_BRACE):
            while True:
                imported = self._expect_identifier()
                specifiers.append(ImportSpecifier(imported=imported, local=imported))
                if not self._match(TokenKind.COMMA):
                    break
        self._expect(TokenKind.RIGHT_BRACE)
        self._expect(TokenKind.DA)
        source = self._expect_string()
        return Import(specifiers=specifiers, source=source, span=self._span_from(start))

    def _parse_export(self) -> Export:
        start = self._expect(TokenKind.MANN).span
        self._expect_particle(TokenKind.FOR, TokenKind.MANN)
        if self._match(TokenKind.PREDEFINIT):
            default_value = self._parse_expression()
            return Export(default_value=default_value, span=self._span_from(start))
        declaration = self._parse_statement()
        return Export(declaration=declaration, span=self._span_from(start))

    def _parse_block(self) -> Block:
        start = self._peek().span
        statements = self._parse_block_body()
        return Block(statements=statements, span=self._span_from(start))

    def _parse_block_body(self) -> List[Statement]:
        self._expect(TokenKind.LEFT_BRACE)
        statements = []
        while not self._check(TokenKind.RIGHT_BRACE) and not self._is_at_end():
            self._skip_newlines()
            if self._check(TokenKind.RIGHT_BRACE) or self._is_at_end():
                break
            statements.append(self._parse_statement())
        self._expect(TokenKind.RIGHT_BRACE)
        return statements

    def _parse_expression_statement(self) -> ExpressionStatement:
        start = self._peek().span
        expression = self._parse_expression()
        return ExpressionStatement(expression=expression, span=self._span_from(start))

    _statement_parsers: Dict[TokenKind, Callable[["Parser"], Statement]] = {
        TokenKind.CHIST: _parse_const_declaration,
        TokenKind.TIEN: _parse_let_declaration,
        TokenKind.FACC: _parse_function,
        TokenKind.PIGLIE: _parse_return,
        TokenKind.SI: _parse_if,
        TokenKind.MENTRE: _parse_while,
        TokenKind.PE: _parse_for,
        TokenKind.ROMPE: _parse_break,
        TokenKind.SALTA: _parse_continue,
        TokenKind.FERMETE: _parse_debugger,
        TokenKind.PRUVAMM: _parse_try_catch,
        TokenKind.IETT: _parse_throw,
        TokenKind.NA: _parse_class,
        TokenKind.CHIAMM: _parse_import,
        TokenKind.MANN: _parse_export,
        TokenKind.LEFT_BRACE: _parse_block,
    }

    # --- Expressions (lowest precedence first) ---

    def _parse_expression(self) -> Expression:
        return self._parse_assignment()

    def _parse_assignment(self) -> Expression:
        target = self._parse_ternary()
        if self._match(TokenKind.EQUAL):
            value = self._parse_assignment()
            return Assignment(target=target, value=value, span=target.span.merge(value.span))
        return target

    def _parse_ternary(self) -> Expression:
        condition = self._parse_logical_or()
        if self._match(TokenKind.QUESTION):
            consequent = self._parse_expression()
            self._expect(TokenKind.COLON)
            alternate = self._parse_ternary()
            return Ternary(condition=condition, consequent=consequent, alternate=alternate, span=condition.span.merge(alternate.span))
        return condition

    def _parse_binary_level(self, operator_map: Dict[TokenKind, str], parse_operand: Callable[[], Expression]) -> Expression:
        """Builds a left-associative chain for one precedence level."""
        tree = parse_operand()
        while self._peek().kind in operator_map:
            operator = BinaryOperator(operator_map[self._advance().kind])
            right = parse_operand()
            tree = Binary(left=tree, operator=operator, right=right, span=tree.span.merge(right.span))
        return tree

    def _parse_logical_or(self) -> Expression:
        return self._parse_binary_level(LOGICAL_OR_OPERATOR_MAP, self._parse_logical_and)

    def _parse_logical_and(self) -> Expression:
        return self._parse_binary_level(LOGICAL_AND_OPERATOR_MAP, self._parse_equality)

    def _parse_equality(self) -> Expression:
        return self._parse_binary_level(EQUALITY_OPERATOR_MAP, self._parse_comparison)

    def _parse_comparison(self) -> Expression:
        return self._parse_binary_level(COMPARISON_OPERATOR_MAP, self._parse_additive)

    def _parse_additive(self) -> Expression:
        return self._parse_binary_level(ADDITIVE_OPERATOR_MAP, self._parse_multiplicative)

    def _parse_multiplicative(self) -> Expression:
        return self._parse_binary_level(MULTIPLICATIVE_OPERATOR_MAP, self._parse_power)

    def _parse_power(self) -> Expression:
        base = self._parse_unary()
        if self._match(TokenKind.STAR_STAR):
            # Right-associative: 2 ** 3 ** 2 is 2 ** (3 ** 2).
            exponent = self._parse_power()
            return Binary(left=base, operator=BinaryOperator.POWER, right=exponent, span=base.span.merge(exponent.span))
        return base

    def _parse_unary(self) -> Expression:
        token = self._peek()
        if token.kind in UNARY_OPERATOR_MAP:
            self._advance()
            operand = self._parse_unary()
            operator = UnaryOperator(UNARY_OPERATOR_MAP[token.kind])
            return Unary(operator=operator, operand=operand, span=token.span.merge(operand.span))
        if token.kind is TokenKind.ASPETT:
            self._advance()
            argument = self._parse_unary()
            return Await(argument=argument, span=token.span.merge(argument.span))
        if token.kind is TokenKind.LEVA:
            self._advance()
            operand = self._parse_unary()
            return Delete(operand=operand, span=token.span.merge(operand.span))
        return self._parse_call()

    def _parse_call(self) -> Expression:
        expression = self._parse_primary()
        while True:
            if self._match(TokenKind.LEFT_PAREN):
                arguments = self._parse_arguments()
                expression = Call(callee=expression, arguments=arguments, span=self._span_from(expression.span))
            elif self._match(TokenKind.DOT):
                name_token = self._peek()
                name = self._expect_identifier()
                prop = Identifier(name=name, span=name_token.span)
                expression = Member(object=expression, property=prop, computed=False, span=self._span_from(expression.span))
            elif self._match(TokenKind.LEFT_BRACKET):
                prop = self._parse_expression()
                self._expect(TokenKind.RIGHT_BRACKET)
                expression = Member(object=expression, property=prop, computed=True, span=self._span_from(expression.span))
            else:
                return expression

    def _parse_arguments(self) -> List[Expression]:
        """Parses a comma-separated argument list; the opening parenthesis is already consumed."""
        arguments = []
        if not self._check(TokenKind.RIGHT_PAREN):
            arguments.append(self._parse_expression())
            while self._match(TokenKind.COMMA):
                arguments.append(self._parse_expression())
        self._expect(TokenKind.RIGHT_PAREN)
        return arguments

    def _parse_primary(self) -> Expression:
        token = self._peek()
        kind = token.kind

        if kind is TokenKind.INVALID:
            raise self._invalid_token_error(token)
        if kind not in self._primary_kinds:
            raise ParseError(ErrorCode.EXPECTED_EXPRESSION, token.span, found=token.describe())

        self._advance()
        if kind is TokenKind.NUMBER:
            return NumberLiteral(value=token.value, span=token.span)
        if kind is TokenKind.STRING:
            return StringLiteral(value=token.value, span=token.span)
        if kind is TokenKind.IDENTIFIER:
            return Identifier(name=token.value, span=token.span)
        if kind is TokenKind.OVERO:
            return BooleanLiteral(value=True, span=token.span)
        if kind is TokenKind.SFOLS:
            return BooleanLiteral(value=False, span=token.span)
        if kind is TokenKind.NISCIUN:
            return NullLiteral(span=token.span)
        if kind is TokenKind.BOH:
            return UndefinedLiteral(span=token.span)
        if kind is TokenKind.STU:
            self._expect_particle(TokenKind.COS, TokenKind.STU)
            return This(span=self._span_from(token.span))
        if kind is TokenKind.NU:
            return self._parse_new(token)
        if kind in CONSOLE_BUILTINS:
            return self._parse_console(token)
        if kind is TokenKind.LEFT_PAREN:
            return self._parse_parenthesized(token)
        if kind is TokenKind.LEFT_BRACKET:
            return self._parse_array(token)
        return self._parse_object(token)

    _primary_kinds = frozenset(
        {
            TokenKind.NUMBER,
            TokenKind.STRING,
            TokenKind.IDENTIFIER,
            TokenKind.OVERO,
            TokenKind.SFOLS,
            TokenKind.NISCIUN,
            TokenKind.BOH,
            TokenKind.STU,
            TokenKind.NU,
            TokenKind.STAMM,
            TokenKind.AVVIS,
            TokenKind.SCRIVE,
            TokenKind.LEFT_PAREN,
            TokenKind.LEFT_BRACKET,
            TokenKind.LEFT_BRACE,
        }
    )

    def _parse_new(self, start: Token) -> New:
        self._expect_particle(TokenKind.BELL, TokenKind.NU)
        target = self._parse_call()
        span = self._span_from(start.span)
        # 'nu bell Foo(1)' arrives as a call; split it into callee and arguments.
        if isinstance(target, Call):
            return New(callee=target.callee, arguments=target.arguments, span=span)
        return New(callee=target, arguments=[], span=span)

    def _parse_console(self, start: Token) -> Expression:
        node_kind, _ = CONSOLE_BUILTINS[start.kind]
        self._expect_particle(TokenKind.A, start.kind)
        self._expect_particle(TokenKind.DI, TokenKind.A)
        self._expect(TokenKind.LEFT_PAREN)
        arguments = self._parse_arguments()
        return CONSOLE_NODES[node_kind](arguments=arguments, span=self._span_from(start.span))

    def _parse_parenthesized(self, start: Token) -> Expression:
        # '() =>' is the zero-parameter arrow; nothing else may be empty.
        if self._check(TokenKind.RIGHT_PAREN) and self._peek_next().kind is TokenKind.ARROW:
            self._advance()
            self._advance()
            return self._parse_arrow_body([], start)

        inner = self._parse_expression()
        self._expect(TokenKind.RIGHT_PAREN)
        if self._match(TokenKind.ARROW):
            params = [inner.name] if isinstance(inner, Identifier) else []
            return self._parse_arrow_body(params, start)
        return inner

    def _parse_arrow_body(self, params: List[str], start: Token) -> ArrowFunction:
        if self._check(TokenKind.LEFT_BRACE):
            body = self._parse_block_body()
        else:
            body = self._parse_expression()
        return ArrowFunction(params=params, body=body, span=self._span_from(start.span))

    def _parse_array(self, start: Token) -> ArrayLiteral:
        elements = []
        if not self._check(TokenKind.RIGHT_BRACKET):
            elements.append(self._parse_expression())
            while self._match(TokenKind.COMMA):
                if self._check(TokenKind.RIGHT_BRACKET):
                    break
                elements.append(self._parse_expression())
        self._expect(TokenKind.RIGHT_BRACKET)
        return ArrayLiteral(elements=elements, span=self._span_from(start.span))

    def _parse_object(self, start: Token) -> ObjectLiteral:
        # Newlines may appear anywhere between entries.
        properties = []
        self._skip_newlines()
        while not self._check(TokenKind.RIGHT_BRACE):
            key = self._expect_identifier()
            self._expect(TokenKind.COLON)
            value = self._parse_expression()
            properties.append(Property(key=key, value=value))
            self._skip_newlines()
            if not self._match(TokenKind.COMMA):
                break
            self._skip_newlines()
        self._skip_newlines()
        self._expect(TokenKind.RIGHT_BRACE)
        return ObjectLiteral(properties=properties, span=self._span_from(start.span))
