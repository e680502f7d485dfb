from treelox.errors import Diagnostic, ParseError
from treelox.tokens import Token, TokenType
import treelox.treelox_ast as ast
from typing import List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

MAX_ARGUMENTS = 255

# Tokens that begin a statement; panic-mode recovery stops in front of them
STATEMENT_STARTS = (
    TokenType.CLASS, TokenType.FUN, TokenType.VAR, TokenType.FOR,
    TokenType.IF, TokenType.WHILE, TokenType.PRINT, TokenType.RETURN,
)


class Parser:
    """Recursive-descent parser with one token of lookahead.

    A malformed production raises ParseError, which unwinds to the
    enclosing declaration. The error is recorded, tokens are discarded up
    to the next statement boundary, and parsing resumes, so a single pass
    reports every independent syntax error.
    """

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.current = 0
        self.errors: List[ParseError] = []

    def parse(self) -> Tuple[List['ast.Stmt'], List[Diagnostic]]:
        statements = []
        while not self.is_at_end():
            try:
                stmt = self.declaration()
            except RecursionError:
                # Unwound to the top level, where there is stack to recover on
                self.errors.append(self.error(self.peek(), "Expression nesting too deep."))
                self.synchronize()
                continue
            if stmt is not None:
                statements.append(stmt)
        logger.debug(f"Parsed {len(statements)} statements, {len(self.errors)} syntax errors")
        return statements, [error.to_diagnostic() for error in self.errors]

    def parse_expression(self) -> Optional['ast.Expr']:
        """Parse a lone expression that must use up every token"""
        try:
            expr = self.expression()
            if not self.is_at_end():
                raise self.error(self.peek(), "Expect end of expression.")
            return expr
        except ParseError as e:
            self.errors.append(e)
            return None

    # ------------------------------------------------------------ declarations

    def declaration(self) -> Optional['ast.Stmt']:
        try:
            if self.match(TokenType.CLASS):
                return self.class_declaration()
            if self.check(TokenType.FUN) and self.check_next(TokenType.IDENTIFIER):
                self.advance()
                return self.function("function")
            if self.match(TokenType.VAR):
                return self.var_declaration()
            return self.statement()
        except ParseError as e:
            self.errors.append(e)
            logger.debug(f"Recovering from syntax error: {e}")
            self.synchronize()
            return None

    def class_declaration(self) -> 'ast.Class':
        name = self.consume(TokenType.IDENTIFIER, "Expect class name.")
        superclass = None
        if self.match(TokenType.LESS):
            self.consume(TokenType.IDENTIFIER, "Expect superclass name.")
            superclass = ast.Variable(self.previous())
        self.consume(TokenType.LEFT_BRACE, "Expect '{' before class body.")
        methods = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end():
            methods.append(self.function("method"))
        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after class body.")
        return ast.Class(name, superclass, methods)

    def function(self, kind: str) -> 'ast.Function':
        name = self.consume(TokenType.IDENTIFIER, f"Expect {kind} name.")
        params, body = self.function_tail(kind)
        return ast.Function(name, params, body)

    def function_tail(self, kind: str) -> Tuple[List[Token], List['ast.Stmt']]:
        """Parameter list and body shared by declarations and literals"""
        self.consume(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")
        params = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    self.errors.append(self.error(self.peek(), f"Can't have more than {MAX_ARGUMENTS} parameters."))
                params.append(self.consume(TokenType.IDENTIFIER, "Expect parameter name."))
                if not self.match(TokenType.COMMA):
                    break
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")
        self.consume(TokenType.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        return params, self.block()

    def var_declaration(self) -> 'ast.Var':
        name = self.consume(TokenType.IDENTIFIER, "Expect variable name.")
        initializer = None
        if self.match(TokenType.EQUAL):
            initializer = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return ast.Var(name, initializer)

    # -------------------------------------------------------------- statements

    def statement(self) -> 'ast.Stmt':
        if self.match(TokenType.FOR):
            return self.for_statement()
        if self.match(TokenType.IF):
            return self.if_statement()
        if self.match(TokenType.PRINT):
            return self.print_statement()
        if self.match(TokenType.RETURN):
            return self.return_statement()
        if self.match(TokenType.WHILE):
            return self.while_statement()
        if self.match(TokenType.LEFT_BRACE):
            return ast.Block(self.block())
        return self.expression_statement()

    def for_statement(self) -> 'ast.Stmt':
        """Lower `for` onto a While, scoped in a Block when it declares a variable"""
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")
        if self.match(TokenType.SEMICOLON):
            initializer = None
        elif self.match(TokenType.VAR):
            initializer = self.var_declaration()
        else:
            initializer = self.expression_statement()

        condition = None
        if not self.check(TokenType.SEMICOLON):
            condition = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self.check(TokenType.RIGHT_PAREN):
            increment = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")
        body = self.statement()

        if condition is None:
            condition = ast.Literal(True)
        declares = isinstance(initializer, ast.Var)
        loop = ast.While(condition, body, increment, per_iteration=declares)
        if initializer is None:
            return loop
        return ast.Block([initializer, loop])

    def if_statement(self) -> 'ast.If':
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")
        then_branch = self.statement()
        else_branch = None
        if self.match(TokenType.ELSE):
            else_branch = self.statement()
        return ast.If(condition, then_branch, else_branch)

    def print_statement(self) -> 'ast.Print':
        value = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return ast.Print(value)

    def return_statement(self) -> 'ast.Return':
        keyword = self.previous()
        value = None
        if not self.check(TokenType.SEMICOLON):
            value = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after return value.")
        return ast.Return(keyword, value)

    def while_statement(self) -> 'ast.While':
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        return ast.While(condition, self.statement())

    def block(self) -> List['ast.Stmt']:
        statements = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end():
            stmt = self.declaration()
            if stmt is not None:
                statements.append(stmt)
        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def expression_statement(self) -> 'ast.Expression':
        expr = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return ast.Expression(expr)

    # ------------------------------------------------------------- expressions

    def expression(self) -> 'ast.Expr':
        return self.assignment()

    def assignment(self) -> 'ast.Expr':
        expr = self.or_()
        if self.match(TokenType.EQUAL):
            equals = self.previous()
            value = self.assignment()
            if isinstance(expr, ast.Variable):
                return ast.Assign(expr.name, value)
            if isinstance(expr, ast.Get):
                return ast.Set(expr.object, expr.name, value)
            # Reported without unwinding: the parser is not confused
            self.errors.append(self.error(equals, "Invalid assignment target."))
        return expr

    def or_(self) -> 'ast.Expr':
        expr = self.and_()
        while self.match(TokenType.OR):
            operator = self.previous()
            expr = ast.Logical(expr, operator, self.and_())
        return expr

    def and_(self) -> 'ast.Expr':
        expr = self.equality()
        while self.match(TokenType.AND):
            operator = self.previous()
            expr = ast.Logical(expr, operator, self.equality())
        return expr

    def equality(self) -> 'ast.Expr':
        return self.binary_left(self.comparison, TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def comparison(self) -> 'ast.Expr':
        return self.binary_left(self.term, TokenType.GREATER, TokenType.GREATER_EQUAL,
                                TokenType.LESS, TokenType.LESS_EQUAL)

    def term(self) -> 'ast.Expr':
        return self.binary_left(self.factor, TokenType.MINUS, TokenType.PLUS)

    def factor(self) -> 'ast.Expr':
        return self.binary_left(self.unary, TokenType.SLASH, TokenType.STAR)

    def binary_left(self, operand, *operators: TokenType) -> 'ast.Expr':
        """One left-associative precedence level"""
        expr = operand()
        while self.match(*operators):
            operator = self.previous()
            expr = ast.Binary(expr, operator, operand())
        return expr

    def unary(self) -> 'ast.Expr':
        if self.match(TokenType.BANG, TokenType.MINUS):
            operator = self.previous()
            return ast.Unary(operator, self.unary())
        return self.call()

    def call(self) -> 'ast.Expr':
        expr = self.primary()
        while True:
            if self.match(TokenType.LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TokenType.DOT):
                name = self.consume(TokenType.IDENTIFIER, "Expect property name after '.'.")
                expr = ast.Get(expr, name)
            else:
                return expr

    def finish_call(self, callee: 'ast.Expr') -> 'ast.Call':
        arguments = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(arguments) >= MAX_ARGUMENTS:
                    self.errors.append(self.error(self.peek(), f"Can't have more than {MAX_ARGUMENTS} arguments."))
                arguments.append(self.expression())
                if not self.match(TokenType.COMMA):
                    break
        paren = self.consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return ast.Call(callee, paren, arguments)

    def primary(self) -> 'ast.Expr':
        if self.match(TokenType.FALSE):
            return ast.Literal(False)
        if self.match(TokenType.TRUE):
            return ast.Literal(True)
        if self.match(TokenType.NIL):
            return ast.Literal(None)
        if self.match(TokenType.NUMBER, TokenType.STRING):
            return ast.Literal(self.previous().literal)
        if self.match(TokenType.THIS):
            return ast.This(self.previous())
        if self.match(TokenType.SUPER):
            keyword = self.previous()
            self.consume(TokenType.DOT, "Expect '.' after 'super'.")
            method = self.consume(TokenType.IDENTIFIER, "Expect superclass method name.")
            return ast.Super(keyword, method)
        if self.match(TokenType.IDENTIFIER):
            return ast.Variable(self.previous())
        if self.match(TokenType.FUN):
            keyword = self.previous()
            params, body = self.function_tail("function")
            return ast.FunctionLiteral(keyword, params, body)
        if self.match(TokenType.LEFT_PAREN):
            expr = self.expression()
            self.consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return ast.Grouping(expr)
        raise self.error(self.peek(), "Expect expression.")

    # ----------------------------------------------------------------- helpers

    def match(self, *types: TokenType) -> bool:
        for kind in types:
            if self.check(kind):
                self.advance()
                return True
        return False

    def consume(self, kind: TokenType, message: str) -> Token:
        if self.check(kind):
            return self.advance()
        raise self.error(self.peek(), message)

    def check(self, kind: TokenType) -> bool:
        if self.is_at_end():
            return False
        return self.peek().type == kind

    def check_next(self, kind: TokenType) -> bool:
        if self.is_at_end() or self.current + 1 >= len(self.tokens):
            return False
        return self.tokens[self.current + 1].type == kind

    def advance(self) -> Token:
        if not self.is_at_end():
            self.current += 1
        return self.previous()

    def is_at_end(self) -> bool:
        return self.peek().type == TokenType.EOF

    def peek(self) -> Token:
        return self.tokens[self.current]

    def previous(self) -> Token:
        return self.tokens[self.current - 1]

    def error(self, token: Token, message: str) -> ParseError:
        return ParseError.at(token, message)

    def synchronize(self) -> None:
        """Discard tokens until the start of the next statement"""
        self.advance()
        while not self.is_at_end():
            if self.previous().type == TokenType.SEMICOLON:
                return
            if self.peek().type in STATEMENT_STARTS:
                return
            self.advance()


def parse(tokens: List[Token]) -> Tuple[List['ast.Stmt'], List[Diagnostic]]:
    return Parser(tokens).parse()
