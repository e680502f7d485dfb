import ply.lex as lex
from treelox.errors import Diagnostic, LexError
from treelox.tokens import KEYWORDS, Token, TokenType
from typing import List, Tuple
import logging

logger = logging.getLogger(__name__)


class Lexer:
    """Single-pass scanner built on ply.lex.

    Lexical errors never stop the scan: each one is recorded and scanning
    resumes right after the offending text.
    """

    # A string containing ignored characters (spaces, tabs and carriage returns)
    t_ignore = ' \t\r'

    # List of token names, shared with TokenType
    tokens = [kind.name for kind in TokenType if kind != TokenType.EOF]

    # Regular expression rules for simple tokens
    t_LEFT_PAREN = r'\('
    t_RIGHT_PAREN = r'\)'
    t_LEFT_BRACE = r'\{'
    t_RIGHT_BRACE = r'\}'
    t_COMMA = r','
    t_DOT = r'\.'
    t_MINUS = r'-'
    t_PLUS = r'\+'
    t_SEMICOLON = r';'
    t_SLASH = r'/'
    t_STAR = r'\*'
    t_BANG_EQUAL = r'!='
    t_BANG = r'!'
    t_EQUAL_EQUAL = r'=='
    t_EQUAL = r'='
    t_GREATER_EQUAL = r'>='
    t_GREATER = r'>'
    t_LESS_EQUAL = r'<='
    t_LESS = r'<'

    # Comments run to the end of the line
    def t_COMMENT(self, t):
        r'//[^\n]*'
        pass

    def t_NUMBER(self, t):
        r'\d+(?:\.\d+)?'
        return t

    def t_IDENTIFIER(self, t):
        r'[A-Za-z_][A-Za-z_0-9]*'
        # Check for reserved words
        keyword = KEYWORDS.get(t.value)
        if keyword is not None:
            t.type = keyword.name
        return t

    def t_STRING(self, t):
        r'"[^"\n]*"'
        return t

    def t_UNTERMINATED_STRING(self, t):
        r'"[^"\n]*'
        # Drop the rest of the line; scanning picks up at the newline
        self.errors.append(LexError("Unterminated string.", t.lexer.lineno))

    # Define a rule so we can track line numbers
    def t_newline(self, t):
        r'\n+'
        t.lexer.lineno += len(t.value)

    # Error handling rule
    def t_error(self, t):
        self.errors.append(LexError(f"Unexpected character '{t.value[0]}'.", t.lexer.lineno))
        t.lexer.skip(1)

    # Build the lexer
    def __init__(self):
        self.errors: List[LexError] = []
        self.lexer = lex.lex(module=self, errorlog=logger)

    def input(self, data: str) -> None:
        self.errors = []
        self.lexer.lineno = 1
        self.lexer.input(data)

    def token(self):
        return self.lexer.token()

    def scan(self, source: str) -> Tuple[List[Token], List[Diagnostic]]:
        """Scan `source` into tokens terminated by an EOF token"""
        self.input(source)
        result = []
        for tok in iter(self.token, None):
            kind = TokenType[tok.type]
            if kind == TokenType.NUMBER:
                literal = float(tok.value)
            elif kind == TokenType.STRING:
                literal = tok.value[1:-1]
            else:
                literal = None
            result.append(Token(kind, tok.value, literal, tok.lineno))
        result.append(Token(TokenType.EOF, "", None, self.lexer.lineno))
        logger.debug(f"Scanned {len(result)} tokens, {len(self.errors)} lexical errors")
        return result, [error.to_diagnostic() for error in self.errors]


def scan(source: str) -> Tuple[List[Token], List[Diagnostic]]:
    return Lexer().scan(source)
