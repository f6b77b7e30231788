"""Lexical analysis for the rnj language: a single left-to-right pass over the source that produces a flat list of
Tokens terminated by an EOF token.

```
number     ::= <digit>+ ("." <digit>+)?             ; no exponents; "1." is a number followed by a dot
string     ::= '"' <any char but '"'>* '"'          ; may span lines, no escapes
identifier ::= <alpha> (<alpha> | <digit>)*         ; <alpha> includes "_"
comment    ::= "//" <any char but newline>*
```

Errors do not stop scanning: they are collected in Lexer.errors so that every problem in the source can be reported at
once.
"""

from rnj.core.tokens import KEYWORDS, Token, TokenType
from rnj.lang.error import LexError


SINGLE = {
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "{": TokenType.LEFT_BRACE,
    "}": TokenType.RIGHT_BRACE,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
    "-": TokenType.MINUS,
    "+": TokenType.PLUS,
    ";": TokenType.SEMICOLON,
    "*": TokenType.STAR,
}

# char: (type if followed by "=", type otherwise)
DOUBLE = {
    "!": (TokenType.BANG_EQUAL, TokenType.BANG),
    "=": (TokenType.EQUAL_EQUAL, TokenType.EQUAL),
    "<": (TokenType.LESS_EQUAL, TokenType.LESS),
    ">": (TokenType.GREATER_EQUAL, TokenType.GREATER),
}


class Lexer:
    """Scans a source string into tokens."""

    def __init__(self, source):
        self.source = source
        self.tokens = []
        self.errors = []

        self.start = 0    # first char of the lexeme being scanned
        self.current = 0  # char about to be consumed
        self.line = 1

    def scan(self):
        """Scans the entire source. Returns the token list, always ending with EOF."""
        while not self.is_at_end():
            self.start = self.current
            self.scan_token()

        self.tokens.append(Token(TokenType.EOF, "", None, self.line))
        return self.tokens

    def scan_token(self):
        char = self.advance()

        if char in SINGLE:
            self.add_token(SINGLE[char])
        elif char in DOUBLE:
            matched, single = DOUBLE[char]
            self.add_token(matched if self.match("=") else single)
        elif char == "/":
            if self.match("/"):
                while self.peek() != "\n" and not self.is_at_end():
                    self.advance()
            else:
                self.add_token(TokenType.SLASH)
        elif char in " \r\t":
            pass
        elif char == "\n":
            self.line += 1
        elif char == '"':
            self.string()
        elif is_digit(char):
            self.number()
        elif is_alpha(char):
            self.identifier()
        else:
            self.errors.append(LexError("Unexpected character '{}'.", char, line=self.line))

    def string(self):
        while self.peek() != '"' and not self.is_at_end():
            if self.peek() == "\n":
                self.line += 1
            self.advance()

        if self.is_at_end():
            snippet = self.source[self.start:].split("\n", 1)[0]
            self.errors.append(LexError("Unterminated string.", line=self.line, lexeme=snippet))
            return

        self.advance()  # closing quote
        self.add_token(TokenType.STRING, self.source[self.start + 1:self.current - 1])

    def number(self):
        while is_digit(self.peek()):
            self.advance()

        if self.peek() == "." and is_digit(self.peek_next()):
            self.advance()
            while is_digit(self.peek()):
                self.advance()

        self.add_token(TokenType.NUMBER, float(self.source[self.start:self.current]))

    def identifier(self):
        while is_alpha(self.peek()) or is_digit(self.peek()):
            self.advance()

        text = self.source[self.start:self.current]
        self.add_token(KEYWORDS.get(text, TokenType.IDENTIFIER))

    def add_token(self, token_type, literal=None):
        self.tokens.append(Token(token_type, self.source[self.start:self.current], literal, self.line))

    def advance(self):
        char = self.source[self.current]
        self.current += 1
        return char

    def match(self, expected):
        if self.is_at_end() or self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def peek(self):
        return "" if self.is_at_end() else self.source[self.current]

    def peek_next(self):
        return "" if self.current + 1 >= len(self.source) else self.source[self.current + 1]

    def is_at_end(self):
        return self.current >= len(self.source)


def is_digit(char):
    return "0" <= char <= "9"


def is_alpha(char):
    return ("a" <= char <= "z") or ("A" <= char <= "Z") or char == "_"


def scan(source):
    """Convenience wrapper: returns (tokens, errors) for source."""
    lexer = Lexer(source)
    return lexer.scan(), lexer.errors
