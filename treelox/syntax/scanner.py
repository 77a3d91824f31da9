"""Lexical analysis for the treelox language: turns source text into a flat list of Tokens.

```
<number>     ::= <digit>+ ( "." <digit>+ )?          ; always a float
<string>     ::= '"' <char except '"'>* '"'           ; no escapes, may span lines
<identifier> ::= <alpha> ( <alpha> | <digit> )*       ; <alpha> is [a-zA-Z_]
<comment>    ::= "//" <char>* | "/*" ( <comment> | <char> )* "*/"   ; block comments nest
```

Errors do not stop the scan: each one is reported and scanning resumes at the next character.
"""

from treelox.syntax.tokens import KEYWORDS, Token, TokenType


class Scanner:
    """Single pass scanner with one character of lookahead (two where needed)."""
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
        "%": TokenType.MODULO,
        "?": TokenType.QUESTION,
        ":": TokenType.COLON,
    }
    # char: (token if followed by "=", token otherwise)
    DOUBLE = {
        "!": (TokenType.BANG_EQUAL, TokenType.BANG),
        "=": (TokenType.EQUAL_EQUAL, TokenType.EQUAL),
        "<": (TokenType.LESS_EQUAL, TokenType.LESS),
        ">": (TokenType.GREATER_EQUAL, TokenType.GREATER),
    }
    WHITESPACE = " \r\t"

    def __init__(self, source, error_handler):
        self.source = source
        self.error_handler = error_handler

        self.tokens = []
        self.start = 0    # first char of the lexeme being scanned
        self.current = 0  # char currently being considered
        self.line = 1

    def scan_tokens(self):
        """Scans the whole source. The returned list always ends with an EOF token."""
        while not self.is_at_end():
            self.start = self.current
            self.scan_token()

        self.tokens.append(Token(TokenType.EOF, "", None, self.line))
        return self.tokens

    def scan_token(self):
        char = self.advance()

        if char in Scanner.SINGLE:
            self.add_token(Scanner.SINGLE[char])
        elif char in Scanner.DOUBLE:
            two, one = Scanner.DOUBLE[char]
            self.add_token(two if self.match("=") else one)
        elif char == "/":
            if self.match("/"):
                while self.peek() != "\n" and not self.is_at_end():
                    self.advance()
            elif self.match("*"):
                self.block_comment()
            else:
                self.add_token(TokenType.SLASH)
        elif char in Scanner.WHITESPACE:
            pass
        elif char == "\n":
            self.line += 1
        elif char == '"':
            self.string()
        elif self.is_digit(char):
            self.number()
        elif self.is_alpha(char):
            self.identifier()
        else:
            self.error_handler.error(self.line, "Unexpected character.")

    def block_comment(self):
        """Skips a block comment whose opening "/*" has been consumed. Nested comments are skipped recursively. Returns
        whether the comment was terminated.
        """
        while not self.is_at_end():
            if self.peek() == "*" and self.peek_next() == "/":
                self.current += 2
                return True
            elif self.peek() == "/" and self.peek_next() == "*":
                self.current += 2
                if not self.block_comment():
                    return False  # already reported by the nested comment
            else:
                if self.peek() == "\n":
                    self.line += 1
                self.advance()

        self.error_handler.error(self.line, "Unterminated block comment.")
        return False

    def string(self):
        while self.peek() != '"' and not self.is_at_end():
            if self.peek() == "\n":
                self.line += 1
            self.advance()

        if self.is_at_end():
            self.error_handler.error(self.line, "Unterminated string.")
            return

        self.advance()  # closing "
        self.add_token(TokenType.STRING, self.source[self.start + 1:self.current - 1])

    def number(self):
        while self.is_digit(self.peek()):
            self.advance()

        # a trailing "." is not part of the number (it could be a method call)
        if self.peek() == "." and self.is_digit(self.peek_next()):
            self.advance()
            while self.is_digit(self.peek()):
                self.advance()

        self.add_token(TokenType.NUMBER, float(self.source[self.start:self.current]))

    def identifier(self):
        while self.is_alpha(self.peek()) or self.is_digit(self.peek()):
            self.advance()

        text = self.source[self.start:self.current]
        self.add_token(KEYWORDS.get(text, TokenType.IDENTIFIER))

    @staticmethod
    def is_digit(char):
        return "0" <= char <= "9"

    @staticmethod
    def is_alpha(char):
        return "a" <= char <= "z" or "A" <= char <= "Z" or char == "_"

    def is_at_end(self):
        return self.current >= len(self.source)

    def advance(self):
        self.current += 1
        return self.source[self.current - 1]

    def match(self, expected):
        """Consumes the current char only if it is expected."""
        if self.is_at_end() or self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def peek(self):
        return "" if self.is_at_end() else self.source[self.current]

    def peek_next(self):
        return "" if self.current + 1 >= len(self.source) else self.source[self.current + 1]

    def add_token(self, token_type, literal=None):
        self.tokens.append(Token(token_type, self.source[self.start:self.current], literal, self.line))
