"""Session control for the treelox language: runs source text through the scan -> parse -> resolve -> interpret
pipeline, either a whole file at a time or one interactive line at a time.
"""

import sys

from treelox.runtime.interpreter import Interpreter
from treelox.runtime.resolver import Resolver
from treelox.syntax.parser import Parser
from treelox.syntax.scanner import Scanner
from treelox.syntax.tokens import TokenType


class Session:
    """Governs a treelox session. A session owns a single Interpreter, so globals persist between runs."""
    EX_OK = 0
    EX_DATAERR = 65     # scan/parse/resolve error
    EX_NOINPUT = 66     # script could not be read
    EX_SOFTWARE = 70    # runtime error

    # first tokens that mark an interactive line as statements rather than a bare expression
    STMT_START = {TokenType.VAR, TokenType.IF, TokenType.WHILE, TokenType.LEFT_BRACE, TokenType.PRINT, TokenType.FUN,
                  TokenType.FOR, TokenType.CLASS, TokenType.RETURN, TokenType.THIS}

    def __init__(self, error_handler, out=None):
        self.error_handler = error_handler
        self.out = out if out is not None else sys.stdout
        self.interpreter = Interpreter(error_handler, self.out)

    def scan(self, source):
        return Scanner(source, self.error_handler).scan_tokens()

    def run(self, source):
        """Runs source as a program. Nothing is executed if it has any static error."""
        self.run_statements(self.scan(source))

    def run_statements(self, tokens):
        statements = Parser(tokens, self.error_handler).parse()
        if self.error_handler.had_error:
            return

        Resolver(self.error_handler).resolve(statements)
        if self.error_handler.had_error:
            return

        self.interpreter.interpret(statements)

    def run_expression(self, tokens):
        """Evaluates tokens as a single expression and prints its value."""
        expr = Parser(tokens, self.error_handler).parse_expression()
        if self.error_handler.had_error or expr is None:
            return

        Resolver(self.error_handler).resolve_top_expression(expr)
        if self.error_handler.had_error:
            return

        self.interpreter.interpret_expression(expr)

    @staticmethod
    def is_statement(tokens):
        """Heuristic deciding whether an interactive line holds statements or just an expression to print."""
        first = tokens[0].type
        if first is TokenType.IDENTIFIER:
            return tokens[1].type is TokenType.EQUAL
        return first in Session.STMT_START or first is TokenType.EOF

    def run_prompt(self, line):
        """Runs one line of interactive input."""
        tokens = self.scan(line)
        if self.error_handler.had_error:
            return

        if Session.is_statement(tokens):
            self.run_statements(tokens)
        else:
            self.run_expression(tokens)

    def run_file(self, path):
        """Runs the script at path and returns the process exit status."""
        try:
            with open(path, "r", encoding="utf-8") as file:
                source = file.read()
        except OSError:
            print(f"Could not open file '{path}'.", file=self.error_handler.err)
            return Session.EX_NOINPUT

        self.run(source)

        if self.error_handler.had_error:
            return Session.EX_DATAERR
        if self.error_handler.had_runtime_error:
            return Session.EX_SOFTWARE
        return Session.EX_OK
