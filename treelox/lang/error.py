"""Error handling for the treelox language. Scan, parse and resolve errors are reported as they are found and only set
a flag; runtime errors unwind as LoxRuntimeErrors up to the session, which reports them. If any other type of error
makes it all the way to ErrorHandler, it is assumed to be an internal issue.
"""

import sys

from termcolor import colored

from treelox.syntax.tokens import TokenType

TOO_DEEP = "Expression nests too deeply."  # static error for source nested past the Python stack


class LoxError(Exception):
    """Superclass for every error the treelox language itself can raise."""

    def __init__(self, msg):
        super().__init__(msg)
        self.msg = msg


class ParseError(LoxError):
    """Raised inside the parser to unwind to the nearest declaration, where it is caught and parsing synchronizes. It
    has already been reported by the time it is raised.
    """


class LoxRuntimeError(LoxError):
    """Error raised while evaluating a program. token is the offending token, used for its line number."""

    def __init__(self, token, msg):
        super().__init__(msg)
        self.token = token


class ErrorHandler:
    """Context manager that reports treelox errors/warnings and keeps track of whether any have occurred."""
    ERROR = "red"
    WARNING = "magenta"

    def __init__(self, err=None, color=None):
        self.err = err if err is not None else sys.stderr
        self.color = color  # None means "only if err is a terminal"

        self.had_error = False
        self.had_runtime_error = False
        self._reported = None  # last internal error reported, so nested handlers report it once

    def reset(self):
        """Forgets about previous errors. Called at the top of every interactive iteration."""
        self.had_error = False
        self.had_runtime_error = False

    def _paint(self, text, color):
        """Colors text, unless coloring is turned off or err isn't a terminal."""
        use_color = self.color
        if use_color is None:
            use_color = hasattr(self.err, "isatty") and self.err.isatty()
        return colored(text, color, attrs=["bold"]) if use_color else text

    def _write(self, text):
        print(text, file=self.err)

    def error(self, line, msg, where=""):
        """Reports a static (scan/parse/resolve) error on line."""
        self._write(f"[line {line}] {self._paint('Error', ErrorHandler.ERROR)}{where}: {msg}")
        self.had_error = True

    def token_error(self, token, msg):
        """Reports a static error located at token."""
        if token.type is TokenType.EOF:
            self.error(token.line, msg, " at end")
        else:
            self.error(token.line, msg, f" at '{token.lexeme}'")

    def warn(self, token, msg):
        """Reports a warning located at token. Warnings never stop a program from running."""
        self._write(f"[line {token.line}] {self._paint('Warning', ErrorHandler.WARNING)} at '{token.lexeme}': {msg}")

    def runtime_error(self, error):
        """Reports a LoxRuntimeError that aborted execution."""
        line = error.token.line if error.token is not None else "?"
        self._write(f"{error.msg}\n[line {line}]")
        self.had_runtime_error = True

    def internal(self, exc_type, exc_val):
        """Reports an unexpected Python error, which means the interpreter itself is broken."""
        self._write(f"{self._paint('[internal]', ErrorHandler.ERROR)} unknown error: '{exc_type.__name__}: {exc_val}'")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is KeyboardInterrupt:
            self._write("keyboard interrupt")
            return True
        elif exc_type is LoxRuntimeError:
            self.runtime_error(exc_val)
            return True
        elif exc_type is RecursionError:
            self.runtime_error(LoxRuntimeError(None, "Stack overflow."))
            return True
        elif exc_type is not None and exc_type is not SystemExit and exc_val is not self._reported:
            self.internal(exc_type, exc_val)
            self._reported = exc_val

        return False  # internal errors and SystemExit propagate
