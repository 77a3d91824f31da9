"""Debug printers for expression trees. Neither has any effect on running a program.

AstPrinter shows the tree structure Lisp-style: `-123 * (45.67)` becomes `(* (- 123) (group 45.67))`.
RpnPrinter shows it in reverse Polish notation: `(1 + 2) * (4 - 3)` becomes `1 2 + 4 3 - *`.
"""

from treelox.syntax import ast


def literal_text(value):
    """Text of a literal value as it appears in the printed tree."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    text = str(value)
    return text[:-2] if text.endswith(".0") else text


class AstPrinter:
    """Prints an expression as nested, parenthesized prefix forms."""

    def print(self, expr):
        return getattr(self, f"_{expr.kind}")(expr)

    def parenthesize(self, name, *exprs):
        return "(" + " ".join([name] + [self.print(expr) for expr in exprs]) + ")"

    def _assign(self, expr):
        return self.parenthesize(f"= {expr.name.lexeme}", expr.value)

    def _ternary(self, expr):
        return self.parenthesize("?:", expr.condition, expr.then_branch, expr.else_branch)

    def _binary(self, expr):
        return self.parenthesize(expr.operator.lexeme, expr.left, expr.right)

    def _logical(self, expr):
        return self.parenthesize(expr.operator.lexeme, expr.left, expr.right)

    def _call(self, expr):
        return self.parenthesize("call", expr.callee, *expr.arguments)

    def _get(self, expr):
        return self.parenthesize(f". {expr.name.lexeme}", expr.object)

    def _set(self, expr):
        return self.parenthesize(f"= .{expr.name.lexeme}", expr.object, expr.value)

    def _grouping(self, expr):
        return self.parenthesize("group", expr.expression)

    def _literal(self, expr):
        return literal_text(expr.value)

    def _this(self, expr):
        return "this"

    def _unary(self, expr):
        return self.parenthesize(expr.operator.lexeme, expr.right)

    def _variable(self, expr):
        return expr.name.lexeme

    def _lambda(self, expr):
        return f"(lambda ({' '.join(param.lexeme for param in expr.params)}) ...)"


class RpnPrinter(AstPrinter):
    """Prints an expression in reverse Polish notation. Groupings disappear, since RPN needs no parentheses."""

    def parenthesize(self, name, *exprs):
        return " ".join([self.print(expr) for expr in exprs] + [name])

    def _grouping(self, expr):
        return self.print(expr.expression)
