"""Static resolution pass, run after parsing and before interpreting.

The resolver walks the tree with a stack of lexical scopes that mirrors the Environments the interpreter will create,
and stores on every local Variable/Assign/This node how many scopes away its name is declared. Names not found in any
scope are globals and keep depth None. Along the way it reports static errors (misplaced `this`/`return`, reading a
variable in its own initializer, redeclarations) and warns about local variables that are never read.
"""

from enum import Enum, auto

from treelox.lang.error import TOO_DEEP
from treelox.runtime.callables import LoxClass
from treelox.syntax import ast


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    INITIALIZER = auto()
    METHOD = auto()
    STATIC_METHOD = auto()


class ClassType(Enum):
    NONE = auto()
    CLASS = auto()
    STATIC = auto()  # inside a static method, where there is no "this"


class Usage:
    """Tracks whether a local variable declared with `var` has been read."""

    def __init__(self, token):
        self.token = token
        self.used = False


class Resolver:
    """Resolves a program (or a single expression). The global scope is never on the scope stack."""

    def __init__(self, error_handler):
        self.error_handler = error_handler

        self.scopes = []  # name: whether the declaration is complete
        self.usages = []  # name: Usage, one dict per entry of self.scopes
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

    def resolve(self, statements):
        """Resolves a program. A statement nested too deeply to walk is reported and resolving goes on with the next."""
        for stmt in statements:
            try:
                self.resolve_stmt(stmt)
            except RecursionError:
                self.too_deep(stmt)

    def resolve_statements(self, statements):
        for stmt in statements:
            self.resolve_stmt(stmt)

    def resolve_stmt(self, stmt):
        getattr(self, f"_stmt_{stmt.kind}")(stmt)

    def resolve_expression(self, expr):
        getattr(self, f"_expr_{expr.kind}")(expr)

    def resolve_top_expression(self, expr):
        """Resolves a bare expression typed at the interactive prompt."""
        try:
            self.resolve_expression(expr)
        except RecursionError:
            self.too_deep(expr)

    def too_deep(self, node):
        """Reports a tree nested past the Python stack, and drops whatever scopes were open when it gave out."""
        token = ast.first_token(node)
        if token is None:
            self.error_handler.error("?", TOO_DEEP)
        else:
            self.error_handler.token_error(token, TOO_DEEP)
        self.scopes, self.usages = [], []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

    # -----------------------------------------------------------------------------------------------------------------
    # scopes

    def begin_scope(self):
        self.scopes.append({})
        self.usages.append({})

    def end_scope(self):
        self.scopes.pop()
        for usage in self.usages.pop().values():
            if not usage.used:
                self.error_handler.warn(usage.token, "Local variable is never used.")

    def declare(self, name):
        if not self.scopes:
            return

        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error_handler.token_error(name, "Already a variable with this name in this scope.")
        scope[name.lexeme] = False

    def define(self, name):
        if self.scopes:
            self.scopes[-1][name.lexeme] = True

    def resolve_local(self, expr, name, read=False):
        """Sets expr.depth if name is declared in a local scope. If read, also marks the variable as used."""
        for depth, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                expr.depth = depth

                usages = self.usages[len(self.scopes) - 1 - depth]
                if read and name.lexeme in usages:
                    usages[name.lexeme].used = True
                return

    def resolve_function(self, function, function_type):
        """Resolves a function/method/lambda body in a new scope holding its parameters."""
        enclosing_function = self.current_function
        self.current_function = function_type

        self.begin_scope()
        for param in function.params:
            self.declare(param)
            self.define(param)
        self.resolve_statements(function.body)
        self.end_scope()

        self.current_function = enclosing_function

    # -----------------------------------------------------------------------------------------------------------------
    # statements

    def _stmt_block(self, stmt):
        self.begin_scope()
        self.resolve_statements(stmt.statements)
        self.end_scope()

    def _stmt_class(self, stmt):
        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS

        self.declare(stmt.name)
        self.define(stmt.name)

        self.begin_scope()
        self.scopes[-1]["this"] = True

        for method in stmt.methods:
            if method.name.lexeme == LoxClass.INITIALIZER:
                self.resolve_function(method, FunctionType.INITIALIZER)
            else:
                self.resolve_function(method, FunctionType.METHOD)
        self.current_class = ClassType.STATIC
        for method in stmt.static_methods:
            self.resolve_function(method, FunctionType.STATIC_METHOD)

        self.end_scope()
        self.current_class = enclosing_class

    def _stmt_expression(self, stmt):
        self.resolve_expression(stmt.expression)

    def _stmt_function(self, stmt):
        # defined before the body is resolved, so the function can call itself
        self.declare(stmt.name)
        self.define(stmt.name)
        self.resolve_function(stmt, FunctionType.FUNCTION)

    def _stmt_if(self, stmt):
        self.resolve_expression(stmt.condition)
        self.resolve_stmt(stmt.then_branch)
        if stmt.else_branch is not None:
            self.resolve_stmt(stmt.else_branch)

    def _stmt_while(self, stmt):
        self.resolve_expression(stmt.condition)
        self.resolve_stmt(stmt.body)

    def _stmt_print(self, stmt):
        self.resolve_expression(stmt.expression)

    def _stmt_return(self, stmt):
        if self.current_function is FunctionType.NONE:
            self.error_handler.token_error(stmt.keyword, "Cannot return from top-level code.")

        if stmt.value is not None:
            if self.current_function is FunctionType.INITIALIZER:
                self.error_handler.token_error(stmt.keyword, "Cannot return a value from an initializer.")
            self.resolve_expression(stmt.value)

    def _stmt_var(self, stmt):
        self.declare(stmt.name)
        if self.scopes:
            self.usages[-1][stmt.name.lexeme] = Usage(stmt.name)

        if stmt.initializer is not None:
            self.resolve_expression(stmt.initializer)
        self.define(stmt.name)

    def _stmt_multi_var(self, stmt):
        for declaration in stmt.declarations:
            self._stmt_var(declaration)

    # -----------------------------------------------------------------------------------------------------------------
    # expressions

    def _expr_assign(self, expr):
        self.resolve_expression(expr.value)
        self.resolve_local(expr, expr.name)

    def _expr_ternary(self, expr):
        self.resolve_expression(expr.condition)
        self.resolve_expression(expr.then_branch)
        self.resolve_expression(expr.else_branch)

    def _expr_binary(self, expr):
        self.resolve_expression(expr.left)
        self.resolve_expression(expr.right)

    _expr_logical = _expr_binary

    def _expr_call(self, expr):
        self.resolve_expression(expr.callee)
        for argument in expr.arguments:
            self.resolve_expression(argument)

    def _expr_get(self, expr):
        self.resolve_expression(expr.object)  # property names are looked up dynamically

    def _expr_set(self, expr):
        self.resolve_expression(expr.value)
        self.resolve_expression(expr.object)

    def _expr_grouping(self, expr):
        self.resolve_expression(expr.expression)

    def _expr_literal(self, expr):
        pass

    def _expr_this(self, expr):
        if self.current_class is ClassType.NONE:
            self.error_handler.token_error(expr.keyword, "Cannot use 'this' outside of a class.")
            return
        if self.current_class is ClassType.STATIC:
            self.error_handler.token_error(expr.keyword, "Cannot use 'this' in a static method.")
            return

        self.resolve_local(expr, expr.keyword)

    def _expr_unary(self, expr):
        self.resolve_expression(expr.right)

    def _expr_variable(self, expr):
        if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
            self.error_handler.token_error(expr.name, "Cannot read local variable in its own initializer.")

        self.resolve_local(expr, expr.name, read=True)

    def _expr_lambda(self, expr):
        self.resolve_function(expr, FunctionType.FUNCTION)
