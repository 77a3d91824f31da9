"""Tree-walking interpreter for the treelox language.

Values are plain Python objects: None (nil), bool, float (the only number type), str, LoxCallable and LoxInstance.

Executing a statement returns an outcome: None when it completed normally, or a Returned holding the value of a
`return` that has to travel up to the enclosing call. Blocks and loops stop as soon as a nested statement hands them an
outcome and pass it on; LoxFunction.call consumes it.
"""

import math
import sys
from dataclasses import dataclass
from typing import Any

from treelox.lang.error import LoxRuntimeError
from treelox.runtime.callables import NATIVES, LoxCallable, LoxClass, LoxFunction, LoxInstance
from treelox.runtime.environment import Environment
from treelox.syntax import ast
from treelox.syntax.tokens import TokenType


@dataclass
class Returned:
    """Outcome of executing a `return` statement."""
    value: Any


def is_number(value):
    return isinstance(value, float)  # bool is not a float, unlike int


def is_truthy(value):
    """nil and false are falsy, everything else (including 0 and "") is truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(left, right):
    """nil only equals nil; numbers and strings compare by value; everything else by identity."""
    if left is None or right is None:
        return left is None and right is None
    if type(left) is not type(right):
        return False  # keeps true != 1 and "1" != 1
    return left == right


def stringify(value):
    """Textual form of a value, as shown by print."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        text = repr(value)
        return text[:-2] if text.endswith(".0") else text
    return str(value)


class Interpreter:
    """Executes resolved statements. One Interpreter keeps its global Environment across calls to interpret, which is
    what lets the interactive shell remember definitions between lines.
    """

    def __init__(self, error_handler, out=None):
        self.error_handler = error_handler
        self.out = out if out is not None else sys.stdout

        self.globals = Environment()
        self.environment = self.globals

        for native in NATIVES:
            self.globals.define(native.name, native)

    stringify = staticmethod(stringify)

    def interpret(self, statements):
        """Runs a program. A runtime error stops it and is reported; its earlier effects remain."""
        try:
            for stmt in statements:
                self.execute(stmt)
        except LoxRuntimeError as error:
            self.error_handler.runtime_error(error)
        except RecursionError:
            self.error_handler.runtime_error(LoxRuntimeError(ast.first_token(stmt), "Stack overflow."))

    def interpret_expression(self, expr):
        """Evaluates a single expression and prints its value (interactive mode)."""
        try:
            print(stringify(self.evaluate(expr)), file=self.out)
        except LoxRuntimeError as error:
            self.error_handler.runtime_error(error)
        except RecursionError:
            self.error_handler.runtime_error(LoxRuntimeError(ast.first_token(expr), "Stack overflow."))

    def execute(self, stmt):
        return getattr(self, f"_exec_{stmt.kind}")(stmt)

    def evaluate(self, expr):
        return getattr(self, f"_eval_{expr.kind}")(expr)

    def execute_block(self, statements, environment):
        """Executes statements in environment, restoring the current Environment afterwards. Returns the outcome of
        the first statement that didn't complete normally, if any.
        """
        previous = self.environment
        try:
            self.environment = environment
            for stmt in statements:
                outcome = self.execute(stmt)
                if outcome is not None:
                    return outcome
            return None
        finally:
            self.environment = previous

    # -----------------------------------------------------------------------------------------------------------------
    # statements

    def _exec_block(self, stmt):
        return self.execute_block(stmt.statements, Environment(self.environment))

    def _exec_class(self, stmt):
        self.environment.define(stmt.name.lexeme, None)

        methods = {}
        for method in stmt.methods:
            is_initializer = method.name.lexeme == LoxClass.INITIALIZER
            methods[method.name.lexeme] = LoxFunction(method, self.environment, is_initializer)

        # static methods get an empty scope where instance methods get the one binding "this"
        static_env = Environment(self.environment)
        static_methods = {method.name.lexeme: LoxFunction(method, static_env) for method in stmt.static_methods}

        self.environment.assign(stmt.name, LoxClass(stmt.name.lexeme, methods, static_methods))

    def _exec_expression(self, stmt):
        self.evaluate(stmt.expression)

    def _exec_function(self, stmt):
        self.environment.define(stmt.name.lexeme, LoxFunction(stmt, self.environment))

    def _exec_if(self, stmt):
        if is_truthy(self.evaluate(stmt.condition)):
            return self.execute(stmt.then_branch)
        elif stmt.else_branch is not None:
            return self.execute(stmt.else_branch)
        return None

    def _exec_while(self, stmt):
        while is_truthy(self.evaluate(stmt.condition)):
            outcome = self.execute(stmt.body)
            if outcome is not None:
                return outcome
        return None

    def _exec_print(self, stmt):
        print(stringify(self.evaluate(stmt.expression)), file=self.out)

    def _exec_return(self, stmt):
        return Returned(self.evaluate(stmt.value) if stmt.value is not None else None)

    def _exec_var(self, stmt):
        value = self.evaluate(stmt.initializer) if stmt.initializer is not None else None
        self.environment.define(stmt.name.lexeme, value)

    def _exec_multi_var(self, stmt):
        for declaration in stmt.declarations:
            self._exec_var(declaration)

    # -----------------------------------------------------------------------------------------------------------------
    # expressions

    def look_up_variable(self, name, expr):
        if expr.depth is not None:
            return self.environment.get_at(expr.depth, name.lexeme)
        return self.globals.get(name)

    def _eval_assign(self, expr):
        value = self.evaluate(expr.value)
        if expr.depth is not None:
            self.environment.assign_at(expr.depth, expr.name, value)
        else:
            self.globals.assign(expr.name, value)
        return value

    def _eval_ternary(self, expr):
        if is_truthy(self.evaluate(expr.condition)):
            return self.evaluate(expr.then_branch)
        return self.evaluate(expr.else_branch)

    def _eval_binary(self, expr):
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        operator = expr.operator

        if operator.type is TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        if operator.type is TokenType.BANG_EQUAL:
            return not is_equal(left, right)

        if operator.type is TokenType.PLUS:
            if is_number(left) and is_number(right):
                return left + right
            if isinstance(left, str):
                return left + stringify(right)
            raise LoxRuntimeError(operator, "Operands must be two numbers or the first operand must be a string.")

        self.check_number_operands(operator, left, right)

        if operator.type is TokenType.GREATER:
            return left > right
        if operator.type is TokenType.GREATER_EQUAL:
            return left >= right
        if operator.type is TokenType.LESS:
            return left < right
        if operator.type is TokenType.LESS_EQUAL:
            return left <= right
        if operator.type is TokenType.MINUS:
            return left - right
        if operator.type is TokenType.STAR:
            return left * right
        if operator.type is TokenType.SLASH:
            if right == 0:
                raise LoxRuntimeError(operator, "Division by zero.")
            return left / right
        if operator.type is TokenType.MODULO:
            if right == 0:
                raise LoxRuntimeError(operator, "Modulo by zero.")
            return math.fmod(left, right)  # sign follows the dividend

        raise LoxRuntimeError(operator, f"Unknown operator '{operator.lexeme}'.")

    def _eval_call(self, expr):
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(argument) for argument in expr.arguments]

        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(expr.paren, "Can only call functions and classes.")

        if len(arguments) != callee.arity():
            raise LoxRuntimeError(expr.paren, f"Expected {callee.arity()} arguments but got {len(arguments)}.")

        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise LoxRuntimeError(expr.paren, "Stack overflow.") from None

    def _eval_get(self, expr):
        obj = self.evaluate(expr.object)
        if isinstance(obj, (LoxInstance, LoxClass)):
            return obj.get(expr.name)
        raise LoxRuntimeError(expr.name, "Only instances have properties.")

    def _eval_set(self, expr):
        obj = self.evaluate(expr.object)
        if not isinstance(obj, LoxInstance):
            raise LoxRuntimeError(expr.name, "Only instances have fields.")

        value = self.evaluate(expr.value)
        obj.set(expr.name, value)
        return value

    def _eval_grouping(self, expr):
        return self.evaluate(expr.expression)

    def _eval_literal(self, expr):
        return expr.value

    def _eval_logical(self, expr):
        left = self.evaluate(expr.left)

        if expr.operator.type is TokenType.OR:
            if is_truthy(left):
                return left
        elif not is_truthy(left):
            return left

        return self.evaluate(expr.right)

    def _eval_this(self, expr):
        return self.look_up_variable(expr.keyword, expr)

    def _eval_unary(self, expr):
        right = self.evaluate(expr.right)

        if expr.operator.type is TokenType.BANG:
            return not is_truthy(right)

        if not is_number(right):
            raise LoxRuntimeError(expr.operator, "Operand must be a number.")
        return -right

    def _eval_variable(self, expr):
        return self.look_up_variable(expr.name, expr)

    def _eval_lambda(self, expr):
        return LoxFunction(expr, self.environment)

    @staticmethod
    def check_number_operands(operator, left, right):
        if not (is_number(left) and is_number(right)):
            raise LoxRuntimeError(operator, "Operands must be numbers.")
