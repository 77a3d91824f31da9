"""Runtime values that are more than plain Python values: callables (native functions, user functions, classes) and
class instances.
"""

import time
from abc import ABC, abstractmethod

from treelox.lang.error import LoxRuntimeError
from treelox.runtime.environment import Environment


class LoxCallable(ABC):
    """Anything that can be called with `callee(args...)`."""

    @abstractmethod
    def arity(self):
        """Number of arguments this callable must be called with."""

    @abstractmethod
    def call(self, interpreter, arguments):
        """Calls this callable. len(arguments) == self.arity() has already been checked."""


class NativeFunction(LoxCallable):
    """Function implemented in Python. function is called with the interpreter followed by the arguments."""

    def __init__(self, name, arity, function):
        self.name = name
        self._arity = arity
        self.function = function

    def arity(self):
        return self._arity

    def call(self, interpreter, arguments):
        return self.function(interpreter, *arguments)

    def __str__(self):
        return f"<native fn {self.name}>"


def _clock(interpreter):
    return time.time()


def _print(interpreter, value):
    print(interpreter.stringify(value), file=interpreter.out)


NATIVES = [
    NativeFunction("clock", 0, _clock),
    NativeFunction("print", 1, _print),
]


class LoxFunction(LoxCallable):
    """User function, method or lambda: its declaration plus the Environment it was declared in."""

    def __init__(self, declaration, closure, is_initializer=False):
        self.declaration = declaration  # ast.Function or ast.Lambda
        self.closure = closure
        self.is_initializer = is_initializer

    def arity(self):
        return len(self.declaration.params)

    def bind(self, instance):
        """Returns a copy of this method whose closure has "this" bound to instance."""
        env = Environment(self.closure)
        env.define("this", instance)
        return LoxFunction(self.declaration, env, self.is_initializer)

    def call(self, interpreter, arguments):
        env = Environment(self.closure)
        for param, argument in zip(self.declaration.params, arguments):
            env.define(param.lexeme, argument)

        outcome = interpreter.execute_block(self.declaration.body, env)

        if self.is_initializer:
            return self.closure.get_at(0, "this")  # even on a bare "return;"
        return outcome.value if outcome is not None else None

    @property
    def name(self):
        name = getattr(self.declaration, "name", None)
        return name.lexeme if name is not None else None

    def __str__(self):
        return f"<fn {self.name}>" if self.name is not None else "<lambda>"


class LoxClass(LoxCallable):
    """A class value. Calling it constructs an instance. Static methods belong to the class itself and can be reached
    from both the class (`Klass.method()`) and its instances.
    """
    INITIALIZER = "init"

    def __init__(self, name, methods, static_methods):
        self.name = name
        self.methods = methods
        self.static_methods = static_methods

    def find_method(self, name):
        return self.methods.get(name)

    def get(self, token):
        """Property access on the class value itself, which only reaches static methods."""
        if token.lexeme in self.static_methods:
            return self.static_methods[token.lexeme]
        raise LoxRuntimeError(token, f"Undefined property '{token.lexeme}'.")

    def arity(self):
        initializer = self.find_method(LoxClass.INITIALIZER)
        return initializer.arity() if initializer is not None else 0

    def call(self, interpreter, arguments):
        instance = LoxInstance(self)
        initializer = self.find_method(LoxClass.INITIALIZER)
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self):
        return self.name


class LoxInstance:
    """An instance of a LoxClass, with its own fields."""

    def __init__(self, klass):
        self.klass = klass
        self.fields = {}

    def get(self, token):
        """Looks token's name up in fields, then methods (bound to self), then the class's static methods."""
        name = token.lexeme
        if name in self.fields:
            return self.fields[name]

        method = self.klass.find_method(name)
        if method is not None:
            return method.bind(self)

        if name in self.klass.static_methods:
            return self.klass.static_methods[name]

        raise LoxRuntimeError(token, f"Undefined property '{name}'.")

    def set(self, token, value):
        self.fields[token.lexeme] = value

    def __str__(self):
        return f"{self.klass.name} instance"
