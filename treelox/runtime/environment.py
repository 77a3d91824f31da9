"""Runtime scopes. Each Environment maps names to values and points to the Environment enclosing it. Closures keep a
reference to the Environment they were created in, so an Environment lives as long as anything still refers to it.
"""

from treelox.lang.error import LoxRuntimeError


class Environment:
    """A single scope: a name -> value mapping plus a link to the enclosing scope (None for the globals)."""

    def __init__(self, enclosing=None):
        self.enclosing = enclosing
        self.values = {}

    def define(self, name, value):
        """Binds name in this scope, replacing any existing binding of the same name."""
        self.values[name] = value

    def get(self, token):
        """Looks up token's name, walking outwards through the enclosing scopes."""
        env = self
        while env is not None:
            if token.lexeme in env.values:
                return env.values[token.lexeme]
            env = env.enclosing
        raise LoxRuntimeError(token, f"Undefined variable '{token.lexeme}'.")

    def assign(self, token, value):
        """Rebinds token's name in the nearest scope that has it. Never creates a new binding."""
        env = self
        while env is not None:
            if token.lexeme in env.values:
                env.values[token.lexeme] = value
                return
            env = env.enclosing
        raise LoxRuntimeError(token, f"Undefined variable '{token.lexeme}'.")

    def ancestor(self, distance):
        """Returns the Environment exactly distance links outwards (0 is self)."""
        env = self
        for _ in range(distance):
            env = env.enclosing
        return env

    def get_at(self, distance, name):
        """Looks name up directly in the scope the resolver found it in."""
        return self.ancestor(distance).values[name]

    def assign_at(self, distance, token, value):
        self.ancestor(distance).values[token.lexeme] = value

    def __repr__(self):
        return f"Environment({self.values}, enclosing={self.enclosing!r})"
