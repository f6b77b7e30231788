"""Scope frames for the rnj interpreter.

An Environment maps names to values and links to the frame it is nested in. Frames only ever point outward, so a
closure holding a frame keeps exactly that frame and its ancestors alive, and Python's own reference counting frees them
once nothing refers to them anymore.
"""

from rnj.lang.error import RnjRuntimeError


class Environment:

    def __init__(self, enclosing=None):
        self.enclosing = enclosing
        self.values = {}

    def define(self, name, value):
        """Binds name in this frame, overwriting any existing binding."""
        self.values[name] = value

    def get(self, name):
        """Looks name (a Token) up in this frame, then in each enclosing frame."""
        env = self
        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.enclosing
        raise RnjRuntimeError.at(name, "Undefined variable '{}'.", name.lexeme)

    def assign(self, name, value):
        """Rebinds the innermost existing binding of name (a Token). Never creates a binding."""
        env = self
        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = value
                return
            env = env.enclosing
        raise RnjRuntimeError.at(name, "Undefined variable '{}'.", name.lexeme)

    def get_at(self, distance, name):
        return self.ancestor(distance).values[name]

    def assign_at(self, distance, name, value):
        self.ancestor(distance).values[name] = value

    def ancestor(self, distance):
        env = self
        for __ in range(distance):
            env = env.enclosing
        return env

    def __repr__(self):
        return f"Environment({sorted(self.values)}, depth={self._depth()})"

    def _depth(self):
        depth, env = 0, self.enclosing
        while env is not None:
            depth, env = depth + 1, env.enclosing
        return depth
