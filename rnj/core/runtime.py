"""Runtime object model of the rnj language.

Values are plain Python objects:

```
nil      -> None
boolean  -> bool
number   -> float
string   -> str
callable -> Function | Class | NativeFunction    (all RnjCallable)
object   -> Instance
```
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto

from rnj.core.environment import Environment
from rnj.lang.error import RnjRuntimeError


# ==================== COMPLETIONS ====================

class Outcome(Enum):
    NORMAL = auto()
    RETURN = auto()
    BREAK = auto()


@dataclass(frozen=True)
class Completion:
    """Result of executing a statement. RETURN carries the returned value; BREAK and NORMAL carry nothing."""
    outcome: Outcome
    value: object = None

    @property
    def is_normal(self):
        return self.outcome is Outcome.NORMAL


NORMAL = Completion(Outcome.NORMAL)
BREAK = Completion(Outcome.BREAK)


def returned(value):
    return Completion(Outcome.RETURN, value)


# ==================== CALLABLES ====================

class RnjCallable(ABC):
    """Anything that can appear before `(...)` in a call expression."""

    @abstractmethod
    def arity(self):
        """Number of arguments this callable must be called with."""

    @abstractmethod
    def call(self, interpreter, arguments):
        """Invokes this callable. Assumes the arity has already been checked."""


class Function(RnjCallable):
    """A user-defined function: its declaration plus the frame that was active when it was declared."""

    def __init__(self, declaration, closure):
        self.declaration = declaration
        self.closure = closure

    def bind(self, instance):
        """Returns a copy of this method whose closure additionally binds `this` to instance."""
        environment = Environment(self.closure)
        environment.define("this", instance)
        return Function(self.declaration, environment)

    def arity(self):
        return len(self.declaration.params)

    def call(self, interpreter, arguments):
        environment = Environment(self.closure)
        for param, argument in zip(self.declaration.params, arguments):
            environment.define(param.lexeme, argument)

        completion = interpreter.execute_block(self.declaration.body, environment)
        if completion.outcome is Outcome.RETURN:
            return completion.value
        return None

    @property
    def name(self):
        return self.declaration.name.lexeme

    def __str__(self):
        return f"<fn {self.name}>"


class Class(RnjCallable):
    """A struct. Calling it makes an Instance and runs its `construct` method, if it has one, on the arguments."""
    CONSTRUCTOR = "construct"

    def __init__(self, name, methods):
        self.name = name
        self.methods = dict(methods)

    def find_method(self, name):
        return self.methods.get(name)

    def arity(self):
        constructor = self.find_method(Class.CONSTRUCTOR)
        return constructor.arity() if constructor else 0

    def call(self, interpreter, arguments):
        instance = Instance(self)
        constructor = self.find_method(Class.CONSTRUCTOR)
        if constructor:
            constructor.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self):
        return self.name


class Instance:
    """An object made by calling a Class. Fields shadow methods of the same name."""

    def __init__(self, klass):
        self.klass = klass
        self.fields = {}

    def get(self, name):
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]

        method = self.klass.find_method(name.lexeme)
        if method:
            return method.bind(self)

        raise RnjRuntimeError.at(name, "Undefined property '{}'.", name.lexeme)

    def set(self, name, value):
        self.fields[name.lexeme] = value

    def __str__(self):
        return f"<{self.klass.name} instance>"


class NativeFunction(RnjCallable):
    """A callable implemented in Python."""

    def __init__(self, name, arity, function):
        self.name = name
        self._arity = arity
        self.function = function

    def arity(self):
        return self._arity

    def call(self, interpreter, arguments):
        return self.function(*arguments)

    def __str__(self):
        return f"<native fn {self.name}>"


NATIVES = [
    NativeFunction("clock", 0, time.time),
]


# ==================== VALUE SEMANTICS ====================

def is_truthy(value):
    """nil and false are falsy; everything else, including 0 and "", is truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(left, right, _seen=None):
    """Structural equality. Values of different kinds are never equal, so `true == 1` is false. Instances are equal
    when they come from the same struct and their fields are equal; callables are equal only to themselves.
    """
    if left is None or right is None:
        return left is None and right is None
    if type(left) is not type(right):
        return False
    if isinstance(left, Instance):
        if left is right:
            return True
        if _seen is None:
            _seen = set()
        if (id(left), id(right)) in _seen:
            return True  # already being compared further up a cycle
        _seen.add((id(left), id(right)))

        if left.klass is not right.klass or left.fields.keys() != right.fields.keys():
            return False
        return all(is_equal(left.fields[key], right.fields[key], _seen) for key in left.fields)
    if isinstance(left, RnjCallable):
        return left is right
    return left == right


def stringify(value):
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)
