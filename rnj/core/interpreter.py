"""Tree-walking evaluator for the rnj language.

`evaluate` (expressions) and `execute` (statements) dispatch on node kind through tables built in __init__; the tables
must cover every node kind in rnj.core.ast. Statements return a Completion instead of raising: RETURN travels up to the
enclosing call and BREAK up to the enclosing loop, and neither ever reaches the caller of `interpret`.
"""

import logging
import sys

from rnj.core import ast
from rnj.core.environment import Environment
from rnj.core.runtime import (BREAK, NATIVES, NORMAL, Class, Function, Instance, Outcome, RnjCallable, is_equal,
                              is_truthy, returned, stringify)
from rnj.core.tokens import TokenType
from rnj.lang.error import RnjRuntimeError

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

ARITHMETIC = {
    TokenType.MINUS: lambda left, right: left - right,
    TokenType.STAR: lambda left, right: left * right,
    TokenType.GREATER: lambda left, right: left > right,
    TokenType.GREATER_EQUAL: lambda left, right: left >= right,
    TokenType.LESS: lambda left, right: left < right,
    TokenType.LESS_EQUAL: lambda left, right: left <= right,
}


class Interpreter:
    """Holds all interpreter state: the globals, the frame currently executing, and the Resolver's distance table."""

    def __init__(self, out=None):
        self.out = out
        self.globals = Environment()
        self.environment = self.globals
        self.locals = {}  # node: distance, keyed by node identity

        for native in NATIVES:
            self.globals.define(native.name, native)

        self._evaluators = {
            ast.Assign: self._assign,
            ast.Binary: self._binary,
            ast.Break: self._break,
            ast.Call: self._call,
            ast.Get: self._get,
            ast.Grouping: self._grouping,
            ast.Literal: self._literal,
            ast.Logical: self._logical,
            ast.Set: self._set,
            ast.This: self._this,
            ast.Unary: self._unary,
            ast.Variable: self._variable,
        }
        self._executors = {
            ast.Block: self._block,
            ast.Class: self._class,
            ast.Expression: self._expression_stmt,
            ast.Function: self._function,
            ast.If: self._if,
            ast.Print: self._print,
            ast.Return: self._return,
            ast.Var: self._var,
            ast.While: self._while,
        }
        assert set(self._evaluators) == set(ast.EXPRESSIONS), "unhandled expression kind"
        assert set(self._executors) == set(ast.STATEMENTS), "unhandled statement kind"

    def resolve(self, expr, distance):
        """Called by the Resolver: expr refers to a binding `distance` frames out from where it is evaluated."""
        self.locals[expr] = distance

    def interpret(self, statements):
        """Executes statements in order, stopping at (and raising) the first RnjRuntimeError."""
        logger.debug("interpreting %d statement(s), %d resolved reference(s)", len(statements), len(self.locals))
        for statement in statements:
            self.execute(statement)

    def evaluate(self, expr):
        return self._evaluators[type(expr)](expr)

    def execute(self, stmt):
        return self._executors[type(stmt)](stmt)

    def execute_block(self, statements, environment):
        """Runs statements in environment, restoring the previous frame however execution ends."""
        previous = self.environment
        self.environment = environment
        try:
            for statement in statements:
                completion = self.execute(statement)
                if not completion.is_normal:
                    return completion
            return NORMAL
        finally:
            self.environment = previous

    # ==================== STATEMENTS ====================

    def _block(self, stmt):
        return self.execute_block(stmt.statements, Environment(self.environment))

    def _class(self, stmt):
        self.environment.define(stmt.name.lexeme, None)
        methods = {method.name.lexeme: Function(method, self.environment) for method in stmt.methods}
        self.environment.assign(stmt.name, Class(stmt.name.lexeme, methods))
        return NORMAL

    def _expression_stmt(self, stmt):
        if isinstance(stmt.expression, ast.Break):
            return BREAK
        self.evaluate(stmt.expression)
        return NORMAL

    def _function(self, stmt):
        self.environment.define(stmt.name.lexeme, Function(stmt, self.environment))
        return NORMAL

    def _if(self, stmt):
        if is_truthy(self.evaluate(stmt.condition)):
            return self.execute(stmt.then_branch)
        if stmt.else_branch is not None:
            return self.execute(stmt.else_branch)
        return NORMAL

    def _print(self, stmt):
        value = self.evaluate(stmt.expression)
        print(stringify(value), file=self.out if self.out is not None else sys.stdout)
        return NORMAL

    def _return(self, stmt):
        value = self.evaluate(stmt.value) if stmt.value is not None else None
        return returned(value)

    def _var(self, stmt):
        value = self.evaluate(stmt.initializer) if stmt.initializer is not None else None
        self.environment.define(stmt.name.lexeme, value)
        return NORMAL

    def _while(self, stmt):
        while is_truthy(self.evaluate(stmt.condition)):
            completion = self.execute(stmt.body)
            if completion.outcome is Outcome.BREAK:
                break
            if completion.outcome is Outcome.RETURN:
                return completion
        return NORMAL

    # ==================== EXPRESSIONS ====================

    def _assign(self, expr):
        value = self.evaluate(expr.value)

        distance = self.locals.get(expr)
        if distance is None:
            self.globals.assign(expr.name, value)
        else:
            self.environment.assign_at(distance, expr.name.lexeme, value)
        return value

    def _binary(self, expr):
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        operator = expr.operator

        if operator.type is TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        if operator.type is TokenType.BANG_EQUAL:
            return not is_equal(left, right)

        if operator.type is TokenType.PLUS:
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            if is_number(left) and is_number(right):
                return left + right
            raise RnjRuntimeError.at(operator, "Operands of '{}' must be two numbers or two strings.", "+")

        check_numbers(operator, left, right)
        if operator.type is TokenType.SLASH:
            if right == 0:
                raise RnjRuntimeError.at(operator, "Division by zero.")
            return left / right
        return ARITHMETIC[operator.type](left, right)

    def _break(self, expr):
        raise RnjRuntimeError.at(expr.keyword, "'break' can only be used as a statement.")

    def _call(self, expr):
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(argument) for argument in expr.arguments]

        if not isinstance(callee, RnjCallable):
            raise RnjRuntimeError.at(expr.paren, "Can only call functions and structs.")
        if len(arguments) != callee.arity():
            raise RnjRuntimeError.at(expr.paren, "Expected {} arguments but got {}.", callee.arity(), len(arguments))

        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise RnjRuntimeError.at(expr.paren, "Stack overflow.") from None

    def _get(self, expr):
        obj = self.evaluate(expr.object)
        if isinstance(obj, Instance):
            return obj.get(expr.name)
        raise RnjRuntimeError.at(expr.name, "Only instances have properties.")

    def _grouping(self, expr):
        return self.evaluate(expr.expression)

    def _literal(self, expr):
        return expr.value

    def _logical(self, expr):
        left = self.evaluate(expr.left)

        if expr.operator.type is TokenType.OR:
            if is_truthy(left):
                return left
        elif not is_truthy(left):
            return left

        return self.evaluate(expr.right)

    def _set(self, expr):
        obj = self.evaluate(expr.object)
        if not isinstance(obj, Instance):
            raise RnjRuntimeError.at(expr.name, "Only instances have fields.")

        value = self.evaluate(expr.value)
        obj.set(expr.name, value)
        return value

    def _this(self, expr):
        return self.look_up_variable(expr.keyword, expr)

    def _unary(self, expr):
        right = self.evaluate(expr.right)

        if expr.operator.type is TokenType.MINUS:
            if not is_number(right):
                raise RnjRuntimeError.at(expr.operator, "Operand must be a number.")
            return -right
        return not is_truthy(right)

    def _variable(self, expr):
        return self.look_up_variable(expr.name, expr)

    def look_up_variable(self, name, expr):
        distance = self.locals.get(expr)
        if distance is None:
            return self.globals.get(name)
        return self.environment.get_at(distance, name.lexeme)


def is_number(value):
    return isinstance(value, float)


def check_numbers(operator, left, right):
    if not (is_number(left) and is_number(right)):
        raise RnjRuntimeError.at(operator, "Operands of '{}' must be numbers.", operator.lexeme)
