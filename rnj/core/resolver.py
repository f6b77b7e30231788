"""Static scope resolution for the rnj language.

The Resolver walks the AST once, before anything runs, and tells the Interpreter how many frames away each local
variable lives. It keeps a stack of block scopes, each mapping a name to whether its declaration has finished
(declare marks it False, define marks it True). Names never found on the stack are globals and are left out of the
Interpreter's table.

Inside a nested function (function depth > 1) a free variable whose distance reaches the function depth is also treated
as a global, as if it had not been found. Names declared inside the function itself are always resolved, struct scopes
holding `this` are not counted, and `this` itself is exempt.
"""

from enum import Enum, auto

from rnj.core import ast
from rnj.lang.error import ResolutionError


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    METHOD = auto()


class ClassType(Enum):
    NONE = auto()
    CLASS = auto()


class Resolver:

    def __init__(self, interpreter):
        self.interpreter = interpreter
        self.scopes = []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE
        self.function_depth = 0
        self.loop_depth = 0
        self.function_scopes = []   # index in scopes of each enclosing function's own scope
        self.struct_scopes = []     # index in scopes of each enclosing struct's `this` scope

        self._resolvers = {
            ast.Block: self._block,
            ast.Class: self._class,
            ast.Expression: self._expression_stmt,
            ast.Function: self._function_stmt,
            ast.If: self._if,
            ast.Print: self._print,
            ast.Return: self._return,
            ast.Var: self._var,
            ast.While: self._while,

            ast.Assign: self._assign,
            ast.Binary: self._binary,
            ast.Break: self._break,
            ast.Call: self._call,
            ast.Get: self._get,
            ast.Grouping: self._grouping,
            ast.Literal: self._literal,
            ast.Logical: self._binary,
            ast.Set: self._set,
            ast.This: self._this,
            ast.Unary: self._unary,
            ast.Variable: self._variable,
        }
        assert set(self._resolvers) == set(ast.STATEMENTS + ast.EXPRESSIONS), "unhandled node kind"

    def resolve(self, nodes):
        """Resolves a statement, an expression, or a list of statements."""
        if isinstance(nodes, list):
            for node in nodes:
                self.resolve(node)
        else:
            self._resolvers[type(nodes)](nodes)

    # ==================== SCOPES ====================

    def begin_scope(self):
        self.scopes.append({})

    def end_scope(self):
        self.scopes.pop()

    def declare(self, name):
        if not self.scopes:
            return  # globals may be redeclared
        scope = self.scopes[-1]
        if name.lexeme in scope:
            raise ResolutionError.at(name, "Already a variable named '{}' in this scope.", name.lexeme)
        scope[name.lexeme] = False

    def define(self, name):
        if self.scopes:
            self.scopes[-1][name.lexeme] = True

    def resolve_local(self, expr, name, normalize=True):
        for idx in range(len(self.scopes) - 1, -1, -1):
            if name.lexeme in self.scopes[idx]:
                distance = len(self.scopes) - 1 - idx
                if normalize and self.is_normalized(idx, distance):
                    return  # left global
                self.interpreter.resolve(expr, distance)
                return

    def is_normalized(self, idx, distance):
        """Whether a binding found in scope idx, distance frames out, is a free variable of a nested function that is
        looked up as a global instead. Struct scopes holding `this` do not count towards the distance.
        """
        if self.function_depth <= 1 or idx >= self.function_scopes[-1]:
            return False  # not nested, or declared inside the current function
        struct_scopes = sum(1 for struct_idx in self.struct_scopes if struct_idx > idx)
        return distance - struct_scopes >= self.function_depth

    def resolve_function(self, function, function_type):
        enclosing_function, enclosing_loops = self.current_function, self.loop_depth
        self.current_function = function_type
        self.loop_depth = 0
        self.function_depth += 1
        self.function_scopes.append(len(self.scopes))

        self.begin_scope()
        try:
            for param in function.params:
                self.declare(param)
                self.define(param)
            self.resolve(function.body)
        finally:
            self.end_scope()
            self.function_scopes.pop()
            self.function_depth -= 1
            self.current_function, self.loop_depth = enclosing_function, enclosing_loops

    # ==================== STATEMENTS ====================

    def _block(self, stmt):
        self.begin_scope()
        try:
            self.resolve(stmt.statements)
        finally:
            self.end_scope()

    def _class(self, stmt):
        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS

        self.declare(stmt.name)
        self.define(stmt.name)

        self.begin_scope()
        self.scopes[-1]["this"] = True
        self.struct_scopes.append(len(self.scopes) - 1)
        try:
            for method in stmt.methods:
                self.resolve_function(method, FunctionType.METHOD)
        finally:
            self.struct_scopes.pop()
            self.end_scope()
            self.current_class = enclosing_class

    def _expression_stmt(self, stmt):
        self.resolve(stmt.expression)

    def _function_stmt(self, stmt):
        # defined before the body is resolved, so a function can call itself
        self.declare(stmt.name)
        self.define(stmt.name)
        self.resolve_function(stmt, FunctionType.FUNCTION)

    def _if(self, stmt):
        self.resolve(stmt.condition)
        self.resolve(stmt.then_branch)
        if stmt.else_branch is not None:
            self.resolve(stmt.else_branch)

    def _print(self, stmt):
        self.resolve(stmt.expression)

    def _return(self, stmt):
        if self.current_function is FunctionType.NONE:
            raise ResolutionError.at(stmt.keyword, "Can't return from top-level code.")
        if stmt.value is not None:
            self.resolve(stmt.value)

    def _var(self, stmt):
        self.declare(stmt.name)
        if stmt.initializer is not None:
            self.resolve(stmt.initializer)
        self.define(stmt.name)

    def _while(self, stmt):
        self.resolve(stmt.condition)
        self.loop_depth += 1
        try:
            self.resolve(stmt.body)
        finally:
            self.loop_depth -= 1

    # ==================== EXPRESSIONS ====================

    def _assign(self, expr):
        self.resolve(expr.value)
        self.resolve_local(expr, expr.name)

    def _binary(self, expr):
        self.resolve(expr.left)
        self.resolve(expr.right)

    def _break(self, expr):
        if self.loop_depth == 0:
            raise ResolutionError.at(expr.keyword, "Can't break outside of a loop.")

    def _call(self, expr):
        self.resolve(expr.callee)
        self.resolve(expr.arguments)

    def _get(self, expr):
        self.resolve(expr.object)

    def _grouping(self, expr):
        self.resolve(expr.expression)

    def _literal(self, expr):
        pass

    def _set(self, expr):
        self.resolve(expr.value)
        self.resolve(expr.object)

    def _this(self, expr):
        if self.current_class is ClassType.NONE:
            raise ResolutionError.at(expr.keyword, "Can't use 'this' outside of a struct.")
        self.resolve_local(expr, expr.keyword, normalize=False)  # `this` is never a global

    def _unary(self, expr):
        self.resolve(expr.right)

    def _variable(self, expr):
        if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
            raise ResolutionError.at(expr.name, "Can't read local variable '{}' in its own initializer.",
                                     expr.name.lexeme)
        self.resolve_local(expr, expr.name)


def resolve(interpreter, statements):
    Resolver(interpreter).resolve(statements)
