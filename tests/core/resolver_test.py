import unittest

from rnj.core import ast
from rnj.core.interpreter import Interpreter
from rnj.core.lexer import scan
from rnj.core.parser import parse
from rnj.core.resolver import Resolver
from rnj.lang.error import ResolutionError


def resolve(source):
    """Returns a list of (name, distance) for every resolved reference in source, in tree order. Globals are
    reported with distance None.
    """
    tokens, __ = scan(source)
    statements, errors = parse(tokens)
    assert not errors, errors

    interpreter = Interpreter()
    Resolver(interpreter).resolve(statements)

    references = []

    def collect(node):
        if isinstance(node, list):
            for sub_node in node:
                collect(sub_node)
            return
        if isinstance(node, (ast.Variable, ast.Assign)):
            references.append((node.name.lexeme, interpreter.locals.get(node)))
        elif isinstance(node, ast.This):
            references.append(("this", interpreter.locals.get(node)))
        for value in vars(node).values():
            if isinstance(value, (ast.Expr, ast.Stmt, list)):
                collect(value)

    collect(statements)
    return references


class ResolverTestCase(unittest.TestCase):

    def test_globals_are_not_resolved(self):
        self.assertEqual([("a", None), ("a", None)], resolve("var a = 1; a = a;"))

    def test_block_distances(self):
        source = "{ var a = 1; { var b = 2; println a + b; { println a; } } }"
        self.assertEqual([("a", 1), ("b", 0), ("a", 2)], resolve(source))

    def test_shadowing(self):
        source = "var x = 1; { var x = 2; println x; } println x;"
        self.assertEqual([("x", 0), ("x", None)], resolve(source))

    def test_function_parameters_and_closures(self):
        source = "def counter() { var i = 0; def inc() { i = i + 1; return i; } return inc; }"
        # Assign nodes are collected before their value
        self.assertEqual([("i", 1), ("i", 1), ("i", 1), ("inc", 0)], resolve(source))

        self.assertEqual([("x", 0)], resolve("def f(x) { return x; }"))

    def test_nested_function_normalization(self):
        # `a` is two scopes out from `inner`, which is nested two functions deep: it is looked up as a global
        source = "def outer() { var a = 1; { def inner() { return a; } } }"
        self.assertEqual([("a", None)], resolve(source))

        # directly enclosing function: resolved normally
        source = "def outer() { var a = 1; def inner() { return a; } }"
        self.assertEqual([("a", 1)], resolve(source))

        # a function that is not nested keeps its block-scoped free variables
        source = "{ var a = 1; def f() { return a; } }"
        self.assertEqual([("a", 1)], resolve(source))

    def test_nested_function_locals_are_never_normalized(self):
        source = "def outer() { def inner() { var y = 1; { { println y; } } } }"
        self.assertEqual([("y", 2)], resolve(source))

        loop = "for (var i = 0; i < 2; i = i + 1) { println i; }"
        expected = [("i", 0), ("i", 2), ("i", 1), ("i", 1)]
        self.assertEqual(expected, resolve("def outer() { def inner() { " + loop + " } }"))
        self.assertEqual(expected, resolve("def f() { struct P { m() { " + loop + " } } }"))

    def test_struct_scope_not_counted_for_methods(self):
        # a method reaches the enclosing function's locals like a nested def does, one frame further out at runtime
        source = "def f() { var x = 7; def g() { return x; } struct P { m() { return x; } } }"
        self.assertEqual([("x", 1), ("x", 2)], resolve(source))

        source = "def f() { var x = 7; { struct P { m() { return x; } } } }"
        self.assertEqual([("x", None)], resolve(source))

    def test_this(self):
        source = "struct P { construct(a) { this.x = a; } get() { { return this.x; } } }"
        self.assertEqual([("this", 1), ("a", 0), ("this", 2)], resolve(source))

        # inside a nested function, `this` keeps its distance even when it reaches the function depth
        source = "def make() { struct B { get() { { return this; } } } }"
        self.assertEqual([("this", 2)], resolve(source))

    def test_for_loop_scopes(self):
        source = "for (var i = 0; i < 3; i = i + 1) { println i; }"
        self.assertEqual([("i", 0), ("i", 2), ("i", 1), ("i", 1)], resolve(source))

    def test_should_raise(self):
        cases = {
            "{ var a = a; }": "Can't read local variable 'a' in its own initializer.",
            "{ var a = 1; var a = 2; }": "Already a variable named 'a' in this scope.",
            "def f(a, a) {}": "Already a variable named 'a' in this scope.",
            "return 1;": "Can't return from top-level code.",
            "{ return; }": "Can't return from top-level code.",
            "break;": "Can't break outside of a loop.",
            "while (true) { def f() { break; } }": "Can't break outside of a loop.",
            "println this;": "Can't use 'this' outside of a struct.",
            "def f() { return this; }": "Can't use 'this' outside of a struct.",
        }
        for case, expected in cases.items():
            with self.assertRaises(ResolutionError, msg=case) as context:
                resolve(case)
            self.assertEqual(expected, context.exception.msg, case)

    def test_should_pass(self):
        should_pass = [
            "var a = 1; var a = 2;",        # globals may be redeclared
            "var a = a;",                   # global self-reference is a runtime concern
            "{ var a = 1; { var b = a; } }",
            "def f() { return; }",
            "while (true) { if (true) break; }",
            "def f() { while (true) { return 1; } }",
            "struct P { m() { def g() { return 1; } return g(); } }",
        ]
        for case in should_pass:
            resolve(case)


if __name__ == '__main__':
    unittest.main()
