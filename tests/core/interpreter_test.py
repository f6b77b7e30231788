import io
import unittest

from rnj.core.interpreter import Interpreter
from rnj.core.lexer import scan
from rnj.core.parser import parse
from rnj.core.resolver import Resolver
from rnj.lang.error import RnjRuntimeError


def run(source, interpreter=None):
    """Runs source and returns everything it printed, as a list of lines."""
    tokens, errors = scan(source)
    assert not errors, errors
    statements, errors = parse(tokens)
    assert not errors, errors

    out = io.StringIO()
    if interpreter is None:
        interpreter = Interpreter(out)
    else:
        interpreter.out = out
    Resolver(interpreter).resolve(statements)
    interpreter.interpret(statements)
    return out.getvalue().splitlines()


def value_of(expr):
    return run(f"println {expr};")[0]


class ExpressionTestCase(unittest.TestCase):

    def test_arithmetic(self):
        cases = {
            "1 + 2 * 3": "7",
            "(1 + 2) * 3": "9",
            "10 - 4 - 3": "3",
            "7 / 2": "3.5",
            "0.1 + 0.2": repr(0.1 + 0.2),
            "-(3 - 5)": "2",
            "2 * -3": "-6",
            "1 / 3": repr(1 / 3),
        }
        for case, expected in cases.items():
            self.assertEqual(expected, value_of(case), case)

    def test_comparison_and_equality(self):
        cases = {
            "1 < 2": "true",
            "2 <= 2": "true",
            "3 > 4": "false",
            "3 >= 4": "false",
            "1 == 1": "true",
            "1 != 1": "false",
            '"a" == "a"': "true",
            '"a" == "b"': "false",
            "nil == nil": "true",
            "nil == false": "false",
            "0 == nil": "false",
            "true == 1": "false",
            '"1" == 1': "false",
            "true != false": "true",
        }
        for case, expected in cases.items():
            self.assertEqual(expected, value_of(case), case)

    def test_strings(self):
        self.assertEqual("hello world", value_of('"hello" + " " + "world"'))
        self.assertEqual("", value_of('""'))

    def test_truthiness(self):
        cases = {
            "!nil": "true",
            "!false": "true",
            "!true": "false",
            "!0": "false",
            '!""': "false",
            "!!1": "true",
        }
        for case, expected in cases.items():
            self.assertEqual(expected, value_of(case), case)

    def test_logical_operators_short_circuit(self):
        cases = {
            "nil or 2": "2",
            "1 or 2": "1",
            "false and 2": "false",
            "1 and 2": "2",
            "nil and undefined()": "nil",
            "true or undefined()": "true",
        }
        for case, expected in cases.items():
            self.assertEqual(expected, value_of(case), case)

    def test_runtime_type_errors(self):
        cases = {
            '1 + "a"': "Operands of '+' must be two numbers or two strings.",
            "nil + nil": "Operands of '+' must be two numbers or two strings.",
            '"a" - "b"': "Operands of '-' must be numbers.",
            '"a" < "b"': "Operands of '<' must be numbers.",
            "true * 2": "Operands of '*' must be numbers.",
            '-"a"': "Operand must be a number.",
            "1 / 0": "Division by zero.",
            "0 / 0": "Division by zero.",
            "nope": "Undefined variable 'nope'.",
            '"str"()': "Can only call functions and structs.",
            "nil.field": "Only instances have properties.",
            "clock(1)": "Expected 0 arguments but got 1.",
        }
        for case, expected in cases.items():
            with self.assertRaises(RnjRuntimeError, msg=case) as context:
                run(f"println {case};")
            self.assertEqual(expected, context.exception.msg, case)

    def test_error_location(self):
        with self.assertRaises(RnjRuntimeError) as context:
            run("var a = 1;\nvar b = a /\n0;")
        self.assertEqual(2, context.exception.line)
        self.assertEqual("/", context.exception.lexeme)

    def test_break_outside_statement_position(self):
        with self.assertRaises(RnjRuntimeError):
            run("def f(x) {} while (true) { f(break); }")

    def test_clock(self):
        value = float(value_of("clock()"))
        self.assertGreater(value, 0)
        self.assertEqual(["true"], run("var a = clock(); var b = clock(); println b >= a;"))
        self.assertEqual(["<native fn clock>"], run("println clock;"))


class StatementTestCase(unittest.TestCase):

    def test_variables(self):
        self.assertEqual(["nil", "1", "2"], run("var a; println a; a = 1; println a; var a = 2; println a;"))
        self.assertEqual(["3", "3"], run("var a; var b; a = b = 3; println a; println b;"))

    def test_assignment_never_creates_bindings(self):
        with self.assertRaises(RnjRuntimeError) as context:
            run("x = 1;")
        self.assertEqual("Undefined variable 'x'.", context.exception.msg)

    def test_shadowing_does_not_leak(self):
        source = "var x = 1; { var x = 2; println x == 2; } println x == 1;"
        self.assertEqual(["true", "true"], run(source))

        source = "var x = 1; { x = 2; var y = 3; } println x;"
        self.assertEqual(["2"], run(source))

    def test_if_else(self):
        source = """
        if (1 < 2) println "then"; else println "else";
        if (nil) println "then"; else println "else";
        if (false) println "skipped";
        """
        self.assertEqual(["then", "else"], run(source))

    def test_while(self):
        source = "var i = 0; while (i < 3) { println i; i = i + 1; }"
        self.assertEqual(["0", "1", "2"], run(source))

    def test_for(self):
        self.assertEqual(["0", "1", "2"], run("for (var i = 0; i < 3; i = i + 1) println i;"))

        source = "var i = 10; for (i = 0; i < 2; i = i + 1) {} println i;"
        self.assertEqual(["2"], run(source))

        # the loop variable lives in the block wrapping the loop
        with self.assertRaises(RnjRuntimeError):
            run("for (var j = 0; j < 1; j = j + 1) {} println j;")

    def test_break(self):
        source = """
        var i = 0;
        while (true) {
            if (i == 3) { break; }
            println i;
            i = i + 1;
        }
        println "after";
        """
        self.assertEqual(["0", "1", "2", "after"], run(source))

    def test_break_exits_innermost_loop_only(self):
        source = """
        for (var i = 0; i < 2; i = i + 1) {
            for (var j = 0; j < 5; j = j + 1) {
                if (j == 1) break;
                println i + j * 10;
            }
        }
        """
        self.assertEqual(["0", "1"], run(source))

        self.assertEqual(["done"], run("for (;;) break; println \"done\";"))

    def test_block_restores_environment(self):
        interpreter = Interpreter()
        run("{ var a = 1; { var b = 2; } }", interpreter)
        self.assertIs(interpreter.globals, interpreter.environment)

        with self.assertRaises(RnjRuntimeError):
            run("{ var a = 1; { println a + nil; } }", interpreter)
        self.assertIs(interpreter.globals, interpreter.environment)

        run("def f() { { while (true) { return 1; } } } f();", interpreter)
        self.assertIs(interpreter.globals, interpreter.environment)


class FunctionTestCase(unittest.TestCase):

    def test_call_and_return(self):
        source = """
        def add(a, b) { return a + b; }
        def nothing() {}
        def early(x) { if (x) return "early"; return "late"; }
        println add(1, 2);
        println nothing();
        println early(true);
        println early(false);
        println add;
        """
        self.assertEqual(["3", "nil", "early", "late", "<fn add>"], run(source))

    def test_arity(self):
        cases = {
            "def f(a, b) {} f(1);": "Expected 2 arguments but got 1.",
            "def f() {} f(1, 2);": "Expected 0 arguments but got 2.",
        }
        for case, expected in cases.items():
            with self.assertRaises(RnjRuntimeError) as context:
                run(case)
            self.assertEqual(expected, context.exception.msg, case)

    def test_arguments_evaluated_left_to_right(self):
        source = """
        var log = "";
        def note(s) { log = log + s; return s; }
        def three(a, b, c) {}
        three(note("a"), note("b"), note("c"));
        println log;
        """
        self.assertEqual(["abc"], run(source))

    def test_recursion(self):
        source = """
        def fib(n) { if (n < 2) return n; return fib(n - 1) + fib(n - 2); }
        println fib(15);
        """
        self.assertEqual(["610"], run(source))

    def test_return_inside_loop_exits_function(self):
        source = """
        def find() {
            var i = 0;
            while (true) {
                if (i == 4) return i;
                i = i + 1;
            }
            println "unreachable";
        }
        println find();
        def first() { for (var i = 10; i < 20; i = i + 1) { return i; } }
        println first();
        """
        self.assertEqual(["4", "10"], run(source))

    def test_counter_closure_shares_state(self):
        source = """
        def counter() {
            var i = 0;
            def inc() { i = i + 1; return i; }
            return inc;
        }
        var c = counter();
        println c() == 1;
        println c() == 2;
        var d = counter();
        println d();
        println c();
        """
        self.assertEqual(["true", "true", "1", "3"], run(source))

    def test_closure_outlives_block(self):
        source = """
        var f;
        {
            var captured = "kept";
            def g() { return captured; }
            f = g;
        }
        println f();
        """
        self.assertEqual(["kept"], run(source))

    def test_closures_in_for_loop_share_loop_variable(self):
        # for is desugared into a single enclosing block, so there is one `i` for all iterations
        source = """
        var a; var b;
        for (var i = 0; i < 2; i = i + 1) {
            def f() { return i; }
            if (i == 0) a = f; else b = f;
        }
        println a();
        println b();
        """
        self.assertEqual(["2", "2"], run(source))

        # a per-iteration copy is captured per iteration
        source = """
        var a; var b;
        for (var i = 0; i < 2; i = i + 1) {
            var j = i;
            def f() { return j; }
            if (i == 0) a = f; else b = f;
        }
        println a();
        println b();
        """
        self.assertEqual(["0", "1"], run(source))

    def test_closure_captures_declaration_scope(self):
        source = """
        var a = "global";
        {
            def show() { println a; }
            show();
            var a = "block";
            show();
        }
        """
        self.assertEqual(["global", "global"], run(source))

    def test_nested_function_free_variables_normalized_to_global(self):
        source = """
        var a = "global";
        def outer() {
            var a = "outer";
            { def inner() { return a; } println inner(); }
            def direct() { return a; }
            println direct();
        }
        outer();
        """
        self.assertEqual(["global", "outer"], run(source))

    def test_nested_function_reads_own_locals_in_blocks(self):
        source = "def outer() { def inner() { var y = 1; { { println y; } } } inner(); } outer();"
        self.assertEqual(["1"], run(source))

        source = """
        def outer() {
            def inner() { for (var i = 0; i < 2; i = i + 1) { println i; } }
            inner();
        }
        outer();
        """
        self.assertEqual(["0", "1"], run(source))

    def test_method_of_local_struct(self):
        source = """
        def f() {
            struct P { m() { for (var i = 0; i < 2; i = i + 1) { println i; } } }
            P().m();
        }
        f();
        """
        self.assertEqual(["0", "1"], run(source))

        source = """
        def f() {
            var x = 7;
            def g() { return x; }
            struct P { m() { return x; } }
            println g();
            println P().m();
        }
        f();
        """
        self.assertEqual(["7", "7"], run(source))

    def test_functions_are_first_class(self):
        source = """
        def twice(f, x) { return f(f(x)); }
        def inc(x) { return x + 1; }
        println twice(inc, 5);
        var g = inc;
        println g == inc;
        println g(1);
        """
        self.assertEqual(["7", "true", "2"], run(source))

    def test_stack_overflow(self):
        with self.assertRaises(RnjRuntimeError) as context:
            run("def f() { return f(); } f();")
        self.assertEqual("Stack overflow.", context.exception.msg)


class StructTestCase(unittest.TestCase):

    def test_constructor(self):
        source = "struct P { construct(a) { this.x = a; } } var p = P(5); println p.x == 5; println p; println P;"
        self.assertEqual(["true", "<P instance>", "P"], run(source))

    def test_constructor_arity(self):
        with self.assertRaises(RnjRuntimeError) as context:
            run("struct P { construct(a, b) {} } P(1);")
        self.assertEqual("Expected 2 arguments but got 1.", context.exception.msg)

        with self.assertRaises(RnjRuntimeError) as context:
            run("struct Empty {} Empty(1);")
        self.assertEqual("Expected 0 arguments but got 1.", context.exception.msg)

        self.assertEqual(["<Empty instance>"], run("struct Empty {} println Empty();"))

    def test_constructor_return_value_ignored(self):
        source = "struct P { construct() { this.v = 1; return 99; } } println P().v;"
        self.assertEqual(["1"], run(source))

    def test_fields_and_methods(self):
        source = """
        struct Counter {
            construct(start) { this.count = start; }
            inc() { this.count = this.count + 1; return this; }
            get() { return this.count; }
        }
        var c = Counter(10);
        c.inc().inc();
        println c.get();
        c.extra = "new field";
        println c.extra;
        """
        self.assertEqual(["12", "new field"], run(source))

    def test_bound_methods_remember_instance(self):
        source = """
        struct Greeter {
            construct(name) { this.name = name; }
            greet() { return "hi " + this.name; }
        }
        var m = Greeter("ada").greet;
        println m();
        println m;
        """
        self.assertEqual(["hi ada", "<fn greet>"], run(source))

    def test_fields_shadow_methods(self):
        source = """
        struct S { m() { return "method"; } }
        var s = S();
        println s.m();
        def other() { return "field"; }
        s.m = other;
        println s.m();
        """
        self.assertEqual(["method", "field"], run(source))

    def test_property_errors(self):
        cases = {
            "struct S {} S().missing;": "Undefined property 'missing'.",
            "var x = 1; x.y = 2;": "Only instances have fields.",
            "var x = 1; println x.y;": "Only instances have properties.",
        }
        for case, expected in cases.items():
            with self.assertRaises(RnjRuntimeError) as context:
                run(case)
            self.assertEqual(expected, context.exception.msg, case)

    def test_instance_equality(self):
        source = """
        struct P { construct(x) { this.x = x; } }
        var a = P(1);
        println a == a;
        println a == P(1);
        println a == P(2);
        struct Q { construct(x) { this.x = x; } }
        println a == Q(1);
        """
        self.assertEqual(["true", "true", "false", "false"], run(source))

    def test_cycles_through_fields(self):
        source = """
        struct Node { construct(name) { this.name = name; } }
        var a = Node("a");
        var b = Node("a");
        a.next = a;
        b.next = b;
        println a == b;
        println a.next.next.name;
        """
        self.assertEqual(["true", "a"], run(source))

    def test_struct_inside_function(self):
        source = """
        def make(v) {
            struct Box { get() { if (true) { return this.v; } } }
            var box = Box();
            box.v = v;
            return box;
        }
        println make(3).get();
        """
        self.assertEqual(["3"], run(source))


if __name__ == '__main__':
    unittest.main()
