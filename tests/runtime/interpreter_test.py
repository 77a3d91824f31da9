import io
import sys
import unittest

from treelox.lang.error import ErrorHandler
from treelox.lang.session import Session
from treelox.runtime.interpreter import Interpreter, is_equal, is_truthy, stringify
from treelox.syntax import ast
from treelox.syntax.tokens import Token, TokenType


def run(source):
    """Runs source in a fresh session, returning (stdout, stderr)."""
    out, err = io.StringIO(), io.StringIO()
    Session(ErrorHandler(err, color=False), out).run(source)
    return out.getvalue(), err.getvalue()


class ValueTestCase(unittest.TestCase):

    def test_truthiness(self):
        should_fail = [None, False]
        for case in should_fail:
            self.assertFalse(is_truthy(case), case)

        should_pass = [True, 0.0, "", "false", object()]
        for case in should_pass:
            self.assertTrue(is_truthy(case), case)

    def test_equality(self):
        self.assertTrue(is_equal(None, None))
        self.assertTrue(is_equal(1.0, 1.0))
        self.assertTrue(is_equal("a", "a"))
        self.assertFalse(is_equal(None, False))
        self.assertFalse(is_equal(1.0, True))
        self.assertFalse(is_equal(0.0, False))
        self.assertFalse(is_equal(1.0, "1"))

    def test_stringify(self):
        cases = [(None, "nil"), (True, "true"), (False, "false"), (1.0, "1"), (2.5, "2.5"), (-3.0, "-3"),
                 ("text", "text"), (1e15, "1000000000000000"), (1e16, "1e+16"),
                 (123456789012345678.0, "1.2345678901234568e+17"), (1e-07, "1e-07"), (0.1 + 0.2, "0.30000000000000004")]
        for value, expected in cases:
            self.assertEqual(expected, stringify(value), value)


class ExpressionTestCase(unittest.TestCase):

    def test_arithmetic(self):
        cases = {
            "print 1 + 2 * 3;": "7\n",
            "print (1 + 2) * 3;": "9\n",
            "print 7 / 2;": "3.5\n",
            "print 5 % 2;": "1\n",
            "print -5 % 2;": "-1\n",
            "print 5.5 % 2;": "1.5\n",
            "print -(2 - 5);": "3\n",
            "print 1 < 2; print 2 <= 2; print 1 > 2; print 1 >= 2;": "true\ntrue\nfalse\nfalse\n",
        }
        for case, expected in cases.items():
            self.assertEqual((expected, ""), run(case), case)

    def test_concatenation(self):
        self.assertEqual(("x1\n", ""), run('print "x" + 1;'))
        self.assertEqual(("x1.5\n", ""), run('print "x" + 1.5;'))
        self.assertEqual(("xnil xtrue\n", ""), run('print "x" + nil + " x" + true;'))
        self.assertEqual(("ab\n", ""), run('print "a" + "b";'))

    def test_operand_errors(self):
        cases = {
            'print 1 + "x";': "Operands must be two numbers or the first operand must be a string.",
            "print 1 / 0;": "Division by zero.",
            "print 1 % 0;": "Modulo by zero.",
            'print -"a";': "Operand must be a number.",
            'print 1 < "a";': "Operands must be numbers.",
            'print nil * 2;': "Operands must be numbers.",
        }
        for case, msg in cases.items():
            self.assertEqual(("", f"{msg}\n[line 1]\n"), run(case), case)

    def test_equality(self):
        out, __ = run('print 1 == 1; print "a" != "a"; print nil == nil; print nil == false; print 1 == "1";')
        self.assertEqual("true\nfalse\ntrue\nfalse\nfalse\n", out)

    def test_truthiness(self):
        out, __ = run('print !0; print !""; print !nil; print !!true;')
        self.assertEqual("false\nfalse\ntrue\ntrue\n", out)

    def test_logical_returns_operands(self):
        out, __ = run('print nil or "default"; print "first" or "second"; print 1 and 2; print false and 1;')
        self.assertEqual("default\nfirst\n2\nfalse\n", out)

    def test_short_circuit(self):
        out, err = run("fun boom() { return 1 / 0; } print true or boom(); print false and boom();")
        self.assertEqual(("true\nfalse\n", ""), (out, err))

    def test_ternary(self):
        self.assertEqual(("1\n", ""), run("print true ? 1 : false ? 2 : 3;"))
        self.assertEqual(("3\n", ""), run("print false ? 1 : false ? 2 : 3;"))
        self.assertEqual(("2\n", ""), run("print nil ? 1 : 2;"))

    def test_assignment_is_an_expression(self):
        self.assertEqual(("2\n2\n", ""), run("var a = 1; var b; b = a = 2; print a; print b;"))


class StatementTestCase(unittest.TestCase):

    def test_shadowing(self):
        self.assertEqual(("2\n1\n", ""), run("var a = 1; { var a = 2; print a; } print a;"))

    def test_multi_var(self):
        self.assertEqual(("1 nil 3\n", ""), run('var a = 1, b, c = a + 2; print "" + a + " " + b + " " + c;'))

    def test_control_flow(self):
        self.assertEqual(("0\n1\n2\n", ""), run("for (var i = 0; i < 3; i = i + 1) print i;"))
        self.assertEqual(("3\n", ""), run("var i = 0; while (i < 3) i = i + 1; print i;"))
        self.assertEqual(("no\n", ""), run('if (nil) print "yes"; else print "no";'))

    def test_undefined_variable(self):
        self.assertEqual(("", "Undefined variable 'x'.\n[line 1]\n"), run("print x;"))
        self.assertEqual(("", "Undefined variable 'x'.\n[line 1]\n"), run("x = 1;"))

    def test_runtime_error_keeps_earlier_effects(self):
        out, err = run('print 1;\nprint -"a";\nprint 2;')
        self.assertEqual("1\n", out)
        self.assertEqual("Operand must be a number.\n[line 2]\n", err)

    def test_static_error_prevents_execution(self):
        out, err = run("print 1;\nreturn 2;")
        self.assertEqual("", out)
        self.assertEqual("[line 2] Error at 'return': Cannot return from top-level code.\n", err)


class FunctionTestCase(unittest.TestCase):

    def test_call(self):
        self.assertEqual(("3\n", ""), run("fun add(a, b) { return a + b; } print add(1, 2);"))
        self.assertEqual(("nil\n", ""), run("fun f() {} print f();"))

    def test_early_return(self):
        source = """
            fun find() {
                var i = 0;
                while (true) {
                    if (i == 3) return i;
                    i = i + 1;
                }
            }
            print find();
        """
        self.assertEqual(("3\n", ""), run(source))

    def test_recursion(self):
        source = "fun fib(n) { if (n < 2) return n; return fib(n - 1) + fib(n - 2); } print fib(10);"
        self.assertEqual(("55\n", ""), run(source))

    def test_closure_outlives_call(self):
        source = """
            fun outer() {
                var x = "captured";
                fun inner() { print x; }
                return inner;
            }
            var f = outer();
            f();
        """
        self.assertEqual(("captured\n", ""), run(source))

    def test_closures_share_state(self):
        source = """
            fun makeCounter() {
                var count = 0;
                fun inc() { count = count + 1; return count; }
                return inc;
            }
            var a = makeCounter();
            var b = makeCounter();
            print a(); print a(); print b();
        """
        self.assertEqual(("1\n2\n1\n", ""), run(source))

    def test_closure_binds_lexically(self):
        source = """
            var a = "global";
            {
                fun show() { print a; }
                show();
                var a = "block";
                show();
                print a;
            }
        """
        self.assertEqual(("global\nglobal\nblock\n", ""), run(source))

    def test_lambda(self):
        self.assertEqual(("3\n", ""), run("var add = lambda (a, b) a + b; print add(1, 2);"))
        self.assertEqual(("8\n", ""), run("var f = lambda (x) { return x * 2; }; print f(4);"))
        self.assertEqual(("6\n", ""), run("fun twice(f, x) { return f(f(x)); } print twice(lambda (x) x + 3, 0);"))

    def test_natives(self):
        self.assertEqual(("hi\n", ""), run('print("hi");'))
        self.assertEqual(("via native\nnil\n", ""), run('var p = print; print p("via native");'))
        self.assertEqual(("true\n", ""), run("print clock() > 0;"))
        self.assertEqual(("<native fn clock>\n", ""), run("print clock;"))

    def test_function_text(self):
        self.assertEqual(("<fn f>\n<lambda>\n", ""), run("fun f() {} print f; print lambda () 1;"))

    def test_call_errors(self):
        self.assertEqual(("", "Expected 1 arguments but got 0.\n[line 1]\n"), run("fun f(a) {} f();"))
        self.assertEqual(("", "Can only call functions and classes.\n[line 1]\n"), run('"str"();'))
        self.assertEqual(("", "Expected 0 arguments but got 1.\n[line 1]\n"), run("clock(1);"))

    def test_stack_overflow(self):
        out, err = run("fun f() { f(); }\nf();")
        self.assertEqual("", out)
        self.assertTrue(err.startswith("Stack overflow.\n[line "), err)

        # the session is still usable afterwards
        self.assertEqual(("ok\n", ""), run('print "ok";'))


class ClassTestCase(unittest.TestCase):

    def test_init_and_methods(self):
        source = """
            class Point {
                init(x, y) { this.x = x; this.y = y; }
                sum() { return this.x + this.y; }
            }
            var p = Point(1, 2);
            print p.x;
            print p.sum();
            p.x = 10;
            print p.sum();
        """
        self.assertEqual(("1\n3\n12\n", ""), run(source))

    def test_text(self):
        self.assertEqual(("A\nA instance\n", ""), run("class A {} print A; print A();"))

    def test_undefined_property(self):
        self.assertEqual(("", "Undefined property 'nope'.\n[line 1]\n"), run("class A {} var a = A(); print a.nope;"))

    def test_properties_need_instances(self):
        self.assertEqual(("", "Only instances have properties.\n[line 1]\n"), run("var a = 1; print a.b;"))
        self.assertEqual(("", "Only instances have fields.\n[line 1]\n"), run("var a = 1; a.b = 2;"))

    def test_bound_methods_are_per_instance(self):
        source = """
            class Box {
                init(v) { this.v = v; }
                get() { return this.v; }
            }
            var a = Box(1);
            var b = Box(2);
            var g = a.get;
            print g();
            print b.get();
        """
        self.assertEqual(("1\n2\n", ""), run(source))

    def test_fields_shadow_methods(self):
        source = 'class A { m() { return "method"; } } var a = A(); a.m = lambda () "field"; print a.m();'
        self.assertEqual(("field\n", ""), run(source))

    def test_initializer_returns_instance(self):
        source = "class A { init() { this.x = 1; return; } } var a = A(); print a.init() == a; print a.x;"
        self.assertEqual(("true\n1\n", ""), run(source))

    def test_class_arity(self):
        self.assertEqual(("", "Expected 1 arguments but got 0.\n[line 1]\n"), run("class A { init(x) {} } A();"))
        self.assertEqual(("", "Expected 0 arguments but got 1.\n[line 1]\n"), run("class A {} A(1);"))

    def test_static_methods_are_per_class(self):
        source = """
            class A { class name() { return "A"; } }
            class B { class name() { return "B"; } }
            print A.name();
            print B.name();
            print A().name();
        """
        self.assertEqual(("A\nB\nA\n", ""), run(source))

    def test_static_method_closure(self):
        source = """
            fun make() {
                var label = "made";
                class Factory { class label() { return label; } }
                return Factory;
            }
            print make().label();
        """
        self.assertEqual(("made\n", ""), run(source))

    def test_instance_identity(self):
        self.assertEqual(("false\ntrue\n", ""), run("class A {} var a = A(); print a == A(); print a == a;"))


class DeepTreeTestCase(unittest.TestCase):
    """Trees too deep for the Python stack even though they contain no calls."""

    def setUp(self):
        limit = sys.getrecursionlimit()
        self.addCleanup(sys.setrecursionlimit, limit)
        sys.setrecursionlimit(1000)

        self.out, self.err = io.StringIO(), io.StringIO()
        self.interpreter = Interpreter(ErrorHandler(self.err, color=False), self.out)

    @staticmethod
    def chain(length):
        plus = Token(TokenType.PLUS, "+", None, 3)
        expr = ast.Literal(1.0)
        for _ in range(length):
            expr = ast.Binary(expr, plus, ast.Literal(1.0))
        return expr

    def test_statement(self):
        program = [ast.Print(ast.Literal("before")), ast.Print(self.chain(5000)), ast.Print(ast.Literal("after"))]
        self.interpreter.interpret(program)
        self.assertEqual("before\n", self.out.getvalue())
        self.assertEqual("Stack overflow.\n[line 3]\n", self.err.getvalue())

    def test_expression(self):
        self.interpreter.interpret_expression(self.chain(5000))
        self.interpreter.interpret_expression(self.chain(10))
        self.assertEqual("11\n", self.out.getvalue())
        self.assertEqual("Stack overflow.\n[line 3]\n", self.err.getvalue())

    def test_environment_restored(self):
        self.interpreter.interpret([ast.Block([ast.Print(self.chain(5000))])])
        self.assertIs(self.interpreter.globals, self.interpreter.environment)


if __name__ == '__main__':
    unittest.main()
