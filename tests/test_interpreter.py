import io
import unittest

from treelox.errors import Category
from treelox.treelox import Lox, Ok, RuntimeFailure, run


def run_program(source):
    out = io.StringIO()
    result = run(source, stdout=out)
    return result, out.getvalue().splitlines()


class TestExpressions(unittest.TestCase):
    def assertPrints(self, source, *expected):
        result, lines = run_program(source)
        self.assertIsInstance(result, Ok, result)
        self.assertEqual(lines, list(expected))

    def test_arithmetic_follows_ieee_doubles(self):
        self.assertPrints("print 1 + 2 * 3;", "7")
        self.assertPrints("print 0.1 + 0.2;", "0.30000000000000004")
        self.assertPrints("print 7 / 2;", "3.5")
        self.assertPrints("print -(3 - 5);", "2")
        self.assertPrints("print 1 / 3;", "0.3333333333333333")

    def test_string_concatenation(self):
        self.assertPrints('print "tree" + "lox";', "treelox")

    def test_comparison(self):
        self.assertPrints("print 1 < 2; print 2 <= 2; print 3 > 4; print 3 >= 4;",
                          "true", "true", "false", "false")

    def test_truthiness(self):
        self.assertPrints('print !nil; print !false; print !0; print !"";',
                          "true", "true", "false", "false")

    def test_equality(self):
        self.assertPrints("print nil == nil; print nil == false; print 1 == 1; print 1 == true;",
                          "true", "false", "true", "false")
        self.assertPrints('print "a" == "a"; print "a" != "b"; print 0 == "0";',
                          "true", "true", "false")

    def test_logical_operators_return_operands(self):
        self.assertPrints('print nil or "yes"; print 1 and 2; print false and boom;',
                          "yes", "2", "false")

    def test_value_rendering(self):
        self.assertPrints("print nil; print true; print 10; print 2.5; print -0;",
                          "nil", "true", "10", "2.5", "-0")
        self.assertPrints("fun f() {} print f; print clock;", "<fn f>", "<native fn>")
        self.assertPrints("print fun () {};", "<fn>")


class TestStatements(unittest.TestCase):
    def test_variables_and_blocks(self):
        source = """
        var a = "outer";
        {
          var a = "inner";
          print a;
        }
        print a;
        var b;
        print b;
        """
        result, lines = run_program(source)
        self.assertIsInstance(result, Ok)
        self.assertEqual(lines, ["inner", "outer", "nil"])

    def test_assignment_is_an_expression(self):
        _, lines = run_program("var a; var b; a = b = 3; print a + b;")
        self.assertEqual(lines, ["6"])

    def test_if_else(self):
        _, lines = run_program("if (1 > 2) print 1; else print 2; if (nil) print 3;")
        self.assertEqual(lines, ["2"])

    def test_while_loop(self):
        _, lines = run_program("var i = 0; while (i < 3) { print i; i = i + 1; }")
        self.assertEqual(lines, ["0", "1", "2"])

    def test_for_loop(self):
        _, lines = run_program("for (var i = 0; i < 3; i = i + 1) print i * 10;")
        self.assertEqual(lines, ["0", "10", "20"])

    def test_for_loop_body_can_change_loop_variable(self):
        _, lines = run_program("for (var i = 0; i < 5; i = i + 1) { if (i == 1) i = 3; print i; }")
        self.assertEqual(lines, ["0", "3", "4"])

    def test_for_loop_with_outer_variable(self):
        _, lines = run_program("var i = 10; for (i = 0; i < 2; i = i + 1) {} print i;")
        self.assertEqual(lines, ["2"])

    def test_native_clock(self):
        _, lines = run_program("var t = clock(); print t > 0;")
        self.assertEqual(lines, ["true"])


class TestRuntimeErrors(unittest.TestCase):
    def assertRuntimeError(self, source, message, line=1):
        result, _ = run_program(source)
        self.assertIsInstance(result, RuntimeFailure)
        self.assertEqual(result.diagnostic.category, Category.RUNTIME)
        self.assertEqual(result.diagnostic.message, message)
        self.assertEqual(result.diagnostic.line, line)

    def test_division_by_zero(self):
        self.assertRuntimeError("print 1 / 0;", "Division by zero.")
        self.assertRuntimeError("print 1 / -0;", "Division by zero.")

    def test_type_errors(self):
        self.assertRuntimeError('print 1 + "a";', "Operands must be two numbers or two strings.")
        self.assertRuntimeError('print "a" * 2;', "Operands must be numbers.")
        self.assertRuntimeError('print -"a";', "Operand must be a number.")
        self.assertRuntimeError('print nil < 1;', "Operands must be numbers.")

    def test_undefined_variable(self):
        self.assertRuntimeError("print missing;", "Undefined variable 'missing'.")
        self.assertRuntimeError("\nmissing = 1;", "Undefined variable 'missing'.", line=2)

    def test_calls(self):
        self.assertRuntimeError('"text"();', "Can only call functions and classes.")
        self.assertRuntimeError("fun f(a, b) {} f(1);", "Expected 2 arguments but got 1.")
        self.assertRuntimeError("clock(1);", "Expected 0 arguments but got 1.")

    def test_first_error_halts_but_keeps_earlier_output(self):
        result, lines = run_program('print "before";\nprint nil + 1;\nprint "after";')
        self.assertIsInstance(result, RuntimeFailure)
        self.assertEqual(result.diagnostic.line, 2)
        self.assertEqual(lines, ["before"])


def test_session_keeps_globals_between_runs():
    out = io.StringIO()
    lox = Lox(stdout=out)
    assert isinstance(lox.run("var count = 1;"), Ok)
    assert isinstance(lox.run("count = count + 1; print count;"), Ok)
    assert out.getvalue() == "2\n"


def test_runs_are_deterministic():
    source = """
    fun fib(n) { if (n < 2) return n; return fib(n - 1) + fib(n - 2); }
    for (var i = 0; i < 10; i = i + 1) print fib(i);
    """
    first = run_program(source)
    second = run_program(source)
    assert first[1] == second[1]
    assert first[1][-1] == "34"
