import unittest

from treelox.ast_printer import AstPrinter
from treelox.errors import Category
from treelox.lexer import scan
from treelox.parser import Parser, parse
import treelox.treelox_ast as ast


def parse_source(source):
    tokens, lex_errors = scan(source)
    assert lex_errors == []
    return parse(tokens)


def print_expr(source):
    tokens, _ = scan(source)
    parser = Parser(tokens)
    expr = parser.parse_expression()
    assert parser.errors == []
    return AstPrinter().print(expr)


class TestExpressionPrecedence(unittest.TestCase):
    def test_comparison_binds_looser_than_term(self):
        self.assertEqual(print_expr("1 + 2 <= 5 + 7"), "(<= (+ 1 2) (+ 5 7))")

    def test_factor_binds_tighter_than_term(self):
        self.assertEqual(print_expr("1 + 2 * 3 - 4"), "(- (+ 1 (* 2 3)) 4)")

    def test_grouping_and_unary(self):
        self.assertEqual(print_expr("(-1 + 2) * 3"), "(* (group (+ (- 1) 2)) 3)")
        self.assertEqual(print_expr("!!true"), "(! (! true))")

    def test_binary_levels_are_left_associative(self):
        self.assertEqual(print_expr("8 / 4 / 2"), "(/ (/ 8 4) 2)")
        self.assertEqual(print_expr("a == b == c"), "(== (== a b) c)")

    def test_assignment_is_right_associative(self):
        self.assertEqual(print_expr("a = b = c"), "(= a (= b c))")

    def test_logical_operators(self):
        self.assertEqual(print_expr("a or b and c"), "(or a (and b c))")

    def test_calls_and_property_access(self):
        self.assertEqual(print_expr("a.b(1, 2).c"), "(. c (call (. b a) 1 2))")
        self.assertEqual(print_expr("a.b = 3"), "(= . b a 3)")

    def test_literals(self):
        self.assertEqual(print_expr('nil'), "nil")
        self.assertEqual(print_expr('"text"'), "text")
        self.assertEqual(print_expr('2.5'), "2.5")


class TestStatements(unittest.TestCase):
    def test_var_without_initializer(self):
        statements, errors = parse_source("var a;")
        self.assertEqual(errors, [])
        self.assertIsInstance(statements[0], ast.Var)
        self.assertIsNone(statements[0].initializer)

    def test_for_with_var_is_scoped_per_iteration_loop(self):
        statements, errors = parse_source("for (var i = 0; i < 3; i = i + 1) print i;")
        self.assertEqual(errors, [])
        block = statements[0]
        self.assertIsInstance(block, ast.Block)
        self.assertIsInstance(block.statements[0], ast.Var)
        loop = block.statements[1]
        self.assertIsInstance(loop, ast.While)
        self.assertTrue(loop.per_iteration)
        self.assertIsInstance(loop.increment, ast.Assign)
        self.assertIsInstance(loop.body, ast.Print)

    def test_for_without_clauses(self):
        statements, errors = parse_source("for (;;) print 1;")
        self.assertEqual(errors, [])
        loop = statements[0]
        self.assertIsInstance(loop, ast.While)
        self.assertFalse(loop.per_iteration)
        self.assertIsNone(loop.increment)
        self.assertEqual(loop.condition.value, True)

    def test_for_with_expression_initializer(self):
        statements, _ = parse_source("var i; for (i = 0; i < 2; i = i + 1) print i;")
        block = statements[1]
        self.assertIsInstance(block.statements[0], ast.Expression)
        self.assertFalse(block.statements[1].per_iteration)

    def test_if_else(self):
        statements, _ = parse_source("if (a) print 1; else print 2;")
        stmt = statements[0]
        self.assertIsInstance(stmt, ast.If)
        self.assertIsInstance(stmt.else_branch, ast.Print)

    def test_function_declaration(self):
        statements, _ = parse_source("fun add(a, b) { return a + b; }")
        function = statements[0]
        self.assertIsInstance(function, ast.Function)
        self.assertEqual([param.lexeme for param in function.params], ["a", "b"])
        self.assertIsInstance(function.body[0], ast.Return)

    def test_function_literal(self):
        statements, errors = parse_source("var f = fun (x) { return x; };")
        self.assertEqual(errors, [])
        self.assertIsInstance(statements[0].initializer, ast.FunctionLiteral)

    def test_class_declaration(self):
        statements, _ = parse_source("class B < A { init(x) { this.x = x; } get() { return super.get(); } }")
        klass = statements[0]
        self.assertIsInstance(klass, ast.Class)
        self.assertEqual(klass.superclass.name.lexeme, "A")
        self.assertEqual([method.name.lexeme for method in klass.methods], ["init", "get"])

    def test_print_stmt_rendering(self):
        statements, _ = parse_source("class C < D { m() { return 1; } } while (x) { print x; }")
        printer = AstPrinter()
        self.assertEqual(printer.print_stmt(statements[0]), "(class C < D (fun m() (return 1)))")
        self.assertEqual(printer.print_stmt(statements[1]), "(while x (block (print x)))")


class TestSyntaxErrors(unittest.TestCase):
    def test_reports_every_independent_error(self):
        statements, errors = parse_source("var = 1;\nprint ;\nvar ok = 2;")
        self.assertEqual(len(errors), 2)
        self.assertTrue(all(error.category == Category.SYNTAX for error in errors))
        self.assertEqual([error.line for error in errors], [1, 2])
        self.assertEqual(errors[0].message, "Expect variable name.")
        self.assertEqual(errors[1].message, "Expect expression.")
        self.assertEqual(len(statements), 1)
        self.assertEqual(statements[0].name.lexeme, "ok")

    def test_recovers_at_statement_keyword(self):
        statements, errors = parse_source("print 1 + ; if (true) print 2;")
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(statements[0], ast.If)

    def test_error_at_end(self):
        _, errors = parse_source("print 1")
        self.assertEqual(errors[0].where, " at end")
        self.assertEqual(str(errors[0]), "[line 1] Error at end: Expect ';' after value.")

    def test_error_names_the_token(self):
        _, errors = parse_source("print );")
        self.assertEqual(str(errors[0]), "[line 1] Error at ')': Expect expression.")

    def test_invalid_assignment_target_keeps_parsing(self):
        statements, errors = parse_source("1 = 2; print 3;")
        self.assertEqual([error.message for error in errors], ["Invalid assignment target."])
        self.assertEqual(len(statements), 2)

    def test_errors_inside_blocks(self):
        statements, errors = parse_source("{ var a = ; var b = 1; }\nprint 2;")
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(statements[-1], ast.Print)

    def test_unclosed_block(self):
        _, errors = parse_source("{ print 1;")
        self.assertEqual(errors[0].message, "Expect '}' after block.")

    def test_too_many_arguments(self):
        arguments = ", ".join("1" for _ in range(256))
        _, errors = parse_source(f"f({arguments});")
        self.assertEqual([error.message for error in errors], ["Can't have more than 255 arguments."])

    def test_deep_nesting_is_a_syntax_error(self):
        nested = "(" * 400 + "1" + ")" * 400
        statements, errors = parse_source(f"print {nested};\nprint 2;")
        self.assertEqual([error.message for error in errors], ["Expression nesting too deep."])
        self.assertEqual(len(statements), 1)
        self.assertIsInstance(statements[0], ast.Print)
