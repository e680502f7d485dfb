from typing import List

import treelox.treelox_ast as ast
from treelox.runtime import stringify


class AstPrinter:
    """Renders trees in prefix S-expression form, e.g. `(+ 1 (group 2))`"""

    def print(self, expr: 'ast.Expr') -> str:
        if isinstance(expr, ast.Literal):
            if isinstance(expr.value, str):
                return expr.value
            return stringify(expr.value)
        elif isinstance(expr, ast.Grouping):
            return self.parenthesize("group", expr.expression)
        elif isinstance(expr, (ast.Binary, ast.Logical)):
            return self.parenthesize(expr.operator.lexeme, expr.left, expr.right)
        elif isinstance(expr, ast.Unary):
            return self.parenthesize(expr.operator.lexeme, expr.right)
        elif isinstance(expr, ast.Variable):
            return expr.name.lexeme
        elif isinstance(expr, ast.Assign):
            return self.parenthesize(f"= {expr.name.lexeme}", expr.value)
        elif isinstance(expr, ast.Call):
            return self.parenthesize("call", expr.callee, *expr.arguments)
        elif isinstance(expr, ast.Get):
            return self.parenthesize(f". {expr.name.lexeme}", expr.object)
        elif isinstance(expr, ast.Set):
            return self.parenthesize(f"= . {expr.name.lexeme}", expr.object, expr.value)
        elif isinstance(expr, ast.This):
            return "this"
        elif isinstance(expr, ast.Super):
            return f"(super {expr.method.lexeme})"
        elif isinstance(expr, ast.FunctionLiteral):
            params = " ".join(param.lexeme for param in expr.params)
            return f"(fun ({params}) ...)"
        raise TypeError(f"Unknown expression node: {type(expr).__name__}")

    def print_stmt(self, stmt: 'ast.Stmt') -> str:
        if isinstance(stmt, ast.Expression):
            return self.parenthesize(";", stmt.expression)
        elif isinstance(stmt, ast.Print):
            return self.parenthesize("print", stmt.expression)
        elif isinstance(stmt, ast.Var):
            if stmt.initializer is None:
                return f"(var {stmt.name.lexeme})"
            return self.parenthesize(f"var {stmt.name.lexeme} =", stmt.initializer)
        elif isinstance(stmt, ast.Block):
            return self.block("block", stmt.statements)
        elif isinstance(stmt, ast.If):
            parts = f"(if {self.print(stmt.condition)} {self.print_stmt(stmt.then_branch)}"
            if stmt.else_branch is not None:
                parts += f" {self.print_stmt(stmt.else_branch)}"
            return parts + ")"
        elif isinstance(stmt, ast.While):
            parts = f"(while {self.print(stmt.condition)} {self.print_stmt(stmt.body)}"
            if stmt.increment is not None:
                parts += f" {self.print(stmt.increment)}"
            return parts + ")"
        elif isinstance(stmt, ast.Function):
            params = " ".join(param.lexeme for param in stmt.params)
            return self.block(f"fun {stmt.name.lexeme}({params})", stmt.body)
        elif isinstance(stmt, ast.Return):
            if stmt.value is None:
                return "(return)"
            return self.parenthesize("return", stmt.value)
        elif isinstance(stmt, ast.Class):
            head = f"class {stmt.name.lexeme}"
            if stmt.superclass is not None:
                head += f" < {stmt.superclass.name.lexeme}"
            return self.block(head, stmt.methods)
        raise TypeError(f"Unknown statement node: {type(stmt).__name__}")

    def parenthesize(self, name: str, *exprs: 'ast.Expr') -> str:
        parts = [name] + [self.print(expr) for expr in exprs]
        return "(" + " ".join(parts) + ")"

    def block(self, name: str, statements: List['ast.Stmt']) -> str:
        parts = [name] + [self.print_stmt(stmt) for stmt in statements]
        return "(" + " ".join(parts) + ")"
